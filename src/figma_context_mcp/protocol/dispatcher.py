"""
MCP Protocol dispatcher.

Receives raw text frames from a transport, classifies them as request,
notification or response, routes requests to the registered resource,
tool and prompt handlers, and writes replies back through the transport.
"""

import asyncio
import json
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union
from urllib.parse import urlparse

import structlog

from ..utils.logging import bind_request
from .registry import Registry
from .schemas import (
    UNKNOWN_ID,
    MCPError,
    MCPInternalError,
    MCPInvalidRequestError,
    MCPMethodNotFoundError,
    MCPNotification,
    MCPParseError,
    MCPResponse,
    MissingParameterError,
    PromptNotFoundError,
    ResourceNotFoundError,
    ServerInfo,
    ToolNotFoundError,
)
from .transport import Transport

logger = structlog.get_logger(__name__)

RequestId = Union[str, int, float, None]


class ConnectionState(str, Enum):
    """Lifecycle of a dispatcher's connection to its transport."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class MCPDispatcher:
    """
    JSON-RPC dispatcher for one transport connection.

    Request handlers run as independent tasks: a handler that suspends does
    not hold back frames that arrive after it, so responses can be sent in
    a different order than their requests arrived.
    """

    def __init__(self, registry: Registry, server_info: Optional[ServerInfo] = None):
        self.registry = registry
        self.server_info = server_info or ServerInfo()
        self._state = ConnectionState.IDLE
        self._transport: Optional[Transport] = None
        self._pending_frames: List[str] = []
        self._in_flight: Set[asyncio.Task] = set()

        self._methods: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "resource.get": self._handle_resource_get,
            "resource.list": self._handle_resource_list,
            "resource.templates": self._handle_resource_templates,
            "tool.list": self._handle_tool_list,
            "tool.call": self._handle_tool_call,
            "prompt.list": self._handle_prompt_list,
            "prompt.get": self._handle_prompt_get,
        }

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def in_flight(self) -> int:
        """Number of request handlers still running."""
        return len(self._in_flight)

    async def connect(self, transport: Transport) -> None:
        """
        Attach a transport and announce the server.

        Moves Idle -> Connecting -> Connected and then sends exactly one
        ``server.info`` notification before any inbound frame is handled.

        Raises:
            MCPError: If the dispatcher is not idle
        """
        if self._state is not ConnectionState.IDLE:
            raise MCPError(f"Cannot connect from state {self._state.value}")

        self._transport = transport
        self._state = ConnectionState.CONNECTING
        logger.debug("Connecting transport", transport=type(transport).__name__)

        try:
            await transport.connect(self.handle_message)
        except Exception:
            self._state = ConnectionState.CLOSED
            self._transport = None
            raise

        self._state = ConnectionState.CONNECTED
        self._send_notification("server.info", self.server_info.to_params())
        logger.info("Dispatcher connected", server_name=self.server_info.name)

        # Frames the transport delivered while the handshake was in flight
        pending, self._pending_frames = self._pending_frames, []
        for frame in pending:
            await self._process_frame(frame)

    async def disconnect(self) -> None:
        """Detach the transport. The dispatcher ends in the Closed state."""
        if self._state is ConnectionState.CLOSED:
            return

        transport = self._transport
        self._state = ConnectionState.CLOSED
        self._pending_frames = []
        if transport is not None:
            await transport.disconnect()
        logger.info("Dispatcher disconnected", in_flight=len(self._in_flight))

    async def drain(self) -> None:
        """Wait for every in-flight request handler to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def handle_message(self, frame: str) -> None:
        """
        Entry point handed to the transport for each inbound frame.

        Args:
            frame: One JSON-RPC message as text
        """
        if self._state is ConnectionState.CONNECTING:
            self._pending_frames.append(frame)
            return
        if self._state is not ConnectionState.CONNECTED:
            logger.warning("Dropping frame on inactive dispatcher", state=self._state.value)
            return
        await self._process_frame(frame)

    async def _process_frame(self, frame: str) -> None:
        try:
            message = json.loads(frame)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error("Invalid JSON received", error=str(e), frame=str(frame)[:100])
            self._send_error(UNKNOWN_ID, MCPParseError(str(e)))
            return

        if not isinstance(message, dict):
            logger.error("Frame is not a JSON object", frame=str(frame)[:100])
            self._send_error(UNKNOWN_ID, MCPInvalidRequestError("Frame must be a JSON object"))
            return

        has_method = "method" in message
        has_id = "id" in message

        if has_id and not _is_request_id(message["id"]):
            self._send_error(UNKNOWN_ID, MCPInvalidRequestError("Frame id must be a string or number"))
            return

        if has_method and has_id:
            self._schedule_request(message)
        elif has_method:
            self._handle_notification(message)
        elif has_id:
            self._handle_response(message)
        else:
            logger.warning("Ignoring frame without method or id", frame=str(frame)[:100])

    def _schedule_request(self, message: Dict[str, Any]) -> None:
        task = asyncio.create_task(self._handle_request(message))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _handle_request(self, message: Dict[str, Any]) -> None:
        request_id: RequestId = message["id"]
        method = message.get("method")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        # each request runs in its own task, so the binding ends with it
        bind_request(request_id=request_id, method=method)
        logger.info("Processing request")

        handler = self._methods.get(method) if isinstance(method, str) else None
        if handler is None:
            self._send_error(request_id, MCPMethodNotFoundError(str(method)))
            return

        try:
            result = await handler(params)
            frame = MCPResponse(id=request_id, result=result).to_json()
        except Exception as e:
            logger.error(
                "Error handling request",
                method=method,
                request_id=request_id,
                error=str(e),
                exc_info=not isinstance(e, MCPError),
            )
            details = e.message if isinstance(e, MCPError) else str(e)
            self._send_error(request_id, MCPInternalError("Internal error", data=details))
            return

        self._send(frame)

    def _handle_notification(self, message: Dict[str, Any]) -> None:
        method = message.get("method")
        params = message.get("params")
        if method == "client.info":
            logger.info("Client info received", client=params)
        else:
            logger.warning("Unknown notification method", method=method)

    def _handle_response(self, message: Dict[str, Any]) -> None:
        # No outbound requests are issued, so there is nothing to correlate.
        logger.info("Unexpected response received", response_id=message.get("id"))

    # Method handlers

    async def _handle_resource_get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        if not uri:
            raise MissingParameterError("uri")
        uri = str(uri)

        resolved = self.registry.resolve_resource(uri)
        if resolved is None:
            raise ResourceNotFoundError(uri)

        logger.debug("Reading resource", resource_name=resolved.entry.name, uri=uri)
        return await resolved.handler(urlparse(uri), resolved.params)

    async def _handle_resource_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "resources": [
                entry.template.template
                for entry in self.registry.list_resource_templates()
                if entry.template.listable
            ]
        }

    async def _handle_resource_templates(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "templates": [entry.to_dict() for entry in self.registry.list_resource_templates()]
        }

    async def _handle_tool_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": self.registry.list_tools()}

    async def _handle_tool_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not name:
            raise MissingParameterError("name")

        tool = self.registry.find_tool(str(name))
        if tool is None:
            raise ToolNotFoundError(str(name))

        arguments = params.get("params")
        if not isinstance(arguments, dict):
            arguments = {}

        logger.info("Calling tool", tool_name=tool.name)
        return await tool.handler(arguments)

    async def _handle_prompt_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"prompts": self.registry.list_prompts()}

    async def _handle_prompt_get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not name:
            raise MissingParameterError("name")

        prompt = self.registry.find_prompt(str(name))
        if prompt is None:
            raise PromptNotFoundError(str(name))
        return {"prompt": prompt}

    # Outbound frames

    def _send_notification(self, method: str, params: Dict[str, Any]) -> None:
        self._send(MCPNotification(method=method, params=params).to_json())

    def _send_error(self, request_id: RequestId, error: MCPError) -> None:
        self._send(MCPResponse.from_error(request_id, error).to_json())

    def _send(self, frame: str) -> None:
        # Handlers may finish after disconnect; their replies are discarded.
        if self._state is not ConnectionState.CONNECTED or self._transport is None:
            logger.debug("Discarding frame for closed connection", state=self._state.value)
            return
        try:
            self._transport.send(frame)
        except Exception as e:
            logger.error("Transport send failed", error=str(e))


def _is_request_id(value: Any) -> bool:
    # bool is an int subclass but not a JSON-RPC id
    return value is None or (isinstance(value, (str, int, float)) and not isinstance(value, bool))
