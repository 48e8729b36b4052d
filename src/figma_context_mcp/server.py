"""
Main Figma Model Context MCP Server implementation.

Wires the Figma client, the resource/tool/prompt registry and the
protocol dispatcher together and runs them over a transport.
"""

import asyncio
import signal
import sys
from typing import Dict, Optional

import structlog

from . import __version__
from .client.figma_client import FigmaClient
from .config.settings import Config
from .converter.figma_adapter import ConversionOptions
from .prompts import register_prompts
from .protocol.dispatcher import MCPDispatcher
from .protocol.registry import Registry
from .protocol.schemas import ServerInfo
from .protocol.transport import StdioTransport, Transport
from .resources import FigmaResources
from .tools import (
    BaseTool,
    GetCommentsTool,
    GetComponentSetsTool,
    GetComponentsTool,
    GetCurrentUserTool,
    GetFileAssetsAndVariablesTool,
    GetFileNodesTool,
    GetFileTool,
    GetFileVariableCollectionsTool,
    GetFileVariablesTool,
    GetFileWithCommentsTool,
    GetImagesTool,
    GetModelContextTool,
    GetNodeTool,
    GetResolvedCommentsTool,
    GetStylesTool,
    GetTeamComponentsTool,
    GetTeamStylesTool,
    GetUnresolvedCommentsTool,
    GetVariableCollectionTool,
    GetVariableCollectionsTool,
    GetVariablesByCollectionTool,
    GetVariablesByTypeTool,
    GetVariablesTool,
    GetVariableTool,
    GetVariableValueForModeTool,
    ValidateModelContextTool,
)

logger = structlog.get_logger(__name__)


class FigmaContextMCPServer:
    """
    MCP server exposing Figma files and their Model Context.

    Registration happens once in ``start()``; afterwards the registry is
    only read by the dispatcher.
    """

    def __init__(self, config: Config, figma_client: Optional[FigmaClient] = None):
        """
        Initialize the MCP server.

        Args:
            config: Server configuration
            figma_client: Client to use instead of one built from ``config.figma``
        """
        self.config = config
        self._running = False
        self._shutdown_event = asyncio.Event()

        self.figma_client = figma_client or FigmaClient(config.figma)
        self.registry = Registry()
        self.dispatcher = MCPDispatcher(
            self.registry,
            server_info=ServerInfo(
                name=config.server.name,
                version=__version__,
                protocol_version=config.server.protocol_version,
                supported_protocol_versions=config.server.supported_protocol_versions,
            ),
        )
        self._tools: Dict[str, BaseTool] = {}

    async def start(self) -> None:
        """Open the Figma client and register tools, resources and prompts."""
        if self._running:
            return

        logger.info("Starting Figma Context MCP Server", version=__version__)
        try:
            await self.figma_client.connect()
            self._register_tools()
            self._register_resources()
            register_prompts(self.registry)
            self._running = True
            self._shutdown_event.clear()

            logger.info(
                "Server started successfully",
                tools_registered=self.registry.tool_count,
                resources_registered=self.registry.resource_count,
            )
        except Exception as e:
            logger.error("Failed to start server", error=str(e), exc_info=True)
            await self.figma_client.disconnect()
            raise

    async def serve(self, transport: Transport) -> None:
        """Start if needed and attach the dispatcher to ``transport``."""
        await self.start()
        await self.dispatcher.connect(transport)

    async def stop(self) -> None:
        """Finish in-flight requests, detach the transport and close the client."""
        if not self._running:
            return

        logger.info("Stopping Figma Context MCP Server")
        self._running = False
        self._shutdown_event.set()

        await self.dispatcher.drain()
        await self.dispatcher.disconnect()
        await self.figma_client.disconnect()
        logger.info("Server stopped")

    async def run_stdio(self) -> None:
        """
        Run the server over stdin/stdout until EOF or a shutdown signal.

        This is the entry point used by MCP hosts.
        """
        transport = StdioTransport()
        self._setup_signal_handlers()

        try:
            await self.serve(transport)

            closed = asyncio.create_task(transport.wait_closed())
            shutdown = asyncio.create_task(self._shutdown_event.wait())
            try:
                await asyncio.wait({closed, shutdown}, return_when=asyncio.FIRST_COMPLETED)
            except asyncio.CancelledError:
                logger.info("Server operation cancelled")
            finally:
                for task in (closed, shutdown):
                    task.cancel()

        except Exception as e:
            logger.error("Server error", error=str(e), exc_info=True)
            raise
        finally:
            await self.stop()

    def _register_tools(self) -> None:
        logger.info("Registering tools")
        client = self.figma_client
        tools = [
            GetFileTool(client),
            GetFileNodesTool(client),
            GetNodeTool(client),
            GetImagesTool(client),
            GetCommentsTool(client),
            GetResolvedCommentsTool(client),
            GetUnresolvedCommentsTool(client),
            GetFileWithCommentsTool(client),
            GetComponentsTool(client),
            GetComponentSetsTool(client),
            GetStylesTool(client),
            GetTeamComponentsTool(client),
            GetTeamStylesTool(client),
            GetVariablesTool(client),
            GetFileVariablesTool(client),
            GetVariableCollectionsTool(client),
            GetFileVariableCollectionsTool(client),
            GetVariableTool(client),
            GetVariableCollectionTool(client),
            GetVariablesByCollectionTool(client),
            GetVariablesByTypeTool(client),
            GetVariableValueForModeTool(client),
            GetFileAssetsAndVariablesTool(client),
            GetCurrentUserTool(client),
            GetModelContextTool(client, self.config.converter),
            ValidateModelContextTool(),
        ]
        for tool in tools:
            self._tools[tool.name] = tool
            self.registry.register_tool(
                tool.name, tool.parameters(), tool, description=tool.description
            )

    def _register_resources(self) -> None:
        logger.info("Registering resources")
        resources = FigmaResources(
            self.figma_client, ConversionOptions.from_config(self.config.converter)
        )
        resources.register(self.registry)

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        if sys.platform == "win32":
            return
        loop = asyncio.get_running_loop()

        def signal_handler(signum: int) -> None:
            logger.info("Received signal, initiating shutdown", signal=signum)
            self._shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, signal_handler, signum)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def tools(self) -> Dict[str, BaseTool]:
        """Get registered tools."""
        return self._tools.copy()
