"""JSON-RPC protocol core: URI templates, registry, dispatcher and transports."""

from .dispatcher import ConnectionState, MCPDispatcher
from .registry import Registry, ResolvedResource, ResourceEntry, ToolEntry
from .schemas import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    MCPError,
    MCPNotification,
    MCPRequest,
    MCPResponse,
    ServerInfo,
    Tool,
)
from .templates import ResourceTemplate
from .transport import StdioTransport, Transport, TransportError

__all__ = [
    "ConnectionState",
    "MCPDispatcher",
    "Registry",
    "ResolvedResource",
    "ResourceEntry",
    "ToolEntry",
    "ResourceTemplate",
    "StdioTransport",
    "Transport",
    "TransportError",
    "MCPError",
    "MCPNotification",
    "MCPRequest",
    "MCPResponse",
    "ServerInfo",
    "Tool",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INTERNAL_ERROR",
]
