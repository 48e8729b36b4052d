"""
MCP Protocol message schemas and data structures.

Defines the JSON-RPC 2.0 frame formats exchanged by the dispatcher,
the protocol error hierarchy, and the tool schema models.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Id used for error responses to frames that carry no usable id
UNKNOWN_ID = "unknown"


class MCPError(Exception):
    """Base exception for MCP protocol errors."""

    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to JSON-RPC error format."""
        error_dict: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            error_dict["data"] = self.data
        return error_dict


class MCPParseError(MCPError):
    """Error for frames that are not valid JSON."""

    def __init__(self, details: str):
        super().__init__("Parse error", code=PARSE_ERROR, data=details)


class MCPInvalidRequestError(MCPError):
    """Error for frames that are JSON but not a JSON-RPC object."""

    def __init__(self, details: str):
        super().__init__("Invalid Request", code=INVALID_REQUEST, data=details)


class MCPMethodNotFoundError(MCPError):
    """Error for unknown method calls."""

    def __init__(self, method: str):
        super().__init__(
            "Method not found", code=METHOD_NOT_FOUND, data=f"Method '{method}' not found"
        )
        self.method = method


class MCPInternalError(MCPError):
    """Error for failures inside a request handler."""

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message, code=INTERNAL_ERROR, data=data)


class MissingParameterError(MCPInternalError):
    """A required request parameter was not supplied."""

    def __init__(self, parameter: str):
        super().__init__(f"Missing required parameter: {parameter}")
        self.parameter = parameter


class ResourceNotFoundError(MCPInternalError):
    """No registered template matches the requested URI."""

    def __init__(self, uri: str):
        super().__init__(f"Resource not found: {uri}")
        self.uri = uri


class ToolNotFoundError(MCPInternalError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name


class PromptNotFoundError(MCPInternalError):
    """No prompt is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Prompt not found: {name}")
        self.name = name


# Frame types
class MCPMessage(BaseModel):
    """Base class for all JSON-RPC frames."""

    model_config = ConfigDict(extra="forbid")

    jsonrpc: str = Field(default=JSONRPC_VERSION, description="JSON-RPC version")

    def to_json(self) -> str:
        """Serialize the frame to a single-line JSON string."""
        return json.dumps(self.model_dump(), separators=(",", ":"))


class MCPRequest(MCPMessage):
    """A frame carrying both ``method`` and ``id``."""

    id: Union[str, int, float] = Field(description="Request ID")
    method: str = Field(description="Method name")
    params: Dict[str, Any] = Field(default_factory=dict, description="Method parameters")


class MCPNotification(MCPMessage):
    """A frame carrying ``method`` without ``id``; no response expected."""

    method: str = Field(description="Method name")
    params: Dict[str, Any] = Field(default_factory=dict, description="Method parameters")


class MCPResponse(MCPMessage):
    """A frame carrying ``id`` with either ``result`` or ``error``."""

    id: Union[str, int, float, None] = Field(default=None, description="Request ID")
    result: Optional[Any] = Field(default=None, description="Response result")
    error: Optional[Dict[str, Any]] = Field(default=None, description="Error information")

    def model_dump(self, **kwargs: Any) -> Dict[str, Any]:
        """Dump with exactly one of ``result`` or ``error``, as JSON-RPC 2.0 requires."""
        data = super().model_dump(**kwargs)
        if self.error is not None:
            data.pop("result", None)
        else:
            data.pop("error", None)
        return data

    @classmethod
    def from_error(cls, request_id: Union[str, int, float, None], error: MCPError) -> "MCPResponse":
        """Build an error response from a protocol error."""
        return cls(id=request_id, error=error.to_dict())


class ServerInfo(BaseModel):
    """Information announced in the ``server.info`` notification."""

    name: str = Field(default="figma-context-mcp-server", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    protocol_version: str = Field(default="2024-11-05", description="Current protocol version")
    supported_protocol_versions: List[str] = Field(
        default_factory=lambda: ["2024-11-05", "2024-10-07"],
        description="Supported protocol versions",
    )

    def to_params(self) -> Dict[str, Any]:
        """Build the ``server.info`` notification params."""
        return {
            "name": self.name,
            "version": self.version,
            "protocol": {
                "jsonrpc": JSONRPC_VERSION,
                "version": self.protocol_version,
                "supported": list(self.supported_protocol_versions),
            },
        }


# Tool structures
class ToolParameter(BaseModel):
    """Tool parameter definition."""

    type: str = Field(description="Parameter type")
    description: Optional[str] = Field(default=None, description="Parameter description")
    enum: Optional[List[Any]] = Field(default=None, description="Allowed values")
    default: Optional[Any] = Field(default=None, description="Default value")
    items: Optional[Dict[str, Any]] = Field(default=None, description="Array item schema")
    minimum: Optional[float] = Field(default=None, description="Minimum value")
    maximum: Optional[float] = Field(default=None, description="Maximum value")


class ToolSchema(BaseModel):
    """Tool input schema definition."""

    type: str = Field(default="object", description="Schema type")
    properties: Dict[str, ToolParameter] = Field(description="Tool parameters")
    required: List[str] = Field(default_factory=list, description="Required parameters")
    additionalProperties: bool = Field(default=False, description="Allow unknown parameters")


class Tool(BaseModel):
    """Tool definition."""

    name: str = Field(description="Tool name")
    description: str = Field(description="Tool description")
    inputSchema: ToolSchema = Field(description="Tool input schema")
