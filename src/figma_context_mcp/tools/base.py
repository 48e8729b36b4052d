"""
Base classes for MCP tools.

Tools validate their arguments against their own input schema, run, and
always hand back a tool result: failures become an ``isError`` result
instead of an exception, so a failing Figma call never turns into a
JSON-RPC error.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import structlog

from ..client.figma_client import FigmaAPIError, FigmaClient
from ..protocol.schemas import Tool, ToolParameter, ToolSchema

logger = structlog.get_logger(__name__)

_JSON_TYPES = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


class ToolError(Exception):
    """Base exception for tool execution errors."""

    def __init__(
        self, message: str, code: str = "tool_error", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ToolValidationError(ToolError):
    """Error for invalid tool arguments."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="validation_error", details=details)


class ToolExecutionError(ToolError):
    """Error during tool execution."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="execution_error", details=details)


class ToolResult:
    """Tool result in MCP content form."""

    def __init__(
        self,
        content: List[Dict[str, Any]],
        is_error: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.content = content
        self.is_error = is_error
        self.metadata = metadata or {}

    @classmethod
    def success(cls, text: str, metadata: Optional[Dict[str, Any]] = None) -> "ToolResult":
        """Create a successful result with text content."""
        return cls(content=[{"type": "text", "text": text}], metadata=metadata)

    @classmethod
    def json(
        cls,
        data: Any,
        metadata: Optional[Dict[str, Any]] = None,
        indent: Optional[int] = 2,
    ) -> "ToolResult":
        """Create a successful result whose text is ``data`` as JSON."""
        return cls.success(json.dumps(data, indent=indent, ensure_ascii=False), metadata=metadata)

    @classmethod
    def error(
        cls,
        message: str,
        error_code: str = "tool_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> "ToolResult":
        """Create an error result."""
        error_text = f"Error: {message}"
        if details:
            error_text += "\n\n" + json.dumps({"error_code": error_code, "details": details}, indent=2)
        return cls(
            content=[{"type": "text", "text": error_text}],
            is_error=True,
            metadata={"error_code": error_code},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for MCP response."""
        result: Dict[str, Any] = {
            "content": self.content,
            "isError": self.is_error,
        }
        if self.metadata:
            result["metadata"] = self.metadata
        return result


class BaseTool(ABC):
    """
    Base class for all MCP tools.

    Subclasses set ``name`` and ``description`` and implement
    ``get_schema`` and ``execute``. Instances are registered directly as
    registry tool handlers.
    """

    name: str = ""
    description: str = ""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logger.bind(tool=self.name)

    @abstractmethod
    def get_schema(self) -> Tool:
        """Return the tool definition including its input schema."""

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        """
        Execute the tool with validated arguments.

        Raises:
            ToolError: If execution fails
        """

    def parameters(self) -> Dict[str, Any]:
        """Input schema as a JSON Schema mapping, as stored in the registry."""
        return self.get_schema().inputSchema.model_dump(exclude_none=True)

    async def __call__(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate, execute and format a tool call.

        Args:
            arguments: Tool arguments from the ``tool.call`` request

        Returns:
            Result dictionary with ``content`` and ``isError``
        """
        try:
            self.logger.info("Executing tool", arguments=sorted(arguments))
            self._validate_arguments(arguments)
            result = await self.execute(arguments)
            self.logger.info("Tool execution completed", success=not result.is_error)
            return result.to_dict()

        except ToolError as e:
            self.logger.warning(
                "Tool execution failed",
                error_code=e.code,
                error_message=e.message,
                details=e.details,
            )
            return ToolResult.error(e.message, e.code, e.details).to_dict()

        except Exception as e:
            self.logger.error("Unexpected tool error", error=str(e), exc_info=True)
            return ToolResult.error(
                "Internal tool error", "internal_error", {"exception": str(e)}
            ).to_dict()

    def _validate_arguments(self, arguments: Dict[str, Any]) -> None:
        """
        Validate tool arguments against the input schema.

        Raises:
            ToolValidationError: If validation fails
        """
        schema = self.get_schema().inputSchema

        for required_param in schema.required:
            if arguments.get(required_param) in (None, ""):
                raise ToolValidationError(
                    f"Missing required parameter: {required_param}",
                    details={"missing_parameter": required_param},
                )

        if not schema.additionalProperties:
            unknown = sorted(set(arguments) - set(schema.properties))
            if unknown:
                raise ToolValidationError(
                    f"Unknown parameters: {', '.join(unknown)}",
                    details={"unknown_parameters": unknown},
                )

        for param_name, param_value in arguments.items():
            definition = schema.properties.get(param_name)
            if definition is not None and param_value is not None:
                self._validate_parameter(param_name, param_value, definition)

    def _validate_parameter(self, name: str, value: Any, definition: ToolParameter) -> None:
        expected = _JSON_TYPES.get(definition.type)
        # bool is an int subclass; only "boolean" accepts it
        is_bool = isinstance(value, bool)
        if expected is not None and (
            not isinstance(value, expected) or (is_bool and definition.type != "boolean")
        ):
            raise ToolValidationError(
                f"Parameter '{name}' must be of type {definition.type}",
                details={
                    "parameter": name,
                    "expected_type": definition.type,
                    "actual_type": type(value).__name__,
                },
            )

        if definition.enum and value not in definition.enum:
            raise ToolValidationError(
                f"Parameter '{name}' must be one of: {definition.enum}",
                details={"parameter": name, "allowed_values": definition.enum, "actual_value": value},
            )

        if definition.type in ("number", "integer"):
            if definition.minimum is not None and value < definition.minimum:
                raise ToolValidationError(
                    f"Parameter '{name}' must be >= {definition.minimum}",
                    details={"parameter": name, "minimum": definition.minimum},
                )
            if definition.maximum is not None and value > definition.maximum:
                raise ToolValidationError(
                    f"Parameter '{name}' must be <= {definition.maximum}",
                    details={"parameter": name, "maximum": definition.maximum},
                )

    def _create_parameter(
        self,
        param_type: str,
        description: str,
        enum: Optional[List[Any]] = None,
        default: Optional[Any] = None,
        items: Optional[Dict[str, Any]] = None,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Helper to create JSON Schema parameter definitions."""
        param: Dict[str, Any] = {"type": param_type, "description": description}
        if enum is not None:
            param["enum"] = enum
        if default is not None:
            param["default"] = default
        if items is not None:
            param["items"] = items
        if minimum is not None:
            param["minimum"] = minimum
        if maximum is not None:
            param["maximum"] = maximum
        return param

    def _create_schema(self, parameters: Dict[str, Any], required: List[str]) -> Tool:
        """Helper to create the tool definition."""
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=ToolSchema(
                type="object",
                properties=parameters,
                required=required,
                additionalProperties=False,
            ),
        )


class FigmaTool(BaseTool):
    """Base for tools backed by the Figma REST client."""

    def __init__(self, figma_client: FigmaClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.figma_client = figma_client

    def _file_key_parameter(self) -> Dict[str, Any]:
        return self._create_parameter("string", "Figma file key (from the file URL)")

    def _api_error(self, action: str, error: FigmaAPIError) -> ToolResult:
        self.logger.error("Figma API error", action=action, status=error.status, error=error.message)
        return ToolResult.error(
            f"Failed to {action}: {error.message}",
            error_code="figma_api_error",
            details={"status": error.status},
        )
