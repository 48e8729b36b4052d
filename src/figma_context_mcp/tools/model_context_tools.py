"""
Model Context tools.

``figma_getModelContext`` converts a Figma file into a Model Context
document; ``figma_validateModelContext`` checks a document supplied by
the caller.
"""

from typing import Any, Dict, Optional

from ..client.figma_client import FigmaAPIError, FigmaClient
from ..config.settings import ConverterConfig
from ..converter.figma_adapter import (
    ConversionError,
    ConversionOptions,
    FigmaToModelContextAdapter,
)
from ..model.validator import validate_context
from ..protocol.schemas import Tool
from .base import BaseTool, FigmaTool, ToolExecutionError, ToolResult


class GetModelContextTool(FigmaTool):
    """
    Convert a Figma file into a Model Context document.

    Unset flags fall back to the converter defaults from the server
    configuration. The converted document is validated unless the caller
    opts out, and the validation report travels in the result metadata.
    """

    name = "figma_getModelContext"
    description = "Convert a Figma file into a normalized Model Context document"

    def __init__(
        self,
        figma_client: FigmaClient,
        converter_config: Optional[ConverterConfig] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(figma_client, config)
        self.converter_config = converter_config or ConverterConfig()
        self.adapter = FigmaToModelContextAdapter(figma_client)

    def get_schema(self) -> Tool:
        defaults = self.converter_config
        return self._create_schema(
            parameters={
                "file_key": self._file_key_parameter(),
                "include_styles": self._create_parameter(
                    "boolean", "Copy style definitions", default=defaults.include_styles
                ),
                "include_variables": self._create_parameter(
                    "boolean", "Attach local variables", default=defaults.include_variables
                ),
                "include_images": self._create_parameter(
                    "boolean", "Resolve image fills to URLs", default=defaults.include_images
                ),
                "team_id": self._create_parameter(
                    "string", "Team whose component library is attached"
                ),
                "validate": self._create_parameter(
                    "boolean", "Validate the converted document", default=defaults.validate_output
                ),
            },
            required=["file_key"],
        )

    def _options(self, arguments: Dict[str, Any]) -> ConversionOptions:
        options = ConversionOptions.from_config(self.converter_config)
        overrides = {
            key: arguments[key]
            for key in ("include_styles", "include_variables", "include_images", "team_id")
            if arguments.get(key) is not None
        }
        return options.model_copy(update=overrides)

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        options = self._options(arguments)

        try:
            context = await self.adapter.convert_file(file_key, options)
        except FigmaAPIError as e:
            return self._api_error("get file", e)
        except ConversionError as e:
            raise ToolExecutionError(
                f"Failed to convert file: {e}", details={"file_key": file_key}
            )

        metadata: Dict[str, Any] = {
            "file_key": file_key,
            "elements": len(context.design.elements),
        }

        should_validate = arguments.get("validate")
        if should_validate is None:
            should_validate = self.converter_config.validate_output
        if should_validate:
            report = validate_context(context)
            metadata["validation"] = report.to_dict()
            if not report.valid:
                self.logger.warning(
                    "Converted context failed validation",
                    file_key=file_key,
                    errors=report.errors,
                )

        return ToolResult.json(context.to_dict(), metadata=metadata)


class ValidateModelContextTool(BaseTool):
    """Validate a caller-supplied Model Context document."""

    name = "figma_validateModelContext"
    description = "Validate the structure of a Model Context document"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={
                "context": self._create_parameter("object", "Model Context document to validate"),
            },
            required=["context"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        report = validate_context(arguments["context"])
        return ToolResult.json(
            report.to_dict(),
            metadata={"valid": report.valid, "error_count": len(report.errors)},
        )
