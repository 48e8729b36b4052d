"""
Figma variable tools.

All of these read the file's local variables endpoint once and filter
the result in memory; Figma has no per-variable endpoint.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from ..client.figma_client import FigmaAPIError, split_variables, unwrap_list
from ..protocol.schemas import Tool
from .base import FigmaTool, ToolResult

VARIABLE_TYPES = ["BOOLEAN", "FLOAT", "STRING", "COLOR"]

Variables = Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]


class _LocalVariablesTool(FigmaTool):
    """Base for tools answering from ``/files/{key}/variables/local``."""

    def _extra_parameters(self) -> Dict[str, Any]:
        return {}

    def get_schema(self) -> Tool:
        extra = self._extra_parameters()
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter(), **extra},
            required=["file_key", *extra],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            response = await self.figma_client.get_local_variables(file_key)
        except FigmaAPIError as e:
            return self._api_error("get variables", e)

        return self._answer(file_key, split_variables(response), arguments)

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        raise NotImplementedError


class GetVariablesTool(_LocalVariablesTool):
    """List every local variable and collection of a file."""

    name = "figma_getVariables"
    description = "Get the local variables and variable collections of a Figma file"

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        collections, items = variables
        return ToolResult.json(
            {"collections": collections, "variables": items},
            metadata={"file_key": file_key, "count": len(items), "collections": len(collections)},
        )


class GetFileVariablesTool(GetVariablesTool):
    name = "figma_getFileVariables"
    description = "Get file variables from a Figma file"


class GetVariableCollectionsTool(_LocalVariablesTool):
    """List the variable collections of a file."""

    name = "figma_getVariableCollections"
    description = "Get the variable collections of a Figma file"

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        collections, _ = variables
        return ToolResult.json(
            {"collections": collections},
            metadata={"file_key": file_key, "count": len(collections)},
        )


class GetFileVariableCollectionsTool(GetVariableCollectionsTool):
    name = "figma_getFileVariableCollections"
    description = "Get variable collections from a Figma file"


class GetVariableTool(_LocalVariablesTool):
    """Look up one variable by id."""

    name = "figma_getVariable"
    description = "Get a specific variable from a Figma file"

    def _extra_parameters(self) -> Dict[str, Any]:
        return {"variable_id": self._create_parameter("string", "Variable id, e.g. 'VariableID:1:2'")}

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        variable = _find(variables[1], arguments["variable_id"])
        if variable is None:
            return _variable_not_found(file_key, arguments["variable_id"])
        return ToolResult.json(variable, metadata={"file_key": file_key})


class GetVariableCollectionTool(_LocalVariablesTool):
    """Look up one variable collection by id."""

    name = "figma_getVariableCollection"
    description = "Get a specific variable collection from a Figma file"

    def _extra_parameters(self) -> Dict[str, Any]:
        return {"collection_id": self._create_parameter("string", "Variable collection id")}

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        collection_id = arguments["collection_id"]
        collection = _find(variables[0], collection_id)
        if collection is None:
            return ToolResult.error(
                f"Variable collection {collection_id} not found in file {file_key}",
                error_code="collection_not_found",
                details={"file_key": file_key, "collection_id": collection_id},
            )
        return ToolResult.json(collection, metadata={"file_key": file_key})


class GetVariablesByCollectionTool(_LocalVariablesTool):
    """List the variables belonging to one collection."""

    name = "figma_getVariablesByCollection"
    description = "Get the variables of one variable collection in a Figma file"

    def _extra_parameters(self) -> Dict[str, Any]:
        return {"collection_id": self._create_parameter("string", "Variable collection id")}

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        collection_id = arguments["collection_id"]
        matches = [v for v in variables[1] if v.get("variableCollectionId") == collection_id]
        return ToolResult.json(
            {"variables": matches},
            metadata={"file_key": file_key, "collection_id": collection_id, "count": len(matches)},
        )


class GetVariablesByTypeTool(_LocalVariablesTool):
    """List the variables of one resolved type."""

    name = "figma_getVariablesByType"
    description = "Get the variables of one type (BOOLEAN, FLOAT, STRING, COLOR) in a Figma file"

    def _extra_parameters(self) -> Dict[str, Any]:
        return {"type": self._create_parameter("string", "Resolved variable type", enum=VARIABLE_TYPES)}

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        variable_type = arguments["type"]
        matches = [v for v in variables[1] if v.get("resolvedType") == variable_type]
        return ToolResult.json(
            {"variables": matches},
            metadata={"file_key": file_key, "type": variable_type, "count": len(matches)},
        )


class GetVariableValueForModeTool(_LocalVariablesTool):
    """Resolve the value a variable takes in one mode."""

    name = "figma_getVariableValueForMode"
    description = "Get the value of a variable for a specific mode"

    def _extra_parameters(self) -> Dict[str, Any]:
        return {
            "variable_id": self._create_parameter("string", "Variable id"),
            "mode_id": self._create_parameter("string", "Mode id of the variable's collection"),
        }

    def _answer(self, file_key: str, variables: Variables, arguments: Dict[str, Any]) -> ToolResult:
        variable_id = arguments["variable_id"]
        mode_id = arguments["mode_id"]
        variable = _find(variables[1], variable_id)
        if variable is None:
            return _variable_not_found(file_key, variable_id)

        values = variable.get("valuesByMode") or {}
        if not isinstance(values, dict) or mode_id not in values:
            return ToolResult.error(
                f"Variable {variable_id} has no value for mode {mode_id}",
                error_code="mode_not_found",
                details={"file_key": file_key, "variable_id": variable_id, "mode_id": mode_id},
            )
        return ToolResult.json(
            {"type": variable.get("resolvedType"), "value": values[mode_id]},
            metadata={"file_key": file_key, "variable_id": variable_id, "mode_id": mode_id},
        )


class GetFileAssetsAndVariablesTool(FigmaTool):
    """Fetch variables, components and styles of a file concurrently."""

    name = "figma_getFileAssetsAndVariables"
    description = "Get the variables, components and styles of a Figma file"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter()},
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            variables, components, styles = await asyncio.gather(
                self.figma_client.get_local_variables(file_key),
                self.figma_client.get_file_components(file_key),
                self.figma_client.get_file_styles(file_key),
            )
        except FigmaAPIError as e:
            return self._api_error("get file assets and variables", e)

        collections, items = split_variables(variables)
        components = unwrap_list(components, "components")
        styles = unwrap_list(styles, "styles")
        return ToolResult.json(
            {
                "variables": {"collections": collections, "variables": items},
                "components": components,
                "styles": styles,
            },
            metadata={
                "file_key": file_key,
                "variables": len(items),
                "components": len(components),
                "styles": len(styles),
            },
        )


def _find(items: List[Dict[str, Any]], item_id: str) -> Optional[Dict[str, Any]]:
    return next((item for item in items if item.get("id") == item_id), None)


def _variable_not_found(file_key: str, variable_id: str) -> ToolResult:
    return ToolResult.error(
        f"Variable {variable_id} not found in file {file_key}",
        error_code="variable_not_found",
        details={"file_key": file_key, "variable_id": variable_id},
    )
