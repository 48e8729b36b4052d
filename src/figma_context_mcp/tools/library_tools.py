"""Figma library tools: published components, component sets and styles."""

from typing import Any, Dict, Optional

from ..client.figma_client import FigmaAPIError, unwrap_list
from ..protocol.schemas import Tool
from .base import FigmaTool, ToolResult


class GetComponentsTool(FigmaTool):
    """List the published components of a Figma file."""

    name = "figma_getComponents"
    description = "Get the published components of a Figma file"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter()},
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            response = await self.figma_client.get_file_components(file_key)
        except FigmaAPIError as e:
            return self._api_error("get components", e)

        components = unwrap_list(response, "components")
        return ToolResult.json(
            {"components": components},
            metadata={"file_key": file_key, "count": len(components)},
        )


class GetStylesTool(FigmaTool):
    """List the published styles of a Figma file."""

    name = "figma_getStyles"
    description = "Get the published styles of a Figma file"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter()},
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            response = await self.figma_client.get_file_styles(file_key)
        except FigmaAPIError as e:
            return self._api_error("get styles", e)

        styles = unwrap_list(response, "styles")
        return ToolResult.json(
            {"styles": styles},
            metadata={"file_key": file_key, "count": len(styles)},
        )


class GetComponentSetsTool(FigmaTool):
    """List the published component sets of a Figma file."""

    name = "figma_getAllFileComponentSets"
    description = "Get the published component sets of a Figma file"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter()},
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            response = await self.figma_client.get_file_component_sets(file_key)
        except FigmaAPIError as e:
            return self._api_error("get component sets", e)

        component_sets = unwrap_list(response, "component_sets")
        return ToolResult.json(
            {"component_sets": component_sets},
            metadata={"file_key": file_key, "count": len(component_sets)},
        )


class _TeamLibraryTool(FigmaTool):
    """Shared schema and paging for team library listings."""

    # key under ``meta`` holding the listed items
    item_key = ""

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={
                "team_id": self._create_parameter("string", "Figma team id (from the team URL)"),
                "page_size": self._create_parameter(
                    "integer", "Number of items per page", minimum=1, maximum=1000
                ),
                "after": self._create_parameter(
                    "integer", "Cursor from a previous page to continue after", minimum=0
                ),
            },
            required=["team_id"],
        )

    async def _fetch(self, team_id: str, page_size: Optional[int], after: Optional[int]) -> Dict[str, Any]:
        raise NotImplementedError

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        team_id = arguments["team_id"]
        try:
            response = await self._fetch(team_id, arguments.get("page_size"), arguments.get("after"))
        except FigmaAPIError as e:
            return self._api_error(f"get team {self.item_key}", e)

        items = unwrap_list(response, self.item_key)
        meta = response.get("meta") or {}
        cursor = meta.get("cursor") if isinstance(meta, dict) else None
        return ToolResult.json(
            {self.item_key: items, "cursor": cursor},
            metadata={"team_id": team_id, "count": len(items)},
        )


class GetTeamComponentsTool(_TeamLibraryTool):
    """List the published components of a Figma team."""

    name = "figma_getTeamComponents"
    description = "Get the published components of a Figma team library"
    item_key = "components"

    async def _fetch(self, team_id: str, page_size: Optional[int], after: Optional[int]) -> Dict[str, Any]:
        return await self.figma_client.get_team_components(team_id, page_size=page_size, after=after)


class GetTeamStylesTool(_TeamLibraryTool):
    """List the published styles of a Figma team."""

    name = "figma_getTeamStyles"
    description = "Get the published styles of a Figma team library"
    item_key = "styles"

    async def _fetch(self, team_id: str, page_size: Optional[int], after: Optional[int]) -> Dict[str, Any]:
        return await self.figma_client.get_team_styles(team_id, page_size=page_size, after=after)
