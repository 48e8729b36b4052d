"""Figma account tools."""

from typing import Any, Dict

from ..client.figma_client import FigmaAPIError
from ..protocol.schemas import Tool
from .base import FigmaTool, ToolResult


class GetCurrentUserTool(FigmaTool):
    """Return the user that owns the configured access token."""

    name = "figma_getCurrentUser"
    description = "Get the Figma user the access token belongs to"

    def get_schema(self) -> Tool:
        return self._create_schema(parameters={}, required=[])

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        try:
            user = await self.figma_client.get_current_user()
        except FigmaAPIError as e:
            return self._api_error("get current user", e)

        return ToolResult.json(user, metadata={"user_id": user.get("id")})
