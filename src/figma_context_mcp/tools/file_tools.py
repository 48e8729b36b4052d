"""
Figma file tools.

Read-only tools that return raw Figma API data for a file: the document,
selected nodes, comments and rendered images.
"""

import asyncio
from typing import Any, Dict, List, Optional

from ..client.figma_client import FigmaAPIError
from ..protocol.schemas import Tool
from .base import FigmaTool, ToolResult, ToolValidationError

IMAGE_FORMATS = ["png", "jpg", "svg", "pdf"]


class GetFileTool(FigmaTool):
    """Fetch a Figma file document."""

    name = "figma_getFile"
    description = "Get a Figma file document by file key"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={
                "file_key": self._file_key_parameter(),
                "depth": self._create_parameter(
                    "integer", "How deep into the document tree to traverse", minimum=1
                ),
                "version": self._create_parameter("string", "Specific version id to fetch"),
            },
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            figma_file = await self.figma_client.get_file(
                file_key,
                depth=arguments.get("depth"),
                version=arguments.get("version"),
            )
        except FigmaAPIError as e:
            return self._api_error("get file", e)

        return ToolResult.json(
            figma_file,
            metadata={"file_key": file_key, "name": figma_file.get("name")},
        )


class GetFileNodesTool(FigmaTool):
    """Fetch several nodes of a Figma file in one request."""

    name = "figma_getFileNodes"
    description = "Get specific nodes from a Figma file"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={
                "file_key": self._file_key_parameter(),
                "ids": self._create_parameter("array", "Node ids to fetch", items={"type": "string"}),
                "version": self._create_parameter("string", "Specific version id to fetch"),
                "depth": self._create_parameter(
                    "integer", "How deep below each node to traverse", minimum=1
                ),
                "geometry": self._create_parameter(
                    "string", "Set to 'paths' to export vector data", enum=["paths"]
                ),
                "plugin_data": self._create_parameter(
                    "string", "Comma separated plugin ids whose data to include"
                ),
                "branch_data": self._create_parameter("boolean", "Include branch metadata"),
            },
            required=["file_key", "ids"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        ids = _node_ids(arguments["ids"])
        try:
            response = await self.figma_client.get_file_nodes(
                file_key,
                ids,
                version=arguments.get("version"),
                depth=arguments.get("depth"),
                geometry=arguments.get("geometry"),
                plugin_data=arguments.get("plugin_data"),
                branch_data=arguments.get("branch_data"),
            )
        except FigmaAPIError as e:
            return self._api_error("get file nodes", e)

        nodes = response.get("nodes") or {}
        missing = [node_id for node_id in ids if not nodes.get(node_id)]
        return ToolResult.json(
            response,
            metadata={"file_key": file_key, "count": len(ids) - len(missing), "missing": missing},
        )


class GetNodeTool(FigmaTool):
    """Fetch one node of a Figma file."""

    name = "figma_getNode"
    description = "Get a single node from a Figma file"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={
                "file_key": self._file_key_parameter(),
                "node_id": self._create_parameter("string", "Node id, e.g. '1:2'"),
            },
            required=["file_key", "node_id"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        node_id = arguments["node_id"]
        try:
            node = await self.figma_client.get_node(file_key, node_id)
        except FigmaAPIError as e:
            return self._api_error("get node", e)

        if node is None:
            return ToolResult.error(
                f"Node {node_id} not found in file {file_key}",
                error_code="node_not_found",
                details={"file_key": file_key, "node_id": node_id},
            )
        return ToolResult.json(node, metadata={"file_key": file_key, "node_id": node_id})


class GetCommentsTool(FigmaTool):
    """List the comments on a Figma file."""

    name = "figma_getComments"
    description = "Get the comments on a Figma file"

    # None keeps every comment; otherwise only comments whose resolved state matches
    resolved: Optional[bool] = None

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter()},
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            response = await self.figma_client.get_comments(file_key)
        except FigmaAPIError as e:
            return self._api_error("get comments", e)

        comments = response.get("comments") or []
        if self.resolved is not None:
            comments = [c for c in comments if bool(c.get("resolved_at")) is self.resolved]
        return ToolResult.json(
            {"comments": comments},
            metadata={"file_key": file_key, "count": len(comments)},
        )


class GetResolvedCommentsTool(GetCommentsTool):
    """List the resolved comments on a Figma file."""

    name = "figma_getResolvedComments"
    description = "Get the resolved comments on a Figma file"
    resolved = True


class GetUnresolvedCommentsTool(GetCommentsTool):
    """List the open comments on a Figma file."""

    name = "figma_getUnresolvedComments"
    description = "Get the unresolved comments on a Figma file"
    resolved = False


class GetImagesTool(FigmaTool):
    """Render nodes of a Figma file to image URLs."""

    name = "figma_getImages"
    description = "Render nodes of a Figma file and return image URLs"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={
                "file_key": self._file_key_parameter(),
                "ids": self._create_parameter(
                    "array", "Node ids to render", items={"type": "string"}
                ),
                "format": self._create_parameter(
                    "string", "Image format", enum=IMAGE_FORMATS, default="png"
                ),
                "scale": self._create_parameter(
                    "number", "Image scale factor", default=1, minimum=0.01, maximum=4
                ),
            },
            required=["file_key", "ids"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        ids = _node_ids(arguments["ids"])

        try:
            response = await self.figma_client.get_image(
                file_key,
                ids,
                format=arguments.get("format", "png"),
                scale=arguments.get("scale"),
            )
        except FigmaAPIError as e:
            return self._api_error("render images", e)

        if response.get("err"):
            return ToolResult.error(
                f"Failed to render images: {response['err']}",
                error_code="figma_api_error",
                details={"file_key": file_key},
            )

        images = response.get("images") or {}
        return ToolResult.json(
            {"images": images},
            metadata={"file_key": file_key, "count": len(images)},
        )


class GetFileWithCommentsTool(FigmaTool):
    """Fetch a file document together with its comments."""

    name = "figma_getFileWithComments"
    description = "Get a Figma file together with its comments"

    def get_schema(self) -> Tool:
        return self._create_schema(
            parameters={"file_key": self._file_key_parameter()},
            required=["file_key"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        file_key = arguments["file_key"]
        try:
            figma_file, response = await asyncio.gather(
                self.figma_client.get_file(file_key),
                self.figma_client.get_comments(file_key),
            )
        except FigmaAPIError as e:
            return self._api_error("get file with comments", e)

        comments = response.get("comments") or []
        return ToolResult.json(
            {"file": figma_file, "comments": comments},
            metadata={"file_key": file_key, "comments": len(comments)},
        )


def _node_ids(ids: List[Any]) -> List[str]:
    if not ids or not all(isinstance(node_id, str) and node_id for node_id in ids):
        raise ToolValidationError(
            "Parameter 'ids' must be a non-empty list of node ids",
            details={"parameter": "ids"},
        )
    return ids
