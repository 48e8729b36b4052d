"""
Figma resources exposed through ``resource.get``.

Every resource is addressed by a ``figma://`` URI template and read
through the Figma client. Handlers return MCP resource contents with the
JSON document as text.
"""

import json
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import ParseResult, unquote

import structlog

from .client.figma_client import FigmaClient, split_variables
from .converter.figma_adapter import ConversionOptions, FigmaToModelContextAdapter
from .model.context import serialize_context
from .protocol.registry import Registry, ResourceHandler
from .protocol.schemas import ResourceNotFoundError

logger = structlog.get_logger(__name__)

JSON_MIME_TYPE = "application/json"


def resource_contents(uri: ParseResult, payload: Any) -> Dict[str, Any]:
    """Wrap a JSON payload as the contents of a resource read."""
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return {"contents": [{"uri": uri.geturl(), "mimeType": JSON_MIME_TYPE, "text": text}]}


class FigmaResources:
    """Resource handlers backed by a Figma client."""

    def __init__(
        self,
        figma_client: FigmaClient,
        conversion_options: Optional[ConversionOptions] = None,
    ):
        self.figma_client = figma_client
        self.adapter = FigmaToModelContextAdapter(figma_client)
        self.conversion_options = conversion_options or ConversionOptions()

    def definitions(self) -> List[Tuple[str, str, ResourceHandler, str]]:
        """Return ``(name, template, handler, description)`` in registration order."""
        return [
            ("figma_file", "figma://file/{file_key}", self.read_file,
             "Figma file with document structure and content"),
            ("figma_node", "figma://file/{file_key}/node/{node_id}", self.read_node,
             "Specific node from a Figma file"),
            ("figma_comment", "figma://file/{file_key}/comment/{comment_id}", self.read_comment,
             "Comment on a Figma file"),
            ("figma_variable", "figma://file/{file_key}/variable/{variable_id}", self.read_variable,
             "Local variable of a Figma file"),
            ("figma_model_context", "figma://file/{file_key}/model-context", self.read_model_context,
             "Figma file converted to a Model Context document"),
            ("figma_component", "figma://component/{component_key}", self.read_component,
             "Published Figma component"),
            ("figma_component_set", "figma://component_set/{component_set_key}", self.read_component_set,
             "Published Figma component set"),
            ("figma_style", "figma://style/{style_key}", self.read_style,
             "Published Figma style"),
        ]

    def register(self, registry: Registry) -> None:
        for name, template, handler, description in self.definitions():
            registry.register_resource(name, template, handler, description=description)

    async def read_file(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        figma_file = await self.figma_client.get_file(params["file_key"])
        return resource_contents(uri, figma_file)

    async def read_node(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        node_id = unquote(params["node_id"])
        node = await self.figma_client.get_node(params["file_key"], node_id)
        if node is None:
            raise ResourceNotFoundError(uri.geturl())
        return resource_contents(uri, node)

    async def read_comment(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        response = await self.figma_client.get_comments(params["file_key"])
        comment_id = unquote(params["comment_id"])
        for comment in response.get("comments") or []:
            if comment.get("id") == comment_id:
                return resource_contents(uri, comment)
        raise ResourceNotFoundError(uri.geturl())

    async def read_variable(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        response = await self.figma_client.get_local_variables(params["file_key"])
        variable_id = unquote(params["variable_id"])
        _, variables = split_variables(response)
        for variable in variables:
            if variable.get("id") == variable_id:
                return resource_contents(uri, variable)
        raise ResourceNotFoundError(uri.geturl())

    async def read_model_context(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        file_key = params["file_key"]
        logger.info("Converting file for resource read", file_key=file_key)
        context = await self.adapter.convert_file(file_key, self.conversion_options)
        return resource_contents(uri, serialize_context(context, indent=None))

    async def read_component(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        response = await self.figma_client.get_component(params["component_key"])
        return resource_contents(uri, response.get("meta", response))

    async def read_component_set(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        response = await self.figma_client.get_component_set(params["component_set_key"])
        return resource_contents(uri, response.get("meta", response))

    async def read_style(self, uri: ParseResult, params: Dict[str, str]) -> Dict[str, Any]:
        response = await self.figma_client.get_style(params["style_key"])
        return resource_contents(uri, response.get("meta", response))
