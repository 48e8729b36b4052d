"""
Registry of MCP resources, tools and prompts.

Entries are registered once at startup and only read afterwards. The
registry is a lookup table: it never invokes a handler itself.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import ParseResult

import structlog

from .templates import ResourceTemplate

logger = structlog.get_logger(__name__)

ResourceHandler = Callable[[ParseResult, Dict[str, str]], Awaitable[Dict[str, Any]]]
ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


@dataclass
class ResourceEntry:
    """A registered resource: a URI template plus its read handler."""

    name: str
    template: ResourceTemplate
    handler: ResourceHandler
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": self.name,
            "template": self.template.template,
            "options": self.template.options,
        }
        if self.description:
            entry["description"] = self.description
        return entry


@dataclass
class ToolEntry:
    """A registered tool: a parameter shape plus its call handler."""

    name: str
    parameters: Dict[str, Any]
    handler: ToolHandler
    description: Optional[str] = None


@dataclass
class ResolvedResource:
    """Outcome of matching a URI against the registered templates."""

    entry: ResourceEntry
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def handler(self) -> ResourceHandler:
        return self.entry.handler


class Registry:
    """Insertion-ordered registry of resources, tools and prompts."""

    def __init__(self) -> None:
        self._resources: Dict[str, ResourceEntry] = {}
        self._tools: Dict[str, ToolEntry] = {}
        self._prompts: Dict[str, Dict[str, Any]] = {}

    def register_resource(
        self,
        name: str,
        template: Union[str, ResourceTemplate],
        handler: ResourceHandler,
        description: Optional[str] = None,
    ) -> None:
        """
        Register a resource under ``name``.

        Re-registering a name replaces the previous entry but keeps its
        original position in iteration order.
        """
        if isinstance(template, str):
            template = ResourceTemplate(template)
        self._resources[name] = ResourceEntry(
            name=name, template=template, handler=handler, description=description
        )
        logger.info("Registered resource", resource_name=name, template=template.template)

    def register_tool(
        self,
        name: str,
        parameters: Dict[str, Any],
        handler: ToolHandler,
        description: Optional[str] = None,
    ) -> None:
        """Register a tool under ``name``, replacing any previous entry."""
        self._tools[name] = ToolEntry(
            name=name, parameters=parameters, handler=handler, description=description
        )
        logger.info("Registered tool", tool_name=name)

    def register_prompt(self, name: str, definition: Dict[str, Any]) -> None:
        """Register a prompt definition under ``name``."""
        self._prompts[name] = definition
        logger.info("Registered prompt", prompt_name=name)

    def list_resource_templates(self) -> List[ResourceEntry]:
        """Return every resource entry in registration order."""
        return list(self._resources.values())

    def resolve_resource(self, uri: str) -> Optional[ResolvedResource]:
        """Return the first registered resource whose template matches ``uri``."""
        for entry in self._resources.values():
            params = entry.template.match(uri)
            if params is not None:
                return ResolvedResource(entry=entry, params=params)
        return None

    def find_tool(self, name: str) -> Optional[ToolEntry]:
        return self._tools.get(name)

    def find_prompt(self, name: str) -> Optional[Dict[str, Any]]:
        return self._prompts.get(name)

    def list_tools(self) -> List[str]:
        return list(self._tools.keys())

    def list_prompts(self) -> List[str]:
        return list(self._prompts.keys())

    @property
    def resource_count(self) -> int:
        return len(self._resources)

    @property
    def tool_count(self) -> int:
        return len(self._tools)
