"""
URI templates for MCP resources.

A template such as ``figma://file/{file_key}/node/{node_id}`` both renders
concrete URIs and extracts named parameters from them.
"""

import re
from typing import Any, Dict, List, Optional, Pattern

_PLACEHOLDER = re.compile(r"{([^}]+)}")


class ResourceTemplate:
    """A path-like pattern with ``{name}`` placeholders."""

    def __init__(self, template: str, options: Optional[Dict[str, Any]] = None):
        self._template = template
        self._options = dict(options or {})
        self._names: List[str] = _PLACEHOLDER.findall(template)
        self._pattern = self._compile(template)

    @staticmethod
    def _compile(template: str) -> Pattern[str]:
        # Literal text is escaped; names are mapped to groups by position so
        # any placeholder spelling is accepted.
        parts: List[str] = []
        last = 0
        for match in _PLACEHOLDER.finditer(template):
            parts.append(re.escape(template[last : match.start()]))
            parts.append("([^/]+)")
            last = match.end()
        parts.append(re.escape(template[last:]))
        return re.compile("".join(parts))

    @property
    def template(self) -> str:
        return self._template

    @property
    def options(self) -> Dict[str, Any]:
        return self._options

    @property
    def parameter_names(self) -> List[str]:
        return list(self._names)

    @property
    def listable(self) -> bool:
        """False only when the ``list`` option is explicitly ``False``."""
        return self._options.get("list") is not False

    def generate(self, params: Dict[str, str]) -> str:
        """
        Render a URI, leaving placeholders for missing parameters untouched.

        Args:
            params: Parameter name to value mapping

        Returns:
            The rendered URI
        """

        def substitute(match: "re.Match[str]") -> str:
            value = params.get(match.group(1))
            return str(value) if value else match.group(0)

        return _PLACEHOLDER.sub(substitute, self._template)

    def match(self, uri: str) -> Optional[Dict[str, str]]:
        """
        Extract named parameters from a concrete URI.

        Args:
            uri: URI to match against the whole template

        Returns:
            Parameter mapping, or None if the URI does not match
        """
        found = self._pattern.fullmatch(uri)
        if found is None:
            return None
        return dict(zip(self._names, found.groups()))

    def __repr__(self) -> str:
        return f"ResourceTemplate({self._template!r})"
