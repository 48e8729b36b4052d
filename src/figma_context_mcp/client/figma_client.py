"""
Figma REST API client for the MCP server.

Thin aiohttp wrapper over the Figma v1 endpoints used by the converter,
tools and resources. Requests are not retried: a non-2xx response or a
transport failure raises FigmaAPIError straight to the caller.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp
import structlog

from ..config.settings import FigmaConfig

logger = structlog.get_logger(__name__)


class FigmaAPIError(Exception):
    """Error returned by, or raised while talking to, the Figma API."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.original_error = original_error


class FigmaClient:
    """
    Async client for the Figma REST API.

    Use as an async context manager, or call ``connect()`` and
    ``disconnect()`` explicitly. Every request method returns the decoded
    JSON body.
    """

    def __init__(self, config: FigmaConfig):
        """
        Initialize Figma client.

        Args:
            config: Figma API settings (token, base URL, timeout)
        """
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._connection_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._session is not None and not self._session.closed

    async def connect(self) -> None:
        """Open the HTTP session."""
        async with self._connection_lock:
            if self.connected:
                return

            if not self.config.access_token:
                logger.warning("No Figma access token configured - requests will be rejected")

            self._session = aiohttp.ClientSession(
                headers=self._get_headers(),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
            )
            logger.info("Figma client session opened", api_base=self.config.api_base)

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        async with self._connection_lock:
            if self._session is None:
                return
            try:
                await self._session.close()
                logger.info("Figma client session closed")
            finally:
                self._session = None

    async def __aenter__(self) -> "FigmaClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.access_token:
            headers["X-Figma-Token"] = self.config.access_token
        return headers

    async def _request(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a GET request against the API.

        Args:
            path: Endpoint path beginning with ``/``
            params: Query parameters; ``None`` values are dropped

        Returns:
            Decoded JSON body

        Raises:
            FigmaAPIError: On a non-2xx status or a transport failure
        """
        if not self.connected:
            await self.connect()
        assert self._session is not None

        query = {key: _query_value(value) for key, value in (params or {}).items() if value is not None}
        url = f"{self.config.api_base.rstrip('/')}{path}"
        logger.debug("Figma API request", path=path, params=query)

        try:
            async with self._session.get(url, params=query) as resp:
                if resp.status >= 400:
                    message = await _error_message(resp)
                    logger.error("Figma API error", path=path, status=resp.status, error=message)
                    raise FigmaAPIError(
                        f"Figma API error {resp.status}: {message}", status=resp.status
                    )
                return await resp.json()
        except FigmaAPIError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Figma API request failed", path=path, error=str(e))
            raise FigmaAPIError(f"Figma API request failed: {e}", original_error=e)

    # Files

    async def get_file(
        self,
        file_key: str,
        *,
        version: Optional[str] = None,
        ids: Optional[Sequence[str]] = None,
        depth: Optional[int] = None,
        geometry: Optional[str] = None,
        plugin_data: Optional[str] = None,
        branch_data: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Fetch a whole file document."""
        return await self._request(
            f"/files/{file_key}",
            {
                "version": version,
                "ids": ids,
                "depth": depth,
                "geometry": geometry,
                "plugin_data": plugin_data,
                "branch_data": branch_data,
            },
        )

    async def get_file_nodes(
        self,
        file_key: str,
        ids: Sequence[str],
        *,
        version: Optional[str] = None,
        depth: Optional[int] = None,
        geometry: Optional[str] = None,
        plugin_data: Optional[str] = None,
        branch_data: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Fetch selected nodes of a file, keyed by node id."""
        return await self._request(
            f"/files/{file_key}/nodes",
            {
                "ids": ids,
                "version": version,
                "depth": depth,
                "geometry": geometry,
                "plugin_data": plugin_data,
                "branch_data": branch_data,
            },
        )

    async def get_node(self, file_key: str, node_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one node's document, or ``None`` when the file has no such node."""
        response = await self.get_file_nodes(file_key, [node_id])
        entry = (response.get("nodes") or {}).get(node_id)
        if not entry:
            return None
        return entry.get("document")

    async def get_image(
        self,
        file_key: str,
        ids: Sequence[str],
        *,
        scale: Optional[float] = None,
        format: Optional[str] = None,
        svg_include_id: Optional[bool] = None,
        use_absolute_bounds: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Render nodes and return ``{"images": {node_id: url}}``."""
        return await self._request(
            f"/images/{file_key}",
            {
                "ids": ids,
                "scale": scale,
                "format": format,
                "svg_include_id": svg_include_id,
                "use_absolute_bounds": use_absolute_bounds,
            },
        )

    async def get_image_fills(self, file_key: str) -> Dict[str, Any]:
        """Return download URLs for every image fill, under ``meta.images``."""
        return await self._request(f"/files/{file_key}/images")

    async def get_file_components(self, file_key: str) -> Dict[str, Any]:
        return await self._request(f"/files/{file_key}/components")

    async def get_file_component_sets(self, file_key: str) -> Dict[str, Any]:
        return await self._request(f"/files/{file_key}/component_sets")

    async def get_file_styles(self, file_key: str) -> Dict[str, Any]:
        return await self._request(f"/files/{file_key}/styles")

    async def get_comments(self, file_key: str) -> Dict[str, Any]:
        return await self._request(f"/files/{file_key}/comments")

    async def get_local_variables(self, file_key: str) -> Dict[str, Any]:
        """Fetch local variables and collections of a file."""
        return await self._request(f"/files/{file_key}/variables/local")

    # Team library

    async def get_team_components(
        self,
        team_id: str,
        *,
        page_size: Optional[int] = None,
        after: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Fetch the published components of a team."""
        return await self._request(
            f"/teams/{team_id}/components", {"page_size": page_size, "after": after}
        )

    async def get_team_styles(
        self,
        team_id: str,
        *,
        page_size: Optional[int] = None,
        after: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Fetch the published styles of a team."""
        return await self._request(
            f"/teams/{team_id}/styles", {"page_size": page_size, "after": after}
        )

    async def get_component(self, component_key: str) -> Dict[str, Any]:
        return await self._request(f"/components/{component_key}")

    async def get_component_set(self, component_set_key: str) -> Dict[str, Any]:
        return await self._request(f"/component_sets/{component_set_key}")

    async def get_style(self, style_key: str) -> Dict[str, Any]:
        return await self._request(f"/styles/{style_key}")

    # Users

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._request("/me")


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


async def _error_message(resp: aiohttp.ClientResponse) -> str:
    try:
        body = await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, ValueError):
        return (await resp.text())[:200] or resp.reason or "unknown error"
    if isinstance(body, dict):
        return str(body.get("err") or body.get("message") or body)
    return str(body)


def unwrap_list(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Extract ``payload["meta"][key]`` as a list, tolerating missing levels."""
    meta = payload.get("meta") or {}
    items = meta.get(key) if isinstance(meta, dict) else None
    if isinstance(items, dict):
        return list(items.values())
    return list(items or [])


def split_variables(payload: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Return ``(collections, variables)`` from a local variables response.

    Accepts both the nested ``meta.variables.{collections, variables}``
    shape and the flat ``meta.variableCollections`` / ``meta.variables``
    maps keyed by id.
    """
    meta = payload.get("meta") or {}
    nested = meta.get("variables") if isinstance(meta, dict) else None
    if isinstance(nested, dict) and "collections" in nested:
        return list(nested.get("collections") or []), list(nested.get("variables") or [])
    return unwrap_list(payload, "variableCollections"), unwrap_list(payload, "variables")
