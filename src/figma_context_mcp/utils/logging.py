"""
Logging setup for the Figma Model Context MCP Server.

structlog renders every record to stderr; stdout is reserved for JSON-RPC
frames on the stdio transport. Figma personal access tokens are masked
before rendering so a logged config or header dump never leaks one.
"""

import logging
import re
import sys
from typing import Any, List, MutableMapping, TextIO

import structlog

LOG_FORMATS = ("json", "console")

# Keys whose values are always credentials
SECRET_KEYS = frozenset({"access_token", "x-figma-token", "token", "authorization"})

# Figma personal access tokens start with "figd_"
_TOKEN_PATTERN = re.compile(r"figd_[A-Za-z0-9_\-]+")

_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.internal", "asyncio")


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor that masks access tokens anywhere in the event."""
    for key in list(event_dict):
        event_dict[key] = _redact(key, event_dict[key])
    return event_dict


def _redact(key: Any, value: Any) -> Any:
    if isinstance(key, str) and key.lower() in SECRET_KEYS and value:
        return "***"
    if isinstance(value, str):
        return _TOKEN_PATTERN.sub("figd_***", value)
    if isinstance(value, dict):
        return {k: _redact(k, v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(None, item) for item in value)
    return value


def setup_logging(
    log_level: str = "INFO", log_format: str = "json", stream: TextIO = sys.stderr
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: ``json`` for one object per line, ``console`` for
            human-readable output while developing
        stream: Destination for rendered records

    Raises:
        ValueError: On an unknown level or format
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {log_format}. Must be one of {list(LOG_FORMATS)}")

    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
        renderer,
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=stream, level=level, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request(**values: Any) -> None:
    """Bind values (request id, method) to every record logged by the current task."""
    structlog.contextvars.bind_contextvars(**values)
