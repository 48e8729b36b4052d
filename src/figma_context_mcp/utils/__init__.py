"""Utility modules."""

from .logging import bind_request, redact_secrets, setup_logging

__all__ = [
    "setup_logging",
    "bind_request",
    "redact_secrets",
]
