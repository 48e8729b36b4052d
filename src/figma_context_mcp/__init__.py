"""
Figma Model Context MCP Server

A Model Context Protocol server that exposes Figma files to MCP hosts and
converts them into a normalized Model Context document.
"""

__version__ = "0.1.0"
__author__ = "Figma Context MCP Team"
__license__ = "MIT"

from .config.settings import Config, load_config
from .converter import FigmaToModelContextAdapter
from .model import ModelContext, validate_context
from .server import FigmaContextMCPServer

__all__ = [
    "FigmaContextMCPServer",
    "FigmaToModelContextAdapter",
    "ModelContext",
    "Config",
    "load_config",
    "validate_context",
    "__version__",
    "__author__",
    "__license__",
]
