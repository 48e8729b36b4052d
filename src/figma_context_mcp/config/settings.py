"""
Configuration management for the Figma Model Context MCP Server.

Handles loading, validation, and management of server configuration
from files and environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.logging import LOG_FORMATS

DEFAULT_PROTOCOL_VERSION = "2024-11-05"
SUPPORTED_PROTOCOL_VERSIONS = ["2024-11-05", "2024-10-07"]


def _resolve_env(value: Optional[str], default_env: str) -> Optional[str]:
    """Resolve a value that may be unset or written as ``${ENV_VAR}``."""
    if value is None:
        return os.getenv(default_env)
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1])
    return value


class FigmaConfig(BaseModel):
    """Configuration for the Figma REST API connection."""

    access_token: Optional[str] = Field(
        default=None, validate_default=True, description="Figma personal access token"
    )
    api_base: str = Field(default="https://api.figma.com/v1", description="Figma API base URL")
    timeout_seconds: float = Field(default=30.0, description="Request timeout in seconds")

    @field_validator("access_token", mode="before")
    @classmethod
    def resolve_access_token(cls, v: Optional[str]) -> Optional[str]:
        """Resolve the access token from the environment if needed."""
        return _resolve_env(v, "FIGMA_ACCESS_TOKEN")


class ServerConfig(BaseModel):
    """Configuration for MCP server behavior."""

    name: str = Field(default="figma-context-mcp-server", description="Server name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log rendering: json or console")
    protocol_version: str = Field(
        default=DEFAULT_PROTOCOL_VERSION, description="Current protocol version"
    )
    supported_protocol_versions: List[str] = Field(
        default_factory=lambda: list(SUPPORTED_PROTOCOL_VERSIONS),
        description="Protocol versions announced in server.info",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in LOG_FORMATS:
            raise ValueError(f"Invalid log format: {v}. Must be one of {list(LOG_FORMATS)}")
        return v_lower


class ConverterConfig(BaseModel):
    """Default options for Model Context conversion."""

    include_styles: bool = Field(default=True, description="Copy style definitions")
    include_variables: bool = Field(default=False, description="Fetch local variables")
    include_images: bool = Field(default=False, description="Resolve image fill URLs")
    team_id: Optional[str] = Field(default=None, description="Team for the component library")
    validate_output: bool = Field(default=True, description="Validate converted contexts")


class Config(BaseModel):
    """Main configuration object."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="0.1.0", description="Configuration version")
    figma: FigmaConfig = Field(default_factory=FigmaConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment variables.

    Args:
        config_path: Path to configuration file. If None, looks for
                    FIGMA_MCP_CONFIG_PATH environment variable.

    Returns:
        Loaded and validated configuration

    Raises:
        FileNotFoundError: If config file specified but not found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        env_path = os.getenv("FIGMA_MCP_CONFIG_PATH")
        if env_path:
            config_path = Path(env_path)

    config_data: Dict[str, Any] = {}
    if config_path and config_path.exists():
        with open(config_path, "r") as f:
            config_data = json.load(f)
    elif config_path:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    env_overrides: Dict[str, Any] = {}

    log_level = os.getenv("FIGMA_MCP_LOG_LEVEL")
    if log_level:
        env_overrides.setdefault("server", {})["log_level"] = log_level

    log_format = os.getenv("FIGMA_MCP_LOG_FORMAT")
    if log_format:
        env_overrides.setdefault("server", {})["log_format"] = log_format

    team_id = os.getenv("FIGMA_TEAM_ID")
    if team_id:
        env_overrides.setdefault("converter", {})["team_id"] = team_id

    if env_overrides:
        config_data = _deep_merge(config_data, env_overrides)

    return Config(**config_data)


def create_default_config(config_path: Path) -> None:
    """
    Create a default configuration file.

    Args:
        config_path: Path where to create the configuration file
    """
    default_config = {
        "version": "0.1.0",
        "figma": {
            "access_token": "${FIGMA_ACCESS_TOKEN}",
            "api_base": "https://api.figma.com/v1",
            "timeout_seconds": 30.0,
        },
        "server": {
            "name": "figma-context-mcp-server",
            "log_level": "INFO",
            "log_format": "json",
            "protocol_version": DEFAULT_PROTOCOL_VERSION,
            "supported_protocol_versions": SUPPORTED_PROTOCOL_VERSIONS,
        },
        "converter": {
            "include_styles": True,
            "include_variables": False,
            "include_images": False,
            "team_id": None,
            "validate_output": True,
        },
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(default_config, f, indent=2)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
