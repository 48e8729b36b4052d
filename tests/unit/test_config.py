"""
Unit tests for configuration loading.
"""

import json

import pytest
from pydantic import ValidationError

from figma_context_mcp.config.settings import (
    Config,
    FigmaConfig,
    ServerConfig,
    create_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "FIGMA_ACCESS_TOKEN",
        "FIGMA_MCP_CONFIG_PATH",
        "FIGMA_MCP_LOG_LEVEL",
        "FIGMA_MCP_LOG_FORMAT",
        "FIGMA_TEAM_ID",
    ):
        monkeypatch.delenv(name, raising=False)


class TestConfigModels:
    """Test configuration model validation."""

    def test_defaults(self):
        config = Config()

        assert config.figma.api_base == "https://api.figma.com/v1"
        assert config.server.protocol_version == "2024-11-05"
        assert config.converter.include_styles is True
        assert config.converter.include_variables is False

    def test_access_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("FIGMA_ACCESS_TOKEN", "figd_env")

        assert FigmaConfig().access_token == "figd_env"
        assert FigmaConfig(access_token="${FIGMA_ACCESS_TOKEN}").access_token == "figd_env"
        assert FigmaConfig(access_token="figd_literal").access_token == "figd_literal"

    def test_log_level_is_normalized(self):
        assert ServerConfig(log_level="debug").log_level == "DEBUG"

        with pytest.raises(ValidationError):
            ServerConfig(log_level="LOUD")

    def test_log_format_is_normalized(self):
        assert ServerConfig().log_format == "json"
        assert ServerConfig(log_format="Console").log_format == "console"

        with pytest.raises(ValidationError):
            ServerConfig(log_format="xml")

    def test_unknown_sections_are_rejected(self):
        with pytest.raises(ValidationError):
            Config(webhooks={})


class TestLoadConfig:
    """Test loading from files and environment."""

    def test_load_without_file(self):
        config = load_config()

        assert config.server.name == "figma-context-mcp-server"
        assert config.figma.access_token is None

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_file_and_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "server": {"name": "custom", "log_level": "INFO"},
                    "converter": {"include_images": True},
                }
            )
        )
        monkeypatch.setenv("FIGMA_MCP_CONFIG_PATH", str(path))
        monkeypatch.setenv("FIGMA_MCP_LOG_LEVEL", "warning")
        monkeypatch.setenv("FIGMA_MCP_LOG_FORMAT", "console")
        monkeypatch.setenv("FIGMA_TEAM_ID", "team-42")

        config = load_config()

        assert config.server.name == "custom"
        assert config.server.log_level == "WARNING"
        assert config.server.log_format == "console"
        assert config.converter.include_images is True
        assert config.converter.team_id == "team-42"

    def test_default_config_round_trips(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FIGMA_ACCESS_TOKEN", "figd_from_env")
        path = tmp_path / "nested" / "config.json"

        create_default_config(path)
        config = load_config(path)

        assert json.loads(path.read_text())["figma"]["access_token"] == "${FIGMA_ACCESS_TOKEN}"
        assert config.figma.access_token == "figd_from_env"
        assert config.converter.validate_output is True
