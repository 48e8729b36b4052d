"""
Pytest configuration and fixtures for Figma Model Context MCP Server tests.
"""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from figma_context_mcp.client.figma_client import FigmaClient
from figma_context_mcp.config.settings import Config, ConverterConfig, FigmaConfig, ServerConfig


class RecordingTransport:
    """In-memory transport that records every frame sent through it."""

    def __init__(self, fail_connect: bool = False):
        self.fail_connect = fail_connect
        self.on_message = None
        self.frames: List[str] = []
        self.connected = False
        self.disconnect_calls = 0

    async def connect(self, on_message) -> None:
        if self.fail_connect:
            raise ConnectionError("connect refused")
        self.on_message = on_message
        self.connected = True

    def send(self, frame: str) -> None:
        self.frames.append(frame)

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnect_calls += 1

    async def deliver(self, message: Any) -> None:
        """Feed one inbound frame; non-string messages are JSON encoded."""
        frame = message if isinstance(message, str) else json.dumps(message)
        await self.on_message(frame)

    @property
    def sent(self) -> List[Dict[str, Any]]:
        return [json.loads(frame) for frame in self.frames]

    def responses(self) -> List[Dict[str, Any]]:
        return [message for message in self.sent if "id" in message]

    def response_for(self, request_id: Any) -> Optional[Dict[str, Any]]:
        matches = [message for message in self.responses() if message["id"] == request_id]
        assert len(matches) <= 1, f"more than one response for id {request_id}"
        return matches[0] if matches else None


@pytest.fixture
def transport_cls():
    """The recording transport class, for tests that need a variant."""
    return RecordingTransport


@pytest.fixture
def transport():
    """Create a recording transport."""
    return RecordingTransport()


@pytest.fixture
def test_config():
    """Create a test configuration."""
    return Config(
        version="0.1.0-test",
        figma=FigmaConfig(access_token="figd_test-token", timeout_seconds=5.0),
        server=ServerConfig(log_level="DEBUG"),
        converter=ConverterConfig(),
    )


@pytest.fixture
def example_tree():
    """Document -> page -> rectangle."""
    return {
        "id": "0:1",
        "type": "DOCUMENT",
        "name": "Document",
        "children": [
            {
                "id": "0:2",
                "type": "CANVAS",
                "name": "Page 1",
                "children": [{"id": "0:3", "type": "RECTANGLE", "name": "Box", "visible": True}],
            }
        ],
    }


@pytest.fixture
def sample_file():
    """A file response with styles, text, image fills and auto layout."""
    return {
        "name": "Design System",
        "lastModified": "2024-05-01T12:00:00Z",
        "styles": {
            "S:fill": {"key": "k1", "name": "Brand/Primary", "styleType": "FILL", "description": ""},
            "S:text": {"key": "k2", "name": "Heading/H1", "styleType": "TEXT", "description": "Page titles"},
            "S:effect": {"key": "k3", "name": "Shadow/Card", "styleType": "EFFECT", "description": ""},
            "S:grid": {"key": "k4", "name": "Grid/12", "styleType": "GRID", "description": ""},
        },
        "document": {
            "id": "0:0",
            "type": "DOCUMENT",
            "name": "Document",
            "children": [
                {
                    "id": "1:0",
                    "type": "CANVAS",
                    "name": "Page 1",
                    "children": [
                        {
                            "id": "1:1",
                            "type": "FRAME",
                            "name": "Card",
                            "blendMode": "PASS_THROUGH",
                            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 320, "height": 200},
                            "fills": [
                                {"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0, "a": 1}, "visible": False},
                                {"type": "SOLID", "color": {"r": 0, "g": 0.5, "b": 1, "a": 1}},
                            ],
                            "strokes": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0, "a": 1}, "opacity": 0.5}],
                            "strokeWeight": 2,
                            "effects": [
                                {
                                    "type": "DROP_SHADOW",
                                    "visible": True,
                                    "radius": 4,
                                    "color": {"r": 0, "g": 0, "b": 0, "a": 0.25},
                                    "offset": {"x": 0, "y": 2},
                                },
                                {"type": "LAYER_BLUR", "visible": False, "radius": 8},
                            ],
                            "styles": {"fill": "S:fill", "effect": "S:effect"},
                            "layoutMode": "VERTICAL",
                            "paddingLeft": 16,
                            "itemSpacing": 8,
                            "constraints": {"horizontal": "LEFT", "vertical": "TOP"},
                            "children": [
                                {
                                    "id": "1:2",
                                    "type": "TEXT",
                                    "name": "Title",
                                    "characters": "Hello",
                                    "style": {
                                        "fontFamily": "Inter",
                                        "fontWeight": 700,
                                        "fontSize": 32,
                                        "lineHeightPx": 40,
                                    },
                                    "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0, "a": 1}}],
                                    "styles": {"text": "S:text"},
                                },
                                {
                                    "id": "1:3",
                                    "type": "RECTANGLE",
                                    "name": "Photo",
                                    "absoluteBoundingBox": {"x": 16, "y": 60, "width": 288, "height": 120},
                                    "fills": [{"type": "IMAGE", "scaleMode": "FILL", "imageRef": "img-1"}],
                                },
                                {
                                    "id": "1:4",
                                    "type": "WASHI_TAPE",
                                    "name": "Sticker",
                                    "locked": True,
                                },
                            ],
                        }
                    ],
                }
            ],
        },
    }


@pytest.fixture
def mock_figma_client(sample_file):
    """Create a mock Figma client."""
    client = AsyncMock(spec=FigmaClient)
    client.connected = True

    client.get_file.return_value = sample_file
    client.get_node.return_value = {"id": "1:2", "type": "TEXT", "name": "Title"}
    client.get_comments.return_value = {
        "comments": [
            {
                "id": "c-1",
                "message": "Looks good",
                "user": {"handle": "ana"},
                "resolved_at": "2024-05-02T09:00:00Z",
            },
            {"id": "c-2", "message": "Bump the contrast", "user": {"handle": "li"}},
        ]
    }
    client.get_file_components.return_value = {
        "status": 200,
        "error": False,
        "meta": {"components": [{"key": "comp-1", "name": "Button", "node_id": "5:1"}]},
    }
    client.get_file_styles.return_value = {
        "status": 200,
        "error": False,
        "meta": {"styles": [{"key": "k1", "name": "Brand/Primary", "style_type": "FILL"}]},
    }
    client.get_image.return_value = {"err": None, "images": {"1:3": "https://cdn.example/1-3.png"}}
    client.get_image_fills.return_value = {
        "error": False,
        "status": 200,
        "meta": {"images": {"img-1": "https://cdn.example/img-1.jpg"}},
    }
    client.get_local_variables.return_value = {
        "status": 200,
        "error": False,
        "meta": {
            "variableCollections": {
                "VC:1": {
                    "id": "VC:1",
                    "name": "Colors",
                    "key": "vc-key",
                    "modes": [{"modeId": "m1", "name": "Light"}, {"modeId": "m2", "name": "Dark"}],
                    "defaultModeId": "m1",
                }
            },
            "variables": {
                "V:1": {
                    "id": "V:1",
                    "name": "color/bg",
                    "key": "v-key",
                    "variableCollectionId": "VC:1",
                    "resolvedType": "COLOR",
                    "valuesByMode": {"m1": {"r": 1, "g": 1, "b": 1, "a": 1}},
                    "description": "",
                    "scopes": ["ALL_SCOPES"],
                },
                "V:2": {
                    "id": "V:2",
                    "name": "space/md",
                    "key": "v-key-2",
                    "variableCollectionId": "VC:1",
                    "resolvedType": "FLOAT",
                    "valuesByMode": {"m1": 16, "m2": 16},
                    "description": "",
                    "scopes": ["GAP"],
                },
            },
        },
    }
    client.get_team_components.return_value = {
        "status": 200,
        "error": False,
        "meta": {
            "components": [
                {
                    "key": "comp-1",
                    "name": "Button",
                    "description": "Primary button",
                    "thumbnail_url": "https://cdn.example/thumb.png",
                    "file_key": "lib-file",
                    "node_id": "5:1",
                }
            ]
        },
    }
    client.get_team_styles.return_value = {
        "status": 200,
        "error": False,
        "meta": {
            "styles": [{"key": "k1", "name": "Brand/Primary", "style_type": "FILL", "file_key": "lib-file"}],
            "cursor": {"before": 0, "after": 1},
        },
    }
    client.get_file_component_sets.return_value = {
        "status": 200,
        "error": False,
        "meta": {"component_sets": [{"key": "set-1", "name": "Buttons", "node_id": "5:0"}]},
    }
    client.get_file_nodes.return_value = {
        "name": "Design System",
        "nodes": {"1:2": {"document": {"id": "1:2", "type": "TEXT", "name": "Title"}, "components": {}}},
    }
    client.get_current_user.return_value = {
        "id": "u-1",
        "handle": "ana",
        "email": "ana@example.com",
        "img_url": "https://cdn.example/ana.png",
    }
    client.get_component.return_value = {"status": 200, "meta": {"key": "comp-1", "name": "Button"}}
    client.get_component_set.return_value = {"status": 200, "meta": {"key": "set-1", "name": "Buttons"}}
    client.get_style.return_value = {"status": 200, "meta": {"key": "k1", "name": "Brand/Primary"}}

    return client
