"""Prompt definitions served by ``prompt.list`` and ``prompt.get``."""

from typing import Any, Dict

from .protocol.registry import Registry

PROMPTS: Dict[str, Dict[str, Any]] = {
    "design_to_code": {
        "name": "design_to_code",
        "description": "Generate UI code from a Figma file's Model Context",
        "arguments": [
            {"name": "file_key", "description": "Figma file key", "required": True},
            {"name": "framework", "description": "Target framework, e.g. react or vue", "required": False},
        ],
        "template": (
            "Read the resource figma://file/{file_key}/model-context and implement the "
            "design as {framework} components. Follow design.structure for nesting, use "
            "design.elements for layout and styling, and map design.styles to reusable tokens."
        ),
    },
    "describe_design": {
        "name": "describe_design",
        "description": "Summarize the structure and visual language of a Figma file",
        "arguments": [
            {"name": "file_key", "description": "Figma file key", "required": True},
        ],
        "template": (
            "Read the resource figma://file/{file_key}/model-context and describe the "
            "pages, main frames and components, then list the colors, typography and "
            "effects defined in design.styles."
        ),
    },
}


def register_prompts(registry: Registry) -> None:
    for name, definition in PROMPTS.items():
        registry.register_prompt(name, definition)
