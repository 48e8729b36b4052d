"""Model Context data model and validation."""

from .context import (
    GENERATOR,
    MODEL_CONTEXT_VERSION,
    Assets,
    Color,
    ComponentLibrary,
    Design,
    DesignElement,
    Effect,
    ElementType,
    GradientFill,
    HierarchyNode,
    ImageAsset,
    ImageFill,
    Metadata,
    ModelContext,
    SolidFill,
    Source,
    Stroke,
    Structure,
    Styles,
    TextStyle,
    Variables,
    add_extension,
    create_empty_context,
    parse_context,
    serialize_context,
)
from .validator import ValidationResult, validate_context

__all__ = [
    "GENERATOR",
    "MODEL_CONTEXT_VERSION",
    "Assets",
    "Color",
    "ComponentLibrary",
    "Design",
    "DesignElement",
    "Effect",
    "ElementType",
    "GradientFill",
    "HierarchyNode",
    "ImageAsset",
    "ImageFill",
    "Metadata",
    "ModelContext",
    "SolidFill",
    "Source",
    "Stroke",
    "Structure",
    "Styles",
    "TextStyle",
    "Variables",
    "ValidationResult",
    "add_extension",
    "create_empty_context",
    "parse_context",
    "serialize_context",
    "validate_context",
]
