"""
Model Context data model.

The normalized design document produced from a Figma file: metadata, an
explicit parent/child hierarchy, a flat element list, style tables,
variables and optional semantic, interaction and asset annotations.
Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .. import __version__

MODEL_CONTEXT_VERSION = "1.0.0"
GENERATOR = f"figma-context-mcp/{__version__}"


class ContextModel(BaseModel):
    """Base for every Model Context structure."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Dump to the camelCase wire form, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ElementType(str, Enum):
    """Node types known to the converter."""

    DOCUMENT = "DOCUMENT"
    CANVAS = "CANVAS"
    FRAME = "FRAME"
    GROUP = "GROUP"
    SECTION = "SECTION"
    COMPONENT = "COMPONENT"
    COMPONENT_SET = "COMPONENT_SET"
    INSTANCE = "INSTANCE"
    TEXT = "TEXT"
    VECTOR = "VECTOR"
    RECTANGLE = "RECTANGLE"
    ELLIPSE = "ELLIPSE"
    POLYGON = "POLYGON"
    LINE = "LINE"
    BOOLEAN_OPERATION = "BOOLEAN_OPERATION"
    STAR = "STAR"
    SLICE = "SLICE"


# Paint and effect primitives


class Color(ContextModel):
    r: float
    g: float
    b: float
    a: float = 1.0


class Vector(ContextModel):
    x: float
    y: float


class GradientStop(ContextModel):
    position: float
    color: Color


class SolidFill(ContextModel):
    type: Literal["SOLID"] = "SOLID"
    color: Color
    opacity: Optional[float] = None


class GradientFill(ContextModel):
    type: Literal["GRADIENT_LINEAR", "GRADIENT_RADIAL", "GRADIENT_ANGULAR", "GRADIENT_DIAMOND"]
    gradient_stops: List[GradientStop] = Field(default_factory=list)
    gradient_handle_positions: Optional[List[Vector]] = None
    opacity: Optional[float] = None


class ImageFill(ContextModel):
    type: Literal["IMAGE"] = "IMAGE"
    scale_mode: Optional[str] = None
    image_ref: Optional[str] = None
    opacity: Optional[float] = None


Fill = Annotated[Union[SolidFill, GradientFill, ImageFill], Field(discriminator="type")]


class Stroke(ContextModel):
    type: str
    weight: Optional[float] = None
    color: Optional[Color] = None
    gradient_stops: Optional[List[GradientStop]] = None
    opacity: Optional[float] = None
    dash_pattern: Optional[List[float]] = None
    cap: Optional[str] = None
    join: Optional[str] = None
    miter_limit: Optional[float] = None


class Effect(ContextModel):
    type: str
    visible: bool = True
    radius: Optional[float] = None
    color: Optional[Color] = None
    offset: Optional[Vector] = None
    spread: Optional[float] = None


class TextStyle(ContextModel):
    """Typography; also used as a named style entry when ``id`` is set."""

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    font_family: Optional[str] = None
    font_weight: Optional[float] = None
    font_size: Optional[float] = None
    letter_spacing: Optional[float] = None
    line_height: Optional[float] = None
    paragraph_spacing: Optional[float] = None
    text_case: str = "ORIGINAL"
    text_decoration: str = "NONE"
    text_align_horizontal: str = "LEFT"
    text_align_vertical: str = "TOP"
    fills: List[Fill] = Field(default_factory=list)


# Element structures


class Position(ContextModel):
    x: float
    y: float
    width: float
    height: float
    rotation: Optional[float] = None


class ElementStyle(ContextModel):
    fills: Optional[List[Fill]] = None
    strokes: Optional[List[Stroke]] = None
    effects: Optional[List[Effect]] = None
    opacity: Optional[float] = None
    blend_mode: Optional[str] = None
    style_ids: Optional[Dict[str, str]] = None


class TextContent(ContextModel):
    characters: str
    style: TextStyle


class ComponentProperty(ContextModel):
    type: Optional[str] = None
    value: Optional[Any] = None
    default_value: Optional[Any] = None
    variant_options: Optional[List[str]] = None


class Constraints(ContextModel):
    horizontal: Optional[str] = None
    vertical: Optional[str] = None


class LayoutProperties(ContextModel):
    layout_mode: str
    padding_left: Optional[float] = None
    padding_right: Optional[float] = None
    padding_top: Optional[float] = None
    padding_bottom: Optional[float] = None
    item_spacing: Optional[float] = None
    counter_axis_sizing_mode: Optional[str] = None
    primary_axis_sizing_mode: Optional[str] = None
    primary_axis_align_items: Optional[str] = None
    counter_axis_align_items: Optional[str] = None


class DesignElement(ContextModel):
    """One node of the source tree; ``id`` is the join key everywhere."""

    id: str
    name: str = ""
    type: ElementType
    visible: bool = True
    locked: bool = False
    position: Optional[Position] = None
    style: Optional[ElementStyle] = None
    text: Optional[TextContent] = None
    component_properties: Optional[Dict[str, ComponentProperty]] = None
    constraints: Optional[Constraints] = None
    layout_properties: Optional[LayoutProperties] = None


class HierarchyNode(ContextModel):
    id: str
    name: str = ""
    type: ElementType
    parent: Optional[str] = None
    children: Optional[List[str]] = None


class Structure(ContextModel):
    root: str = ""
    hierarchy: List[HierarchyNode] = Field(default_factory=list)


# Style tables


class ColorStyle(ContextModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    fill: Optional[Fill] = None


class EffectStyle(ContextModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    effects: List[Effect] = Field(default_factory=list)


class GridStyle(ContextModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    grids: List[Dict[str, Any]] = Field(default_factory=list)


class Styles(ContextModel):
    colors: List[ColorStyle] = Field(default_factory=list)
    text: List[TextStyle] = Field(default_factory=list)
    effects: List[EffectStyle] = Field(default_factory=list)
    grids: List[GridStyle] = Field(default_factory=list)


# Variables


class VariableMode(ContextModel):
    mode_id: str
    name: str = ""


class VariableCollection(ContextModel):
    id: str
    name: str = ""
    key: Optional[str] = None
    modes: List[VariableMode] = Field(default_factory=list)
    default_mode_id: Optional[str] = None


class Variable(ContextModel):
    id: str
    name: str = ""
    key: Optional[str] = None
    variable_collection_id: str
    resolved_type: Optional[str] = None
    values_by_mode: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    scopes: Optional[List[str]] = None


class Variables(ContextModel):
    collections: List[VariableCollection] = Field(default_factory=list)
    variables: List[Variable] = Field(default_factory=list)


class Design(ContextModel):
    structure: Structure = Field(default_factory=Structure)
    elements: List[DesignElement] = Field(default_factory=list)
    styles: Styles = Field(default_factory=Styles)
    variables: Optional[Variables] = None


# Optional annotations


class SemanticComponent(ContextModel):
    element_id: str
    role: str
    description: Optional[str] = None


class Semantics(ContextModel):
    components: List[SemanticComponent] = Field(default_factory=list)


class Interaction(ContextModel):
    element_id: str
    trigger: str
    action: str
    destination_id: Optional[str] = None


class Dimensions(ContextModel):
    width: float = 0
    height: float = 0


class ImageAsset(ContextModel):
    id: str
    name: str = ""
    url: str
    format: str = "png"
    dimensions: Dimensions = Field(default_factory=Dimensions)
    element_ids: List[str] = Field(default_factory=list)


class Assets(ContextModel):
    images: List[ImageAsset] = Field(default_factory=list)
    icons: List[Dict[str, Any]] = Field(default_factory=list)
    fonts: List[Dict[str, Any]] = Field(default_factory=list)


class LibraryComponent(ContextModel):
    key: str
    name: str = ""
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    file_key: Optional[str] = None
    node_id: Optional[str] = None
    component_set_id: Optional[str] = None


class ComponentLibrary(ContextModel):
    """Published components of a team, stored under ``extensions.componentLibrary``."""

    team_id: str
    components: List[LibraryComponent] = Field(default_factory=list)


# Root document


class Source(ContextModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["figma"] = "figma"
    file_key: str = ""
    file_name: str = ""
    last_modified: Optional[str] = None
    url: Optional[str] = None


class Metadata(ContextModel):
    model_config = ConfigDict(frozen=True)

    version: str = MODEL_CONTEXT_VERSION
    source: Source
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    generator: str = GENERATOR


class ModelContext(ContextModel):
    """Root of a converted document. Treated as immutable once built."""

    metadata: Metadata
    design: Design = Field(default_factory=Design)
    semantics: Optional[Semantics] = None
    interactions: Optional[List[Interaction]] = None
    assets: Optional[Assets] = None
    extensions: Optional[Dict[str, Any]] = None


def create_empty_context(source: Union[Source, Dict[str, Any]]) -> ModelContext:
    """
    Create a context with metadata and an empty design.

    Args:
        source: Source descriptor or its camelCase/snake_case mapping

    Returns:
        A new ModelContext
    """
    if not isinstance(source, Source):
        source = Source.model_validate(source)
    return ModelContext(metadata=Metadata(source=source))


def add_extension(context: ModelContext, key: str, value: Any) -> ModelContext:
    """Attach an open-ended extension block; the one mutation a context allows."""
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if context.extensions is None:
        context.extensions = {}
    context.extensions[key] = value
    return context


def serialize_context(context: ModelContext, indent: Optional[int] = 2) -> str:
    """Serialize a context to JSON text."""
    return context.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def parse_context(text: Union[str, bytes]) -> ModelContext:
    """
    Parse JSON text into a ModelContext.

    Raises:
        pydantic.ValidationError: If the text is not a well-formed context
    """
    return ModelContext.model_validate_json(text)
