"""
Figma to Model Context adapter.

Turns a Figma file (or any tree of Figma-shaped nodes) into a ModelContext.
Only a missing root fails a conversion. Malformed node details are dropped
block by block; styles, variables, image assets and the team component
library are each best-effort and are left out of the result when they
cannot be produced.
"""

from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..client.figma_client import FigmaClient, split_variables, unwrap_list
from ..config.settings import ConverterConfig
from ..model.context import (
    Assets,
    Color,
    ColorStyle,
    ComponentLibrary,
    ComponentProperty,
    Constraints,
    DesignElement,
    Dimensions,
    Effect,
    EffectStyle,
    ElementStyle,
    ElementType,
    GradientFill,
    GradientStop,
    HierarchyNode,
    ImageAsset,
    ImageFill,
    LayoutProperties,
    LibraryComponent,
    ModelContext,
    Position,
    SolidFill,
    Source,
    Stroke,
    Styles,
    TextContent,
    TextStyle,
    Variable,
    VariableCollection,
    VariableMode,
    Variables,
    Vector,
    add_extension,
    create_empty_context,
)

logger = structlog.get_logger(__name__)

FIGMA_FILE_URL = "https://www.figma.com/file/{file_key}"

_KNOWN_TYPES = {member.value for member in ElementType}
_GRADIENT_TYPES = {"GRADIENT_LINEAR", "GRADIENT_RADIAL", "GRADIENT_ANGULAR", "GRADIENT_DIAMOND"}

_LAYOUT_FIELDS = (
    "paddingLeft",
    "paddingRight",
    "paddingTop",
    "paddingBottom",
    "itemSpacing",
    "counterAxisSizingMode",
    "primaryAxisSizingMode",
    "primaryAxisAlignItems",
    "counterAxisAlignItems",
)

# Node "styles" keys that can carry the body of each style type
_STYLE_REFERENCE_KEYS = {
    "FILL": ("fill", "fills", "stroke", "strokes"),
    "TEXT": ("text",),
    "EFFECT": ("effect", "effects"),
}


class ConversionError(Exception):
    """Raised when the source document lacks its root node."""

    pass


class ConversionOptions(BaseModel):
    """Flags controlling the optional parts of a conversion."""

    # styles come from the file payload itself; every other pass costs a request
    include_styles: bool = Field(default=True, description="Copy style definitions")
    include_variables: bool = Field(default=False, description="Fetch local variables")
    include_images: bool = Field(default=False, description="Resolve image fill URLs")
    team_id: Optional[str] = Field(default=None, description="Team for the component library")

    @classmethod
    def from_config(cls, config: ConverterConfig) -> "ConversionOptions":
        return cls(
            include_styles=config.include_styles,
            include_variables=config.include_variables,
            include_images=config.include_images,
            team_id=config.team_id,
        )


class FigmaToModelContextAdapter:
    """
    Converts Figma API documents to Model Context.

    The client is only needed for the parts that fetch more data:
    ``convert_file``, variables, image fills and the team library.
    """

    def __init__(self, client: Optional[FigmaClient] = None):
        self.client = client

    async def convert_file(
        self, file_key: str, options: Optional[ConversionOptions] = None
    ) -> ModelContext:
        """
        Fetch a file through the client and convert it.

        Raises:
            ConversionError: If no client is configured or the file has no document
            FigmaAPIError: If the file fetch fails
        """
        if self.client is None:
            raise ConversionError("A Figma client is required to fetch files")

        logger.info("Fetching file for conversion", file_key=file_key)
        figma_file = await self.client.get_file(file_key)
        return await self.convert(figma_file, options, file_key=file_key)

    async def convert(
        self,
        source_document: Dict[str, Any],
        options: Optional[ConversionOptions] = None,
        *,
        file_key: Optional[str] = None,
    ) -> ModelContext:
        """
        Convert a Figma document into a ModelContext.

        Args:
            source_document: A file response (with ``document``) or a bare root node
            options: Conversion flags, defaults apply when omitted
            file_key: Key of the source file, needed for the fetching passes

        Returns:
            The converted context

        Raises:
            ConversionError: If the root node or its id is missing
        """
        options = options or ConversionOptions()
        if not isinstance(source_document, dict):
            raise ConversionError("Source document must be an object")

        if "document" in source_document:
            root = source_document.get("document")
            last_modified = source_document.get("lastModified")
            style_table = source_document.get("styles")
        else:
            root = source_document
            last_modified = None
            style_table = None
        file_name = _text(source_document.get("name"))
        if not isinstance(last_modified, str):
            last_modified = None
        if not isinstance(style_table, dict):
            style_table = {}

        if not _has_id(root):
            raise ConversionError("Source document has no root node")

        context = create_empty_context(
            Source(
                file_key=file_key or "",
                file_name=file_name,
                last_modified=last_modified,
                url=FIGMA_FILE_URL.format(file_key=file_key) if file_key else None,
            )
        )

        style_sources = self._process_document_structure(context, root)
        logger.debug(
            "Document structure converted",
            file_key=file_key,
            elements=len(context.design.elements),
        )

        if options.include_styles:
            self._process_styles(context, style_table, style_sources)

        if options.include_variables:
            await self._process_variables(context, file_key)

        if options.include_images:
            await self._process_images(context, file_key)

        if options.team_id:
            await self._process_component_library(context, options.team_id)

        return context

    # Structure

    def _process_document_structure(
        self, context: ModelContext, root: Dict[str, Any]
    ) -> Dict[str, Tuple[str, Dict[str, Any]]]:
        """
        Walk the tree in pre-order, filling hierarchy and elements.

        Returns the first node referencing each style id, keyed by style id.
        """
        structure = context.design.structure
        structure.root = str(root["id"])
        hierarchy: List[HierarchyNode] = []
        elements: List[DesignElement] = []
        style_sources: Dict[str, Tuple[str, Dict[str, Any]]] = {}

        stack: List[Tuple[Dict[str, Any], Optional[str]]] = [(root, None)]
        while stack:
            node, parent_id = stack.pop()
            node_id = str(node["id"])
            raw_children = node.get("children")
            if not isinstance(raw_children, list):
                raw_children = []
            children = [child for child in raw_children if _has_id(child)]
            if len(children) != len(raw_children):
                logger.warning("Skipping child nodes without an id", node_id=node_id)

            element_type = self._map_node_type(node.get("type"))
            hierarchy.append(
                HierarchyNode(
                    id=node_id,
                    name=_text(node.get("name")),
                    type=element_type,
                    parent=parent_id,
                    children=[str(child["id"]) for child in children] or None,
                )
            )
            elements.append(self._create_design_element(node, element_type))

            node_styles = node.get("styles")
            if isinstance(node_styles, dict):
                for kind, style_id in node_styles.items():
                    if isinstance(style_id, str):
                        style_sources.setdefault(style_id, (kind, node))

            for child in reversed(children):
                stack.append((child, node_id))

        structure.hierarchy = hierarchy
        context.design.elements = elements
        return style_sources

    def _map_node_type(self, figma_type: Any) -> ElementType:
        if isinstance(figma_type, str) and figma_type in _KNOWN_TYPES:
            return ElementType(figma_type)
        logger.debug("Mapping unknown node type to FRAME", node_type=figma_type)
        return ElementType.FRAME

    def _create_design_element(self, node: Dict[str, Any], element_type: ElementType) -> DesignElement:
        element = DesignElement(
            id=str(node["id"]),
            name=_text(node.get("name")),
            type=element_type,
            visible=node.get("visible") is not False,
            locked=node.get("locked") is True,
        )

        box = node.get("absoluteBoundingBox")
        if isinstance(box, dict):
            element.position = Position(
                x=_number(box.get("x")),
                y=_number(box.get("y")),
                width=_number(box.get("width")),
                height=_number(box.get("height")),
                rotation=_number(node.get("rotation")) or None,
            )

        # Detail blocks are dropped one at a time when the node data is malformed
        if any(node.get(key) is not None for key in ("fills", "strokes", "effects", "opacity", "blendMode")):
            element.style = self._optional_block(element.id, "style", self._map_element_style, node)

        if node.get("type") == "TEXT" and node.get("characters") is not None:
            element.text = self._optional_block(element.id, "text", self._map_text_content, node)

        if node.get("componentProperties"):
            element.component_properties = self._optional_block(
                element.id, "componentProperties", self._map_component_properties, node
            )

        if node.get("constraints"):
            element.constraints = self._optional_block(
                element.id, "constraints", self._map_constraints, node
            )

        if node.get("layoutMode"):
            element.layout_properties = self._optional_block(
                element.id, "layoutProperties", self._map_layout, node
            )

        return element

    def _optional_block(
        self, element_id: str, block: str, mapper: Callable[[Dict[str, Any]], Any], node: Dict[str, Any]
    ) -> Any:
        try:
            return mapper(node)
        except (ValidationError, TypeError, AttributeError, KeyError, ValueError) as e:
            logger.warning(
                "Dropping malformed node data", element_id=element_id, block=block, error=str(e)
            )
            return None

    def _map_text_content(self, node: Dict[str, Any]) -> TextContent:
        return TextContent(
            characters=_text(node["characters"]),
            style=self._map_text_style(node.get("style") or {}),
        )

    def _map_component_properties(self, node: Dict[str, Any]) -> Dict[str, ComponentProperty]:
        return {
            key: ComponentProperty(
                type=prop.get("type"),
                value=prop.get("value"),
                default_value=prop.get("defaultValue"),
                variant_options=prop.get("variantOptions"),
            )
            for key, prop in node["componentProperties"].items()
        }

    def _map_constraints(self, node: Dict[str, Any]) -> Constraints:
        return Constraints(
            horizontal=node["constraints"].get("horizontal"),
            vertical=node["constraints"].get("vertical"),
        )

    def _map_layout(self, node: Dict[str, Any]) -> LayoutProperties:
        layout = {"layoutMode": node["layoutMode"]}
        layout.update({key: node[key] for key in _LAYOUT_FIELDS if node.get(key) is not None})
        return LayoutProperties.model_validate(layout)

    def _map_element_style(self, node: Dict[str, Any]) -> ElementStyle:
        style = ElementStyle(opacity=node.get("opacity"), blend_mode=node.get("blendMode"))
        if node.get("fills"):
            style.fills = self._map_fills(node["fills"])
        if node.get("strokes"):
            style.strokes = self._map_strokes(node["strokes"], node.get("strokeWeight"))
        if node.get("effects"):
            style.effects = self._map_effects(node["effects"])
        if node.get("styles"):
            style.style_ids = dict(node["styles"])
        return style

    # Paints and effects

    def _map_fills(self, figma_fills: List[Dict[str, Any]]) -> List[Any]:
        return [self._map_fill(fill) for fill in figma_fills if fill.get("visible") is not False]

    def _map_fill(self, fill: Dict[str, Any]) -> Any:
        fill_type = fill.get("type") or ""
        opacity = fill.get("opacity")

        if fill_type == "SOLID":
            return SolidFill(
                color=_map_color(fill.get("color"), alpha=1 if opacity is None else opacity),
                opacity=opacity,
            )
        if fill_type in _GRADIENT_TYPES:
            return GradientFill(
                type=fill_type,
                gradient_stops=_map_gradient_stops(fill.get("gradientStops")),
                gradient_handle_positions=[
                    Vector(x=pos.get("x", 0), y=pos.get("y", 0))
                    for pos in fill.get("gradientHandlePositions") or []
                ]
                or None,
                opacity=opacity,
            )
        if fill_type == "IMAGE":
            return ImageFill(
                scale_mode=fill.get("scaleMode"),
                image_ref=fill.get("imageRef"),
                opacity=opacity,
            )

        logger.debug("Unknown paint type, using opaque black", paint_type=fill_type)
        return SolidFill(color=Color(r=0, g=0, b=0, a=1))

    def _map_strokes(
        self, figma_strokes: List[Dict[str, Any]], stroke_weight: Optional[float]
    ) -> List[Stroke]:
        strokes = []
        for stroke in figma_strokes:
            if stroke.get("visible") is False:
                continue
            stroke_type = stroke.get("type") or "SOLID"
            opacity = stroke.get("opacity")
            mapped = Stroke(
                type=stroke_type,
                weight=stroke_weight,
                opacity=opacity,
                dash_pattern=stroke.get("dashPattern"),
                cap=stroke.get("cap"),
                join=stroke.get("join"),
                miter_limit=stroke.get("miterLimit") or None,
            )
            if stroke_type == "SOLID":
                mapped.color = _map_color(stroke.get("color"), alpha=1 if opacity is None else opacity)
            elif stroke_type.startswith("GRADIENT_"):
                mapped.gradient_stops = _map_gradient_stops(stroke.get("gradientStops"))
            strokes.append(mapped)
        return strokes

    def _map_effects(self, figma_effects: List[Dict[str, Any]]) -> List[Effect]:
        effects = []
        for effect in figma_effects:
            if effect.get("visible") is False:
                continue
            offset = effect.get("offset")
            effects.append(
                Effect(
                    type=effect.get("type") or "",
                    visible=True,
                    radius=effect.get("radius"),
                    color=_map_color(effect["color"]) if effect.get("color") else None,
                    offset=Vector(x=offset.get("x", 0), y=offset.get("y", 0)) if offset else None,
                    spread=effect.get("spread"),
                )
            )
        return effects

    def _map_text_style(self, figma_style: Dict[str, Any], **identity: Any) -> TextStyle:
        return TextStyle(
            font_family=figma_style.get("fontFamily"),
            font_weight=figma_style.get("fontWeight"),
            font_size=figma_style.get("fontSize"),
            letter_spacing=figma_style.get("letterSpacing"),
            line_height=figma_style.get("lineHeightPx", figma_style.get("lineHeight")),
            paragraph_spacing=figma_style.get("paragraphSpacing"),
            text_case=figma_style.get("textCase") or "ORIGINAL",
            text_decoration=figma_style.get("textDecoration") or "NONE",
            text_align_horizontal=figma_style.get("textAlignHorizontal") or "LEFT",
            text_align_vertical=figma_style.get("textAlignVertical") or "TOP",
            fills=self._map_fills(figma_style.get("fills") or []),
            **identity,
        )

    # Styles

    def _process_styles(
        self,
        context: ModelContext,
        style_table: Dict[str, Any],
        style_sources: Dict[str, Tuple[str, Dict[str, Any]]],
    ) -> None:
        styles = context.design.styles
        for style_id, entry in style_table.items():
            if not isinstance(entry, dict):
                logger.warning("Skipping malformed style entry", style_id=style_id)
                continue
            try:
                self._add_style(styles, style_id, entry, style_sources)
            except (ValidationError, TypeError, AttributeError, KeyError, ValueError) as e:
                logger.warning("Skipping malformed style", style_id=style_id, error=str(e))

        logger.debug(
            "Styles converted",
            colors=len(styles.colors),
            text=len(styles.text),
            effects=len(styles.effects),
        )

    def _add_style(
        self,
        styles: Styles,
        style_id: str,
        entry: Dict[str, Any],
        style_sources: Dict[str, Tuple[str, Dict[str, Any]]],
    ) -> None:
        style_type = entry.get("styleType")
        name = _text(entry.get("name"))
        description = entry.get("description") or None
        body = self._style_body(style_id, style_type, entry, style_sources)

        if style_type == "FILL":
            fills = self._map_fills([body]) if body else []
            styles.colors.append(
                ColorStyle(
                    id=style_id,
                    name=name,
                    description=description,
                    fill=fills[0] if fills else None,
                )
            )
        elif style_type == "TEXT":
            styles.text.append(
                self._map_text_style(body or {}, id=style_id, name=name, description=description)
            )
        elif style_type == "EFFECT":
            styles.effects.append(
                EffectStyle(
                    id=style_id,
                    name=name,
                    description=description,
                    effects=self._map_effects((body or {}).get("effects") or []),
                )
            )
        # GRID bodies are not exposed by the file endpoint

    def _style_body(
        self,
        style_id: str,
        style_type: Optional[str],
        entry: Dict[str, Any],
        style_sources: Dict[str, Tuple[str, Dict[str, Any]]],
    ) -> Optional[Dict[str, Any]]:
        """Return the style's own body, else the matching part of its first user."""
        if entry.get("style"):
            return entry["style"]

        source = style_sources.get(style_id)
        if source is None:
            return None
        kind, node = source
        if kind not in _STYLE_REFERENCE_KEYS.get(style_type or "", ()):
            return None

        if style_type == "FILL":
            paints = node.get("strokes" if kind.startswith("stroke") else "fills") or []
            visible = [paint for paint in paints if paint.get("visible") is not False]
            return visible[0] if visible else None
        if style_type == "TEXT":
            return {**(node.get("style") or {}), "fills": node.get("fills") or []}
        if style_type == "EFFECT":
            return {"effects": node.get("effects") or []}
        return None

    # Fetching passes

    async def _process_variables(self, context: ModelContext, file_key: Optional[str]) -> None:
        if self.client is None or not file_key:
            logger.warning("Skipping variables: no client or file key", file_key=file_key)
            return

        try:
            response = await self.client.get_local_variables(file_key)
            if response.get("error"):
                logger.warning("Failed to get variables", file_key=file_key, status=response.get("status"))
                return

            raw_collections, raw_variables = split_variables(response)

            context.design.variables = Variables(
                collections=[
                    VariableCollection(
                        id=collection["id"],
                        name=collection.get("name") or "",
                        key=collection.get("key"),
                        modes=[
                            VariableMode(mode_id=mode["modeId"], name=mode.get("name") or "")
                            for mode in collection.get("modes") or []
                        ],
                        default_mode_id=collection.get("defaultModeId"),
                    )
                    for collection in raw_collections
                ],
                variables=[
                    Variable(
                        id=variable["id"],
                        name=variable.get("name") or "",
                        key=variable.get("key"),
                        variable_collection_id=variable["variableCollectionId"],
                        resolved_type=variable.get("resolvedType"),
                        values_by_mode=variable.get("valuesByMode") or {},
                        description=variable.get("description") or None,
                        scopes=variable.get("scopes"),
                    )
                    for variable in raw_variables
                ],
            )
        except Exception as e:
            logger.warning("Error processing variables", file_key=file_key, error=str(e))

    async def _process_images(self, context: ModelContext, file_key: Optional[str]) -> None:
        if self.client is None or not file_key:
            logger.warning("Skipping image fills: no client or file key", file_key=file_key)
            return

        try:
            response = await self.client.get_image_fills(file_key)
            if response.get("error") or response.get("err"):
                logger.warning("Failed to get image fills", file_key=file_key, status=response.get("status"))
                return
            urls = (response.get("meta") or {}).get("images") or response.get("images") or {}

            images: Dict[str, ImageAsset] = {}
            for element in context.design.elements:
                fills = element.style.fills if element.style and element.style.fills else []
                for fill in fills:
                    if not isinstance(fill, ImageFill) or not fill.image_ref:
                        continue
                    url = urls.get(fill.image_ref)
                    if not url:
                        continue
                    asset = images.get(fill.image_ref)
                    if asset is None:
                        images[fill.image_ref] = ImageAsset(
                            id=fill.image_ref,
                            name=f"Image from {element.name}",
                            url=url,
                            format=_image_format(url),
                            dimensions=Dimensions(
                                width=element.position.width if element.position else 0,
                                height=element.position.height if element.position else 0,
                            ),
                            element_ids=[element.id],
                        )
                    elif element.id not in asset.element_ids:
                        asset.element_ids.append(element.id)

            if images:
                context.assets = Assets(images=list(images.values()))
        except Exception as e:
            logger.warning("Error processing images", file_key=file_key, error=str(e))

    async def _process_component_library(self, context: ModelContext, team_id: str) -> None:
        if self.client is None:
            logger.warning("Skipping component library: no client", team_id=team_id)
            return

        try:
            response = await self.client.get_team_components(team_id)
            if response.get("error"):
                logger.warning("Failed to get team components", team_id=team_id, status=response.get("status"))
                return

            library = ComponentLibrary(
                team_id=team_id,
                components=[
                    LibraryComponent(
                        key=component["key"],
                        name=component.get("name") or "",
                        description=component.get("description") or None,
                        thumbnail_url=component.get("thumbnail_url"),
                        file_key=component.get("file_key"),
                        node_id=component.get("node_id"),
                        component_set_id=_component_set_id(component),
                    )
                    for component in unwrap_list(response, "components")
                ],
            )
            add_extension(context, "componentLibrary", library)
        except Exception as e:
            logger.warning("Error processing component library", team_id=team_id, error=str(e))


def _has_id(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_id = node.get("id")
    return isinstance(node_id, (str, int)) and not isinstance(node_id, bool) and node_id != ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _number(value: Any, default: float = 0) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return default


def _map_color(color: Optional[Dict[str, Any]], alpha: Optional[float] = None) -> Color:
    color = color or {}
    if alpha is None:
        alpha = color.get("a")
    return Color(
        r=color.get("r", 0),
        g=color.get("g", 0),
        b=color.get("b", 0),
        a=1 if alpha is None else alpha,
    )


def _map_gradient_stops(stops: Optional[List[Dict[str, Any]]]) -> List[GradientStop]:
    return [
        GradientStop(position=stop.get("position", 0), color=_map_color(stop.get("color")))
        for stop in stops or []
    ]


def _component_set_id(component: Dict[str, Any]) -> Optional[str]:
    if component.get("component_set_id"):
        return component["component_set_id"]
    containing_set = (component.get("containing_frame") or {}).get("containingComponentSet")
    if isinstance(containing_set, dict):
        return containing_set.get("nodeId")
    return None


def _image_format(url: str) -> str:
    suffix = PurePosixPath(urlparse(url).path).suffix.lstrip(".").lower()
    return suffix or "png"
