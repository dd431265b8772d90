"""Design layer data model.

Every type serializes to the JSON wire format consumed by design-tool
materializers through ``to_dict()``. Paint and Effect are closed unions;
``paint_to_dict`` and ``effect_to_dict`` reject anything outside them.
"""

from dataclasses import dataclass, field
from typing import Literal

from .utils import clamp01

LayerType = Literal["FRAME", "TEXT", "RECTANGLE", "ELLIPSE", "GROUP"]
ScaleMode = Literal["FILL", "FIT", "CROP", "TILE"]
StrokePosition = Literal["INSIDE", "OUTSIDE", "CENTER"]
ShadowKind = Literal["DROP_SHADOW", "INNER_SHADOW"]
BlurKind = Literal["LAYER_BLUR", "BACKGROUND_BLUR"]
TextAlign = Literal["LEFT", "CENTER", "RIGHT", "JUSTIFIED"]
TextDecoration = Literal["NONE", "UNDERLINE", "STRIKETHROUGH"]
TextCase = Literal["ORIGINAL", "UPPER", "LOWER", "TITLE"]
LayoutMode = Literal["HORIZONTAL", "VERTICAL"]
PrimaryAlign = Literal["MIN", "CENTER", "MAX", "SPACE_BETWEEN"]
CounterAlign = Literal["MIN", "CENTER", "MAX", "BASELINE"]
SizingMode = Literal["FIXED", "AUTO"]
ChildSizing = Literal["FILL", "HUG", "FIXED"]
TextAutoResize = Literal["WIDTH_AND_HEIGHT", "HEIGHT"]


@dataclass(frozen=True)
class RGBA:
    """Color with channels normalized to [0, 1]. Channels are always clamped."""

    r: float
    g: float
    b: float
    a: float = 1.0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            object.__setattr__(self, name, clamp01(float(getattr(self, name))))

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b, "a": self.a}


BLACK = RGBA(0, 0, 0, 1)
TRANSPARENT = RGBA(0, 0, 0, 0)


@dataclass
class GradientStop:
    """A gradient color stop at a position in [0, 1]."""

    position: float
    color: RGBA

    def to_dict(self) -> dict:
        return {"position": self.position, "color": self.color.to_dict()}


@dataclass
class SolidPaint:
    color: RGBA
    opacity: float = 1.0
    visible: bool = True


@dataclass
class LinearGradientPaint:
    stops: list[GradientStop]
    angle: float = 180.0  # CSS angle: 0 = to top, 90 = to right
    opacity: float = 1.0
    visible: bool = True


@dataclass
class RadialGradientPaint:
    stops: list[GradientStop]
    opacity: float = 1.0
    visible: bool = True


@dataclass
class ImagePaint:
    image_url: str
    scale_mode: ScaleMode = "FILL"
    opacity: float = 1.0
    visible: bool = True


Paint = SolidPaint | LinearGradientPaint | RadialGradientPaint | ImagePaint


def paint_to_dict(paint: Paint) -> dict:
    """Serialize a paint.

    Raises:
        TypeError: If the value is not one of the Paint variants.
    """
    if isinstance(paint, SolidPaint):
        result = {"type": "SOLID", "color": paint.color.to_dict()}
    elif isinstance(paint, LinearGradientPaint):
        result = {
            "type": "GRADIENT_LINEAR",
            "gradientStops": [stop.to_dict() for stop in paint.stops],
            "angle": paint.angle,
        }
    elif isinstance(paint, RadialGradientPaint):
        result = {
            "type": "GRADIENT_RADIAL",
            "gradientStops": [stop.to_dict() for stop in paint.stops],
        }
    elif isinstance(paint, ImagePaint):
        result = {
            "type": "IMAGE",
            "imageUrl": paint.image_url,
            "scaleMode": paint.scale_mode,
        }
    else:
        raise TypeError(f"Unknown paint variant: {type(paint).__name__}")

    result["opacity"] = paint.opacity
    result["visible"] = paint.visible
    return result


@dataclass
class SideWeights:
    """Per-side border widths."""

    top: float
    right: float
    bottom: float
    left: float

    def to_dict(self) -> dict:
        return {
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
            "left": self.left,
        }


@dataclass
class StrokeConfig:
    """Border stroke.

    ``individual_weights`` is only set when the four sides differ.
    """

    color: RGBA
    weight: float
    position: StrokePosition = "INSIDE"
    dash_pattern: list[float] | None = None
    individual_weights: SideWeights | None = None

    def to_dict(self) -> dict:
        result = {
            "color": self.color.to_dict(),
            "weight": self.weight,
            "position": self.position,
        }
        if self.dash_pattern is not None:
            result["dashPattern"] = list(self.dash_pattern)
        if self.individual_weights is not None:
            result["individualWeights"] = self.individual_weights.to_dict()
        return result


@dataclass
class ShadowEffect:
    kind: ShadowKind
    color: RGBA
    offset_x: float
    offset_y: float
    radius: float
    spread: float = 0.0
    visible: bool = True


@dataclass
class BlurEffect:
    kind: BlurKind
    radius: float
    visible: bool = True


Effect = ShadowEffect | BlurEffect


def effect_to_dict(effect: Effect) -> dict:
    """Serialize an effect.

    Raises:
        TypeError: If the value is not one of the Effect variants.
    """
    if isinstance(effect, ShadowEffect):
        return {
            "type": effect.kind,
            "color": effect.color.to_dict(),
            "offset": {"x": effect.offset_x, "y": effect.offset_y},
            "radius": effect.radius,
            "spread": effect.spread,
            "visible": effect.visible,
        }
    if isinstance(effect, BlurEffect):
        return {"type": effect.kind, "radius": effect.radius, "visible": effect.visible}
    raise TypeError(f"Unknown effect variant: {type(effect).__name__}")


@dataclass
class Corners:
    """Per-corner radii, used when the four corners differ."""

    top_left: float
    top_right: float
    bottom_right: float
    bottom_left: float

    def to_dict(self) -> dict:
        return {
            "topLeft": self.top_left,
            "topRight": self.top_right,
            "bottomRight": self.bottom_right,
            "bottomLeft": self.bottom_left,
        }


CornerRadius = float | Corners


def corner_radius_to_dict(radius: CornerRadius) -> float | dict:
    if isinstance(radius, Corners):
        return radius.to_dict()
    return float(radius)


@dataclass
class TextStyle:
    font_family: str
    font_weight: int
    italic: bool
    font_size: float
    line_height: float | Literal["AUTO"]
    letter_spacing: float
    text_align: TextAlign
    text_decoration: TextDecoration
    text_case: TextCase
    color: RGBA

    def to_dict(self) -> dict:
        return {
            "fontFamily": self.font_family,
            "fontWeight": self.font_weight,
            "fontStyle": "italic" if self.italic else "normal",
            "fontSize": self.font_size,
            "lineHeight": self.line_height,
            "letterSpacing": self.letter_spacing,
            "textAlign": self.text_align,
            "textDecoration": self.text_decoration,
            "textCase": self.text_case,
            "color": self.color.to_dict(),
        }


@dataclass
class TextSegment:
    """Styled character range [start, end) of a text layer.

    Only the fields that differ from the layer's base style are set.
    """

    text: str
    start: int
    end: int
    color: RGBA | None = None
    font_weight: int | None = None
    italic: bool | None = None
    font_size: float | None = None
    text_decoration: TextDecoration | None = None

    def to_dict(self) -> dict:
        result: dict = {"text": self.text, "start": self.start, "end": self.end}
        if self.color is not None:
            result["color"] = self.color.to_dict()
        if self.font_weight is not None:
            result["fontWeight"] = self.font_weight
        if self.italic is not None:
            result["fontStyle"] = "italic" if self.italic else "normal"
        if self.font_size is not None:
            result["fontSize"] = self.font_size
        if self.text_decoration is not None:
            result["textDecoration"] = self.text_decoration
        return result


@dataclass
class AutoLayoutConfig:
    mode: LayoutMode
    primary_align: PrimaryAlign = "MIN"
    counter_align: CounterAlign = "MIN"
    padding_top: float = 0.0
    padding_right: float = 0.0
    padding_bottom: float = 0.0
    padding_left: float = 0.0
    item_spacing: float = 0.0
    primary_sizing: SizingMode = "AUTO"
    counter_sizing: SizingMode = "AUTO"
    wrap: bool | None = None
    counter_axis_stretch: bool | None = None

    @property
    def is_vertical(self) -> bool:
        """Check if children stack top to bottom."""
        return self.mode == "VERTICAL"

    def to_dict(self) -> dict:
        result = {
            "mode": self.mode,
            "primaryAxisAlignItems": self.primary_align,
            "counterAxisAlignItems": self.counter_align,
            "paddingTop": self.padding_top,
            "paddingRight": self.padding_right,
            "paddingBottom": self.padding_bottom,
            "paddingLeft": self.padding_left,
            "itemSpacing": self.item_spacing,
            "primaryAxisSizingMode": self.primary_sizing,
            "counterAxisSizingMode": self.counter_sizing,
        }
        if self.wrap is not None:
            result["wrap"] = self.wrap
        if self.counter_axis_stretch is not None:
            result["counterAxisStretch"] = self.counter_axis_stretch
        return result


@dataclass
class SourceElement:
    """Where a layer came from, for debugging."""

    tag_name: str
    id: str | None = None
    class_name: str | None = None

    def to_dict(self) -> dict:
        result = {"tagName": self.tag_name}
        if self.id:
            result["id"] = self.id
        if self.class_name:
            result["className"] = self.class_name
        return result


@dataclass
class LayerNode:
    """A design layer. Children are exclusively owned; x/y are parent-relative."""

    type: LayerType
    name: str
    x: float
    y: float
    width: float
    height: float
    fills: list[Paint] = field(default_factory=list)
    stroke: StrokeConfig | None = None
    effects: list[Effect] = field(default_factory=list)
    corner_radius: CornerRadius = 0.0
    opacity: float = 1.0
    visible: bool = True
    clips_content: bool = False

    # TEXT only
    characters: str | None = None
    text_style: TextStyle | None = None
    text_segments: list[TextSegment] | None = None
    text_auto_resize: TextAutoResize | None = None

    # FRAME only
    auto_layout: AutoLayoutConfig | None = None

    is_absolutely_positioned: bool = False
    z_index: int | None = None
    flex_grow: float | None = None
    rotation: float | None = None
    layout_sizing_horizontal: ChildSizing | None = None
    layout_sizing_vertical: ChildSizing | None = None

    children: list["LayerNode"] = field(default_factory=list)

    # Atomic asset payloads
    image_url: str | None = None
    svg_markup: str | None = None

    source: SourceElement | None = None

    @property
    def effective_z_index(self) -> int:
        """Stacking key; non-positioned layers sort as 0."""
        return self.z_index or 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result: dict = {
            "type": self.type,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "fills": [paint_to_dict(p) for p in self.fills],
            "strokes": self.stroke.to_dict() if self.stroke else None,
            "effects": [effect_to_dict(e) for e in self.effects],
            "cornerRadius": corner_radius_to_dict(self.corner_radius),
            "opacity": self.opacity,
            "visible": self.visible,
            "clipsContent": self.clips_content,
        }

        if self.characters is not None:
            result["characters"] = self.characters
        if self.text_style is not None:
            result["textStyles"] = self.text_style.to_dict()
        if self.text_segments:
            result["textSegments"] = [s.to_dict() for s in self.text_segments]
        if self.text_auto_resize is not None:
            result["textAutoResize"] = self.text_auto_resize
        if self.auto_layout is not None:
            result["autoLayout"] = self.auto_layout.to_dict()
        if self.is_absolutely_positioned:
            result["isAbsolutelyPositioned"] = True
        if self.z_index is not None:
            result["zIndex"] = self.z_index
        if self.flex_grow is not None:
            result["flexGrow"] = self.flex_grow
        if self.rotation is not None:
            result["rotation"] = self.rotation
        if self.layout_sizing_horizontal is not None:
            result["layoutSizingHorizontal"] = self.layout_sizing_horizontal
        if self.layout_sizing_vertical is not None:
            result["layoutSizingVertical"] = self.layout_sizing_vertical

        result["children"] = [child.to_dict() for child in self.children]

        if self.image_url is not None:
            result["imageUrl"] = self.image_url
        if self.svg_markup is not None:
            result["svgString"] = self.svg_markup
        if self.source is not None:
            result["sourceElement"] = self.source.to_dict()
        return result
