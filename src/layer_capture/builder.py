"""Build a design layer tree from a capture snapshot."""

import re
from dataclasses import dataclass, field

from .config import CaptureConfig
from .icons import IconFont, IconRasterizer, png_data_url
from .layout import (
    assign_sizing_hints,
    detect_cross_axis_centering,
    fixed_top_offset,
    infer_auto_layout,
    infer_item_spacing,
    infer_text_auto_resize,
    is_flex_or_grid,
    pin_fixed_layer,
    rebase_flow_child,
    text_only_auto_layout,
)
from .model import (
    RGBA,
    ImagePaint,
    LayerNode,
    LayerType,
    SolidPaint,
    SourceElement,
    StrokeConfig,
    TextSegment,
)
from .snapshot import ElementSnapshot, PseudoSnapshot
from .styles import (
    Style,
    clips_content,
    css,
    has_background_color,
    is_absolutely_positioned,
    is_fixed_or_sticky,
    is_italic,
    is_visible,
    object_fit_scale_mode,
    paddings,
    parse_flex_grow,
    parse_font_size,
    parse_text_decoration,
    parse_z_index,
    resolve_corner_radius,
    resolve_effects,
    resolve_fills,
    resolve_image_url,
    resolve_opacity,
    resolve_stroke,
    resolve_text_effects,
    resolve_text_style,
    text_color,
    text_decoration_value,
)
from .utils import (
    BLOCK_DISPLAYS,
    IMAGE_TAGS,
    NON_VISUAL_TAGS,
    SVG_PRIMITIVE_TYPES,
    TABLE_STRUCTURE_TAGS,
    TEXT_TAGS,
    parse_length,
    truncate_label,
)
from .values import parse_font_weight, parse_rotation

# Native form control look used when the page does not style it
CONTROL_FILL = RGBA(1, 1, 1, 1)
CONTROL_STROKE = RGBA(0.796, 0.835, 0.882, 1)
CONTROL_STROKE_WEIGHT = 1.5
CONTROL_MIN_SIZE = 16
CONTROL_DEFAULT_SIZE = 20
CHECKBOX_RADIUS = 4.0

# Flex children are widened to max-width only up to this factor
MAX_WIDTH_STRETCH = 3

ARIA_LABEL_LIMIT = 30

EMPTY_CONTENT_VALUES = frozenset(["", "none", "normal", '""', "''"])

_CSS_ESCAPE_RE = re.compile(r"\\([0-9a-fA-F]{1,6})\s?")
_SVG_OPEN_RE = re.compile(r"<svg\b", re.IGNORECASE)
_CURRENT_COLOR_RE = re.compile(r"currentColor", re.IGNORECASE)


@dataclass
class BuildReport:
    """Diagnostics collected while building one tree."""

    skipped: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    wrapper_count: int = 0
    rasterized_icons: int = 0

    def skip(self, reason: str) -> None:
        """Count one skipped element."""
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    @property
    def total_skipped(self) -> int:
        """Total number of skipped elements."""
        return sum(self.skipped.values())

    @property
    def has_warnings(self) -> bool:
        """Check if any warnings were recorded."""
        return len(self.warnings) > 0


def decode_css_content(content: str) -> str:
    """Turn a computed ``content`` value into the text it renders.

    Surrounding quotes are stripped and ``\\HHHH`` escapes decoded.
    """
    text = re.sub(r"^[\"']|[\"']$", "", content)

    def _decode(match: re.Match) -> str:
        code_point = int(match.group(1), 16)
        if code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
            return "\ufffd"
        return chr(code_point)

    return _CSS_ESCAPE_RE.sub(_decode, text)


def sanitize_svg(markup: str, element: ElementSnapshot) -> str:
    """Make captured SVG markup self-contained.

    currentColor is replaced by the element's text color, and missing
    width, height and xmlns attributes are added to the root tag.
    """
    color = css(element.style, "color") or "black"
    result = _CURRENT_COLOR_RE.sub(color, markup)

    if element.get_attribute("width") is None:
        result = _SVG_OPEN_RE.sub(f'<svg width="{element.box.width:g}"', result, count=1)
    if element.get_attribute("height") is None:
        result = _SVG_OPEN_RE.sub(f'<svg height="{element.box.height:g}"', result, count=1)
    if "xmlns=" not in result:
        result = _SVG_OPEN_RE.sub('<svg xmlns="http://www.w3.org/2000/svg"', result, count=1)
    return result


def generate_layer_name(element: ElementSnapshot) -> str:
    """Name a layer after id, first class, aria-label, text preview or tag."""
    if element.id:
        return f"{element.tag}#{element.id}"
    if element.class_name:
        classes = element.class_name.split()
        if classes:
            return f"{element.tag}.{classes[0]}"
    aria_label = element.get_attribute("aria-label")
    if aria_label:
        return aria_label[:ARIA_LABEL_LIMIT]
    text = element.inner_text()
    if text:
        return truncate_label(text)
    return element.tag


def has_block_children(element: ElementSnapshot) -> bool:
    return any(
        css(child.style, "display") in BLOCK_DISPLAYS for child in element.element_children
    )


def is_text_only_element(element: ElementSnapshot) -> bool:
    """Check if an element has text but no child elements."""
    return not element.element_children and bool(element.inner_text())


def is_round_shape(element: ElementSnapshot, square_tolerance: float, pill_radius: float) -> bool:
    """Check for a 50% or pill radius on a near-square box."""
    radius = css(element.style, "border-radius") or css(element.style, "border-top-left-radius")
    if not radius:
        return False
    if radius.endswith("%"):
        round_radius = radius == "50%"
    else:
        round_radius = parse_length(radius) >= pill_radius
    return round_radius and abs(element.box.width - element.box.height) < square_tolerance


def classify_element(element: ElementSnapshot, config: CaptureConfig) -> LayerType:
    """Pick the layer type for an element (first match wins)."""
    tag = element.tag
    style = element.style
    classify = config.classify

    if tag in IMAGE_TAGS:
        return "RECTANGLE"
    if tag == "svg":
        return "FRAME"
    if tag in SVG_PRIMITIVE_TYPES:
        return SVG_PRIMITIVE_TYPES[tag]
    if tag in TABLE_STRUCTURE_TAGS:
        return "FRAME"
    if is_round_shape(element, classify.square_tolerance, classify.pill_radius):
        return "ELLIPSE"

    # Text layers cannot carry a background, so those stay frames
    if not has_background_color(style) and (tag in TEXT_TAGS or is_text_only_element(element)):
        if has_block_children(element):
            return "FRAME"
        if any(pad > classify.text_padding_threshold for pad in paddings(style)):
            return "FRAME"
        # Text that only comes from ::before/::after stays a frame
        if tag in TEXT_TAGS or element.has_real_text:
            return "TEXT"

    return "FRAME"


def _style_differs(parent: Style, child: Style) -> dict[str, bool]:
    return {
        "color": text_color(child) != text_color(parent),
        "font_weight": parse_font_weight(css(child, "font-weight"))
        != parse_font_weight(css(parent, "font-weight")),
        "italic": is_italic(css(child, "font-style")) != is_italic(css(parent, "font-style")),
        "font_size": parse_font_size(css(child, "font-size"))
        != parse_font_size(css(parent, "font-size")),
        "text_decoration": parse_text_decoration(text_decoration_value(child))
        != parse_text_decoration(text_decoration_value(parent)),
    }


def capture_text_segments(
    element: ElementSnapshot, include_hidden: bool = False
) -> list[TextSegment] | None:
    """Record styled ranges of inline children whose style differs from the element.

    Offsets index into ``element.inner_text(include_hidden)``; a line break
    counts as one character. Returns None when no range differs.
    """
    if not element.element_children:
        return None

    pieces = element.text_pieces(include_hidden)

    raw = "".join(text for text, _ in pieces)
    characters = raw.strip()
    lead = len(raw) - len(raw.lstrip())

    segments: list[TextSegment] = []
    offset = 0
    for text, owner in pieces:
        start = offset - lead
        offset += len(text)
        if owner is None or not text:
            continue

        differs = _style_differs(element.style, owner.style)
        if not any(differs.values()):
            continue

        start = max(0, start)
        end = min(len(characters), offset - lead)
        if end <= start:
            continue

        child_style = owner.style
        segments.append(
            TextSegment(
                text=characters[start:end],
                start=start,
                end=end,
                color=text_color(child_style) if differs["color"] else None,
                font_weight=parse_font_weight(css(child_style, "font-weight"))
                if differs["font_weight"]
                else None,
                italic=is_italic(css(child_style, "font-style")) if differs["italic"] else None,
                font_size=parse_font_size(css(child_style, "font-size"))
                if differs["font_size"]
                else None,
                text_decoration=parse_text_decoration(text_decoration_value(child_style))
                if differs["text_decoration"]
                else None,
            )
        )

    return segments or None


class LayerBuilder:
    """Turns snapshot elements into LayerNodes.

    A builder holds only its configuration and collaborators; the report
    accumulates diagnostics across calls.
    """

    def __init__(
        self,
        config: CaptureConfig,
        rasterizer: IconRasterizer | None = None,
        base_url: str | None = None,
    ):
        self.config = config
        self.rasterizer = rasterizer
        self.base_url = base_url
        self.report = BuildReport()

    def build_layer(self, element: ElementSnapshot, depth: int = 0) -> LayerNode | None:
        """Build a layer for an element and its descendants.

        The returned layer keeps the element's own coordinates; descendants
        are relative to their parent.

        Returns:
            LayerNode, or None if the element produces no layer.
        """
        return self._build(element, depth, 0.0, 0.0, None)

    def _should_skip(self, element: ElementSnapshot, depth: int) -> str | None:
        if depth > self.config.max_depth:
            return "max_depth"
        if element.tag in NON_VISUAL_TAGS:
            return "non_visual"
        if not self.config.include_hidden and not is_visible(element.style):
            return "hidden"
        if element.box.area == 0:
            return "zero_area"
        return None

    def _build(
        self,
        element: ElementSnapshot,
        depth: int,
        origin_x: float,
        origin_y: float,
        parent_style: Style | None,
    ) -> LayerNode | None:
        reason = self._should_skip(element, depth)
        if reason is not None:
            self.report.skip(reason)
            return None

        style = element.style
        box = element.box
        tolerances = self.config.layout
        layer_type = classify_element(element, self.config)
        pinned = is_fixed_or_sticky(style)
        z_index = parse_z_index(style)

        layer = LayerNode(
            type=layer_type,
            name=generate_layer_name(element),
            x=box.x - origin_x,
            y=box.y - origin_y,
            width=box.width,
            height=box.height,
            fills=resolve_fills(style, self.base_url),
            stroke=resolve_stroke(style),
            effects=resolve_effects(style),
            corner_radius=resolve_corner_radius(style),
            opacity=resolve_opacity(style),
            visible=is_visible(style),
            clips_content=clips_content(style),
            is_absolutely_positioned=is_absolutely_positioned(style) or pinned,
            z_index=z_index if z_index != 0 else None,
            flex_grow=parse_flex_grow(style),
            rotation=parse_rotation(css(style, "transform")),
            source=SourceElement(
                tag_name=element.tag, id=element.id, class_name=element.class_name
            ),
        )
        if pinned:
            pin_fixed_layer(layer, box.y, z_index, tolerances)

        self._apply_form_control_defaults(element, layer)
        self._widen_flex_child(style, parent_style, layer)

        if layer_type == "TEXT":
            characters = element.inner_text(include_hidden=not layer.visible)
            if characters:
                layer.characters = characters
                layer.text_style = resolve_text_style(style)
                layer.text_segments = capture_text_segments(
                    element, include_hidden=not layer.visible
                )
                layer.effects = layer.effects + resolve_text_effects(style)
                infer_text_auto_resize(layer, tolerances)

        if element.tag == "svg" and element.svg_markup:
            layer.svg_markup = sanitize_svg(element.svg_markup, element)
            return layer

        if element.tag in IMAGE_TAGS and self.config.capture_images:
            src = element.get_attribute("src")
            if src:
                layer.image_url = resolve_image_url(src, self.base_url)
                layer.fills = [
                    ImagePaint(
                        image_url=layer.image_url,
                        scale_mode=object_fit_scale_mode(css(style, "object-fit")),
                    )
                ]

        if layer_type == "FRAME":
            layer.auto_layout = infer_auto_layout(style)

        if layer_type != "TEXT":
            layer.children = self._build_children(element, layer, depth)

        return layer

    def _apply_form_control_defaults(self, element: ElementSnapshot, layer: LayerNode) -> None:
        """Give unstyled native checkboxes and radios a visible box."""
        if element.tag != "input":
            return
        input_type = (element.get_attribute("type") or "").lower()
        if input_type not in ("checkbox", "radio"):
            return
        if css(element.style, "appearance") == "none" or layer.fills or layer.stroke:
            return

        layer.fills = [SolidPaint(color=CONTROL_FILL)]
        layer.stroke = StrokeConfig(color=CONTROL_STROKE, weight=CONTROL_STROKE_WEIGHT)
        if input_type == "radio":
            layer.corner_radius = min(layer.width, layer.height) / 2
        else:
            layer.corner_radius = CHECKBOX_RADIUS
        if layer.width < CONTROL_MIN_SIZE:
            layer.width = CONTROL_DEFAULT_SIZE
        if layer.height < CONTROL_MIN_SIZE:
            layer.height = CONTROL_DEFAULT_SIZE

    def _widen_flex_child(
        self, style: Style, parent_style: Style | None, layer: LayerNode
    ) -> None:
        """Use max-width for flex children that shrank to their content."""
        if parent_style is None or css(parent_style, "display") not in ("flex", "inline-flex"):
            return
        max_width = css(style, "max-width")
        if not max_width or max_width == "none":
            return
        value = parse_length(max_width, 0.0)
        if layer.width < value <= layer.width * MAX_WIDTH_STRETCH:
            layer.width = value

    def _build_children(
        self, element: ElementSnapshot, layer: LayerNode, depth: int
    ) -> list[LayerNode]:
        style = element.style
        box = element.box
        tolerances = self.config.layout

        fixed_offset = fixed_top_offset(element.element_children, tolerances)
        children: list[LayerNode] = []
        for child in element.element_children:
            child_layer = self._build(child, depth + 1, box.x, box.y, style)
            if child_layer is not None:
                rebase_flow_child(child_layer, fixed_offset, tolerances)
                children.append(child_layer)

        text_child = self._build_direct_text(element, layer, has_children=bool(children))
        if text_child is not None:
            children.append(text_child)

        before = self._build_pseudo(element, element.pseudo_before, "before")
        if before is not None:
            children.insert(0, before)
        after = self._build_pseudo(element, element.pseudo_after, "after")
        if after is not None:
            children.append(after)

        # Later children paint on top; the sort is stable so ties keep document order
        children.sort(key=lambda c: c.effective_z_index)

        if layer.auto_layout is not None:
            inference = infer_item_spacing(layer, children, is_flex_or_grid(style), tolerances)
            children = inference.children
            for wrapper in inference.wrappers:
                assign_sizing_hints(wrapper, tolerances)
            self.report.wrapper_count += len(inference.wrappers)

            if detect_cross_axis_centering(layer, children, tolerances):
                layer.auto_layout.counter_align = "CENTER"

        layer.children = children
        assign_sizing_hints(layer, tolerances)
        return children

    def _build_direct_text(
        self, element: ElementSnapshot, layer: LayerNode, has_children: bool
    ) -> LayerNode | None:
        """Synthesize a text child for text owned directly by a frame."""
        style = element.style
        include_hidden = not layer.visible
        text = element.direct_text() if has_children else element.inner_text(include_hidden)
        if not text:
            return None

        pad_top, pad_right, pad_bottom, pad_left = paddings(style)
        content_width = element.box.width - pad_left - pad_right
        content_height = element.box.height - pad_top - pad_bottom

        text_x = 0.0
        text_y = 0.0
        text_width = content_width
        text_height = content_height
        if has_children:
            # Mixed content: place the text where its first run rendered
            for run in element.text_runs:
                if not run.is_blank and run.box is not None:
                    text_width = run.box.width or content_width
                    text_height = run.box.height or content_height
                    text_x = run.box.x - element.box.x - pad_left
                    text_y = run.box.y - element.box.y - pad_top
                    break
        else:
            layer.auto_layout = text_only_auto_layout(style, layer.auto_layout)

        text_layer = LayerNode(
            type="TEXT",
            name=truncate_label(text),
            x=text_x,
            y=text_y,
            width=max(1.0, text_width),
            height=max(1.0, text_height),
            effects=list(resolve_text_effects(style)),
            characters=text,
            text_style=resolve_text_style(style),
            text_segments=None
            if has_children
            else capture_text_segments(element, include_hidden),
        )
        infer_text_auto_resize(text_layer, self.config.layout)
        return text_layer

    def _build_pseudo(
        self, element: ElementSnapshot, pseudo: PseudoSnapshot | None, which: str
    ) -> LayerNode | None:
        """Build a layer for a ::before or ::after pseudo-element."""
        if pseudo is None:
            return None
        style = pseudo.style
        content = css(style, "content")
        if content in EMPTY_CONTENT_VALUES:
            return None
        if css(style, "display") == "none" or css(style, "visibility") == "hidden":
            return None

        text = decode_css_content(content)
        is_text = len(text) > 0 and not content.startswith("url(")
        z_index = parse_z_index(style)

        if is_text and self.config.is_icon_font(css(style, "font-family")):
            icon = self._rasterize_icon(element, style, text, which)
            if icon is not None:
                icon.z_index = z_index or None
                return icon

        fills = resolve_fills(style, self.base_url)
        width = parse_length(css(style, "width"))
        height = parse_length(css(style, "height"))
        if width == 0 and height == 0 and not is_text and not fills:
            return None

        layer = LayerNode(
            type="TEXT" if is_text else "FRAME",
            name=which,
            x=parse_length(css(style, "left")),
            y=parse_length(css(style, "top")),
            width=width or (100.0 if is_text else 20.0),
            height=height or 20.0,
            fills=fills,
            stroke=resolve_stroke(style),
            effects=resolve_effects(style),
            corner_radius=resolve_corner_radius(style),
            opacity=resolve_opacity(style),
            is_absolutely_positioned=is_absolutely_positioned(style),
            z_index=z_index or None,
            source=SourceElement(tag_name=f"::{which}"),
        )
        if is_text:
            layer.characters = text
            layer.text_style = resolve_text_style(style)
            infer_text_auto_resize(layer, self.config.layout)
        return layer

    def _rasterize_icon(
        self, element: ElementSnapshot, style: Style, glyph: str, which: str
    ) -> LayerNode | None:
        """Rasterize an icon-font glyph; None means fall back to text."""
        label = f"{generate_layer_name(element)}::{which}"
        if self.rasterizer is None:
            self.report.warnings.append(f"{label}: icon glyph kept as text (no rasterizer)")
            return None

        size = parse_font_size(css(style, "font-size"))
        font = IconFont(
            family=css(style, "font-family"),
            size=size,
            weight=parse_font_weight(css(style, "font-weight")),
            color=text_color(style),
            width=element.box.width or size,
            height=element.box.height or size,
        )
        try:
            png = self.rasterizer.rasterize(glyph, font)
        except (OSError, RuntimeError) as e:
            self.report.warnings.append(f"{label}: icon rasterization failed: {e}")
            return None
        if not png:
            self.report.warnings.append(f"{label}: icon glyph rendered blank, kept as text")
            return None

        self.report.rasterized_icons += 1
        return LayerNode(
            type="RECTANGLE",
            name=which,
            x=0.0,
            y=0.0,
            width=font.width,
            height=font.height,
            fills=[ImagePaint(image_url=png_data_url(png), scale_mode="FILL")],
            opacity=resolve_opacity(style),
            source=SourceElement(tag_name=f"::{which}"),
        )


def build_layer_tree(
    root: ElementSnapshot,
    config: CaptureConfig | None = None,
    rasterizer: IconRasterizer | None = None,
    base_url: str | None = None,
) -> tuple[LayerNode | None, BuildReport]:
    """Build the layer tree for a snapshot root.

    Args:
        root: Root element of the snapshot.
        config: Capture options; defaults when None.
        rasterizer: Icon rasterizer; icon glyphs stay text without one.
        base_url: Base for resolving relative image URLs.

    Returns:
        Tuple of (root layer or None, build report).
    """
    builder = LayerBuilder(config or CaptureConfig(), rasterizer, base_url)
    layer = builder.build_layer(root)
    return layer, builder.report
