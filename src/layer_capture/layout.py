"""Auto-layout inference from CSS display properties and measured geometry."""

from dataclasses import dataclass, field, replace
from collections.abc import Iterable

from .config import LayoutTolerances
from .model import AutoLayoutConfig, CounterAlign, LayerNode, PrimaryAlign
from .snapshot import ElementSnapshot
from .styles import Style, css, is_fixed_or_sticky, paddings
from .utils import parse_length
from .values import parse_gap

FLEX_DISPLAYS = ("flex", "inline-flex")
GRID_DISPLAYS = ("grid", "inline-grid")
BLOCK_LAYOUT_DISPLAYS = (
    "block",
    "list-item",
    "flow-root",
    "table",
    "table-row-group",
    "table-row",
)
INLINE_LAYOUT_DISPLAYS = ("inline-block", "inline", "table-cell")

# Width above which a tall text layer counts as word-wrapped
MIN_WRAPPING_TEXT_WIDTH = 80


def parse_justify_content(justify: str) -> PrimaryAlign:
    if justify == "center":
        return "CENTER"
    if justify in ("flex-end", "end"):
        return "MAX"
    if justify in ("space-between", "space-around", "space-evenly"):
        return "SPACE_BETWEEN"
    return "MIN"


def parse_align_items(align: str) -> CounterAlign:
    """Map align-items to a counter-axis alignment.

    stretch and normal map to MIN; stretching is reported separately
    through ``counter_axis_stretch``.
    """
    if align == "center":
        return "CENTER"
    if align in ("flex-end", "end"):
        return "MAX"
    if align == "baseline":
        return "BASELINE"
    return "MIN"


def parse_grid_justify_content(justify: str) -> PrimaryAlign:
    """Grid justify-content; space-around and space-evenly have no equivalent."""
    if justify in ("space-around", "space-evenly"):
        return "MIN"
    return parse_justify_content(justify)


def count_grid_columns(template: str) -> int:
    if not template or template == "none":
        return 1
    return len([track for track in template.split() if track != "none"]) or 1


def _grid_auto_layout(style: Style) -> AutoLayoutConfig:
    is_horizontal = count_grid_columns(css(style, "grid-template-columns")) > 1
    gap = parse_length(css(style, "gap"))
    if is_horizontal:
        spacing = parse_length(css(style, "column-gap")) or gap
    else:
        spacing = parse_length(css(style, "row-gap")) or gap

    justify = css(style, "justify-content") or css(style, "justify-items")
    align_content = css(style, "align-content")
    align = (
        align_content
        if align_content not in ("", "normal", "stretch")
        else css(style, "align-items")
    )

    top, right, bottom, left = paddings(style)
    return AutoLayoutConfig(
        mode="HORIZONTAL" if is_horizontal else "VERTICAL",
        primary_align=parse_grid_justify_content(justify),
        counter_align=parse_align_items(align),
        padding_top=top,
        padding_right=right,
        padding_bottom=bottom,
        padding_left=left,
        item_spacing=spacing,
        wrap=is_horizontal,
    )


def infer_auto_layout(style: Style) -> AutoLayoutConfig | None:
    """Select an auto-layout for a container from its display properties.

    Args:
        style: Computed style of the container.

    Returns:
        AutoLayoutConfig, or None for absolutely positioned elements and
        display values that have no layout equivalent.
    """
    if css(style, "position") in ("absolute", "fixed"):
        return None

    display = css(style, "display")
    if display in GRID_DISPLAYS:
        return _grid_auto_layout(style)

    top, right, bottom, left = paddings(style)

    if display in FLEX_DISPLAYS:
        direction = css(style, "flex-direction")
        align_items = css(style, "align-items")
        stretch = align_items in ("stretch", "normal")
        return AutoLayoutConfig(
            mode="VERTICAL" if direction in ("column", "column-reverse") else "HORIZONTAL",
            primary_align=parse_justify_content(css(style, "justify-content")),
            counter_align=parse_align_items(align_items),
            padding_top=top,
            padding_right=right,
            padding_bottom=bottom,
            padding_left=left,
            item_spacing=parse_gap(css(style, "gap")),
            wrap=css(style, "flex-wrap") in ("wrap", "wrap-reverse"),
            counter_axis_stretch=True if stretch else None,
        )

    if display in BLOCK_LAYOUT_DISPLAYS:
        # Block flow has no gap; spacing is measured after the children exist
        return AutoLayoutConfig(
            mode="VERTICAL",
            primary_align="MIN",
            counter_align="CENTER" if css(style, "text-align") == "center" else "MIN",
            padding_top=top,
            padding_right=right,
            padding_bottom=bottom,
            padding_left=left,
        )

    if display in INLINE_LAYOUT_DISPLAYS:
        return AutoLayoutConfig(
            mode="HORIZONTAL",
            primary_align="MIN",
            counter_align="CENTER",
            padding_top=top,
            padding_right=right,
            padding_bottom=bottom,
            padding_left=left,
        )

    return None


def is_flex_or_grid(style: Style) -> bool:
    """Check if the container is a flex or grid container (has a CSS gap)."""
    display = css(style, "display")
    return display in FLEX_DISPLAYS or display in GRID_DISPLAYS


def text_only_auto_layout(
    style: Style, existing: AutoLayoutConfig | None
) -> AutoLayoutConfig:
    """Auto-layout for a frame whose only content is its own text.

    Text is laid out horizontally, centered on the cross axis and aligned
    along the primary axis by text-align. Existing paddings are kept.
    """
    text_align = css(style, "text-align")
    if text_align == "center":
        primary: PrimaryAlign = "CENTER"
    elif text_align == "right":
        primary = "MAX"
    else:
        primary = "MIN"

    if existing is not None:
        top, right, bottom, left = (
            existing.padding_top,
            existing.padding_right,
            existing.padding_bottom,
            existing.padding_left,
        )
    else:
        top, right, bottom, left = paddings(style)

    return AutoLayoutConfig(
        mode="HORIZONTAL",
        primary_align=primary,
        counter_align="CENTER",
        padding_top=top,
        padding_right=right,
        padding_bottom=bottom,
        padding_left=left,
        item_spacing=0.0,
        primary_sizing="FIXED",
        counter_sizing="FIXED",
    )


def flow_children(children: Iterable[LayerNode]) -> list[LayerNode]:
    """Children that take part in auto-layout positioning."""
    return [child for child in children if not child.is_absolutely_positioned]


def measure_gaps(children: list[LayerNode], vertical: bool) -> list[int]:
    """Gaps between consecutive children along the primary axis.

    Overlaps count as 0. Values are rounded to whole units.
    """
    gaps: list[int] = []
    for curr, next_ in zip(children, children[1:]):
        if vertical:
            gap = next_.y - (curr.y + curr.height)
        else:
            gap = next_.x - (curr.x + curr.width)
        gaps.append(round(max(0.0, gap)))
    return gaps


@dataclass
class GapInference:
    """Result of the gap-inference pass over one container."""

    children: list[LayerNode]
    gaps: list[int] = field(default_factory=list)
    wrappers: list[LayerNode] = field(default_factory=list)


def make_spacing_wrapper(
    child: LayerNode, extra: float, parent_layout: AutoLayoutConfig
) -> LayerNode:
    """Wrap a child in a transparent frame whose trailing padding adds extra space."""
    vertical = parent_layout.is_vertical
    return LayerNode(
        type="FRAME",
        name=child.name,
        x=child.x,
        y=child.y,
        width=child.width + (0 if vertical else extra),
        height=child.height + (extra if vertical else 0),
        auto_layout=AutoLayoutConfig(
            mode=parent_layout.mode,
            primary_align="MIN",
            counter_align=parent_layout.counter_align,
            padding_right=0.0 if vertical else extra,
            padding_bottom=extra if vertical else 0.0,
        ),
        children=[replace(child, x=0.0, y=0.0)],
    )


def infer_item_spacing(
    layer: LayerNode,
    children: list[LayerNode],
    from_flex_or_grid: bool,
    tolerances: LayoutTolerances,
) -> GapInference:
    """Derive a single item spacing from measured child positions.

    Flex and grid containers keep their CSS gap unless the measured average
    differs from it by more than the gap tolerance. Block containers use the
    average when gaps are uniform; otherwise the minimum gap becomes the
    spacing and every flow child whose trailing gap is larger gets wrapped
    in a frame that pads out the difference.

    Args:
        layer: Container layer; its auto_layout.item_spacing is updated.
        children: Built children of the container, in paint order.
        from_flex_or_grid: Whether the container is a flex or grid container.
        tolerances: Layout thresholds.

    Returns:
        GapInference with the (possibly rewritten) children list.
    """
    auto_layout = layer.auto_layout
    result = GapInference(children=list(children))
    if auto_layout is None or len(children) < 2:
        return result

    flow = flow_children(children)
    if len(flow) < 2:
        return result

    gaps = measure_gaps(flow, auto_layout.is_vertical)
    result.gaps = gaps
    average = round(sum(gaps) / len(gaps))

    if from_flex_or_grid:
        if abs(average - auto_layout.item_spacing) > tolerances.gap_tolerance:
            auto_layout.item_spacing = average
        return result

    min_gap = min(gaps)
    max_gap = max(gaps)
    if max_gap - min_gap <= tolerances.gap_tolerance:
        auto_layout.item_spacing = average
        return result

    auto_layout.item_spacing = min_gap
    trailing_gaps = {id(child): gap for child, gap in zip(flow, gaps)}
    for index, child in enumerate(result.children):
        gap = trailing_gaps.get(id(child))
        if gap is not None and gap > min_gap + tolerances.gap_tolerance:
            wrapper = make_spacing_wrapper(child, gap - min_gap, auto_layout)
            result.children[index] = wrapper
            result.wrappers.append(wrapper)

    return result


def detect_cross_axis_centering(
    layer: LayerNode, children: list[LayerNode], tolerances: LayoutTolerances
) -> bool:
    """Check if most narrower flow children sit centered in a vertical layout.

    Children that fill the content width do not vote. Centering wins with
    a strict majority of the remaining children.
    """
    auto_layout = layer.auto_layout
    if auto_layout is None or not auto_layout.is_vertical:
        return False

    flow = flow_children(children)
    if not flow:
        return False

    pad_left = auto_layout.padding_left
    content_width = layer.width - pad_left - auto_layout.padding_right

    centered = 0
    candidates = 0
    for child in flow:
        if content_width > 0 and child.width < content_width - tolerances.full_width_tolerance:
            candidates += 1
            expected_x = pad_left + (content_width - child.width) / 2
            if abs(child.x - expected_x) < tolerances.centering_tolerance:
                centered += 1

    return candidates > 0 and centered > candidates / 2


def fixed_top_offset(
    elements: Iterable[ElementSnapshot], tolerances: LayoutTolerances
) -> float:
    """Height of the tallest fixed/sticky element anchored near the top.

    Flow siblings are shifted up by this amount once the fixed element is
    taken out of flow.
    """
    offset = 0.0
    for element in elements:
        if is_fixed_or_sticky(element.style) and element.box.y < tolerances.fixed_anchor_threshold:
            offset = max(offset, element.box.height)
    return offset


def rebase_flow_child(layer: LayerNode, offset: float, tolerances: LayoutTolerances) -> None:
    """Move a flow child up to close the space left by a fixed header."""
    if layer.is_absolutely_positioned or offset <= 0:
        return
    if abs(layer.y - offset) < tolerances.fixed_snap_tolerance:
        layer.y = 0.0
    elif layer.y > offset:
        layer.y -= offset


def pin_fixed_layer(
    layer: LayerNode, anchor_y: float, z_index: int, tolerances: LayoutTolerances
) -> None:
    """Take a fixed/sticky layer out of flow and stack it on top.

    Only layers anchored near the top (anchor_y under the anchor threshold)
    move to y=0; footers and other lower bars keep their position.
    """
    if anchor_y < tolerances.fixed_anchor_threshold:
        layer.y = 0.0
    layer.is_absolutely_positioned = True
    layer.z_index = max(z_index, tolerances.fixed_z_index)


def infer_text_auto_resize(layer: LayerNode, tolerances: LayoutTolerances) -> None:
    """Decide how a text layer resizes.

    Single-line text and text that only breaks at explicit newlines grows
    in both directions; word-wrapped text keeps its width.
    """
    characters = layer.characters or ""
    style = layer.text_style
    font_size = style.font_size if style else 16.0
    has_line_breaks = "\n" in characters
    is_multiline = has_line_breaks or (
        layer.height > font_size * tolerances.multiline_ratio
        and layer.width > MIN_WRAPPING_TEXT_WIDTH
    )

    if not is_multiline:
        layer.text_auto_resize = "WIDTH_AND_HEIGHT"
        return

    if style is not None and isinstance(style.line_height, (int, float)) and style.line_height > 0:
        line_height = float(style.line_height)
    else:
        line_height = font_size * 1.2
    measured_lines = max(1, round(layer.height / line_height))
    explicit_lines = characters.count("\n") + 1

    if has_line_breaks and explicit_lines >= measured_lines:
        layer.text_auto_resize = "WIDTH_AND_HEIGHT"
    else:
        layer.text_auto_resize = "HEIGHT"


def assign_sizing_hints(layer: LayerNode, tolerances: LayoutTolerances) -> None:
    """Set FILL/HUG/FIXED sizing on each flow child of an auto-layout frame."""
    auto_layout = layer.auto_layout
    if auto_layout is None:
        return

    flow = flow_children(layer.children)
    grow_values = {child.flex_grow for child in flow if child.flex_grow}
    uniform_grow = len(grow_values) <= 1
    stretch = bool(auto_layout.counter_axis_stretch)
    content_width = layer.width - auto_layout.padding_left - auto_layout.padding_right

    for child in flow:
        grows = bool(child.flex_grow)
        hug = child.type == "TEXT" and child.text_auto_resize == "WIDTH_AND_HEIGHT"
        default = "HUG" if hug else "FIXED"

        if auto_layout.is_vertical:
            fills_width = content_width > 0 and child.width > content_width * tolerances.full_width_ratio
            child.layout_sizing_horizontal = "FILL" if (stretch or fills_width) else default
            child.layout_sizing_vertical = "FILL" if grows else default
        else:
            child.layout_sizing_horizontal = "FILL" if (grows and uniform_grow) else default
            child.layout_sizing_vertical = "FILL" if stretch else default
