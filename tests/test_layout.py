"""Tests for layer_capture.layout module."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layer_capture.config import LayoutTolerances
from layer_capture.layout import (
    assign_sizing_hints,
    count_grid_columns,
    detect_cross_axis_centering,
    fixed_top_offset,
    infer_auto_layout,
    infer_item_spacing,
    infer_text_auto_resize,
    measure_gaps,
    pin_fixed_layer,
    rebase_flow_child,
    text_only_auto_layout,
)
from layer_capture.model import AutoLayoutConfig, LayerNode, TextStyle, RGBA
from layer_capture.snapshot import Box, ElementSnapshot


def frame(x=0.0, y=0.0, width=100.0, height=10.0, **kwargs) -> LayerNode:
    return LayerNode(type="FRAME", name="item", x=x, y=y, width=width, height=height, **kwargs)


def column(width=100.0, height=100.0, **layout_kwargs) -> LayerNode:
    return frame(
        width=width,
        height=height,
        auto_layout=AutoLayoutConfig(mode="VERTICAL", **layout_kwargs),
    )


def text_layer(characters: str, width: float, height: float, font_size=16.0) -> LayerNode:
    style = TextStyle(
        font_family="Inter",
        font_weight=400,
        italic=False,
        font_size=font_size,
        line_height=font_size * 1.2,
        letter_spacing=0.0,
        text_align="LEFT",
        text_decoration="NONE",
        text_case="ORIGINAL",
        color=RGBA(0, 0, 0),
    )
    return LayerNode(
        type="TEXT",
        name=characters,
        x=0,
        y=0,
        width=width,
        height=height,
        characters=characters,
        text_style=style,
    )


class TestInferAutoLayout:
    """Tests for infer_auto_layout function."""

    def test_flex_row(self):
        auto_layout = infer_auto_layout(
            {
                "display": "flex",
                "justify-content": "space-between",
                "align-items": "center",
                "gap": "12px",
                "padding-left": "8px",
            }
        )
        assert auto_layout.mode == "HORIZONTAL"
        assert auto_layout.primary_align == "SPACE_BETWEEN"
        assert auto_layout.counter_align == "CENTER"
        assert auto_layout.item_spacing == 12
        assert auto_layout.padding_left == 8
        assert auto_layout.wrap is False
        assert auto_layout.counter_axis_stretch is None

    def test_flex_column_stretch(self):
        auto_layout = infer_auto_layout(
            {"display": "flex", "flex-direction": "column", "align-items": "normal",
             "flex-wrap": "wrap"}
        )
        assert auto_layout.mode == "VERTICAL"
        assert auto_layout.counter_align == "MIN"
        assert auto_layout.counter_axis_stretch is True
        assert auto_layout.wrap is True

    def test_flex_end(self):
        auto_layout = infer_auto_layout(
            {"display": "inline-flex", "justify-content": "flex-end", "align-items": "baseline"}
        )
        assert auto_layout.primary_align == "MAX"
        assert auto_layout.counter_align == "BASELINE"

    def test_grid_columns(self):
        auto_layout = infer_auto_layout(
            {
                "display": "grid",
                "grid-template-columns": "100px 100px 100px",
                "column-gap": "16px",
                "row-gap": "4px",
            }
        )
        assert auto_layout.mode == "HORIZONTAL"
        assert auto_layout.item_spacing == 16
        assert auto_layout.wrap is True

    def test_grid_single_column(self):
        auto_layout = infer_auto_layout(
            {"display": "grid", "grid-template-columns": "none", "row-gap": "6px",
             "justify-content": "space-evenly"}
        )
        assert auto_layout.mode == "VERTICAL"
        assert auto_layout.item_spacing == 6
        assert auto_layout.primary_align == "MIN"
        assert auto_layout.wrap is False

    def test_block(self):
        auto_layout = infer_auto_layout({"display": "block", "padding-top": "4px"})
        assert auto_layout.mode == "VERTICAL"
        assert auto_layout.counter_align == "MIN"
        assert auto_layout.item_spacing == 0
        assert auto_layout.padding_top == 4

    def test_block_text_align_center(self):
        auto_layout = infer_auto_layout({"display": "block", "text-align": "center"})
        assert auto_layout.counter_align == "CENTER"

    def test_inline_block(self):
        auto_layout = infer_auto_layout({"display": "inline-block"})
        assert auto_layout.mode == "HORIZONTAL"
        assert auto_layout.counter_align == "CENTER"

    def test_absolute_has_no_layout(self):
        assert infer_auto_layout({"display": "flex", "position": "absolute"}) is None

    def test_unknown_display(self):
        assert infer_auto_layout({"display": "contents"}) is None

    def test_count_grid_columns(self):
        assert count_grid_columns("1fr 1fr") == 2
        assert count_grid_columns("") == 1


class TestTextOnlyAutoLayout:
    """Tests for text_only_auto_layout function."""

    def test_center(self):
        auto_layout = text_only_auto_layout(
            {"text-align": "center", "padding-left": "6px"}, None
        )
        assert auto_layout.mode == "HORIZONTAL"
        assert auto_layout.primary_align == "CENTER"
        assert auto_layout.counter_align == "CENTER"
        assert auto_layout.padding_left == 6
        assert auto_layout.primary_sizing == "FIXED"

    def test_keeps_existing_paddings(self):
        existing = AutoLayoutConfig(mode="VERTICAL", padding_top=3, padding_right=5)
        auto_layout = text_only_auto_layout({"text-align": "right"}, existing)
        assert auto_layout.primary_align == "MAX"
        assert auto_layout.padding_top == 3
        assert auto_layout.padding_right == 5


class TestMeasureGaps:
    """Tests for measure_gaps function."""

    def test_vertical(self):
        children = [frame(y=0), frame(y=20), frame(y=45)]
        assert measure_gaps(children, vertical=True) == [10, 15]

    def test_overlap_is_zero(self):
        children = [frame(x=0, width=50), frame(x=40, width=50)]
        assert measure_gaps(children, vertical=False) == [0]


class TestInferItemSpacing:
    """Tests for infer_item_spacing function."""

    def test_uniform_block_gaps(self):
        layer = column()
        children = [frame(y=0), frame(y=20), frame(y=40)]
        result = infer_item_spacing(layer, children, False, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 10
        assert result.wrappers == []
        assert result.children == children

    def test_non_uniform_block_gaps_wrap_large_gap(self):
        layer = column()
        first, second, third = frame(y=0), frame(y=20), frame(y=60)
        result = infer_item_spacing(layer, [first, second, third], False, LayoutTolerances())

        assert layer.auto_layout.item_spacing == 10
        assert len(result.wrappers) == 1
        wrapper = result.wrappers[0]
        assert result.children == [first, wrapper, third]
        assert wrapper.type == "FRAME"
        assert wrapper.y == 20
        assert wrapper.height == 30
        assert wrapper.auto_layout.padding_bottom == 20
        assert wrapper.auto_layout.padding_right == 0
        assert wrapper.children[0].y == 0
        assert wrapper.children[0].height == 10

    def test_horizontal_wrapper_pads_right(self):
        layer = frame(width=300, auto_layout=AutoLayoutConfig(mode="HORIZONTAL"))
        children = [frame(x=0, width=10), frame(x=40, width=10), frame(x=55, width=10)]
        result = infer_item_spacing(layer, children, False, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 5
        assert len(result.wrappers) == 1
        assert result.wrappers[0].auto_layout.padding_right == 25
        assert result.wrappers[0].width == 35

    def test_small_variation_is_uniform(self):
        layer = column()
        children = [frame(y=0), frame(y=20), frame(y=43)]
        infer_item_spacing(layer, children, False, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 12

    def test_flex_gap_kept_within_tolerance(self):
        layer = column(item_spacing=8)
        children = [frame(y=0), frame(y=20), frame(y=40)]
        infer_item_spacing(layer, children, True, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 8

    def test_flex_gap_replaced_when_far_off(self):
        layer = column(item_spacing=0)
        children = [frame(y=0), frame(y=30), frame(y=60)]
        result = infer_item_spacing(layer, children, True, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 20
        assert result.wrappers == []

    def test_absolute_children_ignored(self):
        layer = column()
        overlay = frame(y=500, is_absolutely_positioned=True)
        children = [frame(y=0), overlay, frame(y=20)]
        result = infer_item_spacing(layer, children, False, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 10
        assert result.children[1] is overlay

    def test_single_child(self):
        layer = column()
        infer_item_spacing(layer, [frame()], False, LayoutTolerances())
        assert layer.auto_layout.item_spacing == 0


class TestCrossAxisCentering:
    """Tests for detect_cross_axis_centering function."""

    def test_centered_children(self):
        layer = column(width=200)
        children = [frame(x=50, width=100), frame(x=75, width=50), frame(x=25, width=150)]
        assert detect_cross_axis_centering(layer, children, LayoutTolerances())

    def test_left_aligned_children(self):
        layer = column(width=200)
        children = [frame(x=0, width=100), frame(x=0, width=50)]
        assert not detect_cross_axis_centering(layer, children, LayoutTolerances())

    def test_full_width_children_do_not_vote(self):
        layer = column(width=200)
        children = [frame(x=0, width=200), frame(x=0, width=199), frame(x=50, width=100)]
        assert detect_cross_axis_centering(layer, children, LayoutTolerances())

    def test_tie_is_not_majority(self):
        layer = column(width=200)
        children = [frame(x=50, width=100), frame(x=0, width=100)]
        assert not detect_cross_axis_centering(layer, children, LayoutTolerances())

    def test_horizontal_layout(self):
        layer = frame(width=200, auto_layout=AutoLayoutConfig(mode="HORIZONTAL"))
        assert not detect_cross_axis_centering(layer, [frame(x=50)], LayoutTolerances())


class TestFixedPositioning:
    """Tests for fixed header handling."""

    def element(self, y, height, position="static"):
        return ElementSnapshot(
            tag="header", box=Box(0, y, 1000, height), style={"position": position}
        )

    def test_fixed_top_offset(self):
        elements = [
            self.element(0, 60, "fixed"),
            self.element(60, 500),
            self.element(0, 40, "sticky"),
        ]
        assert fixed_top_offset(elements, LayoutTolerances()) == 60

    def test_fixed_far_down_ignored(self):
        elements = [self.element(400, 60, "fixed")]
        assert fixed_top_offset(elements, LayoutTolerances()) == 0

    def test_rebase_snaps_to_top(self):
        layer = frame(y=64)
        rebase_flow_child(layer, 60, LayoutTolerances())
        assert layer.y == 0

    def test_rebase_shifts_up(self):
        layer = frame(y=300)
        rebase_flow_child(layer, 60, LayoutTolerances())
        assert layer.y == 240

    def test_rebase_skips_absolute(self):
        layer = frame(y=300, is_absolutely_positioned=True)
        rebase_flow_child(layer, 60, LayoutTolerances())
        assert layer.y == 300

    def test_pin_fixed_layer(self):
        layer = frame(y=12)
        pin_fixed_layer(layer, 12, 5, LayoutTolerances())
        assert layer.y == 0
        assert layer.is_absolutely_positioned
        assert layer.z_index == 1000

    def test_pin_keeps_higher_z(self):
        layer = frame()
        pin_fixed_layer(layer, 0, 5000, LayoutTolerances())
        assert layer.z_index == 5000

    def test_pin_keeps_bottom_footer_position(self):
        layer = frame(y=940)
        pin_fixed_layer(layer, 940, 0, LayoutTolerances())
        assert layer.y == 940
        assert layer.is_absolutely_positioned
        assert layer.z_index == 1000


class TestTextAutoResize:
    """Tests for infer_text_auto_resize function."""

    def test_single_line(self):
        layer = text_layer("Hello", 40, 19)
        infer_text_auto_resize(layer, LayoutTolerances())
        assert layer.text_auto_resize == "WIDTH_AND_HEIGHT"

    def test_wrapped_paragraph(self):
        layer = text_layer("A long paragraph of text", 200, 58)
        infer_text_auto_resize(layer, LayoutTolerances())
        assert layer.text_auto_resize == "HEIGHT"

    def test_tall_but_narrow(self):
        layer = text_layer("Hi", 40, 58)
        infer_text_auto_resize(layer, LayoutTolerances())
        assert layer.text_auto_resize == "WIDTH_AND_HEIGHT"

    def test_explicit_line_breaks(self):
        layer = text_layer("one\ntwo", 200, 38)
        infer_text_auto_resize(layer, LayoutTolerances())
        assert layer.text_auto_resize == "WIDTH_AND_HEIGHT"


class TestSizingHints:
    """Tests for assign_sizing_hints function."""

    def test_vertical_full_width_fills(self):
        wide = frame(width=98)
        narrow = frame(width=40)
        layer = column(width=100, height=50)
        layer.children = [wide, narrow]
        assign_sizing_hints(layer, LayoutTolerances())
        assert wide.layout_sizing_horizontal == "FILL"
        assert narrow.layout_sizing_horizontal == "FIXED"
        assert narrow.layout_sizing_vertical == "FIXED"

    def test_vertical_stretch(self):
        child = frame(width=10)
        layer = column(counter_axis_stretch=True)
        layer.children = [child]
        assign_sizing_hints(layer, LayoutTolerances())
        assert child.layout_sizing_horizontal == "FILL"

    def test_horizontal_flex_grow(self):
        first = frame(width=30, flex_grow=1)
        second = frame(width=30, flex_grow=1)
        label = text_layer("Go", 20, 19)
        label.text_auto_resize = "WIDTH_AND_HEIGHT"
        layer = frame(width=200, auto_layout=AutoLayoutConfig(mode="HORIZONTAL"))
        layer.children = [first, second, label]
        assign_sizing_hints(layer, LayoutTolerances())
        assert first.layout_sizing_horizontal == "FILL"
        assert second.layout_sizing_horizontal == "FILL"
        assert label.layout_sizing_horizontal == "HUG"
        assert label.layout_sizing_vertical == "HUG"

    def test_mixed_flex_grow_stays_fixed(self):
        first = frame(width=30, flex_grow=1)
        second = frame(width=30, flex_grow=2)
        layer = frame(width=200, auto_layout=AutoLayoutConfig(mode="HORIZONTAL"))
        layer.children = [first, second]
        assign_sizing_hints(layer, LayoutTolerances())
        assert first.layout_sizing_horizontal == "FIXED"

    def test_absolute_children_untouched(self):
        overlay = frame(is_absolutely_positioned=True)
        layer = column()
        layer.children = [overlay]
        assign_sizing_hints(layer, LayoutTolerances())
        assert overlay.layout_sizing_horizontal is None

    def test_no_auto_layout(self):
        child = frame()
        layer = frame(children=[child])
        assign_sizing_hints(layer, LayoutTolerances())
        assert child.layout_sizing_horizontal is None
