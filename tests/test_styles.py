"""Tests for layer_capture.styles module."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layer_capture.model import (
    RGBA,
    BlurEffect,
    Corners,
    ImagePaint,
    LinearGradientPaint,
    RadialGradientPaint,
    SolidPaint,
)
from layer_capture.styles import (
    clips_content,
    css,
    is_absolutely_positioned,
    is_visible,
    object_fit_scale_mode,
    paddings,
    parse_flex_grow,
    parse_font_family,
    parse_letter_spacing,
    parse_line_height,
    parse_text_align,
    parse_z_index,
    resolve_corner_radius,
    resolve_effects,
    resolve_fills,
    resolve_opacity,
    resolve_stroke,
    resolve_text_style,
)


def border(width: str, color: str = "rgb(0, 0, 0)", style: str = "solid") -> dict:
    """Build a style with the same border on all four sides."""
    result = {}
    for side in ("top", "right", "bottom", "left"):
        result[f"border-{side}-width"] = width
        result[f"border-{side}-color"] = color
        result[f"border-{side}-style"] = style
    return result


class TestCss:
    """Tests for the css accessor."""

    def test_strips(self):
        assert css({"color": "  red "}, "color") == "red"

    def test_default(self):
        assert css({}, "color") == ""
        assert css({}, "line-height", "normal") == "normal"


class TestResolveFills:
    """Tests for resolve_fills function."""

    def test_background_color(self):
        fills = resolve_fills({"background-color": "rgb(255, 0, 0)"})
        assert fills == [SolidPaint(color=RGBA(1, 0, 0, 1))]

    def test_transparent_background(self):
        assert resolve_fills({"background-color": "rgba(0, 0, 0, 0)"}) == []
        assert resolve_fills({}) == []

    def test_current_color_background(self):
        fills = resolve_fills(
            {"background-color": "currentcolor", "color": "rgb(0, 0, 255)"}
        )
        assert fills[0].color == RGBA(0, 0, 1, 1)

    def test_gradient_before_color(self):
        fills = resolve_fills(
            {
                "background-image": "linear-gradient(90deg, red, blue)",
                "background-color": "rgb(255, 255, 255)",
            }
        )
        assert len(fills) == 2
        assert isinstance(fills[0], LinearGradientPaint)
        assert fills[0].angle == 90
        assert isinstance(fills[1], SolidPaint)

    def test_radial_gradient(self):
        fills = resolve_fills({"background-image": "radial-gradient(circle, red, blue)"})
        assert isinstance(fills[0], RadialGradientPaint)
        assert len(fills[0].stops) == 2

    def test_image_url_resolved(self):
        fills = resolve_fills(
            {"background-image": 'url("img/bg.png")', "background-size": "contain"},
            base_url="https://example.com/page/index.html",
        )
        assert fills == [
            ImagePaint(image_url="https://example.com/page/img/bg.png", scale_mode="FIT")
        ]

    def test_data_url_untouched(self):
        fills = resolve_fills(
            {"background-image": "url(data:image/png;base64,AAAA)"},
            base_url="https://example.com/",
        )
        assert fills[0].image_url == "data:image/png;base64,AAAA"
        assert fills[0].scale_mode == "FILL"

    def test_multiple_layers_in_order(self):
        fills = resolve_fills(
            {"background-image": "url(a.png), linear-gradient(red, blue)"}
        )
        assert isinstance(fills[0], ImagePaint)
        assert isinstance(fills[1], LinearGradientPaint)


class TestResolveStroke:
    """Tests for resolve_stroke function."""

    def test_uniform_border(self):
        stroke = resolve_stroke(border("2px", "rgb(255, 0, 0)"))
        assert stroke is not None
        assert stroke.weight == 2
        assert stroke.color == RGBA(1, 0, 0, 1)
        assert stroke.position == "INSIDE"
        assert stroke.dash_pattern is None
        assert stroke.individual_weights is None

    def test_no_border(self):
        assert resolve_stroke(border("0px")) is None
        assert resolve_stroke({}) is None

    def test_border_style_none(self):
        assert resolve_stroke(border("2px", style="none")) is None

    def test_transparent_border(self):
        assert resolve_stroke(border("1px", "rgba(0, 0, 0, 0)")) is None

    def test_dashed(self):
        stroke = resolve_stroke(border("2px", style="dashed"))
        assert stroke.dash_pattern == [4, 2]

    def test_dotted(self):
        stroke = resolve_stroke(border("3px", style="dotted"))
        assert stroke.dash_pattern == [3, 3]

    def test_individual_sides(self):
        style = border("0px")
        style["border-bottom-width"] = "3px"
        style["border-bottom-color"] = "rgb(0, 0, 255)"
        stroke = resolve_stroke(style)
        assert stroke.weight == 3
        assert stroke.color == RGBA(0, 0, 1, 1)
        assert stroke.individual_weights.bottom == 3
        assert stroke.individual_weights.top == 0


class TestResolveEffects:
    """Tests for resolve_effects function."""

    def test_shadow_and_backdrop(self):
        effects = resolve_effects(
            {
                "box-shadow": "0px 2px 4px rgba(0, 0, 0, 0.5)",
                "-webkit-backdrop-filter": "blur(6px)",
            }
        )
        assert effects[0].kind == "DROP_SHADOW"
        assert effects[1] == BlurEffect(kind="BACKGROUND_BLUR", radius=6.0)

    def test_none(self):
        assert resolve_effects({"box-shadow": "none", "filter": "none"}) == []


class TestResolveCornerRadius:
    """Tests for resolve_corner_radius function."""

    def test_uniform(self):
        style = {
            f"border-{corner}-radius": "8px"
            for corner in ("top-left", "top-right", "bottom-right", "bottom-left")
        }
        assert resolve_corner_radius(style) == 8

    def test_mixed(self):
        style = {"border-top-left-radius": "8px", "border-top-right-radius": "8px"}
        radius = resolve_corner_radius(style)
        assert radius == Corners(top_left=8, top_right=8, bottom_right=0, bottom_left=0)

    def test_none(self):
        assert resolve_corner_radius({}) == 0


class TestTextStyle:
    """Tests for text style resolution."""

    def test_font_family_first_entry(self):
        assert parse_font_family('"Helvetica Neue", Arial, sans-serif') == "Helvetica Neue"
        assert parse_font_family("") == "Inter"

    @pytest.mark.parametrize(
        "value,expected",
        [("normal", 19.2), ("24px", 24.0), ("1.5", 24.0), ("150%", 24.0), ("2em", 32.0)],
    )
    def test_line_height(self, value, expected):
        assert parse_line_height(value, 16.0) == pytest.approx(expected)

    def test_line_height_unknown_unit(self):
        assert parse_line_height("2vh", 16.0) == "AUTO"
        assert parse_line_height("inherit", 16.0) == "AUTO"

    def test_letter_spacing(self):
        assert parse_letter_spacing("normal", 16.0) == 0
        assert parse_letter_spacing("1.5px", 16.0) == 1.5
        assert parse_letter_spacing("0.1em", 20.0) == pytest.approx(2.0)

    @pytest.mark.parametrize(
        "value,expected",
        [("center", "CENTER"), ("right", "RIGHT"), ("end", "RIGHT"),
         ("justify", "JUSTIFIED"), ("start", "LEFT"), ("", "LEFT")],
    )
    def test_text_align(self, value, expected):
        assert parse_text_align(value) == expected

    def test_resolve_text_style(self):
        text_style = resolve_text_style(
            {
                "font-family": "Roboto, sans-serif",
                "font-size": "20px",
                "font-weight": "700",
                "font-style": "italic",
                "line-height": "30px",
                "text-align": "center",
                "text-decoration-line": "underline",
                "text-transform": "uppercase",
                "color": "rgb(17, 17, 17)",
            }
        )
        assert text_style.font_family == "Roboto"
        assert text_style.font_size == 20
        assert text_style.font_weight == 700
        assert text_style.italic is True
        assert text_style.line_height == 30
        assert text_style.text_align == "CENTER"
        assert text_style.text_decoration == "UNDERLINE"
        assert text_style.text_case == "UPPER"
        assert text_style.color.r == pytest.approx(17 / 255)

    def test_defaults(self):
        text_style = resolve_text_style({})
        assert text_style.font_family == "Inter"
        assert text_style.font_size == 16
        assert text_style.font_weight == 400
        assert text_style.line_height == pytest.approx(19.2)
        assert text_style.text_decoration == "NONE"
        assert text_style.text_case == "ORIGINAL"


class TestVisibility:
    """Tests for visibility, opacity and positioning helpers."""

    def test_visible_by_default(self):
        assert is_visible({})

    @pytest.mark.parametrize(
        "style",
        [{"display": "none"}, {"visibility": "hidden"}, {"opacity": "0"}],
    )
    def test_hidden(self, style):
        assert not is_visible(style)

    def test_opacity(self):
        assert resolve_opacity({"opacity": "0.5"}) == 0.5
        assert resolve_opacity({"opacity": "2"}) == 1.0
        assert resolve_opacity({}) == 1.0

    def test_absolute(self):
        assert is_absolutely_positioned({"position": "absolute"})
        assert is_absolutely_positioned({"position": "fixed"})
        assert not is_absolutely_positioned({"position": "sticky"})

    def test_z_index(self):
        assert parse_z_index({"z-index": "10"}) == 10
        assert parse_z_index({"z-index": "-1"}) == -1
        assert parse_z_index({"z-index": "auto"}) == 0

    def test_flex_grow(self):
        assert parse_flex_grow({"flex-grow": "1"}) == 1
        assert parse_flex_grow({"flex-grow": "0"}) is None

    def test_clips_content(self):
        assert clips_content({"overflow": "hidden"})
        assert clips_content({"overflow-x": "clip", "overflow-y": "hidden"})
        assert not clips_content({"overflow-x": "hidden", "overflow-y": "auto"})

    def test_paddings(self):
        style = {"padding-top": "1px", "padding-right": "2px",
                 "padding-bottom": "3px", "padding-left": "4px"}
        assert paddings(style) == (1, 2, 3, 4)

    def test_object_fit(self):
        assert object_fit_scale_mode("contain") == "FIT"
        assert object_fit_scale_mode("none") == "CROP"
        assert object_fit_scale_mode("cover") == "FILL"
