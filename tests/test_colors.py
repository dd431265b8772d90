"""Tests for layer_capture.colors module."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layer_capture.colors import (
    blend_colors,
    hsl_to_rgb,
    is_transparent,
    is_transparent_color_string,
    parse_color,
    parse_gradient,
    rgba_to_css,
    rgba_to_hex,
)
from layer_capture.model import RGBA


def assert_color(color: RGBA, r: float, g: float, b: float, a: float = 1.0):
    assert color.r == pytest.approx(r, abs=1 / 255)
    assert color.g == pytest.approx(g, abs=1 / 255)
    assert color.b == pytest.approx(b, abs=1 / 255)
    assert color.a == pytest.approx(a, abs=1e-6)


class TestParseColorFunctions:
    """Tests for rgb()/rgba()/hsl() parsing."""

    def test_rgb_comma(self):
        assert_color(parse_color("rgb(255, 128, 0)"), 1, 128 / 255, 0)

    def test_rgba_comma(self):
        assert_color(parse_color("rgba(0, 0, 0, 0.25)"), 0, 0, 0, 0.25)

    def test_rgba_percent_alpha(self):
        assert_color(parse_color("rgba(0, 0, 255, 50%)"), 0, 0, 1, 0.5)

    def test_space_slash_form(self):
        assert_color(parse_color("rgb(255 0 0 / 0.5)"), 1, 0, 0, 0.5)

    def test_space_form_without_alpha(self):
        assert_color(parse_color("rgb(0 255 0)"), 0, 1, 0)

    def test_hsl(self):
        assert_color(parse_color("hsl(120, 100%, 50%)"), 0, 1, 0)

    def test_hsla_space(self):
        assert_color(parse_color("hsl(240 100% 50% / 0.5)"), 0, 0, 1, 0.5)

    def test_channels_clamped(self):
        color = parse_color("rgb(300, -5, 0)")
        assert color.r == 1.0
        assert color.g == 0.0


class TestParseColorHexAndNames:
    """Tests for hex and named color parsing."""

    def test_hex6(self):
        assert_color(parse_color("#ff8000"), 1, 128 / 255, 0)

    def test_hex3(self):
        assert_color(parse_color("#f00"), 1, 0, 0)

    def test_hex8(self):
        assert_color(parse_color("#0000ff80"), 0, 0, 1, 128 / 255)

    def test_hex4(self):
        assert_color(parse_color("#0f08"), 0, 1, 0, 0x88 / 255)

    def test_named(self):
        assert_color(parse_color("white"), 1, 1, 1)
        assert_color(parse_color("Orange"), 1, 0.647, 0)

    def test_transparent(self):
        assert parse_color("transparent").a == 0

    def test_unknown_is_black(self):
        assert parse_color("not-a-color") == RGBA(0, 0, 0, 1)

    def test_empty_is_black(self):
        assert parse_color("") == RGBA(0, 0, 0, 1)
        assert parse_color(None) == RGBA(0, 0, 0, 1)


class TestParseColorKeywords:
    """Tests for context keywords."""

    def test_current_color_uses_fallback(self):
        red = RGBA(1, 0, 0, 1)
        assert parse_color("currentColor", red) == red

    def test_current_color_without_fallback(self):
        assert parse_color("currentColor") == RGBA(0, 0, 0, 1)

    def test_inherit_uses_fallback(self):
        blue = RGBA(0, 0, 1, 1)
        assert parse_color("inherit", blue) == blue


class TestColorRoundTrip:
    """Tests for parse_color and rgba_to_css agreeing."""

    @pytest.mark.parametrize(
        "css_color",
        [
            "rgb(12, 34, 56)",
            "rgba(200, 100, 50, 0.5)",
            "#336699",
            "hsl(30, 60%, 40%)",
            "rgb(0 0 0 / 0.125)",
        ],
    )
    def test_round_trip(self, css_color):
        first = parse_color(css_color)
        second = parse_color(rgba_to_css(first))
        assert second.r == pytest.approx(first.r, abs=1 / 255)
        assert second.g == pytest.approx(first.g, abs=1 / 255)
        assert second.b == pytest.approx(first.b, abs=1 / 255)
        assert second.a == pytest.approx(first.a, abs=1 / 255)


class TestSerializers:
    """Tests for rgba_to_css, rgba_to_hex and blend_colors."""

    def test_css_opaque(self):
        assert rgba_to_css(RGBA(1, 0, 0, 1)) == "rgb(255, 0, 0)"

    def test_css_translucent(self):
        assert rgba_to_css(RGBA(0, 0, 0, 0.25)) == "rgba(0, 0, 0, 0.25)"

    def test_hex(self):
        assert rgba_to_hex(RGBA(1, 0.5, 0, 1)) == "#ff8000"

    def test_hex_with_alpha(self):
        assert rgba_to_hex(RGBA(0, 0, 0, 0.5), include_alpha=True) == "#00000080"

    def test_blend_opaque_top_wins(self):
        top = RGBA(1, 0, 0, 1)
        assert blend_colors(top, RGBA(0, 0, 1, 1)) == top

    def test_blend_half(self):
        result = blend_colors(RGBA(1, 1, 1, 0.5), RGBA(0, 0, 0, 1))
        assert_color(result, 0.5, 0.5, 0.5, 1.0)

    def test_blend_transparent(self):
        assert blend_colors(RGBA(0, 0, 0, 0), RGBA(0, 0, 0, 0)).a == 0

    def test_hsl_to_rgb_red(self):
        assert hsl_to_rgb(0, 100, 50) == pytest.approx((1.0, 0.0, 0.0))


class TestTransparency:
    """Tests for transparency checks."""

    def test_is_transparent(self):
        assert is_transparent(RGBA(1, 1, 1, 0))
        assert not is_transparent(RGBA(1, 1, 1, 0.1))

    @pytest.mark.parametrize(
        "value",
        ["transparent", "rgba(0, 0, 0, 0)", "rgba(255,255,255,0.0)", "rgb(0 0 0 / 0%)", ""],
    )
    def test_transparent_strings(self, value):
        assert is_transparent_color_string(value)

    @pytest.mark.parametrize(
        "value", ["rgb(0, 0, 0)", "rgba(0, 0, 0, 0.5)", "#000", "white"]
    )
    def test_opaque_strings(self, value):
        assert not is_transparent_color_string(value)


class TestParseGradient:
    """Tests for parse_gradient function."""

    def test_even_stop_positions(self):
        gradient = parse_gradient("linear-gradient(red, green, blue)")
        assert gradient is not None
        assert [s.position for s in gradient.stops] == [0, 0.5, 1]
        assert gradient.stops[0].color == RGBA(1, 0, 0, 1)
        assert_color(gradient.stops[2].color, 0, 0, 1)

    def test_default_angle(self):
        gradient = parse_gradient("linear-gradient(red, blue)")
        assert gradient.angle == 180

    def test_degree_angle(self):
        gradient = parse_gradient("linear-gradient(45deg, red, blue)")
        assert gradient.angle == 45
        assert len(gradient.stops) == 2

    def test_negative_decimal_angle(self):
        gradient = parse_gradient("linear-gradient(-22.5deg, red, blue)")
        assert gradient.angle == pytest.approx(-22.5)

    @pytest.mark.parametrize(
        "direction,angle",
        [("to right", 90), ("to left", 270), ("to bottom", 180), ("to top", 0)],
    )
    def test_direction_keywords(self, direction, angle):
        gradient = parse_gradient(f"linear-gradient({direction}, red, blue)")
        assert gradient.angle == angle
        assert len(gradient.stops) == 2

    def test_explicit_positions(self):
        gradient = parse_gradient(
            "linear-gradient(90deg, rgba(255, 0, 0, 0.5) 10%, rgb(0, 0, 255) 90%)"
        )
        assert [s.position for s in gradient.stops] == pytest.approx([0.1, 0.9])
        assert gradient.stops[0].color.a == pytest.approx(0.5)

    def test_mixed_positions(self):
        gradient = parse_gradient("linear-gradient(red 20%, green, blue)")
        assert [s.position for s in gradient.stops] == pytest.approx([0.2, 0.5, 1.0])

    def test_radial_shape_is_not_a_stop(self):
        gradient = parse_gradient("radial-gradient(circle at center, red, blue)")
        assert gradient.kind == "radial"
        assert gradient.angle is None
        assert len(gradient.stops) == 2

    def test_not_a_gradient(self):
        assert parse_gradient("url(image.png)") is None
        assert parse_gradient("") is None
