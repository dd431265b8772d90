"""Resolve a computed-style map into layer visual attributes.

A style is a flat mapping of CSS property names (``background-color``,
``border-top-width``, ...) to computed string values, as produced by the
style/geometry provider.
"""

import re
from collections.abc import Mapping
from urllib.parse import urljoin

from .colors import (
    is_transparent,
    is_transparent_color_string,
    parse_color,
    parse_gradient,
)
from .model import (
    RGBA,
    Corners,
    CornerRadius,
    Effect,
    ImagePaint,
    LinearGradientPaint,
    Paint,
    RadialGradientPaint,
    ScaleMode,
    ShadowEffect,
    SideWeights,
    SolidPaint,
    StrokeConfig,
    TextAlign,
    TextCase,
    TextDecoration,
    TextStyle,
)
from .utils import parse_length, split_top_level
from .values import parse_filter_effects, parse_font_weight, parse_shadow

Style = Mapping[str, str]

DEFAULT_FONT_FAMILY = "Inter"
DEFAULT_FONT_SIZE = 16.0
NORMAL_LINE_HEIGHT = 1.2

BORDER_SIDES = ("top", "right", "bottom", "left")

_URL_RE = re.compile(r"""url\(\s*['"]?([^'")\s]+)['"]?\s*\)""")


def css(style: Style, name: str, default: str = "") -> str:
    """Get a stripped computed value, or default when missing."""
    value = style.get(name)
    if value is None:
        return default
    return str(value).strip()


def text_color(style: Style) -> RGBA:
    """The element's own text color, used to resolve currentColor."""
    return parse_color(css(style, "color"))


def background_scale_mode(background_size: str) -> ScaleMode:
    """Map background-size to an image scale mode."""
    if background_size == "contain":
        return "FIT"
    return "FILL"


def object_fit_scale_mode(object_fit: str) -> ScaleMode:
    """Map object-fit (replaced elements) to an image scale mode."""
    if object_fit in ("contain", "scale-down"):
        return "FIT"
    if object_fit in ("fill", "none"):
        return "CROP"
    return "FILL"


def resolve_image_url(url: str, base_url: str | None) -> str:
    """Resolve a relative URL against the capture's base URL."""
    if base_url and not url.startswith("data:"):
        return urljoin(base_url, url)
    return url


def resolve_fills(style: Style, base_url: str | None = None) -> list[Paint]:
    """Build the fill list from background-image and background-color.

    Image and gradient layers come first in declaration order; a
    non-transparent background-color is always appended last so it sits
    beneath them.
    """
    fills: list[Paint] = []

    background_image = css(style, "background-image")
    if background_image and background_image != "none":
        scale_mode = background_scale_mode(css(style, "background-size"))
        for entry in split_top_level(background_image):
            if "url(" in entry:
                match = _URL_RE.search(entry)
                if match:
                    fills.append(
                        ImagePaint(
                            image_url=resolve_image_url(match.group(1), base_url),
                            scale_mode=scale_mode,
                        )
                    )
                continue

            gradient = parse_gradient(entry)
            if gradient is None or not gradient.stops:
                continue
            if gradient.kind == "linear":
                fills.append(
                    LinearGradientPaint(stops=gradient.stops, angle=gradient.angle)
                )
            else:
                fills.append(RadialGradientPaint(stops=gradient.stops))

    background_color = css(style, "background-color")
    if not is_transparent_color_string(background_color):
        color = parse_color(background_color, text_color(style))
        if not is_transparent(color):
            fills.append(SolidPaint(color=color))

    return fills


def resolve_stroke(style: Style) -> StrokeConfig | None:
    """Build a stroke from the four border sides.

    Weight is the widest side; color and line style come from the first
    side that has a width. Per-side weights are kept only when sides differ.
    """
    widths = {side: parse_length(css(style, f"border-{side}-width")) for side in BORDER_SIDES}
    weight = max(widths.values())
    if weight <= 0:
        return None

    drawn_sides = [side for side in BORDER_SIDES if widths[side] > 0]
    color_text = ""
    border_style = ""
    for side in drawn_sides + [s for s in BORDER_SIDES if s not in drawn_sides]:
        color_text = css(style, f"border-{side}-color")
        border_style = css(style, f"border-{side}-style")
        if color_text:
            break

    if not color_text or border_style in ("none", "hidden"):
        return None

    color = parse_color(color_text, text_color(style))
    if is_transparent(color):
        return None

    dash_pattern = None
    if border_style == "dashed":
        dash_pattern = [weight * 2, weight]
    elif border_style == "dotted":
        dash_pattern = [weight, weight]

    individual = None
    if len(set(widths.values())) > 1:
        individual = SideWeights(**widths)

    return StrokeConfig(
        color=color,
        weight=weight,
        position="INSIDE",
        dash_pattern=dash_pattern,
        individual_weights=individual,
    )


def resolve_effects(style: Style) -> list[Effect]:
    """Box shadows followed by filter/backdrop-filter effects."""
    effects: list[Effect] = list(parse_shadow(css(style, "box-shadow"), "box"))
    effects.extend(
        parse_filter_effects(
            css(style, "filter"),
            css(style, "backdrop-filter") or css(style, "-webkit-backdrop-filter"),
        )
    )
    return effects


def resolve_text_effects(style: Style) -> list[ShadowEffect]:
    """Text shadows as drop shadows."""
    return parse_shadow(css(style, "text-shadow"), "text")


def resolve_corner_radius(style: Style) -> CornerRadius:
    """Single radius when all corners match, per-corner otherwise."""
    corners = Corners(
        top_left=parse_length(css(style, "border-top-left-radius")),
        top_right=parse_length(css(style, "border-top-right-radius")),
        bottom_right=parse_length(css(style, "border-bottom-right-radius")),
        bottom_left=parse_length(css(style, "border-bottom-left-radius")),
    )
    values = {corners.top_left, corners.top_right, corners.bottom_right, corners.bottom_left}
    if len(values) == 1:
        return corners.top_left
    return corners


def parse_font_family(font_family: str) -> str:
    """First family of a font-family list, quotes removed."""
    first = font_family.split(",")[0].strip().strip("\"'").strip()
    return first or DEFAULT_FONT_FAMILY


def parse_font_size(font_size: str) -> float:
    size = parse_length(font_size)
    return size if size > 0 else DEFAULT_FONT_SIZE


def parse_line_height(line_height: str, font_size: float) -> float | str:
    """Resolve line-height to pixels.

    "normal" is 1.2x the font size, unitless and percentage values scale
    the font size, pixel values pass through, anything else is "AUTO".
    """
    if line_height == "normal":
        return round(font_size * NORMAL_LINE_HEIGHT, 2)

    value = parse_length(line_height, float("nan"))
    if value != value:
        return "AUTO"

    if line_height.endswith("px"):
        return value
    if line_height.endswith("%"):
        return value / 100 * font_size
    if re.search(r"[a-z]", line_height.lower()):
        # em/rem and friends are relative to the font size
        if line_height.endswith("em"):
            return value * font_size
        return "AUTO"
    return value * font_size


def parse_letter_spacing(letter_spacing: str, font_size: float) -> float:
    if not letter_spacing or letter_spacing == "normal":
        return 0.0
    value = parse_length(letter_spacing)
    if letter_spacing.endswith("em"):
        return value * font_size
    return value


def parse_text_align(text_align: str) -> TextAlign:
    if text_align == "center":
        return "CENTER"
    if text_align in ("right", "end"):
        return "RIGHT"
    if text_align == "justify":
        return "JUSTIFIED"
    return "LEFT"


def parse_text_decoration(text_decoration: str) -> TextDecoration:
    if "underline" in text_decoration:
        return "UNDERLINE"
    if "line-through" in text_decoration:
        return "STRIKETHROUGH"
    return "NONE"


def parse_text_transform(text_transform: str) -> TextCase:
    return {
        "uppercase": "UPPER",
        "lowercase": "LOWER",
        "capitalize": "TITLE",
    }.get(text_transform, "ORIGINAL")


def is_italic(font_style: str) -> bool:
    return font_style in ("italic", "oblique") or font_style.startswith("oblique ")


def text_decoration_value(style: Style) -> str:
    """text-decoration-line when present, else the shorthand."""
    return css(style, "text-decoration-line") or css(style, "text-decoration")


def resolve_text_style(style: Style) -> TextStyle:
    """Build a TextStyle from font and text properties."""
    font_size = parse_font_size(css(style, "font-size"))
    return TextStyle(
        font_family=parse_font_family(css(style, "font-family")),
        font_weight=parse_font_weight(css(style, "font-weight")),
        italic=is_italic(css(style, "font-style")),
        font_size=font_size,
        line_height=parse_line_height(css(style, "line-height", "normal"), font_size),
        letter_spacing=parse_letter_spacing(css(style, "letter-spacing"), font_size),
        text_align=parse_text_align(css(style, "text-align")),
        text_decoration=parse_text_decoration(text_decoration_value(style)),
        text_case=parse_text_transform(css(style, "text-transform")),
        color=text_color(style),
    )


def resolve_opacity(style: Style) -> float:
    """Element opacity in [0, 1]; 1 when unset or malformed."""
    value = parse_length(css(style, "opacity"), float("nan"))
    if value != value:
        return 1.0
    return max(0.0, min(1.0, value))


def is_visible(style: Style) -> bool:
    """Check display, visibility and opacity."""
    return (
        css(style, "display") != "none"
        and css(style, "visibility") not in ("hidden", "collapse")
        and resolve_opacity(style) > 0
    )


def is_absolutely_positioned(style: Style) -> bool:
    """Check for position absolute or fixed."""
    return css(style, "position") in ("absolute", "fixed")


def is_fixed_or_sticky(style: Style) -> bool:
    return css(style, "position") in ("fixed", "sticky")


def parse_z_index(style: Style) -> int:
    """Integer z-index; 0 for auto or malformed values."""
    value = css(style, "z-index")
    if re.fullmatch(r"[-+]?\d+", value):
        return int(value)
    return 0


def parse_flex_grow(style: Style) -> float | None:
    """Positive flex-grow, else None."""
    value = parse_length(css(style, "flex-grow"))
    return value if value > 0 else None


def clips_content(style: Style) -> bool:
    overflow = css(style, "overflow")
    return overflow in ("hidden", "clip") or (
        css(style, "overflow-x") in ("hidden", "clip")
        and css(style, "overflow-y") in ("hidden", "clip")
    )


def has_background_color(style: Style) -> bool:
    return not is_transparent_color_string(css(style, "background-color"))


def paddings(style: Style) -> tuple[float, float, float, float]:
    """(top, right, bottom, left) padding."""
    return tuple(parse_length(css(style, f"padding-{side}")) for side in BORDER_SIDES)  # type: ignore[return-value]
