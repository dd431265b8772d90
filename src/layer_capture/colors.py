"""CSS color and gradient parsing.

Parsers never raise: malformed input falls back to opaque black (colors)
or None (gradients).
"""

import math
import re
from dataclasses import dataclass, field
from typing import Literal

from .model import BLACK, TRANSPARENT, RGBA, GradientStop
from .utils import extract_balanced, split_top_level

# Keywords that depend on context the parser does not have
CONTEXT_KEYWORDS = frozenset(["currentcolor", "inherit", "initial", "unset"])

NAMED_COLORS: dict[str, RGBA] = {
    "white": RGBA(1, 1, 1, 1),
    "black": RGBA(0, 0, 0, 1),
    "red": RGBA(1, 0, 0, 1),
    "green": RGBA(0, 0.502, 0, 1),
    "blue": RGBA(0, 0, 1, 1),
    "gray": RGBA(0.502, 0.502, 0.502, 1),
    "grey": RGBA(0.502, 0.502, 0.502, 1),
    "yellow": RGBA(1, 1, 0, 1),
    "orange": RGBA(1, 0.647, 0, 1),
    "purple": RGBA(0.502, 0, 0.502, 1),
    "pink": RGBA(1, 0.753, 0.796, 1),
    "cyan": RGBA(0, 1, 1, 1),
    "magenta": RGBA(1, 0, 1, 1),
    "brown": RGBA(0.647, 0.165, 0.165, 1),
    "navy": RGBA(0, 0, 0.502, 1),
    "teal": RGBA(0, 0.502, 0.502, 1),
    "silver": RGBA(0.753, 0.753, 0.753, 1),
    "maroon": RGBA(0.502, 0, 0, 1),
    "olive": RGBA(0.502, 0.502, 0, 1),
    "lime": RGBA(0, 1, 0, 1),
    "aqua": RGBA(0, 1, 1, 1),
    "fuchsia": RGBA(1, 0, 1, 1),
    "transparent": TRANSPARENT,
}

_NUM = r"[-+]?(?:\d+\.?\d*|\.\d+)"

_RGB_COMMA_RE = re.compile(
    rf"rgba?\(\s*({_NUM})\s*,\s*({_NUM})\s*,\s*({_NUM})\s*(?:,\s*({_NUM})(%?))?\s*\)",
    re.IGNORECASE,
)
_RGB_SPACE_RE = re.compile(
    rf"rgba?\(\s*({_NUM})\s+({_NUM})\s+({_NUM})\s*(?:/\s*({_NUM})(%?))?\s*\)",
    re.IGNORECASE,
)
_HSL_RE = re.compile(
    rf"hsla?\(\s*({_NUM})(?:deg)?\s*[,\s]\s*({_NUM})%\s*[,\s]\s*({_NUM})%"
    rf"\s*(?:[,/]\s*({_NUM})(%?))?\s*\)",
    re.IGNORECASE,
)
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3,8})$")

_ANGLE_RE = re.compile(rf"^({_NUM})(deg|rad|turn|grad)$", re.IGNORECASE)
_STOP_POSITION_RE = re.compile(rf"^({_NUM})(%?)$")
_COLOR_FUNCTION_RE = re.compile(r"^(rgba?|hsla?)\(", re.IGNORECASE)

# Direction keywords; diagonals are checked first
DIRECTION_ANGLES = [
    ("to top right", 45.0),
    ("to right top", 45.0),
    ("to bottom right", 135.0),
    ("to right bottom", 135.0),
    ("to bottom left", 225.0),
    ("to left bottom", 225.0),
    ("to top left", 315.0),
    ("to left top", 315.0),
    ("to right", 90.0),
    ("to left", 270.0),
    ("to bottom", 180.0),
    ("to top", 0.0),
]
DEFAULT_GRADIENT_ANGLE = 180.0

_RADIAL_PRELUDE_WORDS = ("circle", "ellipse", "closest-", "farthest-")

GradientKind = Literal["linear", "radial"]


def _alpha(value: str | None, percent: str | None) -> float:
    if value is None:
        return 1.0
    alpha = float(value)
    if percent == "%":
        alpha /= 100
    return alpha


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[float, float, float]:
    """Convert HSL (degrees, percent, percent) to RGB channels in [0, 1]."""
    h = h % 360
    s /= 100
    l /= 100
    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - abs((h / 60) % 2 - 1))
    m = l - c / 2

    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return (r + m, g + m, b + m)


def parse_hex_color(hex_digits: str) -> RGBA:
    """Parse 3, 4, 6 or 8 hex digits (without '#')."""
    length = len(hex_digits)
    if length in (3, 4):
        channels = [int(ch * 2, 16) / 255 for ch in hex_digits]
    elif length in (6, 8):
        channels = [int(hex_digits[i : i + 2], 16) / 255 for i in range(0, length, 2)]
    else:
        return BLACK

    if len(channels) == 3:
        channels.append(1.0)
    return RGBA(*channels)


def parse_color(css_color: str | None, fallback: RGBA | None = None) -> RGBA:
    """Parse a CSS color string.

    Args:
        css_color: CSS color (rgb/rgba, hsl/hsla, hex, named, keywords).
        fallback: Color used for currentColor/inherit/initial/unset.

    Returns:
        Parsed color. Unrecognized input yields opaque black.
    """
    if not css_color:
        return BLACK

    text = css_color.strip()
    lower = text.lower()

    if lower in CONTEXT_KEYWORDS:
        return fallback if fallback is not None else BLACK

    match = _RGB_COMMA_RE.search(text) or _RGB_SPACE_RE.search(text)
    if match:
        return RGBA(
            float(match.group(1)) / 255,
            float(match.group(2)) / 255,
            float(match.group(3)) / 255,
            _alpha(match.group(4), match.group(5)),
        )

    match = _HSL_RE.search(text)
    if match:
        r, g, b = hsl_to_rgb(
            float(match.group(1)), float(match.group(2)), float(match.group(3))
        )
        return RGBA(r, g, b, _alpha(match.group(4), match.group(5)))

    match = _HEX_RE.match(text)
    if match:
        return parse_hex_color(match.group(1))

    if lower in NAMED_COLORS:
        return NAMED_COLORS[lower]

    return BLACK


def is_transparent(color: RGBA) -> bool:
    """Check if a color is fully transparent."""
    return color.a <= 0


def is_transparent_color_string(css_color: str | None) -> bool:
    """Check if a CSS color string is transparent without full parsing.

    Empty values count as transparent.
    """
    if not css_color:
        return True

    normalized = re.sub(r"\s+", "", css_color.lower())
    if normalized == "transparent":
        return True

    # rgba(r,g,b,0) / rgb(r g b / 0%)
    if re.fullmatch(r"rgba?\([\d.]+,[\d.]+,[\d.]+,(0|0?\.0+|0%)\)", normalized):
        return True
    if re.search(r"rgba?\([^)]*/(0|0?\.0+|0%)\)", normalized):
        return True
    if re.search(r"hsla?\([^)]*[,/](0|0?\.0+|0%)\)", normalized):
        return True
    return False


def rgba_to_css(color: RGBA) -> str:
    """Serialize to rgb()/rgba() notation."""
    r = round(color.r * 255)
    g = round(color.g * 255)
    b = round(color.b * 255)
    if color.a >= 1:
        return f"rgb({r}, {g}, {b})"
    alpha = f"{color.a:.3f}".rstrip("0").rstrip(".")
    return f"rgba({r}, {g}, {b}, {alpha or '0'})"


def rgba_to_hex(color: RGBA, include_alpha: bool = False) -> str:
    """Serialize to #rrggbb (or #rrggbbaa when translucent and requested)."""
    digits = "".join(f"{round(ch * 255):02x}" for ch in (color.r, color.g, color.b))
    if include_alpha and color.a < 1:
        digits += f"{round(color.a * 255):02x}"
    return f"#{digits}"


def blend_colors(top: RGBA, bottom: RGBA) -> RGBA:
    """Composite top over bottom (source-over)."""
    a = top.a + bottom.a * (1 - top.a)
    if a == 0:
        return TRANSPARENT

    def channel(t: float, b: float) -> float:
        return (t * top.a + b * bottom.a * (1 - top.a)) / a

    return RGBA(
        channel(top.r, bottom.r),
        channel(top.g, bottom.g),
        channel(top.b, bottom.b),
        a,
    )


@dataclass
class ParsedGradient:
    """Result of gradient parsing."""

    kind: GradientKind
    stops: list[GradientStop] = field(default_factory=list)
    angle: float | None = None


def _angle_to_degrees(value: float, unit: str) -> float:
    unit = unit.lower()
    if unit == "rad":
        return math.degrees(value)
    if unit == "turn":
        return value * 360
    if unit == "grad":
        return value * 0.9
    return value


def _parse_gradient_angle(prelude: str | None) -> float:
    if not prelude:
        return DEFAULT_GRADIENT_ANGLE

    lower = " ".join(prelude.lower().split())
    match = _ANGLE_RE.match(lower)
    if match:
        return _angle_to_degrees(float(match.group(1)), match.group(2))

    for keyword, angle in DIRECTION_ANGLES:
        if keyword in lower:
            return angle
    return DEFAULT_GRADIENT_ANGLE


def _is_prelude(arg: str, kind: GradientKind) -> bool:
    """Check if the first gradient argument is a direction/shape, not a stop."""
    lower = arg.strip().lower()
    if _ANGLE_RE.match(lower) or lower.startswith("to "):
        return True
    if kind == "radial":
        if lower.startswith("at ") or " at " in lower:
            return True
        return any(word in lower for word in _RADIAL_PRELUDE_WORDS)
    return False


def _split_color_and_position(stop: str) -> tuple[str, str]:
    stop = stop.strip()
    match = _COLOR_FUNCTION_RE.match(stop)
    if match:
        end = len(match.group(0)) + len(extract_balanced(stop, len(match.group(0)))) + 1
        return stop[:end], stop[end:].strip()

    parts = stop.split(None, 1)
    return parts[0], (parts[1] if len(parts) > 1 else "")


def _parse_stop_position(rest: str) -> float | None:
    if not rest:
        return None
    match = _STOP_POSITION_RE.match(rest.split()[0])
    if not match:
        return None
    position = float(match.group(1))
    if match.group(2) == "%":
        position /= 100
    return max(0.0, min(1.0, position))


def parse_gradient_stops(args: list[str]) -> list[GradientStop]:
    """Parse gradient stop arguments.

    Stops without an explicit position are spread evenly over [0, 1]
    by declaration index.
    """
    colors: list[RGBA] = []
    positions: list[float | None] = []

    for arg in args:
        color_text, rest = _split_color_and_position(arg)
        if not color_text:
            continue
        colors.append(parse_color(color_text))
        positions.append(_parse_stop_position(rest))

    count = len(colors)
    stops: list[GradientStop] = []
    for index, (color, position) in enumerate(zip(colors, positions)):
        if position is None:
            position = index / (count - 1) if count > 1 else 0.0
        stops.append(GradientStop(position=position, color=color))
    return stops


def parse_gradient(css_gradient: str | None) -> ParsedGradient | None:
    """Parse a linear-gradient() or radial-gradient() value.

    Args:
        css_gradient: CSS background-image entry.

    Returns:
        ParsedGradient, or None if the text is not a supported gradient.
    """
    if not css_gradient:
        return None

    lower = css_gradient.lower()
    for kind, token in (("linear", "linear-gradient("), ("radial", "radial-gradient(")):
        start = lower.find(token)
        if start == -1:
            continue

        content = extract_balanced(css_gradient, start + len(token))
        args = split_top_level(content)
        prelude = None
        if args and _is_prelude(args[0], kind):  # type: ignore[arg-type]
            prelude = args.pop(0)

        return ParsedGradient(
            kind=kind,  # type: ignore[arg-type]
            stops=parse_gradient_stops(args),
            angle=_parse_gradient_angle(prelude) if kind == "linear" else None,
        )

    return None
