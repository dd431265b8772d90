"""Parsers for shadow, transform, filter and font CSS values."""

import math
import re
from typing import Literal

from .colors import NAMED_COLORS, parse_color
from .model import RGBA, BlurEffect, Effect, ShadowEffect
from .utils import extract_balanced, parse_length, split_top_level

ShadowSource = Literal["box", "text"]

# Color used when a shadow does not name one
DEFAULT_SHADOW_COLOR = RGBA(0, 0, 0, 0.25)

# Rotations at or below this magnitude (degrees) are treated as none
MIN_ROTATION = 0.01

FONT_WEIGHTS = {
    "thin": 100,
    "hairline": 100,
    "extralight": 200,
    "extra-light": 200,
    "ultra-light": 200,
    "light": 300,
    "normal": 400,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "semi-bold": 600,
    "bold": 700,
    "extrabold": 800,
    "extra-bold": 800,
    "ultra-bold": 800,
    "black": 900,
    "heavy": 900,
}
DEFAULT_FONT_WEIGHT = 400

_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:px)?")
_FUNC_COLOR_RE = re.compile(r"(?:rgba?|hsla?)\s*\([^)]*\)", re.IGNORECASE)
_HEX_COLOR_RE = re.compile(r"#[0-9a-fA-F]{3,8}\b")
_NAMED_COLOR_RE = re.compile(
    r"\b(" + "|".join(sorted(NAMED_COLORS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_INSET_RE = re.compile(r"\binset\b", re.IGNORECASE)
_ROTATE_RE = re.compile(
    r"rotate[zZ]?\(\s*([-+]?(?:\d+\.?\d*|\.\d+))(deg|rad|turn|grad)\s*\)"
)
_MATRIX_RE = re.compile(
    r"matrix\(\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?)\s*,\s*"
    r"([-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?)"
)
_BLUR_RE = re.compile(r"blur\(\s*(\d+(?:\.\d+)?)(?:px)?\s*\)")


def extract_shadow_color(shadow: str) -> tuple[RGBA, str]:
    """Pull one color token out of a shadow entry.

    Tries color functions, then hex, then named colors; the first match
    is removed so its digits are not read as lengths.

    Returns:
        Tuple of (color, remaining text).
    """
    for pattern in (_FUNC_COLOR_RE, _HEX_COLOR_RE, _NAMED_COLOR_RE):
        match = pattern.search(shadow)
        if match:
            remaining = shadow[: match.start()] + " " + shadow[match.end() :]
            return parse_color(match.group(0)), remaining.strip()
    return DEFAULT_SHADOW_COLOR, shadow


def _read_numbers(text: str) -> list[float]:
    return [float(token.removesuffix("px")) for token in _NUMBER_RE.findall(text)]


def parse_single_shadow(shadow: str, source: ShadowSource = "box") -> ShadowEffect | None:
    """Parse one comma-free shadow entry.

    Returns:
        ShadowEffect, or None if fewer than two lengths are present.
    """
    inset = bool(_INSET_RE.search(shadow))
    shadow = _INSET_RE.sub(" ", shadow).strip()

    color, remaining = extract_shadow_color(shadow)
    numbers = _read_numbers(remaining)
    if len(numbers) < 2:
        return None

    is_box = source == "box"
    return ShadowEffect(
        kind="INNER_SHADOW" if (inset and is_box) else "DROP_SHADOW",
        color=color,
        offset_x=numbers[0],
        offset_y=numbers[1],
        radius=numbers[2] if len(numbers) > 2 else 0.0,
        spread=numbers[3] if (is_box and len(numbers) > 3) else 0.0,
    )


def parse_shadow(css_shadow: str | None, source: ShadowSource = "box") -> list[ShadowEffect]:
    """Parse a box-shadow or text-shadow value.

    Args:
        css_shadow: CSS shadow list.
        source: "box" (inset and spread allowed) or "text".

    Returns:
        One effect per valid entry, in declaration order.
    """
    if not css_shadow or css_shadow.strip() == "none":
        return []

    effects: list[ShadowEffect] = []
    for entry in split_top_level(css_shadow):
        effect = parse_single_shadow(entry, source)
        if effect is not None:
            effects.append(effect)
    return effects


def parse_rotation(transform: str | None) -> float | None:
    """Extract a rotation angle in degrees from a CSS transform.

    Handles rotate(Xdeg|Xrad|Xturn) and matrix(a, b, ...).

    Returns:
        Angle in degrees, or None when there is no meaningful rotation.
    """
    if not transform or transform.strip() == "none":
        return None

    match = _ROTATE_RE.search(transform)
    if match:
        value = float(match.group(1))
        unit = match.group(2)
        if unit == "rad":
            value = math.degrees(value)
        elif unit == "turn":
            value *= 360
        elif unit == "grad":
            value *= 0.9
        return value if abs(value) > MIN_ROTATION else None

    match = _MATRIX_RE.search(transform)
    if match:
        a = float(match.group(1))
        b = float(match.group(2))
        angle = math.degrees(math.atan2(b, a))
        return angle if abs(angle) > MIN_ROTATION else None

    return None


def _parse_drop_shadow_filter(filter_text: str) -> ShadowEffect | None:
    start = filter_text.find("drop-shadow(")
    if start == -1:
        return None
    # drop-shadow() may contain a nested rgba(); take the balanced content
    content = extract_balanced(filter_text, start + len("drop-shadow("))
    return parse_single_shadow(content, "text")


def parse_filter_effects(
    filter_text: str | None, backdrop_filter: str | None = None
) -> list[Effect]:
    """Parse CSS filter and backdrop-filter values.

    blur() in filter becomes a layer blur, drop-shadow() a drop shadow
    without spread, and blur() in backdrop-filter a background blur.
    """
    effects: list[Effect] = []

    if filter_text and filter_text.strip() != "none":
        match = _BLUR_RE.search(filter_text)
        if match:
            effects.append(BlurEffect(kind="LAYER_BLUR", radius=float(match.group(1))))

        shadow = _parse_drop_shadow_filter(filter_text)
        if shadow is not None:
            effects.append(shadow)

    if backdrop_filter and backdrop_filter.strip() != "none":
        match = _BLUR_RE.search(backdrop_filter)
        if match:
            effects.append(
                BlurEffect(kind="BACKGROUND_BLUR", radius=float(match.group(1)))
            )

    return effects


def parse_gap(gap: str | None) -> float:
    """Read the first value of a CSS gap shorthand."""
    if not gap or gap.strip() == "normal":
        return 0.0
    return parse_length(gap.split()[0])


def parse_font_weight(weight: str | None) -> int:
    """Parse a numeric or keyword font-weight."""
    if not weight:
        return DEFAULT_FONT_WEIGHT
    weight = weight.strip()
    if weight[:1].isdigit():
        return int(parse_length(weight, DEFAULT_FONT_WEIGHT))
    return FONT_WEIGHTS.get(weight.lower(), DEFAULT_FONT_WEIGHT)
