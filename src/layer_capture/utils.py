"""Utility functions shared by the CSS value parsers and the tree builder."""

import re

# Tags that never produce a layer
NON_VISUAL_TAGS = frozenset(
    [
        "script",
        "style",
        "link",
        "meta",
        "head",
        "title",
        "noscript",
        "template",
        "slot",
        "br",
        "wbr",
        "defs",
        "clippath",
        "mask",
        "symbol",
        "use",
        "colgroup",
        "col",
    ]
)

# Tags whose content is text by default.
# "i" is left out on purpose: it is the usual carrier for icon fonts.
TEXT_TAGS = frozenset(
    [
        "p",
        "span",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "a",
        "label",
        "strong",
        "em",
        "b",
        "u",
        "small",
        "mark",
        "del",
        "ins",
        "sub",
        "sup",
        "code",
        "pre",
        "blockquote",
        "cite",
        "q",
        "button",
        "li",
        "dt",
        "dd",
    ]
)

TABLE_STRUCTURE_TAGS = frozenset(["table", "thead", "tbody", "tfoot", "tr", "caption"])

# SVG primitives mapped straight to a layer type
SVG_PRIMITIVE_TYPES = {
    "circle": "ELLIPSE",
    "ellipse": "ELLIPSE",
    "rect": "RECTANGLE",
    "path": "FRAME",
    "polygon": "FRAME",
    "polyline": "FRAME",
    "line": "FRAME",
    "g": "GROUP",
}

IMAGE_TAGS = frozenset(["img"])

# display values that make a child "block level" for text classification
BLOCK_DISPLAYS = frozenset(["block", "flex", "grid", "table", "list-item"])

_LENGTH_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def get_local_name(tag: str) -> str:
    """Normalize a tag name to its lowercase local name.

    Args:
        tag: Tag name, possibly namespaced ("{uri}rect") or prefixed ("svg:rect").

    Returns:
        Lowercase local name.

    Example:
        >>> get_local_name("{http://www.w3.org/2000/svg}clipPath")
        'clippath'
    """
    if tag.startswith("{"):
        tag = tag.split("}", 1)[1]
    if ":" in tag:
        tag = tag.split(":", 1)[1]
    return tag.lower()


def parse_length(value: str | None, default: float = 0.0) -> float:
    """Parse the leading number of a CSS length ("12px", "1.5", "50%").

    Args:
        value: CSS value string.
        default: Value returned when no number can be read.

    Returns:
        Parsed number (unit discarded) or default.
    """
    if not value:
        return default
    match = _LENGTH_RE.match(value)
    if not match:
        return default
    number = float(match.group(1))
    if number != number:  # NaN
        return default
    return number


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split text at separators that are not nested inside parentheses.

    Empty parts are dropped and every part is stripped.

    Example:
        >>> split_top_level("rgb(0, 0, 0) 1px, red 2px")
        ['rgb(0, 0, 0) 1px', 'red 2px']
    """
    parts: list[str] = []
    current: list[str] = []
    depth = 0

    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)

        if char == separator and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
        else:
            current.append(char)

    part = "".join(current).strip()
    if part:
        parts.append(part)
    return parts


def extract_balanced(text: str, start: int) -> str:
    """Return the content between an opening parenthesis and its match.

    Args:
        text: Source text.
        start: Index just after the opening parenthesis.

    Returns:
        Content up to (not including) the matching closing parenthesis,
        or the rest of the string if it is unbalanced.
    """
    depth = 1
    i = start
    while i < len(text):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return text[start:i]
        i += 1
    return text[start:]


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1], mapping NaN to 0."""
    if value != value:
        return 0.0
    return max(0.0, min(1.0, value))


def truncate_label(text: str, limit: int = 20) -> str:
    """Shorten text for use as a layer name."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text
