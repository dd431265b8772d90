"""Capture snapshot: the element tree handed in by the style/geometry provider.

Every element carries its computed style map, its measured box in one
consistent coordinate space, its child nodes in document order and the
computed styles of its ``::before``/``::after`` pseudo-elements.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from .styles import is_visible
from .utils import get_local_name

_WHITESPACE_RE = re.compile(r"\s+")


class SnapshotError(ValueError):
    """A snapshot violates the provider contract (missing tag, box, ...)."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


@dataclass
class Box:
    """Measured border box."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class TextRun:
    """A text node, with its rendered extents when the provider measured them."""

    text: str
    box: Box | None = None

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass
class LineBreak:
    """A <br> element inside text content."""


@dataclass
class PseudoSnapshot:
    """Computed style of a ::before or ::after pseudo-element."""

    style: dict[str, str]


Node = Union["ElementSnapshot", TextRun, LineBreak]


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces, as rendered text does."""
    return _WHITESPACE_RE.sub(" ", text)


@dataclass
class ElementSnapshot:
    """One element of the captured document."""

    tag: str
    box: Box
    style: dict[str, str] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    pseudo_before: PseudoSnapshot | None = None
    pseudo_after: PseudoSnapshot | None = None
    svg_markup: str | None = None

    @property
    def element_children(self) -> list["ElementSnapshot"]:
        """Child elements, excluding text nodes and line breaks."""
        return [c for c in self.children if isinstance(c, ElementSnapshot)]

    @property
    def text_runs(self) -> list[TextRun]:
        """Direct text nodes."""
        return [c for c in self.children if isinstance(c, TextRun)]

    @property
    def has_real_text(self) -> bool:
        """Check if any direct text node has non-whitespace content."""
        return any(not run.is_blank for run in self.text_runs)

    @property
    def id(self) -> str | None:
        return self.attributes.get("id") or None

    @property
    def class_name(self) -> str | None:
        return self.attributes.get("class") or None

    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def text_pieces(
        self, include_hidden: bool = False
    ) -> list[tuple[str, "ElementSnapshot | None"]]:
        """Rendered text split at direct children.

        Each piece is paired with the child element that owns it, or None for
        text nodes and line breaks. Hidden child elements contribute nothing
        unless include_hidden is set. Whitespace collapses across pieces.
        """
        pieces: list[tuple[str, ElementSnapshot | None]] = []
        previous = ""
        for child in self.children:
            owner = None
            if isinstance(child, LineBreak):
                text = "\n"
            elif isinstance(child, TextRun):
                text = collapse_whitespace(child.text)
            else:
                if not include_hidden and not is_visible(child.style):
                    continue
                text = child.raw_text(include_hidden)
                owner = child
            if previous.endswith((" ", "\n")) and text.startswith(" "):
                text = text[1:]
            if text:
                previous = text
            pieces.append((text, owner))
        return pieces

    def raw_text(self, include_hidden: bool = False) -> str:
        """All rendered descendant text in document order, line breaks as newlines."""
        return "".join(text for text, _ in self.text_pieces(include_hidden))

    def inner_text(self, include_hidden: bool = False) -> str:
        """Rendered text content of the element, trimmed."""
        return self.raw_text(include_hidden).strip()

    def direct_text(self) -> str:
        """Text of the direct text nodes only, trimmed."""
        return collapse_whitespace("".join(run.text for run in self.text_runs)).strip()


@dataclass
class CaptureSnapshot:
    """A whole-page (or sub-tree) snapshot plus its provenance."""

    root: ElementSnapshot
    source_url: str | None = None
    viewport: tuple[float, float] = (0.0, 0.0)
    base_url: str | None = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_box(data: Any, path: str) -> Box:
    if not isinstance(data, dict):
        raise SnapshotError(path, "box must be an object with x, y, width, height")
    values = []
    for key in ("x", "y", "width", "height"):
        if key not in data:
            raise SnapshotError(path, f"box is missing '{key}'")
        if not _is_number(data[key]):
            raise SnapshotError(path, f"box '{key}' must be a number, got {data[key]!r}")
        values.append(float(data[key]))
    return Box(*values)


def _parse_style(data: Any, path: str) -> dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SnapshotError(path, "style must be an object")
    return {str(k): str(v) for k, v in data.items()}


def _parse_pseudo(data: Any, path: str) -> PseudoSnapshot | None:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise SnapshotError(path, "pseudo-element must be an object")
    return PseudoSnapshot(style=_parse_style(data.get("style"), f"{path}.style"))


def _parse_node(data: Any, path: str) -> Node:
    if isinstance(data, str):
        return TextRun(text=data)
    if not isinstance(data, dict):
        raise SnapshotError(path, f"unknown child kind: {type(data).__name__}")
    if "text" in data and "tag" not in data:
        box = data.get("box")
        return TextRun(
            text=str(data["text"]),
            box=_parse_box(box, f"{path}.box") if box is not None else None,
        )
    if "tag" in data and get_local_name(str(data["tag"])) == "br":
        return LineBreak()
    if "tag" in data:
        return parse_element(data, path)
    raise SnapshotError(path, "child has neither 'tag' nor 'text'")


def parse_element(data: Any, path: str = "root") -> ElementSnapshot:
    """Parse one element object and its descendants.

    Raises:
        SnapshotError: If a required field is missing or malformed.
    """
    if not isinstance(data, dict):
        raise SnapshotError(path, "element must be an object")
    if "tag" not in data or not isinstance(data["tag"], str) or not data["tag"]:
        raise SnapshotError(path, "element is missing 'tag'")
    if "box" not in data:
        raise SnapshotError(path, "element is missing 'box'")

    children_data = data.get("children") or []
    if not isinstance(children_data, list):
        raise SnapshotError(f"{path}.children", "children must be a list")

    attributes = data.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise SnapshotError(f"{path}.attributes", "attributes must be an object")

    svg_markup = data.get("svg")
    return ElementSnapshot(
        tag=get_local_name(data["tag"]),
        box=_parse_box(data["box"], f"{path}.box"),
        style=_parse_style(data.get("style"), f"{path}.style"),
        children=[
            _parse_node(child, f"{path}.children[{i}]")
            for i, child in enumerate(children_data)
        ],
        attributes={str(k): str(v) for k, v in attributes.items()},
        pseudo_before=_parse_pseudo(data.get("before"), f"{path}.before"),
        pseudo_after=_parse_pseudo(data.get("after"), f"{path}.after"),
        svg_markup=str(svg_markup) if svg_markup is not None else None,
    )


def snapshot_from_dict(data: Any) -> CaptureSnapshot:
    """Build a CaptureSnapshot from decoded JSON.

    Raises:
        SnapshotError: If the snapshot is structurally invalid.
    """
    if not isinstance(data, dict):
        raise SnapshotError("$", "snapshot must be a JSON object")
    if "root" not in data:
        raise SnapshotError("$", "snapshot is missing 'root'")

    viewport = (0.0, 0.0)
    viewport_data = data.get("viewport")
    if viewport_data is not None:
        if not isinstance(viewport_data, dict) or not all(
            _is_number(viewport_data.get(k)) for k in ("width", "height")
        ):
            raise SnapshotError("viewport", "viewport must have numeric width and height")
        viewport = (float(viewport_data["width"]), float(viewport_data["height"]))

    return CaptureSnapshot(
        root=parse_element(data["root"], "root"),
        source_url=data.get("sourceUrl"),
        viewport=viewport,
        base_url=data.get("baseUrl") or data.get("sourceUrl"),
    )


def load_snapshot(snapshot_path: Path) -> CaptureSnapshot:
    """Load a capture snapshot JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SnapshotError: If the snapshot is structurally invalid.
    """
    with open(snapshot_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return snapshot_from_dict(data)
