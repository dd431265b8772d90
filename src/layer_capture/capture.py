"""Capture envelope, JSON output and layer tree utilities."""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .builder import BuildReport, build_layer_tree
from .config import CaptureConfig
from .icons import IconRasterizer
from .model import (
    AutoLayoutConfig,
    BlurEffect,
    Corners,
    CornerRadius,
    Effect,
    LayerNode,
    ShadowEffect,
    SideWeights,
    StrokeConfig,
    TextSegment,
    TextStyle,
)
from .snapshot import CaptureSnapshot, load_snapshot

# Version of the capture document format
FORMAT_VERSION = "0.0.1"


class CaptureError(Exception):
    """A capture produced no layer tree."""


@dataclass
class CaptureDocument:
    """Versioned envelope around a captured layer tree."""

    version: str
    captured_at: str
    source_url: str | None
    viewport: tuple[float, float]
    root: LayerNode

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "capturedAt": self.captured_at,
            "sourceUrl": self.source_url or "",
            "viewport": {"width": self.viewport[0], "height": self.viewport[1]},
            "root": self.root.to_dict(),
        }


def iter_layers(layer: LayerNode, depth: int = 0) -> Iterator[tuple[LayerNode, int]]:
    """Iterate over a layer tree depth-first.

    Yields:
        Tuples of (layer, depth), the given layer first at ``depth``.
    """
    yield layer, depth
    for child in layer.children:
        yield from iter_layers(child, depth + 1)


def count_layers(layer: LayerNode) -> int:
    """Count layers in a tree, the root included."""
    return 1 + sum(count_layers(child) for child in layer.children)


def measure_bounds(layer: LayerNode) -> tuple[float, float]:
    """Furthest right and bottom edge reached by any layer.

    Child coordinates are accumulated from their parents.

    Returns:
        Tuple of (max_x, max_y).
    """
    max_x = 0.0
    max_y = 0.0

    def _traverse(node: LayerNode, parent_x: float, parent_y: float) -> None:
        nonlocal max_x, max_y
        x = parent_x + node.x
        y = parent_y + node.y
        max_x = max(max_x, x + node.width)
        max_y = max(max_y, y + node.height)
        for child in node.children:
            _traverse(child, x, y)

    _traverse(layer, 0.0, 0.0)
    return max_x, max_y


def _scale_corner_radius(radius: CornerRadius, scale: float) -> CornerRadius:
    if isinstance(radius, Corners):
        return Corners(
            top_left=radius.top_left * scale,
            top_right=radius.top_right * scale,
            bottom_right=radius.bottom_right * scale,
            bottom_left=radius.bottom_left * scale,
        )
    return radius * scale


def _scale_effect(effect: Effect, scale: float) -> Effect:
    if isinstance(effect, ShadowEffect):
        return replace(
            effect,
            offset_x=effect.offset_x * scale,
            offset_y=effect.offset_y * scale,
            radius=effect.radius * scale,
            spread=effect.spread * scale,
        )
    if isinstance(effect, BlurEffect):
        return replace(effect, radius=effect.radius * scale)
    raise TypeError(f"Unknown effect variant: {type(effect).__name__}")


def _scale_stroke(stroke: StrokeConfig, scale: float) -> StrokeConfig:
    weights = stroke.individual_weights
    return replace(
        stroke,
        weight=stroke.weight * scale,
        dash_pattern=[d * scale for d in stroke.dash_pattern] if stroke.dash_pattern else None,
        individual_weights=SideWeights(
            top=weights.top * scale,
            right=weights.right * scale,
            bottom=weights.bottom * scale,
            left=weights.left * scale,
        )
        if weights
        else None,
    )


def _scale_auto_layout(layout: AutoLayoutConfig, scale: float) -> AutoLayoutConfig:
    return replace(
        layout,
        padding_top=layout.padding_top * scale,
        padding_right=layout.padding_right * scale,
        padding_bottom=layout.padding_bottom * scale,
        padding_left=layout.padding_left * scale,
        item_spacing=layout.item_spacing * scale,
    )


def _scale_text_style(style: TextStyle, scale: float) -> TextStyle:
    line_height = style.line_height
    return replace(
        style,
        font_size=style.font_size * scale,
        line_height=line_height if line_height == "AUTO" else line_height * scale,
        letter_spacing=style.letter_spacing * scale,
    )


def _scale_segment(segment: TextSegment, scale: float) -> TextSegment:
    if segment.font_size is None:
        return segment
    return replace(segment, font_size=segment.font_size * scale)


def scale_layer(layer: LayerNode, scale: float) -> LayerNode:
    """Return a copy of a layer tree with every length multiplied by scale."""
    return replace(
        layer,
        x=layer.x * scale,
        y=layer.y * scale,
        width=layer.width * scale,
        height=layer.height * scale,
        fills=list(layer.fills),
        corner_radius=_scale_corner_radius(layer.corner_radius, scale),
        effects=[_scale_effect(e, scale) for e in layer.effects],
        stroke=_scale_stroke(layer.stroke, scale) if layer.stroke else None,
        auto_layout=_scale_auto_layout(layer.auto_layout, scale) if layer.auto_layout else None,
        text_style=_scale_text_style(layer.text_style, scale) if layer.text_style else None,
        text_segments=[_scale_segment(s, scale) for s in layer.text_segments]
        if layer.text_segments
        else layer.text_segments,
        children=[scale_layer(child, scale) for child in layer.children],
    )


def scale_document(document: CaptureDocument, scale: float) -> CaptureDocument:
    """Return a copy of a capture with its viewport and layer tree scaled."""
    width, height = document.viewport
    return replace(
        document,
        viewport=(width * scale, height * scale),
        root=scale_layer(document.root, scale),
    )


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def capture_snapshot(
    snapshot: CaptureSnapshot,
    config: CaptureConfig | None = None,
    rasterizer: IconRasterizer | None = None,
    captured_at: str | None = None,
    full_page: bool = True,
) -> tuple[CaptureDocument, BuildReport]:
    """Build the capture document for a snapshot.

    The root layer keeps the snapshot's coordinates. A full-page capture
    grows the viewport to contain the whole tree.

    Args:
        snapshot: Capture snapshot.
        config: Capture options; defaults when None.
        rasterizer: Icon rasterizer, or None to keep icon glyphs as text.
        captured_at: ISO timestamp; the current time when None.
        full_page: Whether the viewport should cover the whole tree.

    Returns:
        Tuple of (document, build report).

    Raises:
        CaptureError: If the root element yields no layer.
    """
    root, report = build_layer_tree(
        snapshot.root, config, rasterizer, base_url=snapshot.base_url
    )
    if root is None:
        reasons = ", ".join(sorted(report.skipped)) or "unknown"
        raise CaptureError(f"Root element produced no layer (skipped: {reasons})")

    width, height = snapshot.viewport
    if full_page:
        max_x, max_y = measure_bounds(root)
        width = max(width, max_x)
        height = max(height, max_y)

    document = CaptureDocument(
        version=FORMAT_VERSION,
        captured_at=captured_at or _timestamp(),
        source_url=snapshot.source_url,
        viewport=(width, height),
        root=root,
    )
    return document, report


def capture_file(
    snapshot_path: Path,
    config: CaptureConfig | None = None,
    rasterizer: IconRasterizer | None = None,
    captured_at: str | None = None,
) -> tuple[CaptureDocument, BuildReport]:
    """Load a snapshot file and capture it.

    Raises:
        FileNotFoundError: If the file does not exist.
        SnapshotError: If the snapshot is structurally invalid.
        CaptureError: If the root element yields no layer.
    """
    snapshot = load_snapshot(snapshot_path)
    return capture_snapshot(snapshot, config, rasterizer, captured_at)


def capture_to_json(document: CaptureDocument) -> str:
    """Serialize a capture document as indented JSON."""
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False)


def write_capture(document: CaptureDocument, output_path: Path) -> None:
    """Write a capture document as UTF-8 JSON."""
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(capture_to_json(document))
        f.write("\n")


def count_layer_types(layer: LayerNode) -> dict[str, int]:
    """Count layers per type."""
    counts: dict[str, int] = {}
    for node, _ in iter_layers(layer):
        counts[node.type] = counts.get(node.type, 0) + 1
    return counts


def format_capture_report(document: CaptureDocument, report: BuildReport) -> str:
    """Format a capture summary as text.

    Args:
        document: Capture document.
        report: Build report of the same capture.

    Returns:
        Formatted text.
    """
    lines: list[str] = []
    lines.append(f"Source: {document.source_url or '(unknown)'}")
    lines.append(f"Captured at: {document.captured_at}")
    lines.append(f"Viewport: {document.viewport[0]:g} x {document.viewport[1]:g}")
    lines.append("")

    lines.append("Layers:")
    for layer_type, count in sorted(count_layer_types(document.root).items()):
        lines.append(f"  {layer_type}: {count}")
    lines.append(f"  Total: {count_layers(document.root)}")
    max_depth = max(depth for _, depth in iter_layers(document.root))
    lines.append(f"  Max depth: {max_depth}")
    if report.wrapper_count:
        lines.append(f"  Spacing wrappers: {report.wrapper_count}")
    if report.rasterized_icons:
        lines.append(f"  Rasterized icons: {report.rasterized_icons}")
    lines.append("")

    if report.skipped:
        lines.append("Skipped elements:")
        for reason, count in sorted(report.skipped.items()):
            lines.append(f"  {reason}: {count}")
        lines.append("")

    for warning in report.warnings:
        lines.append(f"  [WARNING] {warning}")
    if report.warnings:
        lines.append("")

    lines.append("Summary:")
    lines.append(f"  Total layers: {count_layers(document.root)}")
    lines.append(f"  Total skipped: {report.total_skipped}")
    lines.append(f"  Warnings: {len(report.warnings)}")

    return "\n".join(lines)


@dataclass
class DepthStats:
    """Layer counts at one depth of a written capture."""

    depth: int
    type_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.type_counts.values())

    def to_dict(self) -> dict:
        return {"depth": self.depth, "type_counts": self.type_counts, "total": self.total}


@dataclass
class CaptureStats:
    """Statistics for a written capture file."""

    file_path: Path
    version: str
    source_url: str
    depths: list[DepthStats] = field(default_factory=list)

    @property
    def type_counts(self) -> dict[str, int]:
        """Layer counts per type over all depths."""
        counts: dict[str, int] = {}
        for depth in self.depths:
            for layer_type, count in depth.type_counts.items():
                counts[layer_type] = counts.get(layer_type, 0) + count
        return counts

    @property
    def total_layers(self) -> int:
        return sum(depth.total for depth in self.depths)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": str(self.file_path),
            "version": self.version,
            "source_url": self.source_url,
            "total_layers": self.total_layers,
            "type_counts": self.type_counts,
            "depths": [d.to_dict() for d in self.depths],
        }


def analyze_capture(capture_path: Path) -> CaptureStats:
    """Collect per-depth layer statistics from a capture JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the file is not a capture document.
    """
    with open(capture_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or not isinstance(data.get("root"), dict):
        raise ValueError("Capture file must be an object with a 'root' layer")

    stats = CaptureStats(
        file_path=capture_path,
        version=str(data.get("version", "")),
        source_url=str(data.get("sourceUrl", "")),
    )

    def _collect(node: dict, depth: int) -> None:
        while len(stats.depths) <= depth:
            stats.depths.append(DepthStats(depth=len(stats.depths)))
        layer_type = str(node.get("type", "UNKNOWN"))
        counts = stats.depths[depth].type_counts
        counts[layer_type] = counts.get(layer_type, 0) + 1
        for child in node.get("children") or []:
            if isinstance(child, dict):
                _collect(child, depth + 1)

    _collect(data["root"], 0)
    return stats
