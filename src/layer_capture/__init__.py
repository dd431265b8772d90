"""Layer Capture - infer design layer trees from computed styles and geometry."""

__version__ = "0.1.0"

from .builder import (
    BuildReport,
    LayerBuilder,
    build_layer_tree,
)
from .capture import (
    CaptureDocument,
    CaptureError,
    capture_file,
    capture_snapshot,
    capture_to_json,
    count_layers,
    format_capture_report,
    measure_bounds,
    scale_document,
    scale_layer,
    write_capture,
)
from .config import (
    CaptureConfig,
    parse_config,
    parse_config_file,
)
from .model import LayerNode
from .snapshot import (
    CaptureSnapshot,
    ElementSnapshot,
    SnapshotError,
    load_snapshot,
    snapshot_from_dict,
)

__all__ = [
    # Builder
    "BuildReport",
    "LayerBuilder",
    "build_layer_tree",
    # Capture envelope
    "CaptureDocument",
    "CaptureError",
    "capture_file",
    "capture_snapshot",
    "capture_to_json",
    "count_layers",
    "format_capture_report",
    "measure_bounds",
    "scale_document",
    "scale_layer",
    "write_capture",
    # Config
    "CaptureConfig",
    "parse_config",
    "parse_config_file",
    # Model
    "LayerNode",
    # Snapshot input
    "CaptureSnapshot",
    "ElementSnapshot",
    "SnapshotError",
    "load_snapshot",
    "snapshot_from_dict",
]
