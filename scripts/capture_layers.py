#!/usr/bin/env python3
"""Build a design layer tree from a capture snapshot."""

import argparse
import json
import sys
from pathlib import Path

import yaml

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layer_capture.capture import (
    CaptureError,
    capture_snapshot,
    format_capture_report,
    scale_document,
    write_capture,
)
from layer_capture.config import CaptureConfig, parse_config_file
from layer_capture.icons import FreetypeIconRasterizer
from layer_capture.snapshot import SnapshotError, load_snapshot


def main() -> int:
    """Main entry point.

    Returns:
        Exit code:
        - 0: Success
        - 1: I/O error
        - 2: Config or snapshot error
        - 3: Nothing captured
    """
    parser = argparse.ArgumentParser(
        description="Build a design layer tree from a computed-style snapshot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print a capture summary only
  %(prog)s snapshot.json

  # Write the capture document
  %(prog)s snapshot.json --output capture.json

  # Custom tolerances and icon rasterization
  %(prog)s snapshot.json --config capture.yaml --rasterize-icons -o capture.json
""",
    )
    parser.add_argument("snapshot_file", type=Path, help="Path to snapshot JSON file")
    parser.add_argument("--config", "-c", type=Path, help="Path to YAML config file")
    parser.add_argument("--output", "-o", type=Path, help="Output capture JSON file")
    parser.add_argument(
        "--include-hidden",
        action="store_true",
        help="Capture hidden elements as invisible layers",
    )
    parser.add_argument("--max-depth", type=int, help="Maximum nesting depth")
    parser.add_argument(
        "--rasterize-icons",
        action="store_true",
        help="Rasterize icon-font glyphs with FreeType (needs fc-match)",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="Scale every length of the output tree (default: 1)",
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Do not print the report")

    args = parser.parse_args()

    # Validate input files exist
    if not args.snapshot_file.exists():
        print(f"Error: Snapshot file not found: {args.snapshot_file}", file=sys.stderr)
        return 1

    if args.config and not args.config.exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1

    if args.scale <= 0:
        print(f"Error: --scale must be positive, got {args.scale}", file=sys.stderr)
        return 2

    # Parse config file
    try:
        config = parse_config_file(args.config) if args.config else CaptureConfig()
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: Failed to parse config file: {e}", file=sys.stderr)
        return 2

    if args.include_hidden:
        config.include_hidden = True
    if args.max_depth is not None:
        config.max_depth = args.max_depth

    # Load snapshot
    try:
        snapshot = load_snapshot(args.snapshot_file)
    except (SnapshotError, json.JSONDecodeError) as e:
        print(f"Error: Invalid snapshot: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: Failed to read snapshot: {e}", file=sys.stderr)
        return 1

    rasterizer = FreetypeIconRasterizer() if args.rasterize_icons else None

    try:
        document, report = capture_snapshot(snapshot, config, rasterizer)
    except CaptureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3

    if args.scale != 1:
        document = scale_document(document, args.scale)

    if not args.quiet:
        print(format_capture_report(document, report))

    if args.output:
        try:
            write_capture(document, args.output)
        except OSError as e:
            print(f"Error: Failed to write output: {e}", file=sys.stderr)
            return 1
        if not args.quiet:
            print(f"\nOutput written to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
