#!/usr/bin/env python3
"""Display layer statistics of a capture document by depth."""

import argparse
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layer_capture.capture import CaptureStats, analyze_capture


def format_table(stats: CaptureStats) -> str:
    """Format statistics as a text table.

    Args:
        stats: Capture statistics to format.

    Returns:
        Formatted table string.
    """
    lines = []
    lines.append(f"File: {stats.file_path}")
    lines.append(f"Source: {stats.source_url or '(unknown)'}")
    lines.append(f"Total layers: {stats.total_layers}")
    lines.append("")

    rows: list[tuple[str, str, str]] = []
    rows.append(("Depth", "Type", "Count"))
    rows.append(("-" * 8, "-" * 12, "-" * 8))

    for depth in stats.depths:
        first = True
        for layer_type, count in sorted(depth.type_counts.items()):
            rows.append((str(depth.depth) if first else "", layer_type, str(count)))
            first = False
        if len(depth.type_counts) > 1:
            rows.append(("", "(subtotal)", str(depth.total)))

    rows.append(("-" * 8, "-" * 12, "-" * 8))
    first = True
    for layer_type, count in sorted(stats.type_counts.items()):
        rows.append(("(all)" if first else "", layer_type, str(count)))
        first = False

    col_widths = [max(len(row[i]) for row in rows) for i in range(3)]

    for row in rows:
        line = f"{row[0]:<{col_widths[0]}}  {row[1]:<{col_widths[1]}}  {row[2]:>{col_widths[2]}}"
        lines.append(line)

    return "\n".join(lines)


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    parser = argparse.ArgumentParser(
        description="Display layer statistics of a capture document by depth."
    )
    parser.add_argument("capture_file", type=Path, help="Path to capture JSON file")
    parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, help="Output file (default: stdout)"
    )

    args = parser.parse_args()

    if not args.capture_file.exists():
        print(f"Error: File not found: {args.capture_file}", file=sys.stderr)
        return 1

    try:
        stats = analyze_capture(args.capture_file)
    except (ValueError, OSError) as e:
        print(f"Error: Failed to read capture: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        output = json.dumps(stats.to_dict(), indent=2, ensure_ascii=False)
    else:
        output = format_table(stats)

    if args.output:
        args.output.write_text(output, encoding="utf-8")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
