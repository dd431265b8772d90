"""Capture configuration and YAML config-file parsing."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ICON_FONT_PATTERNS = ("Font Awesome", "Material", "icon", "Icon")


@dataclass
class LayoutTolerances:
    """Thresholds used by layout inference."""

    gap_tolerance: float = 4.0
    centering_tolerance: float = 8.0
    full_width_tolerance: float = 2.0
    full_width_ratio: float = 0.9
    multiline_ratio: float = 1.8
    fixed_anchor_threshold: float = 100.0
    fixed_snap_tolerance: float = 20.0
    fixed_z_index: int = 1000


@dataclass
class ClassifyConfig:
    """Thresholds used by layer type classification."""

    text_padding_threshold: float = 2.0
    pill_radius: float = 9999.0
    square_tolerance: float = 2.0


@dataclass
class CaptureConfig:
    """Options for one capture run."""

    max_depth: int = 50
    include_hidden: bool = False
    capture_images: bool = True
    layout: LayoutTolerances = field(default_factory=LayoutTolerances)
    classify: ClassifyConfig = field(default_factory=ClassifyConfig)
    icon_font_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_ICON_FONT_PATTERNS)
    )

    def is_icon_font(self, font_family: str) -> bool:
        """Check if a font-family value names a known icon font."""
        return any(pattern in font_family for pattern in self.icon_font_patterns)


def _read_section(data: dict, key: str) -> dict:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' must be a mapping")
    return section


def _read_number(section: dict, key: str, default: float, prefix: str) -> float:
    if key not in section:
        return default
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{prefix}{key}' must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"'{prefix}{key}' must be >= 0, got {value}")
    return float(value)


def _read_bool(section: dict, key: str, default: bool) -> bool:
    if key not in section:
        return default
    value = section[key]
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def parse_config(data: dict[str, Any] | None) -> CaptureConfig:
    """Build a CaptureConfig from a parsed YAML mapping.

    Missing keys keep their defaults.

    Args:
        data: Mapping as loaded from YAML, or None for all defaults.

    Returns:
        Parsed CaptureConfig.

    Raises:
        ValueError: If a section or value has the wrong type.
    """
    if data is None:
        return CaptureConfig()
    if not isinstance(data, dict):
        raise ValueError("Config file must be a YAML dictionary")

    config = CaptureConfig()

    if "max_depth" in data:
        max_depth = data["max_depth"]
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise ValueError(f"'max_depth' must be a non-negative integer, got {max_depth!r}")
        config.max_depth = max_depth
    config.include_hidden = _read_bool(data, "include_hidden", config.include_hidden)
    config.capture_images = _read_bool(data, "capture_images", config.capture_images)

    # Layout tolerances
    layout_data = _read_section(data, "layout")
    layout = config.layout
    for key in (
        "gap_tolerance",
        "centering_tolerance",
        "full_width_tolerance",
        "full_width_ratio",
        "multiline_ratio",
        "fixed_anchor_threshold",
        "fixed_snap_tolerance",
    ):
        setattr(layout, key, _read_number(layout_data, key, getattr(layout, key), "layout."))
    layout.fixed_z_index = int(
        _read_number(layout_data, "fixed_z_index", layout.fixed_z_index, "layout.")
    )

    # Classification
    classify_data = _read_section(data, "classify")
    classify = config.classify
    for key in ("text_padding_threshold", "pill_radius", "square_tolerance"):
        setattr(
            classify, key, _read_number(classify_data, key, getattr(classify, key), "classify.")
        )

    # Icon fonts
    icons_data = _read_section(data, "icons")
    if "font_patterns" in icons_data:
        patterns = icons_data["font_patterns"]
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ValueError("'icons.font_patterns' must be a list of strings")
        config.icon_font_patterns = list(patterns)

    return config


def parse_config_file(config_path: Path) -> CaptureConfig:
    """Parse a YAML capture config file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Parsed CaptureConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the config format is invalid.
    """
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return parse_config(data)
