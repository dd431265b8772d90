"""Icon-font glyph rasterization.

Icon fonts draw their glyphs at private-use code points, which render as
nothing (or as a fallback box) wherever that exact font is missing. Such
glyphs are rasterized into PNG images at capture time instead of being
kept as text.
"""

import base64
import io
import math
import subprocess
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import freetype
from PIL import Image

from .model import BLACK, RGBA


@dataclass
class IconFont:
    """Font and box an icon glyph is drawn with."""

    family: str
    size: float
    weight: int = 400
    color: RGBA = BLACK
    width: float = 0.0
    height: float = 0.0


class IconRasterizer(Protocol):
    """Renders a glyph string to image bytes.

    ``rasterize`` returns None when there is nothing to draw, and may raise
    OSError or RuntimeError when rendering fails.
    """

    def rasterize(self, glyph: str, font: IconFont) -> bytes | None: ...


def png_data_url(png_bytes: bytes) -> str:
    """Encode PNG bytes as a data URL."""
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def fontconfig_pattern(family: str, weight: int) -> str:
    """Build an fc-match pattern for a CSS family and weight."""
    family = family.split(",")[0].strip().strip("\"'")
    if weight >= 600:
        return f"{family}:bold"
    return family


@lru_cache(maxsize=32)
def find_font_file(pattern: str) -> str | None:
    """Find font file path using fc-match.

    Args:
        pattern: Fontconfig pattern (family, optionally with style).

    Returns:
        Path to font file or None if not found.
    """
    try:
        result = subprocess.run(
            ["fc-match", pattern, "-f", "%{file}"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pass
    return None


@lru_cache(maxsize=8)
def load_font_face(font_path: str) -> freetype.Face:
    """Load a FreeType font face."""
    return freetype.Face(font_path)


def _glyph_coverage(bitmap) -> Image.Image:
    """Copy a FreeType grayscale bitmap into an 8-bit image."""
    width = bitmap.width
    rows = bitmap.rows
    pitch = bitmap.pitch
    buffer = bitmap.buffer
    data = b"".join(bytes(buffer[row * pitch : row * pitch + width]) for row in range(rows))
    return Image.frombytes("L", (width, rows), data)


class FreetypeIconRasterizer:
    """Rasterize icon glyphs with FreeType and encode them with Pillow.

    Glyphs are drawn centered on a transparent canvas of the icon's box,
    ``scale`` times oversampled for crisp output.
    """

    def __init__(self, scale: int = 4):
        self.scale = scale

    def rasterize(self, glyph: str, font: IconFont) -> bytes | None:
        font_path = find_font_file(fontconfig_pattern(font.family, font.weight))
        if font_path is None:
            return None

        try:
            face = load_font_face(font_path)
        except freetype.FT_Exception as e:
            raise RuntimeError(f"Cannot load font {font_path}: {e}") from e

        # fc-match falls back to another font; a missing glyph maps to index 0
        if any(face.get_char_index(ord(char)) == 0 for char in glyph if not char.isspace()):
            return None

        size = font.size or 16.0
        canvas_width = max(1, math.ceil((font.width or size) * self.scale))
        canvas_height = max(1, math.ceil((font.height or size) * self.scale))
        face.set_pixel_sizes(0, max(1, round(size * self.scale)))

        # Lay out the glyphs on a baseline and track their ink box
        placed: list[tuple[Image.Image, int, int]] = []
        pen_x = 0
        min_x = min_y = math.inf
        max_x = max_y = -math.inf
        for char in glyph:
            try:
                face.load_char(char, freetype.FT_LOAD_RENDER)
            except freetype.FT_Exception as e:
                raise RuntimeError(f"Cannot render {char!r}: {e}") from e
            slot = face.glyph
            coverage = _glyph_coverage(slot.bitmap)
            left = pen_x + slot.bitmap_left
            top = -slot.bitmap_top
            if coverage.width > 0 and coverage.height > 0:
                placed.append((coverage, left, top))
                min_x = min(min_x, left)
                min_y = min(min_y, top)
                max_x = max(max_x, left + coverage.width)
                max_y = max(max_y, top + coverage.height)
            pen_x += slot.advance.x >> 6

        if not placed:
            return None

        offset_x = round((canvas_width - (max_x - min_x)) / 2 - min_x)
        offset_y = round((canvas_height - (max_y - min_y)) / 2 - min_y)

        color = font.color
        fill = (
            round(color.r * 255),
            round(color.g * 255),
            round(color.b * 255),
            255,
        )
        canvas = Image.new("RGBA", (canvas_width, canvas_height), (0, 0, 0, 0))
        for coverage, left, top in placed:
            mask = coverage.point(lambda v: round(v * color.a))
            solid = Image.new("RGBA", coverage.size, fill)
            canvas.paste(solid, (left + offset_x, top + offset_y), mask)

        if canvas.getchannel("A").getbbox() is None:
            return None

        output = io.BytesIO()
        canvas.save(output, format="PNG")
        return output.getvalue()
