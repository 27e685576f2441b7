"""
Pixel Palette
=============

Turn any RGBA image into pixel art: collapse it into uniform square blocks
and, optionally, snap every block to the nearest colour of a classic
display palette (Game Boy, NES, CGA, C64, ...).

- **Sampling**: block average (default) or block centre
- **Matching**: weighted "redmean" RGB distance, cached per palette
"""

__version__ = "1.0.0"

from pixel_palette.buffer import PixelBuffer
from pixel_palette.cache import ColorMatchCache
from pixel_palette.config import PixelateConfig
from pixel_palette.engine import BandResult, PixelationEngine, PixelationJob, process
from pixel_palette.errors import (
    InvalidColor,
    InvalidParameter,
    PixelPaletteError,
    ProcessingCancelled,
    UnknownPalette,
)
from pixel_palette.palette import (
    CLASSIC_PALETTES,
    Palette,
    custom_palette,
    extract_palette,
    get_palette,
    lookup,
    palette_ids,
    parse_hex_color,
)

__all__ = [
    "CLASSIC_PALETTES",
    "BandResult",
    "ColorMatchCache",
    "InvalidColor",
    "InvalidParameter",
    "Palette",
    "PixelBuffer",
    "PixelPaletteError",
    "PixelateConfig",
    "PixelationEngine",
    "PixelationJob",
    "ProcessingCancelled",
    "UnknownPalette",
    "custom_palette",
    "extract_palette",
    "get_palette",
    "lookup",
    "palette_ids",
    "parse_hex_color",
    "process",
]
