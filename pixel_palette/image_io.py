"""Image loading and saving for the host side (Pillow)."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from pixel_palette.buffer import PixelBuffer

logger = logging.getLogger(__name__)

# Suffixes whose formats cannot store an alpha channel
NO_ALPHA_SUFFIXES = frozenset({".jpg", ".jpeg", ".jfif", ".bmp"})


def load_image(path: str | Path) -> PixelBuffer:
    """Decode an image file into an RGBA buffer."""
    with Image.open(path) as img:
        rgba = img.convert("RGBA")
    return PixelBuffer.from_array(np.asarray(rgba))


def to_pil(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(buffer.data)


def _write(img: Image.Image, path: str | Path) -> None:
    """Save *img*, dropping alpha for formats that cannot hold it."""
    path = Path(path)
    if path.suffix.lower() in NO_ALPHA_SUFFIXES and img.mode != "RGB":
        img = img.convert("RGB")
    img.save(path)
    logger.debug("Saved %s (%dx%d)", path, img.width, img.height)


def save_image(
    buffer: PixelBuffer,
    path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Save a buffer, optionally nearest-neighbour-upscaled.

    Formats without an alpha channel (JPEG, BMP) are written as RGB.
    """
    img = to_pil(buffer)
    if pixel_upscale > 1:
        w, h = img.size
        img = img.resize((w * pixel_upscale, h * pixel_upscale), Image.NEAREST)
    _write(img, path)


def make_comparison(
    original: PixelBuffer,
    result: PixelBuffer,
    path: str | Path,
    gap: int = 8,
) -> None:
    """Save Original | Result side by side on a dark background."""
    left = to_pil(original)
    right = to_pil(result).resize(left.size, Image.NEAREST)
    canvas = Image.new("RGBA", (left.width * 2 + gap, left.height), (30, 30, 30, 255))
    canvas.paste(left, (0, 0))
    canvas.paste(right, (left.width + gap, 0))
    _write(canvas, path)
