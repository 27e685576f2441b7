"""Resizing strategy applied before pixelation: native or fit-to-max(N)."""

from __future__ import annotations

import logging

from PIL import Image

from pixel_palette.buffer import PixelBuffer
from pixel_palette.errors import InvalidParameter

logger = logging.getLogger(__name__)


def compute_target_size(
    original_width: int,
    original_height: int,
    max_side: int,
) -> tuple[int, int]:
    """Compute downscaled (w, h) preserving aspect ratio.

    The longest side becomes *max_side*; the other is scaled
    proportionally (rounded to the nearest integer, minimum 1).
    """
    if original_width >= original_height:
        w = max_side
        h = max(1, round(original_height * max_side / original_width))
    else:
        h = max_side
        w = max(1, round(original_width * max_side / original_height))
    return w, h


def fit_to_max(buffer: PixelBuffer, max_side: int | None) -> PixelBuffer:
    """Downscale *buffer* so its longest side is at most *max_side*.

    ``None`` means native resolution. Buffers already within the limit are
    returned unchanged (never upscaled).
    """
    if max_side is None:
        return buffer
    if max_side < 1:
        msg = f"max_side must be >= 1, got {max_side}"
        raise InvalidParameter(msg)
    if max(buffer.width, buffer.height) <= max_side:
        return buffer

    w, h = compute_target_size(buffer.width, buffer.height, max_side)
    logger.debug(
        "Resizing %dx%d → %dx%d (max side %d)",
        buffer.width, buffer.height, w, h, max_side,
    )
    img = Image.fromarray(buffer.data)
    img = img.resize((w, h), Image.LANCZOS)
    return PixelBuffer.from_array(img)
