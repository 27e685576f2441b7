"""Block grid partition, representative-colour sampling, and block fill.

The grid starts at (0, 0) and runs row-major. When a dimension is not a
multiple of the block size, the last row/column of blocks is truncated to
the image, so no index ever falls outside the buffer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import NamedTuple

import numpy as np

from pixel_palette.errors import InvalidParameter

SAMPLING_POLICIES = ("average", "center")


class Block(NamedTuple):
    """Half-open pixel extent ``[x0, x1) x [y0, y1)`` of one block."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0


def block_starts(length: int, block_size: int) -> np.ndarray:
    return np.arange(0, length, block_size, dtype=np.intp)


def block_extents(length: int, block_size: int) -> np.ndarray:
    """Side length of each block along one axis, e.g. 10 / 4 → [4, 4, 2]."""
    starts = block_starts(length, block_size)
    return np.diff(np.append(starts, length))


def iter_blocks(width: int, height: int, block_size: int) -> Iterator[Block]:
    for y0 in range(0, height, block_size):
        y1 = min(y0 + block_size, height)
        for x0 in range(0, width, block_size):
            yield Block(x0, y0, min(x0 + block_size, width), y1)


def grid_shape(width: int, height: int, block_size: int) -> tuple[int, int]:
    """Number of block ``(rows, cols)``."""
    return -(-height // block_size), -(-width // block_size)


# -- Sampling policies -------------------------------------------------


def sample_average(region: np.ndarray, block_size: int) -> np.ndarray:
    """Per-channel block mean, rounded half-up.

    Args:
        region: (h, w, C) uint8 pixels whose top-left is a block origin.

    Returns:
        (rows, cols, C) uint8 representative colours.
    """
    h, w = region.shape[:2]
    ys = block_starts(h, block_size)
    xs = block_starts(w, block_size)
    sums = np.add.reduceat(region, ys, axis=0, dtype=np.uint64)
    sums = np.add.reduceat(sums, xs, axis=1, dtype=np.uint64)
    counts = np.outer(block_extents(h, block_size), block_extents(w, block_size))
    counts = counts.astype(np.uint64)[:, :, np.newaxis]
    # Integer round-half-up avoids float ties drifting between platforms
    return ((2 * sums + counts) // (2 * counts)).astype(np.uint8)


def sample_center(region: np.ndarray, block_size: int) -> np.ndarray:
    """Pixel at the geometric centre of each (possibly truncated) block."""
    h, w = region.shape[:2]
    ys = block_starts(h, block_size) + block_extents(h, block_size) // 2
    xs = block_starts(w, block_size) + block_extents(w, block_size) // 2
    return region[np.ix_(ys, xs)]


_SAMPLERS: dict[str, Callable[[np.ndarray, int], np.ndarray]] = {
    "average": sample_average,
    "center": sample_center,
}


def get_sampler(policy: str) -> Callable[[np.ndarray, int], np.ndarray]:
    try:
        return _SAMPLERS[policy]
    except KeyError:
        msg = (
            f"Unknown sampling policy '{policy}'. "
            f"Available: {', '.join(SAMPLING_POLICIES)}"
        )
        raise InvalidParameter(msg) from None


# -- Fill --------------------------------------------------------------


def fill_blocks(
    colors: np.ndarray,
    heights: np.ndarray,
    widths: np.ndarray,
) -> np.ndarray:
    """Expand (rows, cols, C) block colours to a flat-coloured pixel array.

    ``heights``/``widths`` are the per-row/per-column block extents, so
    truncated edge blocks come out at their true size.
    """
    return np.repeat(np.repeat(colors, heights, axis=0), widths, axis=1)
