"""Colour-distance metrics and nearest-palette-colour search."""

from __future__ import annotations

import numpy as np
from skimage.color import rgb2lab

from pixel_palette.errors import InvalidParameter

METRICS = ("redmean", "rgb", "lab")


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert flat (N, 3) uint8 RGB → (N, 3) float64 CIELAB."""
    return rgb2lab(rgb.astype(np.float64).reshape(1, -1, 3) / 255.0).reshape(-1, 3)


def redmean_distance_sq(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Weighted squared RGB distance approximating perceived difference.

    ``rmean = (r1 + r2) / 2`` and::

        d² = (2 + rmean/256)·Δr² + 4·Δg² + (2 + (255 - rmean)/256)·Δb²

    Inputs broadcast against each other along the leading axes; the last
    axis holds R, G, B.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    rmean = (a[..., 0] + b[..., 0]) / 2.0
    dr = a[..., 0] - b[..., 0]
    dg = a[..., 1] - b[..., 1]
    db = a[..., 2] - b[..., 2]
    return (
        (2.0 + rmean / 256.0) * dr * dr
        + 4.0 * dg * dg
        + (2.0 + (255.0 - rmean) / 256.0) * db * db
    )


def distance_matrix(
    colors: np.ndarray,
    palette: np.ndarray,
    metric: str = "redmean",
) -> np.ndarray:
    """Pairwise squared distances between *colors* and *palette*.

    Args:
        colors:  (M, 3) uint8 RGB.
        palette: (N, 3) uint8 RGB.
        metric:  ``"redmean"``, ``"rgb"`` or ``"lab"``.

    Returns:
        (M, N) float64 matrix.
    """
    if metric == "redmean":
        return redmean_distance_sq(colors[:, np.newaxis, :], palette[np.newaxis, :, :])
    if metric == "rgb":
        c = colors.astype(np.float64)
        p = palette.astype(np.float64)
    elif metric == "lab":
        c = rgb_to_lab(colors)
        p = rgb_to_lab(palette)
    else:
        msg = f"Unknown colour metric '{metric}'. Available: {', '.join(METRICS)}"
        raise InvalidParameter(msg)
    diff = c[:, np.newaxis, :] - p[np.newaxis, :, :]
    return np.sum(diff ** 2, axis=2)


def nearest_indices(
    colors: np.ndarray,
    palette: np.ndarray,
    metric: str = "redmean",
    chunk_size: int = 4096,
) -> np.ndarray:
    """Index of the nearest palette entry for every colour.

    Ties resolve to the lowest palette index (``argmin`` returns the first
    minimum). Rows are processed in chunks to bound peak memory.

    Args:
        colors:  (M, 3) uint8 RGB.
        palette: (N, 3) uint8 RGB, N >= 1.

    Returns:
        (M,) intp array of palette indices.
    """
    if len(palette) == 0:
        msg = "Cannot match colours against an empty palette"
        raise InvalidParameter(msg)
    m = len(colors)
    out = np.empty(m, dtype=np.intp)
    for i in range(0, m, chunk_size):
        j = min(i + chunk_size, m)
        out[i:j] = np.argmin(distance_matrix(colors[i:j], palette, metric), axis=1)
    return out


def nearest_color(
    color: tuple[int, int, int],
    palette: np.ndarray,
    metric: str = "redmean",
) -> tuple[int, int, int]:
    """Nearest palette colour to a single RGB triple."""
    idx = nearest_indices(np.array([color], dtype=np.uint8), palette, metric)[0]
    r, g, b = (int(v) for v in palette[idx])
    return r, g, b
