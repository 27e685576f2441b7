"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pixel_palette.cache import DEFAULT_CAPACITY, ColorMatchCache
from pixel_palette.color_utils import METRICS
from pixel_palette.engine import PixelationEngine
from pixel_palette.errors import InvalidParameter
from pixel_palette.sampling import SAMPLING_POLICIES


@dataclass(frozen=True)
class PixelateConfig:
    """All tuneable parameters for a pixel-art run.

    Attributes:
        block_size:     Side of each square block in source pixels.
        palette_id:     Catalogue palette ("original" = keep source colours).
        sampling:       Representative colour policy - "average" or "center".
        max_side:       Downscale so the longest side fits (None = native).
        metric:         Colour distance - "redmean", "rgb" or "lab".
        cache_capacity: Colour-match cache entries (0 disables the cache).
        workers:        Threads used per image.
        pixel_upscale:  Each output pixel becomes n x n in saved files.
        output_format:  Image format for saved files.
        input_dir:      Folder to scan for source images.
        output_dir:     Folder for results.
    """

    # Pixelation
    block_size: int = 8
    sampling: str = "average"
    max_side: int | None = None

    # Palette
    palette_id: str = "original"
    metric: str = "redmean"
    cache_capacity: int = DEFAULT_CAPACITY

    # Execution
    workers: int = 1

    # Output
    pixel_upscale: int = 1
    output_format: str = "png"

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff", ".tif", ".webp"}
    )

    def __post_init__(self) -> None:
        if self.block_size < 1:
            msg = f"block_size must be >= 1, got {self.block_size}"
            raise InvalidParameter(msg)
        if self.sampling not in SAMPLING_POLICIES:
            msg = f"sampling must be one of {SAMPLING_POLICIES}, got '{self.sampling}'"
            raise InvalidParameter(msg)
        if self.metric not in METRICS:
            msg = f"metric must be one of {METRICS}, got '{self.metric}'"
            raise InvalidParameter(msg)
        if self.max_side is not None and self.max_side < 1:
            msg = f"max_side must be >= 1, got {self.max_side}"
            raise InvalidParameter(msg)
        if self.cache_capacity < 0:
            msg = f"cache_capacity must be >= 0, got {self.cache_capacity}"
            raise InvalidParameter(msg)
        if self.workers < 1:
            msg = f"workers must be >= 1, got {self.workers}"
            raise InvalidParameter(msg)
        if self.pixel_upscale < 1:
            msg = f"pixel_upscale must be >= 1, got {self.pixel_upscale}"
            raise InvalidParameter(msg)

    def engine(self) -> PixelationEngine:
        """Build an engine carrying these settings and a fresh cache."""
        return PixelationEngine(
            sampling=self.sampling,
            metric=self.metric,
            cache=ColorMatchCache(self.cache_capacity),
            workers=self.workers,
        )
