"""Pixelation + palette-quantization engine.

A run partitions the source into square blocks, samples one representative
RGBA colour per block, optionally snaps its RGB to the nearest palette
colour, and floods the block with the result.

Work is split into *bands* (one row of blocks each). Bands are independent,
so they can be run one at a time by a cooperative host, in parallel on a
thread pool, or abandoned between two bands when the caller cancels.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np

from pixel_palette.buffer import PixelBuffer
from pixel_palette.cache import DEFAULT_CAPACITY, ColorMatchCache
from pixel_palette.color_utils import METRICS, nearest_indices
from pixel_palette.errors import InvalidParameter, ProcessingCancelled
from pixel_palette.palette import Palette, lookup
from pixel_palette.resize import fit_to_max
from pixel_palette.sampling import block_extents, fill_blocks, get_sampler

logger = logging.getLogger(__name__)

PaletteLike = Palette | str | None


@dataclass(frozen=True)
class BandResult:
    """One finished band: rows ``[y0, y1)`` of the output are final."""

    index: int
    y0: int
    y1: int


def resolve_palette(palette: PaletteLike) -> Palette | None:
    """Normalise a palette argument; ``None`` means no quantization.

    Unknown catalogue ids and empty palettes both resolve to ``None``.
    """
    if palette is None:
        return None
    if isinstance(palette, str):
        return lookup(palette)
    if palette.is_unrestricted:
        return None
    return palette


def _validate_block_size(block_size: int) -> None:
    if isinstance(block_size, bool) or not isinstance(block_size, (int, np.integer)):
        msg = f"block_size must be an integer, got {block_size!r}"
        raise InvalidParameter(msg)
    if block_size < 1:
        msg = f"block_size must be >= 1, got {block_size}"
        raise InvalidParameter(msg)


def _validate_metric(metric: str) -> None:
    if metric not in METRICS:
        msg = f"Unknown colour metric '{metric}'. Available: {', '.join(METRICS)}"
        raise InvalidParameter(msg)


class PixelationJob:
    """A single (image, block size, palette) run, split into bands.

    Created by :meth:`PixelationEngine.start`. Iterate it to process the
    bands in order, or call :meth:`run_band` on any band from any thread.
    Once every band has run, :meth:`result` hands over the output buffer.
    """

    def __init__(
        self,
        engine: PixelationEngine,
        source: PixelBuffer,
        block_size: int,
        palette: Palette | None,
        sampling: str,
    ) -> None:
        self.engine = engine
        self.source = source
        self.block_size = block_size
        self.palette = palette
        self.sampling = sampling
        self._sampler = get_sampler(sampling)
        # Parsed before the output exists so bad colours allocate nothing
        self._palette_rgb = palette.to_array() if palette is not None else None

        self._row_extents = block_extents(source.height, block_size)
        self._col_extents = block_extents(source.width, block_size)
        self._out: np.ndarray | None = np.empty_like(source.data)
        self._done = np.zeros(len(self._row_extents), dtype=bool)

    @property
    def n_bands(self) -> int:
        return len(self._row_extents)

    @property
    def finished(self) -> bool:
        return bool(self._done.all())

    def __iter__(self) -> Iterator[BandResult]:
        for index in range(self.n_bands):
            if not self._done[index]:
                yield self.run_band(index)

    def run_band(self, index: int) -> BandResult:
        if self._out is None:
            msg = "Job result has already been taken"
            raise RuntimeError(msg)
        bs = self.block_size
        y0 = index * bs
        y1 = y0 + int(self._row_extents[index])

        reps = self._sampler(self.source.data[y0:y1], bs)
        if self._palette_rgb is not None:
            rgb = reps[..., :3].reshape(-1, 3)
            matched = self.engine.match_colors(rgb, self.palette, self._palette_rgb)
            reps[..., :3] = matched.reshape(reps.shape[:2] + (3,))

        self._out[y0:y1] = fill_blocks(
            reps, self._row_extents[index : index + 1], self._col_extents,
        )
        self._done[index] = True
        return BandResult(index, y0, y1)

    def result(self) -> PixelBuffer:
        """Return the finished output; the job keeps no reference to it."""
        if self._out is None:
            msg = "Job result has already been taken"
            raise RuntimeError(msg)
        if not self.finished:
            pending = int((~self._done).sum())
            msg = f"{pending} of {self.n_bands} bands have not been processed"
            raise RuntimeError(msg)
        out, self._out = self._out, None
        return PixelBuffer(out)


class PixelationEngine:
    """Owns the sampling/metric defaults and the colour-match cache.

    Args:
        sampling:       ``"average"`` (block mean) or ``"center"``.
        metric:         ``"redmean"`` (weighted RGB), ``"rgb"`` or ``"lab"``.
        cache:          Cache to use; a fresh one is created if omitted.
        cache_capacity: Capacity of that fresh cache (0 disables caching).
        workers:        Threads used by :meth:`process` (1 = run inline).
    """

    def __init__(
        self,
        sampling: str = "average",
        metric: str = "redmean",
        cache: ColorMatchCache | None = None,
        cache_capacity: int = DEFAULT_CAPACITY,
        workers: int = 1,
    ) -> None:
        get_sampler(sampling)
        _validate_metric(metric)
        if workers < 1:
            msg = f"workers must be >= 1, got {workers}"
            raise InvalidParameter(msg)
        self.sampling = sampling
        self.metric = metric
        self.cache = cache if cache is not None else ColorMatchCache(cache_capacity)
        self.workers = workers

    # -- Quantization --------------------------------------------------

    def match_colors(
        self,
        rgb: np.ndarray,
        palette: Palette,
        palette_rgb: np.ndarray,
    ) -> np.ndarray:
        """Nearest palette colour for each row of an (M, 3) uint8 array."""
        # Every read and write carries the key so a concurrent run with
        # another palette can neither serve nor store foreign matches
        cache_key = (palette.key, self.metric)

        uniq, inverse = np.unique(rgb, axis=0, return_inverse=True)
        keys = [tuple(row) for row in uniq.tolist()]

        if self.cache.enabled:
            found, missing = self.cache.get_many(keys, key=cache_key)
        else:
            found, missing = {}, keys

        if missing:
            idx = nearest_indices(
                np.array(missing, dtype=np.uint8), palette_rgb, self.metric,
            )
            fresh = {
                key: tuple(row) for key, row in zip(missing, palette_rgb[idx].tolist())
            }
            self.cache.put_many(fresh.items(), key=cache_key)
            found.update(fresh)

        mapped = np.array([found[k] for k in keys], dtype=np.uint8).reshape(-1, 3)
        return mapped[inverse.reshape(-1)]

    # -- Runs ----------------------------------------------------------

    def start(
        self,
        source: PixelBuffer,
        block_size: int,
        palette: PaletteLike = None,
        *,
        sampling: str | None = None,
        resize: int | str | None = None,
    ) -> PixelationJob:
        """Validate the inputs and set up a job without processing anything.

        Raises:
            InvalidParameter: bad block size, empty source, unknown policy.
            InvalidColor: the palette holds a malformed colour.
        """
        if not isinstance(source, PixelBuffer):
            source = PixelBuffer.from_array(source)
        _validate_block_size(block_size)
        if source.is_empty:
            msg = f"Source image has zero area ({source.width}x{source.height})"
            raise InvalidParameter(msg)
        if resize == "native":
            resize = None
        if resize is not None and not isinstance(resize, int):
            msg = f"resize must be 'native' or a max side length, got {resize!r}"
            raise InvalidParameter(msg)

        source = fit_to_max(source, resize)
        return PixelationJob(
            self,
            source,
            int(block_size),
            resolve_palette(palette),
            sampling or self.sampling,
        )

    def iter_bands(
        self,
        source: PixelBuffer,
        block_size: int,
        palette: PaletteLike = None,
        **kwargs: object,
    ) -> Iterator[BandResult]:
        """Process band by band, yielding after each one.

        Handy for hosts that interleave work with other events; use
        :meth:`start` instead when the output buffer is needed.
        """
        yield from self.start(source, block_size, palette, **kwargs)  # type: ignore[arg-type]

    def process(
        self,
        source: PixelBuffer,
        block_size: int,
        palette: PaletteLike = None,
        *,
        sampling: str | None = None,
        resize: int | str | None = None,
        workers: int | None = None,
        cancel: threading.Event | None = None,
    ) -> PixelBuffer:
        """Pixelate *source* and return a new buffer.

        Args:
            source:     Decoded RGBA image; never modified.
            block_size: Side of each square block, in source pixels (>= 1).
            palette:    :class:`Palette`, catalogue id, or ``None``.
            sampling:   Overrides the engine's sampling policy.
            resize:     ``None``/``"native"`` or a max side length.
            workers:    Overrides the engine's thread count.
            cancel:     Checked between bands; raises
                        :class:`ProcessingCancelled` once set.

        Returns:
            Buffer with the same dimensions as the (resized) source.
        """
        t0 = time.perf_counter()
        job = self.start(source, block_size, palette, sampling=sampling, resize=resize)
        n_workers = workers if workers is not None else self.workers

        if n_workers > 1 and job.n_bands > 1:
            self._run_parallel(job, n_workers, cancel)
        else:
            for index in range(job.n_bands):
                _check_cancel(cancel)
                job.run_band(index)

        out = job.result()
        logger.info(
            "Pixelated %dx%d  block=%d  palette=%s  sampling=%s  (%.3f s)",
            out.width, out.height, job.block_size,
            job.palette.id if job.palette is not None else "none",
            job.sampling, time.perf_counter() - t0,
        )
        if job.palette is not None:
            logger.debug("Colour cache: %s", self.cache.stats())
        return out

    def _run_parallel(
        self,
        job: PixelationJob,
        workers: int,
        cancel: threading.Event | None,
    ) -> None:
        def task(index: int) -> BandResult:
            _check_cancel(cancel)
            return job.run_band(index)

        logger.debug("Running %d bands on %d threads", job.n_bands, workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(task, i) for i in range(job.n_bands)]
            try:
                for fut in as_completed(futures):
                    fut.result()
            except BaseException:
                for fut in futures:
                    fut.cancel()
                raise


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise ProcessingCancelled("Pixelation cancelled by caller")


def process(
    source: PixelBuffer,
    block_size: int,
    palette: PaletteLike = None,
    *,
    sampling: str = "average",
    resize: int | str | None = None,
    metric: str = "redmean",
    cache: ColorMatchCache | None = None,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> PixelBuffer:
    """One-shot :meth:`PixelationEngine.process` with a throwaway engine.

    Pass *cache* to reuse matches across calls; it is rebound (and so
    cleared) whenever the palette changes.
    """
    engine = PixelationEngine(
        sampling=sampling, metric=metric, cache=cache, workers=workers,
    )
    return engine.process(source, block_size, palette, resize=resize, cancel=cancel)
