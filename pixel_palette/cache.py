"""Bounded, palette-scoped memo of nearest-colour matches."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Hashable, Iterable

from pixel_palette.palette import Color

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4096

# Default for the key arguments: use whatever palette is currently bound
_ANY_KEY = object()


class ColorMatchCache:
    """Exact ``(R, G, B)`` → nearest palette colour, for one palette at a time.

    Entries are evicted oldest-first once *capacity* is reached. A capacity
    of 0 disables the cache entirely (every lookup misses, nothing is stored).
    All methods are safe to call from several worker threads.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 0:
            msg = f"Cache capacity must be >= 0, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[Color, Color] = OrderedDict()
        self._key: Hashable | None = None
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity > 0

    @property
    def key(self) -> Hashable | None:
        return self._key

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, rgb: Color) -> bool:
        with self._lock:
            return rgb in self._entries

    def bind(self, key: Hashable) -> None:
        """Scope the cache to a palette, dropping entries from any other one."""
        with self._lock:
            self._bind_locked(key)

    def _bind_locked(self, key: Hashable) -> None:
        if key == self._key:
            return
        if self._entries:
            logger.debug(
                "Palette changed; dropping %d cached matches", len(self._entries),
            )
        self._entries.clear()
        self._key = key

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._key = None
            self.hits = 0
            self.misses = 0

    def get(self, rgb: Color, key: Hashable = _ANY_KEY) -> Color | None:
        found, _ = self.get_many([rgb], key=key)
        return found.get(rgb)

    def get_many(
        self, colors: Iterable[Color], key: Hashable = _ANY_KEY,
    ) -> tuple[dict[Color, Color], list[Color]]:
        """Split *colors* into ``(found, missing)`` under a single lock.

        With *key*, the cache is rebound to that palette first, so entries
        of any other palette can never be returned.
        """
        found: dict[Color, Color] = {}
        missing: list[Color] = []
        with self._lock:
            if key is not _ANY_KEY:
                self._bind_locked(key)
            for rgb in colors:
                match = self._entries.get(rgb)
                if match is None:
                    missing.append(rgb)
                else:
                    found[rgb] = match
            self.hits += len(found)
            self.misses += len(missing)
        return found, missing

    def put(self, rgb: Color, match: Color, key: Hashable = _ANY_KEY) -> None:
        self.put_many([(rgb, match)], key=key)

    def put_many(
        self, items: Iterable[tuple[Color, Color]], key: Hashable = _ANY_KEY,
    ) -> None:
        """Store matches; with *key*, they are dropped unless still bound to it."""
        if not self.enabled:
            return
        with self._lock:
            if key is not _ANY_KEY and key != self._key:
                logger.debug("Discarding matches computed for a stale palette")
                return
            for rgb, match in items:
                if rgb in self._entries:
                    continue
                self._entries[rgb] = match
                if len(self._entries) > self.capacity:
                    self._entries.popitem(last=False)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "size": len(self._entries),
                "capacity": self.capacity,
                "hits": self.hits,
                "misses": self.misses,
            }
