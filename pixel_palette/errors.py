"""Exception hierarchy shared by the engine, the catalogue and the CLI."""

from __future__ import annotations


class PixelPaletteError(Exception):
    """Base class for every failure raised by :mod:`pixel_palette`."""


class InvalidParameter(PixelPaletteError, ValueError):
    """Bad block size, empty image, unknown sampling policy, ..."""


class InvalidColor(PixelPaletteError, ValueError):
    """A palette entry is not a ``#RRGGBB`` hex string."""


class UnknownPalette(PixelPaletteError, KeyError):
    """No palette with the requested identifier exists in the catalogue."""

    def __str__(self) -> str:
        # KeyError wraps its message in quotes otherwise
        return str(self.args[0]) if self.args else ""


class ProcessingCancelled(PixelPaletteError):
    """The caller signalled cancellation between two bands of work."""
