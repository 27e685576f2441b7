"""RGBA pixel buffer exchanged between the host and the engine."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pixel_palette.errors import InvalidParameter


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """A W x H image of RGBA ``uint8`` pixels, row-major, top-to-bottom.

    Attributes:
        data: ``(H, W, 4)`` uint8 array. Owned by the buffer; constructors copy.
    """

    data: np.ndarray

    def __post_init__(self) -> None:
        arr = self.data
        if arr.ndim != 3 or arr.shape[2] != 4:
            msg = f"Expected an (H, W, 4) array, got shape {arr.shape}"
            raise InvalidParameter(msg)
        if arr.dtype != np.uint8:
            msg = f"Expected uint8 pixels, got {arr.dtype}"
            raise InvalidParameter(msg)

    # -- Constructors --------------------------------------------------

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Copy an ``(H, W, 3)`` RGB or ``(H, W, 4)`` RGBA array.

        RGB input gets a fully opaque alpha channel.
        """
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            msg = f"Expected an (H, W, 3) or (H, W, 4) array, got shape {arr.shape}"
            raise InvalidParameter(msg)
        arr = arr.astype(np.uint8, copy=True)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        return cls(np.ascontiguousarray(arr))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> PixelBuffer:
        """Wrap raw RGBA bytes; ``len(data)`` must equal ``width * height * 4``."""
        if width < 0 or height < 0:
            msg = f"Negative dimensions {width}x{height}"
            raise InvalidParameter(msg)
        expected = width * height * 4
        if len(data) != expected:
            msg = (
                f"RGBA buffer for {width}x{height} needs {expected} bytes, "
                f"got {len(data)}"
            )
            raise InvalidParameter(msg)
        arr = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4)
        return cls(arr.copy())

    @classmethod
    def filled(
        cls, width: int, height: int, rgba: tuple[int, int, int, int],
    ) -> PixelBuffer:
        """Uniform buffer, mostly useful for tests and placeholders."""
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[...] = rgba
        return cls(arr)

    # -- Accessors -----------------------------------------------------

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)``, matching Pillow's convention."""
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.data[y, x])
        return r, g, b, a

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.data.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(
            np.array_equal(self.data, other.data),
        )

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
