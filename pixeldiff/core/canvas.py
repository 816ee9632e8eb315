from __future__ import annotations
from typing import Iterable, Iterator, Sequence
import numpy as np

Color = tuple[int, ...]


def _as_color(color: Sequence[int], channels: int) -> np.ndarray:
    """Return ``color`` as a ``uint8`` vector with ``channels`` entries.

    An RGB color requested as RGBA gets an opaque alpha; an RGBA color
    requested as RGB loses its alpha.
    """
    vals = [int(c) for c in color]
    if len(vals) not in (3, 4) or any(v < 0 or v > 255 for v in vals):
        raise ValueError(f"Invalid color {tuple(color)!r}")
    if channels == 4 and len(vals) == 3:
        vals.append(255)
    return np.array(vals[:channels], dtype=np.uint8)


class Canvas:
    """Rectangular grid of RGB or RGBA pixels stored row-major.

    The backing array has shape ``(height, width, channels)`` and dtype
    ``uint8``. It is flagged read-only so a canvas can be handed around as a
    value; code that needs to paint works on :meth:`copy`.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, array: np.ndarray):
        src = np.asarray(array)
        if src.dtype != np.uint8 and src.size and (src.min() < 0 or src.max() > 255):
            raise ValueError(
                f"Pixel values must lie in 0-255, got range {src.min()}..{src.max()}"
            )
        self._array = self._freeze(np.array(src, dtype=np.uint8, copy=True))

    @staticmethod
    def _freeze(arr: np.ndarray) -> np.ndarray:
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W, 3|4) array, got shape {arr.shape}")
        arr.setflags(write=False)
        return arr

    @classmethod
    def _wrap(cls, arr: np.ndarray) -> "Canvas":
        """Adopt a freshly allocated ``uint8`` array without copying it."""
        canvas = cls.__new__(cls)
        canvas._array = cls._freeze(arr)
        return canvas

    @classmethod
    def from_pixels(cls, width: int, height: int, pixels: Iterable[Sequence[int]]) -> "Canvas":
        rows = [tuple(int(c) for c in p) for p in pixels]
        if len(rows) != width * height:
            raise ValueError(
                f"Expected {width * height} pixels for {width}x{height}, got {len(rows)}"
            )
        if not rows:
            return cls._wrap(np.zeros((height, width, 3), dtype=np.uint8))
        depth = len(rows[0])
        if any(len(p) != depth for p in rows):
            raise ValueError("All pixels must have the same number of channels")
        return cls(np.array(rows).reshape(height, width, depth))

    @classmethod
    def filled(cls, width: int, height: int, color: Sequence[int]) -> "Canvas":
        vec = _as_color(color, len(color))
        arr = np.empty((height, width, vec.size), dtype=np.uint8)
        arr[:] = vec
        return cls._wrap(arr)

    @property
    def array(self) -> np.ndarray:
        return self._array

    @property
    def width(self) -> int:
        return int(self._array.shape[1])

    @property
    def height(self) -> int:
        return int(self._array.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def channels(self) -> int:
        return int(self._array.shape[2])

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    def pixel(self, x: int, y: int) -> Color:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height} canvas")
        return tuple(int(c) for c in self._array[y, x])

    def pixels(self) -> list[Color]:
        return [tuple(int(c) for c in p) for p in self._array.reshape(-1, self.channels)]

    def copy(self) -> np.ndarray:
        """Return a writable copy of the backing array."""
        return self._array.copy()

    def with_channels(self, channels: int) -> "Canvas":
        if channels == self.channels:
            return self
        if channels == 4:
            return self.to_rgba()
        if channels == 3:
            return self.to_rgb()
        raise ValueError(f"Unsupported channel count {channels}")

    def to_rgba(self) -> "Canvas":
        if self.has_alpha:
            return self
        alpha = np.full((self.height, self.width, 1), 255, dtype=np.uint8)
        return Canvas._wrap(np.concatenate([self._array, alpha], axis=2))

    def to_rgb(self) -> "Canvas":
        if not self.has_alpha:
            return self
        return Canvas._wrap(self._array[:, :, :3].copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Canvas):
            return NotImplemented
        return self._array.shape == other._array.shape and np.array_equal(self._array, other._array)

    def __iter__(self) -> Iterator[Color]:
        return iter(self.pixels())

    def __repr__(self) -> str:
        mode = "RGBA" if self.has_alpha else "RGB"
        return f"Canvas({self.width}x{self.height}, {mode})"
