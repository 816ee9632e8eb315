from __future__ import annotations
from typing import Iterator, Optional
import logging
import numpy as np

from .canvas import Canvas
from .multiproc import map_bands, resolve_workers, row_bands

logger = logging.getLogger(__name__)


class DifferenceSet:
    """Immutable set of ``(x, y)`` coordinates where two canvases disagree.

    Stored as a boolean ``(height, width)`` mask; iteration yields
    coordinates in row-major order.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, mask: np.ndarray):
        mask = np.array(mask, dtype=bool, copy=True)
        if mask.ndim != 2:
            raise ValueError(f"Expected a 2-D mask, got shape {mask.shape}")
        mask.setflags(write=False)
        self._mask = mask

    @classmethod
    def empty(cls, width: int, height: int) -> "DifferenceSet":
        return cls(np.zeros((height, width), dtype=bool))

    @property
    def mask(self) -> np.ndarray:
        return self._mask

    @property
    def size(self) -> tuple[int, int]:
        return int(self._mask.shape[1]), int(self._mask.shape[0])

    @property
    def fraction(self) -> float:
        return float(self._mask.mean()) if self._mask.size else 0.0

    def coordinates(self) -> frozenset[tuple[int, int]]:
        return frozenset(self)

    def bounding_box(self) -> Optional[tuple[int, int, int, int]]:
        """Return ``(x, y, width, height)`` enclosing all entries, or ``None``."""
        if not self:
            return None
        ys, xs = np.nonzero(self._mask)
        x0, y0 = int(xs.min()), int(ys.min())
        return x0, y0, int(xs.max()) - x0 + 1, int(ys.max()) - y0 + 1

    def union(self, other: "DifferenceSet") -> "DifferenceSet":
        if self.size != other.size:
            raise ValueError(f"Size mismatch: {self.size} vs {other.size}")
        return DifferenceSet(self._mask | other._mask)

    def __len__(self) -> int:
        return int(np.count_nonzero(self._mask))

    def __bool__(self) -> bool:
        return bool(self._mask.any())

    def __contains__(self, coord: object) -> bool:
        try:
            x, y = coord  # type: ignore[misc]
        except (TypeError, ValueError):
            return False
        h, w = self._mask.shape
        return 0 <= x < w and 0 <= y < h and bool(self._mask[y, x])

    def __iter__(self) -> Iterator[tuple[int, int]]:
        ys, xs = np.nonzero(self._mask)
        return ((int(x), int(y)) for y, x in zip(ys, xs))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DifferenceSet):
            return NotImplemented
        return self._mask.shape == other._mask.shape and np.array_equal(self._mask, other._mask)

    def __repr__(self) -> str:
        w, h = self.size
        return f"DifferenceSet({len(self)} of {w}x{h})"


def compare_pixels(
    a: Canvas,
    b: Canvas,
    *,
    force: np.ndarray | None = None,
    workers: int = 1,
    band_rows: int = 256,
) -> DifferenceSet:
    """Collect the coordinates where two equally sized canvases differ.

    Parameters
    ----------
    a, b : Canvas
        Canvases with identical size and channel count.
    force : np.ndarray, optional
        Boolean ``(height, width)`` mask of coordinates flagged regardless of
        pixel values (padding added during reconciliation).
    workers : int
        Number of threads scanning row bands; ``0`` uses every CPU.
    band_rows : int
        Minimum number of rows handed to one worker.
    """
    if a.size != b.size or a.channels != b.channels:
        raise ValueError(
            f"Cannot compare {a!r} with {b!r}: canvases must be reconciled first"
        )
    width, height = a.size
    if force is not None and force.shape != (height, width):
        raise ValueError(f"Force mask shape {force.shape} does not match {width}x{height}")

    arr_a, arr_b = a.array, b.array

    def _scan(start: int, stop: int) -> np.ndarray:
        band = np.any(arr_a[start:stop] != arr_b[start:stop], axis=2)
        if force is not None:
            band |= force[start:stop]
        return band

    n_workers = resolve_workers(workers)
    bands = row_bands(height, n_workers, band_rows)
    parts = map_bands(_scan, bands, n_workers)
    mask = np.concatenate(parts, axis=0) if parts else np.zeros((height, width), dtype=bool)
    diff = DifferenceSet(mask.reshape(height, width))
    logger.debug("Scanned %d band(s): %d differing pixel(s)", len(bands), len(diff))
    return diff
