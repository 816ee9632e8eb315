from __future__ import annotations
from typing import Sequence
import logging
import numpy as np

from .canvas import Canvas, _as_color

logger = logging.getLogger(__name__)

TRANSPARENT: tuple[int, int, int, int] = (0, 0, 0, 0)
OPAQUE_FILL: tuple[int, int, int] = (255, 255, 255)


def target_size(a: Canvas, b: Canvas) -> tuple[int, int]:
    """Element-wise maximum of both canvases' ``(width, height)``."""
    return max(a.width, b.width), max(a.height, b.height)


def extend(canvas: Canvas, width: int, height: int, fill: Sequence[int]) -> Canvas:
    """Grow ``canvas`` to ``width`` x ``height`` keeping it top-left aligned.

    Returns ``canvas`` itself when it already has the requested size. The
    added border keeps ``fill``.
    """
    if canvas.size == (width, height):
        return canvas
    if width < canvas.width or height < canvas.height:
        raise ValueError(
            f"Cannot shrink {canvas.width}x{canvas.height} canvas to {width}x{height}"
        )
    out = np.empty((height, width, canvas.channels), dtype=np.uint8)
    out[:] = _as_color(fill, canvas.channels)
    out[: canvas.height, : canvas.width] = canvas.array
    return Canvas._wrap(out)


def reconcile(
    a: Canvas,
    b: Canvas,
    fill: Sequence[int],
) -> tuple[Canvas, Canvas]:
    """Bring two canvases to a common bounding box.

    Parameters
    ----------
    a, b : Canvas
        Canvases with the same channel count.
    fill : sequence of int
        Color of the area added to a canvas smaller than the target box.

    Returns
    -------
    tuple[Canvas, Canvas]
        Both canvases at ``target_size(a, b)``. Inputs already at that size
        are returned without copying.
    """
    if a.channels != b.channels:
        raise ValueError(f"Channel mismatch: {a.channels} vs {b.channels}")
    width, height = target_size(a, b)
    if a.size != b.size:
        logger.debug(
            "Reconciling %dx%d and %dx%d to %dx%d",
            a.width, a.height, b.width, b.height, width, height,
        )
    return extend(a, width, height, fill), extend(b, width, height, fill)


def padding_mask(width: int, height: int, *sizes: tuple[int, int]) -> np.ndarray:
    """Boolean ``(height, width)`` mask of coordinates outside any of ``sizes``.

    A coordinate is set when it lies beyond the width or height of at least
    one of the original canvases.
    """
    mask = np.zeros((height, width), dtype=bool)
    for w, h in sizes:
        mask[:, w:] = True
        mask[h:, :] = True
    return mask
