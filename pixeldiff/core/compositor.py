from __future__ import annotations
from typing import Literal, Sequence
import numpy as np

from .canvas import Canvas, _as_color
from .comparator import DifferenceSet

HighlightMode = Literal["replace", "blend"]


def _blend_over(base: np.ndarray, color: Sequence[int]) -> np.ndarray:
    """Paint ``color`` over ``base`` pixels (N, C) with source-over compositing."""
    src = np.asarray(color, dtype=np.float32) / 255.0
    src_rgb = src[:3]
    src_a = float(src[3]) if src.size == 4 else 1.0

    dst = base.astype(np.float32) / 255.0
    dst_rgb = dst[:, :3]
    dst_a = dst[:, 3:4] if base.shape[1] == 4 else np.ones((base.shape[0], 1), dtype=np.float32)

    out_a = src_a + dst_a * (1.0 - src_a)
    with np.errstate(divide="ignore", invalid="ignore"):
        out_rgb = (src_rgb * src_a + dst_rgb * dst_a * (1.0 - src_a)) / out_a
    out_rgb = np.where(out_a > 0, out_rgb, 0.0)

    if base.shape[1] == 4:
        out = np.concatenate([out_rgb, out_a], axis=1)
    else:
        out = out_rgb
    return np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8)


def composite(
    base: Canvas,
    differences: DifferenceSet,
    highlight: Sequence[int],
    *,
    mode: HighlightMode = "blend",
) -> Canvas:
    """Paint ``highlight`` onto ``base`` at every coordinate in ``differences``.

    Parameters
    ----------
    base : Canvas
        Reconciled reference canvas; it is not modified.
    differences : DifferenceSet
        Coordinates to highlight, sized like ``base``.
    highlight : sequence of int
        RGB or RGBA highlight color.
    mode : {"replace", "blend"}
        ``"replace"`` overwrites the pixel with the highlight (opaque alpha
        when ``base`` has an alpha channel and ``highlight`` has none);
        ``"blend"`` composites the highlight over the pixel using its alpha.

    Returns
    -------
    Canvas
        New canvas of the same size and channel count as ``base``.
    """
    if differences.size != base.size:
        raise ValueError(f"Difference set {differences.size} does not match canvas {base.size}")
    out = base.copy()
    mask = differences.mask
    if not mask.any():
        return Canvas._wrap(out)

    if mode == "replace":
        out[mask] = _as_color(highlight, base.channels)
    elif mode == "blend":
        _as_color(highlight, len(highlight))
        out[mask] = _blend_over(out[mask], highlight)
    else:
        raise ValueError(f"Unknown highlight mode {mode!r}")
    return Canvas._wrap(out)
