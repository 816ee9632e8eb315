from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union
import logging

from .canvas import Canvas, Color, _as_color
from .comparator import DifferenceSet, compare_pixels
from .compositor import HighlightMode, composite
from .reconcile import OPAQUE_FILL, TRANSPARENT, padding_mask, reconcile

logger = logging.getLogger(__name__)

ALPHA_HIGHLIGHT: Color = (255, 0, 0, 55)
OPAQUE_HIGHLIGHT: Color = (255, 0, 0)


class DiffState(str, Enum):
    START = "start"
    COMPARING_EQUAL = "comparing-equal"
    IDENTICAL = "identical"
    RECONCILING = "reconciling"
    COMPARING_PIXELS = "comparing-pixels"
    COMPOSITING = "compositing"
    RESULT = "result"


@dataclass(frozen=True)
class Identical:
    """Both inputs matched exactly; ``reference`` is the caller's own object."""

    reference: Canvas

    is_identical = True


@dataclass(frozen=True)
class Different:
    canvas: Canvas
    differences: DifferenceSet

    is_identical = False

    @property
    def diff_pixels(self) -> int:
        return len(self.differences)


DiffResult = Union[Identical, Different]


class DiffEngine:
    """Exact per-pixel image comparison with a highlighted result.

    Parameters
    ----------
    alpha_aware : bool
        ``True`` compares in RGBA, pads with transparent pixels and blends a
        translucent highlight. ``False`` uses solid colors: opaque white
        padding and a highlight that replaces the pixel.
    highlight_color : sequence of int, optional
        RGB or RGBA highlight; defaults to translucent red in alpha-aware mode
        and solid red otherwise.
    workers : int
        Threads used to scan row bands (``0`` = every CPU).
    band_rows : int
        Minimum rows per band.
    """

    def __init__(
        self,
        *,
        alpha_aware: bool = True,
        highlight_color: Optional[Sequence[int]] = None,
        workers: int = 1,
        band_rows: int = 256,
    ):
        if highlight_color is None:
            highlight_color = ALPHA_HIGHLIGHT if alpha_aware else OPAQUE_HIGHLIGHT
        _as_color(highlight_color, len(highlight_color))
        if workers < 0:
            raise ValueError(f"workers must be >= 0, got {workers}")
        if band_rows < 1:
            raise ValueError(f"band_rows must be >= 1, got {band_rows}")
        self.alpha_aware = alpha_aware
        self.highlight_color: Color = tuple(int(c) for c in highlight_color)
        self.workers = workers
        self.band_rows = band_rows

    @property
    def highlight_mode(self) -> HighlightMode:
        return "blend" if self.alpha_aware else "replace"

    @property
    def fill_color(self) -> Color:
        return TRANSPARENT if self.alpha_aware else OPAQUE_FILL

    def _working_channels(self, reference: Canvas, current: Canvas) -> int:
        if self.alpha_aware or reference.has_alpha or current.has_alpha:
            return 4
        return 3

    def _enter(self, state: DiffState) -> None:
        logger.debug("compare: %s", state.value)

    def compare(self, reference: Canvas, current: Canvas) -> DiffResult:
        self._enter(DiffState.START)

        self._enter(DiffState.COMPARING_EQUAL)
        if reference == current:
            self._enter(DiffState.IDENTICAL)
            return Identical(reference)

        channels = self._working_channels(reference, current)
        ref = reference.with_channels(channels)
        cur = current.with_channels(channels)

        force = None
        if ref.size != cur.size:
            self._enter(DiffState.RECONCILING)
            ref, cur = reconcile(ref, cur, self.fill_color)
            force = padding_mask(ref.width, ref.height, reference.size, current.size)

        self._enter(DiffState.COMPARING_PIXELS)
        differences = compare_pixels(
            ref, cur, force=force, workers=self.workers, band_rows=self.band_rows
        )
        if not differences and reference.size == current.size:
            # inputs differ in channel layout alone
            self._enter(DiffState.IDENTICAL)
            return Identical(reference)

        self._enter(DiffState.COMPOSITING)
        canvas = composite(ref, differences, self.highlight_color, mode=self.highlight_mode)
        self._enter(DiffState.RESULT)
        logger.debug(
            "compare: %d of %d pixel(s) differ",
            len(differences), canvas.width * canvas.height,
        )
        return Different(canvas, differences)


def compare(reference: Canvas, current: Canvas, **kwargs) -> DiffResult:
    """Compare two canvases with a one-off :class:`DiffEngine`."""
    return DiffEngine(**kwargs).compare(reference, current)
