from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
import multiprocessing as mp
from typing import Callable, List, Tuple

# Row bands are evaluated on threads: numpy releases the GIL for the
# element-wise comparisons, so no pickling of pixel buffers is needed.
# Whole file pairs are spread over processes in ``core.batch``.


def cpu_count() -> int:
    try:
        return mp.cpu_count()
    except NotImplementedError:
        return 4


def resolve_workers(workers: int) -> int:
    """Map a configured worker count to a usable one (``0`` = all CPUs)."""
    if workers < 0:
        raise ValueError(f"workers must be >= 0, got {workers}")
    return cpu_count() if workers == 0 else workers


def row_bands(height: int, parts: int, min_rows: int = 1) -> list[tuple[int, int]]:
    """Split ``range(height)`` into at most ``parts`` contiguous bands."""
    if height <= 0:
        return [(0, 0)]
    parts = max(1, min(parts, height // max(1, min_rows) or 1))
    step, extra = divmod(height, parts)
    bands: List[Tuple[int, int]] = []
    start = 0
    for i in range(parts):
        stop = start + step + (1 if i < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


def map_bands(
    func: Callable[[int, int], object],
    bands: list[tuple[int, int]],
    workers: int,
) -> list:
    """Apply ``func(start, stop)`` to each band, preserving band order."""
    if workers <= 1 or len(bands) == 1:
        return [func(start, stop) for start, stop in bands]
    with ThreadPoolExecutor(max_workers=min(workers, len(bands))) as pool:
        return list(pool.map(lambda band: func(*band), bands))
