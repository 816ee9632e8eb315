from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging
import pandas as pd

from .io_utils import ImageIOError, discover_images, ensure_dir, read_canvas, write_canvas
from ..models.config import AppParams, DiffParams

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "name",
    "status",
    "width",
    "height",
    "diff_pixels",
    "diff_fraction",
    "bbox",
    "output",
    "error",
]


class BatchCancelled(RuntimeError):
    pass


def diff_name(name: str, suffix: str) -> str:
    """Output file name for a compared image, unique per source file name.

    ``shot.png`` becomes ``shot_diff.png``; other extensions are kept in the
    stem (``shot.bmp`` -> ``shot_bmp_diff.png``) so namesakes do not collide.
    """
    p = Path(name)
    ext = p.suffix.lower()
    stem = p.stem if ext == ".png" else f"{p.stem}_{ext[1:]}"
    return f"{stem}{suffix}.png"


def _row(name: str, status: str, **kwargs: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {c: None for c in SUMMARY_COLUMNS}
    row.update(name=name, status=status, **kwargs)
    return row


def compare_pair(
    reference_path: Path,
    current_path: Path,
    out_path: Path,
    diff_cfg: dict,
    *,
    write_identical: bool = False,
) -> Dict[str, Any]:
    """Compare two image files and save the highlighted diff when they differ.

    Decode and encode failures are reported in the returned row
    (``status="error"``) instead of being raised, so one bad file does not
    abort a directory run.
    """
    name = Path(current_path).name
    engine = DiffParams(**diff_cfg).to_engine()
    try:
        reference = read_canvas(reference_path)
        current = read_canvas(current_path)
    except ImageIOError as e:
        logger.error("Skipping %s: %s", name, e)
        return _row(name, "error", error=str(e))

    result = engine.compare(reference, current)
    if result.is_identical:
        output = None
        if write_identical:
            try:
                output = str(write_canvas(out_path, result.reference))
            except ImageIOError as e:
                logger.error("Could not write %s: %s", out_path, e)
                return _row(name, "error", error=str(e))
        return _row(
            name, "identical",
            width=reference.width, height=reference.height,
            diff_pixels=0, diff_fraction=0.0, output=output,
        )

    diff = result.differences
    try:
        output = str(write_canvas(out_path, result.canvas))
    except ImageIOError as e:
        logger.error("Could not write %s: %s", out_path, e)
        return _row(name, "error", error=str(e))
    logger.info("%s: %d differing pixel(s) -> %s", name, len(diff), output)
    return _row(
        name, "different",
        width=result.canvas.width, height=result.canvas.height,
        diff_pixels=len(diff), diff_fraction=diff.fraction,
        bbox=diff.bounding_box(), output=output,
    )


def compare_directories(
    reference_dir: Path,
    current_dir: Path,
    out_dir: Path,
    diff_cfg: dict,
    app_cfg: dict,
    *,
    progress: Optional[Callable[[int, int], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> pd.DataFrame:
    """Compare every image in ``current_dir`` with its namesake in ``reference_dir``.

    Parameters
    ----------
    reference_dir, current_dir : Path
        Folders holding the baseline and the new images.
    out_dir : Path
        Destination of the diff images and the summary CSV.
    diff_cfg : dict
        Keyword arguments for :class:`DiffParams`.
    app_cfg : dict
        Keyword arguments for :class:`AppParams`.
    progress : callable, optional
        Called with ``(done, total)`` after each pair.
    should_stop : callable, optional
        Polled between pairs; returning ``True`` abandons the run and raises
        :class:`BatchCancelled` without writing a summary.

    Returns
    -------
    pd.DataFrame
        One row per file name, sorted by name, with ``SUMMARY_COLUMNS``.
    """
    app = AppParams(**app_cfg)
    exts = {e.lower() for e in app.extensions}
    ref_files = {p.name: p for p in discover_images(Path(reference_dir)) if p.suffix.lower() in exts}
    cur_files = {p.name: p for p in discover_images(Path(current_dir)) if p.suffix.lower() in exts}
    names = sorted(set(ref_files) | set(cur_files))
    logger.info(
        "Comparing %d reference and %d current image(s) into %s",
        len(ref_files), len(cur_files), out_dir,
    )
    ensure_dir(Path(out_dir))

    rows: List[Dict[str, Any]] = []
    jobs: Dict[str, tuple] = {}
    for name in names:
        if name not in ref_files:
            logger.warning("No reference image for %s", name)
            rows.append(_row(name, "missing_reference"))
        elif name not in cur_files:
            logger.warning("No current image for %s", name)
            rows.append(_row(name, "missing_current"))
        else:
            out_path = Path(out_dir) / diff_name(name, app.output_suffix)
            jobs[name] = (ref_files[name], cur_files[name], out_path)

    total = len(names)
    done = len(rows)
    if progress is not None:
        progress(done, total)

    def _check_stop() -> None:
        if should_stop is not None and should_stop():
            logger.warning("Batch comparison cancelled after %d/%d", done, total)
            raise BatchCancelled("cancelled")

    if app.jobs <= 1 or len(jobs) <= 1:
        for name, (ref_p, cur_p, out_p) in jobs.items():
            _check_stop()
            rows.append(compare_pair(ref_p, cur_p, out_p, diff_cfg, write_identical=app.write_identical))
            done += 1
            if progress is not None:
                progress(done, total)
    else:
        with ProcessPoolExecutor(max_workers=app.jobs) as pool:
            futures = {
                pool.submit(
                    compare_pair, ref_p, cur_p, out_p, diff_cfg,
                    write_identical=app.write_identical,
                ): name
                for name, (ref_p, cur_p, out_p) in jobs.items()
            }
            try:
                for fut in as_completed(futures):
                    rows.append(fut.result())
                    done += 1
                    if progress is not None:
                        progress(done, total)
                    _check_stop()
            except BatchCancelled:
                pool.shutdown(wait=True, cancel_futures=True)
                raise

    df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    df = df.sort_values("name").reset_index(drop=True)
    df.to_csv(Path(out_dir) / app.summary_name, index=False)
    counts = df["status"].value_counts().to_dict()
    logger.info("Batch comparison complete: %s", counts)
    return df
