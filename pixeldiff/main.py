from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from .core.batch import compare_directories
from .core.io_utils import ImageIOError, read_canvas, write_canvas
from .models.config import AppParams, DiffParams, load_preset

logger = logging.getLogger(__name__)

EXIT_IDENTICAL = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2


def _parse_color(text: str) -> tuple[int, ...]:
    try:
        vals = tuple(int(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid color {text!r}")
    if len(vals) not in (3, 4) or any(v < 0 or v > 255 for v in vals):
        raise argparse.ArgumentTypeError(f"color must be R,G,B or R,G,B,A in 0-255: {text!r}")
    return vals


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pixeldiff",
        description="Highlight the pixels that differ between two images or two folders of images.",
    )
    ap.add_argument("reference", type=Path, help="Reference image or folder")
    ap.add_argument("current", type=Path, help="Current image or folder")
    ap.add_argument("-o", "--output", type=Path, default=None,
                    help="Diff image (default diff.png) or output folder in folder mode")
    ap.add_argument("--opaque", action="store_true",
                    help="Solid highlight and opaque padding instead of alpha blending")
    ap.add_argument("--highlight", type=_parse_color, default=None,
                    help="Highlight color as R,G,B or R,G,B,A")
    ap.add_argument("--workers", type=int, default=None, help="Threads per comparison (0 = all CPUs)")
    ap.add_argument("--jobs", type=int, default=None, help="Processes for folder comparisons")
    ap.add_argument("--preset", type=Path, default=None, help="JSON preset with diff/app settings")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def _resolve_params(args: argparse.Namespace) -> tuple[DiffParams, AppParams]:
    if args.preset is not None:
        diff, app = load_preset(str(args.preset))
    else:
        diff, app = DiffParams(), AppParams()
    if args.opaque:
        diff.alpha_aware = False
    if args.highlight is not None:
        diff.highlight_color = args.highlight
    if args.workers is not None:
        diff.workers = args.workers
    if args.jobs is not None:
        app.jobs = args.jobs
    return diff, app


def run(args: argparse.Namespace) -> int:
    diff, app = _resolve_params(args)
    try:
        engine = diff.to_engine()
    except ValueError as e:
        logger.error("Invalid settings: %s", e)
        return EXIT_ERROR

    if args.reference.is_dir() and args.current.is_dir():
        out_dir = args.output or Path(app.output_dir or "diff")
        df = compare_directories(args.reference, args.current, out_dir, asdict(diff), asdict(app))
        print(df.to_string(index=False))
        if (df["status"] == "identical").all():
            return EXIT_IDENTICAL
        if (df["status"] == "error").any():
            return EXIT_ERROR
        return EXIT_DIFFERENT

    try:
        reference = read_canvas(args.reference)
        current = read_canvas(args.current)
    except ImageIOError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    result = engine.compare(reference, current)
    print(f"Are equal: {result.is_identical}")
    if result.is_identical:
        return EXIT_IDENTICAL

    out_path = args.output or Path("diff.png")
    try:
        write_canvas(out_path, result.canvas)
    except ImageIOError as e:
        logger.error("%s", e)
        return EXIT_ERROR
    print(f"{result.diff_pixels} differing pixel(s) written to {out_path}")
    return EXIT_DIFFERENT


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Arguments: %s", vars(args))
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
