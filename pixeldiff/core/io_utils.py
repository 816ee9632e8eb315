from __future__ import annotations
from pathlib import Path
import numpy as np
import cv2

from .canvas import Canvas

SUPPORTED_EXTS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}


class ImageIOError(ValueError):
    """Base class for failures of the image decode/encode layer."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class ImageReadError(ImageIOError):
    pass


class ImageWriteError(ImageIOError):
    pass


def discover_images(folder: Path) -> list[Path]:
    paths = [p for p in Path(folder).iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_EXTS]
    return sorted(paths, key=lambda p: p.name)


def read_canvas(path: Path) -> Canvas:
    """Decode an image file into an RGB or RGBA :class:`Canvas`.

    Grayscale images are expanded to RGB, 16-bit data is scaled to 8 bits.
    Raises :class:`ImageReadError` when the file is missing or cannot be
    decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise ImageReadError(path, "file not found")
    try:
        data = np.fromfile(str(path), dtype=np.uint8)
    except OSError as e:
        raise ImageReadError(path, str(e)) from e
    img = cv2.imdecode(data, cv2.IMREAD_UNCHANGED) if data.size else None
    if img is None:
        raise ImageReadError(path, "unsupported or corrupt image data")
    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = cv2.normalize(img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    if img.ndim == 2 or img.shape[2] == 1:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return Canvas._wrap(img)


def write_canvas(path: Path, canvas: Canvas) -> Path:
    """Encode ``canvas`` in the format implied by ``path``'s extension."""
    path = Path(path)
    ext = path.suffix.lower() or ".png"
    if ext not in SUPPORTED_EXTS:
        raise ImageWriteError(path, f"unsupported format {ext!r}")
    if canvas.width == 0 or canvas.height == 0:
        raise ImageWriteError(path, "cannot encode an empty canvas")
    code = cv2.COLOR_RGBA2BGRA if canvas.has_alpha else cv2.COLOR_RGB2BGR
    try:
        ok, buf = cv2.imencode(ext, cv2.cvtColor(canvas.array, code))
    except cv2.error as e:
        raise ImageWriteError(path, str(e)) from e
    if not ok:
        raise ImageWriteError(path, "encoding failed")
    try:
        ensure_dir(path.parent)
        buf.tofile(str(path))
    except OSError as e:
        raise ImageWriteError(path, str(e)) from e
    return path


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
