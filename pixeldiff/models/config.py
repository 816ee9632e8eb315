from __future__ import annotations
from dataclasses import dataclass, asdict, field, fields
from typing import Optional, Dict, Any, List, Tuple
import json

from ..core.engine import DiffEngine
from ..core.io_utils import SUPPORTED_EXTS


@dataclass
class DiffParams:
    alpha_aware: bool = True  # translucent highlight, transparent padding
    highlight_color: Optional[Tuple[int, ...]] = None  # None -> mode default
    workers: int = 1  # 0 = all CPUs
    band_rows: int = 256

    def to_engine(self) -> DiffEngine:
        return DiffEngine(
            alpha_aware=self.alpha_aware,
            highlight_color=self.highlight_color,
            workers=self.workers,
            band_rows=self.band_rows,
        )


@dataclass
class AppParams:
    output_dir: Optional[str] = None
    output_suffix: str = "_diff"
    write_identical: bool = False  # also save a copy for identical pairs
    jobs: int = 1  # processes used for directory comparisons
    summary_name: str = "summary.csv"
    extensions: List[str] = field(default_factory=lambda: sorted(SUPPORTED_EXTS))


def _known(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def save_preset(path: str, diff: DiffParams, app: Optional[AppParams] = None) -> None:
    data = {
        "diff": asdict(diff),
        "app": asdict(app or AppParams()),
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_preset(path: str) -> tuple[DiffParams, AppParams]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    diff_data: Dict[str, Any] = _known(DiffParams, data.get("diff", {}))
    app_data: Dict[str, Any] = _known(AppParams, data.get("app", {}))
    color = diff_data.get("highlight_color")
    if isinstance(color, list):
        diff_data["highlight_color"] = tuple(color)
    app_data.setdefault("write_identical", False)
    app_data.setdefault("jobs", 1)
    return DiffParams(**diff_data), AppParams(**app_data)
