from __future__ import annotations
import logging
from pathlib import Path

from PyQt6.QtCore import QObject, pyqtSignal

from ..core.batch import BatchCancelled, compare_directories

logger = logging.getLogger(__name__)


class CompareWorker(QObject):
    progressed = pyqtSignal(int, int)  # done, total
    finished = pyqtSignal(object)      # summary DataFrame
    failed = pyqtSignal(str)

    def __init__(self, reference_dir: Path, current_dir: Path, out_dir: Path, diff_cfg: dict, app_cfg: dict):
        super().__init__()
        self.reference_dir = reference_dir
        self.current_dir = current_dir
        self.out_dir = out_dir
        self.diff_cfg = diff_cfg
        self.app_cfg = app_cfg
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def run(self):
        try:
            logger.info("Starting comparison of %s against %s", self.current_dir, self.reference_dir)
            df = compare_directories(
                self.reference_dir,
                self.current_dir,
                self.out_dir,
                self.diff_cfg,
                self.app_cfg,
                progress=self.progressed.emit,
                should_stop=lambda: self._cancelled,
            )
            self.finished.emit(df)
            logger.info("Comparison finished: %s", self.out_dir)
        except BatchCancelled:
            logger.info("Comparison cancelled")
            self.failed.emit("cancelled")
        except Exception as e:
            logger.exception("Comparison failed")
            self.failed.emit(str(e))
