from __future__ import annotations
import logging
import os
from typing import Callable, Optional

from PySide6.QtCore import QObject, QThread, Signal, Slot

from .config import ScanConfig
from .models import FileSystemEntry, ScanError, TrashError, annotate_percentages
from .scanner import CancelFlag, ScanEngine
from .trash import move_to_trash

log = logging.getLogger(__name__)

TrashFn = Callable[[str], None]


class ScanThread(QThread):
    progress = Signal(float, str)  # fraction, last completed item
    done = Signal(object)          # annotated FileSystemEntry
    error = Signal(object)         # ScanError
    cancelled = Signal()

    def __init__(self, path: str, engine: ScanEngine, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.path = path
        self.engine = engine
        self.cancel_flag = CancelFlag()

    def run(self):
        try:
            root = self.engine.scan_blocking(self.path, progress=self.progress.emit,
                                             cancel_flag=self.cancel_flag)
        except ScanError as e:
            self.error.emit(e)
            return
        except Exception as e:
            # an escaped exception would end the thread without any signal
            log.exception("Scan of %s crashed", self.path)
            self.error.emit(ScanError(self.path, f"Scan of {self.path} failed: {e}"))
            return
        if root is None or self.cancel_flag():
            self.cancelled.emit()
            return
        annotate_percentages(root)
        self.done.emit(root)


class ScanSession(QObject):
    """Owns the current scan result and at most one in-flight scan.

    Starting a scan cancels the previous one and waits for its thread to
    finish before any new filesystem work begins.
    """

    progress = Signal(float, str)
    finished = Signal(object)
    failed = Signal(object)
    cancelled = Signal()
    trashed = Signal(str, bool)

    def __init__(self, config: Optional[ScanConfig] = None,
                 trash: Optional[TrashFn] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.engine = ScanEngine(config)
        self._trash = trash or move_to_trash
        self.root_node: Optional[FileSystemEntry] = None
        self.error: Optional[Exception] = None
        self.scan_thread: Optional[ScanThread] = None
        self._outcome_pending = False
        self.progress_fraction = 0.0
        self.progress_text = ""

    @property
    def is_scanning(self) -> bool:
        return self.scan_thread is not None and self.scan_thread.isRunning()

    def start_scan(self, path: str) -> ScanThread:
        # a replaced scan ends silently; only the new one reports
        self._stop_thread()

        self.error = None
        self.progress_fraction = 0.0
        self.progress_text = "Starting scan..."

        th = ScanThread(os.path.abspath(path), self.engine)
        log.debug("Starting scan thread for %s", th.path)
        th.progress.connect(self._on_progress)
        th.done.connect(self._on_done)
        th.error.connect(self._on_error)
        th.cancelled.connect(self._on_cancelled)
        self.scan_thread = th
        self._outcome_pending = True
        th.start()
        return th

    def cancel_scan(self):
        """Stop the running scan; emits ``cancelled`` unless it already reported."""
        pending = self._outcome_pending
        self._stop_thread()
        if pending:
            self.cancelled.emit()

    def _stop_thread(self):
        th = self.scan_thread
        self._outcome_pending = False
        if th is None:
            return
        if th.isRunning():
            log.info("Cancelling scan of %s", th.path)
        th.cancel_flag.cancel()
        th.wait()
        self.scan_thread = None
        self.progress_fraction = 0.0
        self.progress_text = ""

    def _is_current(self) -> bool:
        return self.sender() is self.scan_thread

    @Slot(float, str)
    def _on_progress(self, fraction: float, name: str):
        if not self._is_current():
            return
        if fraction > self.progress_fraction:
            self.progress_fraction = fraction
            self.progress_text = name
            self.progress.emit(fraction, name)

    @Slot(object)
    def _on_done(self, root: FileSystemEntry):
        if not self._is_current():
            return
        self._outcome_pending = False
        self.root_node = root
        self.progress_fraction = 1.0
        self.progress_text = ""
        self.finished.emit(root)

    @Slot()
    def _on_cancelled(self):
        if not self._is_current():
            return
        self._outcome_pending = False
        self.cancelled.emit()

    @Slot(object)
    def _on_error(self, err: ScanError):
        if not self._is_current():
            return
        self._outcome_pending = False
        # previous root_node stays in place
        self.error = err
        self.progress_fraction = 0.0
        self.progress_text = ""
        self.failed.emit(err)

    def move_to_trash(self, node: FileSystemEntry) -> bool:
        """Delegate ``node`` to the trash; on success rescan the current root."""
        try:
            self._trash(node.path)
        except TrashError as e:
            self.error = e
            log.warning("Trash failed for %s: %s", node.path, e)
            self.trashed.emit(node.path, False)
            self.failed.emit(e)
            return False

        self.trashed.emit(node.path, True)
        if self.root_node is not None:
            self.start_scan(self.root_node.path)
        return True
