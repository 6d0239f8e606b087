from __future__ import annotations
import asyncio
import logging
import os
import stat as statmod
import threading
from typing import Callable, List, Optional, Tuple

from .config import ScanConfig
from .models import FileSystemEntry, RootNotAccessibleError, RootNotFoundError

log = logging.getLogger(__name__)

ProgressCb = Callable[[float, str], None]  # (fraction 0..1, last completed item name)

_Listed = Tuple[str, str, os.stat_result]  # (path, name, lstat)


class CancelFlag:
    """Set-once flag shared by every unit of one scan."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


class ProgressCounter:
    """Counts finished top-level children and reports strictly increasing fractions."""

    def __init__(self, callback: Optional[ProgressCb] = None):
        self._callback = callback
        self._lock = threading.Lock()
        self.total = 0
        self.completed = 0
        self.last_fraction = 0.0

    def begin(self, total: int):
        with self._lock:
            self.total = total
            self.completed = 0
            self.last_fraction = 0.0

    def increment(self, name: str) -> int:
        with self._lock:
            self.completed += 1
            count = self.completed
            if self.total <= 0:
                return count
            fraction = count / self.total
            # 1.0 is reserved for the terminal event
            if fraction <= self.last_fraction or fraction >= 1.0:
                return count
            self.last_fraction = fraction
            if self._callback:
                self._callback(fraction, name)
        return count

    def finish(self, name: str):
        with self._lock:
            self.last_fraction = 1.0
            if self._callback:
                self._callback(1.0, name)


def display_name(path: str) -> str:
    return os.path.basename(path.rstrip("\\/")) or path


class ScanEngine:
    """Measures a directory tree with one concurrent unit per directory entry.

    Each directory lists its entries in a worker thread, then awaits one
    coroutine per entry and reduces their results once all of them have
    joined. Nothing but the cancel flag and the top-level progress counter
    is shared between branches.
    """

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or ScanConfig()

    # ---------- sizing helpers

    def entry_size(self, st: os.stat_result) -> int:
        if self.config.size_mode == "allocated":
            blocks = getattr(st, "st_blocks", None)
            if blocks is not None:
                return int(blocks) * 512
        return int(getattr(st, "st_size", 0) or 0)

    def is_bundle(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.config.bundle_extensions

    def bundle_size(self, path: str, cancel_flag: Optional[Callable[[], bool]] = None) -> int:
        """Synchronous byte sum of everything below ``path``."""
        total = 0
        stack = [path]
        while stack:
            if cancel_flag and cancel_flag():
                return total
            cur = stack.pop()
            try:
                with os.scandir(cur) as it:
                    for entry in it:
                        try:
                            st = entry.stat(follow_symlinks=False)
                        except OSError:
                            continue
                        if statmod.S_ISDIR(st.st_mode):
                            stack.append(entry.path)
                        else:
                            total += self.entry_size(st)
            except OSError as e:
                log.debug("Cannot read bundle directory %s: %s", cur, e)
        return total

    @staticmethod
    def _list_dir(path: str) -> List[_Listed]:
        out: List[_Listed] = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    st = entry.stat(follow_symlinks=False)
                except OSError as e:
                    # vanished between listing and stat
                    log.debug("Cannot stat %s: %s", entry.path, e)
                    continue
                out.append((entry.path, entry.name, st))
        return out

    # ---------- public API

    def check_root(self, path: str) -> os.stat_result:
        """Raise RootNotFoundError / RootNotAccessibleError if ``path`` cannot be scanned."""
        try:
            st = os.stat(path)
        except FileNotFoundError:
            raise RootNotFoundError(path, f"Path does not exist: {path}") from None
        except OSError as e:
            raise RootNotAccessibleError(path, f"Cannot access {path}: {e.strerror or e}") from None
        except ValueError as e:
            # e.g. an embedded NUL byte, which the OS never sees
            raise RootNotAccessibleError(path, f"Invalid path {path!r}: {e}") from None

        if statmod.S_ISDIR(st.st_mode):
            try:
                with os.scandir(path):
                    pass
            except OSError as e:
                raise RootNotAccessibleError(path, f"Cannot read directory {path}: {e.strerror or e}") from None
        return st

    async def scan(self, path: str,
                   progress: Optional[ProgressCb] = None,
                   cancel_flag: Optional[Callable[[], bool]] = None) -> Optional[FileSystemEntry]:
        """Measure ``path``. Returns None when cancelled, never a partial tree."""
        cancel_flag = cancel_flag or CancelFlag()
        path = os.path.abspath(path)
        try:
            st = self.check_root(path)
        except (RootNotFoundError, RootNotAccessibleError) as e:
            log.warning("Scan of %s failed: %s", path, e)
            raise

        if cancel_flag():
            return None

        log.info("Scanning %s (%s sizes)", path, self.config.size_mode)
        counter = ProgressCounter(progress)
        root = await self._measure(path, display_name(path), st, cancel_flag, counter, depth=0)

        if root is None or cancel_flag():
            log.info("Scan of %s cancelled", path)
            return None

        counter.finish(root.name)
        log.info("Scan of %s finished: %d bytes", path, root.size)
        return root

    def scan_blocking(self, path: str,
                      progress: Optional[ProgressCb] = None,
                      cancel_flag: Optional[Callable[[], bool]] = None) -> Optional[FileSystemEntry]:
        """Run :meth:`scan` to completion on a private event loop."""
        return asyncio.run(self.scan(path, progress=progress, cancel_flag=cancel_flag))

    # ---------- tree walk

    async def _measure(self, path: str, name: str, st: os.stat_result,
                       cancel_flag: Callable[[], bool], counter: ProgressCounter,
                       depth: int) -> Optional[FileSystemEntry]:
        if cancel_flag():
            return None

        mode = st.st_mode
        if statmod.S_ISLNK(mode):
            return FileSystemEntry(path=path, name=name, is_dir=False,
                                   size=self.entry_size(st), is_symlink=True)
        if not statmod.S_ISDIR(mode):
            return FileSystemEntry(path=path, name=name, is_dir=False, size=self.entry_size(st))

        try:
            listing = await asyncio.to_thread(self._list_dir, path)
        except OSError as e:
            log.debug("Cannot list %s: %s", path, e)
            return FileSystemEntry(path=path, name=name, is_dir=True, size=0, children=())

        if cancel_flag():
            return None

        if depth == 0:
            counter.begin(len(listing))

        results = await asyncio.gather(*(
            self._measure_child(item, cancel_flag, counter, depth) for item in listing
        ))

        if cancel_flag():
            return None

        kids = sorted((r for r in results if r is not None), key=lambda n: n.size, reverse=True)
        return FileSystemEntry(path=path, name=name, is_dir=True,
                               size=sum(k.size for k in kids), children=tuple(kids))

    async def _measure_child(self, item: _Listed, cancel_flag: Callable[[], bool],
                             counter: ProgressCounter, depth: int) -> Optional[FileSystemEntry]:
        if cancel_flag():
            return None

        path, name, st = item
        if statmod.S_ISDIR(st.st_mode) and self.is_bundle(name):
            size = await asyncio.to_thread(self.bundle_size, path, cancel_flag)
            result: Optional[FileSystemEntry] = FileSystemEntry(
                path=path, name=name, is_dir=True, size=size, is_bundle=True)
        else:
            result = await self._measure(path, name, st, cancel_flag, counter, depth + 1)

        if depth == 0 and not cancel_flag():
            counter.increment(result.name if result else name)
        return result
