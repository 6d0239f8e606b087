"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest
from PySide6.QtCore import QCoreApplication

from diskrings.config import ScanConfig
from diskrings.models import FileSystemEntry
from diskrings.scanner import ScanEngine


def write_bytes(path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)


def make_tree(root, layout: dict) -> None:
    """Materialize {name: size | dict} under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for name, value in layout.items():
        if isinstance(value, dict):
            make_tree(root / name, value)
        else:
            write_bytes(root / name, value)


def entry(name: str, size: int = 0, children=None, is_dir=None) -> FileSystemEntry:
    """In-memory node; directory size is the sum of its children."""
    if children is not None:
        kids = tuple(sorted(children, key=lambda n: n.size, reverse=True))
        return FileSystemEntry(path=f"/t/{name}", name=name, is_dir=True,
                               size=sum(k.size for k in kids), children=kids)
    return FileSystemEntry(path=f"/t/{name}", name=name, is_dir=bool(is_dir), size=size)


@pytest.fixture
def engine() -> ScanEngine:
    return ScanEngine(ScanConfig(size_mode="logical"))


@pytest.fixture
def sample_tree(tmp_path):
    """root/{a.txt(100), sub/{b.txt(300)}}"""
    root = tmp_path / "root"
    make_tree(root, {"a.txt": 100, "sub": {"b.txt": 300}})
    return root


@pytest.fixture
def deep_tree(tmp_path):
    root = tmp_path / "deep"
    make_tree(root, {
        "big": {"one.bin": 5000, "inner": {"two.bin": 2000, "three.bin": 1000}},
        "mid": {"x.bin": 700, "y.bin": 700, "z.bin": 700},
        "small.txt": 50,
        "empty": {},
        "Tool.app": {"Contents": {"MacOS": {"tool": 1200}, "Info.plist": 300}},
    })
    return root


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def pump(app, predicate, timeout: float = 10.0) -> bool:
    """Process queued Qt events until ``predicate()`` holds."""
    import time

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    app.processEvents()
    return predicate()


needs_posix_perms = pytest.mark.skipif(
    os.name != "posix" or (hasattr(os, "geteuid") and os.geteuid() == 0),
    reason="permission bits are not enforced here",
)
