from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class FileSystemEntry:
    """One file or directory of a scan result.

    ``children`` is a size-descending tuple for directories and ``None`` for
    files and bundles. Only ``percentage`` changes after construction.
    """
    path: str
    name: str
    is_dir: bool
    size: int = 0
    children: Optional[Tuple["FileSystemEntry", ...]] = None
    is_bundle: bool = False
    is_symlink: bool = False
    percentage: float = 0.0
    id: str = field(default_factory=_new_id)

    def __eq__(self, other):
        if not isinstance(other, FileSystemEntry):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        kind = "dir" if self.is_dir else "file"
        return f"FileSystemEntry({self.name!r}, {kind}, size={self.size})"

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def iter_nodes(self) -> Iterator["FileSystemEntry"]:
        """Pre-order walk, iterative so deep trees do not hit the recursion limit."""
        stack = [self]
        while stack:
            n = stack.pop()
            yield n
            if n.children:
                stack.extend(reversed(n.children))

    def find(self, node_id: str) -> Optional["FileSystemEntry"]:
        for n in self.iter_nodes():
            if n.id == node_id:
                return n
        return None

    def find_by_path(self, path: str) -> Optional["FileSystemEntry"]:
        for n in self.iter_nodes():
            if n.path == path:
                return n
        return None

    def path_to(self, node_id: str) -> Optional[List["FileSystemEntry"]]:
        """Chain of nodes from self down to ``node_id`` (both ends included)."""
        chain: List[FileSystemEntry] = []

        def walk(n: FileSystemEntry) -> bool:
            chain.append(n)
            if n.id == node_id:
                return True
            for c in n.children or ():
                if walk(c):
                    return True
            chain.pop()
            return False

        return chain if walk(self) else None

    @property
    def file_count(self) -> int:
        return sum(1 for n in self.iter_nodes() if n.is_leaf)

    @property
    def dir_count(self) -> int:
        return sum(1 for n in self.iter_nodes() if not n.is_leaf)


def annotate_percentages(root: FileSystemEntry, total: Optional[int] = None) -> FileSystemEntry:
    """Stamp every node with its share (0..100) of ``total`` (default: root size)."""
    if total is None:
        total = root.size
    for n in root.iter_nodes():
        n.percentage = (n.size / total) * 100.0 if total > 0 else 0.0
    return root


@dataclass(frozen=True)
class SliceGeometry:
    node: FileSystemEntry
    ring_index: int
    start_angle: float
    end_angle: float
    depth: int
    color_index: int
    opacity: float = 1.0

    @property
    def span(self) -> float:
        return self.end_angle - self.start_angle

    @property
    def mid_angle(self) -> float:
        return self.start_angle + self.span / 2.0

    def contains_angle(self, angle: float) -> bool:
        return self.start_angle <= angle < self.end_angle


Ring = List[SliceGeometry]


class ScanError(Exception):
    """The scan root could not be measured at all."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class RootNotFoundError(ScanError):
    pass


class RootNotAccessibleError(ScanError):
    pass


class TrashError(Exception):
    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path
