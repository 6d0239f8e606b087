from __future__ import annotations
from typing import AbstractSet, List, Optional, Sequence, Set, Tuple

from .config import ChartConfig
from .models import FileSystemEntry, Ring, SliceGeometry

_DEFAULT = ChartConfig()


def slice_opacity(depth: int, config: ChartConfig = _DEFAULT) -> float:
    return max(config.min_opacity, 1.0 - config.opacity_step * depth)


def _slices_in_arc(nodes: Sequence[FileSystemEntry], start: float, arc: float,
                   ring_index: int, parent_color: Optional[int],
                   config: ChartConfig) -> List[SliceGeometry]:
    total = sum(n.size for n in nodes)
    if total <= 0:
        return []

    # stagger hues so siblings under different parents don't start on the same color
    offset = 0 if parent_color is None else (parent_color + 1) % config.palette_size
    opacity = slice_opacity(ring_index, config)

    out: List[SliceGeometry] = []
    angle = start
    for i, n in enumerate(nodes):
        end = angle + arc * (n.size / total)
        out.append(SliceGeometry(
            node=n,
            ring_index=ring_index,
            start_angle=angle,
            end_angle=end,
            depth=ring_index,
            color_index=(i + offset) % config.palette_size,
            opacity=opacity,
        ))
        angle = end
    return out


def build_rings(current: FileSystemEntry,
                expanded: AbstractSet[str] = frozenset(),
                config: ChartConfig = _DEFAULT) -> List[Ring]:
    """Angular layout of ``current``'s subtree, one list of slices per ring.

    Ring 0 holds the immediate children over the full circle. Deeper rings
    subdivide each parent's arc; past ``base_depth`` only parents whose id is
    in ``expanded`` get a further ring.
    """
    rings: List[Ring] = []
    if not current.children:
        return rings

    first = _slices_in_arc(current.children, config.start_angle, 360.0, 0, None, config)
    if not first:
        return rings
    rings.append(first)

    parents = first
    depth = 1
    while parents and depth < config.max_rings:
        ring: Ring = []
        for p in parents:
            if depth >= config.base_depth and p.node.id not in expanded:
                continue
            if not p.node.children:
                continue
            arc = p.span
            if arc <= config.min_arc:
                continue
            ring.extend(_slices_in_arc(p.node.children, p.start_angle, arc, depth, p.color_index, config))
        if not ring:
            break
        rings.append(ring)
        parents = ring
        depth += 1
    return rings


def ring_width(ring_count: int, config: ChartConfig = _DEFAULT) -> float:
    count = max(ring_count, config.base_depth)
    return (1.0 - config.center_radius - config.outer_padding) / count


def ring_bounds(ring_index: int, ring_count: int, config: ChartConfig = _DEFAULT) -> Tuple[float, float]:
    """Normalized (inner, outer) radius of a ring; 1.0 is the chart edge."""
    w = ring_width(ring_count, config)
    inner = config.center_radius + w * ring_index
    return inner, inner + w


class ViewState:
    """What the chart currently shows: focus path, expanded ids and selection.

    Expansion is keyed by node id and lives here rather than on the tree, so
    it is scoped to one focus and one scan result.
    """

    def __init__(self, root: Optional[FileSystemEntry] = None, config: Optional[ChartConfig] = None):
        self.config = config or _DEFAULT
        self.root: Optional[FileSystemEntry] = None
        self.path: List[FileSystemEntry] = []
        self.expanded: Set[str] = set()
        self.selected: Optional[FileSystemEntry] = None
        if root is not None:
            self.reset(root)

    def reset(self, root: Optional[FileSystemEntry]):
        self.root = root
        self.path = [root] if root is not None else []
        self.expanded.clear()
        self.selected = None

    @property
    def current(self) -> Optional[FileSystemEntry]:
        return self.path[-1] if self.path else None

    @property
    def can_go_back(self) -> bool:
        return len(self.path) > 1

    def _focus_changed(self):
        self.expanded.clear()
        self.selected = None

    def drill_down(self, node: FileSystemEntry) -> bool:
        if not node.is_dir or not node.children:
            return False
        self.path.append(node)
        self._focus_changed()
        return True

    def go_back(self) -> bool:
        if not self.can_go_back:
            return False
        self.path.pop()
        self._focus_changed()
        return True

    def navigate_to(self, node: FileSystemEntry) -> bool:
        """Focus the deepest directory on the way to ``node`` and select ``node``."""
        if self.root is None:
            return False
        chain = self.root.path_to(node.id)
        if chain is None:
            return False
        if not node.children and len(chain) > 1:
            focus = chain[:-1]
        else:
            focus = chain
        self.path = focus
        self._focus_changed()
        self.selected = node
        return True

    def select(self, node: Optional[FileSystemEntry]):
        self.selected = node

    def is_expanded(self, node: FileSystemEntry) -> bool:
        return node.id in self.expanded

    def toggle_expanded(self, node: FileSystemEntry) -> bool:
        """Expand or collapse ``node``; returns the new expanded state."""
        if not node.children:
            return False
        if node.id in self.expanded:
            self.collapse(node)
            return False
        self.expanded.add(node.id)
        return True

    def collapse(self, node: FileSystemEntry):
        """Drop ``node`` and every expanded descendant from the expansion set."""
        self.expanded.discard(node.id)
        for n in node.iter_nodes():
            if not self.expanded:
                break
            self.expanded.discard(n.id)

    def rings(self) -> List[Ring]:
        cur = self.current
        if cur is None:
            return []
        return build_rings(cur, self.expanded, self.config)

    def hit(self, x: float, y: float, cx: float, cy: float, radius: float) -> Optional[FileSystemEntry]:
        from .hittest import locate
        return locate((x, y), (cx, cy), radius, self.rings(), self.config)
