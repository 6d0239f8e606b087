"""Pointer position -> slice lookup, in the same frame the layout uses."""

from __future__ import annotations
import math
from typing import Optional, Sequence, Tuple

from .config import ChartConfig
from .models import FileSystemEntry, Ring, SliceGeometry
from .sunburst import ring_bounds, ring_width

_DEFAULT = ChartConfig()

Point = Tuple[float, float]


def to_polar(point: Point, center: Point, radius: float) -> Tuple[float, float]:
    """(normalized distance, angle in degrees) with y pointing down.

    The angle is wrapped into [-90, 270) so the top of the chart, where
    ring 0 starts, is the smallest angle.
    """
    dx = point[0] - center[0]
    dy = point[1] - center[1]
    dist = math.hypot(dx, dy) / radius if radius > 0 else math.inf
    angle = math.degrees(math.atan2(dy, dx))
    if angle < -90.0:
        angle += 360.0
    return dist, angle


def from_polar(dist: float, angle: float, center: Point, radius: float) -> Point:
    a = math.radians(angle)
    return (center[0] + dist * radius * math.cos(a),
            center[1] + dist * radius * math.sin(a))


def locate_polar(dist: float, angle: float, rings: Sequence[Ring],
                 config: ChartConfig = _DEFAULT) -> Optional[SliceGeometry]:
    n = len(rings)
    for i, slices in enumerate(rings):
        inner, outer = ring_bounds(i, n, config)
        if not inner <= dist <= outer:
            continue
        for s in slices:
            if s.contains_angle(angle):
                return s
        # gap inside a matching ring; other rings cannot contain this radius
        return None
    return None


def locate_slice(point: Point, center: Point, radius: float, rings: Sequence[Ring],
                 config: ChartConfig = _DEFAULT) -> Optional[SliceGeometry]:
    dist, angle = to_polar(point, center, radius)
    return locate_polar(dist, angle, rings, config)


def locate(point: Point, center: Point, radius: float, rings: Sequence[Ring],
           config: ChartConfig = _DEFAULT) -> Optional[FileSystemEntry]:
    s = locate_slice(point, center, radius, rings, config)
    return s.node if s else None


def slice_anchor(s: SliceGeometry, ring_count: int, config: ChartConfig = _DEFAULT) -> Tuple[float, float]:
    """Normalized polar centre (distance, angle) of a slice, e.g. for labels."""
    inner, _outer = ring_bounds(s.ring_index, ring_count, config)
    return inner + ring_width(ring_count, config) / 2.0, s.mid_angle
