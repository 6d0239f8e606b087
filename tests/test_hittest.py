"""Tests for pointer hit-testing against ring geometry."""

from __future__ import annotations

import pytest

from conftest import entry
from diskrings.hittest import from_polar, locate, locate_polar, locate_slice, slice_anchor, to_polar
from diskrings.sunburst import build_rings, ring_bounds

CENTER = (200.0, 150.0)
RADIUS = 120.0


@pytest.fixture
def focus():
    return entry("focus", children=[
        entry("big", children=[entry("b1", 45), entry("b2", 15)]),
        entry("mid", 30),
        entry("small", 10),
    ])


@pytest.fixture
def rings(focus):
    return build_rings(focus)


class TestPolar:
    def test_angles_follow_screen_frame(self):
        assert to_polar((0, -1), (0, 0), 1)[1] == pytest.approx(-90.0)
        assert to_polar((1, 0), (0, 0), 1)[1] == pytest.approx(0.0)
        assert to_polar((0, 1), (0, 0), 1)[1] == pytest.approx(90.0)
        assert to_polar((-1, 0), (0, 0), 1)[1] == pytest.approx(180.0)
        # upper-left quadrant wraps past 180
        assert to_polar((-1, -1), (0, 0), 1)[1] == pytest.approx(225.0)

    def test_distance_is_normalized(self):
        dist, _ = to_polar((230.0, 150.0), CENTER, RADIUS)
        assert dist == pytest.approx(0.25)

    def test_from_polar_inverts_to_polar(self):
        x, y = from_polar(0.5, 200.0, CENTER, RADIUS)
        dist, angle = to_polar((x, y), CENTER, RADIUS)
        assert dist == pytest.approx(0.5)
        assert angle == pytest.approx(200.0)


class TestLocate:
    def test_slice_centres_hit_their_nodes(self, rings):
        n = len(rings)
        for ring in rings:
            for s in ring:
                dist, angle = slice_anchor(s, n)
                point = from_polar(dist, angle, CENTER, RADIUS)
                assert locate(point, CENTER, RADIUS, rings) is s.node
                assert locate_slice(point, CENTER, RADIUS, rings) is s

    def test_outside_outer_ring(self, rings):
        _, outer = ring_bounds(len(rings) - 1, len(rings))
        assert locate_polar(outer + 0.01, 0.0, rings) is None
        assert locate(from_polar(0.99, 10.0, CENTER, RADIUS), CENTER, RADIUS, rings) is None

    def test_inside_center_circle(self, rings):
        assert locate(CENTER, CENTER, RADIUS, rings) is None
        assert locate_polar(0.1, 0.0, rings) is None

    def test_boundary_belongs_to_slice_that_starts_there(self, rings):
        big, mid, small = rings[0]
        dist = slice_anchor(big, len(rings))[0]
        assert locate_polar(dist, mid.start_angle, rings).node is mid
        assert locate_polar(dist, small.start_angle, rings).node is small
        assert locate_polar(dist, -90.0, rings).node is big

    def test_gap_in_ring_does_not_fall_through(self, rings):
        # ring 1 only covers "big"; the arc above "mid" is empty
        mid = rings[0][1]
        dist = slice_anchor(rings[1][0], len(rings))[0]
        assert locate_polar(dist, mid.mid_angle, rings) is None

    def test_no_rings(self):
        assert locate_polar(0.3, 0.0, []) is None

    def test_zero_radius(self, rings):
        assert locate((1.0, 1.0), (0.0, 0.0), 0.0, rings) is None
