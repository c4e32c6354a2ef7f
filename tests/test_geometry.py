"""Tests for the geometry helpers."""

import pytest

from netgraph_mcp.geometry import (
    line_circle_intersections,
    point_along,
    point_in_circle,
    shorten_edge,
)
from netgraph_mcp.models import Circle


class TestLineCircleIntersections:
    def test_line_through_centre(self) -> None:
        ts = line_circle_intersections(-2, 0, 2, 0, Circle(0, 0, 1))
        assert ts == pytest.approx([0.25, 0.75])

    def test_miss(self) -> None:
        assert line_circle_intersections(-2, 5, 2, 5, Circle(0, 0, 1)) == []

    def test_zero_length_segment(self) -> None:
        assert line_circle_intersections(3, 3, 3, 3, Circle(0, 0, 10)) == []

    def test_segment_fully_inside(self) -> None:
        assert line_circle_intersections(-1, 0, 1, 0, Circle(0, 0, 10)) == []

    def test_tangent_single_point(self) -> None:
        ts = line_circle_intersections(-2, 1, 2, 1, Circle(0, 0, 1))
        assert ts == pytest.approx([0.5])

    def test_one_endpoint_inside(self) -> None:
        ts = line_circle_intersections(0, 0, 4, 0, Circle(0, 0, 2))
        assert ts == pytest.approx([0.5])


class TestPointInCircle:
    def test_centre(self) -> None:
        assert point_in_circle(0, 0, Circle(0, 0, 5))

    def test_boundary_is_outside(self) -> None:
        assert not point_in_circle(5, 0, Circle(0, 0, 5))

    def test_outside(self) -> None:
        assert not point_in_circle(10, 10, Circle(0, 0, 5))


class TestShortenEdge:
    def test_both_ends_pulled_in(self) -> None:
        assert shorten_edge(0, 0, 100, 0, 15, 15) == pytest.approx((15, 0, 85, 0))

    def test_uses_each_endpoint_radius(self) -> None:
        x1, y1, x2, y2 = shorten_edge(0, 0, 0, 100, 10, 30)
        assert (x1, y1) == pytest.approx((0, 10))
        assert (x2, y2) == pytest.approx((0, 70))

    def test_overlapping_circles_unchanged(self) -> None:
        assert shorten_edge(0, 0, 20, 0, 15, 15) == (0, 0, 20, 0)

    def test_zero_length_unchanged(self) -> None:
        assert shorten_edge(5, 5, 5, 5, 15, 15) == (5, 5, 5, 5)


def test_point_along() -> None:
    assert point_along(0, 0, 10, 20, 0.5) == pytest.approx((5, 10))
