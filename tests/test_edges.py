"""Tests for occlusion-aware edge segmentation."""

import pytest

from netgraph_mcp.edges import (
    compute_edge_geometry,
    group_circles,
    home_groups,
    segment_edge,
    segments_to_gradient_stops,
)
from netgraph_mcp.models import Circle, Edge, Vertex, VertexKind


def _crossing_graph() -> dict[str, Vertex]:
    return {
        "g": Vertex(id="g", kind=VertexKind.GROUP, x=50, y=0, r=10),
        "a": Vertex(id="a", x=0, y=0, r=5),
        "b": Vertex(id="b", x=100, y=0, r=5),
    }


class TestSegmentEdge:
    def test_no_groups_single_related_segment(self) -> None:
        segments = segment_edge(0, 0, 100, 0, {}, frozenset())
        assert len(segments) == 1
        assert (segments[0].start, segments[0].end, segments[0].related) == (0.0, 1.0, True)

    def test_foreign_group_fades_inner_segment(self) -> None:
        segments = segment_edge(0, 0, 100, 0, {"g": Circle(50, 0, 10)}, frozenset())
        assert [(s.start, s.end) for s in segments] == pytest.approx(
            [(0, 0.4), (0.4, 0.6), (0.6, 1)])
        assert [s.related for s in segments] == [True, False, True]

    def test_home_group_stays_related(self) -> None:
        segments = segment_edge(0, 0, 100, 0, {"g": Circle(50, 0, 10)}, frozenset({"g"}))
        assert all(s.related for s in segments)

    def test_coincident_crossings_deduplicated(self) -> None:
        circles = {"g1": Circle(50, 0, 10), "g2": Circle(50, 0, 10)}
        segments = segment_edge(0, 0, 100, 0, circles, frozenset())
        assert len(segments) == 3

    def test_segments_cover_whole_edge(self) -> None:
        circles = {"g1": Circle(30, 0, 10), "g2": Circle(70, 5, 12)}
        segments = segment_edge(0, 0, 100, 0, circles, frozenset())
        assert segments[0].start == 0.0
        assert segments[-1].end == 1.0
        for prev, nxt in zip(segments, segments[1:]):
            assert prev.end == nxt.start


class TestGradientStops:
    def test_two_stops_per_segment(self) -> None:
        segments = segment_edge(0, 0, 100, 0, {"g": Circle(50, 0, 10)}, frozenset())
        stops = segments_to_gradient_stops(segments)
        assert [s.offset for s in stops] == pytest.approx([0, 40, 40, 60, 60, 100])
        assert [s.color for s in stops] == ["#888", "#888", "#ccc", "#ccc", "#888", "#888"]
        assert [s.opacity for s in stops] == [0.4, 0.4, 0.2, 0.2, 0.4, 0.4]


class TestEdgeGeometry:
    def test_shortened_and_segmented(self) -> None:
        geo = compute_edge_geometry(_crossing_graph(), Edge("a", "b"))
        assert (geo.x1, geo.y1, geo.x2, geo.y2) == pytest.approx((5, 0, 95, 0))
        assert len(geo.segments) == 3
        assert geo.unrelated_count == 1
        assert geo.segments[0].end == pytest.approx(35 / 90)

    def test_missing_endpoint(self) -> None:
        assert compute_edge_geometry(_crossing_graph(), Edge("a", "zzz")) is None

    def test_collapsed_group_not_a_boundary(self) -> None:
        vertices = _crossing_graph()
        vertices["g"].collapsed = True
        assert group_circles(vertices) == {}
        geo = compute_edge_geometry(vertices, Edge("a", "b"))
        assert geo.unrelated_count == 0

    def test_home_includes_every_ancestor(self, laid_out_graph) -> None:
        home = home_groups(laid_out_graph.vertices, Edge("web-1", "db-1"))
        assert home == {
            "web-1", "db-1", "app-web", "app-db",
            "cluster-a", "private-network", "internet-boundary",
        }

    def test_edge_within_own_groups_fully_related(self, laid_out_graph) -> None:
        geo = compute_edge_geometry(laid_out_graph.vertices, Edge("web-1", "db-1"))
        assert geo.unrelated_count == 0
        assert all(s.color == "#888" for s in geo.stops)

    def test_endpoints_on_node_rims(self, laid_out_graph) -> None:
        v = laid_out_graph.vertices
        geo = compute_edge_geometry(v, Edge("lb", "web-1"))
        assert ((geo.x1 - v["lb"].x) ** 2 + (geo.y1 - v["lb"].y) ** 2) ** 0.5 == pytest.approx(15)
        assert ((geo.x2 - v["web-1"].x) ** 2 + (geo.y2 - v["web-1"].y) ** 2) ** 0.5 == pytest.approx(15)
