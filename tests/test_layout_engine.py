"""Tests for the circle-pack layout engine."""

import math
import random

import pytest

from netgraph_mcp.hierarchy import build_hierarchy
from netgraph_mcp.layout_engine import (
    LayoutEngineConfig,
    calculate_canvas_size,
    compute_layout,
    enclose,
    pack_siblings,
    sibling_padding,
)
from netgraph_mcp.models import Circle, load_graph
from netgraph_mcp.validation import ValidationError


def _no_overlap(circles: list[Circle]) -> bool:
    for i, a in enumerate(circles):
        for b in circles[i + 1:]:
            if math.hypot(a.x - b.x, a.y - b.y) < a.r + b.r - 1e-6:
                return False
    return True


# ===================================================================
# Sibling packing
# ===================================================================

class TestPackSiblings:
    def test_empty(self) -> None:
        assert pack_siblings([]) == 0.0

    def test_single_circle_at_origin(self) -> None:
        c = Circle(r=7)
        assert pack_siblings([c]) == 7
        assert (c.x, c.y) == (0, 0)

    def test_two_circles_touch(self) -> None:
        a, b = Circle(r=1), Circle(r=2)
        assert pack_siblings([a, b]) == 3
        assert math.hypot(a.x - b.x, a.y - b.y) == pytest.approx(3)

    def test_many_equal_circles(self) -> None:
        circles = [Circle(r=10) for _ in range(12)]
        radius = pack_siblings(circles, random.Random(0))
        assert _no_overlap(circles)
        outer = Circle(0, 0, radius)
        assert all(outer.contains(c, tolerance=1e-6) for c in circles)

    def test_mixed_sizes(self) -> None:
        circles = [Circle(r=r) for r in (5, 30, 12, 8, 20, 3, 15)]
        radius = pack_siblings(circles, random.Random(1))
        assert _no_overlap(circles)
        outer = Circle(0, 0, radius)
        assert all(outer.contains(c, tolerance=1e-6) for c in circles)


class TestEnclose:
    def test_two_circles(self) -> None:
        e = enclose([Circle(0, 0, 1), Circle(10, 0, 1)])
        assert (e.x, e.y, e.r) == pytest.approx((5, 0, 6))

    def test_nested_circle_ignored(self) -> None:
        e = enclose([Circle(0, 0, 10), Circle(1, 1, 2)])
        assert (e.x, e.y, e.r) == pytest.approx((0, 0, 10))

    def test_empty(self) -> None:
        assert enclose([]) is None


# ===================================================================
# Hierarchy layout
# ===================================================================

class TestComputeLayout:
    def test_leaf_radius_uniform(self, laid_out_graph) -> None:
        for v in laid_out_graph.leaves():
            assert v.r == 15

    def test_groups_contain_descendants(self, laid_out_graph) -> None:
        vertices = laid_out_graph.vertices
        for group in laid_out_graph.groups():
            stack = list(group.children)
            while stack:
                child = vertices[stack.pop()]
                assert group.circle.contains(child.circle), (group.id, child.id)
                stack.extend(child.children)

    def test_leaf_siblings_use_node_padding(self, laid_out_graph) -> None:
        v = laid_out_graph.vertices
        gap = math.hypot(v["web-1"].x - v["web-2"].x, v["web-1"].y - v["web-2"].y) - 30
        assert gap == pytest.approx(5)
        # two leaves inflated by half the padding, plus half the padding around them
        assert v["app-web"].r == pytest.approx(37.5)
        assert v["app-db"].r == pytest.approx(20)

    def test_group_siblings_use_group_padding(self, laid_out_graph) -> None:
        v = laid_out_graph.vertices
        web, db = v["app-web"], v["app-db"]
        gap = math.hypot(web.x - db.x, web.y - db.y) - web.r - db.r
        assert gap == pytest.approx(20)
        assert v["private-network"].r == pytest.approx(v["cluster-a"].r + 20)

    def test_outer_container_centred(self) -> None:
        graph = load_graph({"vertices": {
            "g": {"type": "group"},
            "a": {"type": "Compute", "parentId": "g"},
            "b": {"type": "Compute", "parentId": "g"},
        }})
        result = compute_layout(graph.vertices, LayoutEngineConfig(adaptive_canvas=False))
        g = graph.vertices["g"]
        assert (result.width, result.height) == (800, 600)
        assert (g.x, g.y) == pytest.approx((400, 300))

    def test_origin_recorded(self, laid_out_graph) -> None:
        for v in laid_out_graph.vertices.values():
            assert v.origin is not None
            assert (v.origin.x, v.origin.y) == (v.x, v.y)

    def test_deterministic(self, sample_graph) -> None:
        compute_layout(sample_graph.vertices)
        first = {vid: (v.x, v.y, v.r) for vid, v in sample_graph.vertices.items()}
        compute_layout(sample_graph.vertices)
        second = {vid: (v.x, v.y, v.r) for vid, v in sample_graph.vertices.items()}
        assert first == second

    def test_custom_radius(self, sample_graph) -> None:
        compute_layout(sample_graph.vertices, LayoutEngineConfig(node_radius=8))
        assert all(v.r == 8 for v in sample_graph.leaves())


class TestPadding:
    def test_padding_choice_per_parent(self, sample_graph) -> None:
        cfg = LayoutEngineConfig()
        nodes = {n.id: n for n in build_hierarchy(sample_graph.vertices).root.walk()}
        assert sibling_padding(nodes["app-web"], cfg) == 5
        assert sibling_padding(nodes["cluster-a"], cfg) == 20
        assert sibling_padding(nodes["private-network"], cfg) == 20

    @staticmethod
    def _mixed(first: str) -> dict:
        vertices = {"root": {"type": "group"}}
        members = {
            "leaf": {"type": "Compute", "parentId": "root"},
            "app-x": {"type": "group", "parentId": "root"},
        }
        for key in sorted(members, key=lambda k: k != first):
            vertices[key] = members[key]
        vertices["x1"] = {"type": "Compute", "parentId": "app-x"}
        return {"vertices": vertices}

    def test_mixed_children_follow_first_child(self) -> None:
        cfg = LayoutEngineConfig(node_padding=5, group_padding=40, adaptive_canvas=False)
        leaf_first = load_graph(self._mixed("leaf"))
        group_first = load_graph(self._mixed("app-x"))
        nodes = {n.id: n for n in build_hierarchy(leaf_first.vertices).root.walk()}
        assert sibling_padding(nodes["root"], cfg) == 5
        nodes = {n.id: n for n in build_hierarchy(group_first.vertices).root.walk()}
        assert sibling_padding(nodes["root"], cfg) == 40

    def test_mixed_children_gap(self) -> None:
        cfg = LayoutEngineConfig(node_padding=5, group_padding=40, adaptive_canvas=False)
        for first, expected in (("leaf", 5), ("app-x", 40)):
            graph = load_graph(self._mixed(first))
            compute_layout(graph.vertices, cfg)
            leaf, app = graph.vertices["leaf"], graph.vertices["app-x"]
            gap = math.hypot(leaf.x - app.x, leaf.y - app.y) - leaf.r - app.r
            assert gap == pytest.approx(expected)


class TestCanvasSize:
    def test_adaptive_growth(self, sample_graph) -> None:
        cfg = LayoutEngineConfig()
        result = build_hierarchy(sample_graph.vertices)
        width, height = calculate_canvas_size(result, sample_graph.vertices, cfg)
        scale = 1 + math.log10(5) * 0.1 + 4 * 0.05 + math.log10(6) * 0.1 + 5 / 200
        assert width == pytest.approx(800 * scale)
        assert height == pytest.approx(600 * scale)

    def test_fixed_canvas(self, sample_graph) -> None:
        cfg = LayoutEngineConfig(adaptive_canvas=False, canvas_width=1000, canvas_height=700)
        result = build_hierarchy(sample_graph.vertices)
        assert calculate_canvas_size(result, sample_graph.vertices, cfg) == (1000, 700)


class TestConfig:
    def test_defaults(self) -> None:
        cfg = LayoutEngineConfig.from_options(None)
        assert (cfg.canvas_width, cfg.canvas_height) == (800, 600)
        assert (cfg.node_radius, cfg.node_padding, cfg.group_padding) == (15, 5, 20)

    def test_camel_case_keys(self) -> None:
        cfg = LayoutEngineConfig.from_options({
            "canvasWidth": 1200, "canvasHeight": 900,
            "nodeRadius": 10, "nodePadding": 2, "groupPadding": 30,
        })
        assert cfg.canvas_width == 1200
        assert cfg.canvas_height == 900
        assert cfg.node_radius == 10
        assert cfg.node_padding == 2
        assert cfg.group_padding == 30

    def test_snake_case_keys(self) -> None:
        cfg = LayoutEngineConfig.from_options({"radial_gap": 40, "adaptive_canvas": False})
        assert cfg.radial_gap == 40
        assert cfg.adaptive_canvas is False

    def test_unknown_key(self) -> None:
        with pytest.raises(ValidationError, match="Unknown layout option"):
            LayoutEngineConfig.from_options({"nodeSize": 3})

    def test_invalid_radius(self) -> None:
        with pytest.raises(ValidationError):
            LayoutEngineConfig.from_options({"nodeRadius": -1})

    def test_zero_padding_allowed(self) -> None:
        assert LayoutEngineConfig.from_options({"nodePadding": 0}).node_padding == 0
