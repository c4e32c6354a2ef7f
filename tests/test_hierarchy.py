"""Tests for the hierarchy builder."""

import logging

from netgraph_mcp.hierarchy import VIRTUAL_ROOT_ID, build_hierarchy
from netgraph_mcp.models import load_graph


def test_single_container_with_radial_leaf(sample_graph) -> None:
    result = build_hierarchy(sample_graph.vertices)
    assert result.root is not None
    assert result.root.id == "internet-boundary"
    assert not result.root.is_virtual
    assert [v.id for v in result.radial_elements] == ["lb"]
    assert [c.id for c in result.top_level_containers] == ["internet-boundary"]


def test_tree_covers_every_packable_vertex(sample_graph) -> None:
    result = build_hierarchy(sample_graph.vertices)
    ids = [n.id for n in result.root.walk()]
    assert sorted(ids) == sorted(v for v in sample_graph.vertices if v != "lb")
    assert len(ids) == len(set(ids))


def test_values_and_depths(sample_graph) -> None:
    result = build_hierarchy(sample_graph.vertices)
    nodes = {n.id: n for n in result.root.walk()}
    assert nodes["internet-boundary"].value == 3
    assert nodes["app-web"].value == 2
    assert nodes["web-1"].value == 1
    assert nodes["web-1"].depth == 4
    assert result.root.height() == 4


def test_multiple_root_groups_get_virtual_root() -> None:
    graph = load_graph({"vertices": {
        "g1": {"type": "group"},
        "g2": {"type": "group"},
        "a": {"type": "Compute", "parentId": "g1"},
        "b": {"type": "Compute", "parentId": "g2"},
    }})
    result = build_hierarchy(graph.vertices)
    assert result.root.id == VIRTUAL_ROOT_ID
    assert result.root.is_virtual
    assert [c.id for c in result.root.children] == ["g1", "g2"]
    assert all(c.parent is result.root for c in result.root.children)
    assert len(result.top_level_containers) == 2


def test_no_groups_means_no_tree() -> None:
    graph = load_graph({"vertices": {"a": {"type": "Compute"}, "b": {"type": "Compute"}}})
    result = build_hierarchy(graph.vertices)
    assert result.root is None
    assert [v.id for v in result.radial_elements] == ["a", "b"]


def test_orphan_becomes_root(caplog) -> None:
    graph = load_graph({"vertices": {
        "g": {"type": "group"},
        "a": {"type": "Compute", "parentId": "g"},
        "lost": {"type": "Compute", "parentId": "missing"},
    }})
    with caplog.at_level(logging.WARNING, logger="netgraph-mcp"):
        result = build_hierarchy(graph.vertices)
    assert result.orphans == ["lost"]
    assert [v.id for v in result.radial_elements] == ["lost"]
    assert "missing parent" in caplog.text


def test_orphan_group_is_packed() -> None:
    graph = load_graph({"vertices": {
        "g": {"type": "group"},
        "stray": {"type": "group", "parentId": "nowhere"},
    }})
    result = build_hierarchy(graph.vertices)
    assert result.root.is_virtual
    assert {c.id for c in result.root.children} == {"g", "stray"}


def test_parent_cycle_does_not_loop(caplog) -> None:
    graph = load_graph({"vertices": {
        "g1": {"type": "group", "parentId": "g2"},
        "g2": {"type": "group", "parentId": "g1"},
        "leaf": {"type": "Compute", "parentId": "g2"},
    }})
    with caplog.at_level(logging.WARNING, logger="netgraph-mcp"):
        result = build_hierarchy(graph.vertices)
    ids = [n.id for n in result.root.walk()]
    assert sorted(ids) == ["g1", "g2", "leaf"]
    assert "cycle" in caplog.text.lower()


def test_leaf_parent_is_rejected(caplog) -> None:
    graph = load_graph({"vertices": {
        "g": {"type": "group"},
        "a": {"type": "Compute", "parentId": "g"},
        "b": {"type": "Compute", "parentId": "a"},
    }})
    with caplog.at_level(logging.WARNING, logger="netgraph-mcp"):
        result = build_hierarchy(graph.vertices)
    assert "b" in result.orphans
    assert [v.id for v in result.radial_elements] == ["b"]
