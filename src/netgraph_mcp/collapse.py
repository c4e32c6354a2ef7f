"""
Collapse/expand view transform.

Derives the visible vertex/edge set from the laid-out graph and a set of
collapsed group ids.  The source map is never mutated: collapsed groups are
copied and re-tagged, descendants are hidden, and edges are rerouted to the
nearest visible ancestor of each hidden endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from netgraph_mcp.models import Edge, Vertex

logger = logging.getLogger("netgraph-mcp")


@dataclass
class CollapsedView:
    vertices: dict[str, Vertex]
    edges: list[Edge]
    hidden: set[str] = field(default_factory=set)
    collapsed: set[str] = field(default_factory=set)


def find_descendants(vertices: dict[str, Vertex], group_id: str) -> set[str]:
    """All transitive descendants of *group_id* (cycle-safe)."""
    found: set[str] = set()
    stack = list(vertices[group_id].children) if group_id in vertices else []
    while stack:
        vid = stack.pop()
        if vid == group_id or vid in found:
            logger.warning("Cycle detected below %r at %r", group_id, vid)
            continue
        found.add(vid)
        child = vertices.get(vid)
        if child is not None:
            stack.extend(child.children)
    return found


def ancestors(vertices: dict[str, Vertex], vertex_id: str) -> list[str]:
    """Parent chain of *vertex_id*, nearest first; stops at a cycle or a missing id."""
    chain: list[str] = []
    seen = {vertex_id}
    current = vertices.get(vertex_id)
    while current is not None and current.parent_id is not None:
        pid = current.parent_id
        if pid in seen:
            logger.warning("Parent cycle detected at %r while walking from %r", pid, vertex_id)
            break
        if pid not in vertices:
            break
        seen.add(pid)
        chain.append(pid)
        current = vertices[pid]
    return chain


def nearest_visible(vertices: dict[str, Vertex], vertex_id: str, hidden: set[str]) -> str:
    """The vertex itself if visible, else its nearest visible ancestor.

    Falls back to *vertex_id* when no visible ancestor exists.
    """
    if vertex_id not in hidden:
        return vertex_id
    for pid in ancestors(vertices, vertex_id):
        if pid not in hidden:
            return pid
    return vertex_id


def apply_collapse_transform(
    vertices: dict[str, Vertex],
    edges: list[Edge],
    collapsed_ids: Iterable[str],
    collapsed_radius: float = 30,
) -> CollapsedView:
    """Derive the visible graph for *collapsed_ids*.

    Visible collapsed groups become leaf-like nodes (fixed radius, collapsed
    flag, descendant count) that keep their children list.  Edges touching
    hidden vertices are rerouted; those whose endpoints merge are dropped.
    """
    collapsed: set[str] = set()
    for gid in collapsed_ids:
        vertex = vertices.get(gid)
        if vertex is None or not vertex.is_group:
            logger.warning("Ignoring collapse of %r: not a known group", gid)
            continue
        collapsed.add(gid)

    hidden: set[str] = set()
    for gid in collapsed:
        hidden |= find_descendants(vertices, gid)

    visible: dict[str, Vertex] = {}
    for vid, vertex in vertices.items():
        if vid in hidden:
            continue
        view = vertex.copy()
        if vid in collapsed:
            if not vertex.collapsed:
                view.descendant_count = len(find_descendants(vertices, vid))
            view.collapsed = True
            view.r = collapsed_radius
        visible[vid] = view

    visible_edges: list[Edge] = []
    for edge in edges:
        source = nearest_visible(vertices, edge.source, hidden)
        target = nearest_visible(vertices, edge.target, hidden)
        if (source, target) == edge.key:
            visible_edges.append(edge)
        elif source != target:
            visible_edges.append(Edge(source, target, edge.data))

    return CollapsedView(vertices=visible, edges=visible_edges,
                         hidden=hidden, collapsed=collapsed)
