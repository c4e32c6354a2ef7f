"""
Selection and trace-path highlighting.

State machine:
- click V            → clear head and trace, head = V
- shift-click V      → if an edge joins head and V, both join the trace and
                       the edge is added; head = V either way
- background click   → clear everything

Node precedence is path > head > connected > normal; edges in the trace
are ``path``, edges touching the head are ``connected`` (``inbound`` when
the head is the target).  Application groups are selected by name so that
same-named groups in different containers highlight together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from netgraph_mcp.features import RenderContext, StyleContributor
from netgraph_mcp.models import Edge, Vertex
from netgraph_mcp.styles import Highlights, Markers, StyleBuilder

logger = logging.getLogger("netgraph-mcp")


class NodeHighlight(Enum):
    NORMAL = 0
    CONNECTED = 1
    HEAD = 2
    PATH = 3


class EdgeHighlight(Enum):
    NORMAL = "normal"
    CONNECTED = "connected"
    INBOUND = "inbound"
    PATH = "path"


@dataclass
class SelectionState:
    head: Optional[str] = None
    trace_nodes: set[str] = field(default_factory=set)
    trace_edges: set[tuple[str, str]] = field(default_factory=set)
    selected_applications: set[str] = field(default_factory=set)

    # -- transitions --

    def select(self, vertex_id: str, edges: Iterable[Edge], append: bool = False) -> bool:
        """Apply a (shift-)click on *vertex_id*; returns True if the trace grew."""
        if not append:
            self.clear_nodes()
        if not append or self.head is None:
            self.head = vertex_id
            return False

        grew = False
        link = _find_link(edges, self.head, vertex_id)
        if link is not None:
            self.trace_nodes.update(link.key)
            self.trace_edges.add(link.key)
            grew = True
        self.head = vertex_id
        return grew

    def select_application(self, name: str, append: bool = False) -> None:
        if not append:
            self.selected_applications.clear()
        self.selected_applications.add(name)

    def clear_nodes(self) -> None:
        self.head = None
        self.trace_nodes.clear()
        self.trace_edges.clear()

    def clear(self) -> None:
        self.clear_nodes()
        self.selected_applications.clear()

    def prune(self, visible: set[str]) -> None:
        """Drop references to vertices that are no longer visible."""
        if self.head is not None and self.head not in visible:
            self.head = None
        self.trace_nodes &= visible
        self.trace_edges = {k for k in self.trace_edges if k[0] in visible and k[1] in visible}

    # -- derived states --

    def node_state(self, vertex_id: str, edges: Iterable[Edge]) -> NodeHighlight:
        if vertex_id in self.trace_nodes:
            return NodeHighlight.PATH
        if vertex_id == self.head:
            return NodeHighlight.HEAD
        if self.head is not None and _find_link(edges, self.head, vertex_id) is not None:
            return NodeHighlight.CONNECTED
        return NodeHighlight.NORMAL

    def edge_state(self, edge: Edge) -> EdgeHighlight:
        if edge.key in self.trace_edges:
            return EdgeHighlight.PATH
        if self.head is None:
            return EdgeHighlight.NORMAL
        if edge.target == self.head:
            return EdgeHighlight.INBOUND
        if edge.source == self.head:
            return EdgeHighlight.CONNECTED
        return EdgeHighlight.NORMAL

    def connected_ids(self, edges: Iterable[Edge]) -> set[str]:
        """Head plus every vertex sharing an edge with it."""
        if self.head is None:
            return set()
        found = {self.head}
        for e in edges:
            if e.source == self.head:
                found.add(e.target)
            elif e.target == self.head:
                found.add(e.source)
        return found

    def to_dict(self) -> dict:
        return {
            "head": self.head,
            "trace_nodes": sorted(self.trace_nodes),
            "trace_edges": [list(k) for k in sorted(self.trace_edges)],
            "selected_applications": sorted(self.selected_applications),
        }


def _find_link(edges: Iterable[Edge], a: str, b: str) -> Optional[Edge]:
    if a == b:
        return None
    for e in edges:
        if (e.source == a and e.target == b) or (e.source == b and e.target == a):
            return e
    return None


# ---------------------------------------------------------------------------
# Style contributor
# ---------------------------------------------------------------------------

class HighlightingFeature(StyleContributor):
    """Layers selection highlights onto node, edge and group styles."""

    name = "highlighting"

    _NODE_PRESETS = {
        NodeHighlight.PATH: Highlights.PATH_NODE,
        NodeHighlight.HEAD: Highlights.HEAD_NODE,
        NodeHighlight.CONNECTED: Highlights.CONNECTED_NODE,
    }

    def style_node(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> None:
        # a collapsed application group is drawn as a node
        if vertex.collapsed and self._application_selected(vertex, ctx):
            Highlights.APPLICATION_GROUP.apply(style)
        preset = self._NODE_PRESETS.get(ctx.selection.node_state(vertex.id, ctx.edges))
        if preset is not None:
            preset.apply(style)

    def style_edge(self, edge: Edge, style: StyleBuilder, ctx: RenderContext) -> None:
        state = ctx.selection.edge_state(edge)
        if state is EdgeHighlight.PATH:
            Highlights.PATH_EDGE.apply(style).marker_end(Markers.ARROW_PATH)
        elif state is EdgeHighlight.CONNECTED:
            Highlights.CONNECTED_EDGE.apply(style).marker_end(Markers.ARROW_CONNECTED)
        elif state is EdgeHighlight.INBOUND:
            Highlights.INBOUND_EDGE.apply(style).marker_end(Markers.ARROW_CONNECTED)

    def style_group(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> None:
        if self._application_selected(vertex, ctx):
            Highlights.APPLICATION_GROUP.apply(style).opacity(1)

    @staticmethod
    def _application_selected(vertex: Vertex, ctx: RenderContext) -> bool:
        return vertex.is_application and vertex.app_name in ctx.selection.selected_applications
