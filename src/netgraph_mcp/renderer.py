"""
Graph renderer: pipeline, interaction commands and events.

One renderer owns one graph and its render context.  A full pass runs
layout → collapse transform → edge segmentation → style contributors →
surface commands.  Interactions mutate positions or feature state and
re-run only the stages after layout.

Drag moves are cheap: the moved elements are redrawn at once and edge
re-segmentation is deferred to the next event-loop tick.  A newer move
cancels the pending update, and ``end_drag`` always reconciles
synchronously.  Without a running event loop every update is synchronous.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from netgraph_mcp.collapse import CollapsedView, apply_collapse_transform, find_descendants
from netgraph_mcp.edges import EdgeGeometry, compute_edge_geometry, group_circles
from netgraph_mcp.features import FeatureRegistry, RenderContext, StyleContributor
from netgraph_mcp.filtering import FilteringFeature, FilterState, PulseAnimation
from netgraph_mcp.layout import (
    ViewportConfig,
    ViewTransform,
    fit_to_filtered,
    fit_to_view,
    zoom_by,
)
from netgraph_mcp.layout_engine import LayoutEngineConfig, LayoutResult, compute_layout
from netgraph_mcp.models import Edge, Graph, Vertex, get_node_label, load_graph
from netgraph_mcp.selection import HighlightingFeature, SelectionState
from netgraph_mcp.styles import (
    base_edge_style,
    base_group_style,
    base_node_style,
    group_label,
)
from netgraph_mcp.surface import RenderSurface, SvgSurface, gradient_id

logger = logging.getLogger("netgraph-mcp")

VERTEX_CLICKED = "vertex-clicked"
RENDER_COMPLETE = "render-complete"
ZOOM_CHANGED = "zoom-changed"
EVENTS = (VERTEX_CLICKED, RENDER_COMPLETE, ZOOM_CHANGED)


@dataclass
class EdgeUpdate:
    """A deferred edge re-segmentation; superseded updates are cancelled."""
    cancelled: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False)


def edge_ids(edges: Iterable[Edge]) -> list[str]:
    """Stable unique element ids; parallel edges get a numeric suffix."""
    seen: dict[str, int] = defaultdict(int)
    ids: list[str] = []
    for e in edges:
        base = e.edge_id
        seen[base] += 1
        ids.append(base if seen[base] == 1 else f"{base}~{seen[base]}")
    return ids


class GraphRenderer:
    """Lays out, renders and interacts with one hierarchical graph."""

    def __init__(
        self,
        surface: Optional[RenderSurface] = None,
        config: Optional[LayoutEngineConfig] = None,
        viewport: Optional[ViewportConfig] = None,
        contributors: Optional[list[StyleContributor]] = None,
    ) -> None:
        self.surface = surface if surface is not None else SvgSurface()
        self.config = config or LayoutEngineConfig()
        self.viewport = viewport or ViewportConfig(
            width=self.config.canvas_width, height=self.config.canvas_height,
        )
        self.selection = SelectionState()
        self.filter = FilterState()
        if contributors is None:
            contributors = [HighlightingFeature(), FilteringFeature()]
        self.features = FeatureRegistry(contributors)
        self.pulse = PulseAnimation()

        self.graph = Graph()
        self.layout: Optional[LayoutResult] = None
        self.collapsed: set[str] = set()
        self.view = CollapsedView(vertices={}, edges=[])
        self.geometries: dict[str, EdgeGeometry] = {}
        self.transform = ViewTransform()
        self.edge_commits = 0

        self._listeners: dict[str, list[Callable[[dict], None]]] = defaultdict(list)
        self._pending: Optional[EdgeUpdate] = None
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, callback: Callable[[dict], None]) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event '{event}'. Valid: {', '.join(EVENTS)}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, payload: dict) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(payload)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    @property
    def context(self) -> RenderContext:
        return RenderContext(
            vertices=self.view.vertices,
            edges=self.view.edges,
            selection=self.selection,
            filter=self.filter,
            collapsed=self.collapsed,
        )

    @property
    def width(self) -> float:
        return self.layout.width if self.layout else self.config.canvas_width

    @property
    def height(self) -> float:
        return self.layout.height if self.layout else self.config.canvas_height

    def load(self, payload: dict[str, Any] | Graph) -> LayoutResult:
        """Replace the graph, lay it out and render a fitted first frame."""
        self.graph = payload if isinstance(payload, Graph) else load_graph(payload)
        self.collapsed.clear()
        self.selection.clear()
        self.filter.update(())
        self.layout = compute_layout(self.graph.vertices, self.config)
        self._refresh_view()
        self.transform = fit_to_view(self.view.vertices.values(), self.viewport)
        self.render()
        return self.layout

    def _refresh_view(self) -> None:
        self.view = apply_collapse_transform(
            self.graph.vertices, self.graph.edges, self.collapsed,
            collapsed_radius=self.config.collapsed_radius,
        )
        self.selection.prune(set(self.view.vertices))
        self._segment_edges()

    def _segment_edges(self) -> None:
        vertices = self.view.vertices
        circles = group_circles(vertices)
        geometries: dict[str, EdgeGeometry] = {}
        for eid, edge in zip(edge_ids(self.view.edges), self.view.edges):
            geo = compute_edge_geometry(vertices, edge, circles)
            if geo is not None:
                geometries[eid] = geo
        self.geometries = geometries

    def render(self) -> None:
        """Issue a complete frame to the surface."""
        ctx = self.context
        surface = self.surface
        surface.begin_frame(self.width, self.height)

        groups = [v for v in ctx.vertices.values() if not v.renders_as_node]
        for g in sorted(groups, key=lambda v: -v.r):
            self._draw_group(g, ctx)
        for eid in self.geometries:
            self._draw_edge(eid, ctx)
        for v in ctx.vertices.values():
            if v.renders_as_node:
                self._draw_node(v, ctx)

        surface.set_view_transform(self.transform)
        surface.end_frame()

        counts = {"vertices": len(ctx.vertices), "edges": len(self.geometries)}
        logger.debug("Render complete: %(vertices)d vertices, %(edges)d edges", counts)
        self._emit(RENDER_COMPLETE, counts)

    def _draw_group(self, vertex: Vertex, ctx: RenderContext) -> None:
        style = self.features.style_group(vertex, base_group_style(vertex), ctx)
        text, size = group_label(vertex)
        self.surface.draw_group(vertex.id, vertex.circle, style.build(), text, size)

    def _draw_node(self, vertex: Vertex, ctx: RenderContext) -> None:
        style = self.features.style_node(vertex, base_node_style(vertex), ctx)
        label = (vertex.label or vertex.id) if vertex.collapsed else get_node_label(vertex)
        annotations = ("public-ip",) if vertex.public_ip else ()
        self.surface.draw_node(
            vertex.id, vertex.circle, style.build(), label,
            badge=vertex.descendant_count if vertex.collapsed else None,
            annotations=annotations,
        )

    def _draw_edge(self, eid: str, ctx: RenderContext) -> None:
        geo = self.geometries[eid]
        style = base_edge_style(gradient_id(eid) if geo.stops else None)
        self.features.style_edge(geo.edge, style, ctx)
        self.surface.draw_edge(eid, geo.x1, geo.y1, geo.x2, geo.y2, style.build(), geo.stops)

    def _set_transform(self, transform: ViewTransform) -> None:
        self.transform = transform
        self.surface.set_view_transform(transform)
        self._emit(ZOOM_CHANGED, {"scale": transform.k, "x": transform.x, "y": transform.y})

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _known(self, vertex_id: str, command: str) -> Optional[Vertex]:
        vertex = self.view.vertices.get(vertex_id)
        if vertex is None:
            logger.warning("%s: unknown or hidden vertex %r ignored", command, vertex_id)
        return vertex

    # ------------------------------------------------------------------
    # Selection commands
    # ------------------------------------------------------------------

    def select_vertex(self, vertex_id: str, append: bool = False) -> bool:
        if self._known(vertex_id, "select_vertex") is None:
            return False
        self.selection.select(vertex_id, self.view.edges, append=append)
        self.render()
        return True

    def select_group_by_name(self, name: str, append: bool = False) -> bool:
        names = {v.app_name for v in self.graph.vertices.values() if v.is_application}
        if name not in names:
            logger.warning("select_group_by_name: no application group named %r", name)
            return False
        self.selection.select_application(name, append=append)
        self.render()
        return True

    def clear_selection(self) -> None:
        self.selection.clear()
        self.render()

    def click_vertex(self, vertex_id: str, shift: bool = False) -> bool:
        vertex = self._known(vertex_id, "click_vertex")
        if vertex is None:
            return False
        self._emit(VERTEX_CLICKED, {"id": vertex.id, "label": vertex.label, **vertex.data})
        return self.select_vertex(vertex_id, append=shift)

    def click_group(self, group_id: str, shift: bool = False) -> bool:
        vertex = self._known(group_id, "click_group")
        if vertex is None:
            return False
        if not vertex.is_application:
            logger.debug("click_group: %r is not an application group", group_id)
            return False
        return self.select_group_by_name(vertex.app_name, append=shift)

    def click_background(self, shift: bool = False) -> None:
        if not shift:
            self.clear_selection()

    # ------------------------------------------------------------------
    # Filter
    # ------------------------------------------------------------------

    def set_filtered_out(self, vertex_ids: Iterable[str]) -> None:
        """Dim *vertex_ids*; refit the viewport when the set turns on or off."""
        requested = set(vertex_ids)
        unknown = requested - set(self.graph.vertices)
        if unknown:
            logger.warning("set_filtered_out: ignoring unknown vertices %s", sorted(unknown))
        previous, current = self.filter.update(requested - unknown)
        self.render()

        if current:
            transform = fit_to_filtered(
                self.view.vertices.values(), self.filter.filtered_out,
                self.transform, self.viewport,
            )
            if transform is not None:
                logger.info("Filter zoom to %d visible vertices at scale %.2f",
                            len(self.view.vertices) - current, transform.k)
                self._set_transform(transform)
                self._start_pulse()
        elif previous:
            self._set_transform(fit_to_view(self.view.vertices.values(), self.viewport))

    def pulse_targets(self) -> list[str]:
        return [v.id for v in self.view.vertices.values()
                if v.renders_as_node and not self.filter.is_dimmed(v.id)]

    def _apply_pulse(self, scale: float) -> None:
        for vid in self.pulse_targets():
            self.surface.set_node_scale(vid, scale)

    def _start_pulse(self) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; pulse animation skipped")
            return None
        task = loop.create_task(self.pulse.play(self._apply_pulse))
        self._track(task)
        return task

    # ------------------------------------------------------------------
    # Collapse
    # ------------------------------------------------------------------

    def toggle_collapse(self, group_id: str) -> bool:
        vertex = self.graph.vertices.get(group_id)
        if vertex is None or not vertex.is_group:
            logger.warning("toggle_collapse: %r is not a known group", group_id)
            return False
        if group_id in self.collapsed:
            self.collapsed.discard(group_id)
        else:
            self.collapsed.add(group_id)
        self._refresh_view()
        self.render()
        return True

    def collapse_all(self) -> None:
        groups = [v for v in self.graph.vertices.values() if v.is_application]
        if not groups:
            groups = [
                v for v in self.graph.vertices.values()
                if v.is_group and v.children
                and all(not self.graph.vertices[c].is_group
                        for c in v.children if c in self.graph.vertices)
            ]
        self.collapsed = {v.id for v in groups}
        self._refresh_view()
        self.render()

    def expand_all(self) -> None:
        self.collapsed.clear()
        self._refresh_view()
        self.render()

    def double_click(self, vertex_id: str) -> bool:
        vertex = self._known(vertex_id, "double_click")
        if vertex is None or not vertex.is_group:
            return False
        return self.toggle_collapse(vertex_id)

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def reset_view(self) -> None:
        """Restore layout positions and fit everything in view."""
        self._cancel_pending()
        for v in self.graph.vertices.values():
            if v.origin is not None:
                v.x, v.y = v.origin.x, v.origin.y
        self._refresh_view()
        self.render()
        self._set_transform(fit_to_view(self.view.vertices.values(), self.viewport))

    def zoom_by(self, factor: float) -> bool:
        if factor <= 0:
            logger.warning("zoom_by: factor must be positive, got %r", factor)
            return False
        self._set_transform(zoom_by(self.transform, factor, self.viewport))
        return True

    def zoom_in(self) -> bool:
        return self.zoom_by(self.viewport.zoom_in_factor)

    def zoom_out(self) -> bool:
        return self.zoom_by(self.viewport.zoom_out_factor)

    # ------------------------------------------------------------------
    # Drag
    # ------------------------------------------------------------------

    def drag_vertex(self, vertex_id: str, x: float, y: float) -> bool:
        """Move a vertex (a group carries all its descendants) to (x, y)."""
        vertex = self._known(vertex_id, "drag_vertex")
        if vertex is None:
            return False
        raw = self.graph.vertices[vertex_id]
        dx, dy = x - raw.x, y - raw.y
        moved = [vertex_id]
        if raw.is_group:
            moved.extend(find_descendants(self.graph.vertices, vertex_id))
        for vid in moved:
            for source in (self.graph.vertices, self.view.vertices):
                v = source.get(vid)
                if v is not None:
                    v.x += dx
                    v.y += dy

        ctx = self.context
        for vid in moved:
            v = self.view.vertices.get(vid)
            if v is None:
                continue
            if v.renders_as_node:
                self._draw_node(v, ctx)
            else:
                self._draw_group(v, ctx)
        self._schedule_edge_update()
        return True

    def end_drag(self) -> None:
        """Final synchronous reconciliation of edge geometry."""
        self._cancel_pending()
        self._commit_edges()

    def _commit_edges(self) -> None:
        self._segment_edges()
        ctx = self.context
        for eid in self.geometries:
            self._draw_edge(eid, ctx)
        self.edge_commits += 1

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancelled = True
            self._pending = None

    def _schedule_edge_update(self) -> Optional[EdgeUpdate]:
        self._cancel_pending()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._commit_edges()
            return None
        update = EdgeUpdate()
        self._pending = update
        update.task = loop.create_task(self._deferred_commit(update))
        self._track(update.task)
        return update

    async def _deferred_commit(self, update: EdgeUpdate) -> bool:
        await asyncio.sleep(0)
        if update.cancelled:
            return False
        self._pending = None
        self._commit_edges()
        return True

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def settle(self) -> None:
        """Wait for deferred edge updates and animations to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def info(self) -> dict[str, Any]:
        return {
            "vertices": len(self.graph.vertices),
            "edges": len(self.graph.edges),
            "visible_vertices": len(self.view.vertices),
            "visible_edges": len(self.geometries),
            "collapsed": sorted(self.collapsed),
            "filtered_out": len(self.filter.filtered_out),
            "canvas": [round(self.width, 2), round(self.height, 2)],
            "radial_placed": self.layout.radial_placed if self.layout else False,
            "warnings": list(self.layout.warnings) if self.layout else [],
        }
