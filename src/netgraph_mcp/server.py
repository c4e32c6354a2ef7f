"""
Netgraph MCP Server — lay out and explore hierarchical network graphs via
Model Context Protocol.

Exposes 3 tools that let an LLM agent load a network graph, render it as
packed circles in SVG, and drive the interaction engine.

Tools:
  1. graph    — lifecycle: load, render, info, list, delete
  2. interact — state: select, filter, collapse/expand, zoom, drag, clicks
  3. inspect  — read-only: vertices, edges, segments, selection, viewport
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from netgraph_mcp.layout_engine import LayoutEngineConfig
from netgraph_mcp.renderer import GraphRenderer
from netgraph_mcp.surface import SvgSurface
from netgraph_mcp.validation import (
    ValidationError,
    validate_action,
    validate_bool,
    validate_graph_payload,
    validate_id_list,
    validate_non_empty_string,
    validate_number,
    validate_positive_number,
    _GRAPH_ACTIONS,
    _INSPECT_ACTIONS,
    _INTERACT_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging: keep FastMCP's routine INFO messages off stderr.
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("netgraph-mcp")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "netgraph-mcp",
    instructions=(
        "MCP server for laying out hierarchical network graphs as nested circles.\n\n"
        "=== ONLY 3 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. graph(action, ...) — lifecycle: load, render, info, list, delete.\n"
        "2. interact(action, ...) — select_vertex, select_group, clear, filter,\n"
        "   toggle_collapse, collapse_all, expand_all, reset_view, zoom,\n"
        "   zoom_in, zoom_out, drag, click_vertex, click_group.\n"
        "3. inspect(action, ...) — read-only: vertices, edges, segments,\n"
        "   selection, viewport.\n\n"
        "=== RULES ===\n"
        "- Vertices with type='group' contain the vertices naming them as parentId.\n"
        "- Parentless non-group vertices are placed on a ring around the outer group.\n"
        "- Collapsing a group reroutes its edges to the group; nothing is deleted.\n"
        "- Unknown ids are ignored with a warning.\n\n"
        "Read the resource netgraph://guide/agent for the input graph format.\n"
    ),
)

# In-memory graph registry: name -> GraphRenderer
# Guarded by _graphs_lock for thread-safety.
_graphs: dict[str, GraphRenderer] = {}
_graphs_lock = threading.Lock()


# ===================================================================
# RESOURCES
# ===================================================================

@mcp.resource("netgraph://guide/agent")
def agent_guide() -> str:
    """Input format and workflow guide for agents."""
    return """# Netgraph MCP — Agent Guide

## Input graph

```json
{
  "vertices": {
    "internet-boundary": {"type": "group", "label": "Internet"},
    "app-web": {"type": "group", "parentId": "internet-boundary", "label": "App: web"},
    "pod-1": {"type": "Compute", "parentId": "app-web", "name": "pod-1", "address": "10.0.0.1"},
    "lb": {"type": "TrafficController", "name": "lb", "public_ip": true}
  },
  "edges": [{"start_node": "lb", "end_node": "pod-1"}]
}
```

- `type: "group"` marks containers; anything else is a leaf.
- Group variant comes from `group_type` (application, cluster, boundary,
  network, generic) or, failing that, from the id (`app-`, `cluster`, ...).
- Application groups are selected by `app_name` (defaults to the label
  without `App: `), so equally named groups highlight together.

## Workflow

1. graph(action='load', name='net', graph_data={...})
2. graph(action='render', name='net') → SVG
3. interact(action='click_vertex', name='net', vertex_id='pod-1')
4. interact(action='click_vertex', name='net', vertex_id='lb', append=True)
   grows the trace path when the two are connected.
5. interact(action='filter', name='net', vertex_ids=[...]) dims vertices.
6. interact(action='toggle_collapse', name='net', vertex_id='app-web')
"""


# ===================================================================
# TOOL 1: graph (lifecycle)
# ===================================================================

@mcp.tool()
def graph(
    action: str,
    name: str = "",
    graph_data: Optional[dict[str, Any]] = None,
    options: Optional[dict[str, Any]] = None,
) -> str:
    """Graph lifecycle management.

    Actions:
      load   — Load and lay out a graph. Params: name, graph_data, options.
               options: canvasWidth, canvasHeight, nodeRadius, nodePadding,
               groupPadding (all optional).
      render — Get the current frame as SVG. Params: name.
      info   — Summary counts, collapsed groups, layout warnings. Params: name.
      list   — List loaded graphs. No params needed.
      delete — Remove a graph. Params: name.

    Args:
        action: One of: load, render, info, list, delete.
        name: Graph name (registry key).
        graph_data: {vertices: {id: {...}}, edges: [{start_node, end_node}]}.
        options: Layout options.

    Returns:
        Result string, SVG or JSON depending on action.
    """
    try:
        action = validate_action(action, "graph", _GRAPH_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        with _graphs_lock:
            names = sorted(_graphs)
        return json.dumps(names)

    try:
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "load":
        try:
            payload = validate_graph_payload(graph_data)
            config = LayoutEngineConfig.from_options(options)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        renderer = GraphRenderer(surface=SvgSurface(), config=config)
        result = renderer.load(payload)
        with _graphs_lock:
            _graphs[name] = renderer
        info = renderer.info()
        msg = (f"Graph '{name}' loaded: {info['vertices']} vertices, "
               f"{info['edges']} edges on {result.width:.0f}x{result.height:.0f} canvas.")
        if result.warnings:
            msg += " Warnings: " + "; ".join(result.warnings)
        return msg

    renderer = _get_graph(name)
    if renderer is None:
        return f"Error: graph '{name}' not found."

    if action == "render":
        surface = renderer.surface
        if not isinstance(surface, SvgSurface):
            return "Error: graph has no SVG surface."
        return surface.to_svg()

    if action == "info":
        return json.dumps(renderer.info(), indent=2)

    if action == "delete":
        with _graphs_lock:
            _graphs.pop(name, None)
        return f"Graph '{name}' deleted."

    return f"Error: unhandled action '{action}'."


# ===================================================================
# TOOL 2: interact (selection, filter, collapse, viewport, drag)
# ===================================================================

@mcp.tool()
def interact(
    action: str,
    name: str = "",
    vertex_id: str = "",
    group_name: str = "",
    vertex_ids: Optional[list[str]] = None,
    append: bool = False,
    factor: float = 1.5,
    x: float = 0,
    y: float = 0,
) -> str:
    """Drive the interaction engine of a loaded graph.

    Actions:
      select_vertex   — Select a vertex; append=True extends the trace path.
                        Params: vertex_id, append.
      select_group    — Select application groups by name. Params: group_name, append.
      clear           — Clear selection (like a background click).
      filter          — Dim the given vertices; [] clears. Params: vertex_ids.
      toggle_collapse — Collapse or expand a group. Params: vertex_id.
      collapse_all    — Collapse all application groups.
      expand_all      — Expand every group.
      reset_view      — Undo drags and fit the viewport.
      zoom            — Zoom by a factor about the centre. Params: factor.
      zoom_in / zoom_out — Fixed-step zoom.
      drag            — Move a vertex (groups move with their contents) and
                        reconcile edges. Params: vertex_id, x, y.
      click_vertex    — Click a vertex (emits vertex-clicked). Params: vertex_id, append.
      click_group     — Click an application group. Params: vertex_id, append.

    Args:
        action: Interaction to perform.
        name: Target graph name.
        vertex_id: Vertex or group id.
        group_name: Application name for select_group.
        vertex_ids: Filtered-out vertex ids for filter.
        append: Shift-modifier semantics.
        factor: Zoom factor (> 0).
        x: Drag target x.
        y: Drag target y.

    Returns:
        Status message or JSON.
    """
    try:
        action = validate_action(action, "interact", _INTERACT_ACTIONS)
        name = validate_non_empty_string(name, "name")
        append = validate_bool(append, "append")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    renderer = _get_graph(name)
    if renderer is None:
        return f"Error: graph '{name}' not found."

    if action in ("select_vertex", "toggle_collapse", "drag", "click_vertex", "click_group"):
        try:
            vertex_id = validate_non_empty_string(vertex_id, "vertex_id")
        except ValidationError as exc:
            return f"Error: {exc.message}"

    if action == "select_vertex":
        ok = renderer.select_vertex(vertex_id, append=append)
        return _status(ok, f"Selected '{vertex_id}'.", f"vertex '{vertex_id}' not found")

    if action == "click_vertex":
        ok = renderer.click_vertex(vertex_id, shift=append)
        return _status(ok, f"Clicked '{vertex_id}'.", f"vertex '{vertex_id}' not found")

    if action == "click_group":
        ok = renderer.click_group(vertex_id, shift=append)
        return _status(ok, f"Clicked group '{vertex_id}'.",
                       f"'{vertex_id}' is not a visible application group")

    if action == "select_group":
        try:
            group_name = validate_non_empty_string(group_name, "group_name")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        ok = renderer.select_group_by_name(group_name, append=append)
        return _status(ok, f"Selected application '{group_name}'.",
                       f"no application group named '{group_name}'")

    if action == "clear":
        renderer.click_background()
        return "Selection cleared."

    if action == "filter":
        try:
            ids = validate_id_list(vertex_ids if vertex_ids is not None else [], "vertex_ids")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        renderer.set_filtered_out(ids)
        return f"{len(renderer.filter.filtered_out)} vertices filtered out."

    if action == "toggle_collapse":
        ok = renderer.toggle_collapse(vertex_id)
        state = "collapsed" if vertex_id in renderer.collapsed else "expanded"
        return _status(ok, f"Group '{vertex_id}' {state}.", f"'{vertex_id}' is not a group")

    if action == "collapse_all":
        renderer.collapse_all()
        return f"{len(renderer.collapsed)} groups collapsed."

    if action == "expand_all":
        renderer.expand_all()
        return "All groups expanded."

    if action == "reset_view":
        renderer.reset_view()
        return "View reset."

    if action in ("zoom", "zoom_in", "zoom_out"):
        if action == "zoom":
            try:
                factor = validate_positive_number(factor, "factor")
            except ValidationError as exc:
                return f"Error: {exc.message}"
            renderer.zoom_by(factor)
        elif action == "zoom_in":
            renderer.zoom_in()
        else:
            renderer.zoom_out()
        return f"Zoom scale {renderer.transform.k:.2f}."

    if action == "drag":
        try:
            x = validate_number(x, "x")
            y = validate_number(y, "y")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        ok = renderer.drag_vertex(vertex_id, x, y)
        if ok:
            renderer.end_drag()
        return _status(ok, f"Moved '{vertex_id}' to ({x:g}, {y:g}).",
                       f"vertex '{vertex_id}' not found")

    return f"Error: unhandled action '{action}'."


# ===================================================================
# TOOL 3: inspect (read-only)
# ===================================================================

@mcp.tool()
def inspect(
    action: str,
    name: str = "",
    vertex_id: str = "",
) -> str:
    """Read-only inspection of a loaded graph.

    Actions:
      vertices  — Visible vertices with positions, radius and flags.
      edges     — Visible edges (after collapse rerouting).
      segments  — Segment classification and gradient stops per edge.
                  Params: vertex_id (optional, restricts to edges touching it).
      selection — Head, trace path and selected applications.
      viewport  — Current pan/zoom transform.

    Args:
        action: One of: vertices, edges, segments, selection, viewport.
        name: Target graph name.
        vertex_id: Optional vertex filter for segments.

    Returns:
        JSON data.
    """
    try:
        action = validate_action(action, "inspect", _INSPECT_ACTIONS)
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    renderer = _get_graph(name)
    if renderer is None:
        return f"Error: graph '{name}' not found."

    if action == "vertices":
        data = [
            {
                "id": v.id,
                "kind": v.kind.value,
                "variant": v.variant.value if v.variant else None,
                "parent_id": v.parent_id,
                "x": round(v.x, 2),
                "y": round(v.y, 2),
                "r": round(v.r, 2),
                "collapsed": v.collapsed,
                "descendant_count": v.descendant_count,
                "dimmed": renderer.filter.is_dimmed(v.id),
            }
            for v in renderer.view.vertices.values()
        ]
        return json.dumps(data, indent=2)

    if action == "edges":
        data = [{"source": e.source, "target": e.target} for e in renderer.view.edges]
        return json.dumps(data, indent=2)

    if action == "segments":
        data = []
        for eid, geo in renderer.geometries.items():
            if vertex_id and not geo.edge.touches(vertex_id):
                continue
            data.append({
                "id": eid,
                "line": [round(v, 2) for v in (geo.x1, geo.y1, geo.x2, geo.y2)],
                "segments": [
                    {"start": round(s.start, 4), "end": round(s.end, 4), "related": s.related}
                    for s in geo.segments
                ],
                "stops": [
                    {"offset": round(s.offset, 2), "color": s.color, "opacity": s.opacity}
                    for s in geo.stops
                ],
            })
        return json.dumps(data, indent=2)

    if action == "selection":
        return json.dumps(renderer.selection.to_dict(), indent=2)

    if action == "viewport":
        t = renderer.transform
        return json.dumps({"x": round(t.x, 2), "y": round(t.y, 2), "k": round(t.k, 4)}, indent=2)

    return f"Error: unhandled action '{action}'."


# ===================================================================
# Helpers
# ===================================================================

def _get_graph(name: str) -> GraphRenderer | None:
    with _graphs_lock:
        return _graphs.get(name)


def _status(ok: bool, success: str, failure: str) -> str:
    return success if ok else f"Error: {failure} (ignored)."


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
