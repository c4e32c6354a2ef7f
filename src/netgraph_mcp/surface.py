"""
Rendering surfaces.

The renderer issues element-level commands (draw a group boundary, a node,
an edge; rescale a node; set the view transform) to a
:class:`RenderSurface`.  Draw commands are upserts keyed by element id so
drags can redraw single elements.  Two surfaces are provided: an
ElementTree-backed SVG document and a recorder for hosts and tests that
only need the command stream.
"""

from __future__ import annotations

import copy
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from netgraph_mcp.edges import GradientStop
from netgraph_mcp.layout import ViewTransform
from netgraph_mcp.models import Circle
from netgraph_mcp.styles import CollapsedStyle, Markers

SVG_NS = "http://www.w3.org/2000/svg"

# Attributes rendered as inline CSS rather than SVG attributes
_CSS_ONLY = {"filter"}


def gradient_id(edge_id: str) -> str:
    return f"grad-{edge_id}"


def _fmt(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


class RenderSurface(ABC):
    """Primitive drawing commands the renderer depends on."""

    @abstractmethod
    def begin_frame(self, width: float, height: float) -> None: ...

    @abstractmethod
    def draw_group(self, group_id: str, circle: Circle, attrs: dict[str, str],
                   label: str, font_size: int) -> None: ...

    @abstractmethod
    def draw_node(self, node_id: str, circle: Circle, attrs: dict[str, str],
                  label: str, badge: Optional[int] = None,
                  annotations: tuple[str, ...] = ()) -> None: ...

    @abstractmethod
    def draw_edge(self, edge_id: str, x1: float, y1: float, x2: float, y2: float,
                  attrs: dict[str, str], stops: list[GradientStop]) -> None: ...

    @abstractmethod
    def set_node_scale(self, node_id: str, scale: float) -> None: ...

    @abstractmethod
    def set_view_transform(self, transform: ViewTransform) -> None: ...

    def end_frame(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Recording surface
# ---------------------------------------------------------------------------

@dataclass
class RecordingSurface(RenderSurface):
    """Keeps the issued command log and the latest state of every element."""
    commands: list[tuple[str, str]] = field(default_factory=list)
    groups: dict[str, dict[str, Any]] = field(default_factory=dict)
    nodes: dict[str, dict[str, Any]] = field(default_factory=dict)
    edges: dict[str, dict[str, Any]] = field(default_factory=dict)
    scales: dict[str, float] = field(default_factory=dict)
    transform: ViewTransform = field(default_factory=ViewTransform)
    frames: int = 0

    def begin_frame(self, width: float, height: float) -> None:
        self.commands.append(("begin_frame", f"{width:g}x{height:g}"))
        self.groups.clear()
        self.nodes.clear()
        self.edges.clear()
        self.scales.clear()

    def draw_group(self, group_id, circle, attrs, label, font_size) -> None:
        self.commands.append(("draw_group", group_id))
        self.groups[group_id] = {"circle": circle, "attrs": attrs,
                                 "label": label, "font_size": font_size}

    def draw_node(self, node_id, circle, attrs, label, badge=None, annotations=()) -> None:
        self.commands.append(("draw_node", node_id))
        self.nodes[node_id] = {"circle": circle, "attrs": attrs, "label": label,
                               "badge": badge, "annotations": tuple(annotations)}

    def draw_edge(self, edge_id, x1, y1, x2, y2, attrs, stops) -> None:
        self.commands.append(("draw_edge", edge_id))
        self.edges[edge_id] = {"line": (x1, y1, x2, y2), "attrs": attrs, "stops": stops}

    def set_node_scale(self, node_id: str, scale: float) -> None:
        self.commands.append(("set_node_scale", node_id))
        self.scales[node_id] = scale

    def set_view_transform(self, transform: ViewTransform) -> None:
        self.commands.append(("set_view_transform", transform.to_svg()))
        self.transform = transform

    def end_frame(self) -> None:
        self.commands.append(("end_frame", ""))
        self.frames += 1

    def count(self, command: str) -> int:
        return sum(1 for name, _ in self.commands if name == command)


# ---------------------------------------------------------------------------
# SVG surface
# ---------------------------------------------------------------------------

class SvgSurface(RenderSurface):
    """Builds an SVG document with ElementTree."""

    def __init__(self) -> None:
        self.begin_frame(800, 600)

    def begin_frame(self, width: float, height: float) -> None:
        self._root = ET.Element("svg", attrib={
            "xmlns": SVG_NS,
            "width": _fmt(width),
            "height": _fmt(height),
            "viewBox": f"0 0 {_fmt(width)} {_fmt(height)}",
        })
        self._defs = ET.SubElement(self._root, "defs")
        for marker_id, color in Markers.COLORS.items():
            marker = ET.SubElement(self._defs, "marker", attrib={
                "id": marker_id, "viewBox": "0 -5 10 10", "refX": "8", "refY": "0",
                "markerWidth": "6", "markerHeight": "6", "orient": "auto",
            })
            ET.SubElement(marker, "path", attrib={"d": "M0,-5L10,0L0,5", "fill": color})
        self._viewport = ET.SubElement(self._root, "g", attrib={"class": "viewport"})
        self._layers = {
            name: ET.SubElement(self._viewport, "g", attrib={"class": name})
            for name in ("groups", "edges", "nodes")
        }
        self._elements: dict[str, tuple[ET.Element, ET.Element]] = {}
        self._node_pos: dict[str, tuple[float, float, float]] = {}

    # -- helpers --

    def _upsert(self, key: str, parent: ET.Element, element: ET.Element) -> None:
        old = self._elements.get(key)
        if old is not None:
            old[1].remove(old[0])
        parent.append(element)
        self._elements[key] = (element, parent)

    @staticmethod
    def _apply_attrs(element: ET.Element, attrs: dict[str, str]) -> None:
        css = []
        for k, v in attrs.items():
            if k == "scale":
                continue
            if k in _CSS_ONLY:
                css.append(f"{k}:{v}")
            else:
                element.set(k, v)
        if css:
            element.set("style", ";".join(css))

    # -- commands --

    def draw_group(self, group_id, circle, attrs, label, font_size) -> None:
        scale = float(attrs.get("scale", 1))
        g = ET.Element("g", attrib={"class": "group", "id": f"group-{group_id}"})
        c = ET.SubElement(g, "circle", attrib={
            "cx": _fmt(circle.x), "cy": _fmt(circle.y), "r": _fmt(circle.r * scale),
        })
        self._apply_attrs(c, attrs)
        text = ET.SubElement(g, "text", attrib={
            "x": _fmt(circle.x), "y": _fmt(circle.y - circle.r * scale - 5),
            "text-anchor": "middle", "font-size": str(font_size),
        })
        text.text = label
        self._upsert(f"group:{group_id}", self._layers["groups"], g)

    def draw_node(self, node_id, circle, attrs, label, badge=None, annotations=()) -> None:
        scale = float(attrs.get("scale", 1))
        self._node_pos[node_id] = (circle.x, circle.y, scale)
        g = ET.Element("g", attrib={
            "class": "node", "id": f"node-{node_id}",
            "transform": f"translate({_fmt(circle.x)},{_fmt(circle.y)}) scale({_fmt(scale)})",
        })
        c = ET.SubElement(g, "circle", attrib={"r": _fmt(circle.r)})
        self._apply_attrs(c, attrs)
        text = ET.SubElement(g, "text", attrib={
            "y": _fmt(circle.r + 12), "text-anchor": "middle", "font-size": "10",
        })
        text.text = label
        if badge is not None:
            off = circle.r * CollapsedStyle.BADGE_OFFSET
            ET.SubElement(g, "circle", attrib={
                "class": "badge", "cx": _fmt(off), "cy": _fmt(-off),
                "r": _fmt(CollapsedStyle.BADGE_RADIUS), "fill": CollapsedStyle.BADGE_FILL,
            })
            count = ET.SubElement(g, "text", attrib={
                "class": "badge-count", "x": _fmt(off), "y": _fmt(-off + 4),
                "text-anchor": "middle", "font-size": "10", "fill": "#ffffff",
            })
            count.text = str(badge)
        for note in annotations:
            ET.SubElement(g, "circle", attrib={
                "class": note, "cx": _fmt(-circle.r * 0.7), "cy": _fmt(-circle.r * 0.7),
                "r": "4", "fill": "#4A98E3",
            })
        self._upsert(f"node:{node_id}", self._layers["nodes"], g)

    def draw_edge(self, edge_id, x1, y1, x2, y2, attrs, stops) -> None:
        gid = gradient_id(edge_id)
        if stops:
            grad = ET.Element("linearGradient", attrib={
                "id": gid, "gradientUnits": "userSpaceOnUse",
                "x1": _fmt(x1), "y1": _fmt(y1), "x2": _fmt(x2), "y2": _fmt(y2),
            })
            for stop in stops:
                ET.SubElement(grad, "stop", attrib={
                    "offset": f"{_fmt(stop.offset)}%",
                    "stop-color": stop.color,
                    "stop-opacity": _fmt(stop.opacity),
                })
            self._upsert(f"grad:{edge_id}", self._defs, grad)
        line = ET.Element("line", attrib={
            "class": "edge", "id": f"edge-{edge_id}",
            "x1": _fmt(x1), "y1": _fmt(y1), "x2": _fmt(x2), "y2": _fmt(y2),
        })
        self._apply_attrs(line, attrs)
        self._upsert(f"edge:{edge_id}", self._layers["edges"], line)

    def set_node_scale(self, node_id: str, scale: float) -> None:
        entry = self._elements.get(f"node:{node_id}")
        if entry is None:
            return
        x, y, base = self._node_pos[node_id]
        entry[0].set("transform", f"translate({_fmt(x)},{_fmt(y)}) scale({_fmt(base * scale)})")

    def set_view_transform(self, transform: ViewTransform) -> None:
        self._viewport.set("transform", transform.to_svg())

    def to_svg(self, pretty: bool = True) -> str:
        root = self._root
        if pretty:
            root = copy.deepcopy(self._root)
            ET.indent(root, space="  ")
        return ET.tostring(root, encoding="unicode")
