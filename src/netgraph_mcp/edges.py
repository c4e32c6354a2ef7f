"""
Occlusion-aware edge segmentation.

Each edge is split wherever it crosses a group boundary.  Segments whose
midpoint lies inside a group that is not one of the edge's home groups
(ancestors of either endpoint) are "unrelated" and fade; the rest are
"related".  Segments become proportional gradient stops.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from netgraph_mcp.collapse import ancestors
from netgraph_mcp.geometry import (
    line_circle_intersections,
    point_along,
    point_in_circle,
    shorten_edge,
)
from netgraph_mcp.models import Circle, Edge, Vertex
from netgraph_mcp.styles import SegmentStyle

DEDUPE_EPSILON = 0.001


@dataclass
class EdgeSegment:
    """A stretch of an edge between parameters ``start`` and ``end`` (0..1)."""
    start: float
    end: float
    related: bool = True


@dataclass
class GradientStop:
    offset: float   # percent along the edge
    color: str
    opacity: float


@dataclass
class EdgeGeometry:
    """Render-ready geometry for one edge."""
    edge: Edge
    x1: float
    y1: float
    x2: float
    y2: float
    home: frozenset[str] = frozenset()
    segments: list[EdgeSegment] = field(default_factory=list)
    stops: list[GradientStop] = field(default_factory=list)

    @property
    def unrelated_count(self) -> int:
        return sum(1 for s in self.segments if not s.related)


def home_groups(vertices: dict[str, Vertex], edge: Edge) -> frozenset[str]:
    """Every ancestor group of either endpoint, at any depth.

    The endpoints themselves are included so an edge attached to a group
    is never faded inside that group.
    """
    home = {edge.source, edge.target}
    home.update(ancestors(vertices, edge.source))
    home.update(ancestors(vertices, edge.target))
    return frozenset(home)


def group_circles(vertices: dict[str, Vertex]) -> dict[str, Circle]:
    """Boundaries of expanded groups; collapsed groups render as nodes."""
    return {v.id: v.circle for v in vertices.values() if v.is_group and not v.collapsed}


def segment_edge(
    x1: float, y1: float, x2: float, y2: float,
    circles: dict[str, Circle],
    home: frozenset[str] | set[str],
    epsilon: float = DEDUPE_EPSILON,
) -> list[EdgeSegment]:
    """Split P1→P2 at every group crossing and classify each piece."""
    crossings: list[float] = []
    for circle in circles.values():
        crossings.extend(line_circle_intersections(x1, y1, x2, y2, circle))

    points = [0.0]
    for t in sorted(crossings):
        if epsilon < t < 1.0 - epsilon and t - points[-1] > epsilon:
            points.append(t)
    points.append(1.0)

    foreign = [c for gid, c in circles.items() if gid not in home]
    segments: list[EdgeSegment] = []
    for start, end in zip(points, points[1:]):
        mx, my = point_along(x1, y1, x2, y2, (start + end) / 2)
        inside_foreign = any(point_in_circle(mx, my, c) for c in foreign)
        segments.append(EdgeSegment(start, end, related=not inside_foreign))
    return segments


def segments_to_gradient_stops(segments: list[EdgeSegment]) -> list[GradientStop]:
    """Two stops per segment so colour changes are sharp at boundaries."""
    stops: list[GradientStop] = []
    for seg in segments:
        if seg.related:
            color, opacity = SegmentStyle.RELATED_COLOR, SegmentStyle.RELATED_OPACITY
        else:
            color, opacity = SegmentStyle.UNRELATED_COLOR, SegmentStyle.UNRELATED_OPACITY
        stops.append(GradientStop(seg.start * 100, color, opacity))
        stops.append(GradientStop(seg.end * 100, color, opacity))
    return stops


def compute_edge_geometry(
    vertices: dict[str, Vertex],
    edge: Edge,
    circles: Optional[dict[str, Circle]] = None,
) -> Optional[EdgeGeometry]:
    """Shortened endpoints, segments and stops for *edge*; ``None`` if an endpoint is missing."""
    source = vertices.get(edge.source)
    target = vertices.get(edge.target)
    if source is None or target is None:
        return None
    if circles is None:
        circles = group_circles(vertices)

    x1, y1, x2, y2 = shorten_edge(source.x, source.y, target.x, target.y, source.r, target.r)
    home = home_groups(vertices, edge)
    segments = segment_edge(x1, y1, x2, y2, circles, home)
    return EdgeGeometry(
        edge=edge, x1=x1, y1=y1, x2=x2, y2=y2, home=home,
        segments=segments, stops=segments_to_gradient_stops(segments),
    )
