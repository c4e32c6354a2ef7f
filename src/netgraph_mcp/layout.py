"""
Radial placement and viewport math.

Provides:
- Radial ring placement of parentless leaves around the packed container
- A pan/zoom view transform with clamped scale extent
- Fit-to-view and fit-to-bounds helpers used by reset and filter zoom
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from netgraph_mcp.hierarchy import HierarchyResult
from netgraph_mcp.models import Bounds, Circle, Point, Vertex

logger = logging.getLogger("netgraph-mcp")


# ---------------------------------------------------------------------------
# Radial layout
# ---------------------------------------------------------------------------

def add_radial_layout(
    hierarchy: HierarchyResult,
    center: Point,
    node_radius: float,
    gap: float = 80,
    margin: float = 25,
    spacing: float = 5,
) -> bool:
    """Place radial elements evenly on a ring around the outer container.

    The packed layout is recentred so the single top-level container sits at
    *center*; the ring radius is the container radius plus *gap*.  With more
    than one top-level container the anchor is ambiguous: placement is
    skipped, radial elements are parked in a row along the top margin, and
    ``False`` is returned.
    """
    radial = hierarchy.radial_elements
    if not radial:
        return False

    containers = hierarchy.top_level_containers
    if len(containers) > 1:
        logger.warning(
            "Radial placement skipped: %d top-level containers, expected one",
            len(containers),
        )
        for i, v in enumerate(radial):
            v.x = margin + node_radius + i * (2 * node_radius + spacing)
            v.y = margin + node_radius
            v.r = node_radius
        return False

    ring = gap
    if containers:
        anchor = containers[0].vertex
        dx = center.x - anchor.x
        dy = center.y - anchor.y
        for node in hierarchy.root.walk():
            if node.vertex is not None:
                node.vertex.x += dx
                node.vertex.y += dy
        ring = anchor.r + gap

    step = 2 * math.pi / len(radial)
    for i, v in enumerate(radial):
        angle = i * step
        v.x = center.x + ring * math.cos(angle)
        v.y = center.y + ring * math.sin(angle)
        v.r = node_radius

    logger.debug("Placed %d radial elements on ring r=%.1f", len(radial), ring)
    return True


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------

@dataclass
class ViewportConfig:
    """Constants for fitting and zooming the viewport."""
    width: float = 800
    height: float = 600
    fit_padding: float = 50
    fit_boost: float = 1.33        # Extra zoom applied by the default fit
    filter_zoom_cap: float = 1.5   # Filter zoom never exceeds current × cap
    min_scale: float = 0.1
    max_scale: float = 4.0
    zoom_in_factor: float = 1.5
    zoom_out_factor: float = 0.67

    def clamp(self, k: float) -> float:
        return max(self.min_scale, min(self.max_scale, k))


@dataclass
class ViewTransform:
    """Screen = world × k + (x, y)."""
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, px: float, py: float) -> tuple[float, float]:
        return px * self.k + self.x, py * self.k + self.y

    def invert(self, sx: float, sy: float) -> tuple[float, float]:
        return (sx - self.x) / self.k, (sy - self.y) / self.k

    def to_svg(self) -> str:
        return f"translate({self.x:g},{self.y:g}) scale({self.k:g})"


def visible_bounds(
    vertices: Iterable[Vertex],
    exclude: Optional[set[str]] = None,
    nodes_only: bool = False,
) -> Optional[Bounds]:
    """Box around *vertices*; *nodes_only* skips expanded group boundaries."""
    exclude = exclude or set()
    return Bounds.of_circles(
        Circle(v.x, v.y, v.r) for v in vertices
        if v.id not in exclude and (v.renders_as_node or not nodes_only)
    )


def fit_to_bounds(
    bounds: Bounds,
    config: ViewportConfig,
    *,
    boost: float = 1.0,
    max_scale: Optional[float] = None,
) -> ViewTransform:
    """Transform centring *bounds* (plus padding) in the viewport."""
    padded = bounds.expanded(config.fit_padding)
    sx = config.width / padded.width if padded.width > 0 else 1.0
    sy = config.height / padded.height if padded.height > 0 else 1.0
    if max_scale is None:
        k = min(sx, sy, 1.0) * boost
    else:
        k = min(min(sx, sy), max_scale)
    k = config.clamp(k)
    return ViewTransform(
        x=config.width / 2 - k * padded.cx,
        y=config.height / 2 - k * padded.cy,
        k=k,
    )


def fit_to_view(vertices: Iterable[Vertex], config: ViewportConfig) -> ViewTransform:
    """Default fit: everything visible, never zoomed past 1 × boost."""
    bounds = visible_bounds(vertices)
    if bounds is None:
        return ViewTransform()
    return fit_to_bounds(bounds, config, boost=config.fit_boost)


def fit_to_filtered(
    vertices: Iterable[Vertex],
    filtered_out: set[str],
    current: ViewTransform,
    config: ViewportConfig,
) -> Optional[ViewTransform]:
    """Fit the nodes surviving the filter, capped at current zoom × cap.

    Only leaves and collapsed groups are bounded, never expanded groups.
    Returns ``None`` when no node survives the filter.
    """
    bounds = visible_bounds(vertices, exclude=filtered_out, nodes_only=True)
    if bounds is None:
        return None
    return fit_to_bounds(bounds, config, max_scale=current.k * config.filter_zoom_cap)


def zoom_by(transform: ViewTransform, factor: float, config: ViewportConfig) -> ViewTransform:
    """Scale about the viewport centre, clamped to the scale extent."""
    k = config.clamp(transform.k * factor)
    cx, cy = config.width / 2, config.height / 2
    wx, wy = transform.invert(cx, cy)
    return ViewTransform(x=cx - wx * k, y=cy - wy * k, k=k)
