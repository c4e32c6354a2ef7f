"""
Plane geometry helpers for circle-based graph rendering.

Line–circle intersection, point-in-circle tests and edge shortening so that
edges start and end on node boundaries rather than at node centres.
"""

from __future__ import annotations

import math

from netgraph_mcp.models import Circle

EPSILON = 1e-9


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def point_in_circle(px: float, py: float, circle: Circle) -> bool:
    """True when (px, py) lies strictly inside *circle*."""
    dx = px - circle.x
    dy = py - circle.y
    return dx * dx + dy * dy < circle.r * circle.r


def line_circle_intersections(
    x1: float, y1: float, x2: float, y2: float, circle: Circle,
) -> list[float]:
    """Return the parameters t in [0, 1] where segment P1→P2 crosses *circle*.

    The segment is P(t) = P1 + t·(P2 − P1).  A zero-length segment or a
    negative discriminant yields no intersections.
    """
    dx = x2 - x1
    dy = y2 - y1
    a = dx * dx + dy * dy
    if a < EPSILON:
        return []
    fx = x1 - circle.x
    fy = y1 - circle.y
    b = 2 * (fx * dx + fy * dy)
    c = fx * fx + fy * fy - circle.r * circle.r
    disc = b * b - 4 * a * c
    if disc < 0:
        return []
    root = math.sqrt(disc)
    ts = sorted({(-b - root) / (2 * a), (-b + root) / (2 * a)})
    return [t for t in ts if 0.0 <= t <= 1.0]


def shorten_edge(
    sx: float, sy: float, tx: float, ty: float,
    source_r: float, target_r: float,
) -> tuple[float, float, float, float]:
    """Pull both endpoints in by their circle radius.

    When the circles touch or overlap there is no visible stretch of line
    between them; the centres are returned unchanged.
    """
    length = distance(sx, sy, tx, ty)
    if length < EPSILON or source_r + target_r >= length:
        return sx, sy, tx, ty
    ux = (tx - sx) / length
    uy = (ty - sy) / length
    return (
        sx + ux * source_r,
        sy + uy * source_r,
        tx - ux * target_r,
        ty - uy * target_r,
    )


def point_along(x1: float, y1: float, x2: float, y2: float, t: float) -> tuple[float, float]:
    return x1 + (x2 - x1) * t, y1 + (y2 - y1) * t
