"""
Circle-pack layout engine for hierarchical network graphs.

Arranges groups and leaves as nested, non-overlapping circles:
- Every leaf gets the same fixed radius so icons stay uniform
- Each group is the smallest circle enclosing its packed children
- Sibling spacing is chosen per parent (tight for leaves, loose for groups)
- Parentless leaves are placed on a ring around the outer container

The sibling packer follows the front-chain algorithm (Wang et al.) and the
enclosing circle uses Welzl's randomized algorithm, seeded for
reproducible layouts.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field, fields
from typing import Any, Optional, Protocol, Sequence

from netgraph_mcp.hierarchy import HierarchyNode, HierarchyResult, build_hierarchy
from netgraph_mcp.layout import add_radial_layout
from netgraph_mcp.models import Circle, Point, Vertex
from netgraph_mcp.validation import (
    ValidationError,
    validate_bool,
    validate_dict,
    validate_int,
    validate_non_negative_number,
    validate_positive_number,
)

logger = logging.getLogger("netgraph-mcp")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class LayoutEngineConfig:
    """Configuration for the circle-pack layout engine."""
    # Canvas
    canvas_width: float = 800
    canvas_height: float = 600
    canvas_margin: float = 25      # Half-icon offset added to every coordinate
    adaptive_canvas: bool = True   # Grow the canvas with graph complexity

    # Circles
    node_radius: float = 15        # Fixed radius of every leaf
    node_padding: float = 5        # Gap between sibling leaves
    group_padding: float = 20      # Gap between sibling groups
    collapsed_radius: float = 30   # Radius of a collapsed group node

    # Radial ring
    radial_gap: float = 80         # Ring distance beyond the outer container

    # Enclosing-circle shuffle seed
    seed: int = 0

    _ALIASES = {
        "canvasWidth": "canvas_width",
        "canvasHeight": "canvas_height",
        "nodeRadius": "node_radius",
        "nodePadding": "node_padding",
        "groupPadding": "group_padding",
        "width": "canvas_width",
        "height": "canvas_height",
    }

    @classmethod
    def from_options(cls, options: Optional[dict[str, Any]]) -> LayoutEngineConfig:
        """Build a config from host options (camelCase or snake_case keys).

        Unknown keys raise ``ValidationError``; missing keys keep defaults.
        """
        if options is None:
            return cls()
        options = validate_dict(options, "options")
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, raw in options.items():
            name = cls._ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown layout option '{key}'.")
            if name == "adaptive_canvas":
                values[name] = validate_bool(raw, key)
            elif name == "seed":
                values[name] = validate_int(raw, key)
            elif name in ("node_padding", "group_padding", "canvas_margin", "radial_gap"):
                values[name] = validate_non_negative_number(raw, key)
            else:
                values[name] = validate_positive_number(raw, key)
        return cls(**values)


@dataclass
class LayoutResult:
    """Outcome of a full layout pass."""
    width: float
    height: float
    hierarchy: HierarchyResult
    radial_placed: bool = False
    warnings: list[str] = field(default_factory=list)


class _Packable(Protocol):
    x: float
    y: float
    r: float


# ---------------------------------------------------------------------------
# Enclosing circle (Welzl)
# ---------------------------------------------------------------------------

def _encloses_not(a: _Packable, b: _Packable) -> bool:
    dr = a.r - b.r
    dx = b.x - a.x
    dy = b.y - a.y
    return dr < 0 or dr * dr < dx * dx + dy * dy


def _encloses_weak(a: _Packable, b: _Packable) -> bool:
    dr = a.r - b.r + max(a.r, b.r, 1) * 1e-9
    dx = b.x - a.x
    dy = b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _encloses_weak_all(a: _Packable, basis: Sequence[_Packable]) -> bool:
    return all(_encloses_weak(a, b) for b in basis)


def _enclose_basis1(a: _Packable) -> Circle:
    return Circle(a.x, a.y, a.r)


def _enclose_basis2(a: _Packable, b: _Packable) -> Circle:
    x21 = b.x - a.x
    y21 = b.y - a.y
    r21 = b.r - a.r
    l = math.sqrt(x21 * x21 + y21 * y21)
    return Circle(
        (a.x + b.x + x21 / l * r21) / 2,
        (a.y + b.y + y21 / l * r21) / 2,
        (l + a.r + b.r) / 2,
    )


def _enclose_basis3(a: _Packable, b: _Packable, c: _Packable) -> Circle:
    x1, y1, r1 = a.x, a.y, a.r
    a2 = x1 - b.x
    a3 = x1 - c.x
    b2 = y1 - b.y
    b3 = y1 - c.y
    c2 = b.r - r1
    c3 = c.r - r1
    d1 = x1 * x1 + y1 * y1 - r1 * r1
    d2 = d1 - b.x * b.x - b.y * b.y + b.r * b.r
    d3 = d1 - c.x * c.x - c.y * c.y + c.r * c.r
    ab = a3 * b2 - a2 * b3
    xa = (b2 * d3 - b3 * d2) / (ab * 2) - x1
    xb = (b3 * c2 - b2 * c3) / ab
    ya = (a3 * d2 - a2 * d3) / (ab * 2) - y1
    yb = (a2 * c3 - a3 * c2) / ab
    qa = xb * xb + yb * yb - 1
    qb = 2 * (r1 + xa * xb + ya * yb)
    qc = xa * xa + ya * ya - r1 * r1
    if abs(qa) > 1e-6:
        r = -(qb + math.sqrt(qb * qb - 4 * qa * qc)) / (2 * qa)
    else:
        r = -qc / qb
    return Circle(x1 + xa + xb * r, y1 + ya + yb * r, r)


def _enclose_basis(basis: Sequence[_Packable]) -> Circle:
    if len(basis) == 1:
        return _enclose_basis1(basis[0])
    if len(basis) == 2:
        return _enclose_basis2(basis[0], basis[1])
    return _enclose_basis3(basis[0], basis[1], basis[2])


def _extend_basis(basis: list[_Packable], p: _Packable) -> list[_Packable]:
    if _encloses_weak_all(p, basis):
        return [p]

    for b in basis:
        if _encloses_not(p, b) and _encloses_weak_all(_enclose_basis2(b, p), basis):
            return [b, p]

    for i in range(len(basis) - 1):
        for j in range(i + 1, len(basis)):
            bi, bj = basis[i], basis[j]
            if (_encloses_not(_enclose_basis2(bi, bj), p)
                    and _encloses_not(_enclose_basis2(bi, p), bj)
                    and _encloses_not(_enclose_basis2(bj, p), bi)
                    and _encloses_weak_all(_enclose_basis3(bi, bj, p), basis)):
                return [bi, bj, p]

    raise RuntimeError("Enclosing circle basis could not be extended")


def enclose(circles: Sequence[_Packable], rng: Optional[random.Random] = None) -> Optional[Circle]:
    """Smallest circle enclosing every circle in *circles*."""
    items = list(circles)
    if not items:
        return None
    (rng or random.Random(0)).shuffle(items)
    basis: list[_Packable] = []
    e: Optional[Circle] = None
    i = 0
    while i < len(items):
        p = items[i]
        if e is not None and _encloses_weak(e, p):
            i += 1
        else:
            basis = _extend_basis(basis, p)
            e = _enclose_basis(basis)
            i = 0
    return e


# ---------------------------------------------------------------------------
# Sibling packing (front chain)
# ---------------------------------------------------------------------------

class _ChainNode:
    __slots__ = ("circle", "next", "previous")

    def __init__(self, circle: _Packable) -> None:
        self.circle = circle
        self.next: _ChainNode = self
        self.previous: _ChainNode = self


def _place(b: _Packable, a: _Packable, c: _Packable) -> None:
    """Position *c* tangent to both *a* and *b*."""
    dx = b.x - a.x
    dy = b.y - a.y
    d2 = dx * dx + dy * dy
    if d2:
        a2 = (a.r + c.r) ** 2
        b2 = (b.r + c.r) ** 2
        if a2 > b2:
            x = (d2 + b2 - a2) / (2 * d2)
            y = math.sqrt(max(0.0, b2 / d2 - x * x))
            c.x = b.x - x * dx - y * dy
            c.y = b.y - x * dy + y * dx
        else:
            x = (d2 + a2 - b2) / (2 * d2)
            y = math.sqrt(max(0.0, a2 / d2 - x * x))
            c.x = a.x + x * dx - y * dy
            c.y = a.y + x * dy + y * dx
    else:
        c.x = a.x + c.r
        c.y = a.y


def _intersects(a: _Packable, b: _Packable) -> bool:
    dr = a.r + b.r - 1e-6
    dx = b.x - a.x
    dy = b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _score(node: _ChainNode) -> float:
    a = node.circle
    b = node.next.circle
    ab = a.r + b.r
    dx = (a.x * b.r + b.x * a.r) / ab
    dy = (a.y * b.r + b.y * a.r) / ab
    return dx * dx + dy * dy


def pack_siblings(circles: Sequence[_Packable], rng: Optional[random.Random] = None) -> float:
    """Pack *circles* tightly around the origin; return the enclosing radius.

    Positions are written onto the circles in place; the enclosing circle
    of the result is centred on (0, 0).
    """
    n = len(circles)
    if n == 0:
        return 0.0

    a = circles[0]
    a.x = 0.0
    a.y = 0.0
    if n == 1:
        return a.r

    b = circles[1]
    a.x = -b.r
    b.x = a.r
    b.y = 0.0
    if n == 2:
        return a.r + b.r

    _place(b, a, circles[2])

    na, nb, nc = _ChainNode(a), _ChainNode(b), _ChainNode(circles[2])
    na.next = nc.previous = nb
    nb.next = na.previous = nc
    nc.next = nb.previous = na

    i = 3
    while i < n:
        _place(na.circle, nb.circle, circles[i])
        nc = _ChainNode(circles[i])

        # Find the closest intersecting circle on the front chain, if any
        j, k = nb.next, na.previous
        sj, sk = nb.circle.r, na.circle.r
        collided = False
        while True:
            if sj <= sk:
                if _intersects(j.circle, nc.circle):
                    nb = j
                    na.next = nb
                    nb.previous = na
                    collided = True
                    break
                sj += j.circle.r
                j = j.next
            else:
                if _intersects(k.circle, nc.circle):
                    na = k
                    na.next = nb
                    nb.previous = na
                    collided = True
                    break
                sk += k.circle.r
                k = k.previous
            if j is k.next:
                break
        if collided:
            continue

        # Insert c between a and b
        nc.previous = na
        nc.next = nb
        na.next = nb.previous = nb = nc

        # Pick the pair closest to the centroid as the new a/b
        aa = _score(na)
        node = nc.next
        while node is not nb:
            ca = _score(node)
            if ca < aa:
                na, aa = node, ca
            node = node.next
        nb = na.next
        i += 1

    chain = [nb.circle]
    node = nb.next
    while node is not nb:
        chain.append(node.circle)
        node = node.next
    e = enclose(chain, rng)

    for c in circles:
        c.x -= e.x
        c.y -= e.y
    return e.r


# ---------------------------------------------------------------------------
# Hierarchy packing
# ---------------------------------------------------------------------------

def sibling_padding(node: HierarchyNode, config: LayoutEngineConfig) -> float:
    """Spacing between *node*'s children, decided by the first child.

    A leaf first child selects node padding, a group first child selects
    group padding.  Mixed child lists follow whichever kind comes first.
    """
    if not node.children or node.children[0].is_leaf:
        return config.node_padding
    return config.group_padding


def pack_hierarchy(
    root: HierarchyNode,
    config: LayoutEngineConfig,
    width: float,
    height: float,
) -> None:
    """Assign x/y/r to every node; the root is centred in a width×height box."""
    rng = random.Random(config.seed)
    order = list(root.walk())

    for node in reversed(order):
        if node.is_leaf:
            node.r = config.node_radius
            continue
        half = sibling_padding(node, config) / 2
        for child in node.children:
            child.r += half
        enclosing = pack_siblings(node.children, rng)
        for child in node.children:
            child.r -= half
        node.r = enclosing + half

    root.x = width / 2
    root.y = height / 2
    for node in order:
        if node.parent is not None:
            node.x += node.parent.x
            node.y += node.parent.y


def calculate_canvas_size(
    result: HierarchyResult,
    vertices: dict[str, Vertex],
    config: LayoutEngineConfig,
) -> tuple[float, float]:
    """Canvas dimensions scaled up with leaf count, depth and group count."""
    if not config.adaptive_canvas:
        return config.canvas_width, config.canvas_height
    leaves = sum(1 for v in vertices.values() if not v.is_group)
    groups = len(vertices) - leaves
    depth = result.root.height() if result.root is not None else 0
    scale = max(
        1.0,
        1
        + math.log10(leaves + 1) * 0.1
        + depth * 0.05
        + math.log10(groups + 1) * 0.1
        + config.node_padding / 200,
    )
    logger.debug("Canvas scale %.2fx (%d leaves, %d groups, depth %d)",
                 scale, leaves, groups, depth)
    return config.canvas_width * scale, config.canvas_height * scale


def compute_layout(
    vertices: dict[str, Vertex],
    config: LayoutEngineConfig | None = None,
) -> LayoutResult:
    """Run the full layout: hierarchy, packing, offset, radial ring.

    Positions are written back onto *vertices* (``x``, ``y``, ``r``) and
    each vertex's ``origin`` records its layout-computed centre.
    """
    cfg = config or LayoutEngineConfig()
    hierarchy = build_hierarchy(vertices)
    width, height = calculate_canvas_size(hierarchy, vertices, cfg)
    margin = cfg.canvas_margin

    if hierarchy.root is not None:
        pack_hierarchy(hierarchy.root, cfg, width - 2 * margin, height - 2 * margin)
        for node in hierarchy.root.walk():
            if node.vertex is None:
                continue
            node.vertex.x = node.x + margin
            node.vertex.y = node.y + margin
            node.vertex.r = node.r

    warnings: list[str] = []
    radial_placed = False
    if hierarchy.radial_elements:
        radial_placed = add_radial_layout(
            hierarchy,
            center=Point(width / 2, height / 2),
            node_radius=cfg.node_radius,
            gap=cfg.radial_gap,
            margin=margin,
            spacing=cfg.node_padding,
        )
        if not radial_placed:
            warnings.append(
                f"Radial placement skipped: {len(hierarchy.top_level_containers)} "
                "top-level containers"
            )

    for v in vertices.values():
        v.origin = Point(v.x, v.y)

    logger.info("Layout computed: %d vertices on %.0fx%.0f canvas",
                len(vertices), width, height)
    return LayoutResult(width=width, height=height, hierarchy=hierarchy,
                        radial_placed=radial_placed, warnings=warnings)
