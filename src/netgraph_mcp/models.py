"""
Core data model for hierarchical network graphs.

Vertices form a parent-referenced forest (boundary, network, cluster,
application, resource); edges connect vertices by id.  The vertex kind and
group variant are resolved once at ingestion so downstream stages never
re-derive behaviour from id patterns.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional

logger = logging.getLogger("netgraph-mcp")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VertexKind(Enum):
    LEAF = "leaf"
    GROUP = "group"


class GroupVariant(Enum):
    """Semantic flavour of a group, used for styling and selection."""
    BOUNDARY = "boundary"
    NETWORK = "network"
    CLUSTER = "cluster"
    APPLICATION = "application"
    GENERIC = "generic"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Point:
    """A 2-D coordinate."""
    x: float
    y: float


@dataclass
class Circle:
    """A circle in canvas coordinates (also the packing working record)."""
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0

    def contains(self, other: Circle, tolerance: float = 1e-6) -> bool:
        """True when *other* lies entirely inside this circle."""
        d = math.hypot(other.x - self.x, other.y - self.y)
        return d + other.r <= self.r + tolerance


@dataclass
class StyleOverride:
    """Optional per-vertex rendering overrides; ``None`` means "use default"."""
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    dash: Optional[str] = None
    opacity: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> StyleOverride:
        if not raw:
            return cls()
        width = raw.get("strokeWidth", raw.get("stroke_width"))
        opacity = raw.get("opacity")
        return cls(
            fill=raw.get("fill"),
            stroke=raw.get("stroke"),
            stroke_width=float(width) if width is not None else None,
            dash=raw.get("strokeDasharray", raw.get("dash")),
            opacity=float(opacity) if opacity is not None else None,
        )


@dataclass
class Vertex:
    """A leaf element or a group in the network hierarchy.

    ``x``/``y``/``r`` are written by the layout engine; ``origin`` keeps the
    layout-computed centre so interactive drags can be undone.
    """
    id: str
    kind: VertexKind = VertexKind.LEAF
    variant: Optional[GroupVariant] = None
    parent_id: Optional[str] = None
    children: list[str] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0
    label: str = ""
    style: StyleOverride = field(default_factory=StyleOverride)
    data: dict[str, Any] = field(default_factory=dict)
    app_name: str = ""
    public_ip: bool = False
    collapsed: bool = False
    descendant_count: int = 0
    origin: Optional[Point] = None

    @property
    def is_group(self) -> bool:
        return self.kind is VertexKind.GROUP

    @property
    def is_application(self) -> bool:
        return self.variant is GroupVariant.APPLICATION

    @property
    def renders_as_node(self) -> bool:
        """Leaves and collapsed groups are drawn as nodes, not boundaries."""
        return not self.is_group or self.collapsed

    @property
    def domain_type(self) -> str:
        return str(self.data.get("type", ""))

    @property
    def circle(self) -> Circle:
        return Circle(self.x, self.y, self.r)

    def copy(self) -> Vertex:
        return replace(self, children=list(self.children))


@dataclass(frozen=True)
class Edge:
    """A directed connection between two vertices."""
    source: str
    target: str
    data: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)

    @property
    def edge_id(self) -> str:
        return f"{self.source}-{self.target}"

    def touches(self, vertex_id: str) -> bool:
        return self.source == vertex_id or self.target == vertex_id


@dataclass
class Graph:
    """Vertex map plus edge list, positions included once laid out."""
    vertices: dict[str, Vertex] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)

    def leaves(self) -> list[Vertex]:
        return [v for v in self.vertices.values() if not v.is_group]

    def groups(self) -> list[Vertex]:
        return [v for v in self.vertices.values() if v.is_group]


@dataclass
class Bounds:
    """Axis-aligned bounding box."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def cx(self) -> float:
        return (self.min_x + self.max_x) / 2

    @property
    def cy(self) -> float:
        return (self.min_y + self.max_y) / 2

    def expanded(self, padding: float) -> Bounds:
        return Bounds(self.min_x - padding, self.min_y - padding,
                      self.max_x + padding, self.max_y + padding)

    @classmethod
    def of_circles(cls, circles: Iterable[Circle]) -> Optional[Bounds]:
        circles = list(circles)
        if not circles:
            return None
        return cls(
            min(c.x - c.r for c in circles),
            min(c.y - c.r for c in circles),
            max(c.x + c.r for c in circles),
            max(c.y + c.r for c in circles),
        )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

_VARIANT_NAMES = {v.value: v for v in GroupVariant}


def infer_group_variant(vertex_id: str, raw: dict[str, Any]) -> GroupVariant:
    """Resolve a group's variant from an explicit field or its id."""
    explicit = raw.get("group_type", raw.get("groupType"))
    if isinstance(explicit, str) and explicit.lower() in _VARIANT_NAMES:
        return _VARIANT_NAMES[explicit.lower()]
    lowered = vertex_id.lower()
    if lowered.startswith("app-"):
        return GroupVariant.APPLICATION
    if "cluster" in lowered:
        return GroupVariant.CLUSTER
    if "boundary" in lowered:
        return GroupVariant.BOUNDARY
    if "network" in lowered:
        return GroupVariant.NETWORK
    return GroupVariant.GENERIC


def _is_truthy_flag(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.lower() == "true")


def _application_name(vertex_id: str, raw: dict[str, Any]) -> str:
    name = raw.get("app_name", raw.get("appName"))
    if name:
        return str(name)
    label = str(raw.get("label") or "")
    if label.startswith("App: "):
        label = label[len("App: "):]
    return label or vertex_id


def make_vertex(vertex_id: str, raw: dict[str, Any]) -> Vertex:
    """Build a Vertex from one raw input record."""
    is_group = raw.get("type") == "group"
    variant = infer_group_variant(vertex_id, raw) if is_group else None
    data = {k: v for k, v in raw.items() if k not in ("parentId", "parent_id", "style")}
    return Vertex(
        id=vertex_id,
        kind=VertexKind.GROUP if is_group else VertexKind.LEAF,
        variant=variant,
        parent_id=raw.get("parentId", raw.get("parent_id")) or None,
        label=str(raw.get("label") or ""),
        style=StyleOverride.from_dict(raw.get("style")),
        data=data,
        app_name=_application_name(vertex_id, raw) if variant is GroupVariant.APPLICATION else "",
        public_ip=_is_truthy_flag(raw.get("public_ip")),
    )


def load_graph(payload: dict[str, Any]) -> Graph:
    """Convert a ``{vertices, edges}`` payload into a :class:`Graph`.

    ``vertices`` may be a mapping of id to record or a list of records
    carrying ``id``.  Edges use ``start_node``/``end_node`` (or
    ``source``/``target``); edges naming unknown vertices are dropped.
    """
    raw_vertices = payload.get("vertices") or {}
    if isinstance(raw_vertices, list):
        raw_vertices = {str(item["id"]): item for item in raw_vertices}

    graph = Graph()
    for vid, raw in raw_vertices.items():
        graph.vertices[str(vid)] = make_vertex(str(vid), raw or {})

    # Children lists are rebuilt from parent references in input order
    for v in graph.vertices.values():
        parent = graph.vertices.get(v.parent_id) if v.parent_id else None
        if parent is not None:
            parent.children.append(v.id)

    for raw in payload.get("edges") or []:
        source = raw.get("start_node", raw.get("source"))
        target = raw.get("end_node", raw.get("target"))
        if source not in graph.vertices or target not in graph.vertices:
            logger.warning("Dropping edge %s -> %s: unknown endpoint", source, target)
            continue
        extra = {k: v for k, v in raw.items()
                 if k not in ("start_node", "end_node", "source", "target")}
        graph.edges.append(Edge(str(source), str(target), extra))

    logger.debug("Loaded graph: %d vertices, %d edges",
                 len(graph.vertices), len(graph.edges))
    return graph


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

def get_node_label(vertex: Vertex) -> str:
    """Display text for a node, derived from its domain type."""
    data = vertex.data
    name = data.get("name") or vertex.label or vertex.id
    kind = vertex.domain_type
    if kind == "Application":
        return f"App: {name}"
    if kind == "Compute":
        address = data.get("address")
        return f"{name} ({address})" if address else str(name)
    if kind == "InternetIP":
        return str(data.get("address") or name)
    if kind in ("Deployment", "Resource", "TrafficController"):
        return str(name)
    return str(vertex.label or data.get("name") or vertex.id)
