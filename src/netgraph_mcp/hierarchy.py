"""
Hierarchy builder: flat parent-referenced vertex map → packable tree.

Parentless leaves cannot be packed (nothing contains them) and are split
off as radial elements.  All parentless groups are packed; when there is
more than one, a virtual root is synthesized so the packer always receives
a single tree.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterator, Optional

from netgraph_mcp.models import Vertex

logger = logging.getLogger("netgraph-mcp")

VIRTUAL_ROOT_ID = "__virtual_root__"


@dataclass(eq=False)
class HierarchyNode:
    """Transient tree node used while packing; discarded after write-back."""
    id: str
    vertex: Optional[Vertex] = None
    children: list[HierarchyNode] = field(default_factory=list)
    parent: Optional[HierarchyNode] = field(default=None, repr=False)
    depth: int = 0
    value: float = 0.0
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0

    @property
    def is_virtual(self) -> bool:
        return self.vertex is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self) -> Iterator[HierarchyNode]:
        """Pre-order traversal."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def height(self) -> int:
        return max((n.depth for n in self.walk()), default=0) - self.depth

    def leaves(self) -> list[HierarchyNode]:
        return [n for n in self.walk() if n.is_leaf]


@dataclass
class HierarchyResult:
    root: Optional[HierarchyNode]
    radial_elements: list[Vertex] = field(default_factory=list)
    orphans: list[str] = field(default_factory=list)

    @property
    def top_level_containers(self) -> list[HierarchyNode]:
        if self.root is None:
            return []
        if self.root.is_virtual:
            return list(self.root.children)
        return [self.root]


def build_hierarchy(vertices: dict[str, Vertex]) -> HierarchyResult:
    """Split *vertices* into a packable tree and a list of radial elements.

    Orphans (parent id not in the map) are logged and treated as roots.
    Traversal keeps a visited set, so a parent cycle cannot recurse forever;
    vertices only reachable through a cycle are promoted to roots.
    """
    children_of: dict[str, list[str]] = defaultdict(list)
    roots: list[str] = []
    orphans: list[str] = []

    for v in vertices.values():
        if v.parent_id is None:
            roots.append(v.id)
        elif v.parent_id not in vertices:
            logger.warning("Vertex %r references missing parent %r; treating as root",
                           v.id, v.parent_id)
            orphans.append(v.id)
            roots.append(v.id)
        elif not vertices[v.parent_id].is_group:
            logger.warning("Vertex %r has leaf parent %r; treating as root",
                           v.id, v.parent_id)
            orphans.append(v.id)
            roots.append(v.id)
        else:
            children_of[v.parent_id].append(v.id)

    visited: set[str] = set()
    packed: list[HierarchyNode] = []
    radial: list[Vertex] = []

    def _build(root_id: str) -> HierarchyNode:
        top = HierarchyNode(id=root_id, vertex=vertices[root_id])
        visited.add(root_id)
        stack = [top]
        while stack:
            node = stack.pop()
            for cid in children_of.get(node.id, []):
                if cid in visited:
                    logger.warning("Cycle detected at %r under %r; skipping", cid, node.id)
                    continue
                visited.add(cid)
                child = HierarchyNode(id=cid, vertex=vertices[cid], parent=node)
                node.children.append(child)
                stack.append(child)
        return top

    def _classify(root_id: str) -> None:
        vertex = vertices[root_id]
        if vertex.is_group:
            packed.append(_build(root_id))
        else:
            visited.add(root_id)
            radial.append(vertex)

    for rid in roots:
        _classify(rid)

    for vid in vertices:
        if vid not in visited:
            logger.warning("Vertex %r is only reachable through a parent cycle; "
                           "treating as root", vid)
            orphans.append(vid)
            _classify(vid)

    if not packed:
        root = None
    elif len(packed) == 1:
        root = packed[0]
    else:
        root = HierarchyNode(id=VIRTUAL_ROOT_ID, children=packed)
        for child in packed:
            child.parent = root

    if root is not None:
        _assign_depth_and_value(root)

    return HierarchyResult(root=root, radial_elements=radial, orphans=orphans)


def _assign_depth_and_value(root: HierarchyNode) -> None:
    order = list(root.walk())
    for node in order:
        node.depth = node.parent.depth + 1 if node.parent is not None else 0
    for node in reversed(order):
        node.value = 1.0 if node.is_leaf else sum(c.value for c in node.children)
