"""
Render context and style contributors.

A :class:`RenderContext` carries everything one render pass needs (visible
graph, selection, filter) so that several independent graphs can be
rendered side by side.  Interaction features implement
:class:`StyleContributor` and are applied in registration order, each
layering onto the style produced by the ones before it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional

from netgraph_mcp.models import Edge, Vertex
from netgraph_mcp.styles import StyleBuilder

if TYPE_CHECKING:
    from netgraph_mcp.filtering import FilterState
    from netgraph_mcp.selection import SelectionState


@dataclass
class RenderContext:
    """Per-graph render state, threaded through every stage."""
    vertices: dict[str, Vertex]
    edges: list[Edge]
    selection: SelectionState
    filter: FilterState
    collapsed: set[str] = field(default_factory=set)


class StyleContributor:
    """Base class for features that adjust element styles.

    Subclasses override whichever hooks they need; the defaults leave the
    style untouched.
    """

    name = "contributor"

    def style_node(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> None:
        pass

    def style_edge(self, edge: Edge, style: StyleBuilder, ctx: RenderContext) -> None:
        pass

    def style_group(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> None:
        pass


class FeatureRegistry:
    """Ordered list of style contributors fixed at renderer construction."""

    def __init__(self, contributors: Optional[list[StyleContributor]] = None) -> None:
        self._contributors: list[StyleContributor] = list(contributors or [])

    def register(self, contributor: StyleContributor) -> None:
        self._contributors.append(contributor)

    def get(self, name: str) -> Optional[StyleContributor]:
        return next((c for c in self._contributors if c.name == name), None)

    def __iter__(self) -> Iterator[StyleContributor]:
        return iter(self._contributors)

    def __len__(self) -> int:
        return len(self._contributors)

    def style_node(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> StyleBuilder:
        for c in self._contributors:
            c.style_node(vertex, style, ctx)
        return style

    def style_edge(self, edge: Edge, style: StyleBuilder, ctx: RenderContext) -> StyleBuilder:
        for c in self._contributors:
            c.style_edge(edge, style, ctx)
        return style

    def style_group(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> StyleBuilder:
        for c in self._contributors:
            c.style_group(vertex, style, ctx)
        return style
