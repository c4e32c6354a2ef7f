"""
Filter dimming and pulse feedback.

The filtered-out set is supplied by the host; dimming only lowers opacity,
so selection highlights survive on dimmed elements.  The pulse animation is
driven by elapsed wall-clock time and only ever touches display scale.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from netgraph_mcp.features import RenderContext, StyleContributor
from netgraph_mcp.models import Edge, Vertex
from netgraph_mcp.selection import EdgeHighlight
from netgraph_mcp.styles import DimStyle, StyleBuilder

logger = logging.getLogger("netgraph-mcp")


@dataclass
class FilterState:
    filtered_out: set[str] = field(default_factory=set)

    def update(self, vertex_ids: Iterable[str]) -> tuple[int, int]:
        """Replace the filtered set; returns (previous count, new count)."""
        previous = len(self.filtered_out)
        self.filtered_out = set(vertex_ids)
        return previous, len(self.filtered_out)

    @property
    def active(self) -> bool:
        return bool(self.filtered_out)

    def is_dimmed(self, vertex_id: str) -> bool:
        return vertex_id in self.filtered_out

    def is_edge_dimmed(self, edge: Edge) -> bool:
        return edge.source in self.filtered_out or edge.target in self.filtered_out


class FilteringFeature(StyleContributor):
    """Dims filtered-out vertices and the edges touching them."""

    name = "filtering"

    def style_node(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> None:
        if ctx.filter.is_dimmed(vertex.id):
            style.opacity(DimStyle.OPACITY)

    def style_edge(self, edge: Edge, style: StyleBuilder, ctx: RenderContext) -> None:
        if not ctx.filter.is_edge_dimmed(edge):
            return
        if ctx.selection.edge_state(edge) is EdgeHighlight.PATH:
            style.opacity(DimStyle.PATH_EDGE_OPACITY)
        else:
            style.opacity(DimStyle.OPACITY)

    def style_group(self, vertex: Vertex, style: StyleBuilder, ctx: RenderContext) -> None:
        if ctx.filter.is_dimmed(vertex.id):
            style.opacity(DimStyle.OPACITY)


# ---------------------------------------------------------------------------
# Pulse animation
# ---------------------------------------------------------------------------

@dataclass
class PulseAnimation:
    """Sine pulses: scale = 1 + sin(phase·π)·amplitude, with pauses between."""
    pulses: int = 2
    pulse_ms: float = 500
    pause_ms: float = 150
    amplitude: float = 0.3

    @property
    def duration_ms(self) -> float:
        return self.pulses * self.pulse_ms + max(0, self.pulses - 1) * self.pause_ms

    def scale_at(self, elapsed_ms: float) -> float:
        if elapsed_ms <= 0 or elapsed_ms >= self.duration_ms:
            return 1.0
        offset = elapsed_ms % (self.pulse_ms + self.pause_ms)
        if offset >= self.pulse_ms:
            return 1.0
        return 1.0 + math.sin(offset / self.pulse_ms * math.pi) * self.amplitude

    async def play(
        self,
        apply: Callable[[float], None],
        clock: Callable[[], float] = time.monotonic,
        frame_interval: float = 1 / 60,
    ) -> int:
        """Run the animation, calling *apply* with each frame's scale.

        Returns the number of frames applied; the final frame is always 1.0.
        """
        start = clock()
        frames = 0
        while True:
            elapsed_ms = (clock() - start) * 1000
            if elapsed_ms >= self.duration_ms:
                break
            apply(self.scale_at(elapsed_ms))
            frames += 1
            await asyncio.sleep(frame_interval)
        apply(1.0)
        return frames + 1
