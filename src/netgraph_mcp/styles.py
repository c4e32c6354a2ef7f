"""
Style builder and preset library for rendered graph elements.

Provides a fluent API to compose SVG presentation attributes and a catalog
of palettes for nodes, groups, collapsed groups, edge segments and the
highlight states layered on top by interaction features.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from netgraph_mcp.models import GroupVariant, Vertex


def _fmt(value: float) -> str:
    return f"{value:g}"


# ---------------------------------------------------------------------------
# Style builder
# ---------------------------------------------------------------------------

class StyleBuilder:
    """Fluent builder for SVG presentation attributes.

    ``scale`` is not an SVG attribute; surfaces read it to enlarge the
    element about its centre.
    """

    def __init__(self, base: Optional[dict[str, str]] = None) -> None:
        self._parts: dict[str, str] = dict(base or {})

    # -- appearance --

    def fill(self, color: str) -> StyleBuilder:
        self._parts["fill"] = color
        return self

    def fill_opacity(self, value: float) -> StyleBuilder:
        self._parts["fill-opacity"] = _fmt(value)
        return self

    def stroke(self, color: str) -> StyleBuilder:
        self._parts["stroke"] = color
        return self

    def stroke_width(self, width: float) -> StyleBuilder:
        self._parts["stroke-width"] = _fmt(width)
        return self

    def opacity(self, value: float) -> StyleBuilder:
        self._parts["opacity"] = _fmt(value)
        return self

    def dashed(self, pattern: str = "5,5") -> StyleBuilder:
        if pattern:
            self._parts["stroke-dasharray"] = pattern
        else:
            self._parts.pop("stroke-dasharray", None)
        return self

    def solid(self) -> StyleBuilder:
        return self.dashed("")

    def glow(self, color: str, blur: float) -> StyleBuilder:
        self._parts["filter"] = f"drop-shadow(0 0 {_fmt(blur)}px {color})"
        return self

    def scale(self, factor: float) -> StyleBuilder:
        self._parts["scale"] = _fmt(factor)
        return self

    def font_size(self, size: int) -> StyleBuilder:
        self._parts["font-size"] = str(size)
        return self

    def marker_end(self, marker_id: str) -> StyleBuilder:
        self._parts["marker-end"] = f"url(#{marker_id})"
        return self

    def apply_override(self, vertex: Vertex) -> StyleBuilder:
        """Per-vertex overrides win over type-derived defaults."""
        o = vertex.style
        if o.fill is not None:
            self.fill(o.fill)
        if o.stroke is not None:
            self.stroke(o.stroke)
        if o.stroke_width is not None:
            self.stroke_width(o.stroke_width)
        if o.dash is not None:
            self.dashed(o.dash)
        if o.opacity is not None:
            self.opacity(o.opacity)
        return self

    # -- generic --

    def set(self, key: str, value: str) -> StyleBuilder:
        self._parts[key] = value
        return self

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._parts.get(key, default)

    # -- build --

    def build(self) -> dict[str, str]:
        return dict(self._parts)

    def css(self) -> str:
        return "".join(f"{k}:{v};" for k, v in self._parts.items())


# ---------------------------------------------------------------------------
# Palettes
# ---------------------------------------------------------------------------

class NodeColors:
    """Leaf fill colour by domain type."""
    APPLICATION = "#F9696E"
    DEPLOYMENT = "#F2A3B3"
    COMPUTE = "#5DCAD1"
    RESOURCE = "#74B56D"
    TRAFFIC_CONTROLLER = "#4A98E3"
    UNKNOWN = "#F9C96E"

    _BY_TYPE = {
        "Application": APPLICATION,
        "Deployment": DEPLOYMENT,
        "Compute": COMPUTE,
        "Resource": RESOURCE,
        "TrafficController": TRAFFIC_CONTROLLER,
    }

    @classmethod
    def for_type(cls, domain_type: str) -> str:
        return cls._BY_TYPE.get(domain_type, cls.UNKNOWN)


class GroupStyle:
    """Boundary circle defaults for expanded groups."""
    FILL = "none"
    STROKE = "#5B8FF9"
    STROKE_WIDTH = 2
    OPACITY = 0.6
    DASH = {
        GroupVariant.APPLICATION: "3,3",
        GroupVariant.CLUSTER: "8,4",
        GroupVariant.NETWORK: "5,5",
    }
    FONT_SIZE = {
        GroupVariant.BOUNDARY: 16,
        GroupVariant.NETWORK: 16,
        GroupVariant.CLUSTER: 14,
    }
    DEFAULT_FONT_SIZE = 12
    LABEL_PREFIXES = ("App: ", "Cluster: ")


class CollapsedStyle:
    """A collapsed group drawn as a node with a count badge."""
    FILL = "#FFE6CC"
    FILL_OPACITY = 0.8
    STROKE = "#FF9933"
    STROKE_WIDTH = 2
    DASH = "3,3"
    BADGE_RADIUS = 10
    BADGE_FILL = "#FF9933"
    BADGE_OFFSET = 0.7   # badge centre at (r × offset, −r × offset)


class SegmentStyle:
    """Two-tone edge gradient colours."""
    RELATED_COLOR = "#888"
    RELATED_OPACITY = 0.4
    UNRELATED_COLOR = "#ccc"
    UNRELATED_OPACITY = 0.2
    STROKE_WIDTH = 2


class DimStyle:
    OPACITY = 0.2
    PATH_EDGE_OPACITY = 0.6


# ---------------------------------------------------------------------------
# Highlight presets
# ---------------------------------------------------------------------------

@dataclass
class HighlightPreset:
    """A named highlight treatment layered onto a base style."""
    color: str
    scale: float = 1.0
    glow: float = 0
    stroke_width: Optional[float] = None
    dash: str = ""
    fill: str = ""
    fill_opacity: Optional[float] = None

    def apply(self, builder: StyleBuilder) -> StyleBuilder:
        builder.stroke(self.color)
        if self.fill:
            builder.fill(self.fill)
        if self.fill_opacity is not None:
            builder.fill_opacity(self.fill_opacity)
        if self.stroke_width is not None:
            builder.stroke_width(self.stroke_width)
        if self.scale != 1.0:
            builder.scale(self.scale)
        if self.glow:
            builder.glow(self.color, self.glow)
        if self.dash:
            builder.dashed(self.dash)
        return builder


class Highlights:
    """Highlight presets, keyed by selection state."""
    PATH_NODE = HighlightPreset(color="#FFA500", scale=1.2, glow=8, stroke_width=3)
    HEAD_NODE = HighlightPreset(color="#8A4FBE", scale=1.2, glow=5, stroke_width=3)
    CONNECTED_NODE = HighlightPreset(color="#A875D4", scale=1.1, stroke_width=2)
    PATH_EDGE = HighlightPreset(color="#FFA500", stroke_width=5, glow=4)
    CONNECTED_EDGE = HighlightPreset(color="#4444ff", stroke_width=3)
    INBOUND_EDGE = HighlightPreset(color="#4444ff", stroke_width=3, dash="10,5")
    APPLICATION_GROUP = HighlightPreset(
        color="#FF6600", scale=1.08, glow=6, stroke_width=4,
        fill="#FFD4A3", fill_opacity=0.8,
    )


class Markers:
    ARROW = "arrow"
    ARROW_PATH = "arrow-path"
    ARROW_CONNECTED = "arrow-connected"

    COLORS = {
        ARROW: "#888",
        ARROW_PATH: "#FFA500",
        ARROW_CONNECTED: "#4444ff",
    }


# ---------------------------------------------------------------------------
# Base styles
# ---------------------------------------------------------------------------

def base_node_style(vertex: Vertex) -> StyleBuilder:
    """Type-coloured leaf, or the collapsed-group treatment."""
    if vertex.collapsed:
        b = (StyleBuilder()
             .fill(CollapsedStyle.FILL)
             .fill_opacity(CollapsedStyle.FILL_OPACITY)
             .stroke(CollapsedStyle.STROKE)
             .stroke_width(CollapsedStyle.STROKE_WIDTH)
             .dashed(CollapsedStyle.DASH))
    else:
        b = (StyleBuilder()
             .fill(NodeColors.for_type(vertex.domain_type))
             .stroke("#ffffff")
             .stroke_width(1.5))
    return b.apply_override(vertex)


def base_group_style(vertex: Vertex) -> StyleBuilder:
    b = (StyleBuilder()
         .fill(GroupStyle.FILL)
         .stroke(GroupStyle.STROKE)
         .stroke_width(GroupStyle.STROKE_WIDTH)
         .opacity(GroupStyle.OPACITY))
    dash = GroupStyle.DASH.get(vertex.variant)
    if dash:
        b.dashed(dash)
    return b.apply_override(vertex)


def base_edge_style(gradient_id: Optional[str] = None) -> StyleBuilder:
    b = (StyleBuilder()
         .stroke(f"url(#{gradient_id})" if gradient_id else SegmentStyle.RELATED_COLOR)
         .stroke_width(SegmentStyle.STROKE_WIDTH)
         .fill("none")
         .marker_end(Markers.ARROW))
    return b


def group_label(vertex: Vertex) -> tuple[str, int]:
    """Label text (prefixes stripped) and font size for a group boundary."""
    text = vertex.label or vertex.id
    for prefix in GroupStyle.LABEL_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):]
            break
    return text, GroupStyle.FONT_SIZE.get(vertex.variant, GroupStyle.DEFAULT_FONT_SIZE)
