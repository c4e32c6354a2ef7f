"""
Input validation for netgraph MCP server tool parameters.

Provides reusable validators that produce clear error messages for all
parameters received from LLM / host callers.
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a non-empty string after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty string.")
    return value.strip()


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """Validate a numeric value and optional range."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    val = float(value)
    if min_val is not None and val < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {val}."
        )
    if max_val is not None and val > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {val}."
        )
    return val


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    """Validate an integer value and optional range."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be an integer, got {type(value).__name__}."
        )
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}."
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}."
        )
    return value


def validate_bool(value: Any, field_name: str) -> bool:
    """Ensure *value* is a boolean."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a boolean, got {type(value).__name__}."
        )
    return value


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}."
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


def validate_dict(value: Any, field_name: str) -> dict:
    """Ensure *value* is a dict."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"'{field_name}' must be a dict/object, got {type(value).__name__}."
        )
    return value


def validate_positive_number(value: Any, field_name: str) -> float:
    """Validate that a number is positive (> 0)."""
    return validate_number(value, field_name, min_val=0.001)


def validate_non_negative_number(value: Any, field_name: str) -> float:
    """Validate that a number is >= 0."""
    return validate_number(value, field_name, min_val=0)


# ---------------------------------------------------------------------------
# Tool actions
# ---------------------------------------------------------------------------

_GRAPH_ACTIONS = {"LOAD", "RENDER", "INFO", "LIST", "DELETE"}
_INTERACT_ACTIONS = {
    "SELECT_VERTEX", "SELECT_GROUP", "CLEAR", "FILTER",
    "TOGGLE_COLLAPSE", "COLLAPSE_ALL", "EXPAND_ALL", "RESET_VIEW",
    "ZOOM", "ZOOM_IN", "ZOOM_OUT", "DRAG", "CLICK_VERTEX", "CLICK_GROUP",
}
_INSPECT_ACTIONS = {"VERTICES", "EDGES", "SEGMENTS", "SELECTION", "VIEWPORT"}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Validate the action parameter for a tool."""
    if not isinstance(value, str) or not value.strip():
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {choices}."
        )
    normalized = value.strip().upper()
    if normalized not in allowed:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"Unknown {tool_name} action '{value}'. Valid actions: {choices}."
        )
    return value.strip().lower()


# ---------------------------------------------------------------------------
# Graph payload validators
# ---------------------------------------------------------------------------

def validate_id_list(value: Any, field_name: str) -> list[str]:
    """A list of non-empty vertex id strings."""
    items = validate_list(value, field_name)
    for i, item in enumerate(items):
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(f"'{field_name}' item {i} must be a non-empty string.")
    return items


def validate_vertex_record(vertex_id: Any, v: Any) -> None:
    """Validate one vertex record of the input graph."""
    if not isinstance(vertex_id, str) or not vertex_id.strip():
        raise ValidationError(f"Vertex id {vertex_id!r} must be a non-empty string.")
    if not isinstance(v, dict):
        raise ValidationError(f"Vertex '{vertex_id}' must be a dict/object.")
    for key in ("parentId", "parent_id"):
        if v.get(key) is not None and not isinstance(v[key], str):
            raise ValidationError(f"Vertex '{vertex_id}': '{key}' must be a string.")
    if "type" in v and not isinstance(v["type"], str):
        raise ValidationError(f"Vertex '{vertex_id}': 'type' must be a string.")
    if "label" in v and v["label"] is not None and not isinstance(v["label"], str):
        raise ValidationError(f"Vertex '{vertex_id}': 'label' must be a string.")
    if "style" in v and v["style"] is not None and not isinstance(v["style"], dict):
        raise ValidationError(f"Vertex '{vertex_id}': 'style' must be a dict/object.")


def validate_edge_record(e: Any, index: int) -> None:
    """Validate one edge record (start_node/end_node or source/target)."""
    if not isinstance(e, dict):
        raise ValidationError(f"Edge at index {index} must be a dict/object.")
    source = e.get("start_node", e.get("source"))
    target = e.get("end_node", e.get("target"))
    if not isinstance(source, str) or not source.strip():
        raise ValidationError(f"Edge at index {index} missing 'start_node' (or 'source').")
    if not isinstance(target, str) or not target.strip():
        raise ValidationError(f"Edge at index {index} missing 'end_node' (or 'target').")


def validate_graph_payload(value: Any) -> dict:
    """Validate the ``{vertices, edges}`` input graph."""
    payload = validate_dict(value, "graph_data")
    vertices = payload.get("vertices")
    if isinstance(vertices, dict):
        for vid, record in vertices.items():
            validate_vertex_record(vid, record)
    elif isinstance(vertices, list):
        for i, record in enumerate(vertices):
            if not isinstance(record, dict) or "id" not in record:
                raise ValidationError(f"Vertex at index {i} must be a dict with an 'id'.")
            validate_vertex_record(record["id"], record)
    else:
        raise ValidationError("'graph_data.vertices' must be a dict or a list.")
    edges = payload.get("edges", [])
    validate_list(edges, "graph_data.edges")
    for i, e in enumerate(edges):
        validate_edge_record(e, i)
    return payload
