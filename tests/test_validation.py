"""Tests for input validation and tool error handling."""

import pytest

from netgraph_mcp.layout_engine import LayoutEngineConfig
from netgraph_mcp.server import _graphs, graph, inspect, interact
from netgraph_mcp.validation import (
    ValidationError,
    validate_action,
    validate_bool,
    validate_dict,
    validate_edge_record,
    validate_graph_payload,
    validate_id_list,
    validate_int,
    validate_list,
    validate_non_empty_string,
    validate_non_negative_number,
    validate_number,
    validate_positive_number,
    validate_vertex_record,
    _GRAPH_ACTIONS,
    _INTERACT_ACTIONS,
)


def setup_function() -> None:
    """Clear graphs between tests."""
    _graphs.clear()


# ===================================================================
# Unit tests for primitive validators
# ===================================================================


class TestValidateNonEmptyString:
    def test_valid(self) -> None:
        assert validate_non_empty_string("hello", "f") == "hello"

    def test_strips_whitespace(self) -> None:
        assert validate_non_empty_string("  hi  ", "f") == "hi"

    def test_whitespace_only(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            validate_non_empty_string("   ", "field")

    def test_not_a_string(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            validate_non_empty_string(123, "field")


class TestValidateNumber:
    def test_valid_int(self) -> None:
        assert validate_number(42, "n") == 42.0

    def test_min_val(self) -> None:
        with pytest.raises(ValidationError, match=">="):
            validate_number(-1, "n", min_val=0)

    def test_max_val(self) -> None:
        with pytest.raises(ValidationError, match="<="):
            validate_number(200, "n", max_val=100)

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="number"):
            validate_number(True, "n")

    def test_positive(self) -> None:
        with pytest.raises(ValidationError):
            validate_positive_number(0, "factor")
        assert validate_non_negative_number(0, "pad") == 0.0


class TestValidateInt:
    def test_valid(self) -> None:
        assert validate_int(10, "i") == 10

    def test_float_rejected(self) -> None:
        with pytest.raises(ValidationError, match="integer"):
            validate_int(3.5, "i")


class TestValidateContainers:
    def test_bool(self) -> None:
        assert validate_bool(False, "b") is False
        with pytest.raises(ValidationError, match="boolean"):
            validate_bool("yes", "b")

    def test_list_min_length(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            validate_list([], "l", min_length=1)

    def test_dict(self) -> None:
        with pytest.raises(ValidationError, match="dict"):
            validate_dict([], "d")

    def test_id_list(self) -> None:
        assert validate_id_list(["a", "b"], "ids") == ["a", "b"]
        with pytest.raises(ValidationError, match="item 1"):
            validate_id_list(["a", ""], "ids")


class TestValidateAction:
    def test_case_insensitive(self) -> None:
        assert validate_action(" LOAD ", "graph", _GRAPH_ACTIONS) == "load"

    def test_missing(self) -> None:
        with pytest.raises(ValidationError, match="requires an 'action'"):
            validate_action("", "graph", _GRAPH_ACTIONS)

    def test_unknown_lists_choices(self) -> None:
        with pytest.raises(ValidationError, match="toggle_collapse"):
            validate_action("explode", "interact", _INTERACT_ACTIONS)


# ===================================================================
# Graph payload validators
# ===================================================================


class TestGraphPayload:
    def test_valid(self, sample_payload) -> None:
        assert validate_graph_payload(sample_payload) is sample_payload

    def test_vertices_required(self) -> None:
        with pytest.raises(ValidationError, match="vertices"):
            validate_graph_payload({"edges": []})

    def test_list_vertices_need_id(self) -> None:
        with pytest.raises(ValidationError, match="index 0"):
            validate_graph_payload({"vertices": [{"type": "group"}]})

    def test_bad_parent(self) -> None:
        with pytest.raises(ValidationError, match="parentId"):
            validate_vertex_record("a", {"parentId": 3})

    def test_bad_style(self) -> None:
        with pytest.raises(ValidationError, match="style"):
            validate_vertex_record("a", {"style": "fill=red"})

    def test_edge_missing_target(self) -> None:
        with pytest.raises(ValidationError, match="end_node"):
            validate_edge_record({"start_node": "a"}, 2)

    def test_edges_must_be_list(self) -> None:
        with pytest.raises(ValidationError, match="edges"):
            validate_graph_payload({"vertices": {}, "edges": {}})


class TestLayoutOptions:
    def test_negative_padding(self) -> None:
        with pytest.raises(ValidationError):
            LayoutEngineConfig.from_options({"groupPadding": -5})

    def test_options_must_be_dict(self) -> None:
        with pytest.raises(ValidationError):
            LayoutEngineConfig.from_options(["nodeRadius"])


# ===================================================================
# Tool-level error strings
# ===================================================================


def test_graph_missing_action() -> None:
    assert graph(action="").startswith("Error:")


def test_graph_unknown_action() -> None:
    result = graph(action="explode", name="x")
    assert "Unknown graph action" in result


def test_graph_missing_name() -> None:
    assert "'name' must be a non-empty string" in graph(action="info")


def test_graph_not_found() -> None:
    assert graph(action="render", name="ghost") == "Error: graph 'ghost' not found."


def test_load_rejects_bad_payload() -> None:
    result = graph(action="load", name="bad", graph_data={"vertices": 5})
    assert result.startswith("Error:")
    assert "bad" not in _graphs


def test_load_rejects_unknown_option(sample_payload) -> None:
    result = graph(action="load", name="g", graph_data=sample_payload,
                   options={"spin": True})
    assert "Unknown layout option" in result


def test_interact_requires_vertex_id(sample_payload) -> None:
    graph(action="load", name="g", graph_data=sample_payload)
    assert "'vertex_id' must be a non-empty string" in interact(action="drag", name="g")


def test_interact_rejects_bad_append(sample_payload) -> None:
    graph(action="load", name="g", graph_data=sample_payload)
    result = interact(action="select_vertex", name="g", vertex_id="web-1", append="yes")
    assert "boolean" in result


def test_interact_bad_filter_list(sample_payload) -> None:
    graph(action="load", name="g", graph_data=sample_payload)
    result = interact(action="filter", name="g", vertex_ids=["web-1", 5])
    assert result.startswith("Error:")


def test_inspect_unknown_action() -> None:
    assert "Valid actions" in inspect(action="everything", name="g")
