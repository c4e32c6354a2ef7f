"""Shared fixtures: a small boundary → network → cluster → app → resource graph."""

import pytest

from netgraph_mcp.layout_engine import LayoutEngineConfig, compute_layout
from netgraph_mcp.models import Graph, load_graph


def _payload() -> dict:
    return {
        "vertices": {
            "internet-boundary": {"type": "group", "label": "Internet"},
            "private-network": {"type": "group", "parentId": "internet-boundary",
                                "label": "VPC"},
            "cluster-a": {"type": "group", "parentId": "private-network",
                          "label": "Cluster: a"},
            "app-web": {"type": "group", "parentId": "cluster-a", "label": "App: web"},
            "app-db": {"type": "group", "parentId": "cluster-a", "label": "App: db"},
            "web-1": {"type": "Compute", "parentId": "app-web", "name": "web-1",
                      "address": "10.0.0.1"},
            "web-2": {"type": "Compute", "parentId": "app-web", "name": "web-2"},
            "db-1": {"type": "Resource", "parentId": "app-db", "name": "db-1"},
            "lb": {"type": "TrafficController", "name": "lb", "public_ip": "true"},
        },
        "edges": [
            {"start_node": "lb", "end_node": "web-1"},
            {"start_node": "web-1", "end_node": "db-1"},
            {"start_node": "web-2", "end_node": "db-1"},
        ],
    }


@pytest.fixture
def sample_payload() -> dict:
    return _payload()


@pytest.fixture
def sample_graph() -> Graph:
    return load_graph(_payload())


@pytest.fixture
def laid_out_graph() -> Graph:
    graph = load_graph(_payload())
    compute_layout(graph.vertices, LayoutEngineConfig())
    return graph
