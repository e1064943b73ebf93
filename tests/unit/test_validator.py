"""Tests for ConnectionValidator."""

from __future__ import annotations

import pytest

from dagcanvas.graph.errors import EdgeEndpointError, SelfLoopRejected
from dagcanvas.graph.models import DagStatus, GraphSnapshot
from dagcanvas.graph.store import GraphStore
from dagcanvas.graph.validator import ConnectionValidator


class TestConnect:
    """Connection requests drawn on the canvas."""

    def test_self_loop_rejected_without_mutation(self, triangle: GraphStore) -> None:
        """A self-loop attempt changes nothing and notifies nobody."""
        before = triangle.snapshot()
        seen: list[GraphSnapshot] = []
        triangle.subscribe(seen.append)

        with pytest.raises(SelfLoopRejected) as exc:
            ConnectionValidator(triangle).connect("n1", "n1")

        assert exc.value.to_notice() == "Cannot connect a node to itself!"
        assert triangle.snapshot() == before
        assert seen == []

    def test_connect_adds_edge_and_refreshes_status(self, store: GraphStore) -> None:
        store.add_node("A")
        store.add_node("B")
        validator = ConnectionValidator(store)

        edge = validator.connect("n1", "n2")
        assert store.get_edge(edge.id) == edge
        assert store.status is DagStatus.VALID

        validator.connect("n2", "n1")
        assert store.status is DagStatus.CYCLIC

    def test_duplicate_connection_allowed(self, store: GraphStore) -> None:
        store.add_node("A")
        store.add_node("B")
        validator = ConnectionValidator(store)
        validator.connect("n1", "n2")
        validator.connect("n1", "n2")
        assert len(store.edges) == 2

    def test_missing_endpoint(self, store: GraphStore) -> None:
        store.add_node("A")
        with pytest.raises(EdgeEndpointError):
            ConnectionValidator(store).connect("n1", "ghost")
        assert store.edges == []
