"""Gatekeeping for new connections."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dagcanvas.graph.errors import SelfLoopRejected
from dagcanvas.observability.logging import get_logger

if TYPE_CHECKING:
    from dagcanvas.graph.models import Edge
    from dagcanvas.graph.store import GraphStore

log = get_logger(__name__)


class ConnectionValidator:
    """Decide whether a proposed edge may be added, then add it.

    Parallel edges between the same ordered pair are accepted; only
    self-loops are refused. The store recomputes the DAG status as part
    of the insertion, so a successful connect() returns with the status
    already reflecting the new edge.
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    def connect(self, source: str, target: str) -> Edge:
        """Validate and insert the edge ``source -> target``.

        Raises:
            SelfLoopRejected: If source equals target. Nothing is mutated.
            EdgeEndpointError: If either endpoint is not on the canvas.
        """
        if source == target:
            log.debug("self_loop_rejected", node=source)
            raise SelfLoopRejected(source)
        return self._store.add_edge(source, target)
