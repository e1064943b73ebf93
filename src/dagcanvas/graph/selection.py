"""Selected-id bookkeeping.

SelectionTracker keeps the selected node ids and selected edge ids as
insertion-ordered sets (dict keys). It never checks the graph itself: the
store passes in whether the id currently exists, and calls discard_*() in
the same step as every removal, so the sets stay subsets of live ids.
"""

from __future__ import annotations

from typing import Literal

from dagcanvas.observability.logging import get_logger

log = get_logger(__name__)

ElementKind = Literal["node", "edge"]


class SelectionTracker:
    """Selected node and edge ids, in the order they were selected."""

    def __init__(self) -> None:
        self._nodes: dict[str, None] = {}
        self._edges: dict[str, None] = {}

    def _bucket(self, kind: ElementKind) -> dict[str, None]:
        return self._nodes if kind == "node" else self._edges

    def apply(self, kind: ElementKind, element_id: str, selected: bool, *, exists: bool) -> bool:
        """Apply one selection-change event.

        Args:
            kind: Whether the id names a node or an edge.
            element_id: The id the event refers to.
            selected: True when the element became selected.
            exists: Whether the element is currently on the canvas. Events
                for missing ids are ignored so stale ids are never revived.

        Returns:
            True if the selection changed.
        """
        if not exists:
            log.debug("selection_event_ignored", kind=kind, id=element_id)
            return False
        bucket = self._bucket(kind)
        if selected:
            if element_id in bucket:
                return False
            bucket[element_id] = None
            return True
        if element_id not in bucket:
            return False
        del bucket[element_id]
        return True

    def discard_node(self, node_id: str) -> None:
        self._nodes.pop(node_id, None)

    def discard_edge(self, edge_id: str) -> None:
        self._edges.pop(edge_id, None)

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()

    @property
    def node_ids(self) -> list[str]:
        """Selected node ids, oldest selection first."""
        return list(self._nodes)

    @property
    def edge_ids(self) -> list[str]:
        """Selected edge ids, oldest selection first."""
        return list(self._edges)

    def is_selected(self, kind: ElementKind, element_id: str) -> bool:
        return element_id in self._bucket(kind)

    def __bool__(self) -> bool:
        return bool(self._nodes or self._edges)

    def __repr__(self) -> str:
        return f"SelectionTracker(nodes={self.node_ids}, edges={self.edge_ids})"
