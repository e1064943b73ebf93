"""Canvas graph state container.

GraphStore is the single owner and mutator of the canvas graph. It holds the
node/edge collections (through a GraphStorage backend), the selection sets
and the cached DAG status, and serializes every edit through its own methods.

The store enforces a few invariants, checked before the first write of any
operation so a rejected edit leaves no trace:
- Node ids and edge ids are unique and never reused after deletion
- Every edge endpoint references an existing node; self-loops are refused
- Selection only ever names existing elements
- The DAG status is recomputed after each structural change, before any
  listener or caller can observe the new state
"""

from __future__ import annotations

import itertools
import random
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from dagcanvas.graph.changes import PositionChange, RemoveChange, SelectChange, parse_changes
from dagcanvas.graph.cycles import dag_status, find_cycle
from dagcanvas.graph.errors import (
    DuplicateIdError,
    EdgeEndpointError,
    EdgeNotFoundError,
    EmptyLabelError,
    GraphCorruptionError,
    NodeNotFoundError,
    NoSelectionForDelete,
    SelfLoopRejected,
)
from dagcanvas.graph.models import (
    DagStatus,
    Edge,
    GraphSnapshot,
    HandleSide,
    LayoutDirection,
    Node,
    Position,
)
from dagcanvas.graph.selection import ElementKind, SelectionTracker
from dagcanvas.graph.storage import DictGraphStorage, GraphStorage
from dagcanvas.observability.logging import get_logger

if TYPE_CHECKING:
    from pydantic import BaseModel

log = get_logger(__name__)

Listener = Callable[[GraphSnapshot], None]

# Spread of the random drop position for new nodes
_NEW_NODE_SPREAD = 100.0

_HANDLES: dict[LayoutDirection, tuple[HandleSide, HandleSide]] = {
    LayoutDirection.TOP_TO_BOTTOM: (HandleSide.BOTTOM, HandleSide.TOP),
    LayoutDirection.LEFT_TO_RIGHT: (HandleSide.RIGHT, HandleSide.LEFT),
}


class GraphStore:
    """Owner of the canvas graph, its selection and its DAG status.

    Storage is delegated to a GraphStorage backend (DictGraphStorage by
    default). Listeners registered with subscribe() receive a GraphSnapshot
    after every completed mutation.
    """

    def __init__(
        self,
        *,
        storage: GraphStorage | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            storage: Pre-built storage backend, possibly already populated.
            rng: Random source for new-node drop positions.
        """
        self._storage: GraphStorage = storage if storage is not None else DictGraphStorage()
        self._selection = SelectionTracker()
        self._rng = rng or random.Random()
        self._node_seq = itertools.count(1)
        self._edge_seq = itertools.count(1)
        self._listeners: list[Listener] = []
        self._status = self._compute_status()
        # Every id ever present, so deleted ids are never handed out again
        self._issued_node_ids: set[str] = set()
        self._issued_edge_ids: set[str] = set()

        for node in self._storage.all_nodes():
            self._issued_node_ids.add(node.id)
            if node.selected:
                self._selection.apply("node", node.id, True, exists=True)
        for edge in self._storage.all_edges():
            self._issued_edge_ids.add(edge.id)
            if edge.selected:
                self._selection.apply("edge", edge.id, True, exists=True)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_elements(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge] = (),
        *,
        rng: random.Random | None = None,
    ) -> GraphStore:
        """Build a store from pre-made nodes and edges.

        Raises:
            DuplicateIdError: If two nodes or two edges share an id.
            SelfLoopRejected: If an edge connects a node to itself.
            EdgeEndpointError: If an edge references a missing node.
        """
        storage = DictGraphStorage()
        for node in nodes:
            if storage.has_node(node.id):
                raise DuplicateIdError(node.id, "node")
            storage.put_node(node)
        for edge in edges:
            if storage.has_edge(edge.id):
                raise DuplicateIdError(edge.id, "edge")
            _check_endpoints(storage, edge.source, edge.target)
            storage.put_edge(edge)
        return cls(storage=storage, rng=rng)

    @classmethod
    def with_example(cls, *, rng: random.Random | None = None) -> GraphStore:
        """Create the starter canvas: two nodes joined by one edge."""
        return cls.from_elements(
            [
                Node("n1", "Node 1", Position(0, 0)),
                Node("n2", "Node 2", Position(0, 100)),
            ],
            [Edge("n1-n2", "n1", "n2")],
            rng=rng,
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def status(self) -> DagStatus:
        """DAG status of the current edge set."""
        return self._status

    @property
    def status_label(self) -> str:
        return self._status.label

    @property
    def nodes(self) -> list[Node]:
        return self._storage.all_nodes()

    @property
    def edges(self) -> list[Edge]:
        return self._storage.all_edges()

    @property
    def selected_node_ids(self) -> list[str]:
        return self._selection.node_ids

    @property
    def selected_edge_ids(self) -> list[str]:
        return self._selection.edge_ids

    def get_node(self, node_id: str) -> Node | None:
        return self._storage.get_node(node_id)

    def get_edge(self, edge_id: str) -> Edge | None:
        return self._storage.get_edge(edge_id)

    def has_node(self, node_id: str) -> bool:
        return self._storage.has_node(node_id)

    def snapshot(self) -> GraphSnapshot:
        """Return an immutable view of the current state."""
        return GraphSnapshot(
            nodes=tuple(self._storage.all_nodes()),
            edges=tuple(self._storage.all_edges()),
            selected_node_ids=frozenset(self._selection.node_ids),
            selected_edge_ids=frozenset(self._selection.edge_ids),
            status=self._status,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for completed mutations.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -------------------------------------------------------------------------
    # Node operations
    # -------------------------------------------------------------------------

    def add_node(self, label: str | None, position: Position | None = None) -> Node:
        """Add a node with a fresh id.

        Args:
            label: Display text. Blank labels are rejected.
            position: Drop position; random within the top-left corner if omitted.

        Returns:
            The created node.

        Raises:
            EmptyLabelError: If the label is missing or whitespace only.
        """
        if label is None or not label.strip():
            raise EmptyLabelError(label)
        if position is None:
            position = Position(
                self._rng.random() * _NEW_NODE_SPREAD,
                self._rng.random() * _NEW_NODE_SPREAD,
            )
        node_id = self._next_id("n", self._node_seq, self._issued_node_ids)
        node = Node(node_id, label, position)
        self._storage.put_node(node)
        log.info("node_added", id=node_id, label=label)
        # Adding an isolated node cannot change acyclicity
        self._commit("add_node")
        return node

    def remove_node(self, node_id: str) -> list[Edge]:
        """Remove a node and every edge touching it.

        Returns:
            The edges removed by the cascade.

        Raises:
            NodeNotFoundError: If the node doesn't exist.
        """
        self._require_node(node_id, "remove_node")
        removed = self._remove_node(node_id)
        self._commit("remove_node", structural=True)
        return removed

    def move_node(self, node_id: str, position: Position) -> None:
        """Record a drag. Does not affect edges or status.

        Raises:
            NodeNotFoundError: If the node doesn't exist.
        """
        node = self._require_node(node_id, "move_node")
        self._storage.put_node(replace(node, position=position))
        self._commit("move_node")

    def select_node(self, node_id: str, selected: bool = True) -> bool:
        """Select or deselect a node. Unknown ids are ignored.

        Returns:
            True if the selection changed.
        """
        changed = self._select("node", node_id, selected)
        if changed:
            self._commit("select_node")
        return changed

    def delete_first_selected_node(self) -> Node:
        """Delete the first selected node in canvas order, with its edges.

        Returns:
            The deleted node.

        Raises:
            NoSelectionForDelete: If no node is selected.
        """
        target = next((n for n in self._storage.all_nodes() if n.selected), None)
        if target is None:
            raise NoSelectionForDelete()
        self._remove_node(target.id)
        self._commit("delete_node", structural=True)
        return target

    # -------------------------------------------------------------------------
    # Edge operations
    # -------------------------------------------------------------------------

    def add_edge(self, source: str, target: str) -> Edge:
        """Insert a directed edge. Parallel edges are allowed.

        Normally reached through ConnectionValidator.connect().

        Raises:
            SelfLoopRejected: If source equals target.
            EdgeEndpointError: If either endpoint doesn't exist.
        """
        _check_endpoints(self._storage, source, target)
        edge_id = self._next_id("e", self._edge_seq, self._issued_edge_ids)
        edge = Edge(edge_id, source, target)
        self._storage.put_edge(edge)
        log.info("edge_added", id=edge_id, source=source, target=target)
        self._commit("add_edge", structural=True)
        return edge

    def remove_edge(self, edge_id: str) -> Edge:
        """Remove an edge.

        Raises:
            EdgeNotFoundError: If the edge doesn't exist.
        """
        edge = self._storage.get_edge(edge_id)
        if edge is None:
            raise EdgeNotFoundError(edge_id)
        self._remove_edge(edge_id)
        self._commit("remove_edge", structural=True)
        return edge

    def select_edge(self, edge_id: str, selected: bool = True) -> bool:
        """Select or deselect an edge. Unknown ids are ignored.

        Returns:
            True if the selection changed.
        """
        changed = self._select("edge", edge_id, selected)
        if changed:
            self._commit("select_edge")
        return changed

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    def delete_selected(self) -> tuple[list[str], list[str]]:
        """Remove every selected node and edge, then clear the selection.

        Edges incident to a removed node go too. Status is recomputed once,
        over the resulting edge set.

        Returns:
            (removed node ids, removed edge ids), cascaded edges included.
        """
        node_ids = self._selection.node_ids
        edge_ids = self._selection.edge_ids
        removed_edges: list[str] = []

        for node_id in node_ids:
            removed_edges.extend(e.id for e in self._remove_node(node_id))
        for edge_id in edge_ids:
            # May already be gone through a node cascade
            if self._storage.has_edge(edge_id):
                self._remove_edge(edge_id)
                removed_edges.append(edge_id)
        self._selection.clear()

        log.info("selection_deleted", nodes=node_ids, edges=removed_edges)
        self._commit("delete_selected", structural=True)
        return node_ids, removed_edges

    def clear_all(self) -> None:
        """Reset to an empty canvas. The empty graph is a valid DAG."""
        self._storage.clear()
        self._selection.clear()
        log.info("canvas_cleared")
        self._commit("clear_all", structural=True)

    def apply_layout(
        self,
        positions: Mapping[str, Position],
        direction: LayoutDirection | None = None,
    ) -> None:
        """Apply positions computed by a layout adapter.

        Positions are applied verbatim; every other node field is preserved.
        With a direction, handle sides follow the flow (TB: bottom→top,
        LR: right→left). Edges and status are untouched.

        Args:
            positions: New position per node id. Ids not on the canvas are
                ignored; nodes without an entry keep their position.
            direction: Layout direction that produced the positions.
        """
        unknown = [nid for nid in positions if not self._storage.has_node(nid)]
        if unknown:
            log.warning("layout_unknown_nodes", ids=unknown)

        for node in self._storage.all_nodes():
            updates: dict[str, Any] = {}
            if node.id in positions:
                updates["position"] = positions[node.id]
            if direction is not None:
                updates["source_handle"], updates["target_handle"] = _HANDLES[direction]
            if updates:
                self._storage.put_node(replace(node, **updates))

        log.info(
            "layout_applied",
            nodes=len(positions) - len(unknown),
            direction=direction.value if direction else None,
        )
        self._commit("apply_layout")

    def apply_node_changes(self, changes: Iterable[Mapping[str, Any] | BaseModel]) -> None:
        """Apply a batch of node change records from the canvas.

        Records are processed in order. Selection and removal follow the
        same rules as select_node()/remove_node(); drags update positions.
        Removal of an unknown id is ignored. Status is recomputed once at
        the end if anything was removed.
        """
        structural = False
        for change in parse_changes(changes):
            if isinstance(change, SelectChange):
                self._select("node", change.id, change.selected)
            elif isinstance(change, PositionChange):
                node = self._storage.get_node(change.id)
                if node is not None and change.position is not None:
                    self._storage.put_node(replace(node, position=change.position.to_position()))
            elif isinstance(change, RemoveChange):
                if self._storage.has_node(change.id):
                    self._remove_node(change.id)
                    structural = True
                else:
                    log.debug("remove_change_ignored", kind="node", id=change.id)
        self._commit("node_changes", structural=structural)

    def apply_edge_changes(self, changes: Iterable[Mapping[str, Any] | BaseModel]) -> None:
        """Apply a batch of edge change records from the canvas.

        Position records make no sense for edges and are ignored.
        """
        structural = False
        for change in parse_changes(changes):
            if isinstance(change, SelectChange):
                self._select("edge", change.id, change.selected)
            elif isinstance(change, RemoveChange):
                if self._storage.has_edge(change.id):
                    self._remove_edge(change.id)
                    structural = True
                else:
                    log.debug("remove_change_ignored", kind="edge", id=change.id)
        self._commit("edge_changes", structural=structural)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_invariants(self) -> list[str]:
        """Check store invariants and return any violations.

        Invariants checked:
        1. All edge endpoints exist and no edge is a self-loop
        2. Selection sets only name existing elements
        3. Each element's ``selected`` flag matches the selection sets
        4. The cached status matches a fresh recomputation

        This is for detecting code bugs, not for validating user input.

        Returns:
            List of violation messages (empty if valid).
        """
        violations: list[str] = []

        for edge in self._storage.all_edges():
            if not self._storage.has_node(edge.source):
                violations.append(f"Edge {edge.id}: source '{edge.source}' does not exist")
            if not self._storage.has_node(edge.target):
                violations.append(f"Edge {edge.id}: target '{edge.target}' does not exist")
            if edge.source == edge.target:
                violations.append(f"Edge {edge.id}: self-loop on '{edge.source}'")
            if edge.selected != self._selection.is_selected("edge", edge.id):
                violations.append(f"Edge {edge.id}: selected flag out of sync")

        for node in self._storage.all_nodes():
            if node.selected != self._selection.is_selected("node", node.id):
                violations.append(f"Node {node.id}: selected flag out of sync")

        for node_id in self._selection.node_ids:
            if not self._storage.has_node(node_id):
                violations.append(f"Selected node '{node_id}' does not exist")
        for edge_id in self._selection.edge_ids:
            if not self._storage.has_edge(edge_id):
                violations.append(f"Selected edge '{edge_id}' does not exist")

        if self._status is not self._compute_status():
            violations.append(f"Cached status {self._status.value} is stale")

        return violations

    def check_invariants(self, operation: str = "") -> None:
        """Raise GraphCorruptionError if any invariant is violated."""
        violations = self.validate_invariants()
        if violations:
            raise GraphCorruptionError(violations, operation=operation)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _next_id(prefix: str, seq: itertools.count[int], issued: set[str]) -> str:
        # Counters only move forward, and skip ids taken by seeded elements
        while True:
            candidate = f"{prefix}{next(seq)}"
            if candidate not in issued:
                issued.add(candidate)
                return candidate

    def _require_node(self, node_id: str, context: str) -> Node:
        node = self._storage.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(
                node_id,
                available=[n.id for n in self._storage.all_nodes()],
                context=context,
            )
        return node

    def _select(self, kind: ElementKind, element_id: str, selected: bool) -> bool:
        element: Node | Edge | None
        if kind == "node":
            element = self._storage.get_node(element_id)
        else:
            element = self._storage.get_edge(element_id)
        changed = self._selection.apply(kind, element_id, selected, exists=element is not None)
        if element is not None and element.selected != selected:
            updated = replace(element, selected=selected)
            if isinstance(updated, Node):
                self._storage.put_node(updated)
            else:
                self._storage.put_edge(updated)
        return changed

    def _remove_node(self, node_id: str) -> list[Edge]:
        cascaded = self._storage.edges_referencing(node_id)
        for edge in cascaded:
            self._remove_edge(edge.id)
        self._storage.delete_node(node_id)
        self._selection.discard_node(node_id)
        log.info("node_removed", id=node_id, cascaded_edges=[e.id for e in cascaded])
        return cascaded

    def _remove_edge(self, edge_id: str) -> None:
        self._storage.delete_edge(edge_id)
        self._selection.discard_edge(edge_id)
        log.debug("edge_removed", id=edge_id)

    def _compute_status(self) -> DagStatus:
        return dag_status(self._storage.all_edges())

    def _commit(self, operation: str, *, structural: bool = False) -> None:
        """Finish an operation: refresh status, then notify listeners."""
        if structural:
            previous = self._status
            cycle = find_cycle(self._storage.all_edges())
            self._status = DagStatus.CYCLIC if cycle else DagStatus.VALID
            if self._status is not previous:
                log.info(
                    "dag_status_changed",
                    operation=operation,
                    status=self._status.value,
                    cycle=cycle,
                )

        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.exception("listener_failed", operation=operation)

    def __repr__(self) -> str:
        return (
            f"GraphStore(nodes={self._storage.node_count()}, "
            f"edges={self._storage.edge_count()}, status={self._status.value})"
        )


def _check_endpoints(storage: GraphStorage, source: str, target: str) -> None:
    if source == target:
        raise SelfLoopRejected(source)
    source_exists = storage.has_node(source)
    target_exists = storage.has_node(target)
    if source_exists and target_exists:
        return
    if not source_exists and not target_exists:
        missing = "both"
    elif not source_exists:
        missing = "source"
    else:
        missing = "target"
    raise EdgeEndpointError(source, target, missing)
