"""Graph storage backend protocol and dict-based implementation.

The GraphStorage protocol defines the low-level storage operations that
GraphStore delegates to. Implementations handle raw CRUD; GraphStore
provides the public API with validation, selection bookkeeping, status
recomputation and change notification.

DictGraphStorage is the default (and only) backend: two insertion-ordered
dicts keyed by id.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dagcanvas.graph.models import Edge, Node


@runtime_checkable
class GraphStorage(Protocol):
    """Storage backend protocol for GraphStore.

    Methods raise no domain-specific errors; GraphStore is responsible for
    checking existence first and translating failures into
    NodeNotFoundError, etc.
    """

    # -- Nodes -----------------------------------------------------------------

    def get_node(self, node_id: str) -> Node | None:
        """Get a node by ID, or None if not found."""
        ...

    def has_node(self, node_id: str) -> bool:
        """Check whether a node exists."""
        ...

    def put_node(self, node: Node) -> None:
        """Insert or replace a node, keeping its original insertion slot."""
        ...

    def delete_node(self, node_id: str) -> None:
        """Delete a node by ID. No cascade: caller handles edges first."""
        ...

    def all_nodes(self) -> list[Node]:
        """Return all nodes in insertion order."""
        ...

    def node_count(self) -> int:
        """Return total number of nodes."""
        ...

    # -- Edges -----------------------------------------------------------------

    def get_edge(self, edge_id: str) -> Edge | None:
        """Get an edge by ID, or None if not found."""
        ...

    def has_edge(self, edge_id: str) -> bool:
        """Check whether an edge exists."""
        ...

    def put_edge(self, edge: Edge) -> None:
        """Insert or replace an edge (no endpoint validation)."""
        ...

    def delete_edge(self, edge_id: str) -> None:
        """Delete an edge by ID."""
        ...

    def all_edges(self) -> list[Edge]:
        """Return all edges in insertion order."""
        ...

    def edges_referencing(self, node_id: str) -> list[Edge]:
        """Return all edges where *node_id* is the source or target."""
        ...

    def edge_count(self) -> int:
        """Return total number of edges."""
        ...

    # -- Bulk ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove every node and edge."""
        ...


class DictGraphStorage:
    """In-memory dict-based graph storage."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}

    # -- Nodes -----------------------------------------------------------------

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def put_node(self, node: Node) -> None:
        self._nodes[node.id] = node

    def delete_node(self, node_id: str) -> None:
        del self._nodes[node_id]

    def all_nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def node_count(self) -> int:
        return len(self._nodes)

    # -- Edges -----------------------------------------------------------------

    def get_edge(self, edge_id: str) -> Edge | None:
        return self._edges.get(edge_id)

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def put_edge(self, edge: Edge) -> None:
        self._edges[edge.id] = edge

    def delete_edge(self, edge_id: str) -> None:
        del self._edges[edge_id]

    def all_edges(self) -> list[Edge]:
        return list(self._edges.values())

    def edges_referencing(self, node_id: str) -> list[Edge]:
        return [e for e in self._edges.values() if node_id in (e.source, e.target)]

    def edge_count(self) -> int:
        return len(self._edges)

    # -- Bulk ------------------------------------------------------------------

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()
