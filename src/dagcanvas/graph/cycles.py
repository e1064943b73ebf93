"""Cycle detection over the canvas edge set.

Pure functions that read edges and never modify them. The store re-runs
find_cycle() after every structural change; there is no incremental
update, each call recomputes from the full edge list.

Algorithm summary:
- Build an adjacency list keyed by source node id.
- Depth-first traversal from every node not yet visited, tracking a
  *visited* set (fully explored) and an *on-stack* set (current path).
- An edge into an on-stack node is a back edge: a cycle exists.

The traversal uses an explicit work stack of neighbour iterators instead of
recursion, so deep chains do not hit the interpreter recursion limit.
Verdicts are identical to the recursive formulation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dagcanvas.graph.models import DagStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from dagcanvas.graph.models import Edge


def build_adjacency(edges: Iterable[Edge]) -> dict[str, list[str]]:
    """Map each source node id to its targets, in edge order.

    Parallel edges produce repeated targets; that does not change the verdict.
    """
    adjacency: dict[str, list[str]] = {}
    for edge in edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
    return adjacency


def find_cycle(edges: Iterable[Edge]) -> list[str] | None:
    """Return one directed cycle as a closed node-id path, or None.

    The returned list starts and ends with the same node id, e.g.
    ``["n1", "n2", "n3", "n1"]``. Roots are tried in the order their first
    outgoing edge appears; nodes without outgoing edges cannot start a cycle
    and are never roots.

    Args:
        edges: Edges of the directed graph.

    Returns:
        Node ids along the first cycle found, or None if the graph is acyclic.
    """
    adjacency = build_adjacency(edges)
    visited: set[str] = set()
    on_stack: set[str] = set()

    for root in adjacency:
        if root in visited:
            continue

        path: list[str] = [root]
        frames: list[Iterator[str]] = [iter(adjacency[root])]
        visited.add(root)
        on_stack.add(root)

        while frames:
            neighbour = next(frames[-1], None)
            if neighbour is None:
                # All outgoing edges explored without a cycle
                on_stack.discard(path.pop())
                frames.pop()
                continue
            if neighbour in on_stack:
                start = path.index(neighbour)
                return [*path[start:], neighbour]
            if neighbour in visited:
                continue
            visited.add(neighbour)
            on_stack.add(neighbour)
            path.append(neighbour)
            frames.append(iter(adjacency.get(neighbour, ())))

    return None


def has_cycle(edges: Iterable[Edge]) -> bool:
    """Check whether the directed graph induced by ``edges`` has a cycle."""
    return find_cycle(edges) is not None


def dag_status(edges: Iterable[Edge]) -> DagStatus:
    """Compute the DAG status for an edge set."""
    return DagStatus.CYCLIC if has_cycle(edges) else DagStatus.VALID
