"""Layered (Sugiyama-style) layout on top of networkx.

Phases:
  1. Cycle breaking: edges that would close a cycle are left out of the
     ranking graph, so a cyclic canvas can still be laid out
  2. Layer assignment: longest path from the sources
  3. Ordering within layers: one top-down barycenter sweep
  4. Coordinates: layers stacked along the flow axis, each layer centred
     against the widest one
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

from dagcanvas.graph.models import Position
from dagcanvas.layout.base import LayoutSettings
from dagcanvas.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dagcanvas.graph.models import Edge, LayoutDirection

log = get_logger(__name__)


def build_acyclic_graph(node_ids: Sequence[str], edges: Sequence[Edge]) -> nx.DiGraph:
    """Build a DiGraph from the canvas, skipping edges that close a cycle.

    Edges are considered in canvas order; an edge ``u -> v`` is dropped when
    ``v`` already reaches ``u``. Parallel edges collapse into one.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    for edge in edges:
        if edge.source not in graph or edge.target not in graph:
            continue
        if nx.has_path(graph, edge.target, edge.source):
            log.debug("layout_edge_reversed", id=edge.id, source=edge.source, target=edge.target)
            continue
        graph.add_edge(edge.source, edge.target)
    return graph


def assign_layers(graph: nx.DiGraph) -> dict[str, int]:
    """Rank each node by the longest path reaching it from a source."""
    ranks: dict[str, int] = {}
    for node in nx.topological_sort(graph):
        ranks[node] = max((ranks[p] + 1 for p in graph.predecessors(node)), default=0)
    return ranks


def order_layers(graph: nx.DiGraph, ranks: dict[str, int], node_ids: Sequence[str]) -> list[list[str]]:
    """Group nodes by layer and order each layer by predecessor barycenter.

    The first layer keeps canvas order. Nodes without predecessors in the
    layer above keep their relative canvas order after the others.
    """
    depth = max(ranks.values(), default=-1) + 1
    layers: list[list[str]] = [[] for _ in range(depth)]
    for node_id in node_ids:
        layers[ranks[node_id]].append(node_id)

    for rank in range(1, depth):
        above = {node_id: index for index, node_id in enumerate(layers[rank - 1])}

        def barycenter(node_id: str, above: dict[str, int] = above) -> float:
            indices = [above[p] for p in graph.predecessors(node_id) if p in above]
            return sum(indices) / len(indices) if indices else float("inf")

        layers[rank].sort(key=barycenter)
    return layers


class LayeredLayout:
    """Default layout adapter: top-to-bottom or left-to-right layers."""

    def __init__(self, settings: LayoutSettings | None = None) -> None:
        self.settings = settings or LayoutSettings()

    def layout(
        self,
        node_ids: Sequence[str],
        edges: Sequence[Edge],
        direction: LayoutDirection,
    ) -> dict[str, Position]:
        if not node_ids:
            return {}

        graph = build_acyclic_graph(node_ids, edges)
        layers = order_layers(graph, assign_layers(graph), node_ids)

        s = self.settings
        horizontal = direction.is_horizontal
        # Extent of one node along the flow axis and across it
        along, across = (s.node_width, s.node_height) if horizontal else (s.node_height, s.node_width)
        widest = max(len(layer) for layer in layers)

        positions: dict[str, Position] = {}
        for rank, layer in enumerate(layers):
            offset = (widest - len(layer)) * (across + s.node_sep) / 2
            for index, node_id in enumerate(layer):
                flow = rank * (along + s.rank_sep) + along / 2
                cross = offset + index * (across + s.node_sep) + across / 2
                cx, cy = (flow, cross) if horizontal else (cross, flow)
                # Canvas positions are top-left corners, not centres
                positions[node_id] = Position(cx - s.node_width / 2, cy - s.node_height / 2)

        log.debug("layout_computed", nodes=len(positions), layers=len(layers), direction=direction.value)
        return positions
