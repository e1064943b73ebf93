"""Layout adapter protocol.

A layout adapter turns the current graph into node positions. The store
never depends on how positions are computed, only on this contract:
positions keyed by node id, top-left corner of each node box.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dagcanvas.graph.models import Edge, LayoutDirection, Position

# Node box used by the canvas renderer
NODE_WIDTH = 150.0
NODE_HEIGHT = 50.0


@dataclass(frozen=True)
class LayoutSettings:
    """Geometry shared by layout adapters.

    Attributes:
        node_width: Width of a node box.
        node_height: Height of a node box.
        rank_sep: Gap between consecutive layers.
        node_sep: Gap between neighbours within a layer.
    """

    node_width: float = NODE_WIDTH
    node_height: float = NODE_HEIGHT
    rank_sep: float = 50.0
    node_sep: float = 50.0


@runtime_checkable
class LayoutAdapter(Protocol):
    """Compute positions for every node of a graph."""

    def layout(
        self,
        node_ids: Sequence[str],
        edges: Sequence[Edge],
        direction: LayoutDirection,
    ) -> dict[str, Position]:
        """Return a position for each id in ``node_ids``."""
        ...
