"""Canvas graph value types.

Nodes and edges are immutable records. The store replaces a record whenever
one of its fields changes, so a reference handed out earlier never observes
a later mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

VALID_LABEL = "✅ DAG is valid"
CYCLIC_LABEL = "❌ Invalid DAG: Cycle detected"


class DagStatus(Enum):
    """Acyclicity verdict for the current edge set."""

    VALID = "valid"
    CYCLIC = "cyclic"

    @property
    def label(self) -> str:
        """User-facing status text."""
        return VALID_LABEL if self is DagStatus.VALID else CYCLIC_LABEL


class LayoutDirection(Enum):
    """Orientation hint passed to the layout computation."""

    TOP_TO_BOTTOM = "TB"
    LEFT_TO_RIGHT = "LR"

    @property
    def is_horizontal(self) -> bool:
        return self is LayoutDirection.LEFT_TO_RIGHT


class HandleSide(Enum):
    """Side of a node box where connections attach."""

    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


@dataclass(frozen=True)
class Position:
    """Top-left corner of a node box in canvas coordinates."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Node:
    """A labelled vertex on the canvas.

    Attributes:
        id: Unique node identifier.
        label: Display text.
        position: Canvas position, changed only by layout or drags.
        selected: Mirrors membership in the selected-node set.
        source_handle: Side outgoing connections leave from.
        target_handle: Side incoming connections arrive at.
    """

    id: str
    label: str
    position: Position = field(default_factory=Position)
    selected: bool = False
    source_handle: HandleSide = HandleSide.RIGHT
    target_handle: HandleSide = HandleSide.LEFT


@dataclass(frozen=True)
class Edge:
    """A directed connection from ``source`` to ``target``."""

    id: str
    source: str
    target: str
    selected: bool = False


@dataclass(frozen=True)
class GraphSnapshot:
    """Consistent view of the canvas after a completed mutation."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    selected_node_ids: frozenset[str]
    selected_edge_ids: frozenset[str]
    status: DagStatus

    @property
    def status_label(self) -> str:
        return self.status.label

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]
