"""Graph package - canvas graph state and DAG validity.

This package provides the in-memory canvas model: nodes, edges, selection,
and a DAG status recomputed after every structural change. GraphStore is
the single owner of that state; everything else reads snapshots.
"""

from dagcanvas.graph.changes import (
    PositionChange,
    RemoveChange,
    SelectChange,
    parse_change,
    parse_changes,
)
from dagcanvas.graph.cycles import build_adjacency, dag_status, find_cycle, has_cycle
from dagcanvas.graph.errors import (
    DuplicateIdError,
    EdgeEndpointError,
    EdgeNotFoundError,
    EmptyLabelError,
    GraphCorruptionError,
    GraphEditError,
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
from dagcanvas.graph.selection import SelectionTracker
from dagcanvas.graph.storage import DictGraphStorage, GraphStorage
from dagcanvas.graph.store import GraphStore
from dagcanvas.graph.validator import ConnectionValidator

__all__ = [
    "ConnectionValidator",
    "DagStatus",
    "DictGraphStorage",
    "DuplicateIdError",
    "Edge",
    "EdgeEndpointError",
    "EdgeNotFoundError",
    "EmptyLabelError",
    "GraphCorruptionError",
    "GraphEditError",
    "GraphSnapshot",
    "GraphStorage",
    "GraphStore",
    "HandleSide",
    "LayoutDirection",
    "Node",
    "NoSelectionForDelete",
    "NodeNotFoundError",
    "Position",
    "PositionChange",
    "RemoveChange",
    "SelectChange",
    "SelectionTracker",
    "SelfLoopRejected",
    "build_adjacency",
    "dag_status",
    "find_cycle",
    "has_cycle",
    "parse_change",
    "parse_changes",
]
