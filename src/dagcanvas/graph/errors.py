"""Graph edit error types with user-facing notices.

These errors are raised when a requested edit is rejected, similar to a
constraint violation in a database. None of them leave the graph in a
modified state: every check runs before the first mutation.

Each error can format itself as a short notice for the presentation layer.
The controller catches them at the event boundary; library callers see the
exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Literal

NoticeLevel = Literal["silent", "warning", "error"]


class GraphEditError(Exception):
    """Base class for rejected graph edits.

    Subclasses set ``level`` and implement to_notice() to provide the
    transient message shown to the user.
    """

    level: NoticeLevel = "warning"

    def to_notice(self) -> str:
        """Format error as a one-line user notice."""
        raise NotImplementedError


@dataclass
class SelfLoopRejected(GraphEditError):
    """Raised when a connection would link a node to itself.

    Attributes:
        node_id: The node used as both source and target.
    """

    node_id: str

    def __post_init__(self) -> None:
        super().__init__(f"Self-loop on '{self.node_id}' rejected")

    def to_notice(self) -> str:
        return "Cannot connect a node to itself!"


@dataclass
class NoSelectionForDelete(GraphEditError):
    """Raised when the single-delete command runs with no node selected."""

    level: NoticeLevel = field(default="error", init=False)

    def __post_init__(self) -> None:
        super().__init__("No node selected for deletion")

    def to_notice(self) -> str:
        return "Please select a node to delete"


@dataclass
class EmptyLabelError(GraphEditError):
    """Raised when adding a node with a blank or missing label.

    The add is aborted without a visible notice.
    """

    label: str | None = None
    level: NoticeLevel = field(default="silent", init=False)

    def __post_init__(self) -> None:
        super().__init__("Node label must not be empty")

    def to_notice(self) -> str:
        return ""


@dataclass
class NodeNotFoundError(GraphEditError):
    """Raised when referencing a node that is not on the canvas.

    Attributes:
        node_id: The ID that was referenced but doesn't exist.
        available: Node IDs currently on the canvas.
        context: Description of where the reference occurred.
    """

    node_id: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        msg = f"Node '{self.node_id}' not found"
        if self.context:
            msg += f" ({self.context})"
        super().__init__(msg)

    def suggestions(self) -> list[str]:
        """Find similar IDs that might be typos."""
        return get_close_matches(self.node_id, self.available, n=3, cutoff=0.6)

    def to_notice(self) -> str:
        notice = f"Node '{self.node_id}' does not exist"
        suggestions = self.suggestions()
        if suggestions:
            notice += f" (did you mean {', '.join(suggestions)}?)"
        return notice


@dataclass
class EdgeNotFoundError(GraphEditError):
    """Raised when referencing an edge that is not on the canvas."""

    edge_id: str

    def __post_init__(self) -> None:
        super().__init__(f"Edge '{self.edge_id}' not found")

    def to_notice(self) -> str:
        return f"Edge '{self.edge_id}' does not exist"


@dataclass
class DuplicateIdError(GraphEditError):
    """Raised when seeding a canvas with two elements sharing an id.

    Attributes:
        element_id: The repeated id.
        kind: "node" or "edge".
    """

    element_id: str
    kind: Literal["node", "edge"] = "node"

    def __post_init__(self) -> None:
        super().__init__(f"Duplicate {self.kind} id '{self.element_id}'")

    def to_notice(self) -> str:
        return f"A {self.kind} with id '{self.element_id}' already exists"


@dataclass
class EdgeEndpointError(GraphEditError):
    """Raised when a connection references non-existent endpoints.

    Both the source and target nodes must exist before an edge can be
    created between them.

    Attributes:
        source: Source node ID.
        target: Target node ID.
        missing: Which endpoint is missing ("source", "target", or "both").
    """

    source: str
    target: str
    missing: Literal["source", "target", "both"]

    def __post_init__(self) -> None:
        if self.missing == "both":
            msg = f"Connection endpoints not found: '{self.source}' and '{self.target}'"
        elif self.missing == "source":
            msg = f"Connection source not found: '{self.source}'"
        else:
            msg = f"Connection target not found: '{self.target}'"
        super().__init__(msg)

    def to_notice(self) -> str:
        return str(self)


@dataclass
class GraphCorruptionError(Exception):
    """Raised when invariant checks detect an inconsistent canvas state.

    Unlike GraphEditError, this indicates a code bug rather than a rejected
    user action.

    Attributes:
        violations: List of invariant violations found.
        operation: Operation after which corruption was detected.
    """

    violations: list[str]
    operation: str = ""

    def __post_init__(self) -> None:
        msg = f"Graph corruption detected after {self.operation or 'unknown'} operation"
        if self.violations:
            msg += f": {len(self.violations)} violation(s)"
        super().__init__(msg)

    def __str__(self) -> str:
        lines = [f"Graph corruption detected after {self.operation or 'unknown'} operation:"]
        for v in self.violations[:5]:
            lines.append(f"  - {v}")
        if len(self.violations) > 5:
            lines.append(f"  - ... and {len(self.violations) - 5} more")
        return "\n".join(lines)
