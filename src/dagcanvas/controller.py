"""Event dispatch between the presentation layer and the graph store.

The controller is the boundary of the core. It receives discrete UI events
(change batches, connect requests, toolbar commands, key presses), routes
them to the validator, selection tracker and store, and turns rejected edits
into transient notices. It never raises GraphEditError to its caller.

The one deferred step is the viewport refit after a layout: it is queued on
a DeferredQueue and runs when the host flushes the queue on its next loop
tick, after the new positions have been rendered.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError

from dagcanvas.config import CanvasConfig
from dagcanvas.graph.errors import GraphEditError, NoticeLevel
from dagcanvas.graph.validator import ConnectionValidator
from dagcanvas.layout.layered import LayeredLayout
from dagcanvas.observability.logging import get_logger

if TYPE_CHECKING:
    from pydantic import BaseModel

    from dagcanvas.graph.models import Edge, LayoutDirection, Node
    from dagcanvas.graph.store import GraphStore
    from dagcanvas.layout.base import LayoutAdapter

log = get_logger(__name__)


class Notifier(Protocol):
    """Sink for transient user notices (toasts, status lines)."""

    def notify(self, level: NoticeLevel, message: str) -> None: ...


class Viewport(Protocol):
    """The visible canvas area."""

    def fit_view(self, *, padding: float, duration_ms: int) -> None: ...


class LogNotifier:
    """Notifier that only records notices in the log."""

    def notify(self, level: NoticeLevel, message: str) -> None:
        log.info("notice", level=level, message=message)


class DeferredQueue:
    """Callbacks postponed until the host's next loop tick.

    A failing callback is logged and dropped; it never propagates into the
    host loop and never touches graph state.
    """

    def __init__(self) -> None:
        self._pending: deque[tuple[str, Callable[[], None]]] = deque()

    def schedule(self, callback: Callable[[], None], *, name: str = "") -> None:
        self._pending.append((name or getattr(callback, "__name__", "callback"), callback))

    def flush(self) -> int:
        """Run every callback queued before this call.

        Callbacks scheduled while flushing wait for the next flush.

        Returns:
            Number of callbacks that ran successfully.
        """
        ran = 0
        for _ in range(len(self._pending)):
            name, callback = self._pending.popleft()
            try:
                callback()
            except Exception:
                log.exception("deferred_callback_failed", name=name)
            else:
                ran += 1
        return ran

    def cancel_all(self) -> int:
        """Drop pending callbacks. Returns how many were dropped."""
        dropped = len(self._pending)
        self._pending.clear()
        return dropped

    def __len__(self) -> int:
        return len(self._pending)


class CanvasController:
    """Routes presentation-layer events into the graph store."""

    def __init__(
        self,
        store: GraphStore,
        *,
        layout_adapter: LayoutAdapter | None = None,
        notifier: Notifier | None = None,
        viewport: Viewport | None = None,
        config: CanvasConfig | None = None,
        deferred: DeferredQueue | None = None,
    ) -> None:
        self.config = config or CanvasConfig()
        self.store = store
        self.validator = ConnectionValidator(store)
        self.layout_adapter = layout_adapter or LayeredLayout(self.config.layout)
        self.notifier: Notifier = notifier or LogNotifier()
        self.viewport = viewport
        self.deferred = deferred or DeferredQueue()

    # -- Canvas events ---------------------------------------------------------

    def on_nodes_change(self, changes: Iterable[Mapping[str, Any] | BaseModel]) -> None:
        """Apply a node change batch (selection, drags, removals)."""
        try:
            self.store.apply_node_changes(changes)
        except ValidationError as e:
            self._reject_batch("node", e)

    def on_edges_change(self, changes: Iterable[Mapping[str, Any] | BaseModel]) -> None:
        """Apply an edge change batch (selection, removals)."""
        try:
            self.store.apply_edge_changes(changes)
        except ValidationError as e:
            self._reject_batch("edge", e)

    def on_connect(self, source: str, target: str) -> Edge | None:
        """Handle a connection drawn between two node handles.

        Returns:
            The new edge, or None if the connection was rejected.
        """
        try:
            return self.validator.connect(source, target)
        except GraphEditError as e:
            self._report(e)
            return None

    def on_key(self, key: str) -> bool:
        """Handle a key press. Delete keys remove the current selection.

        Returns:
            True if the key was handled.
        """
        if key not in self.config.delete_keys:
            return False
        self.store.delete_selected()
        return True

    # -- Toolbar commands ------------------------------------------------------

    def add_node(self, label: str | None) -> Node | None:
        """Add a node; a blank label aborts silently."""
        try:
            return self.store.add_node(label)
        except GraphEditError as e:
            self._report(e)
            return None

    def delete_node(self) -> Node | None:
        """Delete the first selected node, or warn when nothing is selected."""
        try:
            return self.store.delete_first_selected_node()
        except GraphEditError as e:
            self._report(e)
            return None

    def clear_canvas(self) -> None:
        self.store.clear_all()

    def run_layout(self, direction: LayoutDirection | None = None) -> None:
        """Lay out the current graph and refit the viewport afterwards.

        Args:
            direction: Layout direction; the configured default if omitted.
        """
        direction = direction or self.config.direction
        nodes = self.store.nodes
        positions = self.layout_adapter.layout(
            [node.id for node in nodes],
            self.store.edges,
            direction,
        )
        self.store.apply_layout(positions, direction)

        if self.viewport is not None:
            viewport = self.viewport

            def fit_view() -> None:
                viewport.fit_view(
                    padding=self.config.fit_padding,
                    duration_ms=self.config.fit_duration_ms,
                )

            self.deferred.schedule(fit_view, name="fit_view")

    # -- Internals -------------------------------------------------------------

    def _report(self, error: GraphEditError) -> None:
        log.info("edit_rejected", error=type(error).__name__, detail=str(error))
        if error.level != "silent":
            self.notifier.notify(error.level, error.to_notice())

    def _reject_batch(self, kind: str, error: ValidationError) -> None:
        log.warning("change_batch_rejected", kind=kind, errors=error.error_count())
        self.notifier.notify("error", f"Ignored malformed {kind} change batch")
