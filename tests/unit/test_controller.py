"""Tests for CanvasController and DeferredQueue."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from dagcanvas.config import CanvasConfig
from dagcanvas.controller import CanvasController, DeferredQueue
from dagcanvas.graph.errors import NoticeLevel
from dagcanvas.graph.models import DagStatus, HandleSide, LayoutDirection, Position
from dagcanvas.graph.store import GraphStore


@dataclass
class RecordingNotifier:
    notices: list[tuple[NoticeLevel, str]] = field(default_factory=list)

    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append((level, message))


@dataclass
class RecordingViewport:
    fits: list[tuple[float, int]] = field(default_factory=list)

    def fit_view(self, *, padding: float, duration_ms: int) -> None:
        self.fits.append((padding, duration_ms))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def viewport() -> RecordingViewport:
    return RecordingViewport()


@pytest.fixture
def controller(
    triangle: GraphStore, notifier: RecordingNotifier, viewport: RecordingViewport
) -> CanvasController:
    return CanvasController(triangle, notifier=notifier, viewport=viewport)


class TestDeferredQueue:
    """Next-tick callbacks."""

    def test_flush_runs_in_order(self) -> None:
        queue = DeferredQueue()
        calls: list[int] = []
        queue.schedule(lambda: calls.append(1))
        queue.schedule(lambda: calls.append(2))
        assert len(queue) == 2
        assert queue.flush() == 2
        assert calls == [1, 2]
        assert len(queue) == 0

    def test_callbacks_scheduled_during_flush_wait(self) -> None:
        queue = DeferredQueue()
        calls: list[str] = []

        def first() -> None:
            calls.append("first")
            queue.schedule(lambda: calls.append("second"))

        queue.schedule(first)
        queue.flush()
        assert calls == ["first"]
        queue.flush()
        assert calls == ["first", "second"]

    def test_failing_callback_is_contained(self) -> None:
        queue = DeferredQueue()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        queue.schedule(broken, name="broken")
        queue.schedule(lambda: calls.append("ok"))
        assert queue.flush() == 1
        assert calls == ["ok"]

    def test_cancel_all(self) -> None:
        queue = DeferredQueue()
        queue.schedule(lambda: None)
        assert queue.cancel_all() == 1
        assert queue.flush() == 0


class TestNotices:
    """Rejected edits become notices, never exceptions."""

    def test_self_loop_toast(
        self, controller: CanvasController, notifier: RecordingNotifier
    ) -> None:
        assert controller.on_connect("n1", "n1") is None
        assert notifier.notices == [("warning", "Cannot connect a node to itself!")]
        assert len(controller.store.edges) == 3

    def test_delete_without_selection(
        self, controller: CanvasController, notifier: RecordingNotifier
    ) -> None:
        assert controller.delete_node() is None
        assert notifier.notices == [("error", "Please select a node to delete")]

    def test_blank_label_is_silent(
        self, controller: CanvasController, notifier: RecordingNotifier
    ) -> None:
        assert controller.add_node("  ") is None
        assert notifier.notices == []
        assert len(controller.store.nodes) == 3

    def test_unknown_endpoint(
        self, controller: CanvasController, notifier: RecordingNotifier
    ) -> None:
        assert controller.on_connect("n1", "ghost") is None
        assert notifier.notices == [("warning", "Connection target not found: 'ghost'")]

    def test_malformed_batch(
        self, controller: CanvasController, notifier: RecordingNotifier
    ) -> None:
        controller.on_nodes_change([{"type": "remove"}])
        controller.on_edges_change([{"type": "select", "id": "e1", "selected": "maybe"}])
        assert notifier.notices == [
            ("error", "Ignored malformed node change batch"),
            ("error", "Ignored malformed edge change batch"),
        ]
        assert len(controller.store.nodes) == 3


class TestEvents:
    """Successful event routing."""

    def test_connect(self, controller: CanvasController) -> None:
        controller.store.remove_edge("e3")
        edge = controller.on_connect("n1", "n3")
        assert edge is not None
        assert controller.store.status is DagStatus.VALID

    def test_delete_key_removes_selection(self, controller: CanvasController) -> None:
        controller.on_nodes_change([{"type": "select", "id": "n2", "selected": True}])
        assert controller.on_key("Delete") is True
        assert [n.id for n in controller.store.nodes] == ["n1", "n3"]
        assert [e.id for e in controller.store.edges] == ["e3"]
        assert controller.store.status is DagStatus.VALID

    def test_other_keys_are_not_handled(self, controller: CanvasController) -> None:
        controller.on_nodes_change([{"type": "select", "id": "n2", "selected": True}])
        assert controller.on_key("Backspace") is False
        assert len(controller.store.nodes) == 3

    def test_configured_delete_keys(self, triangle: GraphStore) -> None:
        controller = CanvasController(triangle, config=CanvasConfig(delete_keys=("Backspace",)))
        controller.on_edges_change([{"type": "select", "id": "e3", "selected": True}])
        assert controller.on_key("Backspace") is True
        assert triangle.status is DagStatus.VALID

    def test_delete_node(self, controller: CanvasController) -> None:
        controller.store.select_node("n3")
        node = controller.delete_node()
        assert node is not None and node.id == "n3"

    def test_clear_canvas(self, controller: CanvasController) -> None:
        controller.clear_canvas()
        assert controller.store.nodes == []
        assert controller.store.status is DagStatus.VALID


class TestRunLayout:
    """Layout followed by a deferred viewport refit."""

    def test_positions_and_handles_applied(self, controller: CanvasController) -> None:
        controller.store.remove_edge("e3")
        controller.run_layout(LayoutDirection.TOP_TO_BOTTOM)

        store = controller.store
        positions = [n.position for n in store.nodes]
        assert positions == [Position(0, 0), Position(0, 100), Position(0, 200)]
        assert all(n.source_handle is HandleSide.BOTTOM for n in store.nodes)
        assert all(n.target_handle is HandleSide.TOP for n in store.nodes)

    def test_left_to_right_handles(self, controller: CanvasController) -> None:
        controller.run_layout(LayoutDirection.LEFT_TO_RIGHT)
        node = controller.store.get_node("n1")
        assert node is not None
        assert (node.source_handle, node.target_handle) == (HandleSide.RIGHT, HandleSide.LEFT)

    def test_layout_keeps_edges_and_status(self, controller: CanvasController) -> None:
        controller.store.select_node("n1")
        controller.run_layout()
        assert len(controller.store.edges) == 3
        assert controller.store.status is DagStatus.CYCLIC
        assert controller.store.selected_node_ids == ["n1"]

    def test_fit_view_waits_for_next_tick(
        self, controller: CanvasController, viewport: RecordingViewport
    ) -> None:
        controller.run_layout()
        assert viewport.fits == []
        controller.deferred.flush()
        assert viewport.fits == [(0.2, 300)]

    def test_no_viewport_schedules_nothing(self, triangle: GraphStore) -> None:
        controller = CanvasController(triangle)
        controller.run_layout()
        assert len(controller.deferred) == 0

    def test_default_direction_from_config(self, triangle: GraphStore) -> None:
        config = CanvasConfig(direction=LayoutDirection.LEFT_TO_RIGHT)
        controller = CanvasController(triangle, config=config)
        controller.run_layout()
        node = triangle.get_node("n1")
        assert node is not None and node.source_handle is HandleSide.RIGHT
        assert node.target_handle is HandleSide.LEFT
