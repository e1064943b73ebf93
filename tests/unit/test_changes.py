"""Tests for change record parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dagcanvas.graph.changes import (
    PositionChange,
    RemoveChange,
    SelectChange,
    XYPayload,
    parse_change,
    parse_changes,
)
from dagcanvas.graph.models import Position


class TestParseChange:
    """Single change records."""

    def test_select(self) -> None:
        change = parse_change({"type": "select", "id": "n1", "selected": True})
        assert change == SelectChange(id="n1", selected=True)

    def test_position(self) -> None:
        change = parse_change({"type": "position", "id": "n1", "position": {"x": 1, "y": 2.5}})
        assert isinstance(change, PositionChange)
        assert change.position is not None
        assert change.position.to_position() == Position(1.0, 2.5)

    def test_position_end_of_drag(self) -> None:
        change = parse_change({"type": "position", "id": "n1", "dragging": False})
        assert isinstance(change, PositionChange)
        assert change.position is None

    def test_remove(self) -> None:
        assert parse_change({"type": "remove", "id": "e1"}) == RemoveChange(id="e1")

    @pytest.mark.parametrize("change_type", ["dimensions", "add", "reset", None])
    def test_unowned_kinds_are_ignored(self, change_type: str | None) -> None:
        assert parse_change({"type": change_type, "id": "n1"}) is None

    def test_models_pass_through(self) -> None:
        change = RemoveChange(id="n1")
        assert parse_change(change) is change

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "select", "id": "n1"},
            {"type": "remove", "id": ""},
            {"type": "position", "id": "n1", "position": {"x": "left"}},
        ],
    )
    def test_malformed_owned_kind_raises(self, raw: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            parse_change(raw)


def test_parse_changes_drops_unowned_and_keeps_order() -> None:
    changes = parse_changes(
        [
            {"type": "remove", "id": "b"},
            {"type": "dimensions", "id": "a"},
            {"type": "select", "id": "a", "selected": False},
        ]
    )
    assert [type(c) for c in changes] == [RemoveChange, SelectChange]


def test_xy_payload_coerces_numbers() -> None:
    assert XYPayload.model_validate({"x": "3", "y": 4}).to_position() == Position(3.0, 4.0)
