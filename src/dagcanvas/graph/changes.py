"""Change records sent by the presentation layer.

The canvas reports user interaction as ordered batches of change records,
one batch per event. Three kinds are owned by the core:

- ``select``: an element became selected or deselected
- ``position``: a node was dragged
- ``remove``: an element was removed from the canvas

Any other kind (dimension measurements, hover, ...) is ignored. Raw dict
payloads are validated with pydantic; already-built models pass through.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from dagcanvas.graph.models import Position
from dagcanvas.observability.logging import get_logger

log = get_logger(__name__)


class XYPayload(BaseModel):
    """Canvas coordinates as sent by the presentation layer."""

    x: float
    y: float

    def to_position(self) -> Position:
        return Position(self.x, self.y)


class SelectChange(BaseModel):
    """Selection toggle for one node or edge."""

    type: Literal["select"] = "select"
    id: str = Field(min_length=1)
    selected: bool


class PositionChange(BaseModel):
    """Drag update for one node.

    ``position`` is absent on the final event of a drag, which carries only
    ``dragging=False``.
    """

    type: Literal["position"] = "position"
    id: str = Field(min_length=1)
    position: XYPayload | None = None
    dragging: bool = False


class RemoveChange(BaseModel):
    """Removal of one node or edge."""

    type: Literal["remove"] = "remove"
    id: str = Field(min_length=1)


Change = Annotated[SelectChange | PositionChange | RemoveChange, Field(discriminator="type")]

CHANGE_TYPES = frozenset({"select", "position", "remove"})

_change_adapter: TypeAdapter[SelectChange | PositionChange | RemoveChange] = TypeAdapter(Change)


def parse_change(raw: Mapping[str, Any] | BaseModel) -> SelectChange | PositionChange | RemoveChange | None:
    """Validate one change record.

    Args:
        raw: A change model, or a dict with a ``type`` key.

    Returns:
        The validated change, or None when the kind is not owned by the core.

    Raises:
        pydantic.ValidationError: If an owned kind has a malformed payload.
    """
    if isinstance(raw, SelectChange | PositionChange | RemoveChange):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    change_type = raw.get("type")
    if change_type not in CHANGE_TYPES:
        log.debug("change_ignored", change_type=change_type, id=raw.get("id"))
        return None
    return _change_adapter.validate_python(raw)


def parse_changes(
    raw_changes: Iterable[Mapping[str, Any] | BaseModel],
) -> list[SelectChange | PositionChange | RemoveChange]:
    """Validate a batch of change records, dropping kinds the core ignores."""
    parsed = (parse_change(raw) for raw in raw_changes)
    return [change for change in parsed if change is not None]
