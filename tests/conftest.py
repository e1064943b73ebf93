"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from dagcanvas.graph.models import Edge, Node, Position
from dagcanvas.graph.store import GraphStore


@pytest.fixture(autouse=True)
def isolate_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user environment overrides out of test runs."""
    for name in ("DAGCANVAS_DIRECTION", "DAGCANVAS_SEED_EXAMPLE", "DAGCANVAS_CONFIG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def store() -> GraphStore:
    """Empty store with a deterministic drop-position source."""
    return GraphStore(rng=random.Random(7))


@pytest.fixture
def triangle() -> GraphStore:
    """Nodes n1..n3 with edges n1→n2 (e1), n2→n3 (e2), n3→n1 (e3)."""
    return GraphStore.from_elements(
        [Node(f"n{i}", f"Node {i}", Position(0, 100 * i)) for i in (1, 2, 3)],
        [Edge("e1", "n1", "n2"), Edge("e2", "n2", "n3"), Edge("e3", "n3", "n1")],
        rng=random.Random(7),
    )
