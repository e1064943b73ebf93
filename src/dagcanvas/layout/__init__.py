"""Layout adapters: node positions from graph structure."""

from dagcanvas.layout.base import NODE_HEIGHT, NODE_WIDTH, LayoutAdapter, LayoutSettings
from dagcanvas.layout.layered import LayeredLayout

__all__ = [
    "NODE_HEIGHT",
    "NODE_WIDTH",
    "LayeredLayout",
    "LayoutAdapter",
    "LayoutSettings",
]
