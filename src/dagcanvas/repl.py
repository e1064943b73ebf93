"""Line-oriented canvas editor.

CanvasRepl turns text commands into controller events and renders the
resulting canvas with rich. It has no terminal handling of its own: the CLI
feeds it lines from a prompt_toolkit session (or from stdin when not on a
TTY) and flushes deferred work after each line, which is this host's
"next loop tick".
"""

from __future__ import annotations

import shlex
from collections.abc import Callable
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dagcanvas.config import parse_direction
from dagcanvas.graph.cycles import find_cycle
from dagcanvas.graph.models import DagStatus
from dagcanvas.observability.logging import get_logger

if TYPE_CHECKING:
    from rich.console import Console

    from dagcanvas.controller import CanvasController
    from dagcanvas.graph.errors import NoticeLevel
    from dagcanvas.graph.models import GraphSnapshot

log = get_logger(__name__)

# Line submitted by the Delete key binding
DELETE_KEY_COMMAND = ":delete-key"

HELP_TEXT = """\
add LABEL             add a node
connect SOURCE TARGET connect two nodes
select ID...          select nodes or edges
deselect ID...        deselect nodes or edges
move ID X Y           drag a node
remove ID...          remove nodes or edges
delete                delete the first selected node
delete-selected       delete every selected node and edge (also: Delete key)
clear                 clear the canvas
layout [TB|LR]        auto-layout vertically or horizontally
show                  print nodes, edges and status
help                  show this help
quit                  leave the editor"""


class ConsoleNotifier:
    """Prints notices as coloured one-liners."""

    _STYLES = {"warning": "yellow", "error": "red"}

    def __init__(self, console: Console) -> None:
        self.console = console

    def notify(self, level: NoticeLevel, message: str) -> None:
        style = self._STYLES.get(level, "dim")
        self.console.print(f"[{style}]{escape(message)}[/{style}]")


class ConsoleViewport:
    """Stands in for the canvas viewport; reports refits."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def fit_view(self, *, padding: float, duration_ms: int) -> None:
        self.console.print(f"[dim]view fitted (padding {padding:g}, {duration_ms} ms)[/dim]")


def status_text(snapshot: GraphSnapshot) -> str:
    """One-line status summary with rich markup."""
    style = "green" if snapshot.status is DagStatus.VALID else "red"
    return (
        f"[{style}]{snapshot.status_label}[/{style}] "
        f"[dim]({len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges)[/dim]"
    )


def render_snapshot(console: Console, snapshot: GraphSnapshot) -> None:
    """Print node and edge tables followed by the DAG status."""
    nodes = Table(title="Nodes", title_justify="left")
    nodes.add_column("ID", style="cyan")
    nodes.add_column("Label")
    nodes.add_column("Position", justify="right")
    nodes.add_column("Handles", style="dim")
    nodes.add_column("Sel", justify="center")
    for node in snapshot.nodes:
        nodes.add_row(
            escape(node.id),
            escape(node.label),
            f"{node.position.x:.0f}, {node.position.y:.0f}",
            f"{node.target_handle.value} → {node.source_handle.value}",
            "●" if node.selected else "",
        )

    edges = Table(title="Edges", title_justify="left")
    edges.add_column("ID", style="cyan")
    edges.add_column("Connection")
    edges.add_column("Sel", justify="center")
    for edge in snapshot.edges:
        edges.add_row(
            escape(edge.id),
            f"{escape(edge.source)} → {escape(edge.target)}",
            "●" if edge.selected else "",
        )

    console.print(nodes)
    console.print(edges)

    body = status_text(snapshot)
    if snapshot.status is DagStatus.CYCLIC:
        cycle = find_cycle(snapshot.edges)
        if cycle:
            body += "\n[dim]cycle: " + " → ".join(escape(n) for n in cycle) + "[/dim]"
    console.print(Panel.fit(body, title="DAG", title_align="left"))


class CanvasRepl:
    """Dispatches editor commands to a CanvasController."""

    def __init__(self, controller: CanvasController, console: Console) -> None:
        self.controller = controller
        self.console = console
        self._changed = False
        self._handlers: dict[str, Callable[[list[str]], None]] = {
            "add": self._add,
            "connect": self._connect,
            "select": self._select,
            "deselect": self._deselect,
            "move": self._move,
            "remove": self._remove,
            "delete": self._delete,
            "delete-selected": self._delete_selected,
            DELETE_KEY_COMMAND: self._delete_selected,
            "clear": self._clear,
            "layout": self._layout,
            "show": self._show,
            "help": self._help,
        }
        controller.store.subscribe(self._on_change)

    def _on_change(self, _snapshot: GraphSnapshot) -> None:
        self._changed = True

    def execute(self, line: str) -> bool:
        """Run one command line.

        Returns:
            False when the user asked to quit, True otherwise.
        """
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.console.print(f"[red]Parse error:[/red] {escape(str(e))}")
            return True
        if not parts:
            return True

        name, args = parts[0].lower(), parts[1:]
        if name in ("quit", "exit"):
            return False

        handler = self._handlers.get(name)
        if handler is None:
            self.console.print(f"[red]Unknown command:[/red] {escape(name)} (try 'help')")
            return True

        self._changed = False
        try:
            handler(args)
        except _UsageError as e:
            self.console.print(f"[red]Usage:[/red] {escape(str(e))}")
        log.debug("command_executed", command=name, changed=self._changed)

        if self._changed and name != "show":
            self.console.print(status_text(self.controller.store.snapshot()))
        # Next tick: deferred work sees the state rendered above
        self.controller.deferred.flush()
        return True

    # -- Commands --------------------------------------------------------------

    def _add(self, args: list[str]) -> None:
        node = self.controller.add_node(" ".join(args))
        if node is not None:
            self.console.print(f"Added [cyan]{escape(node.id)}[/cyan] {escape(node.label)}")

    def _connect(self, args: list[str]) -> None:
        if len(args) != 2:
            raise _UsageError("connect SOURCE TARGET")
        edge = self.controller.on_connect(args[0], args[1])
        if edge is not None:
            self.console.print(
                f"Connected [cyan]{escape(edge.id)}[/cyan]: "
                f"{escape(edge.source)} → {escape(edge.target)}"
            )

    def _select(self, args: list[str]) -> None:
        self._toggle(args, selected=True)

    def _deselect(self, args: list[str]) -> None:
        self._toggle(args, selected=False)

    def _toggle(self, args: list[str], *, selected: bool) -> None:
        if not args:
            raise _UsageError(("select" if selected else "deselect") + " ID...")
        node_changes, edge_changes = self._split(args, {"type": "select", "selected": selected})
        if node_changes:
            self.controller.on_nodes_change(node_changes)
        if edge_changes:
            self.controller.on_edges_change(edge_changes)

    def _move(self, args: list[str]) -> None:
        if len(args) != 3:
            raise _UsageError("move ID X Y")
        try:
            x, y = float(args[1]), float(args[2])
        except ValueError:
            raise _UsageError("move ID X Y (X and Y must be numbers)") from None
        self.controller.on_nodes_change(
            [{"type": "position", "id": args[0], "position": {"x": x, "y": y}}]
        )

    def _remove(self, args: list[str]) -> None:
        if not args:
            raise _UsageError("remove ID...")
        node_changes, edge_changes = self._split(args, {"type": "remove"})
        # Edges first so a removed node's cascade doesn't hide an explicit edge id
        if edge_changes:
            self.controller.on_edges_change(edge_changes)
        if node_changes:
            self.controller.on_nodes_change(node_changes)

    def _delete(self, _args: list[str]) -> None:
        node = self.controller.delete_node()
        if node is not None:
            self.console.print(f"Deleted [cyan]{escape(node.id)}[/cyan] {escape(node.label)}")

    def _delete_selected(self, _args: list[str]) -> None:
        key = self.controller.config.delete_keys[0] if self.controller.config.delete_keys else ""
        self.controller.on_key(key)

    def _clear(self, _args: list[str]) -> None:
        self.controller.clear_canvas()

    def _layout(self, args: list[str]) -> None:
        if len(args) > 1:
            raise _UsageError("layout [TB|LR]")
        try:
            direction = parse_direction(args[0]) if args else None
        except ValueError as e:
            raise _UsageError(str(e)) from None
        self.controller.run_layout(direction)

    def _show(self, _args: list[str]) -> None:
        render_snapshot(self.console, self.controller.store.snapshot())

    def _help(self, _args: list[str]) -> None:
        self.console.print(escape(HELP_TEXT))

    # -- Helpers ---------------------------------------------------------------

    def _split(
        self, ids: list[str], payload: dict[str, object]
    ) -> tuple[list[dict[str, object]], list[dict[str, object]]]:
        """Route ids to node or edge change records; unknown ids are reported."""
        store = self.controller.store
        node_changes: list[dict[str, object]] = []
        edge_changes: list[dict[str, object]] = []
        for element_id in ids:
            if store.has_node(element_id):
                node_changes.append({**payload, "id": element_id})
            elif store.get_edge(element_id) is not None:
                edge_changes.append({**payload, "id": element_id})
            else:
                self.controller.notifier.notify("warning", f"No node or edge '{element_id}'")
        return node_changes, edge_changes


class _UsageError(Exception):
    """Wrong arguments for an editor command."""
