"""dagcanvas CLI - typer application entry point."""

from __future__ import annotations

import atexit
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.key_binding import KeyBindings
from rich.console import Console
from rich.markup import escape

from dagcanvas import __version__
from dagcanvas.config import CanvasConfig, ConfigError, load_config
from dagcanvas.controller import CanvasController
from dagcanvas.graph.cycles import find_cycle
from dagcanvas.graph.errors import GraphEditError
from dagcanvas.graph.models import DagStatus, Edge, Node
from dagcanvas.graph.store import GraphStore
from dagcanvas.observability import close_file_logging, configure_logging, get_logger
from dagcanvas.repl import (
    DELETE_KEY_COMMAND,
    ConsoleNotifier,
    ConsoleViewport,
    CanvasRepl,
    render_snapshot,
)

if TYPE_CHECKING:
    from prompt_toolkit.key_binding.key_processor import KeyPressEvent


def _is_interactive_tty() -> bool:
    """Check if stdin/stdout are connected to a TTY."""
    return sys.stdin.isatty() and sys.stdout.isatty()


# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="dagcanvas",
    help="dagcanvas: build directed graphs and keep them acyclic.",
    no_args_is_help=True,
)
console = Console()

# Accepted edge spellings for `check`: a:b, a->b, a>b
EDGE_PATTERN = re.compile(r"^\s*([^:>\s-][^:>\s]*?)\s*(?::|->|>)\s*([^:>\s]+)\s*$")

# Global state for option flags (set by callback, used by commands)
_config_path: Path | None = None


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Append every log event to this file as JSON lines.",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file (default: ~/.config/dagcanvas/config.yaml).",
            envvar="DAGCANVAS_CONFIG",
        ),
    ] = None,
) -> None:
    """dagcanvas: build directed graphs and keep them acyclic."""
    global _config_path
    _config_path = config

    configure_logging(verbosity=verbose, log_file=log_file)
    if log_file is not None:
        atexit.register(close_file_logging)


def _load_config() -> CanvasConfig:
    try:
        return load_config(_config_path)
    except (ConfigError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2) from e


def parse_edge_spec(spec: str) -> tuple[str, str]:
    """Parse ``SOURCE:TARGET`` (or ``SOURCE->TARGET``) into its endpoints.

    Raises:
        typer.BadParameter: If the argument has no separator or an empty side.
    """
    match = EDGE_PATTERN.match(spec)
    if match is None:
        raise typer.BadParameter(f"expected SOURCE:TARGET, got '{spec}'")
    return match.group(1), match.group(2)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"dagcanvas v{__version__}")


@app.command()
def check(
    edges: Annotated[
        list[str],
        typer.Argument(help="Edges as SOURCE:TARGET (or SOURCE->TARGET)."),
    ],
    show: Annotated[
        bool,
        typer.Option("--show", help="Print node and edge tables."),
    ] = False,
) -> None:
    """Report whether a list of edges forms a DAG.

    Exits with status 1 if the edges contain a cycle.
    """
    log = get_logger(__name__)
    pairs = [parse_edge_spec(spec) for spec in edges]

    node_ids = list(dict.fromkeys(node_id for pair in pairs for node_id in pair))
    try:
        store = GraphStore.from_elements(
            [Node(node_id, node_id) for node_id in node_ids],
            [Edge(f"e{i}", source, target) for i, (source, target) in enumerate(pairs, start=1)],
        )
    except GraphEditError as e:
        console.print(f"[red]Error:[/red] {escape(e.to_notice())}")
        raise typer.Exit(2) from e

    snapshot = store.snapshot()
    log.debug("check_completed", nodes=len(node_ids), edges=len(pairs), status=snapshot.status.value)

    if show:
        render_snapshot(console, snapshot)
        if snapshot.status is DagStatus.CYCLIC:
            raise typer.Exit(1)
        return

    console.print(snapshot.status_label)
    if snapshot.status is DagStatus.CYCLIC:
        cycle = find_cycle(snapshot.edges) or []
        console.print("cycle: " + " → ".join(escape(n) for n in cycle))
        raise typer.Exit(1)


def _build_key_bindings() -> KeyBindings:
    bindings = KeyBindings()

    @bindings.add("delete")
    def _delete_selection(event: KeyPressEvent) -> None:  # pragma: no cover - UI behavior
        """Delete on an empty line removes the selection, like on the canvas."""
        buffer = event.current_buffer
        if buffer.text:
            buffer.delete()
            return
        buffer.text = DELETE_KEY_COMMAND
        buffer.validate_and_handle()

    return bindings


def _interactive_loop(repl: CanvasRepl) -> None:  # pragma: no cover - UI behavior
    session: PromptSession[str] = PromptSession()
    bindings = _build_key_bindings()
    while True:
        try:
            line = session.prompt(
                HTML("<b><ansicyan>dag</ansicyan></b>&gt; "),
                key_bindings=bindings,
            )
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        if not repl.execute(line):
            break


@app.command()
def edit(
    example: Annotated[
        bool | None,
        typer.Option(
            "--example/--empty",
            help="Start with the two-node starter graph, or an empty canvas.",
        ),
    ] = None,
) -> None:
    """Edit a graph interactively. Type 'help' for commands."""
    log = get_logger(__name__)
    config = _load_config()
    seed = config.seed_example if example is None else example

    store = GraphStore.with_example() if seed else GraphStore()
    controller = CanvasController(
        store,
        notifier=ConsoleNotifier(console),
        viewport=ConsoleViewport(console),
        config=config,
    )
    repl = CanvasRepl(controller, console)
    log.info("editor_started", seeded=seed, direction=config.direction.value)

    render_snapshot(console, store.snapshot())

    if _is_interactive_tty():
        _interactive_loop(repl)
        return

    for line in sys.stdin:
        if not repl.execute(line.rstrip("\n")):
            break


if __name__ == "__main__":
    app()
