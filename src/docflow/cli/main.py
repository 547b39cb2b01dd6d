"""CLI entry point for docflow.

Invoked as::

    docflow [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m docflow.cli.main

Commands
--------
run         Run a command's tasks
tasks       Show a command's tasks and their dependencies
kinds       List registered task kinds
version     Show version information
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from docflow.document.document import Document
    from docflow.flow.config import FlowConfig
    from docflow.tasks.registry import RunnerRegistry

console = Console()
err_console = Console(stderr=True)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_or_exit(path: str) -> "Document":
    """Load a document, printing the error and exiting on failure."""
    from docflow.document import LoadError, load

    try:
        return load(path)
    except LoadError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _registry() -> "RunnerRegistry":
    from docflow.tasks import default_registry

    registry = default_registry()
    registry.load_entrypoints()
    return registry


def _flow_config(
    section: str, command: str, infer_tasks: bool, allow_incomplete: bool
) -> "FlowConfig":
    from docflow.document import Path
    from docflow.flow import FlowConfig

    try:
        root = Path(Path.parse(section).selectors + Path.parse(command).selectors)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="COMMAND") from exc
    return FlowConfig(root=root, infer_tasks=infer_tasks, tolerate_incomplete=allow_incomplete)


_section_option = click.option(
    "--section",
    default="command",
    show_default=True,
    help="Field holding the commands; empty to address COMMAND from the document root",
)
_infer_option = click.option(
    "--infer-tasks",
    is_flag=True,
    default=False,
    help="Search the whole command subtree for tasks, not just its direct fields",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="docflow")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="DOCFLOW_LOG_LEVEL",
    help="Logging verbosity (also read from DOCFLOW_LOG_LEVEL)",
)
def cli(log_level: str) -> None:
    """Workflow task engine for declarative command documents."""
    _configure_logging(log_level)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from docflow import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]docflow[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# kinds command
# ---------------------------------------------------------------------------


@cli.command(name="kinds")
def kinds_command() -> None:
    """List registered task kinds, including those loaded from entry-points."""
    from docflow.flow import LEGACY_KINDS

    registry = _registry()
    aliases: dict[str, list[str]] = {}
    for alias, kind in LEGACY_KINDS.items():
        aliases.setdefault(kind, []).append(alias)

    table = Table(title="Task kinds")
    table.add_column("Kind", style="bold")
    table.add_column("Legacy name")
    table.add_column("Fields")
    for kind in registry.kinds():
        entry = registry.get(kind)
        table.add_row(
            kind,
            ", ".join(aliases.get(kind, [])),
            ", ".join(entry.template),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# tasks command
# ---------------------------------------------------------------------------


@cli.command(name="tasks")
@click.argument("file", type=click.Path(exists=False))
@click.argument("command")
@_section_option
@_infer_option
def tasks_command(file: str, command: str, section: str, infer_tasks: bool) -> None:
    """Show the tasks of COMMAND and what each waits for.

    FILE is the YAML or JSON document defining the command.
    """
    from docflow.flow import Controller, FlowError

    document = _load_or_exit(file)
    config = _flow_config(section, command, infer_tasks, False)
    controller = Controller(document, _registry(), config)
    try:
        graph = controller.graph()
    except FlowError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if not graph:
        console.print(f"[yellow]No tasks[/yellow] found under {config.root}")
        return

    table = Table(title=f"Tasks: {config.root}", show_lines=True)
    table.add_column("Task", style="bold")
    table.add_column("Kind")
    table.add_column("Depends on")
    for task, deps in graph.items():
        table.add_row(
            str(task.path.relative_to(config.root)),
            task.kind,
            ", ".join(str(d.path.relative_to(config.root)) for d in deps) or "[dim]-[/dim]",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


@cli.command(name="run")
@click.argument("file", type=click.Path(exists=False))
@click.argument("command")
@_section_option
@_infer_option
@click.option(
    "--allow-incomplete",
    is_flag=True,
    default=False,
    help="Run tasks even when values they reference are still incomplete",
)
@click.option(
    "--show-result",
    is_flag=True,
    default=False,
    help="Print the command with all task results filled in",
)
def run_command(
    file: str,
    command: str,
    section: str,
    infer_tasks: bool,
    allow_incomplete: bool,
    show_result: bool,
) -> None:
    """Run the tasks of COMMAND.

    FILE is the YAML or JSON document defining the command.  Tasks run
    concurrently, each one as soon as the tasks it references finish.
    """
    from docflow.document import dump
    from docflow.flow import Controller, FlowError

    document = _load_or_exit(file)
    config = _flow_config(section, command, infer_tasks, allow_incomplete)
    controller = Controller(document, _registry(), config)
    try:
        final = controller.run()
    except FlowError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if show_result:
        text = dump(final.evaluate(config.root))
        console.print(Syntax(text, "yaml"))


if __name__ == "__main__":
    cli()
