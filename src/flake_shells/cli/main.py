"""CLI entry point for flake-shells.

Invoked as::

    flake-shells [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m flake_shells.cli.main

Commands
--------
- version: Show version information
- enter: Enter the flake environment
- exit: Exit the flake environment
- select: Choose which flake.nix to use
- status: Show whether the environment is active
- output: Show the diagnostic transcript
- hook: Print shell code for ``eval "$(flake-shells hook)"``
- restore: Rebuild state from workspace settings (and auto-activate)
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from flake_shells.errors import FlakeShellsError
from flake_shells.integration.injector import StreamSession
from flake_shells.resolver.transcript import Transcript
from flake_shells.session.manager import EnvironmentSessionManager
from flake_shells.settings.filesystem import JsonSettingsStore

console = Console()

_LOG_RELATIVE = Path(".vscode") / "flake-shells.log"


# ---------------------------------------------------------------------------
# Manager factory
# ---------------------------------------------------------------------------


def _make_manager(workspace: str | Path, tool: str = "nix") -> EnvironmentSessionManager:
    """Build a manager over the workspace's ``.vscode/settings.json``.

    Parameters
    ----------
    workspace:
        Workspace root directory.
    tool:
        ``nix`` executable name or path.

    Returns
    -------
    EnvironmentSessionManager
        A manager whose transcript is mirrored to ``.vscode/flake-shells.log``.
    """
    root = Path(workspace).resolve()
    store = JsonSettingsStore.for_workspace(root)
    transcript = Transcript(log_path=root / _LOG_RELATIVE)
    return EnvironmentSessionManager(root, store, transcript=transcript, tool=tool)


def _manager(ctx: click.Context) -> EnvironmentSessionManager:
    return _make_manager(ctx.obj["workspace"], ctx.obj["tool"])


def _fail(exc: FlakeShellsError) -> NoReturn:
    """Print the concise summary of ``exc`` and exit 1."""
    console.print(f"[red]{exc.summary}[/red]")
    console.print("[dim]Run 'flake-shells output' for details.[/dim]")
    sys.exit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="flake-shells")
@click.option(
    "--workspace",
    "-w",
    default=".",
    show_default=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root; flakes must live inside it.",
)
@click.option(
    "--nix",
    "tool",
    default="nix",
    show_default=True,
    envvar="FLAKE_SHELLS_NIX",
    help="nix executable to run.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, workspace: Path, tool: str, verbose: bool) -> None:
    """Nix flake development environments for your workspace"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = workspace
    ctx.obj["tool"] = tool


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from flake_shells import __version__

    console.print(f"[bold]flake-shells[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# enter / exit
# ---------------------------------------------------------------------------


@cli.command(name="enter")
@click.argument("flake", required=False)
@click.pass_context
def enter_command(ctx: click.Context, flake: str | None) -> None:
    """Enter the flake environment.

    FLAKE is an optional path to a flake.nix inside the workspace; it
    becomes the selected flake.  Without it the selected (or first
    discovered) flake is used.
    """
    manager = _manager(ctx)
    try:
        manager.recover()
        if manager.is_active():
            snapshot = manager.snapshot()
            name = snapshot.descriptor.name if snapshot else "?"
            console.print(f"[yellow]Already active:[/yellow] {name}. Run 'flake-shells exit' first.")
            return
        if flake:
            manager.select(flake)
        elif manager.selected is None:
            manager.detect()
        console.print("Entering Nix flake environment...")
        variables = manager.activate()
    except FlakeShellsError as exc:
        _fail(exc)

    snapshot = manager.snapshot()
    name = snapshot.descriptor.name if snapshot else "?"
    console.print(
        f"[green]Nix flake environment activated:[/green] {name} "
        f"({len(variables)} variables)"
    )
    console.print("[dim]Open a new terminal or reload the window to apply it.[/dim]")


@cli.command(name="exit")
@click.pass_context
def exit_command(ctx: click.Context) -> None:
    """Exit the flake environment and remove everything it set up."""
    manager = _manager(ctx)
    try:
        changed = manager.deactivate()
    except FlakeShellsError as exc:
        _fail(exc)

    if changed:
        console.print("[green]Nix flake environment deactivated.[/green]")
        console.print("[dim]Reload the window to apply the change.[/dim]")
    else:
        console.print("[yellow]No flake environment is active.[/yellow]")


# ---------------------------------------------------------------------------
# select
# ---------------------------------------------------------------------------


@cli.command(name="select")
@click.argument("flake", required=False)
@click.option("--enter", "enter_after", is_flag=True, help="Enter the environment after selecting.")
@click.pass_context
def select_command(ctx: click.Context, flake: str | None, enter_after: bool) -> None:
    """Choose the flake.nix to use.

    Without FLAKE, the flakes found in the workspace are listed and one is
    chosen interactively.
    """
    manager = _manager(ctx)
    root = manager.workspace_root

    if flake is None:
        candidates = manager.discover()
        if not candidates:
            console.print("[yellow]No flake.nix files found in workspace.[/yellow]")
            return
        table = Table(title="Flakes", show_lines=False)
        table.add_column("#", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Path")
        for index, candidate in enumerate(candidates, start=1):
            table.add_row(str(index), candidate.name, candidate.relative_to(root))
        console.print(table)
        choice = click.prompt(
            "Select a flake.nix file",
            type=click.IntRange(1, len(candidates)),
            default=1,
        )
        flake = str(candidates[choice - 1].path)

    try:
        descriptor = manager.select(flake)
    except FlakeShellsError as exc:
        _fail(exc)
    console.print(f"[green]Selected flake:[/green] {descriptor.relative_to(root)}")

    if enter_after:
        ctx.invoke(enter_command)


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(["table", "json", "yaml"], case_sensitive=False),
    help="Output format.",
)
@click.pass_context
def status_command(ctx: click.Context, output_format: str) -> None:
    """Show whether the flake environment is active."""
    manager = _manager(ctx)
    try:
        manager.recover()
    except FlakeShellsError as exc:
        _fail(exc)

    snapshot = manager.snapshot()
    selected = manager.selected
    report: dict[str, object] = {
        "workspace": str(manager.workspace_root),
        "status": manager.status.value,
        "flake": selected.relative_to(manager.workspace_root) if selected else None,
        "variables": len(snapshot.variables) if snapshot else 0,
        "restored": snapshot.restored if snapshot else False,
    }

    if output_format == "json":
        click.echo(json.dumps(report, indent=2))
        return
    if output_format == "yaml":
        click.echo(yaml.safe_dump(report, sort_keys=False), nl=False)
        return

    if selected is None:
        console.print("[yellow]No Flake[/yellow]: no flake.nix found in workspace")
        return
    label = "[bold green]Active[/bold green]" if snapshot else "[dim]Inactive[/dim]"
    table = Table(title=f"Nix: {selected.name}", show_lines=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("status", label)
    table.add_row("flake", str(report["flake"]))
    if snapshot:
        table.add_row("variables", str(report["variables"]))
        table.add_row("activated_at", snapshot.activated_at.isoformat())
    console.print(table)


# ---------------------------------------------------------------------------
# output
# ---------------------------------------------------------------------------


@cli.command(name="output")
@click.option("--raw", is_flag=True, help="Print the transcript without a panel.")
@click.pass_context
def output_command(ctx: click.Context, raw: bool) -> None:
    """Show the diagnostic transcript of past activations."""
    manager = _manager(ctx)
    text = manager.transcript.read_log()
    if not text:
        console.print("[yellow]No output recorded yet.[/yellow]")
        return
    if raw:
        click.echo(text, nl=False)
        return
    console.print(Panel(text.rstrip("\n"), title="Nix Flake Environment", expand=True))


# ---------------------------------------------------------------------------
# hook / restore
# ---------------------------------------------------------------------------


@cli.command(name="hook")
@click.pass_context
def hook_command(ctx: click.Context) -> None:
    """Print shell code that loads the active environment.

    Use as ``eval "$(flake-shells hook)"`` in a shell start-up file.  Prints
    nothing when the environment is not active.
    """
    manager = _manager(ctx)
    try:
        manager.recover()
    except FlakeShellsError as exc:
        click.echo(f"# flake-shells: {exc.summary}", err=True)
        sys.exit(1)
    manager.on_session_opened(StreamSession(click.get_text_stream("stdout")))


@cli.command(name="restore")
@click.pass_context
def restore_command(ctx: click.Context) -> None:
    """Rebuild state from workspace settings, auto-activating if configured."""
    manager = _manager(ctx)
    try:
        status = manager.startup()
    except FlakeShellsError as exc:
        _fail(exc)
    snapshot = manager.snapshot()
    selected = snapshot.descriptor if snapshot else manager.selected
    name = selected.name if selected else "No Flake"
    console.print(f"Nix: {name}: [bold]{status.value}[/bold]")


if __name__ == "__main__":
    cli()
