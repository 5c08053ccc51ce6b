"""Serve CLI entry point for the swarm-mcp file server."""

from __future__ import annotations

import os
import signal
from pathlib import Path

import typer
from rich.table import Table

import sm
from sm._cli import create_cli, stderr_console, version_callback
from sm.paths import CONFIG_ENV, PROJECT_ROOT_ENV

app = create_cli(
    "swarm-mcp",
    "MCP file server for one project directory, with backups and rollback.",
)


def _print_startup_banner(project_root: Path) -> None:
    """Print startup message to stderr."""
    stderr_console.print(
        f"[bold cyan]swarm-mcp[/bold cyan] [dim]v{sm.__version__}[/dim]"
    )
    stderr_console.print(f"Project root: [bold]{project_root}[/bold]")
    stderr_console.print(
        "Running on stdio transport. Press [bold yellow]Ctrl+C[/bold yellow] to stop."
    )


def _setup_signal_handlers() -> None:
    """Set up signal handlers for clean exit."""

    def handle_signal(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        stderr_console.print(f"\n[dim]Received {sig_name}, shutting down...[/dim]")
        # sys.exit() does not reliably stop the server's event loop
        os._exit(0)

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def _bind_project_root(project_root: Path | None) -> None:
    """Export --project-root so config and workspace resolve against it."""
    if project_root is not None:
        os.environ[PROJECT_ROOT_ENV] = str(project_root.expanduser().resolve())


# Backup maintenance commands
backups_app = typer.Typer(name="backups", help="Inspect and prune file backups.")
app.add_typer(backups_app)


@backups_app.command("list")
def backups_list() -> None:
    """List backup files, oldest first."""
    from sm.fs.workspace import get_workspace

    ws = get_workspace()
    backups = ws.backups.list_backups()
    if not backups:
        stderr_console.print(f"No backups in {ws.backups.backup_dir}")
        return

    table = Table(title=f"Backups in {ws.backups.backup_dir}")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified (UTC)")
    for info in backups:
        table.add_row(
            info.name, str(info.size), info.modified.strftime("%Y-%m-%d %H:%M:%S")
        )
    stderr_console.print(table)


@backups_app.command("cleanup")
def backups_cleanup(
    max_age_days: float | None = typer.Option(
        None, "--max-age-days", min=0, help="Remove backups older than this."
    ),
    max_count: int | None = typer.Option(
        None, "--max-count", min=0, help="Keep at most this many backups."
    ),
) -> None:
    """Delete old backups.

    Defaults come from files.backup_max_age_days and files.backup_max_count.
    """
    from sm.fs.workspace import get_workspace

    deleted = get_workspace().backups.cleanup_old_backups(max_age_days, max_count)
    stderr_console.print(f"[green]Deleted {deleted} backup(s)[/green]")


# Configuration commands
config_app = typer.Typer(name="config", help="Validate and show configuration.")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate() -> None:
    """Validate the configuration file that would be loaded.

    Exits with status 1 if it does not parse or fails validation.
    """
    from sm.config.loader import load_config, resolve_config_path

    path = resolve_config_path(None)
    if path is None:
        stderr_console.print("No configuration file found, defaults apply.")
        return

    try:
        load_config(path)
    except (FileNotFoundError, ValueError) as e:
        stderr_console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e

    stderr_console.print(f"[green]Valid configuration:[/green] {path}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration as YAML."""
    import yaml

    from sm.config import get_config

    config = get_config()
    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False))


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    _version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback("swarm-mcp", sm.__version__),
        is_eager=True,
        help="Show version and exit.",
    ),
    project_root: Path | None = typer.Option(
        None,
        "--project-root",
        "-p",
        help="Project directory the tools are confined to (default: cwd).",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.yaml.",
        exists=True,
        readable=True,
        dir_okay=False,
    ),
) -> None:
    """Run the swarm-mcp server over stdio transport.

    Examples:
        swarm-mcp
        swarm-mcp --project-root ~/code/app
        swarm-mcp backups cleanup --max-count 20
    """
    _bind_project_root(project_root)

    if config:
        os.environ[CONFIG_ENV] = str(config.resolve())

    # Subcommands run with the same project root and config
    if ctx.invoked_subcommand is not None:
        return

    from sm.paths import get_project_root

    _setup_signal_handlers()
    _print_startup_banner(get_project_root())

    from sm.server import main as server_main

    server_main()


def cli() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    cli()
