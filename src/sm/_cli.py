"""Shared typer helpers for swarm-mcp command line entry points."""

from __future__ import annotations

from collections.abc import Callable

import typer
from rich.console import Console

__all__ = ["create_cli", "stderr_console", "version_callback"]

# stdout is reserved for MCP JSON-RPC
stderr_console = Console(stderr=True)


def create_cli(name: str, help_text: str) -> typer.Typer:
    """Create a typer app with the project's defaults."""
    return typer.Typer(
        name=name,
        help=help_text,
        add_completion=False,
        no_args_is_help=False,
        rich_markup_mode="rich",
        pretty_exceptions_show_locals=False,
    )


def version_callback(name: str, version: str) -> Callable[[bool | None], None]:
    """Build an eager ``--version`` option callback."""

    def _callback(value: bool | None) -> None:
        if value:
            typer.echo(f"{name} {version}")
            raise typer.Exit()

    return _callback
