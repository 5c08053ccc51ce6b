"""swarm-mcp - MCP file server with backups and token-keyed rollback.

Features:
- Read, write, list and delete files scoped to one project directory
- Atomic writes, optional backups and single-use rollback tokens
- Dry-run previews for write and delete
- Backup retention by age and count

Usage:
    # Start MCP server (stdio transport) for the current directory
    swarm-mcp

    # For another project, with config
    swarm-mcp --project-root ~/code/app --config .swarm-mcp/config.yaml

    # Prune backups
    swarm-mcp backups cleanup --max-age-days 3
"""

from importlib.metadata import version
from typing import Any

__version__ = version("swarm-mcp")

__all__ = ["__version__", "main"]


def __getattr__(name: str) -> Any:
    """Lazy import for server module to avoid loading config at import time."""
    if name == "main":
        from sm.server import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
