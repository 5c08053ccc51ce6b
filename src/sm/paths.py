"""Path resolution for the swarm-mcp project root and config directories.

swarm-mcp uses a two-tier directory structure:
- Global: ~/.swarm-mcp/ (user-wide config)
- Project: <project root>/.swarm-mcp/ (project-specific config)

The project root is the containment boundary for every file operation.
"""

from __future__ import annotations

import os
from pathlib import Path

# Directory names
GLOBAL_DIR_NAME = ".swarm-mcp"
PROJECT_DIR_NAME = ".swarm-mcp"

CONFIG_FILENAME = "config.yaml"

PROJECT_ROOT_ENV = "SWARM_MCP_PROJECT_ROOT"
CONFIG_ENV = "SWARM_MCP_CONFIG"


def get_project_root() -> Path:
    """Get the project root directory.

    Returns SWARM_MCP_PROJECT_ROOT if set, else Path.cwd(). The result is
    canonicalized (symlinks resolved) so containment checks compare real
    paths on both sides.

    Returns:
        Resolved absolute Path for the project root
    """
    env_root = os.getenv(PROJECT_ROOT_ENV)
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path.cwd().resolve()


def get_global_dir() -> Path:
    """Get the global swarm-mcp directory path.

    Returns:
        Path to ~/.swarm-mcp/ (not necessarily existing)
    """
    return Path.home() / GLOBAL_DIR_NAME


def get_project_dir(start: Path | None = None) -> Path | None:
    """Get the project swarm-mcp directory.

    Returns <root>/.swarm-mcp if it exists, else None. No tree-walking.

    Args:
        start: Project root (default: get_project_root())

    Returns:
        Path to .swarm-mcp/ if found, None otherwise
    """
    root = start or get_project_root()
    candidate = root / PROJECT_DIR_NAME
    if candidate.is_dir():
        return candidate
    return None


def get_config_path(scope: str = "any") -> Path | None:
    """Get the config file path.

    Resolution order for scope="any":
    1. <project root>/.swarm-mcp/config.yaml
    2. ~/.swarm-mcp/config.yaml

    Args:
        scope: "global", "project", or "any" (project first, then global)

    Returns:
        Path to config file if found, None otherwise
    """
    if scope in ("project", "any"):
        project_config = get_project_root() / PROJECT_DIR_NAME / CONFIG_FILENAME
        if project_config.exists():
            return project_config

    if scope in ("global", "any"):
        global_config = get_global_dir() / CONFIG_FILENAME
        if global_config.exists():
            return global_config

    return None


def expand_path(path: str) -> Path:
    """Expand ~ in a path.

    Only expands ~ to home directory. Does NOT expand ${VAR} patterns.

    Args:
        path: Path string potentially containing ~

    Returns:
        Expanded absolute Path
    """
    return Path(path).expanduser().resolve()
