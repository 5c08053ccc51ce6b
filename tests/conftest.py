"""Shared fixtures: every test gets a clean config, environment and workspace."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

import sm.config.loader
from sm.fs.workspace import Workspace, reset_workspace, set_workspace

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Drop SWARM_MCP_* variables and cached globals around each test."""
    for name in (
        "SWARM_MCP_PROJECT_ROOT",
        "SWARM_MCP_CONFIG",
        "SWARM_MCP_LOGGING_LEVEL",
        "SWARM_MCP_LOGGING_FORMAT",
    ):
        # setenv first so monkeypatch also undoes values the CLI exports
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Keep ~/.swarm-mcp/config.yaml of the developer out of the tests
    monkeypatch.setenv("HOME", str(tmp_path / "home"))

    sm.config.loader._config = None
    reset_workspace()
    yield
    sm.config.loader._config = None
    reset_workspace()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def workspace(project: Path) -> Workspace:
    """A workspace bound to ``project`` and installed as the process default."""
    return set_workspace(Workspace(project))
