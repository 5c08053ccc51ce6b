"""Unit tests for Workspace and the process-wide default."""

from __future__ import annotations

from pathlib import Path

import pytest

from sm.config import SwarmConfig
from sm.config.loader import FileConfig
from sm.fs.workspace import Workspace, get_workspace, reset_workspace, set_workspace


@pytest.mark.unit
@pytest.mark.fs
class TestWorkspace:
    def test_shares_registry(self, project: Path) -> None:
        ws = Workspace(project)
        assert ws.backups.registry is ws.registry
        assert ws.rollbacks.registry is ws.registry

    def test_config_drives_backups(self, project: Path) -> None:
        config = SwarmConfig(
            files=FileConfig(backup_dir=".bk", backup_max_age_days=2, backup_max_count=5)
        )
        ws = Workspace(project, config)
        assert ws.backups.backup_dir == project / ".bk"
        assert ws.backups.max_age_days == 2
        assert ws.backups.max_count == 5

    def test_root_is_canonical(self, project: Path, tmp_path: Path) -> None:
        link = tmp_path / "link"
        link.symlink_to(project)
        assert Workspace(link).project_root == project

    def test_resolve_and_uri(self, project: Path) -> None:
        ws = Workspace(project)
        path = ws.resolve("a\\b.txt")
        assert path == project / "a" / "b.txt"
        assert ws.uri_for(path) == "a/b.txt"


@pytest.mark.unit
@pytest.mark.fs
class TestDefaultWorkspace:
    def test_from_env(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SWARM_MCP_PROJECT_ROOT", str(project))
        ws = get_workspace()
        assert ws.project_root == project
        assert get_workspace() is ws

    def test_from_cwd(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(project)
        assert get_workspace().project_root == project

    def test_set_and_reset(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(project)
        custom = set_workspace(Workspace(project))
        assert get_workspace() is custom
        reset_workspace()
        assert get_workspace() is not custom
