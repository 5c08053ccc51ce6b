"""The per-session owner of project root, backups and rollback state."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from sm.config import SwarmConfig, get_config
from sm.fs.backup import BackupManager, RollbackRegistry
from sm.fs.resolver import resolve_project_path, to_uri
from sm.fs.rollback import RollbackCoordinator
from sm.paths import get_project_root

__all__ = ["Workspace", "get_workspace", "reset_workspace", "set_workspace"]


class Workspace:
    """A project root plus the rollback registry shared by its tools.

    Attributes:
        project_root: Canonical project root (symlinks resolved)
        config: Configuration in effect
        registry: Token -> rollback entry mapping
        backups: BackupManager bound to ``project_root``
        rollbacks: RollbackCoordinator sharing ``registry``
    """

    def __init__(
        self, project_root: Path | str, config: SwarmConfig | None = None
    ) -> None:
        self.project_root = Path(project_root).expanduser().resolve()
        self.config = config or SwarmConfig()
        self.registry = RollbackRegistry()
        self.backups = BackupManager(
            self.project_root,
            self.registry,
            backup_dir_name=self.config.files.backup_dir,
            max_age_days=self.config.files.backup_max_age_days,
            max_count=self.config.files.backup_max_count,
        )
        self.rollbacks = RollbackCoordinator(self.registry)

    def resolve(self, uri: str) -> Path:
        return resolve_project_path(uri, self.project_root)

    def uri_for(self, path: Path) -> str:
        return to_uri(path, self.project_root)

    def __repr__(self) -> str:
        return f"Workspace({str(self.project_root)!r}, tokens={len(self.registry)})"


_workspace: Workspace | None = None


def get_workspace() -> Workspace:
    """Get the process-wide workspace, creating it on first use.

    The project root comes from SWARM_MCP_PROJECT_ROOT or the current
    directory; configuration from get_config().
    """
    global _workspace

    if _workspace is None:
        _workspace = Workspace(get_project_root(), get_config())
        logger.info(f"Workspace bound to {_workspace.project_root}")

    return _workspace


def set_workspace(workspace: Workspace) -> Workspace:
    global _workspace
    _workspace = workspace
    return workspace


def reset_workspace() -> None:
    """Drop the process-wide workspace and its rollback registry."""
    global _workspace
    _workspace = None
