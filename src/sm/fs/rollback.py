"""Restore files from registered backups."""

from __future__ import annotations

import shutil

from loguru import logger

from sm.errors import FileSystemError, ResourceNotFoundError
from sm.fs.backup import RollbackEntry, RollbackRegistry

__all__ = ["RollbackCoordinator"]


class RollbackCoordinator:
    """Consumes rollback tokens issued by BackupManager."""

    def __init__(self, registry: RollbackRegistry) -> None:
        self.registry = registry

    def perform_rollback(self, token: str) -> list[str]:
        """Restore the file backed up under ``token``.

        The backup is copied over the original path (recreating parent
        directories for a rolled-back delete), then removed together with
        the registry entry. A token can be used once.

        Args:
            token: Rollback token returned by a write or delete

        Returns:
            Absolute paths of the restored files

        Raises:
            ResourceNotFoundError: If the token is unknown or already used
            FileSystemError: If the backup is gone or cannot be copied back
        """
        entry = self.registry.get(token)
        if entry is None:
            raise ResourceNotFoundError(f"Rollback token not found: {token}")

        if not entry.backup_path.exists():
            raise FileSystemError(
                "rollback", str(entry.backup_path), FileNotFoundError("Backup file missing")
            )

        try:
            entry.original_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(entry.backup_path, entry.original_path)
        except OSError as e:
            raise FileSystemError("rollback", str(entry.original_path), e) from e

        try:
            entry.backup_path.unlink()
        except OSError as e:
            logger.warning(f"Restored {entry.original_path} but could not remove backup: {e}")

        self.registry.pop(token)
        logger.info(f"Rollback complete: {entry.operation} of {entry.original_path} undone")
        return [str(entry.original_path)]

    def get_rollback_info(self, token: str) -> RollbackEntry | None:
        return self.registry.get(token)

    def list_rollback_tokens(self) -> list[str]:
        return self.registry.tokens()
