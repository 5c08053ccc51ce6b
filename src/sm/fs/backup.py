"""Backups of files about to be overwritten or deleted.

Backups live under ``<project root>/.mcp_backups/`` and are named
``<original-name>.bak.<suffix>``, where the suffix is the rollback token or,
without a token, a filesystem-safe UTC timestamp. Only token-named backups
are registered and can be restored with RollbackCoordinator; the registry
is in memory, so backups from an earlier process are orphans that only
cleanup_old_backups() removes.
"""

from __future__ import annotations

import shutil
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from loguru import logger

from sm.errors import FileSystemError, InternalError, ValidationError

__all__ = [
    "BACKUP_MARKER",
    "BackupInfo",
    "BackupManager",
    "Operation",
    "RollbackEntry",
    "RollbackRegistry",
    "backup_timestamp",
]

Operation = Literal["write", "delete"]

BACKUP_MARKER = ".bak."

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class RollbackEntry:
    """A registered backup that a rollback token can restore."""

    token: str
    original_path: Path
    backup_path: Path
    operation: Operation
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, str]:
        return {
            "token": self.token,
            "originalPath": str(self.original_path),
            "backupPath": str(self.backup_path),
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
        }


class RollbackRegistry:
    """Token -> RollbackEntry mapping shared by backup and rollback."""

    def __init__(self) -> None:
        self._entries: dict[str, RollbackEntry] = {}

    def register(self, entry: RollbackEntry) -> None:
        """Add an entry, replacing any previous entry for the same token."""
        if entry.token in self._entries:
            logger.debug(f"Rollback token reused, replacing entry: {entry.token}")
        self._entries[entry.token] = entry

    def get(self, token: str) -> RollbackEntry | None:
        return self._entries.get(token)

    def pop(self, token: str) -> RollbackEntry | None:
        return self._entries.pop(token, None)

    def tokens(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, token: object) -> bool:
        return token in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class BackupInfo:
    """A backup file found on disk."""

    name: str
    path: Path
    size: int
    modified: datetime

    def to_dict(self) -> dict[str, str | int]:
        return {
            "name": self.name,
            "path": str(self.path),
            "size": self.size,
            "modified": self.modified.isoformat(),
        }


def backup_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp with milliseconds, safe in file names on all platforms.

    Example: 2024-01-02T03-04-05-678Z
    """
    now = now or datetime.now(UTC)
    iso = now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


class BackupManager:
    """Creates, lists and prunes backups for one project root."""

    def __init__(
        self,
        project_root: Path | None,
        registry: RollbackRegistry,
        backup_dir_name: str = ".mcp_backups",
        max_age_days: float = 7,
        max_count: int = 100,
    ) -> None:
        self.project_root = project_root
        self.registry = registry
        self.backup_dir_name = backup_dir_name
        self.max_age_days = max_age_days
        self.max_count = max_count

    @property
    def backup_dir(self) -> Path:
        if self.project_root is None:
            raise InternalError(
                "Backup utilities not initialized. Bind a project root first."
            )
        return self.project_root / self.backup_dir_name

    def _ensure_backup_dir(self) -> Path:
        backup_dir = self.backup_dir
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError("create backup directory", str(backup_dir), e) from e
        return backup_dir

    def generate_rollback_token(self) -> str:
        """Generate a new UUID4 rollback token.

        Raises:
            InternalError: If the manager has no project root
        """
        if self.project_root is None:
            raise InternalError(
                "Backup utilities not initialized. Bind a project root first."
            )
        return str(uuid.uuid4())

    def create_backup(
        self,
        original_path: Path,
        token: str | None = None,
        operation: Operation = "write",
    ) -> str:
        """Copy ``original_path`` aside before it is overwritten or deleted.

        Args:
            original_path: Absolute path of the file to back up
            token: Rollback token; when given the backup is registered
            operation: Operation recorded in the rollback entry

        Returns:
            Absolute backup path, or "" when there was no file to back up

        Raises:
            FileSystemError: If the backup directory or copy cannot be created
            ValidationError: If the token is not a single file name component
        """
        if not original_path.exists():
            logger.debug(f"No backup needed - file does not exist: {original_path}")
            return ""

        suffix = token if token else backup_timestamp()
        if "/" in suffix or "\\" in suffix:
            raise ValidationError(f"Invalid rollback token: {token!r}")

        backup_dir = self._ensure_backup_dir()
        backup_path = backup_dir / f"{original_path.name}{BACKUP_MARKER}{suffix}"
        if backup_path.parent != backup_dir:
            raise ValidationError(f"Invalid rollback token: {token!r}")

        try:
            shutil.copy2(original_path, backup_path)
        except OSError as e:
            raise FileSystemError("create backup for", str(original_path), e) from e

        if token:
            self.registry.register(
                RollbackEntry(
                    token=token,
                    original_path=original_path,
                    backup_path=backup_path,
                    operation=operation,
                )
            )

        logger.debug(
            f"Backup created: {original_path} -> {backup_path} (token={token})"
        )
        return str(backup_path)

    def list_backups(self) -> list[BackupInfo]:
        """Backup files on disk, oldest first. Missing directory -> []."""
        try:
            candidates = [
                p for p in self.backup_dir.iterdir() if BACKUP_MARKER in p.name
            ]
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Could not read backup directory {self.backup_dir}: {e}")
            return []

        backups: list[BackupInfo] = []
        for path in candidates:
            try:
                st = path.stat()
            except OSError as e:
                logger.warning(f"Could not stat backup {path}: {e}")
                continue
            if not path.is_file():
                continue
            backups.append(
                BackupInfo(
                    name=path.name,
                    path=path,
                    size=st.st_size,
                    modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
                )
            )

        backups.sort(key=lambda b: b.modified)
        return backups

    def cleanup_old_backups(
        self, max_age_days: float | None = None, max_count: int | None = None
    ) -> int:
        """Delete backups older than ``max_age_days`` or beyond ``max_count``.

        Candidates are the union of both rules: any backup past the age
        threshold, plus the oldest backups that exceed the count. Missing
        directories and unreadable entries are logged, never raised.

        Args:
            max_age_days: Age threshold, defaults to the manager's setting
            max_count: Number of backups to keep, defaults to the manager's setting

        Returns:
            Number of backup files deleted
        """
        if max_age_days is None:
            max_age_days = self.max_age_days
        if max_count is None:
            max_count = self.max_count

        backups = self.list_backups()
        if not backups:
            return 0

        now = time.time()
        max_age_seconds = max_age_days * _SECONDS_PER_DAY
        excess = max(len(backups) - max_count, 0)

        deleted = 0
        for index, backup in enumerate(backups):
            age = now - backup.modified.timestamp()
            if age <= max_age_seconds and index >= excess:
                continue
            try:
                backup.path.unlink()
            except OSError as e:
                logger.warning(f"Failed to delete old backup {backup.path}: {e}")
                continue
            deleted += 1
            logger.debug(f"Deleted old backup {backup.path} (age {age:.0f}s)")

        if deleted:
            logger.info(f"Cleaned up old backups: {deleted} deleted")
        return deleted
