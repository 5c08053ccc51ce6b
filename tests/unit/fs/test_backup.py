"""Unit tests for BackupManager and RollbackRegistry."""

from __future__ import annotations

import os
import re
import time
import uuid
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from sm.errors import FileSystemError, InternalError, ValidationError
from sm.fs.backup import (
    BackupManager,
    RollbackEntry,
    RollbackRegistry,
    backup_timestamp,
)


@pytest.fixture
def registry() -> RollbackRegistry:
    return RollbackRegistry()


@pytest.fixture
def manager(project: Path, registry: RollbackRegistry) -> BackupManager:
    return BackupManager(project, registry)


def _age(path: Path, days: float) -> None:
    past = time.time() - days * 24 * 60 * 60
    os.utime(path, (past, past))


@pytest.mark.unit
@pytest.mark.fs
class TestRollbackRegistry:
    def test_register_get_pop(self, registry: RollbackRegistry, project: Path) -> None:
        entry = RollbackEntry("t1", project / "a", project / "b", "write")
        registry.register(entry)
        assert "t1" in registry
        assert len(registry) == 1
        assert registry.get("t1") is entry
        assert registry.pop("t1") is entry
        assert registry.get("t1") is None
        assert registry.pop("t1") is None

    def test_reuse_replaces(self, registry: RollbackRegistry, project: Path) -> None:
        registry.register(RollbackEntry("t", project / "a", project / "b1", "write"))
        registry.register(RollbackEntry("t", project / "a", project / "b2", "delete"))
        assert len(registry) == 1
        assert registry.get("t").backup_path == project / "b2"  # type: ignore[union-attr]

    def test_clear(self, registry: RollbackRegistry, project: Path) -> None:
        registry.register(RollbackEntry("t", project / "a", project / "b", "write"))
        registry.clear()
        assert registry.tokens() == []

    def test_entry_to_dict(self, project: Path) -> None:
        entry = RollbackEntry("t", project / "a", project / "b", "delete")
        data = entry.to_dict()
        assert data["operation"] == "delete"
        assert data["originalPath"] == str(project / "a")


@pytest.mark.unit
@pytest.mark.fs
class TestCreateBackup:
    def test_missing_original_is_noop(
        self, manager: BackupManager, registry: RollbackRegistry, project: Path
    ) -> None:
        assert manager.create_backup(project / "missing.txt", token="t") == ""
        assert not manager.backup_dir.exists()
        assert len(registry) == 0

    def test_backup_with_token(
        self, manager: BackupManager, registry: RollbackRegistry, project: Path
    ) -> None:
        original = project / "src" / "main.ts"
        original.parent.mkdir()
        original.write_text("v1")

        backup_path = manager.create_backup(original, token="abc")

        assert backup_path == str(project / ".mcp_backups" / "main.ts.bak.abc")
        assert Path(backup_path).read_text() == "v1"
        entry = registry.get("abc")
        assert entry is not None
        assert entry.original_path == original
        assert entry.operation == "write"

    def test_backup_records_operation(
        self, manager: BackupManager, registry: RollbackRegistry, project: Path
    ) -> None:
        (project / "f.txt").write_text("x")
        manager.create_backup(project / "f.txt", token="t", operation="delete")
        assert registry.get("t").operation == "delete"  # type: ignore[union-attr]

    def test_backup_without_token_uses_timestamp(
        self, manager: BackupManager, registry: RollbackRegistry, project: Path
    ) -> None:
        (project / "f.txt").write_text("x")
        backup_path = Path(manager.create_backup(project / "f.txt"))
        assert re.fullmatch(
            r"f\.txt\.bak\.\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z", backup_path.name
        )
        assert len(registry) == 0

    def test_copy_failure(self, manager: BackupManager, project: Path) -> None:
        (project / "f.txt").write_text("x")
        with (
            patch("sm.fs.backup.shutil.copy2", side_effect=OSError("disk full")),
            pytest.raises(FileSystemError, match="create backup for"),
        ):
            manager.create_backup(project / "f.txt", token="t")

    def test_backup_dir_failure(self, manager: BackupManager, project: Path) -> None:
        (project / "f.txt").write_text("x")
        (project / ".mcp_backups").write_text("not a directory")
        with pytest.raises(FileSystemError, match="create backup directory"):
            manager.create_backup(project / "f.txt", token="t")

    @pytest.mark.parametrize("token", ["x/../../../escaped.txt", "x\\..\\y", "a/b"])
    def test_token_with_separator_rejected(
        self, manager: BackupManager, registry: RollbackRegistry, project: Path, token: str
    ) -> None:
        (project / "a.txt").write_text("secret")
        (project / ".mcp_backups" / "a.txt.bak.x").mkdir(parents=True)

        with pytest.raises(ValidationError, match="Invalid rollback token"):
            manager.create_backup(project / "a.txt", token=token)

        assert not (project.parent / "escaped.txt").exists()
        assert len(registry) == 0

    def test_custom_backup_dir(self, project: Path, registry: RollbackRegistry) -> None:
        manager = BackupManager(project, registry, backup_dir_name=".bk")
        (project / "f.txt").write_text("x")
        assert manager.create_backup(project / "f.txt", token="t").startswith(
            str(project / ".bk")
        )


@pytest.mark.unit
@pytest.mark.fs
class TestRollbackToken:
    def test_uuid4(self, manager: BackupManager) -> None:
        token = manager.generate_rollback_token()
        assert uuid.UUID(token).version == 4
        assert token != manager.generate_rollback_token()

    def test_unbound_manager(self, registry: RollbackRegistry) -> None:
        with pytest.raises(InternalError, match="not initialized"):
            BackupManager(None, registry).generate_rollback_token()


@pytest.mark.unit
@pytest.mark.fs
class TestTimestamp:
    def test_format(self) -> None:
        now = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)
        assert backup_timestamp(now) == "2024-01-02T03-04-05-678Z"


@pytest.mark.unit
@pytest.mark.fs
class TestCleanup:
    def _make(self, manager: BackupManager, name: str, age_days: float) -> Path:
        manager.backup_dir.mkdir(parents=True, exist_ok=True)
        path = manager.backup_dir / name
        path.write_text(name)
        _age(path, age_days)
        return path

    def test_missing_dir(self, manager: BackupManager) -> None:
        assert manager.cleanup_old_backups() == 0

    def test_age_threshold(self, manager: BackupManager) -> None:
        old = self._make(manager, "a.txt.bak.old", 10)
        fresh = self._make(manager, "a.txt.bak.new", 1)
        assert manager.cleanup_old_backups(max_age_days=7, max_count=100) == 1
        assert not old.exists()
        assert fresh.exists()

    def test_count_threshold_removes_oldest(self, manager: BackupManager) -> None:
        paths = [self._make(manager, f"f.bak.{i}", 3 - i * 0.5) for i in range(4)]
        assert manager.cleanup_old_backups(max_age_days=7, max_count=2) == 2
        assert [p.exists() for p in paths] == [False, False, True, True]

    def test_union_of_rules(self, manager: BackupManager) -> None:
        self._make(manager, "f.bak.1", 30)
        self._make(manager, "f.bak.2", 2)
        self._make(manager, "f.bak.3", 1)
        # Age removes the first; count (keep 1) removes the second
        assert manager.cleanup_old_backups(max_age_days=7, max_count=1) == 2
        assert [b.name for b in manager.list_backups()] == ["f.bak.3"]

    def test_ignores_other_files(self, manager: BackupManager) -> None:
        other = self._make(manager, "notes.txt", 100)
        assert manager.cleanup_old_backups(max_age_days=7, max_count=0) == 0
        assert other.exists()

    def test_idempotent(self, manager: BackupManager) -> None:
        self._make(manager, "f.bak.1", 30)
        assert manager.cleanup_old_backups() == 1
        assert manager.cleanup_old_backups() == 0

    def test_defaults_from_manager(self, project: Path, registry: RollbackRegistry) -> None:
        manager = BackupManager(project, registry, max_age_days=1, max_count=100)
        self._make(manager, "f.bak.1", 2)
        assert manager.cleanup_old_backups() == 1

    def test_unlink_failure_is_logged(self, manager: BackupManager) -> None:
        self._make(manager, "f.bak.1", 30)
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            assert manager.cleanup_old_backups() == 0

    def test_list_backups_sorted_oldest_first(self, manager: BackupManager) -> None:
        self._make(manager, "b.bak.x", 1)
        self._make(manager, "a.bak.y", 2)
        backups = manager.list_backups()
        assert [b.name for b in backups] == ["a.bak.y", "b.bak.x"]
        assert backups[0].size == len("a.bak.y")
