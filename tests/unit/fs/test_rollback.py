"""Unit tests for RollbackCoordinator."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from sm.errors import FileSystemError, ResourceNotFoundError
from sm.fs.backup import BackupManager, RollbackRegistry
from sm.fs.rollback import RollbackCoordinator


@pytest.fixture
def registry() -> RollbackRegistry:
    return RollbackRegistry()


@pytest.fixture
def backups(project: Path, registry: RollbackRegistry) -> BackupManager:
    return BackupManager(project, registry)


@pytest.fixture
def coordinator(registry: RollbackRegistry) -> RollbackCoordinator:
    return RollbackCoordinator(registry)


@pytest.mark.unit
@pytest.mark.fs
class TestPerformRollback:
    def test_backup_then_rollback_restores_content(
        self, project: Path, backups: BackupManager, coordinator: RollbackCoordinator
    ) -> None:
        f = project / "f.txt"
        f.write_text("C")
        backup_path = Path(backups.create_backup(f, token="t"))
        f.write_text("C'")

        assert coordinator.perform_rollback("t") == [str(f)]
        assert f.read_text() == "C"
        assert not backup_path.exists()

    def test_token_is_single_use(
        self, project: Path, backups: BackupManager, coordinator: RollbackCoordinator
    ) -> None:
        f = project / "f.txt"
        f.write_text("C")
        backups.create_backup(f, token="t")
        coordinator.perform_rollback("t")
        with pytest.raises(ResourceNotFoundError, match="Rollback token not found: t"):
            coordinator.perform_rollback("t")

    def test_unknown_token(self, coordinator: RollbackCoordinator) -> None:
        with pytest.raises(ResourceNotFoundError):
            coordinator.perform_rollback("nope")

    def test_restores_deleted_file_and_parents(
        self, project: Path, backups: BackupManager, coordinator: RollbackCoordinator
    ) -> None:
        f = project / "a" / "b" / "f.txt"
        f.parent.mkdir(parents=True)
        f.write_text("keep")
        backups.create_backup(f, token="t", operation="delete")
        f.unlink()
        f.parent.rmdir()

        coordinator.perform_rollback("t")
        assert f.read_text() == "keep"

    def test_missing_backup_file(
        self,
        project: Path,
        backups: BackupManager,
        coordinator: RollbackCoordinator,
        registry: RollbackRegistry,
    ) -> None:
        f = project / "f.txt"
        f.write_text("C")
        Path(backups.create_backup(f, token="t")).unlink()

        with pytest.raises(FileSystemError, match="rollback"):
            coordinator.perform_rollback("t")
        assert "t" in registry

    def test_copy_failure_keeps_entry(
        self,
        project: Path,
        backups: BackupManager,
        coordinator: RollbackCoordinator,
        registry: RollbackRegistry,
    ) -> None:
        f = project / "f.txt"
        f.write_text("C")
        backups.create_backup(f, token="t")
        with (
            patch("sm.fs.rollback.shutil.copy2", side_effect=OSError("io")),
            pytest.raises(FileSystemError),
        ):
            coordinator.perform_rollback("t")
        assert "t" in registry


@pytest.mark.unit
@pytest.mark.fs
class TestLookups:
    def test_info_and_tokens(
        self, project: Path, backups: BackupManager, coordinator: RollbackCoordinator
    ) -> None:
        (project / "f.txt").write_text("x")
        backups.create_backup(project / "f.txt", token="t")

        info = coordinator.get_rollback_info("t")
        assert info is not None
        assert info.original_path == project / "f.txt"
        assert coordinator.get_rollback_info("other") is None
        assert coordinator.list_rollback_tokens() == ["t"]
