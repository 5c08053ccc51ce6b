"""Secure file operations scoped to a project root.

Usage:
    from sm.fs import get_workspace

    ws = get_workspace()
    path = ws.resolve("src/main.wasp")
    ws.backups.create_backup(path, token=ws.backups.generate_rollback_token())
"""

from sm.fs.atomic import atomic_write
from sm.fs.backup import (
    BackupInfo,
    BackupManager,
    RollbackEntry,
    RollbackRegistry,
)
from sm.fs.content import MimeInfo, check_file_size, lookup_mime
from sm.fs.dryrun import DryRunResult, simulate_file_operation
from sm.fs.listing import (
    DirectoryEntry,
    EntryFilter,
    apply_filters,
    apply_sorting,
    list_entries,
    paginate,
)
from sm.fs.resolver import resolve_project_path, to_uri
from sm.fs.rollback import RollbackCoordinator
from sm.fs.workspace import Workspace, get_workspace, reset_workspace, set_workspace

__all__ = [
    "BackupInfo",
    "BackupManager",
    "DirectoryEntry",
    "DryRunResult",
    "EntryFilter",
    "MimeInfo",
    "RollbackCoordinator",
    "RollbackEntry",
    "RollbackRegistry",
    "Workspace",
    "apply_filters",
    "apply_sorting",
    "atomic_write",
    "check_file_size",
    "get_workspace",
    "list_entries",
    "lookup_mime",
    "paginate",
    "reset_workspace",
    "resolve_project_path",
    "set_workspace",
    "simulate_file_operation",
    "to_uri",
]
