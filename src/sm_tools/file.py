"""Project-scoped file operations with backups and rollback.

Every path is relative to the workspace project root and is validated
before the filesystem is touched. Write and delete can take a backup,
which returns a single-use rollback token.

Configuration via .swarm-mcp/config.yaml:
    files:
      max_file_size: 409600      # Largest file read() accepts
      max_display_chars: 50000   # Text beyond this is truncated
      backup_dir: .mcp_backups   # Relative to the project root
      backup_max_age_days: 7     # cleanup_backups() defaults
      backup_max_count: 100

Errors are raised as SwarmMCPError subclasses; the server turns them into
MCP tool errors.
"""

from __future__ import annotations

# Note: This module defines a function named `list` which shadows the builtin.

namespace = "file"

__all__ = [
    "cleanup_backups",
    "delete",
    "list",
    "read",
    "rollback",
    "write",
]

import stat
from typing import Any

from sm.errors import InvalidParamsError, file_operation_error
from sm.fs.atomic import atomic_write
from sm.fs.content import (
    binary_placeholder,
    check_file_size,
    decode_text,
    detect_mime,
    sanitize_contents,
)
from sm.fs.dryrun import simulate_file_operation
from sm.fs.listing import (
    EntryFilter,
    apply_filters,
    apply_sorting,
    list_entries,
    paginate,
)
from sm.fs.workspace import get_workspace
from sm.logging import LogSpan
from sm.models import (
    CleanupBackupsParams,
    CleanupBackupsResult,
    DeleteDryRun,
    DeleteFileParams,
    FileOperationResult,
    ListDirectoryParams,
    ListDirectoryResult,
    PaginationInfo,
    ReadFileParams,
    ReadFileResult,
    RollbackParams,
    RollbackResult,
    WriteDryRun,
    WriteFileParams,
    parse_params,
)


def _rollback_shortcut(token: str, span: LogSpan) -> dict[str, Any]:
    """Handle a write/delete call that only carries a rollback token."""
    restored = get_workspace().rollbacks.perform_rollback(token)
    span.add(rolledBack=True, restored=len(restored))
    return FileOperationResult(rollback_token=token).to_wire()


def read(*, uri: str) -> dict[str, Any]:
    """Read a file inside the project.

    Text files are decoded as UTF-8 (other encodings are detected) and
    truncated past the configured display limit. Binary files return a
    placeholder describing size and MIME type instead of their content.

    Args:
        uri: Path relative to the project root

    Returns:
        {"contents": str, "mimeType": str}

    Raises:
        ResourceNotFoundError: If the file does not exist
        InvalidParamsError: If the path is a directory
        ValidationError: If the file exceeds the size limit

    Example:
        file.read(uri="main.wasp")
    """
    with LogSpan(span="file.read", uri=uri) as s:
        params = parse_params(ReadFileParams, uri=uri)
        ws = get_workspace()
        files = ws.config.files
        path = ws.resolve(params.uri)

        try:
            st = path.stat()
        except OSError as e:
            raise file_operation_error("read", params.uri, e) from e

        if not stat.S_ISREG(st.st_mode):
            raise InvalidParamsError(f"Path is not a file: {params.uri}")

        check_file_size(st.st_size, files.max_file_size)

        try:
            data = path.read_bytes()
        except OSError as e:
            raise file_operation_error("read", params.uri, e) from e

        info = detect_mime(path, data)
        if info.is_text:
            contents = sanitize_contents(decode_text(data), files.max_display_chars)
        else:
            contents = binary_placeholder(len(data), info.mime_type)

        s.add(size=len(data), mimeType=info.mime_type, text=info.is_text)
        return ReadFileResult(contents=contents, mime_type=info.mime_type).to_wire()


def write(
    *,
    uri: str,
    contents: str,
    mime_type: str | None = None,
    backup: bool = False,
    dry_run: bool = False,
    rollback_token: str | None = None,
) -> dict[str, Any]:
    """Write a file atomically, creating parent directories as needed.

    With ``backup`` the previous content is copied to the backup directory
    first and a rollback token is returned (``rollback_token`` if given,
    otherwise a new one). A call with ``rollback_token`` and neither
    ``backup`` nor ``dry_run`` restores that token instead of writing.

    Args:
        uri: Path relative to the project root
        contents: Text to write (UTF-8)
        mime_type: Declared content type (informational)
        backup: Back up an existing file before overwriting it
        dry_run: Report what would happen without touching the filesystem
        rollback_token: Token to register the backup under, or to roll back

    Returns:
        {"success": True, "backupPath"?: str, "rollbackToken"?: str, "dryRun"?: {...}}

    Example:
        file.write(uri="src/queries.ts", contents="export {}", backup=True)
        file.write(uri="src/queries.ts", contents="", dry_run=True)
    """
    with LogSpan(
        span="file.write",
        uri=uri,
        contentLen=len(contents) if isinstance(contents, str) else None,
        backup=backup,
        dryRun=dry_run,
    ) as s:
        params = parse_params(
            WriteFileParams,
            uri=uri,
            contents=contents,
            mime_type=mime_type,
            backup=backup,
            dry_run=dry_run,
            rollback_token=rollback_token,
        )

        if params.rollback_token and not params.backup and not params.dry_run:
            return _rollback_shortcut(params.rollback_token, s)

        ws = get_workspace()
        path = ws.resolve(params.uri)

        if path.is_dir():
            raise InvalidParamsError(f"Path is a directory, not a file: {params.uri}")

        if params.dry_run:
            sim = simulate_file_operation(path, "write", params.backup)
            s.add(wouldOverwrite=sim.would_overwrite)
            return FileOperationResult(
                dry_run=WriteDryRun(
                    would_overwrite=sim.would_overwrite,
                    backup_would_be_created=sim.backup_would_be_created,
                    target_path=sim.target_path,
                )
            ).to_wire()

        result = FileOperationResult()
        if params.backup:
            token = params.rollback_token or ws.backups.generate_rollback_token()
            backup_path = ws.backups.create_backup(path, token, "write")
            if backup_path:
                result.backup_path = backup_path
                result.rollback_token = token

        written = atomic_write(path, params.contents)
        s.add(bytesWritten=written, backedUp=result.backup_path is not None)
        return result.to_wire()


def list(
    *,
    uri: str = ".",
    recursive: bool = False,
    max_depth: int | None = None,
    include_permissions: bool = False,
    filter: dict[str, Any] | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    pagination: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """List a directory inside the project.

    Filtering, sorting and pagination apply to the top-level entries.
    Recursive listings nest subdirectory contents under ``children``;
    top-level entries are depth 1 and nothing deeper than ``max_depth``
    is returned.

    Args:
        uri: Directory relative to the project root ("." for the root)
        recursive: Descend into subdirectories
        max_depth: Deepest level returned, 1-10 (default: files.default_max_depth)
        include_permissions: Add rwx permission strings
        filter: {"type", "namePattern", "extensions", "minSize", "maxSize"}
        sort_by: name, size, type or modified
        sort_order: asc or desc
        pagination: {"offset", "limit"}

    Returns:
        {"entries": [...], "totalCount": int, "hasMore"?: bool, "pagination"?: {...}}

    Example:
        file.list(uri="src", recursive=True, max_depth=2)
        file.list(uri=".", filter={"extensions": ["ts"]}, sort_by="size", sort_order="desc")
    """
    with LogSpan(
        span="file.list", uri=uri, recursive=recursive, maxDepth=max_depth
    ) as s:
        params = parse_params(
            ListDirectoryParams,
            uri=uri,
            recursive=recursive,
            max_depth=max_depth,
            include_permissions=include_permissions,
            filter=filter,
            sort_by=sort_by,
            sort_order=sort_order,
            pagination=pagination,
        )
        ws = get_workspace()
        files = ws.config.files
        path = ws.resolve(params.uri)

        entries = list_entries(
            path,
            ws.uri_for(path),
            recursive=params.recursive,
            max_depth=params.max_depth or files.default_max_depth,
            include_permissions=params.include_permissions,
            project_root=ws.project_root,
        )

        if params.filter is not None:
            entries = apply_filters(
                entries,
                EntryFilter(
                    type=params.filter.type,
                    name_pattern=params.filter.name_pattern,
                    extensions=params.filter.extensions,
                    min_size=params.filter.min_size,
                    max_size=params.filter.max_size,
                ),
            )

        entries = apply_sorting(entries, params.sort_by, params.sort_order)
        total = len(entries)

        if params.pagination is None:
            s.add(total=total, returned=total)
            return ListDirectoryResult(
                entries=[e.to_dict() for e in entries], total_count=total
            ).to_wire()

        page = paginate(
            entries,
            offset=params.pagination.offset,
            limit=params.pagination.limit or files.default_page_limit,
        )
        s.add(total=total, returned=len(page.entries), hasMore=page.has_more)
        return ListDirectoryResult(
            entries=[e.to_dict() for e in page.entries],
            total_count=total,
            has_more=page.has_more,
            pagination=PaginationInfo(
                offset=page.offset, limit=page.limit, total=page.total
            ),
        ).to_wire()


def delete(
    *,
    uri: str,
    backup: bool = False,
    dry_run: bool = False,
    rollback_token: str | None = None,
) -> dict[str, Any]:
    """Delete a file inside the project.

    Directories are refused. With ``backup`` the file is copied aside first
    and the returned rollback token restores it. A call with
    ``rollback_token`` and neither ``backup`` nor ``dry_run`` restores that
    token instead of deleting.

    Args:
        uri: File relative to the project root
        backup: Back up the file before deleting it
        dry_run: Report what would happen without touching the filesystem
        rollback_token: Token to register the backup under, or to roll back

    Returns:
        {"success": True, "backupPath"?: str, "rollbackToken"?: str, "dryRun"?: {...}}

    Example:
        file.delete(uri="src/old.ts", backup=True)
    """
    with LogSpan(span="file.delete", uri=uri, backup=backup, dryRun=dry_run) as s:
        params = parse_params(
            DeleteFileParams,
            uri=uri,
            backup=backup,
            dry_run=dry_run,
            rollback_token=rollback_token,
        )

        if params.rollback_token and not params.backup and not params.dry_run:
            return _rollback_shortcut(params.rollback_token, s)

        ws = get_workspace()
        path = ws.resolve(params.uri)

        try:
            st = path.stat()
        except OSError as e:
            raise file_operation_error("delete", params.uri, e) from e

        if not stat.S_ISREG(st.st_mode):
            raise InvalidParamsError(
                f"Path is not a file: {params.uri}. "
                "Use directory deletion tools for directories."
            )

        if params.dry_run:
            sim = simulate_file_operation(path, "delete", params.backup)
            s.add(fileSize=st.st_size)
            return FileOperationResult(
                dry_run=DeleteDryRun(
                    backup_would_be_created=sim.backup_would_be_created,
                    target_path=sim.target_path,
                    file_size=st.st_size,
                )
            ).to_wire()

        result = FileOperationResult()
        if params.backup:
            token = params.rollback_token or ws.backups.generate_rollback_token()
            backup_path = ws.backups.create_backup(path, token, "delete")
            if backup_path:
                result.backup_path = backup_path
                result.rollback_token = token

        try:
            path.unlink()
        except OSError as e:
            raise file_operation_error("delete", params.uri, e) from e

        s.add(deleted=True, size=st.st_size, backedUp=result.backup_path is not None)
        return result.to_wire()


def rollback(*, rollback_token: str) -> dict[str, Any]:
    """Restore the file backed up under a rollback token.

    Tokens are single use; the backup file is removed once restored.

    Args:
        rollback_token: Token returned by write() or delete()

    Returns:
        {"success": True, "restoredFiles": [absolute paths]}

    Raises:
        ResourceNotFoundError: If the token is unknown or already used
        FileSystemError: If the backup file is missing or cannot be copied

    Example:
        file.rollback(rollback_token="0b9f...")
    """
    with LogSpan(span="file.rollback", token=rollback_token) as s:
        params = parse_params(RollbackParams, rollback_token=rollback_token)
        restored = get_workspace().rollbacks.perform_rollback(params.rollback_token)
        s.add(restored=len(restored))
        return RollbackResult(restored_files=restored).to_wire()


def cleanup_backups(
    *, max_age_days: float | None = None, max_count: int | None = None
) -> dict[str, Any]:
    """Delete old backups from the backup directory.

    Args:
        max_age_days: Remove backups older than this (default: files.backup_max_age_days)
        max_count: Keep at most this many, newest first (default: files.backup_max_count)

    Returns:
        {"deleted": int}
    """
    with LogSpan(
        span="file.cleanup_backups", maxAgeDays=max_age_days, maxCount=max_count
    ) as s:
        params = parse_params(
            CleanupBackupsParams, max_age_days=max_age_days, max_count=max_count
        )
        deleted = get_workspace().backups.cleanup_old_backups(
            params.max_age_days, params.max_count
        )
        s.add(deleted=deleted)
        return CleanupBackupsResult(deleted=deleted).to_wire()
