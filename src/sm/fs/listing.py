"""Directory listing with bounded recursion, filtering, sorting and paging.

list_entries() walks the tree and builds DirectoryEntry objects. The
remaining helpers operate on the top-level list only; children of
recursive entries are returned as walked.
"""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from loguru import logger

from sm.errors import InvalidParamsError, file_operation_error
from sm.fs.content import lookup_mime
from sm.fs.resolver import is_within

__all__ = [
    "DirectoryEntry",
    "EntryFilter",
    "Page",
    "SortKey",
    "SortOrder",
    "apply_filters",
    "apply_sorting",
    "format_permissions",
    "list_entries",
    "paginate",
]

EntryType = Literal["file", "directory"]
SortKey = Literal["name", "size", "type", "modified"]
SortOrder = Literal["asc", "desc"]


@dataclass
class DirectoryEntry:
    """One file or directory in a listing."""

    uri: str
    name: str
    type: EntryType
    modified: datetime
    mime_type: str | None = None
    size: int | None = None
    permissions: str | None = None
    children: list[DirectoryEntry] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: camelCase keys, unset optional fields omitted."""
        data: dict[str, Any] = {"uri": self.uri, "name": self.name, "type": self.type}
        if self.mime_type is not None:
            data["mimeType"] = self.mime_type
        if self.size is not None:
            data["size"] = self.size
        if self.permissions is not None:
            data["permissions"] = self.permissions
        data["modified"] = iso_utc(self.modified)
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class EntryFilter:
    """Filter criteria, all of which must hold."""

    type: EntryType | None = None
    name_pattern: str | None = None
    extensions: list[str] = field(default_factory=list)
    min_size: int | None = None
    max_size: int | None = None


@dataclass(frozen=True)
class Page:
    entries: list[DirectoryEntry]
    offset: int
    limit: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.entries) < self.total


def iso_utc(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_permissions(mode: int) -> str:
    """Unix permission bits as ``rwxr-xr-x``."""
    return stat.filemode(mode)[1:]


def _child_uri(base_uri: str, name: str) -> str:
    if base_uri in ("", "."):
        return name
    return f"{base_uri.rstrip('/')}/{name}"


def _escapes(path: Path, project_root: Path) -> bool:
    """Whether a symlink at ``path`` points outside ``project_root``."""
    if not path.is_symlink():
        return False
    try:
        return not is_within(path.resolve(), project_root)
    except (OSError, RuntimeError):
        # Link loops cannot be followed, so they are treated as escaping
        return True


def _walk(
    path: Path,
    base_uri: str,
    *,
    project_root: Path,
    recursive: bool,
    max_depth: int,
    level: int,
    include_permissions: bool,
) -> list[DirectoryEntry]:
    """List ``path``; raises OSError if the directory itself can't be read."""
    entries: list[DirectoryEntry] = []

    with os.scandir(path) as it:
        names = sorted(e.name for e in it)

    for name in names:
        entry_path = path / name
        uri = _child_uri(base_uri, name)
        if _escapes(entry_path, project_root):
            logger.warning(f"Skipping symlink leaving the project: {uri}")
            continue
        try:
            # stat follows symlinks, so a broken link lands in the except
            st = entry_path.stat()
        except OSError as e:
            logger.warning(f"Could not stat directory entry {uri}: {e}")
            continue

        is_dir = stat.S_ISDIR(st.st_mode)
        entry = DirectoryEntry(
            uri=uri,
            name=name,
            type="directory" if is_dir else "file",
            modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
        )
        if not is_dir:
            entry.mime_type = lookup_mime(name).mime_type
            entry.size = st.st_size
        if include_permissions:
            entry.permissions = format_permissions(st.st_mode)

        if recursive and is_dir and level < max_depth:
            try:
                entry.children = _walk(
                    entry_path,
                    uri,
                    project_root=project_root,
                    recursive=recursive,
                    max_depth=max_depth,
                    level=level + 1,
                    include_permissions=include_permissions,
                )
            except OSError as e:
                logger.warning(f"Could not list subdirectory {uri}: {e}")

        entries.append(entry)

    return entries


def list_entries(
    root_path: Path,
    base_uri: str,
    *,
    recursive: bool = False,
    max_depth: int = 3,
    include_permissions: bool = False,
    project_root: Path | None = None,
) -> list[DirectoryEntry]:
    """List a directory, optionally recursing.

    Top-level entries are level 1. A directory at level L gets ``children``
    only when ``recursive`` is set and L < ``max_depth``. Symlinks whose
    target lies outside ``project_root`` are left out with a warning.

    Args:
        root_path: Absolute, already validated directory
        base_uri: Project-relative URI of ``root_path`` ("." for the root)
        recursive: Descend into subdirectories
        max_depth: Deepest level returned
        include_permissions: Add ``rwx`` permission strings
        project_root: Containment root for symlinks (default: ``root_path``)

    Returns:
        Top-level entries in name order

    Raises:
        ResourceNotFoundError: If the directory does not exist
        InvalidParamsError: If the path is not a directory
        SwarmMCPError: Classified error if the directory can't be read
    """
    try:
        st = root_path.stat()
    except OSError as e:
        raise file_operation_error("list", base_uri, e) from e

    if not stat.S_ISDIR(st.st_mode):
        raise InvalidParamsError(f"Path is not a directory: {base_uri}")

    project_root = (project_root or root_path).resolve()

    try:
        return _walk(
            root_path,
            base_uri,
            project_root=project_root,
            recursive=recursive,
            max_depth=max_depth,
            level=1,
            include_permissions=include_permissions,
        )
    except OSError as e:
        raise file_operation_error("list", base_uri, e) from e


def _compile_pattern(pattern: str | None) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning(f"Ignoring invalid name pattern {pattern!r}: {e}")
        return None


def _normalize_extension(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"


def apply_filters(
    entries: list[DirectoryEntry], entry_filter: EntryFilter
) -> list[DirectoryEntry]:
    """Keep entries matching every criterion of ``entry_filter``.

    The extension filter only applies to files and the size bounds only to
    entries that carry a size. An invalid name regex is ignored.
    """
    pattern = _compile_pattern(entry_filter.name_pattern)
    extensions = {_normalize_extension(ext) for ext in entry_filter.extensions}

    def keep(entry: DirectoryEntry) -> bool:
        if entry_filter.type and entry.type != entry_filter.type:
            return False
        if pattern is not None and not pattern.search(entry.name):
            return False
        if extensions and entry.type == "file":
            if os.path.splitext(entry.name)[1].lower() not in extensions:
                return False
        if entry.size is not None:
            if entry_filter.min_size is not None and entry.size < entry_filter.min_size:
                return False
            if entry_filter.max_size is not None and entry.size > entry_filter.max_size:
                return False
        return True

    return [entry for entry in entries if keep(entry)]


_SORT_KEYS: dict[str, Any] = {
    "name": lambda e: (e.name.casefold(), e.name),
    "size": lambda e: e.size or 0,
    "type": lambda e: e.type,
    "modified": lambda e: e.modified,
}


def apply_sorting(
    entries: list[DirectoryEntry],
    sort_by: SortKey = "name",
    sort_order: SortOrder = "asc",
) -> list[DirectoryEntry]:
    """Stable sort; equal keys keep their relative order in both directions."""
    key = _SORT_KEYS.get(sort_by, _SORT_KEYS["name"])
    return sorted(entries, key=key, reverse=sort_order == "desc")


def paginate(entries: list[DirectoryEntry], offset: int = 0, limit: int = 100) -> Page:
    return Page(
        entries=entries[offset : offset + limit],
        offset=offset,
        limit=limit,
        total=len(entries),
    )
