"""Project path resolution and containment checks.

Every file operation passes its client-supplied URI through
resolve_project_path() before touching the filesystem. The returned path is
always the project root itself or a path beneath it, both lexically and
after following symlinks.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath, PureWindowsPath

from sm.errors import PermissionDeniedError, ValidationError

__all__ = ["is_within", "resolve_project_path", "to_uri"]


def is_within(path: Path | str, root: Path | str) -> bool:
    """Check that ``path`` equals ``root`` or lies beneath it.

    Both arguments must already be absolute and normalized.
    """
    path_str = str(path)
    root_str = str(root)
    return path_str == root_str or path_str.startswith(root_str.rstrip(os.sep) + os.sep)


def _is_absolute_input(value: str) -> bool:
    """Absolute on either POSIX or Windows (drive letter, UNC, leading slash)."""
    if PurePosixPath(value).is_absolute():
        return True
    win = PureWindowsPath(value)
    return bool(win.drive) or bool(win.root)


def resolve_project_path(uri: str, project_root: Path | str) -> Path:
    """Validate a project-relative URI and resolve it to an absolute path.

    Args:
        uri: Path relative to the project root, as sent by the client
        project_root: Absolute, canonical project root

    Returns:
        Absolute path inside project_root

    Raises:
        ValidationError: Empty input or embedded null byte
        PermissionDeniedError: Absolute input, traversal outside the root,
            or a symlink whose target lies outside the root
    """
    if not isinstance(uri, str) or not uri.strip():
        raise ValidationError("File path must be a non-empty string")

    if "\0" in uri:
        raise ValidationError("Null byte detected in file path")

    # Separator unification happens here and nowhere else
    unified = uri.replace("\\", "/")

    if _is_absolute_input(uri) or _is_absolute_input(unified):
        raise PermissionDeniedError(
            "Absolute paths are not allowed. Use paths relative to project root."
        )

    root = Path(project_root)
    normalized = os.path.normpath(unified)
    resolved = Path(os.path.normpath(os.path.join(root, normalized)))

    if not is_within(resolved, root):
        raise PermissionDeniedError(
            f'Access denied: Path "{uri}" attempts to access files outside project directory'
        )

    # resolve() follows symlinks on every existing component; a target that
    # does not exist yet only has its existing ancestors resolved.
    try:
        real = resolved.resolve(strict=False)
    except (OSError, RuntimeError) as e:
        raise ValidationError(f"Invalid file path: {uri} ({e})") from e

    if not is_within(real, root.resolve()):
        raise PermissionDeniedError("Symlink escapes project directory")

    return resolved


def to_uri(path: Path | str, project_root: Path | str) -> str:
    """Project-relative, forward-slash URI for an absolute path inside the root."""
    rel = os.path.relpath(path, project_root)
    return "." if rel == "." else Path(rel).as_posix()
