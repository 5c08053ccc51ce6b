"""Atomic file writes via a sibling temp file and os.replace()."""

from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path

from loguru import logger

from sm.errors import InternalError, file_operation_error

__all__ = ["atomic_write", "temp_path_for"]


def temp_path_for(path: Path) -> Path:
    """Sibling temp path ``<path>.tmp.<random>``, unique per call."""
    return path.with_name(f"{path.name}.tmp.{uuid.uuid4().hex[:12]}")


def _discard(temp: Path) -> None:
    try:
        temp.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove temp file {temp}: {e}")


def atomic_write(path: Path, content: str | bytes, encoding: str = "utf-8") -> int:
    """Write ``content`` to ``path`` so readers never see a partial file.

    Missing parent directories are created. An existing target keeps its
    permission bits. A symlink at ``path`` is replaced by a regular file;
    the file it pointed to is left unchanged.

    Args:
        path: Absolute, already validated target path
        content: Text (encoded with ``encoding``) or raw bytes
        encoding: Text encoding

    Returns:
        Number of bytes written

    Raises:
        InternalError: If the final rename fails
        SwarmMCPError: Classified I/O error for any earlier step
    """
    data = content.encode(encoding) if isinstance(content, str) else content

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise file_operation_error("create directory for", str(path), e) from e

    temp = temp_path_for(path)
    try:
        with temp.open("xb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, temp)
    except OSError as e:
        _discard(temp)
        raise file_operation_error("write", str(path), e) from e

    try:
        os.replace(temp, path)
    except OSError as e:
        _discard(temp)
        raise InternalError(f"Failed to write file: {path}. Atomic rename failed: {e}") from e

    return len(data)
