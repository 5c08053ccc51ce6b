"""FastMCP server exposing the project file tools.

Tools (camelCase names and parameters on the wire):
  readFile(uri)
  writeFile(uri, contents, mimeType?, backup?, dryRun?, rollbackToken?)
  listDirectory(uri, recursive?, maxDepth?, includePermissions?, filter?,
                sortBy?, sortOrder?, pagination?)
  deleteFile(uri, backup?, dryRun?, rollbackToken?)
  rollback(rollbackToken)
  cleanupBackups(maxAgeDays?, maxCount?)

Results are compact JSON. Failures are raised as ToolError whose text is
the JSON error object {"code", "message", "data": {"kind"}}.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from sm.config import get_config
from sm.errors import InternalError, SwarmMCPError

# Import logging first to remove Loguru's default console handler
from sm.logging import LogSpan, configure_logging, logger
from sm.utils import serialize_result
from sm_tools import file as file_tools

INSTRUCTIONS = """\
File access for one project directory. All paths are relative to the
project root; absolute paths and paths leaving the project are refused.
Pass backup=true to writeFile/deleteFile to get a rollbackToken, and call
rollback with it to undo the change. Use dryRun=true to preview."""

mcp = FastMCP(name="swarm-mcp", instructions=INSTRUCTIONS)


def _call(fn: Callable[..., Any], **kwargs: Any) -> str:
    """Run a tool function, converting errors to MCP tool errors."""
    try:
        return serialize_result(fn(**kwargs))
    except SwarmMCPError as e:
        raise ToolError(serialize_result(e.to_wire())) from e
    except Exception as e:
        logger.exception(f"Unexpected error in {fn.__module__}.{fn.__name__}")
        wrapped = InternalError(f"Unexpected error: {e}")
        raise ToolError(serialize_result(wrapped.to_wire())) from e


# =============================================================================
# Tools
# =============================================================================


def read_file(uri: str) -> str:
    """Read a project file. Text is returned as-is (truncated when very long);
    binary files return a placeholder with size and MIME type.

    Args:
        uri: Path relative to the project root
    """
    return _call(file_tools.read, uri=uri)


def write_file(
    uri: str,
    contents: str,
    mimeType: str | None = None,  # noqa: N803
    backup: bool = False,
    dryRun: bool = False,  # noqa: N803
    rollbackToken: str | None = None,  # noqa: N803
) -> str:
    """Write a project file atomically, creating parent directories.

    Args:
        uri: Path relative to the project root
        contents: New file content
        mimeType: Declared content type
        backup: Back up the existing file and return a rollbackToken
        dryRun: Only report what would happen
        rollbackToken: Token for the backup; alone, rolls that token back
    """
    return _call(
        file_tools.write,
        uri=uri,
        contents=contents,
        mime_type=mimeType,
        backup=backup,
        dry_run=dryRun,
        rollback_token=rollbackToken,
    )


def list_directory(
    uri: str = ".",
    recursive: bool = False,
    maxDepth: int | None = None,  # noqa: N803
    includePermissions: bool = False,  # noqa: N803
    filter: dict[str, Any] | None = None,
    sortBy: str = "name",  # noqa: N803
    sortOrder: str = "asc",  # noqa: N803
    pagination: dict[str, Any] | None = None,
) -> str:
    """List a project directory with optional recursion, filtering, sorting
    and pagination.

    Args:
        uri: Directory relative to the project root ("." for the root)
        recursive: Include subdirectory contents as children
        maxDepth: Deepest level listed, 1-10
        includePermissions: Add rwx permission strings
        filter: {type, namePattern, extensions, minSize, maxSize}
        sortBy: name, size, type or modified
        sortOrder: asc or desc
        pagination: {offset, limit}
    """
    return _call(
        file_tools.list,
        uri=uri,
        recursive=recursive,
        max_depth=maxDepth,
        include_permissions=includePermissions,
        filter=filter,
        sort_by=sortBy,
        sort_order=sortOrder,
        pagination=pagination,
    )


def delete_file(
    uri: str,
    backup: bool = False,
    dryRun: bool = False,  # noqa: N803
    rollbackToken: str | None = None,  # noqa: N803
) -> str:
    """Delete a project file (not a directory).

    Args:
        uri: Path relative to the project root
        backup: Back up the file and return a rollbackToken
        dryRun: Only report what would happen
        rollbackToken: Token for the backup; alone, rolls that token back
    """
    return _call(
        file_tools.delete,
        uri=uri,
        backup=backup,
        dry_run=dryRun,
        rollback_token=rollbackToken,
    )


def rollback(rollbackToken: str) -> str:  # noqa: N803
    """Undo a write or delete made with backup=true. Tokens are single use.

    Args:
        rollbackToken: Token returned by writeFile or deleteFile
    """
    return _call(file_tools.rollback, rollback_token=rollbackToken)


def cleanup_backups(
    maxAgeDays: float | None = None,  # noqa: N803
    maxCount: int | None = None,  # noqa: N803
) -> str:
    """Delete old backups from the project's backup directory.

    Args:
        maxAgeDays: Remove backups older than this many days
        maxCount: Keep at most this many backups
    """
    return _call(
        file_tools.cleanup_backups, max_age_days=maxAgeDays, max_count=maxCount
    )


TOOLS: dict[str, tuple[Callable[..., str], dict[str, Any]]] = {
    "readFile": (read_file, {"title": "Read File", "readOnlyHint": True}),
    "writeFile": (
        write_file,
        {"title": "Write File", "readOnlyHint": False, "destructiveHint": True},
    ),
    "listDirectory": (
        list_directory,
        {"title": "List Directory", "readOnlyHint": True},
    ),
    "deleteFile": (
        delete_file,
        {"title": "Delete File", "readOnlyHint": False, "destructiveHint": True},
    ),
    "rollback": (
        rollback,
        {"title": "Rollback Change", "readOnlyHint": False, "destructiveHint": True},
    ),
    "cleanupBackups": (
        cleanup_backups,
        {"title": "Clean Up Backups", "readOnlyHint": False, "destructiveHint": True},
    ),
}

# Register without replacing the module-level functions, so they stay callable
for _name, (_fn, _annotations) in TOOLS.items():
    mcp.tool(name=_name, annotations={**_annotations, "openWorldHint": False})(_fn)


def main() -> None:
    """Run the MCP server over stdio transport."""
    config = get_config()
    log_dir = config.get_log_dir_path()
    configure_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_file=log_dir / "serve.log" if log_dir else None,
    )

    with LogSpan(span="mcp.server.start", level="INFO", tools=len(TOOLS)):
        from sm.fs.workspace import get_workspace

        ws = get_workspace()
        removed = ws.backups.cleanup_old_backups()
        logger.info(f"Serving {ws.project_root} (stale backups removed: {removed})")

    mcp.run(show_banner=False)
