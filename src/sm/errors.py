"""Error kinds for swarm-mcp file operations.

Every failure surfaced to an MCP client is one of the classes below. Each
carries a stable ``kind`` tag and a JSON-RPC compatible numeric ``code``.
The wire shape is produced only at the server boundary via ``to_wire()``.
"""

from __future__ import annotations

import errno
from enum import IntEnum
from typing import Any

__all__ = [
    "ErrorCode",
    "FileSystemError",
    "InternalError",
    "InvalidParamsError",
    "PermissionDeniedError",
    "ResourceNotFoundError",
    "SwarmMCPError",
    "ValidationError",
    "file_operation_error",
]


class ErrorCode(IntEnum):
    """Numeric codes sent to MCP clients."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    RESOURCE_NOT_FOUND = -1001
    RESOURCE_ALREADY_EXISTS = -1002
    INVALID_TOOL_CALL = -1003
    TOOL_NOT_FOUND = -1004
    PERMISSION_DENIED = -1005
    VALIDATION_ERROR = -1006


class SwarmMCPError(Exception):
    """Base class for all errors that cross the MCP boundary."""

    kind: str = "internal_error"
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_wire(self) -> dict[str, Any]:
        """Convert to the JSON-RPC error object shape."""
        return {
            "code": int(self.code),
            "message": self.message,
            "data": {"kind": self.kind},
        }


class InvalidParamsError(SwarmMCPError):
    """Request parameters are structurally wrong (e.g. path is a directory)."""

    kind = "invalid_params"
    code = ErrorCode.INVALID_PARAMS


class ValidationError(SwarmMCPError):
    """Malformed input: empty path, null byte, oversized file."""

    kind = "validation_error"
    code = ErrorCode.VALIDATION_ERROR


class PermissionDeniedError(SwarmMCPError):
    """Absolute path, traversal outside the project, or symlink escape."""

    kind = "permission_denied"
    code = ErrorCode.PERMISSION_DENIED


class ResourceNotFoundError(SwarmMCPError):
    """Missing file, directory entry or rollback token."""

    kind = "resource_not_found"
    code = ErrorCode.RESOURCE_NOT_FOUND


class FileSystemError(SwarmMCPError):
    """An I/O step of a backup or rollback failed.

    Attributes:
        operation: Short verb phrase, e.g. "create backup for"
        path: Path being operated on
        cause: Underlying exception, if any
    """

    kind = "file_system_error"
    code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self, operation: str, path: str, cause: BaseException | None = None
    ) -> None:
        message = f"File system error during {operation}: {path}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
        self.operation = operation
        self.path = path
        self.cause = cause


class InternalError(SwarmMCPError):
    """Unexpected failure, including a failed atomic rename."""

    kind = "internal_error"
    code = ErrorCode.INTERNAL_ERROR


def file_operation_error(
    operation: str, path: str, error: BaseException
) -> SwarmMCPError:
    """Classify an OS error raised while operating on ``path``.

    Args:
        operation: Verb for the message, e.g. "read" or "delete"
        path: Project-relative URI shown to the client
        error: The original exception

    Returns:
        A SwarmMCPError subclass matching the errno of ``error``
    """
    if isinstance(error, SwarmMCPError):
        return error

    err_no = getattr(error, "errno", None)
    if isinstance(error, FileNotFoundError) or err_no == errno.ENOENT:
        return ResourceNotFoundError(f"File not found: {path}")
    if isinstance(error, PermissionError) or err_no in (errno.EACCES, errno.EPERM):
        return PermissionDeniedError(f"Permission denied accessing file: {path}")
    if isinstance(error, IsADirectoryError) or err_no == errno.EISDIR:
        return InvalidParamsError(f"Path is a directory, not a file: {path}")

    return InternalError(f"Failed to {operation} file: {path}. {error}")
