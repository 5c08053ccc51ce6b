"""Parameter and result models for the MCP file tools.

Field names are snake_case in Python and camelCase on the wire. Results are
dumped with ``to_wire()`` so unset optional fields are omitted.
"""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from sm.errors import InvalidParamsError

__all__ = [
    "CleanupBackupsParams",
    "CleanupBackupsResult",
    "DeleteDryRun",
    "DeleteFileParams",
    "DirectoryFilter",
    "FileOperationResult",
    "ListDirectoryParams",
    "ListDirectoryResult",
    "Pagination",
    "PaginationInfo",
    "ReadFileParams",
    "ROLLBACK_TOKEN_PATTERN",
    "ReadFileResult",
    "RollbackParams",
    "RollbackResult",
    "WireModel",
    "WriteDryRun",
    "WriteFileParams",
    "parse_params",
]


# Tokens become part of a backup file name, so one safe path component only
ROLLBACK_TOKEN_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]*$"


class WireModel(BaseModel):
    """Base model with camelCase aliases, accepting either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# -- parameters --------------------------------------------------------------


class ReadFileParams(WireModel):
    uri: str


class WriteFileParams(WireModel):
    uri: str
    contents: str
    mime_type: str | None = None
    backup: bool = False
    dry_run: bool = False
    rollback_token: str | None = Field(default=None, pattern=ROLLBACK_TOKEN_PATTERN)


class DeleteFileParams(WireModel):
    uri: str
    backup: bool = False
    dry_run: bool = False
    rollback_token: str | None = Field(default=None, pattern=ROLLBACK_TOKEN_PATTERN)


class DirectoryFilter(WireModel):
    """Listing filter; every given criterion must match."""

    type: Literal["file", "directory"] | None = None
    name_pattern: str | None = Field(
        default=None, description="Case-insensitive regular expression"
    )
    extensions: list[str] = Field(default_factory=list)
    min_size: int | None = Field(default=None, ge=0)
    max_size: int | None = Field(default=None, ge=0)


class Pagination(WireModel):
    offset: int = Field(default=0, ge=0)
    limit: int | None = Field(
        default=None, ge=1, le=1000, description="Defaults to files.default_page_limit"
    )


class ListDirectoryParams(WireModel):
    uri: str
    recursive: bool = False
    max_depth: int | None = Field(default=None, ge=1, le=10)
    include_permissions: bool = False
    filter: DirectoryFilter | None = None
    sort_by: Literal["name", "size", "type", "modified"] = "name"
    sort_order: Literal["asc", "desc"] = "asc"
    pagination: Pagination | None = None


class RollbackParams(WireModel):
    rollback_token: str = Field(pattern=ROLLBACK_TOKEN_PATTERN)


class CleanupBackupsParams(WireModel):
    max_age_days: float | None = Field(default=None, ge=0)
    max_count: int | None = Field(default=None, ge=0)


# -- results -----------------------------------------------------------------


class ReadFileResult(WireModel):
    contents: str
    mime_type: str


class WriteDryRun(WireModel):
    would_overwrite: bool
    backup_would_be_created: bool
    target_path: str


class DeleteDryRun(WireModel):
    would_delete: bool = True
    backup_would_be_created: bool = False
    target_path: str
    file_size: int


class FileOperationResult(WireModel):
    """Result of writeFile and deleteFile."""

    success: bool = True
    backup_path: str | None = None
    rollback_token: str | None = None
    dry_run: WriteDryRun | DeleteDryRun | None = None


class PaginationInfo(WireModel):
    offset: int
    limit: int
    total: int


class ListDirectoryResult(WireModel):
    entries: list[dict[str, Any]]
    total_count: int
    has_more: bool | None = None
    pagination: PaginationInfo | None = None


class RollbackResult(WireModel):
    success: bool = True
    restored_files: list[str]


class CleanupBackupsResult(WireModel):
    deleted: int


ModelT = TypeVar("ModelT", bound=WireModel)


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "params"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def parse_params(model: type[ModelT], **values: Any) -> ModelT:
    """Validate tool arguments against ``model``.

    Raises:
        InvalidParamsError: If any argument is missing, mistyped or out of range
    """
    try:
        return model.model_validate(values)
    except PydanticValidationError as e:
        raise InvalidParamsError(f"Invalid parameters: {_describe(e)}") from e
