"""Side-effect-free previews of write and delete."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sm.fs.backup import Operation

__all__ = ["DryRunResult", "simulate_file_operation"]


@dataclass(frozen=True)
class DryRunResult:
    would_overwrite: bool
    backup_would_be_created: bool
    target_path: str


def simulate_file_operation(
    path: Path, operation: Operation, backup: bool = False
) -> DryRunResult:
    """Report what a write or delete of ``path`` would do.

    Only probes for existence. A backup is reported for writes over an
    existing file; delete previews never report one.
    """
    exists = path.exists()
    return DryRunResult(
        would_overwrite=exists,
        backup_would_be_created=backup and operation == "write" and exists,
        target_path=str(path),
    )
