"""Unit tests for project path resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from sm.errors import PermissionDeniedError, ValidationError
from sm.fs.resolver import is_within, resolve_project_path, to_uri


@pytest.mark.unit
@pytest.mark.fs
class TestResolveProjectPath:
    """Containment and normalization of client-supplied paths."""

    def test_simple_relative_path(self, project: Path) -> None:
        assert resolve_project_path("src/main.wasp", project) == project / "src" / "main.wasp"

    def test_parent_segment_inside_root(self) -> None:
        assert resolve_project_path("a/b/../c.txt", "/proj") == Path("/proj/a/c.txt")

    @pytest.mark.parametrize(
        "uri",
        ["dir/../file.txt", "./file.txt", "dir//../file.txt", "dir\\..\\file.txt"],
    )
    def test_equivalent_spellings(self, project: Path, uri: str) -> None:
        assert resolve_project_path(uri, project) == project / "file.txt"

    def test_backslash_separators(self, project: Path) -> None:
        assert resolve_project_path("dir\\file.txt", project) == project / "dir" / "file.txt"

    def test_dot_is_root(self, project: Path) -> None:
        assert resolve_project_path(".", project) == project

    def test_traversal_rejected(self) -> None:
        with pytest.raises(PermissionDeniedError, match="outside project directory"):
            resolve_project_path("../../../etc/passwd", "/proj")

    def test_traversal_via_backslashes_rejected(self, project: Path) -> None:
        with pytest.raises(PermissionDeniedError, match="outside project directory"):
            resolve_project_path("..\\..\\secret.txt", project)

    def test_sibling_with_common_prefix_rejected(self, tmp_path: Path) -> None:
        root = tmp_path / "proj"
        root.mkdir()
        (tmp_path / "proj-other").mkdir()
        with pytest.raises(PermissionDeniedError):
            resolve_project_path("../proj-other/x.txt", root)

    @pytest.mark.parametrize("uri", ["/etc/passwd", "C:\\Windows\\win.ini", "\\\\server\\share\\x"])
    def test_absolute_rejected(self, project: Path, uri: str) -> None:
        with pytest.raises(PermissionDeniedError, match="Absolute paths are not allowed"):
            resolve_project_path(uri, project)

    @pytest.mark.parametrize("uri", ["", "   "])
    def test_empty_rejected(self, project: Path, uri: str) -> None:
        with pytest.raises(ValidationError, match="non-empty string"):
            resolve_project_path(uri, project)

    def test_non_string_rejected(self, project: Path) -> None:
        with pytest.raises(ValidationError):
            resolve_project_path(None, project)  # type: ignore[arg-type]

    def test_null_byte_rejected(self, project: Path) -> None:
        with pytest.raises(ValidationError, match="Null byte"):
            resolve_project_path("file\0.txt", project)

    def test_new_file_passes(self, project: Path) -> None:
        assert resolve_project_path("new/dir/file.txt", project) == project / "new" / "dir" / "file.txt"

    def test_symlink_inside_root_allowed(self, project: Path) -> None:
        (project / "real").mkdir()
        (project / "real" / "a.txt").write_text("a")
        os.symlink(project / "real", project / "link")
        assert resolve_project_path("link/a.txt", project) == project / "link" / "a.txt"

    def test_symlink_escape_rejected(self, project: Path, tmp_path: Path) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("s")
        os.symlink(outside / "secret.txt", project / "leak.txt")
        with pytest.raises(PermissionDeniedError, match="Symlink escapes"):
            resolve_project_path("leak.txt", project)

    def test_new_file_under_escaping_symlink_dir_rejected(
        self, project: Path, tmp_path: Path
    ) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        os.symlink(outside, project / "out")
        with pytest.raises(PermissionDeniedError, match="Symlink escapes"):
            resolve_project_path("out/new.txt", project)


@pytest.mark.unit
@pytest.mark.fs
class TestHelpers:
    def test_is_within(self) -> None:
        assert is_within("/proj", "/proj")
        assert is_within("/proj/a/b", "/proj")
        assert not is_within("/project", "/proj")
        assert not is_within("/", "/proj")

    def test_to_uri(self, project: Path) -> None:
        assert to_uri(project, project) == "."
        assert to_uri(project / "a" / "b.txt", project) == "a/b.txt"
