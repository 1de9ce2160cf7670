"""Tests for the filesystem abstraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from healpilot.core.fs import LocalFileSystem


class TestLocalFileSystem:
    def test_relative_paths_resolve_under_root(self, tmp_path: Path):
        fs = LocalFileSystem(tmp_path)
        assert fs.resolve("tests/a.spec.ts") == tmp_path.resolve() / "tests" / "a.spec.ts"

    def test_absolute_paths_are_kept(self, tmp_path: Path):
        fs = LocalFileSystem(tmp_path)
        absolute = tmp_path / "x.txt"
        assert fs.resolve(absolute) == absolute

    def test_read_preserves_line_endings(self, tmp_path: Path):
        """CRLF content must come back byte-for-byte so patches don't rewrite endings."""
        (tmp_path / "win.ts").write_bytes(b"line one\r\nline two\r\n")
        fs = LocalFileSystem(tmp_path)

        assert fs.read_text("win.ts") == "line one\r\nline two\r\n"

    def test_glob_is_recursive_sorted_and_files_only(self, tmp_path: Path):
        (tmp_path / "d" / "sub").mkdir(parents=True)
        (tmp_path / "d" / "b.html").write_text("b")
        (tmp_path / "d" / "sub" / "a.html").write_text("a")
        (tmp_path / "d" / "dir.html").mkdir()
        fs = LocalFileSystem(tmp_path)

        found = fs.glob("d", "**/*.html")

        assert found == sorted(found)
        assert {p.name for p in found} == {"a.html", "b.html"}

    def test_glob_missing_directory_is_empty(self, tmp_path: Path):
        assert LocalFileSystem(tmp_path).glob("nope", "**/*") == []

    def test_unlink_missing_file_is_noop(self, tmp_path: Path):
        LocalFileSystem(tmp_path).unlink("missing.txt")


class TestWriteAtomic:
    def test_writes_content_and_leaves_no_tmp(self, tmp_path: Path):
        fs = LocalFileSystem(tmp_path)
        fs.write_atomic("out.json", "{}")

        assert (tmp_path / "out.json").read_text() == "{}"
        assert not (tmp_path / "out.json.tmp").exists()

    def test_replaces_existing_file(self, tmp_path: Path):
        (tmp_path / "out.txt").write_text("old")
        LocalFileSystem(tmp_path).write_atomic("out.txt", "new")

        assert (tmp_path / "out.txt").read_text() == "new"

    def test_failed_rename_removes_tmp(self, tmp_path: Path):
        class FailingRename(LocalFileSystem):
            def rename(self, src, dst):
                raise OSError("rename failed")

        fs = FailingRename(tmp_path)
        with pytest.raises(OSError):
            fs.write_atomic("out.txt", "data")

        assert not (tmp_path / "out.txt").exists()
        assert not (tmp_path / "out.txt.tmp").exists()

    def test_non_os_error_removes_tmp(self, tmp_path: Path):
        fs = LocalFileSystem(tmp_path)
        with pytest.raises(UnicodeEncodeError):
            fs.write_atomic("out.txt", "bad \ud800")

        assert not (tmp_path / "out.txt").exists()
        assert not (tmp_path / "out.txt.tmp").exists()
