"""Tests for target file resolution."""

from __future__ import annotations

from pathlib import Path

from healpilot.heal.resolver import TargetFileResolver


class TestTargetFileResolver:
    def test_existing_path_is_returned_unchanged(self, repo: Path, fs):
        (repo / "tests" / "login.spec.ts").write_text("test")
        result = TargetFileResolver(fs).resolve("tests/login.spec.ts")

        assert result.success is True
        assert result.resolved_path == "tests/login.spec.ts"
        assert result.error is None

    def test_tests_relative_path_gets_prefixed(self, repo: Path, fs):
        """Rules name test files relative to tests/; the resolver finds them."""
        (repo / "tests" / "login-page").mkdir()
        (repo / "tests" / "login-page" / "login.spec.ts").write_text("test")

        result = TargetFileResolver(fs).resolve("login-page/login.spec.ts")

        assert result.success is True
        assert result.resolved_path == "tests/login-page/login.spec.ts"

    def test_missing_file_names_both_attempts(self, fs):
        result = TargetFileResolver(fs).resolve("nope.spec.ts")

        assert result.success is False
        assert result.resolved_path == "nope.spec.ts"
        assert '"nope.spec.ts"' in result.error
        assert '"tests/nope.spec.ts"' in result.error

    def test_directory_is_not_a_target(self, repo: Path, fs):
        (repo / "tests" / "pages").mkdir()
        result = TargetFileResolver(fs).resolve("pages")

        assert result.success is False

    def test_custom_tests_dir(self, repo: Path, fs):
        (repo / "e2e").mkdir()
        (repo / "e2e" / "cart.spec.ts").write_text("test")

        result = TargetFileResolver(fs, tests_dir="e2e").resolve("cart.spec.ts")

        assert result.resolved_path == "e2e/cart.spec.ts"

    def test_resolution_never_writes(self, repo: Path, fs):
        TargetFileResolver(fs).resolve("missing.ts")
        assert fs.mutated is False
