"""Tests for transactional patch application."""

from __future__ import annotations

from pathlib import Path

import pytest

from healpilot.heal.applier import PREVIEW_PREFIX, PatchApplier
from healpilot.heal.models import InsertAfter, PatchPlan, ReplaceText

LOGIN_SPEC = "test('login', async ({ page }) => {\n  await page.goto('/');\n  // TODO: Add navigation wait\n});\n"
HELPER = "export const locators = {\n  appReadyIndicator: '[data-testid=\"app-ready\"]',\n};\n"


@pytest.fixture
def files(repo: Path) -> dict[str, Path]:
    spec = repo / "tests" / "login.spec.ts"
    spec.write_text(LOGIN_SPEC)
    (repo / "src" / "utils").mkdir(parents=True)
    helper = repo / "src" / "utils" / "autoPilot.ts"
    helper.write_text(HELPER)
    return {"spec": spec, "helper": helper}


@pytest.fixture
def applier(fs) -> PatchApplier:
    return PatchApplier(fs)


def _plan(*operations) -> PatchPlan:
    return PatchPlan(description="Test plan", rationale="because", operations=tuple(operations))


class TestReplaceText:
    def test_replaces_first_occurrence(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(
            _plan(ReplaceText("src/utils/autoPilot.ts", '"app-ready"', '"app-loaded"'))
        )

        assert result.success is True
        assert '"app-loaded"' in files["helper"].read_text()
        assert result.files_modified == ["src/utils/autoPilot.ts"]

    def test_only_first_match_is_replaced(self, applier: PatchApplier, repo: Path):
        (repo / "dup.ts").write_text("a a a")
        applier.apply_patch_plan(_plan(ReplaceText("dup.ts", "a", "b")))

        assert (repo / "dup.ts").read_text() == "b a a"

    def test_missing_search_fails(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(_plan(ReplaceText("src/utils/autoPilot.ts", "nope", "x")))

        assert result.success is False
        assert "Search string not found" in result.results[0].error
        assert files["helper"].read_text() == HELPER

    def test_tests_relative_path_is_resolved(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(_plan(ReplaceText("login.spec.ts", "'/'", "'/login'")))

        assert result.success is True
        assert result.results[0].file_path == "tests/login.spec.ts"
        assert "'/login'" in files["spec"].read_text()

    def test_missing_file_reports_resolver_error(self, applier: PatchApplier):
        result = applier.apply_patch_plan(_plan(ReplaceText("ghost.ts", "a", "b")))

        assert result.success is False
        assert 'attempted: "tests/ghost.ts"' in result.results[0].error


class TestInsertAfter:
    def test_inserts_directly_after_anchor(self, applier: PatchApplier, files):
        anchor = "// TODO: Add navigation wait"
        result = applier.apply_patch_plan(
            _plan(InsertAfter("login.spec.ts", anchor, "\n  await page.waitForLoadState('networkidle');"))
        )

        assert result.success is True
        assert f"{anchor}\n  await page.waitForLoadState('networkidle');\n}});" in files["spec"].read_text()

    def test_anchor_not_found(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(_plan(InsertAfter("login.spec.ts", "// missing", "x")))

        assert result.success is False
        assert "Anchor string not found" in result.results[0].error

    def test_ambiguous_anchor_is_rejected(self, applier: PatchApplier, repo: Path):
        (repo / "twice.ts").write_text("// here\n// here\n")
        result = applier.apply_patch_plan(_plan(InsertAfter("twice.ts", "// here", "x")))

        assert result.success is False
        assert "found 2 times" in result.results[0].error
        assert (repo / "twice.ts").read_text() == "// here\n// here\n"


class TestAtomicity:
    def test_later_failure_rolls_back_earlier_edits(self, applier: PatchApplier, files):
        """Operation 2 fails, so operation 1's edit must be undone."""
        result = applier.apply_patch_plan(
            _plan(
                ReplaceText("src/utils/autoPilot.ts", "app-ready", "app-loaded"),
                ReplaceText("src/utils/autoPilot.ts", "does-not-exist", "x"),
            )
        )

        assert result.success is False
        assert files["helper"].read_text() == HELPER
        assert result.rolled_back
        assert len(result.rollback_results) == 1
        assert result.rollback_results[0].success is True

    def test_rollback_across_files_is_reverse_order(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(
            _plan(
                ReplaceText("src/utils/autoPilot.ts", "app-ready", "app-loaded"),
                ReplaceText("login.spec.ts", "'/'", "'/home'"),
                InsertAfter("login.spec.ts", "// not here", "x"),
            )
        )

        assert files["helper"].read_text() == HELPER
        assert files["spec"].read_text() == LOGIN_SPEC
        assert [r.file_path for r in result.rollback_results] == [
            "tests/login.spec.ts",
            "src/utils/autoPilot.ts",
        ]

    def test_one_result_per_operation(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(
            _plan(
                ReplaceText("src/utils/autoPilot.ts", "missing", "x"),
                ReplaceText("src/utils/autoPilot.ts", "app-ready", "y"),
                ReplaceText("login.spec.ts", "'/'", "z"),
            )
        )

        assert len(result.results) == 3
        assert [r.success for r in result.results] == [False, False, False]
        assert result.results[1].error.startswith("Skipped")
        assert result.rollback_results is None

    def test_first_failure_has_nothing_to_roll_back(self, applier: PatchApplier, files, fs):
        result = applier.apply_patch_plan(_plan(ReplaceText("login.spec.ts", "nope", "x")))

        assert result.rollback_results is None
        assert fs.mutated is False

    def test_write_failure_rolls_back(self, fs, files):
        fs.fail_writes_to.add("login.spec.ts")
        result = PatchApplier(fs).apply_patch_plan(
            _plan(
                ReplaceText("src/utils/autoPilot.ts", "app-ready", "app-loaded"),
                ReplaceText("login.spec.ts", "'/'", "'/home'"),
            )
        )

        assert result.success is False
        assert "Failed to write" in result.results[1].error
        assert files["helper"].read_text() == HELPER
        assert files["spec"].read_text() == LOGIN_SPEC

    def test_unexpected_write_error_rolls_back_and_propagates(self, fs, files, repo: Path):
        fs.write_errors["login.spec.ts"] = RuntimeError("disk driver exploded")

        with pytest.raises(RuntimeError, match="disk driver exploded"):
            PatchApplier(fs).apply_patch_plan(
                _plan(
                    ReplaceText("src/utils/autoPilot.ts", "app-ready", "app-loaded"),
                    ReplaceText("login.spec.ts", "'/'", "'/home'"),
                )
            )

        assert files["helper"].read_text() == HELPER
        assert files["spec"].read_text() == LOGIN_SPEC
        assert list(repo.rglob("*.tmp")) == []

    def test_unencodable_replacement_rolls_back(self, applier: PatchApplier, repo: Path):
        (repo / "a.ts").write_text("one two")

        with pytest.raises(UnicodeEncodeError):
            applier.apply_patch_plan(
                _plan(ReplaceText("a.ts", "one", "ONE"), ReplaceText("a.ts", "two", "\ud800"))
            )

        assert (repo / "a.ts").read_text() == "one two"
        assert not (repo / "a.ts.tmp").exists()

    def test_no_temp_files_left(self, applier: PatchApplier, files, repo: Path):
        applier.apply_patch_plan(_plan(ReplaceText("login.spec.ts", "'/'", "'/home'")))
        applier.apply_patch_plan(
            _plan(
                ReplaceText("src/utils/autoPilot.ts", "app-ready", "x"),
                ReplaceText("src/utils/autoPilot.ts", "missing", "y"),
            )
        )

        assert list(repo.rglob("*.tmp")) == []

    def test_crlf_content_is_preserved(self, applier: PatchApplier, repo: Path):
        (repo / "win.ts").write_bytes(b"a\r\nb\r\n")
        applier.apply_patch_plan(_plan(ReplaceText("win.ts", "a", "c")))

        assert (repo / "win.ts").read_bytes() == b"c\r\nb\r\n"


class TestPreview:
    def test_preview_never_writes(self, applier: PatchApplier, files, fs):
        result = applier.apply_patch_plan(
            _plan(
                ReplaceText("src/utils/autoPilot.ts", "app-ready", "app-loaded"),
                InsertAfter("login.spec.ts", "// TODO: Add navigation wait", "\nwait();"),
            ),
            preview_mode=True,
        )

        assert result.success is True
        assert fs.mutated is False
        assert all(r.message.startswith(PREVIEW_PREFIX) for r in result.results)
        assert files["helper"].read_text() == HELPER

    def test_preview_with_failing_writes_still_succeeds(self, fs, files):
        """Preview must not even attempt a write."""
        fs.fail_all_writes = True
        result = PatchApplier(fs).apply_patch_plan(
            _plan(ReplaceText("login.spec.ts", "'/'", "'/home'")), preview_mode=True
        )

        assert result.success is True

    def test_preview_sees_earlier_previewed_edits(self, applier: PatchApplier, files):
        result = applier.apply_patch_plan(
            _plan(
                ReplaceText("login.spec.ts", "'/'", "'/home'"),
                ReplaceText("login.spec.ts", "'/home'", "'/dashboard'"),
            ),
            preview_mode=True,
        )

        assert result.success is True
        assert files["spec"].read_text() == LOGIN_SPEC

    def test_preview_reports_validation_failures(self, applier: PatchApplier, files, fs):
        result = applier.apply_patch_plan(
            _plan(InsertAfter("login.spec.ts", "// missing", "x")), preview_mode=True
        )

        assert result.success is False
        assert fs.mutated is False
