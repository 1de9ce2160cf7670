"""Transactional patch application.

A patch plan is applied operation by operation. Each operation captures the
file content it read before writing, so when a later operation fails the
earlier ones can be undone in reverse order and the repository ends exactly
where it started.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from healpilot.core.fs import FileSystem
from healpilot.heal.models import (
    ApplyResult,
    InsertAfter,
    PatchOperation,
    PatchOperationResult,
    PatchPlan,
    ReplaceText,
)
from healpilot.heal.resolver import TargetFileResolver

logger = logging.getLogger(__name__)

PREVIEW_PREFIX = "[PREVIEW]"
_SNIPPET_CHARS = 40


class PatchOperationError(Exception):
    """An operation's precondition does not hold for the current file content."""


@dataclass
class _AppliedEdit:
    """Undo information for one written operation."""

    file_path: str
    original_content: str


class PatchApplier:
    """Applies patch plans through an injected ``FileSystem``."""

    def __init__(self, fs: FileSystem, resolver: TargetFileResolver | None = None):
        self.fs = fs
        self.resolver = resolver or TargetFileResolver(fs)

    def apply_patch_plan(self, plan: PatchPlan, preview_mode: bool = False) -> ApplyResult:
        """Apply every operation in ``plan`` or none of them.

        In preview mode nothing is written; each operation is validated against
        the content earlier previewed operations would have produced.
        """
        results: list[PatchOperationResult] = []
        applied: list[_AppliedEdit] = []
        pending: dict[str, str] = {}
        operations = list(plan.operations)

        for index, operation in enumerate(operations):
            try:
                result = self._apply_operation(operation, preview_mode, applied, pending)
            except Exception:
                if applied:
                    logger.warning(
                        "Operation %d of %d raised; rolling back %d applied operation(s)",
                        index + 1,
                        len(operations),
                        len(applied),
                    )
                    self._rollback(applied)
                raise
            results.append(result)
            if result.success:
                continue

            for skipped in operations[index + 1:]:
                results.append(
                    PatchOperationResult(
                        file_path=skipped.file_path,
                        success=False,
                        error="Skipped: an earlier operation in the plan failed",
                    )
                )

            rollback_results = None
            if applied:
                logger.warning(
                    "Operation %d of %d failed (%s); rolling back %d applied operation(s)",
                    index + 1,
                    len(operations),
                    result.error,
                    len(applied),
                )
                rollback_results = self._rollback(applied)
            return ApplyResult(success=False, results=results, rollback_results=rollback_results)

        originals: dict[str, str] = {}
        for edit in applied:
            originals.setdefault(edit.file_path, edit.original_content)
        if originals:
            logger.info("Applied patch plan: %s (%d operation(s))", plan.description, len(applied))
        return ApplyResult(success=True, results=results, original_contents=originals)

    # ------------------------------------------------------------------
    # Single operation
    # ------------------------------------------------------------------

    def _apply_operation(
        self,
        operation: PatchOperation,
        preview_mode: bool,
        applied: list[_AppliedEdit],
        pending: dict[str, str],
    ) -> PatchOperationResult:
        resolved = self.resolver.resolve(operation.file_path)
        if not resolved.success:
            return PatchOperationResult(
                file_path=operation.file_path,
                success=False,
                error=resolved.error or f"File not found: {operation.file_path}",
            )

        path = resolved.resolved_path
        if path not in pending and not self.fs.exists(path):
            return PatchOperationResult(file_path=path, success=False, error=f"File not found: {path}")

        try:
            content = pending[path] if path in pending else self.fs.read_text(path)
            new_content, message = self._edit(operation, path, content)
        except PatchOperationError as e:
            return PatchOperationResult(file_path=path, success=False, error=str(e))
        except (OSError, UnicodeDecodeError) as e:
            return PatchOperationResult(file_path=path, success=False, error=f"Failed to read {path}: {e}")

        if preview_mode:
            pending[path] = new_content
            return PatchOperationResult(file_path=path, success=True, message=f"{PREVIEW_PREFIX} {message}")

        try:
            self.fs.write_atomic(path, new_content)
        except OSError as e:
            return PatchOperationResult(file_path=path, success=False, error=f"Failed to write {path}: {e}")

        applied.append(_AppliedEdit(file_path=path, original_content=content))
        logger.debug("%s", message)
        return PatchOperationResult(file_path=path, success=True, message=message)

    def _edit(self, operation: PatchOperation, path: str, content: str) -> tuple[str, str]:
        """Return the edited content and a description of the edit."""
        if isinstance(operation, ReplaceText):
            if not operation.search or operation.search not in content:
                raise PatchOperationError(
                    f'Search string not found in {path}: "{_snippet(operation.search)}"'
                )
            new_content = content.replace(operation.search, operation.replace, 1)
            return new_content, (
                f'Replaced "{_snippet(operation.search)}" with "{_snippet(operation.replace)}" in {path}'
            )

        if isinstance(operation, InsertAfter):
            count = content.count(operation.anchor) if operation.anchor else 0
            if count == 0:
                raise PatchOperationError(
                    f'Anchor string not found in {path}: "{_snippet(operation.anchor)}"'
                )
            if count > 1:
                raise PatchOperationError(
                    f"Anchor string found {count} times in {path} (must be unique)"
                )
            at = content.index(operation.anchor) + len(operation.anchor)
            new_content = content[:at] + operation.insert + content[at:]
            return new_content, f'Inserted text after "{_snippet(operation.anchor)}" in {path}'

        raise PatchOperationError(f"Unsupported patch operation: {type(operation).__name__}")

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def _rollback(self, applied: list[_AppliedEdit]) -> list[PatchOperationResult]:
        results: list[PatchOperationResult] = []
        for edit in reversed(applied):
            try:
                self.fs.write_atomic(edit.file_path, edit.original_content)
            except OSError as e:
                logger.error("Rollback of %s failed: %s", edit.file_path, e)
                results.append(
                    PatchOperationResult(
                        file_path=edit.file_path,
                        success=False,
                        error=f"Failed to restore {edit.file_path}: {e}",
                    )
                )
                continue
            results.append(
                PatchOperationResult(
                    file_path=edit.file_path,
                    success=True,
                    message=f"Restored {edit.file_path}",
                )
            )
        return results


def _snippet(text: str) -> str:
    if len(text) > _SNIPPET_CHARS:
        return text[:_SNIPPET_CHARS] + "..."
    return text
