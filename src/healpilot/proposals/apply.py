"""Applies the selected items of a proposal set."""

from __future__ import annotations

import logging

from healpilot.core.errors import SelectionManifestError
from healpilot.heal.applier import PatchApplier
from healpilot.proposals.backup import BackupManager
from healpilot.proposals.models import (
    ApplyAction,
    ApplyItemResult,
    ApplySummary,
    ProposalItem,
    ProposalSet,
    ProposalType,
    SelectionManifest,
)

logger = logging.getLogger(__name__)


def apply_selection(
    proposal_set: ProposalSet,
    manifest: SelectionManifest,
    applier: PatchApplier,
    preview: bool = False,
    backups: BackupManager | None = None,
) -> ApplySummary:
    """Run the patch plan of every selected heal item, in selection order.

    Analysis items are informational and always skipped. Each heal item is
    its own transaction: a failed item is rolled back by the applier and the
    next item is still attempted. With ``backups``, the pre-apply content of
    every file an item modified is saved and its path recorded.
    """
    if manifest.proposal_id != proposal_set.id:
        raise SelectionManifestError(
            f"Selection manifest belongs to {manifest.proposal_id!r}, not {proposal_set.id!r}"
        )

    summary = ApplySummary(proposal_set_id=proposal_set.id)
    for item_id in manifest.selected_item_ids:
        item = proposal_set.get_item(item_id)
        if item is None:
            summary.results.append(
                ApplyItemResult(
                    item_id=item_id,
                    success=False,
                    action=ApplyAction.FAILED,
                    message=f"Item {item_id} not found in proposal set {proposal_set.id}",
                )
            )
            continue
        summary.results.append(_apply_item(item, applier, preview, backups))

    logger.info(
        "Apply %s: %d selected, %d applied, %d failed, %d skipped",
        proposal_set.id,
        summary.total_selected,
        summary.total_applied,
        summary.total_failed,
        summary.total_skipped,
    )
    return summary


def _apply_item(
    item: ProposalItem,
    applier: PatchApplier,
    preview: bool,
    backups: BackupManager | None,
) -> ApplyItemResult:
    if item.type != ProposalType.HEAL:
        return ApplyItemResult(
            item_id=item.id,
            success=True,
            action=ApplyAction.SKIPPED,
            message="Analysis items are informational only",
        )

    plan = item.patch_plan
    if plan is None:
        return ApplyItemResult(
            item_id=item.id,
            success=False,
            action=ApplyAction.FAILED,
            message="Heal item missing required patchPlan",
        )
    if not plan.operations:
        return ApplyItemResult(
            item_id=item.id,
            success=True,
            action=ApplyAction.SKIPPED,
            message="No patch operations in patchPlan - nothing to apply",
        )

    result = applier.apply_patch_plan(plan, preview_mode=preview)
    if result.success:
        backup_paths = []
        if backups is not None and not preview:
            backup_paths = backups.create_backup(item.id, result.original_contents)
        return ApplyItemResult(
            item_id=item.id,
            success=True,
            action=ApplyAction.SKIPPED if preview else ApplyAction.APPLIED,
            message=(
                f"[PREVIEW] Would apply patch: {plan.description}"
                if preview
                else f"Applied patch: {plan.description}"
            ),
            files_modified=[] if preview else result.files_modified,
            backup_path=str(backup_paths[0]) if backup_paths else None,
        )

    failed = next(r for r in result.results if not r.success)
    errors = failed.error or failed.message
    if result.rolled_back:
        errors += " (earlier operations rolled back)"
    return ApplyItemResult(
        item_id=item.id,
        success=False,
        action=ApplyAction.FAILED,
        message=f"Patch application failed: {errors}",
    )
