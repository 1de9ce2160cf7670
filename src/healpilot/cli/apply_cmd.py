"""healpilot apply and apply-plan commands."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.prompt import Confirm

from healpilot.core.config import load_config
from healpilot.core.errors import HealPilotError
from healpilot.core.fs import LocalFileSystem
from healpilot.core.output import (
    console,
    format_heal_item,
    print_apply_result,
    print_apply_summary,
    print_error,
)
from healpilot.heal.applier import PatchApplier
from healpilot.heal.models import HealItem, PatchPlan
from healpilot.heal.resolver import TargetFileResolver
from healpilot.proposals.apply import apply_selection
from healpilot.proposals.backup import BackupManager
from healpilot.proposals.models import ProposalType, SelectionManifest
from healpilot.proposals.report import ApplyReportWriter
from healpilot.proposals.store import ProposalStore


def _make_applier(project_path: Path, tests_dir: str) -> PatchApplier:
    fs = LocalFileSystem(project_path)
    return PatchApplier(fs, TargetFileResolver(fs, tests_dir=tests_dir))


@click.command("apply-plan")
@click.argument("plan_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--preview", is_flag=True, help="Validate the plan without writing files")
@click.option("--target", "-t", "target", default=".", help="Repository root (default: current dir)")
def apply_plan(plan_json: Path, preview: bool, target: str):
    """Apply a single patch plan from PLAN_JSON, all or nothing.

    PLAN_JSON holds a patch plan object, or any object with a `patchPlan` key.
    """
    project_path = Path(target).resolve()
    config = load_config(project_path)

    try:
        data = json.loads(plan_json.read_text(encoding="utf-8"))
        plan = PatchPlan.from_dict(data.get("patchPlan", data))
    except (json.JSONDecodeError, ValueError, KeyError, AttributeError, OSError) as e:
        print_error(f"Invalid patch plan {plan_json}: {e}")
        sys.exit(1)

    applier = _make_applier(project_path, config.heal.tests_dir)
    try:
        result = applier.apply_patch_plan(plan, preview_mode=preview or config.apply.preview)
    except UnicodeError as e:
        print_error(f"Patch plan rolled back: {e}")
        sys.exit(1)

    console.print(f"\n  [bold]{plan.description}[/bold]\n")
    print_apply_result(result)
    if not result.success:
        sys.exit(1)


@click.command()
@click.argument("proposal_id")
@click.option("--item", "item_ids", multiple=True, help="Item id to apply (repeatable; replaces the saved selection)")
@click.option("--preview", is_flag=True, help="Show what would change without writing files")
@click.option(
    "--evidence",
    "evidence_json",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Evidence JSON whose work item context is recorded in the report",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts")
@click.option("--target", "-t", "target", default=".", help="Repository root (default: current dir)")
def apply(
    proposal_id: str,
    item_ids: tuple[str, ...],
    evidence_json: Path | None,
    preview: bool,
    yes: bool,
    target: str,
):
    """Apply the selected heal items of a saved proposal set.

    Uses the saved selection manifest for PROPOSAL_ID. Without one (and
    without --item), every heal item is selected. Each apply writes a report
    under the reports directory.
    """
    project_path = Path(target).resolve()
    config = load_config(project_path)
    store = ProposalStore(project_path)
    preview = preview or config.apply.preview

    ado_context = None
    if evidence_json is not None:
        try:
            ado_context = json.loads(evidence_json.read_text(encoding="utf-8")).get("adoContext")
        except (json.JSONDecodeError, AttributeError, OSError) as e:
            print_error(f"Invalid evidence {evidence_json}: {e}")
            sys.exit(1)

    try:
        proposal_set = store.load_proposal_set(proposal_id)
        if proposal_set is None:
            print_error(f"Proposal {proposal_id} not found. Run `healpilot diagnose` first.")
            sys.exit(1)

        if item_ids:
            manifest = SelectionManifest(proposal_id=proposal_id, selected_item_ids=list(item_ids))
            store.save_selection(manifest)
        else:
            manifest = store.load_selection(proposal_id)
            if manifest is None:
                manifest = SelectionManifest(
                    proposal_id=proposal_id,
                    selected_item_ids=[i.id for i in proposal_set.items if i.type == ProposalType.HEAL],
                )
                store.save_selection(manifest)
    except HealPilotError as e:
        print_error(str(e))
        sys.exit(1)

    if not manifest.selected_item_ids:
        console.print("\n  No items selected.\n")
        return

    console.print(f"\n  [bold]healpilot apply[/bold]  {proposal_set.test_file}  [dim]{proposal_set.test_title}[/dim]\n")
    for item_id in manifest.selected_item_ids:
        item = proposal_set.get_item(item_id)
        if item is None or item.patch_plan is None:
            continue
        heal = HealItem(
            rule_id=item.rule_id,
            subtype=item.subtype or "",
            confidence=item.confidence,
            summary=item.summary,
            rationale=item.rationale,
            patch_plan=item.patch_plan,
            target_files=tuple(item.patch_plan.target_files),
        )
        for line in format_heal_item(heal, item.id):
            console.print(line)
        console.print()

    if not preview and not yes and config.apply.confirm:
        if not Confirm.ask(f"  Apply {len(manifest.selected_item_ids)} selected item(s)?", default=False):
            console.print("  [dim]Cancelled.[/dim]")
            return

    applier = _make_applier(project_path, config.heal.tests_dir)
    writer = ApplyReportWriter(project_path, config)
    started = datetime.now()
    try:
        if not preview:
            writer.check_report_path(proposal_id, started)
        backups = None if preview else BackupManager(project_path)
        summary = apply_selection(proposal_set, manifest, applier, preview=preview, backups=backups)
        report_path = None
        if not preview:
            report_path = writer.write_apply_report(
                proposal_set, manifest, summary, ado_context=ado_context, now=started
            )
    except (HealPilotError, OSError, UnicodeError) as e:
        print_error(str(e))
        sys.exit(1)

    print_apply_summary(summary, report_path)
    if summary.total_failed:
        sys.exit(1)
