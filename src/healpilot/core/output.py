"""Rich terminal formatting for healpilot output."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from healpilot.heal.models import (
    AnalysisItem,
    ApplyResult,
    HealItem,
    PatchOperationResult,
    RuleEngineResult,
)
from healpilot.proposals.models import ApplyAction, ApplyItemResult, ApplySummary, ProposalSet

console = Console()
error_console = Console(stderr=True)


ACTION_ICONS = {
    ApplyAction.APPLIED: "[green]✅[/green]",
    ApplyAction.SKIPPED: "[dim]⏭[/dim]",
    ApplyAction.FAILED: "[red]❌[/red]",
}


def confidence_color(confidence: float) -> str:
    """Return color name based on confidence."""
    if confidence >= 0.8:
        return "green"
    elif confidence >= 0.5:
        return "yellow"
    return "red"


def confidence_bar(confidence: float, width: int = 12) -> str:
    """Create a text-based confidence bar."""
    filled = round(confidence * width)
    color = confidence_color(confidence)
    return f"[{color}]{'█' * filled}{'░' * (width - filled)}[/{color}] {confidence:.2f}"


def format_heal_item(item: HealItem, item_id: str | None = None) -> list[str]:
    """Format a heal item and its patch operations."""
    label = f"  [bold]{item.rule_id}[/bold]  [dim]{item.subtype}[/dim]"
    if item_id:
        label += f"  [dim]id={item_id}[/dim]"
    lines = [label, f"  Confidence: {confidence_bar(item.confidence)}", f"  {escape(item.summary)}"]
    if item.rationale:
        lines.append(f"  [dim]{escape(item.rationale)}[/dim]")
    for op in item.patch_plan.operations:
        lines.append(f"    {op.type}  {op.file_path}")
        old, new = _op_texts(op)
        if old:
            lines.append(f"    [red]- {escape(old)}[/red]")
        lines.append(f"    [green]+ {escape(new)}[/green]")
    return lines


def format_analysis_item(item: AnalysisItem, item_id: str | None = None) -> list[str]:
    label = f"  [bold]{item.rule_id}[/bold]"
    if item.subtype:
        label += f"  [yellow]{item.subtype}[/yellow]"
    if item_id:
        label += f"  [dim]id={item_id}[/dim]"
    lines = [label, f"  {escape(item.summary)}"]
    if item.details:
        for detail in item.details.splitlines():
            lines.append(f"    [dim]{escape(detail)}[/dim]")
    return lines


def print_engine_result(result: RuleEngineResult, proposal_set: ProposalSet | None = None) -> None:
    """Print heal and analysis items from one diagnosis."""
    ids = _item_ids(proposal_set)

    if result.is_empty:
        console.print("\n  [dim]No rule matched this failure.[/dim]\n")
        return

    if result.heal_items:
        lines: list[str] = [""]
        for i, item in enumerate(result.heal_items):
            lines.extend(format_heal_item(item, ids["heal"][i] if ids["heal"] else None))
            lines.append("")
        console.print(Panel(
            "\n".join(lines),
            title=f"[bold]Heal proposals ({len(result.heal_items)})[/bold]",
            border_style="green",
            padding=(0, 1),
        ))

    if result.analysis_items:
        lines = [""]
        for i, item in enumerate(result.analysis_items):
            lines.extend(format_analysis_item(item, ids["analysis"][i] if ids["analysis"] else None))
            lines.append("")
        console.print(Panel(
            "\n".join(lines),
            title=f"[bold]Analysis ({len(result.analysis_items)})[/bold]",
            border_style="yellow",
            padding=(0, 1),
        ))

    if proposal_set is not None:
        console.print(f"  Proposal saved: [bold]{proposal_set.id}[/bold]")
        console.print(f"  Apply with: [bold]healpilot apply {proposal_set.id}[/bold]\n")


def print_operation_result(result: PatchOperationResult) -> None:
    """Print a single patch operation result."""
    if result.success:
        console.print(f"  [green]✅[/green] {escape(result.message)}")
    else:
        console.print(f"  [red]❌ {escape(result.file_path)}[/red]  {escape(result.error or '')}")


def print_apply_result(result: ApplyResult) -> None:
    """Print every operation result and, after a failure, the rollback."""
    for op_result in result.results:
        print_operation_result(op_result)

    if result.rollback_results:
        console.print("\n  [yellow]Rolled back:[/yellow]")
        for rb in result.rollback_results:
            print_operation_result(rb)

    console.print()
    if result.success:
        console.print(f"  [green]{len(result.results)} operation(s) succeeded.[/green]\n")
    else:
        console.print("  [red]Patch plan failed. No changes were kept.[/red]\n")


def print_item_result(result: ApplyItemResult) -> None:
    icon = ACTION_ICONS.get(result.action, "●")
    console.print(f"  {icon} {result.item_id}  {escape(result.message)}")
    for path in result.files_modified:
        console.print(f"     [dim]-> {path}[/dim]")
    if result.backup_path:
        console.print(f"     [dim]backup: {result.backup_path}[/dim]")


def print_apply_summary(summary: ApplySummary, report_path: Path | None = None) -> None:
    """Print summary after applying a selection."""
    for result in summary.results:
        print_item_result(result)

    console.print()
    if summary.total_applied:
        console.print(f"  [green]{summary.total_applied} applied.[/green]")
    if summary.total_skipped:
        console.print(f"  [dim]{summary.total_skipped} skipped.[/dim]")
    if summary.total_failed:
        console.print(f"  [red]{summary.total_failed} failed.[/red]")
    if report_path is not None:
        console.print(f"  Report: {report_path}")
    console.print()


def print_error(message: str) -> None:
    error_console.print(f"  [red]Error:[/red] {escape(message)}")


def _op_texts(op) -> tuple[str, str]:
    if op.type == "replaceText":
        return op.search.strip(), op.replace.strip()
    return "", op.insert.strip()


def _item_ids(proposal_set: ProposalSet | None) -> dict[str, list[str]]:
    ids: dict[str, list[str]] = {"heal": [], "analysis": []}
    if proposal_set is not None:
        for item in proposal_set.items:
            ids[item.type.value].append(item.id)
    return ids
