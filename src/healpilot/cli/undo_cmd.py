"""healpilot undo command."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape

from healpilot.core.output import console, print_operation_result
from healpilot.proposals.backup import BackupManager


@click.command()
@click.argument("item_id", required=False)
@click.option("--list", "list_all", is_flag=True, help="List all backups")
@click.option("--target", "-t", "target", default=".", help="Repository root (default: current dir)")
def undo(item_id: str | None, list_all: bool, target: str):
    """Restore the files a heal item modified from its latest backup.

    Run `healpilot undo --list` to see available backups.
    """
    manager = BackupManager(Path(target).resolve())

    if list_all:
        entries = manager.list_backups()
        if not entries:
            console.print("\n  No backups found.\n")
            return

        console.print("\n  [bold]Backups[/bold]\n")
        for entry in entries:
            console.print(f"  {entry.item_id}  {entry.file}  {escape(f'[{entry.timestamp}]')}")
        console.print()
        return

    if not item_id:
        console.print("\n  Usage: healpilot undo <ITEM_ID>")
        console.print("  Run `healpilot undo --list` to see available backups.\n")
        return

    results = manager.restore(item_id)
    if not results:
        console.print(f"\n  No backup for {item_id}.\n")
        sys.exit(1)

    for result in results:
        print_operation_result(result)
    if not all(r.success for r in results):
        sys.exit(1)
