"""healpilot diagnose command."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from healpilot.core.config import load_config
from healpilot.core.errors import HealPilotError
from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.core.output import console, print_engine_result, print_error
from healpilot.heal.engine import RuleEngine
from healpilot.proposals.builder import build_proposal_set
from healpilot.proposals.store import ProposalStore


@click.command()
@click.argument("failure_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("evidence_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--no-save", is_flag=True, help="Do not save a proposal set")
@click.option("--target", "-t", "target", default=".", help="Repository root (default: current dir)")
def diagnose(failure_json: Path, evidence_json: Path, as_json: bool, no_save: bool, target: str):
    """Diagnose a failing test from its FAILURE_JSON and EVIDENCE_JSON.

    Prints heal proposals and analysis items, and saves them as a proposal
    set that `healpilot apply` can pick up.
    """
    project_path = Path(target).resolve()
    config = load_config(project_path)

    try:
        context = FailureContext.from_dict(json.loads(failure_json.read_text(encoding="utf-8")))
        evidence = EvidencePacket.from_dict(json.loads(evidence_json.read_text(encoding="utf-8")))
        result = RuleEngine(project_path, config).run(context, evidence)
    except (HealPilotError, json.JSONDecodeError, KeyError, OSError) as e:
        print_error(str(e))
        sys.exit(1)

    proposal_set = None
    if not no_save and not result.is_empty:
        proposal_set = build_proposal_set(context, result)
        ProposalStore(project_path).save_proposal_set(proposal_set)

    if as_json:
        data = result.to_dict()
        if proposal_set is not None:
            data["proposal"] = proposal_set.to_dict()
        click.echo(json.dumps(data, indent=2))
        return

    console.print(f"\n  [bold]healpilot[/bold]  {context.test_file}  [dim]{context.test_title}[/dim]\n")
    print_engine_result(result, proposal_set)
