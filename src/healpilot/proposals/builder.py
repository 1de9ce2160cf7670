"""Turns a rule engine result into a reviewable proposal set."""

from __future__ import annotations

import uuid

from healpilot._version import __version__
from healpilot.core.models import FailureContext
from healpilot.heal.models import RuleEngineResult
from healpilot.proposals.models import ProposalItem, ProposalSet, ProposalType

ADAPTER_VERSION = f"healpilot-{__version__}"


def build_proposal_set(
    context: FailureContext,
    result: RuleEngineResult,
    proposal_id: str | None = None,
) -> ProposalSet:
    """Wrap heal and analysis items with stable ids for review and apply."""
    items: list[ProposalItem] = []

    for heal in result.heal_items:
        items.append(
            ProposalItem(
                id=uuid.uuid4().hex,
                type=ProposalType.HEAL,
                rule_id=heal.rule_id,
                subtype=heal.subtype,
                summary=heal.summary,
                confidence=heal.confidence,
                rationale=heal.rationale,
                patch_plan=heal.patch_plan,
            )
        )

    for analysis in result.analysis_items:
        items.append(
            ProposalItem(
                id=uuid.uuid4().hex,
                type=ProposalType.ANALYSIS,
                rule_id=analysis.rule_id,
                subtype=analysis.subtype,
                summary=analysis.summary,
                confidence=analysis.confidence if analysis.confidence is not None else 0.0,
                details=analysis.details,
            )
        )

    return ProposalSet(
        id=proposal_id or uuid.uuid4().hex,
        test_file=context.test_file,
        test_title=context.test_title,
        items=items,
        adapter_version=ADAPTER_VERSION,
    )
