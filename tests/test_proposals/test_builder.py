"""Tests for building proposal sets from engine results."""

from __future__ import annotations

from healpilot.core.models import FailureContext
from healpilot.heal.models import AnalysisItem, HealItem, PatchPlan, ReplaceText, RuleEngineResult
from healpilot.proposals.builder import ADAPTER_VERSION, build_proposal_set
from healpilot.proposals.models import ProposalSet, ProposalType


def _result() -> RuleEngineResult:
    plan = PatchPlan(
        description="Fix element selector to match DOM",
        rationale="selector missing",
        operations=(ReplaceText("a.spec.ts", "x", "y"),),
    )
    return RuleEngineResult(
        heal_items=[
            HealItem(
                rule_id="locator-timeout",
                subtype="selector-fix",
                confidence=1.0,
                summary=plan.description,
                rationale="selector missing",
                patch_plan=plan,
                target_files=("a.spec.ts",),
            )
        ],
        analysis_items=[AnalysisItem(rule_id="intent-guard", summary="Assertion failure", details="d")],
    )


class TestBuildProposalSet:
    def test_wraps_heal_and_analysis_items(self):
        ctx = FailureContext(test_file="a.spec.ts", test_title="works")
        proposal = build_proposal_set(ctx, _result(), proposal_id="p1")

        assert proposal.id == "p1"
        assert proposal.test_file == "a.spec.ts"
        assert proposal.adapter_version == ADAPTER_VERSION
        assert [i.type for i in proposal.items] == [ProposalType.HEAL, ProposalType.ANALYSIS]
        assert proposal.items[0].patch_plan is not None
        assert proposal.items[1].patch_plan is None
        assert proposal.items[1].confidence == 0.0

    def test_item_ids_are_unique(self):
        proposal = build_proposal_set(FailureContext(), _result())

        ids = [i.id for i in proposal.items]
        assert len(set(ids)) == len(ids)
        assert proposal.id

    def test_survives_json_shape(self):
        proposal = build_proposal_set(FailureContext(test_file="a.spec.ts"), _result(), proposal_id="p1")
        restored = ProposalSet.from_dict(proposal.to_dict())

        assert restored.items[0].patch_plan == proposal.items[0].patch_plan
        assert restored.items[0].subtype == "selector-fix"
        assert restored.test_file == "a.spec.ts"
