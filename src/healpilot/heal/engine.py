"""Rule engine: runs every heal rule against a failure and sorts the results."""

from __future__ import annotations

import logging
from pathlib import Path

from healpilot.core.config import HealPilotConfig, load_config
from healpilot.core.fs import FileSystem, LocalFileSystem
from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.dom_inspector import DOMInspector
from healpilot.heal.models import (
    REQUIREMENT_MISMATCH,
    AnalysisItem,
    HealItem,
    HealSubtype,
    PatchPlan,
    RuleEngineResult,
    RuleId,
    RuleMatch,
)
from healpilot.heal.rules import ALL_RULES
from healpilot.heal.rules.base import BaseRule
from healpilot.heal.suppression import ConflictScorer, token_overlap_scorer

logger = logging.getLogger(__name__)


def heal_subtype(rule_id: str, plan: PatchPlan) -> str:
    """Classify a heal by rule and plan wording."""
    desc = plan.description.lower()
    if rule_id == RuleId.LOCATOR_TIMEOUT.value:
        if "selector" in desc or "fix" in desc or "replace" in desc:
            return HealSubtype.SELECTOR_FIX.value
        return HealSubtype.WAIT_CONDITION.value
    if rule_id == RuleId.NAVIGATION_TIMEOUT.value:
        return HealSubtype.NAVIGATION_TIMEOUT.value
    if rule_id == RuleId.CONSOLE_TYPEERROR.value:
        return HealSubtype.BUILDER_DEFAULT.value
    return HealSubtype.WAIT_CONDITION.value


class RuleEngine:
    """Runs heal rules in order and partitions their matches.

    Patch matches become heal items, everything else analysis items. When
    the evidence carries acceptance criteria, each heal item is checked by
    ``conflict_scorer``; a conflicting item is replaced by a
    ``requirement-mismatch`` analysis item for the same rule.

    Exceptions raised by rules (such as ``DOMInspectionError``) propagate.
    """

    def __init__(
        self,
        project_path: Path | None = None,
        config: HealPilotConfig | None = None,
        fs: FileSystem | None = None,
        inspector: DOMInspector | None = None,
        rules: list[BaseRule] | None = None,
        conflict_scorer: ConflictScorer | None = None,
    ):
        self.fs = fs or LocalFileSystem(project_path)
        self.config = config or load_config(self.fs.root)
        self.inspector = inspector or DOMInspector(self.fs, snapshot_cap=self.config.heal.snapshot_cap)
        self.conflict_scorer = conflict_scorer or token_overlap_scorer

        if rules is None:
            rules = [
                rule_cls(inspector=self.inspector)
                for rule_cls in ALL_RULES
                if rule_cls.rule_id not in self.config.heal.disabled_rules
            ]
        self.rules = rules

    def run(self, context: FailureContext, evidence: EvidencePacket) -> RuleEngineResult:
        """Diagnose one failure."""
        matches: list[RuleMatch] = []
        for rule in self.rules:
            match = rule.match(context, evidence)
            if match is None:
                continue
            logger.debug(
                "Rule %s matched (confidence %.2f, %s)",
                rule.rule_id,
                match.confidence,
                "heal" if match.is_heal else "analysis",
            )
            matches.append(match)

        return self._partition(matches, evidence)

    def _partition(self, matches: list[RuleMatch], evidence: EvidencePacket) -> RuleEngineResult:
        result = RuleEngineResult()
        criteria = evidence.acceptance_criteria
        if criteria is not None and not criteria.strip():
            criteria = None
        suppressed: set[str] = set()

        for match in matches:
            plan = match.patch_plan
            if plan is None:
                analysis = match.analysis_only
                result.analysis_items.append(
                    AnalysisItem(
                        rule_id=match.rule_id,
                        summary=analysis.summary,
                        details=analysis.details,
                        subtype=match.subtype,
                        confidence=match.confidence,
                    )
                )
                continue

            item = HealItem(
                rule_id=match.rule_id,
                subtype=heal_subtype(match.rule_id, plan),
                confidence=match.confidence,
                summary=plan.description,
                rationale=match.rationale,
                patch_plan=plan,
                target_files=tuple(plan.target_files),
            )

            verdict = self.conflict_scorer(item, criteria, evidence) if criteria else None
            if verdict is None:
                result.heal_items.append(item)
                continue

            logger.warning("Suppressed %s heal: conflicts with acceptance criteria", match.rule_id)
            suppressed.add(match.rule_id)
            result.analysis_items.append(
                AnalysisItem(
                    rule_id=match.rule_id,
                    summary=verdict.summary,
                    details=verdict.details,
                    subtype=REQUIREMENT_MISMATCH,
                    confidence=match.confidence,
                )
            )

        if suppressed:
            result.heal_items = [h for h in result.heal_items if h.rule_id not in suppressed]
        return result
