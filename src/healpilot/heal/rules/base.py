"""Base class for all heal rules."""

from __future__ import annotations

from abc import ABC, abstractmethod

from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.dom_inspector import DOMInspector
from healpilot.heal.models import AnalysisOnly, PatchPlan, RuleMatch


class BaseRule(ABC):
    """Abstract base class for heal rules.

    A rule inspects one failure and either declines (returns None), explains
    it (analysis-only match) or proposes a patch plan.
    """

    rule_id: str = ""
    description: str = ""

    def __init__(self, inspector: DOMInspector | None = None):
        self.inspector = inspector

    @abstractmethod
    def match(self, context: FailureContext, evidence: EvidencePacket) -> RuleMatch | None:
        ...

    def error_text(
        self,
        context: FailureContext,
        evidence: EvidencePacket,
        *,
        include_console: bool = True,
        include_attachments: bool = False,
        include_actual: bool = False,
    ) -> str:
        """Combined text the rule pattern-matches against."""
        parts = [context.error_message, context.stack_trace, evidence.error_message]
        if include_actual:
            parts.append(evidence.actual)
        if include_console and evidence.console:
            parts.append("\n".join(c.message for c in evidence.console))
        if include_attachments and evidence.attachment_references:
            parts.append("\n".join(a.path for a in evidence.attachment_references))
        return "\n".join(p for p in parts if p)

    def _heal(self, confidence: float, rationale: str, plan: PatchPlan) -> RuleMatch:
        return RuleMatch(
            rule_id=self.rule_id,
            confidence=confidence,
            rationale=rationale,
            outcome=plan,
        )

    def _analysis(
        self,
        confidence: float,
        rationale: str,
        summary: str,
        details: str,
        subtype: str | None = None,
    ) -> RuleMatch:
        return RuleMatch(
            rule_id=self.rule_id,
            confidence=confidence,
            rationale=rationale,
            outcome=AnalysisOnly(summary=summary, details=details),
            subtype=subtype,
        )


def failing_test_file(context: FailureContext) -> str | None:
    """The failing test's file, relative to the tests root, when known."""
    if context.test_file and context.test_file != "unknown":
        return context.test_file
    return None
