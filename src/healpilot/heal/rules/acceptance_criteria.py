"""Acceptance criteria alignment rule.

Compares the failing test's intent with the parent work item's acceptance
criteria and reports a requirement mismatch when they share no vocabulary.
"""

from __future__ import annotations

import re

from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.models import REQUIREMENT_MISMATCH, RuleId, RuleMatch
from healpilot.heal.rules.base import BaseRule
from healpilot.heal.suppression import extract_tokens, has_overlap, preview_criteria

_ASSERTION = re.compile(r"expect.*?to(?:Equal|Be|Contain|Match)", re.IGNORECASE)


class AcceptanceCriteriaRule(BaseRule):
    rule_id = RuleId.ACCEPTANCE_CRITERIA.value
    description = "Test intent does not match the work item's acceptance criteria"

    def match(self, context: FailureContext, evidence: EvidencePacket) -> RuleMatch | None:
        criteria = evidence.acceptance_criteria
        if not criteria or not criteria.strip():
            return None

        intent: list[str] = []
        if context.test_title:
            intent.append(context.test_title)
        if evidence.test_title:
            intent.append(evidence.test_title)
        if context.error_message and _ASSERTION.search(context.error_message):
            intent.append(context.error_message)
        if not intent:
            return None

        intent_tokens = extract_tokens(" ".join(intent))
        if has_overlap(intent_tokens, extract_tokens(criteria)):
            return None

        sample = ", ".join(sorted(intent_tokens)[:10])
        return self._analysis(
            0.75,
            "Test intent shares no vocabulary with the acceptance criteria",
            "Test intent may not match Acceptance Criteria",
            f"Test intent tokens: {sample}...\n"
            f"Acceptance Criteria checked: {preview_criteria(criteria)}\n"
            "No meaningful token overlap detected (minimum 1 token required).",
            subtype=REQUIREMENT_MISMATCH,
        )
