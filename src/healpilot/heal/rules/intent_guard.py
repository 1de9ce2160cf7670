"""Intent guard: assertion failures are never auto-healed.

Rewriting a failing assertion to match current behaviour would weaken the
test, so this rule only ever produces analysis items. When the mismatch looks
like real product behaviour it is tagged as a possible product bug.
"""

from __future__ import annotations

import re

from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.models import POSSIBLE_PRODUCT_BUG, RuleId, RuleMatch
from healpilot.heal.rules.base import BaseRule

_EXPECTED = re.compile(r"expected:\s*([^\n]+)", re.IGNORECASE)
_RECEIVED = re.compile(r"received:\s*([^\n]+)", re.IGNORECASE)


def is_assertion_failure(text: str) -> bool:
    lower = text.lower()
    return (
        "expect" in lower
        or "assertion" in lower
        or ("not equal" in lower and "actual" in lower)
    )


def suggests_product_bug(text: str, evidence: EvidencePacket) -> bool:
    expected = _EXPECTED.search(text)
    received = _RECEIVED.search(text)
    if expected and received:
        want = expected.group(1).strip()
        got = received.group(1).strip()
        if want != got and len(want) > 3 and len(got) > 3:
            return True

    return any(n.failed or (n.status is not None and n.status >= 500) for n in evidence.network)


class IntentGuardRule(BaseRule):
    rule_id = RuleId.INTENT_GUARD.value
    description = "Assertion failure that must not be healed by weakening the test"

    def match(self, context: FailureContext, evidence: EvidencePacket) -> RuleMatch | None:
        text = self.error_text(context, evidence, include_console=False)
        if not is_assertion_failure(text):
            return None

        if suggests_product_bug(text, evidence):
            return self._analysis(
                0.7,
                "Assertion failure suggests a product bug rather than a test issue. Fixing this "
                "would weaken test intent.",
                "Possible product bug or expectation mismatch",
                f"Test assertion failed: {context.error_message or 'Assertion mismatch'}\n\n"
                "This appears to be a product behavior issue rather than a test code problem. "
                "Fixing the test to match current behavior would weaken the test's intent.",
                subtype=POSSIBLE_PRODUCT_BUG,
            )

        return self._analysis(
            0.5,
            "Assertion failure detected - requires manual review to determine if product bug or test issue",
            "Assertion failure - review required",
            "The test failed due to an assertion mismatch. Review to determine if this is a "
            "product bug or if the test expectation needs updating.",
        )
