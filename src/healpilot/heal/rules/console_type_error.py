"""TypeError / undefined access rule."""

from __future__ import annotations

from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.models import InsertAfter, PatchPlan, RuleId, RuleMatch
from healpilot.heal.rules.base import BaseRule, failing_test_file

UNDEFINED_GUARD_ANCHOR = "// TODO: Add undefined guard"

_TYPEERROR_MARKERS = (
    "typeerror:",
    "cannot read properties of undefined",
    "cannot read property",
    "is not a function",
    "is undefined",
)


def is_type_error(text: str) -> bool:
    lower = text.lower()
    return any(marker in lower for marker in _TYPEERROR_MARKERS)


class ConsoleTypeErrorRule(BaseRule):
    rule_id = RuleId.CONSOLE_TYPEERROR.value
    description = "JavaScript TypeError in test code or page console"

    def match(self, context: FailureContext, evidence: EvidencePacket) -> RuleMatch | None:
        text = self.error_text(context, evidence, include_attachments=True)
        if not is_type_error(text):
            return None

        target = failing_test_file(context)
        if target is None:
            return self._analysis(
                0.4,
                "TypeError detected but target file could not be determined",
                "TypeError - manual investigation needed",
                "The test failed due to a JavaScript TypeError (likely undefined access). Review "
                "the test code and test data factories to identify the source.",
            )

        if "cannot read properties of undefined" not in text.lower():
            return self._analysis(
                0.4,
                "TypeError detected but safe patch could not be generated",
                "TypeError - manual fix required",
                "The test failed due to a TypeError. A safe automatic fix could not be "
                "determined. Review the code and add appropriate guards or defaults.",
            )

        return self._heal(
            0.4,
            "TypeError detected. Adding a guard check or default value should resolve this.",
            PatchPlan(
                description="Add undefined guard check",
                rationale="TypeError suggests undefined access. Adding a guard check prevents the error.",
                operations=(
                    InsertAfter(
                        file_path=target,
                        anchor=UNDEFINED_GUARD_ANCHOR,
                        insert="if (!variable) throw new Error('Variable is undefined');\n",
                    ),
                ),
            ),
        )
