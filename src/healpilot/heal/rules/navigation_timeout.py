"""Navigation timeout / closed page rule."""

from __future__ import annotations

from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.dom_inspector import extract_selector_from_error
from healpilot.heal.models import InsertAfter, PatchPlan, RuleId, RuleMatch
from healpilot.heal.rules.base import BaseRule, failing_test_file

NAVIGATION_WAIT_ANCHOR = "// TODO: Add navigation wait"
NAVIGATION_WAIT_INSERT = "await page.waitForLoadState('networkidle');\n"


def is_navigation_timeout(text: str) -> bool:
    lower = text.lower()
    return (
        "navigation timeout" in lower
        or "page.goto: timeout" in lower
        or "target closed" in lower
        or "page closed" in lower
        or ("timeout" in lower and "navigation" in lower)
    )


class NavigationTimeoutRule(BaseRule):
    rule_id = RuleId.NAVIGATION_TIMEOUT.value
    description = "Page navigation timed out or the page closed"

    def match(self, context: FailureContext, evidence: EvidencePacket) -> RuleMatch | None:
        text = self.error_text(context, evidence)
        if not is_navigation_timeout(text):
            return None

        target = failing_test_file(context)
        if target is None:
            return self._analysis(
                0.5,
                "Navigation timeout detected but target file could not be determined",
                "Navigation timeout - manual investigation needed",
                "The test failed due to a navigation timeout. Review the test and ensure proper "
                "wait conditions are in place after navigation.",
            )

        selector = extract_selector_from_error(text)
        if selector and self.inspector is not None:
            dom = self.inspector.check_selector(selector, evidence)
            if dom.exists:
                # The page rendered what the test needed; this is slowness, not a broken flow.
                return self._analysis(
                    0.6,
                    f'Navigation timed out but "{selector}" is present in the captured DOM',
                    "Navigation timeout - page slow but element present",
                    f'The element "{selector}" was found in {dom.snapshots_read} DOM snapshot(s), '
                    "so the page did load. Investigate environment or backend latency before "
                    "changing wait conditions in the test.",
                )

        confidence = 0.5
        if "page.goto: timeout" in text.lower():
            confidence = 0.7
        elif "target closed" in text.lower():
            confidence = 0.6

        return self._heal(
            confidence,
            "Navigation timeout error detected. Adding explicit wait for page load state "
            "should resolve this.",
            PatchPlan(
                description="Add wait for page load state after navigation",
                rationale=(
                    "Navigation timeout suggests the page may not have fully loaded. Adding a wait "
                    "for network idle ensures the page is ready before proceeding."
                ),
                operations=(
                    InsertAfter(
                        file_path=target,
                        anchor=NAVIGATION_WAIT_ANCHOR,
                        insert=NAVIGATION_WAIT_INSERT,
                    ),
                ),
            ),
        )
