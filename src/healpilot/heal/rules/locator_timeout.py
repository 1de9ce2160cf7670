"""Locator timeout rule.

Triggers on Playwright locator timeouts and uses the DOM snapshots to tell a
stale selector (element never rendered) from a timing problem (element
rendered, but later than the test waited).
"""

from __future__ import annotations

import re

from healpilot.core.models import EvidencePacket, FailureContext
from healpilot.heal.dom_inspector import extract_selector_from_error
from healpilot.heal.models import PatchPlan, ReplaceText, RuleId, RuleMatch
from healpilot.heal.rules.base import BaseRule, failing_test_file

# Shared app-ready helper generated by the scaffolder.
APP_READY_HELPER = "src/utils/autoPilot.ts"
PLACEHOLDER_TESTID = "__REPLACE_ME__"

_LOCATOR_ACTION_TIMEOUT = re.compile(r"locator\.waitfor|locator\.(click|fill|press): timeout")
_STACK_SOURCE = re.compile(r"(src/[^:\s()]+\.ts)", re.IGNORECASE)
_TESTID_VALUE = re.compile(r"\[data-testid=[\"']([^\"']+)[\"']\]")


def is_locator_timeout(text: str) -> bool:
    lower = text.lower()
    if "timeout" not in lower:
        return False
    return bool(
        ("waiting for" in lower and "locator" in lower)
        or re.search(r"timeout waiting for .* locator:", lower)
        or _LOCATOR_ACTION_TIMEOUT.search(lower)
        or "waiting for locator(" in lower
    )


class LocatorTimeoutRule(BaseRule):
    rule_id = RuleId.LOCATOR_TIMEOUT.value
    description = "Locator timed out: stale selector or slow element"

    def match(self, context: FailureContext, evidence: EvidencePacket) -> RuleMatch | None:
        text = self.error_text(context, evidence, include_actual=True)
        if not is_locator_timeout(text):
            return None

        selector = extract_selector_from_error(text)
        if not selector:
            return None

        target = self._find_target_file(context, text)
        if target is None:
            return self._analysis(
                0.5,
                "Locator timeout detected but target file could not be determined",
                "Locator timeout - manual investigation needed",
                "The test failed due to a locator timeout. Review the test file and ensure "
                "elements are properly waited for before interaction.",
            )

        if self.inspector is None:
            raise RuntimeError("LocatorTimeoutRule requires a DOMInspector")

        # Raises if the trace was extracted but no snapshot is readable.
        dom = self.inspector.check_selector(selector, evidence)

        if dom.exists:
            return self._heal(
                0.85,
                f'Locator "{selector}" exists in DOM but timing issue detected. '
                "Adding explicit wait ensures element is ready before interaction.",
                self._timing_plan(target, selector),
            )

        # Never propose a wait for an element that is not on the page.
        return self._heal(
            1.0,
            f'Locator "{selector}" does not exist in DOM. The selector needs to be updated '
            "to match the current page structure.",
            self._selector_plan(target, selector),
        )

    def _find_target_file(self, context: FailureContext, text: str) -> str | None:
        if "autopilot.ts" in text.lower():
            return APP_READY_HELPER
        source = _STACK_SOURCE.search(text)
        if source:
            return source.group(1)
        return failing_test_file(context)

    def _timing_plan(self, target: str, selector: str) -> PatchPlan:
        if target == APP_READY_HELPER:
            return PatchPlan(
                description="Increase timeout for app ready indicator wait",
                rationale=(
                    f'Locator "{selector}" exists in DOM but timing issue detected. Increasing '
                    "timeout from 2000ms to 10000ms ensures element is ready before proceeding."
                ),
                operations=(
                    ReplaceText(
                        file_path=target,
                        search="await this.page.locator(this.locators.appReadyIndicator).waitFor({ timeout: 2000 });",
                        replace=(
                            "await this.page.locator(this.locators.appReadyIndicator)"
                            ".waitFor({ state: 'visible', timeout: 10000 });"
                        ),
                    ),
                ),
            )
        return PatchPlan(
            description="Add wait condition before element interaction",
            rationale=(
                f'Locator "{selector}" exists in DOM but timing issue detected. Adding explicit '
                "wait ensures element is ready before interaction."
            ),
            operations=(
                ReplaceText(
                    file_path=target,
                    search=f"await page.locator('{selector}').click()",
                    replace=(
                        f"await page.locator('{selector}').waitFor({{ state: 'visible', timeout: 10000 }});\n"
                        f"  await page.locator('{selector}').click()"
                    ),
                ),
            ),
        )

    def _selector_plan(self, target: str, selector: str) -> PatchPlan:
        note = f'// FIXME: Selector "{selector}" not found in DOM - update to correct selector'
        if target == APP_READY_HELPER:
            testid = _TESTID_VALUE.search(selector)
            value = testid.group(1) if testid else "app-ready"
            return PatchPlan(
                description="Fix app ready indicator selector to match DOM",
                rationale=(
                    f'Locator "{selector}" does not exist in DOM. The selector needs to be updated '
                    "to match the current page structure. Update the selector value in the locators object."
                ),
                operations=(
                    ReplaceText(
                        file_path=target,
                        search=f"appReadyIndicator: '[data-testid=\"{value}\"]',",
                        replace=f"appReadyIndicator: '[data-testid=\"{PLACEHOLDER_TESTID}\"]', {note}",
                    ),
                ),
            )
        return PatchPlan(
            description="Fix element selector to match DOM",
            rationale=(
                f'Locator "{selector}" does not exist in DOM. The selector needs to be updated '
                "to match the current page structure."
            ),
            operations=(
                ReplaceText(
                    file_path=target,
                    search=f"page.locator('{selector}')",
                    replace=f"page.locator('[data-testid=\"{PLACEHOLDER_TESTID}\"]') {note}",
                ),
            ),
        )
