"""Acceptance-criteria conflict scoring for heal items.

The engine asks a single scoring function whether a heal item conflicts
with the parent work item's acceptance criteria. The default scorer is a
deterministic token overlap; swap it by passing ``conflict_scorer`` to
``RuleEngine``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from healpilot.core.models import EvidencePacket
from healpilot.heal.models import HealItem

_WORD = re.compile(r"\b\w{3,}\b")
CRITERIA_PREVIEW_CHARS = 200


@dataclass(frozen=True)
class SuppressionVerdict:
    summary: str
    details: str


ConflictScorer = Callable[[HealItem, str, EvidencePacket], Optional[SuppressionVerdict]]


def extract_tokens(text: str) -> set[str]:
    """Lower-cased words of three or more characters, numbers excluded."""
    return {w for w in _WORD.findall(text.lower()) if not w.isdigit()}


def has_overlap(left: set[str], right: set[str]) -> bool:
    return not left.isdisjoint(right)


def preview_criteria(criteria: str) -> str:
    if len(criteria) > CRITERIA_PREVIEW_CHARS:
        return criteria[:CRITERIA_PREVIEW_CHARS] + "..."
    return criteria


def token_overlap_scorer(
    item: HealItem, criteria: str, evidence: EvidencePacket
) -> SuppressionVerdict | None:
    """Flag the heal item when its wording shares no token with the criteria."""
    sources: list[str] = []
    for text in (
        (evidence.test_title or "").strip(),
        item.patch_plan.description,
        item.patch_plan.rationale,
        item.summary,
        item.rationale,
    ):
        if text and text not in sources:
            sources.append(text)

    if not sources:
        return None

    if has_overlap(extract_tokens(" ".join(sources)), extract_tokens(criteria)):
        return None

    return SuppressionVerdict(
        summary="Automated healing may violate Acceptance Criteria",
        details=(
            "The proposed heal recommendation shows limited overlap with the parent work "
            "item's Acceptance Criteria.\n\n"
            f"**Heal Proposal**: {item.summary}\n"
            f"**Acceptance Criteria**: {preview_criteria(criteria)}\n\n"
            "The failure may reflect an intentional requirement rather than a bug. Review the "
            "heal proposal against the requirements before applying."
        ),
    )
