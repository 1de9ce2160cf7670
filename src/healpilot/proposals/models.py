"""Proposal, selection and apply summary models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from healpilot.heal.models import PatchPlan


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProposalType(str, enum.Enum):
    HEAL = "heal"
    ANALYSIS = "analysis"


class ApplyAction(str, enum.Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ProposalItem:
    """One reviewable diagnosis item. Heal items carry a patch plan."""

    id: str
    type: ProposalType
    rule_id: str
    summary: str
    confidence: float
    rationale: str = ""
    subtype: str | None = None
    patch_plan: PatchPlan | None = None
    details: str = ""
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "ruleId": self.rule_id,
            "subtype": self.subtype,
            "summary": self.summary,
            "confidence": self.confidence,
            "rationale": self.rationale,
            "createdAt": self.created_at,
        }
        if self.patch_plan is not None:
            data["patchPlan"] = self.patch_plan.to_dict()
        if self.details:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProposalItem:
        plan = data.get("patchPlan")
        return cls(
            id=data["id"],
            type=ProposalType(data.get("type", "analysis")),
            rule_id=data.get("ruleId", ""),
            summary=data.get("summary", ""),
            confidence=float(data.get("confidence", 0.0)),
            rationale=data.get("rationale", ""),
            subtype=data.get("subtype"),
            patch_plan=PatchPlan.from_dict(plan) if plan else None,
            details=data.get("details", ""),
            created_at=data.get("createdAt") or utc_now_iso(),
        )


@dataclass
class ProposalSet:
    """All diagnosis items generated for one failing test."""

    id: str
    test_file: str
    test_title: str
    items: list[ProposalItem] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)
    adapter_version: str = ""

    def get_item(self, item_id: str) -> ProposalItem | None:
        return next((i for i in self.items if i.id == item_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": {"testFile": self.test_file, "testTitle": self.test_title},
            "items": [i.to_dict() for i in self.items],
            "createdAt": self.created_at,
            "adapterVersion": self.adapter_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProposalSet:
        source = data.get("source") or {}
        return cls(
            id=data.get("id", ""),
            test_file=source.get("testFile", ""),
            test_title=source.get("testTitle", ""),
            items=[ProposalItem.from_dict(i) for i in data.get("items") or ()],
            created_at=data.get("createdAt") or utc_now_iso(),
            adapter_version=data.get("adapterVersion", ""),
        )


@dataclass
class SelectionManifest:
    """The human-approved subset of a proposal set."""

    proposal_id: str
    selected_item_ids: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "selectedItemIds": list(self.selected_item_ids),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SelectionManifest:
        return cls(
            proposal_id=data.get("proposalId", ""),
            selected_item_ids=list(data.get("selectedItemIds") or ()),
            created_at=data.get("createdAt", ""),
        )


@dataclass
class ApplyItemResult:
    item_id: str
    success: bool
    action: ApplyAction
    message: str = ""
    files_modified: list[str] = field(default_factory=list)
    backup_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "itemId": self.item_id,
            "success": self.success,
            "action": self.action.value,
            "message": self.message,
        }
        details: dict[str, Any] = {}
        if self.files_modified:
            details["filesModified"] = list(self.files_modified)
        if self.backup_path:
            details["backupPath"] = self.backup_path
        if details:
            data["details"] = details
        return data


@dataclass
class ApplySummary:
    """Outcome of applying a selection."""

    proposal_set_id: str
    results: list[ApplyItemResult] = field(default_factory=list)
    applied_at: str = field(default_factory=utc_now_iso)

    @property
    def total_selected(self) -> int:
        return len(self.results)

    @property
    def total_applied(self) -> int:
        return sum(1 for r in self.results if r.action == ApplyAction.APPLIED)

    @property
    def total_failed(self) -> int:
        return sum(1 for r in self.results if r.action == ApplyAction.FAILED)

    @property
    def total_skipped(self) -> int:
        return sum(1 for r in self.results if r.action == ApplyAction.SKIPPED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "proposalSetId": self.proposal_set_id,
            "results": [r.to_dict() for r in self.results],
            "appliedAt": self.applied_at,
            "totalSelected": self.total_selected,
            "totalApplied": self.total_applied,
            "totalFailed": self.total_failed,
            "totalSkipped": self.total_skipped,
        }
