"""Heal engine data models: rule matches, patch plans and apply results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union


class RuleId(str, enum.Enum):
    LOCATOR_TIMEOUT = "locator-timeout"
    NAVIGATION_TIMEOUT = "navigation-timeout"
    CONSOLE_TYPEERROR = "console-typeerror"
    INTENT_GUARD = "intent-guard"
    ACCEPTANCE_CRITERIA = "acceptance-criteria"


class HealSubtype(str, enum.Enum):
    SELECTOR_FIX = "selector-fix"
    WAIT_CONDITION = "wait-condition"
    NAVIGATION_TIMEOUT = "navigation-timeout"
    BUILDER_DEFAULT = "builder-default"


REQUIREMENT_MISMATCH = "requirement-mismatch"
POSSIBLE_PRODUCT_BUG = "possible-product-bug"


@dataclass(frozen=True)
class ReplaceText:
    """Replace the first literal occurrence of ``search`` with ``replace``."""

    file_path: str
    search: str
    replace: str

    type = "replaceText"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "filePath": self.file_path,
            "search": self.search,
            "replace": self.replace,
        }


@dataclass(frozen=True)
class InsertAfter:
    """Insert ``insert`` immediately after the single occurrence of ``anchor``."""

    file_path: str
    anchor: str
    insert: str

    type = "insertAfter"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "filePath": self.file_path,
            "anchor": self.anchor,
            "insert": self.insert,
        }


PatchOperation = Union[ReplaceText, InsertAfter]


def operation_from_dict(data: dict[str, Any]) -> PatchOperation:
    op_type = data.get("type")
    if op_type == ReplaceText.type:
        return ReplaceText(
            file_path=data["filePath"], search=data["search"], replace=data["replace"]
        )
    if op_type == InsertAfter.type:
        return InsertAfter(
            file_path=data["filePath"], anchor=data["anchor"], insert=data["insert"]
        )
    raise ValueError(f"Unknown patch operation type: {op_type!r}")


@dataclass(frozen=True)
class PatchPlan:
    description: str
    rationale: str
    operations: tuple[PatchOperation, ...] = ()

    @property
    def target_files(self) -> list[str]:
        """Distinct file paths touched by the plan, in first-use order."""
        return list(dict.fromkeys(op.file_path for op in self.operations))

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "rationale": self.rationale,
            "operations": [op.to_dict() for op in self.operations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PatchPlan:
        return cls(
            description=data.get("description", ""),
            rationale=data.get("rationale", ""),
            operations=tuple(operation_from_dict(op) for op in data.get("operations") or ()),
        )


@dataclass(frozen=True)
class AnalysisOnly:
    """Diagnosis without a safe automatic fix."""

    summary: str
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {"summary": self.summary, "details": self.details}


@dataclass(frozen=True)
class RuleMatch:
    """Outcome of one rule: either a patch plan or an analysis, never both."""

    rule_id: str
    confidence: float
    rationale: str
    outcome: PatchPlan | AnalysisOnly
    subtype: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.outcome, (PatchPlan, AnalysisOnly)):
            raise ValueError(
                f"RuleMatch outcome must be PatchPlan or AnalysisOnly, got {type(self.outcome).__name__}"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def patch_plan(self) -> PatchPlan | None:
        return self.outcome if isinstance(self.outcome, PatchPlan) else None

    @property
    def analysis_only(self) -> AnalysisOnly | None:
        return self.outcome if isinstance(self.outcome, AnalysisOnly) else None

    @property
    def is_heal(self) -> bool:
        return isinstance(self.outcome, PatchPlan)


@dataclass(frozen=True)
class HealItem:
    """An actionable patch proposal surfaced by the engine."""

    rule_id: str
    subtype: str
    confidence: float
    summary: str
    rationale: str
    patch_plan: PatchPlan
    target_files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "subtype": self.subtype,
            "confidence": self.confidence,
            "summary": self.summary,
            "rationale": self.rationale,
            "patchPlan": self.patch_plan.to_dict(),
            "targetFiles": list(self.target_files),
        }


@dataclass(frozen=True)
class AnalysisItem:
    rule_id: str
    summary: str
    details: str
    subtype: str | None = None
    confidence: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "ruleId": self.rule_id,
            "summary": self.summary,
            "details": self.details,
        }
        if self.subtype is not None:
            data["subtype"] = self.subtype
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data


@dataclass
class RuleEngineResult:
    heal_items: list[HealItem] = field(default_factory=list)
    analysis_items: list[AnalysisItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.heal_items and not self.analysis_items

    def to_dict(self) -> dict[str, Any]:
        return {
            "healItems": [h.to_dict() for h in self.heal_items],
            "analysisItems": [a.to_dict() for a in self.analysis_items],
        }


class DOMStatus(str, enum.Enum):
    EXISTS = "exists"
    NOT_EXISTS = "not-exists"


@dataclass(frozen=True)
class DOMCheckResult:
    status: DOMStatus
    snapshots_read: int = 0
    snapshots_scanned: int = 0

    @property
    def exists(self) -> bool:
        return self.status == DOMStatus.EXISTS


@dataclass(frozen=True)
class ResolveResult:
    success: bool
    resolved_path: str
    error: str | None = None


@dataclass
class PatchOperationResult:
    """Outcome of one patch (or rollback) step."""

    file_path: str
    success: bool
    message: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "filePath": self.file_path,
            "success": self.success,
            "message": self.message,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ApplyResult:
    success: bool
    results: list[PatchOperationResult] = field(default_factory=list)
    rollback_results: list[PatchOperationResult] | None = None
    original_contents: dict[str, str] = field(default_factory=dict, repr=False)

    @property
    def rolled_back(self) -> bool:
        return self.rollback_results is not None

    @property
    def files_modified(self) -> list[str]:
        return list(dict.fromkeys(r.file_path for r in self.results if r.success))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
        }
        if self.rollback_results is not None:
            data["rollbackResults"] = [r.to_dict() for r in self.rollback_results]
        return data
