"""Failure and evidence models shared across healpilot modules.

These structures are produced by the external evidence collector and are
read-only here. JSON uses the collector's camelCase keys; ``from_dict`` and
``to_dict`` translate between that shape and the dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FailureContext:
    """A single failing test, as reported by the test runner."""

    test_id: str = ""
    test_file: str = ""
    test_title: str = ""
    error_message: str = ""
    stack_trace: str = ""
    trace_path: str = ""
    feature_key: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "testId": self.test_id,
            "testFile": self.test_file,
            "testTitle": self.test_title,
            "errorMessage": self.error_message,
            "stackTrace": self.stack_trace,
            "tracePath": self.trace_path,
            "featureKey": self.feature_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FailureContext:
        return cls(
            test_id=data.get("testId") or "",
            test_file=data.get("testFile") or "",
            test_title=data.get("testTitle") or "",
            error_message=data.get("errorMessage") or "",
            stack_trace=data.get("stackTrace") or "",
            trace_path=data.get("tracePath") or "",
            feature_key=data.get("featureKey") or "",
        )


@dataclass(frozen=True)
class TraceRef:
    path: str
    run_id: str | None = None
    test_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path}
        if self.run_id is not None:
            data["runId"] = self.run_id
        if self.test_id is not None:
            data["testId"] = self.test_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TraceRef:
        return cls(path=data.get("path", ""), run_id=data.get("runId"), test_id=data.get("testId"))


@dataclass(frozen=True)
class FileRef:
    """A screenshot, video or other attachment captured during the run."""

    path: str
    label: str | None = None
    timestamp: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path}
        if self.label is not None:
            data["label"] = self.label
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileRef:
        return cls(path=data.get("path", ""), label=data.get("label"), timestamp=data.get("timestamp"))


@dataclass(frozen=True)
class ReproStep:
    order: int
    action: str
    selector: str | None = None
    value: str | None = None
    expected: str | None = None
    actual: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"order": self.order, "action": self.action}
        for key in ("selector", "value", "expected", "actual"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReproStep:
        return cls(
            order=int(data.get("order", 0)),
            action=data.get("action", ""),
            selector=data.get("selector"),
            value=data.get("value"),
            expected=data.get("expected"),
            actual=data.get("actual"),
        )


@dataclass(frozen=True)
class ConsoleEntry:
    """A browser console line captured in the trace."""

    message: str
    type: str = "log"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> ConsoleEntry:
        if isinstance(data, str):
            return cls(message=data)
        return cls(message=data.get("message", ""), type=data.get("type", "log"))


@dataclass(frozen=True)
class NetworkEntry:
    method: str
    url: str
    status: int | None = None
    failed: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"method": self.method, "url": self.url, "failed": self.failed}
        if self.status is not None:
            data["status"] = self.status
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NetworkEntry:
        return cls(
            method=data.get("method", "GET"),
            url=data.get("url", ""),
            status=data.get("status"),
            failed=bool(data.get("failed", False)),
        )


@dataclass(frozen=True)
class AttachmentCounts:
    screenshots: int = 0
    videos: int = 0
    logs: int = 0
    other: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "screenshots": self.screenshots,
            "videos": self.videos,
            "logs": self.logs,
            "other": self.other,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttachmentCounts:
        return cls(
            screenshots=int(data.get("screenshots", 0)),
            videos=int(data.get("videos", 0)),
            logs=int(data.get("logs", 0)),
            other=int(data.get("other", 0)),
        )


@dataclass(frozen=True)
class CollectionMetadata:
    """How and from where the evidence was collected."""

    collected_at: str = ""
    source_paths: tuple[str, ...] = ()
    indexing_notes: tuple[str, ...] = ()
    trace_extracted: bool = False
    extracted_trace_dir: str | None = None
    attachment_counts: AttachmentCounts = field(default_factory=AttachmentCounts)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "collectedAt": self.collected_at,
            "sourcePaths": list(self.source_paths),
            "indexingNotes": list(self.indexing_notes),
            "traceExtracted": self.trace_extracted,
            "attachmentCounts": self.attachment_counts.to_dict(),
        }
        if self.extracted_trace_dir is not None:
            data["extractedTraceDir"] = self.extracted_trace_dir
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CollectionMetadata:
        return cls(
            collected_at=data.get("collectedAt", ""),
            source_paths=tuple(data.get("sourcePaths") or ()),
            indexing_notes=tuple(data.get("indexingNotes") or ()),
            trace_extracted=bool(data.get("traceExtracted", False)),
            extracted_trace_dir=data.get("extractedTraceDir"),
            attachment_counts=AttachmentCounts.from_dict(data.get("attachmentCounts") or {}),
        )


@dataclass(frozen=True)
class AdoTestCase:
    id: int
    url: str = ""
    title: str = ""
    type: str = "Test Case"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "url": self.url, "title": self.title, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdoTestCase:
        return cls(
            id=data.get("id", 0),
            url=data.get("url", ""),
            title=data.get("title", ""),
            type=data.get("type", "Test Case"),
        )


@dataclass(frozen=True)
class AdoParent:
    """Parent work item (user story, PBI) of the failing test case."""

    id: int
    type: str = ""
    title: str = ""
    url: str = ""
    acceptance_criteria: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "url": self.url,
            "acceptanceCriteria": self.acceptance_criteria,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdoParent:
        return cls(
            id=data.get("id", 0),
            type=data.get("type", ""),
            title=data.get("title", ""),
            url=data.get("url", ""),
            acceptance_criteria=data.get("acceptanceCriteria"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class AdoContext:
    """Azure DevOps work item context linked to the failing test."""

    test_id: int
    test_case: AdoTestCase
    parent: AdoParent | None = None

    @property
    def acceptance_criteria(self) -> str | None:
        if self.parent is None:
            return None
        return self.parent.acceptance_criteria

    def to_dict(self) -> dict[str, Any]:
        return {
            "testId": self.test_id,
            "testCase": self.test_case.to_dict(),
            "parent": self.parent.to_dict() if self.parent else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdoContext:
        parent = data.get("parent")
        return cls(
            test_id=data.get("testId", 0),
            test_case=AdoTestCase.from_dict(data.get("testCase") or {}),
            parent=AdoParent.from_dict(parent) if parent else None,
        )


@dataclass(frozen=True)
class EvidencePacket:
    """Everything the collector gathered about one failure."""

    traces: tuple[TraceRef, ...] = ()
    screenshots: tuple[FileRef, ...] = ()
    repro_steps: tuple[ReproStep, ...] = ()
    expected: str = ""
    actual: str = ""
    error_message: str | None = None
    console: tuple[ConsoleEntry, ...] = ()
    network: tuple[NetworkEntry, ...] = ()
    attachment_references: tuple[FileRef, ...] = ()
    collection_metadata: CollectionMetadata | None = None
    ado_context: AdoContext | None = None
    test_title: str | None = None

    @property
    def trace_extracted(self) -> bool:
        return bool(self.collection_metadata and self.collection_metadata.trace_extracted)

    @property
    def acceptance_criteria(self) -> str | None:
        if self.ado_context is None:
            return None
        return self.ado_context.acceptance_criteria

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "traces": [t.to_dict() for t in self.traces],
            "screenshots": [s.to_dict() for s in self.screenshots],
            "reproSteps": [r.to_dict() for r in self.repro_steps],
            "expected": self.expected,
            "actual": self.actual,
        }
        if self.error_message is not None:
            data["errorMessage"] = self.error_message
        if self.console:
            data["console"] = [c.to_dict() for c in self.console]
        if self.network:
            data["network"] = [n.to_dict() for n in self.network]
        if self.attachment_references:
            data["attachmentReferences"] = [a.to_dict() for a in self.attachment_references]
        if self.collection_metadata is not None:
            data["collectionMetadata"] = self.collection_metadata.to_dict()
        if self.ado_context is not None:
            data["adoContext"] = self.ado_context.to_dict()
        if self.test_title is not None:
            data["testMetadata"] = {"testTitle": self.test_title}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EvidencePacket:
        metadata = data.get("collectionMetadata")
        ado = data.get("adoContext")
        test_metadata = data.get("testMetadata") or {}
        return cls(
            traces=tuple(TraceRef.from_dict(t) for t in data.get("traces") or ()),
            screenshots=tuple(FileRef.from_dict(s) for s in data.get("screenshots") or ()),
            repro_steps=tuple(ReproStep.from_dict(r) for r in data.get("reproSteps") or ()),
            expected=data.get("expected", ""),
            actual=data.get("actual", ""),
            error_message=data.get("errorMessage"),
            console=tuple(ConsoleEntry.from_dict(c) for c in data.get("console") or ()),
            network=tuple(NetworkEntry.from_dict(n) for n in data.get("network") or ()),
            attachment_references=tuple(
                FileRef.from_dict(a) for a in data.get("attachmentReferences") or ()
            ),
            collection_metadata=CollectionMetadata.from_dict(metadata) if metadata else None,
            ado_context=AdoContext.from_dict(ado) if ado else None,
            test_title=test_metadata.get("testTitle"),
        )
