"""Tests for failure and evidence models."""

from __future__ import annotations

from healpilot.core.models import ConsoleEntry, EvidencePacket, FailureContext


def _evidence_dict() -> dict:
    return {
        "traces": [{"path": "evidence/run-1/trace.zip", "runId": "run-1"}],
        "screenshots": [{"path": "evidence/run-1/shot.png", "kind": "screenshot"}],
        "reproSteps": [],
        "expected": "dashboard visible",
        "actual": "spinner",
        "errorMessage": "Timeout 5000ms exceeded",
        "console": [{"message": "TypeError: x is undefined", "type": "error"}, "plain log line"],
        "network": [{"method": "GET", "url": "/api/user", "status": 503, "failed": False}],
        "collectionMetadata": {
            "collectedAt": "2024-05-01T10:00:00Z",
            "sourcePaths": ["evidence/run-1"],
            "traceExtracted": True,
            "extractedTraceDir": "evidence/run-1/trace-extracted",
        },
        "adoContext": {
            "testId": 42,
            "testCase": {"id": 42, "title": "Login"},
            "parent": {"id": 7, "acceptanceCriteria": "User can log in with email"},
        },
        "testMetadata": {"testTitle": "user logs in"},
    }


class TestFailureContext:
    def test_from_dict_reads_camel_case(self):
        ctx = FailureContext.from_dict(
            {"testId": "t1", "testFile": "login.spec.ts", "testTitle": "logs in", "errorMessage": "boom"}
        )

        assert ctx.test_id == "t1"
        assert ctx.test_file == "login.spec.ts"
        assert ctx.error_message == "boom"
        assert ctx.stack_trace == ""

    def test_null_fields_become_empty_strings(self):
        ctx = FailureContext.from_dict({"testFile": None, "stackTrace": None})
        assert ctx.test_file == ""
        assert ctx.stack_trace == ""


class TestEvidencePacket:
    def test_from_dict_parses_nested_structures(self):
        evidence = EvidencePacket.from_dict(_evidence_dict())

        assert evidence.traces[0].path == "evidence/run-1/trace.zip"
        assert evidence.trace_extracted is True
        assert evidence.collection_metadata.extracted_trace_dir == "evidence/run-1/trace-extracted"
        assert evidence.network[0].status == 503
        assert evidence.test_title == "user logs in"

    def test_console_accepts_plain_strings(self):
        evidence = EvidencePacket.from_dict(_evidence_dict())

        assert evidence.console[0] == ConsoleEntry(message="TypeError: x is undefined", type="error")
        assert evidence.console[1].message == "plain log line"

    def test_acceptance_criteria_comes_from_parent(self):
        evidence = EvidencePacket.from_dict(_evidence_dict())
        assert evidence.acceptance_criteria == "User can log in with email"

    def test_no_ado_context_means_no_criteria(self):
        data = _evidence_dict()
        del data["adoContext"]
        evidence = EvidencePacket.from_dict(data)

        assert evidence.ado_context is None
        assert evidence.acceptance_criteria is None

    def test_missing_metadata_is_not_extracted(self):
        evidence = EvidencePacket.from_dict({"expected": "", "actual": ""})
        assert evidence.trace_extracted is False

    def test_to_dict_preserves_collector_keys(self):
        data = EvidencePacket.from_dict(_evidence_dict()).to_dict()

        assert data["collectionMetadata"]["traceExtracted"] is True
        assert data["adoContext"]["parent"]["acceptanceCriteria"] == "User can log in with email"
        assert data["testMetadata"] == {"testTitle": "user logs in"}
