"""Tests for proposal and selection persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from healpilot.core.errors import SelectionManifestError
from healpilot.proposals.models import ProposalItem, ProposalSet, ProposalType, SelectionManifest
from healpilot.proposals.store import ProposalStore


@pytest.fixture
def store(repo: Path, fs) -> ProposalStore:
    return ProposalStore(repo, fs=fs)


def _proposal(pid: str = "p1") -> ProposalSet:
    return ProposalSet(
        id=pid,
        test_file="a.spec.ts",
        test_title="works",
        items=[ProposalItem(id="i1", type=ProposalType.ANALYSIS, rule_id="intent-guard", summary="s", confidence=0.5)],
    )


class TestProposalSets:
    def test_save_and_load(self, store: ProposalStore, repo: Path):
        path = store.save_proposal_set(_proposal())

        assert path == repo / ".pilot" / "proposals" / "p1.json"
        assert not path.with_name("p1.json.tmp").exists()
        loaded = store.load_proposal_set("p1")
        assert loaded.items[0].id == "i1"

    def test_missing_proposal_is_none(self, store: ProposalStore):
        assert store.load_proposal_set("nope") is None

    def test_id_required(self, store: ProposalStore):
        with pytest.raises(ValueError):
            store.save_proposal_set(_proposal(pid=""))


class TestSelections:
    def test_save_and_load(self, store: ProposalStore):
        store.save_selection(SelectionManifest(proposal_id="p1", selected_item_ids=["i1"]))

        manifest = store.load_selection("p1")
        assert manifest.selected_item_ids == ["i1"]

    def test_missing_selection_is_none(self, store: ProposalStore):
        assert store.load_selection("p1") is None

    def _write(self, store: ProposalStore, data) -> None:
        store.selection_dir.mkdir(parents=True, exist_ok=True)
        store.selection_path("p1").write_text(data if isinstance(data, str) else json.dumps(data))

    def test_invalid_json(self, store: ProposalStore):
        self._write(store, "{not json")
        with pytest.raises(SelectionManifestError, match="Invalid JSON"):
            store.load_selection("p1")

    def test_non_list_ids(self, store: ProposalStore):
        self._write(store, {"proposalId": "p1", "selectedItemIds": "i1", "createdAt": "now"})
        with pytest.raises(SelectionManifestError, match="must be an array"):
            store.load_selection("p1")

    def test_proposal_id_mismatch(self, store: ProposalStore):
        self._write(store, {"proposalId": "other", "selectedItemIds": [], "createdAt": "now"})
        with pytest.raises(SelectionManifestError, match="mismatch"):
            store.load_selection("p1")

    def test_missing_created_at(self, store: ProposalStore):
        self._write(store, {"proposalId": "p1", "selectedItemIds": []})
        with pytest.raises(SelectionManifestError, match="createdAt"):
            store.load_selection("p1")

    def test_save_rejects_non_string_ids(self, store: ProposalStore):
        with pytest.raises(SelectionManifestError):
            store.save_selection(SelectionManifest(proposal_id="p1", selected_item_ids=[1]))
