"""On-disk storage for proposal sets and selection manifests.

Layout under the project's ``.pilot`` directory::

    proposals/<proposalId>.json
    proposals/selection/<proposalId>.selection.json

Both are written through a temporary file and renamed into place.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from healpilot.core.config import get_pilot_dir
from healpilot.core.errors import SelectionManifestError
from healpilot.core.fs import FileSystem, LocalFileSystem
from healpilot.proposals.models import ProposalSet, SelectionManifest

logger = logging.getLogger(__name__)


class ProposalStore:
    """Persists proposal sets and the selections made from them."""

    def __init__(self, project_path: Path | None = None, fs: FileSystem | None = None):
        self.fs = fs or LocalFileSystem(project_path)
        self.proposals_dir = get_pilot_dir(self.fs.root) / "proposals"
        self.selection_dir = self.proposals_dir / "selection"

    # ------------------------------------------------------------------
    # Proposal sets
    # ------------------------------------------------------------------

    def proposal_path(self, proposal_id: str) -> Path:
        return self.proposals_dir / f"{proposal_id}.json"

    def save_proposal_set(self, proposal_set: ProposalSet) -> Path:
        if not proposal_set.id:
            raise ValueError("Cannot save a proposal set without an id")
        self.fs.mkdir(self.proposals_dir)
        path = self.proposal_path(proposal_set.id)
        self.fs.write_atomic(path, json.dumps(proposal_set.to_dict(), indent=2))
        logger.debug("Saved proposal set %s to %s", proposal_set.id, path)
        return path

    def load_proposal_set(self, proposal_id: str) -> ProposalSet | None:
        path = self.proposal_path(proposal_id)
        if not self.fs.exists(path):
            return None
        return ProposalSet.from_dict(json.loads(self.fs.read_text(path)))

    # ------------------------------------------------------------------
    # Selection manifests
    # ------------------------------------------------------------------

    def selection_path(self, proposal_id: str) -> Path:
        return self.selection_dir / f"{proposal_id}.selection.json"

    def save_selection(self, manifest: SelectionManifest) -> Path:
        """Validate and persist a manifest, replacing any earlier one."""
        _validate_manifest(manifest, where="manifest")
        self.fs.mkdir(self.selection_dir)
        path = self.selection_path(manifest.proposal_id)
        self.fs.write_atomic(path, json.dumps(manifest.to_dict(), indent=2))
        return path

    def load_selection(self, proposal_id: str) -> SelectionManifest | None:
        """Load the manifest for ``proposal_id``; None if there is none.

        Raises ``SelectionManifestError`` when the file exists but is not a
        valid manifest for this proposal.
        """
        path = self.selection_path(proposal_id)
        if not self.fs.exists(path):
            return None

        try:
            data = json.loads(self.fs.read_text(path))
        except json.JSONDecodeError as e:
            raise SelectionManifestError(f"Invalid JSON in selection manifest: {path}") from e
        if not isinstance(data, dict):
            raise SelectionManifestError(f"Invalid selection manifest: expected an object in {path}")

        if not isinstance(data.get("selectedItemIds"), list):
            raise SelectionManifestError(
                f"Invalid selection manifest: selectedItemIds must be an array in {path}"
            )
        manifest = SelectionManifest.from_dict(data)
        _validate_manifest(manifest, where=str(path))
        if manifest.proposal_id != proposal_id:
            raise SelectionManifestError(
                "Invalid selection manifest: proposalId mismatch "
                f"(expected {proposal_id}, got {manifest.proposal_id}) in {path}"
            )
        return manifest


def _validate_manifest(manifest: SelectionManifest, where: str) -> None:
    if not isinstance(manifest.proposal_id, str) or not manifest.proposal_id:
        raise SelectionManifestError(f"Invalid selection manifest: missing or invalid proposalId in {where}")
    if not all(isinstance(i, str) for i in manifest.selected_item_ids):
        raise SelectionManifestError(f"Invalid selection manifest: selectedItemIds must be strings in {where}")
    if not isinstance(manifest.created_at, str) or not manifest.created_at:
        raise SelectionManifestError(f"Invalid selection manifest: missing or invalid createdAt in {where}")
