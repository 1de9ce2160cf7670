"""Apply report: the immutable audit record of one apply run.

Every apply writes exactly one JSON file that ties together the proposal set
that was reviewed, the selection a human approved, the work item context and
what actually happened.

Location: ``.pilot/reports/YYYYMMDD-HHmmss-<proposalId>.json`` (local time).

Payload::

    {
      "proposalId": ...,
      "writtenAt": ...,          # ISO-8601, UTC
      "proposalSet": {...},
      "selectionManifest": {...},
      "adoContext": {...},       # only when supplied
      "applySummary": {...}
    }

The three structures are built independently, so their ids are cross-checked
before anything touches disk. Reports are never overwritten.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from healpilot.core.config import HealPilotConfig, load_config
from healpilot.core.errors import ReportConsistencyError
from healpilot.core.fs import FileSystem, LocalFileSystem
from healpilot.proposals.models import ApplySummary, ProposalSet, SelectionManifest

logger = logging.getLogger(__name__)


class ApplyReportWriter:
    """Writes apply reports under the configured reports directory."""

    def __init__(
        self,
        project_path: Path | None = None,
        config: HealPilotConfig | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        self.fs = fs or LocalFileSystem(project_path)
        self.config = config or load_config(self.fs.root)
        self.reports_dir = self.fs.resolve(self.config.reports.dir)

    def get_report_path(self, proposal_id: str, date: datetime | None = None) -> Path:
        """Report file path for ``proposal_id`` stamped with ``date`` (default: now)."""
        if "/" in proposal_id or "\\" in proposal_id:
            raise ReportConsistencyError(
                f"write_apply_report: proposalSet.id must not contain path separators ({proposal_id!r})"
            )
        d = date or datetime.now()
        if d.tzinfo is not None:
            d = d.astimezone()
        return self.reports_dir / f"{d.strftime('%Y%m%d-%H%M%S')}-{proposal_id}.json"

    def check_report_path(self, proposal_id: str, date: datetime | None = None) -> Path:
        """Return the report path, raising ``FileExistsError`` if it is taken.

        The apply command calls this before touching any source file.
        """
        path = self.get_report_path(proposal_id, date)
        if self.fs.exists(path):
            raise FileExistsError(f"Apply report already exists: {path}")
        return path

    def write_apply_report(
        self,
        proposal_set: ProposalSet,
        selection_manifest: SelectionManifest,
        apply_summary: ApplySummary,
        ado_context: Any = None,
        now: datetime | None = None,
    ) -> Path:
        """Validate the inputs and write the report atomically.

        Raises ``ReportConsistencyError`` before any file I/O when the proposal
        id is missing, contains a path separator, or the manifest/summary belong
        to another proposal set.
        Raises ``FileExistsError`` rather than replacing an existing report.
        """
        proposal_id = proposal_set.id if proposal_set is not None else None
        if not proposal_id:
            raise ReportConsistencyError("write_apply_report: proposalSet.id is required")
        if selection_manifest is None or selection_manifest.proposal_id != proposal_id:
            raise ReportConsistencyError(
                "write_apply_report: selectionManifest.proposalId must match proposalSet.id "
                f"({_id_of(selection_manifest, 'proposal_id')!r} != {proposal_id!r})"
            )
        if apply_summary is None or apply_summary.proposal_set_id != proposal_id:
            raise ReportConsistencyError(
                "write_apply_report: applySummary.proposalSetId must match proposalSet.id "
                f"({_id_of(apply_summary, 'proposal_set_id')!r} != {proposal_id!r})"
            )

        when = now or datetime.now()
        payload: dict[str, Any] = {
            "proposalId": proposal_id,
            "writtenAt": _utc_iso(when),
            "proposalSet": proposal_set.to_dict(),
            "selectionManifest": selection_manifest.to_dict(),
        }
        if ado_context is not None:
            payload["adoContext"] = ado_context.to_dict() if hasattr(ado_context, "to_dict") else ado_context
        payload["applySummary"] = apply_summary.to_dict()

        path = self.check_report_path(proposal_id, when)

        self.fs.mkdir(self.reports_dir)
        self.fs.write_atomic(path, json.dumps(payload, indent=2))
        logger.info("Wrote apply report %s", path)
        return path

    def list_reports(self) -> list[Path]:
        """All reports, oldest first (filenames sort chronologically)."""
        return self.fs.glob(self.reports_dir, "*.json")

    def read_report(self, path: Path) -> dict[str, Any]:
        return json.loads(self.fs.read_text(path))


def _utc_iso(d: datetime) -> str:
    if d.tzinfo is None:
        d = d.astimezone()
    return d.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _id_of(obj: Any, attr: str) -> Any:
    return getattr(obj, attr, None)
