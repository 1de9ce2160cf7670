"""Backups of patched files and undo support.

Each apply run gets a session directory ``.pilot/backups/<timestamp>/``
holding the pre-apply content of every file a heal item modified, plus a
``manifest.json`` listing ``{itemId, file, backup, timestamp}`` entries.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from healpilot.core.config import get_pilot_dir
from healpilot.core.fs import FileSystem, LocalFileSystem
from healpilot.heal.models import PatchOperationResult

logger = logging.getLogger(__name__)


@dataclass
class BackupEntry:
    """One backed-up file."""

    item_id: str
    file: str
    backup: Path
    timestamp: str


class BackupManager:
    """Writes and restores backups through an injected ``FileSystem``."""

    def __init__(self, project_path: Path | None = None, fs: FileSystem | None = None):
        self.fs = fs or LocalFileSystem(project_path)
        self.backup_dir = get_pilot_dir(self.fs.root) / "backups"
        self.session = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")

    def create_backup(self, item_id: str, original_contents: dict[str, str]) -> list[Path]:
        """Save the pre-apply content of each file modified by ``item_id``."""
        session_dir = self.backup_dir / self.session
        self.fs.mkdir(session_dir)

        manifest_file = session_dir / "manifest.json"
        manifest = []
        if self.fs.exists(manifest_file):
            manifest = json.loads(self.fs.read_text(manifest_file))

        paths = []
        for file_path, content in original_contents.items():
            name = Path(file_path).name
            backup_file = session_dir / f"{name}.bak"
            counter = 1
            while self.fs.exists(backup_file):
                backup_file = session_dir / f"{name}.{counter}.bak"
                counter += 1
            self.fs.write_atomic(backup_file, content)
            paths.append(backup_file)

            manifest.append({
                "itemId": item_id,
                "file": file_path,
                "backup": str(backup_file),
                "timestamp": self.session,
            })

        self.fs.write_atomic(manifest_file, json.dumps(manifest, indent=2))
        logger.debug("Backed up %d file(s) for %s in %s", len(paths), item_id, session_dir)
        return paths

    def list_backups(self) -> list[BackupEntry]:
        """All backup entries, newest session first."""
        entries = []
        for manifest_file in reversed(self.fs.glob(self.backup_dir, "*/manifest.json")):
            for entry in json.loads(self.fs.read_text(manifest_file)):
                entries.append(BackupEntry(
                    item_id=entry["itemId"],
                    file=entry["file"],
                    backup=Path(entry["backup"]),
                    timestamp=entry["timestamp"],
                ))
        return entries

    def restore(self, item_id: str) -> list[PatchOperationResult]:
        """Restore the files of the most recent backup of ``item_id``.

        Returns an empty list when the item has no backup.
        """
        matching = [e for e in self.list_backups() if e.item_id == item_id]
        if not matching:
            return []
        latest = [e for e in matching if e.timestamp == matching[0].timestamp]

        results = []
        for entry in latest:
            if not self.fs.exists(entry.backup):
                results.append(PatchOperationResult(
                    file_path=entry.file,
                    success=False,
                    error=f"Backup file not found: {entry.backup}",
                ))
                continue
            self.fs.write_atomic(entry.file, self.fs.read_text(entry.backup))
            logger.info("Restored %s from %s", entry.file, entry.backup)
            results.append(PatchOperationResult(
                file_path=entry.file,
                success=True,
                message=f"Restored {entry.file} ({item_id})",
            ))
        return results
