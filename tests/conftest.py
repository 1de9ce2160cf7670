"""Shared fixtures for healpilot tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from healpilot.core.fs import LocalFileSystem


class RecordingFileSystem(LocalFileSystem):
    """LocalFileSystem that records mutations and can be told to fail them."""

    def __init__(self, root: Path):
        super().__init__(root)
        self.writes: list[Path] = []
        self.renames: list[tuple[Path, Path]] = []
        self.fail_writes_to: set[str] = set()
        self.fail_all_writes = False
        self.write_errors: dict[str, Exception] = {}

    def write_text(self, path, content):
        target = self.resolve(path)
        self.writes.append(target)
        name = target.name.removesuffix(".tmp")
        if self.fail_all_writes or name in self.fail_writes_to:
            raise OSError(f"simulated write failure: {target}")
        if name in self.write_errors:
            super().write_text(path, "")
            raise self.write_errors[name]
        super().write_text(path, content)

    def rename(self, src, dst):
        self.renames.append((self.resolve(src), self.resolve(dst)))
        super().rename(src, dst)

    @property
    def mutated(self) -> bool:
        return bool(self.writes or self.renames)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository root with an empty tests directory."""
    (tmp_path / "tests").mkdir()
    return tmp_path


@pytest.fixture
def fs(repo: Path) -> RecordingFileSystem:
    return RecordingFileSystem(repo)
