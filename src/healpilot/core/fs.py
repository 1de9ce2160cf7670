"""Filesystem access scoped to a repository root.

Everything that touches disk goes through a ``FileSystem`` instance handed in
at construction time. Production code uses ``LocalFileSystem``; tests pass a
subclass that records or rejects writes.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path


class FileSystem(ABC):
    """Minimal set of file primitives the heal core depends on."""

    root: Path

    def resolve(self, path: str | Path) -> Path:
        """Return an absolute path; relative paths are taken from ``root``."""
        p = Path(path)
        if p.is_absolute():
            return p
        return self.root / p

    @abstractmethod
    def exists(self, path: str | Path) -> bool:
        ...

    @abstractmethod
    def is_dir(self, path: str | Path) -> bool:
        ...

    @abstractmethod
    def read_text(self, path: str | Path) -> str:
        ...

    @abstractmethod
    def write_text(self, path: str | Path, content: str) -> None:
        ...

    @abstractmethod
    def rename(self, src: str | Path, dst: str | Path) -> None:
        """Move ``src`` over ``dst``, replacing it."""
        ...

    @abstractmethod
    def unlink(self, path: str | Path) -> None:
        """Remove a file if it exists."""
        ...

    @abstractmethod
    def glob(self, directory: str | Path, pattern: str) -> list[Path]:
        """Recursive glob (``**`` aware), sorted, files only."""
        ...

    @abstractmethod
    def mkdir(self, path: str | Path) -> None:
        ...

    def write_atomic(self, path: str | Path, content: str) -> None:
        """Write through ``<path>.tmp`` and rename it over ``path``.

        The temporary file is removed if either step fails, whatever the error.
        """
        target = self.resolve(path)
        tmp = target.with_name(target.name + ".tmp")
        try:
            self.write_text(tmp, content)
            self.rename(tmp, target)
        except BaseException:
            self.unlink(tmp)
            raise


class LocalFileSystem(FileSystem):
    """Real disk access. Text is read and written as UTF-8 without newline translation."""

    def __init__(self, root: Path | None = None):
        self.root = (root or Path.cwd()).resolve()

    def exists(self, path: str | Path) -> bool:
        return self.resolve(path).exists()

    def is_dir(self, path: str | Path) -> bool:
        return self.resolve(path).is_dir()

    def read_text(self, path: str | Path) -> str:
        with open(self.resolve(path), "r", encoding="utf-8", newline="") as f:
            return f.read()

    def write_text(self, path: str | Path, content: str) -> None:
        with open(self.resolve(path), "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def rename(self, src: str | Path, dst: str | Path) -> None:
        os.replace(self.resolve(src), self.resolve(dst))

    def unlink(self, path: str | Path) -> None:
        self.resolve(path).unlink(missing_ok=True)

    def glob(self, directory: str | Path, pattern: str) -> list[Path]:
        base = self.resolve(directory)
        if not base.is_dir():
            return []
        return sorted(p for p in base.glob(pattern) if p.is_file())

    def mkdir(self, path: str | Path) -> None:
        self.resolve(path).mkdir(parents=True, exist_ok=True)
