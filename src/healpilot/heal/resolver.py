"""Target file resolution for patch operations."""

from __future__ import annotations

from pathlib import PurePosixPath

from healpilot.core.fs import FileSystem
from healpilot.heal.models import ResolveResult


class TargetFileResolver:
    """Maps a logical file path to one that exists under the repository root.

    Rules reference test files relative to the tests directory
    (``login-page/login.spec.ts``) while other callers pass repo-relative
    paths (``tests/login-page/login.spec.ts``). Both resolve here:

    1. ``<root>/<path>`` exists -> the path unchanged.
    2. ``<root>/<tests_dir>/<path>`` exists -> the prefixed path.
    3. Otherwise a failed result naming both attempts.
    """

    def __init__(self, fs: FileSystem, tests_dir: str = "tests"):
        self.fs = fs
        self.tests_dir = tests_dir

    def resolve(self, file_path: str) -> ResolveResult:
        if self._is_file(file_path):
            return ResolveResult(success=True, resolved_path=file_path)

        prefixed = PurePosixPath(self.tests_dir, file_path.replace("\\", "/")).as_posix()
        if self._is_file(prefixed):
            return ResolveResult(success=True, resolved_path=prefixed)

        return ResolveResult(
            success=False,
            resolved_path=file_path,
            error=f'File not found: "{file_path}" (attempted: "{prefixed}")',
        )

    def _is_file(self, path: str) -> bool:
        return bool(path) and self.fs.exists(path) and not self.fs.is_dir(path)
