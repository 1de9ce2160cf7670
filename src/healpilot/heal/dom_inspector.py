"""DOM inspection against snapshots from an extracted test trace.

Answers one question for the locator rules: was the element the test waited
for present in the page at all? The answer decides between a selector fix
(element missing) and a timing fix (element present but late).

If the collector says the trace was extracted, inspection is strict: reading
zero snapshots raises ``DOMInspectionError`` instead of reporting the
selector as missing.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePath

from healpilot.core.errors import DOMInspectionError
from healpilot.core.fs import FileSystem
from healpilot.core.models import EvidencePacket
from healpilot.heal.models import DOMCheckResult, DOMStatus

logger = logging.getLogger(__name__)

EXTRACTED_DIR_NAME = "trace-extracted"
DEFAULT_SNAPSHOT_CAP = 50

# Most specific first; the bare data-testid pattern is the last resort.
_SELECTOR_PATTERNS = [
    re.compile(r"locator:\s*(\[[^\]]+\])", re.IGNORECASE),
    re.compile(r"locator\((['\"])(.+?)\1\)", re.IGNORECASE),
    re.compile(r"locator\.waitFor\((['\"])(.+?)\1\)", re.IGNORECASE),
    re.compile(r"waiting for locator\((['\"])(.+?)\1\)", re.IGNORECASE),
    re.compile(r"(\[data-testid=[\"'][^\"']+[\"']\])", re.IGNORECASE),
]

_TESTID_SELECTOR = re.compile(r"^\[data-testid=[\"']([^\"']+)[\"']\]$")
_MARKUP_HINTS = ("<html", "<!DOCTYPE", "<div")


def extract_selector_from_error(error_text: str) -> str | None:
    """Pull the selector a locator error refers to, or None.

    >>> extract_selector_from_error("Timeout waiting for appReadyIndicator locator: [data-testid=\\"app-ready\\"]")
    '[data-testid="app-ready"]'
    """
    if not error_text:
        return None
    for pattern in _SELECTOR_PATTERNS:
        match = pattern.search(error_text)
        if match:
            return match.group(match.lastindex or 1)
    return None


def selector_in_html(html: str, selector: str) -> bool:
    """Check one snapshot for a selector.

    ``[data-testid=...]`` and ``#id`` need an exact attribute value,
    ``.class`` must appear as a whole word in a class attribute, anything
    else falls back to a substring search.
    """
    testid = _TESTID_SELECTOR.match(selector)
    if testid:
        value = testid.group(1)
        return f'data-testid="{value}"' in html or f"data-testid='{value}'" in html

    if selector.startswith("#") and len(selector) > 1:
        ident = selector[1:]
        return f'id="{ident}"' in html or f"id='{ident}'" in html

    if selector.startswith(".") and len(selector) > 1:
        class_name = re.escape(selector[1:])
        pattern = re.compile(
            rf"""class=["'][^"']*(?<![\w-]){class_name}(?![\w-])[^"']*["']""",
            re.IGNORECASE,
        )
        return pattern.search(html) is not None

    return selector in html


class DOMInspector:
    """Checks selectors against DOM snapshots of the failing run."""

    def __init__(self, fs: FileSystem, snapshot_cap: int = DEFAULT_SNAPSHOT_CAP):
        self.fs = fs
        self.snapshot_cap = snapshot_cap

    def check_selector(self, selector: str, evidence: EvidencePacket) -> DOMCheckResult:
        """Report whether ``selector`` appears in any snapshot.

        Returns ``not-exists`` with zero counts when no extracted trace is
        available. Raises ``DOMInspectionError`` when one is available but no
        snapshot in it could be read.
        """
        extracted_dir = self.find_extracted_trace_dir(evidence) if evidence.trace_extracted else None
        if extracted_dir is None:
            logger.debug("No extracted trace for %r; assuming not present", selector)
            return DOMCheckResult(status=DOMStatus.NOT_EXISTS)

        result = self._scan(extracted_dir, selector)
        if result.snapshots_read == 0:
            searched = ", ".join(str(extracted_dir / p) for p in self._searched_patterns())
            raise DOMInspectionError(
                "DOM inspection failed: 0 DOM snapshots read from extracted trace\n"
                f"  Extracted trace directory: {extracted_dir}\n"
                f"  Paths searched: {searched}\n"
                f"  Snapshots scanned: {result.snapshots_scanned}"
            )

        logger.debug(
            "Selector %r %s (%d read / %d scanned)",
            selector,
            result.status.value,
            result.snapshots_read,
            result.snapshots_scanned,
        )
        return result

    def find_extracted_trace_dir(self, evidence: EvidencePacket) -> Path | None:
        """Locate the unpacked trace directory for this evidence, if any."""
        metadata = evidence.collection_metadata
        if metadata is None:
            return None

        if metadata.extracted_trace_dir and self.fs.is_dir(metadata.extracted_trace_dir):
            return self.fs.resolve(metadata.extracted_trace_dir)

        for source_path in metadata.source_paths:
            if "evidence" in source_path:
                candidate = PurePath(source_path, EXTRACTED_DIR_NAME)
                if self.fs.is_dir(candidate):
                    return self.fs.resolve(candidate)

        if evidence.traces and evidence.traces[0].path:
            trace_dir = PurePath(evidence.traces[0].path).parent
            if "evidence" in str(trace_dir):
                candidate = trace_dir / EXTRACTED_DIR_NAME
                if self.fs.is_dir(candidate):
                    return self.fs.resolve(candidate)

        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _searched_patterns(self) -> list[str]:
        return ["resources/**/*.html", "**/page@*.html", "**/src@*.html", "**/*.html"]

    def _scan(self, extracted_dir: Path, selector: str) -> DOMCheckResult:
        seen: set[Path] = set()
        scanned = 0
        read = 0

        def visit(files: list[Path], require_markup: bool = False) -> bool:
            nonlocal scanned, read
            for path in files:
                seen.add(path)
                scanned += 1
                try:
                    content = self.fs.read_text(path)
                except (OSError, UnicodeDecodeError):
                    logger.debug("Skipping unreadable snapshot %s", path, exc_info=True)
                    continue
                if require_markup and not any(hint in content for hint in _MARKUP_HINTS):
                    continue
                read += 1
                if selector_in_html(content, selector):
                    return True
            return False

        def found() -> DOMCheckResult:
            return DOMCheckResult(DOMStatus.EXISTS, snapshots_read=read, snapshots_scanned=scanned)

        resources = extracted_dir / "resources"
        if visit(self.fs.glob(resources, "**/*.html")):
            return found()

        snapshot_files = [
            p
            for p in self.fs.glob(extracted_dir, "**/page@*.html") + self.fs.glob(extracted_dir, "**/src@*.html")
            if p not in seen
        ]
        if visit(list(dict.fromkeys(snapshot_files))):
            return found()

        remaining = [
            p
            for p in self.fs.glob(extracted_dir, "**/*.html")
            if p not in seen and not _is_under(p, resources)
        ]
        if visit(remaining[: self.snapshot_cap], require_markup=True):
            return found()

        return DOMCheckResult(DOMStatus.NOT_EXISTS, snapshots_read=read, snapshots_scanned=scanned)


def _is_under(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True
