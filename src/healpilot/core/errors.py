"""Exception types raised by healpilot.

Per-operation problems (missing files, unmatched anchors) are reported as
result values, not exceptions. The classes here cover the cases where
continuing would produce a wrong answer or an inconsistent record.
"""

from __future__ import annotations


class HealPilotError(Exception):
    """Base class for all healpilot errors."""


class DOMInspectionError(HealPilotError, RuntimeError):
    """An extracted trace exists but no DOM snapshot could be read from it."""


class ReportConsistencyError(HealPilotError, ValueError):
    """Apply report inputs disagree about which proposal set they belong to."""


class SelectionManifestError(HealPilotError, ValueError):
    """A selection manifest is malformed or belongs to another proposal."""
