"""healpilot: failure diagnosis and safe self-healing for browser test suites."""

from healpilot._version import __version__
from healpilot.heal.applier import PatchApplier
from healpilot.heal.engine import RuleEngine
from healpilot.proposals.report import ApplyReportWriter

__all__ = [
    "__version__",
    "PatchApplier",
    "RuleEngine",
    "ApplyReportWriter",
]
