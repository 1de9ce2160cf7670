"""Configuration management for healpilot (healpilot.toml parsing + defaults)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]


@dataclass
class HealConfig:
    tests_dir: str = "tests"
    snapshot_cap: int = 50
    disabled_rules: list[str] = field(default_factory=list)


@dataclass
class ApplyConfig:
    preview: bool = False
    confirm: bool = True


@dataclass
class ReportConfig:
    dir: str = ".pilot/reports"


@dataclass
class HealPilotConfig:
    """Complete healpilot configuration."""

    heal: HealConfig = field(default_factory=HealConfig)
    apply: ApplyConfig = field(default_factory=ApplyConfig)
    reports: ReportConfig = field(default_factory=ReportConfig)


def load_config(project_path: Path | None = None) -> HealPilotConfig:
    """Load configuration from healpilot.toml if present, otherwise return defaults."""
    config = HealPilotConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / "healpilot.toml"
    if not config_file.exists():
        return config

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    if "heal" in data:
        h = data["heal"]
        for attr in ("tests_dir", "snapshot_cap", "disabled_rules"):
            if attr in h:
                setattr(config.heal, attr, h[attr])

    if "apply" in data:
        a = data["apply"]
        for attr in ("preview", "confirm"):
            if attr in a:
                setattr(config.apply, attr, a[attr])

    if "reports" in data:
        r = data["reports"]
        if "dir" in r:
            config.reports.dir = r["dir"]

    return config


def get_pilot_dir(project_path: Path | None = None) -> Path:
    """Get or create the .pilot state directory."""
    if project_path is None:
        project_path = Path.cwd()
    pilot_dir = project_path / ".pilot"
    pilot_dir.mkdir(exist_ok=True)
    return pilot_dir
