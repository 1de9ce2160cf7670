"""Click CLI entry point for healpilot."""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from healpilot._version import __version__
from healpilot.core.output import error_console


@click.group()
@click.version_option(version=__version__, prog_name="healpilot")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """healpilot - diagnose failing UI tests and apply reviewed heals.

    Turn a failure and its evidence into heal proposals, then apply the
    ones you approve with automatic rollback.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=error_console, show_path=False)],
        )


# Import and register subcommands
from healpilot.cli.diagnose_cmd import diagnose  # noqa: E402
from healpilot.cli.apply_cmd import apply, apply_plan  # noqa: E402
from healpilot.cli.undo_cmd import undo  # noqa: E402

cli.add_command(diagnose)
cli.add_command(apply_plan)
cli.add_command(apply)
cli.add_command(undo)


if __name__ == "__main__":
    cli()
