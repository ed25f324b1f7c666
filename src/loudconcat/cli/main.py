"""Root CLI group for loudconcat."""

from __future__ import annotations

import click

from loudconcat import __version__


@click.group()
@click.version_option(version=__version__, prog_name="loudconcat")
def cli() -> None:
    """loudconcat — normalize the loudness of a batch of videos and join them."""


# Import and register subcommands
from loudconcat.cli.init_cmd import init_cmd  # noqa: E402
from loudconcat.cli.measure_cmd import measure_cmd  # noqa: E402
from loudconcat.cli.run_cmd import run_cmd  # noqa: E402

cli.add_command(init_cmd, "init")
cli.add_command(run_cmd, "run")
cli.add_command(measure_cmd, "measure")
