"""Options shared by the commands that talk to the engine."""

from __future__ import annotations

import click

config_option = click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with batch settings",
)
target_option = click.option(
    "--target-lufs",
    default=None,
    type=float,
    help="Target integrated loudness (default -16)",
)
verbose_option = click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Echo FFmpeg output",
)
