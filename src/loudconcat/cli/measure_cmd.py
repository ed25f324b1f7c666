"""loudconcat measure — run loudness analysis only and show a table."""

from __future__ import annotations

import shutil
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from loudconcat.cli.options import config_option, target_option, verbose_option
from loudconcat.errors import BatchError
from loudconcat.utils.progress import log_error

console = Console()


@click.command()
@click.argument("source", default=".", type=click.Path(file_okay=False))
@click.option("--engine", default=None, help="FFmpeg executable (default: ffmpeg on PATH)")
@config_option
@target_option
@verbose_option
def measure_cmd(
    source: str,
    engine: str | None,
    config_path: str | None,
    target_lufs: float | None,
    verbose: bool,
) -> None:
    """Measure the loudness of every file listed in SOURCE/files.txt."""
    from loudconcat.ingestion.listfile import read_list_file
    from loudconcat.loudness.measure import assess_loudness
    from loudconcat.models.config import load_config

    config = load_config(
        config_path,
        engine_path=engine,
        target_lufs=target_lufs,
        echo_engine_output=verbose or None,
    )

    if shutil.which(config.engine_path) is None:
        log_error(f"FFmpeg executable not found: {config.engine_path}")
        raise SystemExit(1)

    try:
        listing = read_list_file(Path(source), list_name=config.list_file_name)
    except BatchError as e:
        log_error(str(e))
        raise SystemExit(1)

    table = Table(title=f"Loudness (target {config.target_lufs} LUFS)", show_lines=True)
    table.add_column("File", style="bold")
    table.add_column("Integrated")
    table.add_column("True peak")
    table.add_column("LRA")
    table.add_column("Offset")
    table.add_column("Notes")

    for descriptor in listing.inputs:
        outcome = assess_loudness(descriptor.resolved_path, config)
        if outcome.defaulted:
            table.add_row(descriptor.relative_path, "—", "—", "—", "—", f"[red]{outcome.reason}[/red]")
            continue
        r = outcome.report
        table.add_row(
            descriptor.relative_path,
            f"{r.integrated_loudness:.2f} LUFS",
            f"{r.true_peak:.2f} dBTP",
            f"{r.loudness_range:.2f} LU",
            f"{r.target_offset:+.2f} LU",
            "",
        )

    for descriptor in listing.missing:
        table.add_row(descriptor.relative_path, "—", "—", "—", "—", "[yellow]missing[/yellow]")

    console.print(table)
