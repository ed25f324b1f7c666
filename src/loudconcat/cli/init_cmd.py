"""loudconcat init — scaffold a files.txt list for a folder of videos."""

from __future__ import annotations

from pathlib import Path

import click

from loudconcat.utils.progress import log_error, log_success


@click.command()
@click.argument("source", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing files.txt")
def init_cmd(source: str, force: bool) -> None:
    """Write SOURCE/files.txt listing the videos in SOURCE, in name order."""
    from loudconcat.ingestion.listfile import scaffold_list_file

    try:
        list_path, entries = scaffold_list_file(Path(source), overwrite=force)
    except FileExistsError as e:
        log_error(f"{e} (use --force to overwrite)")
        raise SystemExit(1)

    if not entries:
        log_error(f"No video files found in {Path(source).resolve()}")
    else:
        log_success(f"List file: {list_path}")
    click.echo(f"\nEdit {list_path.name} to reorder or comment out files, then: loudconcat run {source}")
