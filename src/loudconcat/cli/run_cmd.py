"""loudconcat run — normalize every listed file and concatenate the results."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError

from loudconcat.cli.options import config_option, target_option, verbose_option
from loudconcat.errors import BatchError
from loudconcat.utils.progress import log_error


@click.command()
@click.argument("source", default=".", type=click.Path(file_okay=False))
@click.argument("output", default=None, required=False, type=click.Path(file_okay=False))
@click.argument("engine", default=None, required=False)
@config_option
@target_option
@click.option(
    "--jobs", "-j",
    default=None,
    type=click.IntRange(1, 32),
    help="Files to measure/normalize in parallel",
)
@click.option(
    "--on-failure",
    default=None,
    type=click.Choice(["abort", "skip"]),
    help="What to do when a file cannot be normalized",
)
@click.option(
    "--copy-video/--no-copy-video",
    default=None,
    help="Pass -c:v copy explicitly (default on)",
)
@verbose_option
def run_cmd(
    source: str,
    output: str | None,
    engine: str | None,
    config_path: str | None,
    target_lufs: float | None,
    jobs: int | None,
    on_failure: str | None,
    copy_video: bool | None,
    verbose: bool,
) -> None:
    """Normalize the files listed in SOURCE/files.txt into OUTPUT and join them.

    OUTPUT defaults to SOURCE/normalized, ENGINE to the ffmpeg on PATH.
    """
    from loudconcat.models.config import load_config
    from loudconcat.pipeline.orchestrator import BatchPipeline

    source_path = Path(source).resolve()
    output_path = Path(output).resolve() if output else source_path / "normalized"

    try:
        config = load_config(
            config_path,
            engine_path=engine,
            target_lufs=target_lufs,
            jobs=jobs,
            on_normalize_failure=on_failure,
            copy_video=copy_video,
            echo_engine_output=verbose or None,
        )
    except ValidationError as e:
        log_error(f"Invalid configuration: {e}")
        raise SystemExit(2)

    try:
        result = BatchPipeline(config, source_path, output_path).run()
    except BatchError as e:
        log_error(f"Pipeline failed: {e}")
        raise SystemExit(1)

    if result.nothing_to_do:
        click.echo("Nothing to do.")
    else:
        click.echo(str(result.final_path))
