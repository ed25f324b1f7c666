"""Concatenation of normalized files via the FFmpeg concat demuxer."""

from __future__ import annotations

import tempfile
from pathlib import Path

from rich.markup import escape

from loudconcat.errors import ConcatenationFailure, ConcatenationTimeout
from loudconcat.models.config import BatchConfig
from loudconcat.utils.ffmpeg import EngineError, EngineTimeout, run_ffmpeg
from loudconcat.utils.progress import log_engine_line, log_step


def final_output_path(paths: list[Path], output_folder: Path, config: BatchConfig) -> Path:
    """``<output_folder>/<final_stem><ext>``, taking the extension of the first file."""
    suffix = paths[0].suffix if paths else ".mp4"
    return Path(output_folder) / f"{config.final_stem}{suffix}"


def quote_concat_path(path: Path) -> str:
    # Inside single quotes nothing is special except the quote itself,
    # which has to close the string, be escaped, and reopen it.
    return "'" + str(path).replace("'", "'\\''") + "'"


def format_concat_list(paths: list[Path]) -> str:
    """Render the concat demuxer script, one ``file`` directive per path, in order."""
    return "".join(f"file {quote_concat_path(Path(p).resolve())}\n" for p in paths)


def concatenate(paths: list[Path], output_folder: Path, config: BatchConfig) -> Path:
    """Join ``paths`` in the given order into one file without re-encoding.

    Any existing final output is overwritten. The temporary list file is
    removed whether or not the engine succeeds, and a failed run leaves no
    final output behind.
    """
    if not paths:
        raise ConcatenationFailure("nothing to concatenate")

    output_path = final_output_path(paths, output_folder, config)
    log_step("Concat", f"Joining {len(paths)} file(s) into {escape(output_path.name)}...")

    list_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            prefix="concat-",
            suffix=".txt",
            delete=False,
        ) as tmp:
            list_path = Path(tmp.name)
            tmp.write(format_concat_list(paths))

        run_ffmpeg(
            [
                "-y",
                "-f", "concat",
                "-safe", "0",
                "-fflags", "+genpts",
                "-i", str(list_path),
                "-c", "copy",
                "-avoid_negative_ts", "make_zero",
                str(output_path),
            ],
            engine=config.engine_path,
            timeout=config.concat_timeout,
            on_line=log_engine_line if config.echo_engine_output else None,
        )
    except EngineTimeout as e:
        output_path.unlink(missing_ok=True)
        raise ConcatenationTimeout(config.concat_timeout) from e
    except EngineError as e:
        output_path.unlink(missing_ok=True)
        raise ConcatenationFailure(
            f"engine exited with status {e.returncode}: {e.output[-300:]}"
        ) from e
    finally:
        if list_path is not None:
            list_path.unlink(missing_ok=True)

    if not output_path.is_file():
        raise ConcatenationFailure(f"engine produced no output at {output_path}")

    size_mb = output_path.stat().st_size / 1_000_000
    log_step("Concat", f"{escape(output_path.name)}: {size_mb:.1f} MB")
    return output_path
