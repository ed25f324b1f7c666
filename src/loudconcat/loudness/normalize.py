"""Two-pass linear loudness normalization via FFmpeg loudnorm (pass 2)."""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from loudconcat.errors import NormalizationFailure, NormalizationTimeout
from loudconcat.models.batch import LoudnessReport
from loudconcat.models.config import BatchConfig
from loudconcat.utils.ffmpeg import EngineError, EngineTimeout, run_ffmpeg
from loudconcat.utils.progress import log_engine_line, log_step


def normalized_output_path(
    input_path: Path,
    output_folder: Path,
    suffix: str = "_normalized",
) -> Path:
    """``<output_folder>/<stem><suffix><ext>`` for an input file."""
    return Path(output_folder) / f"{input_path.stem}{suffix}{input_path.suffix}"


def build_loudnorm_filter(report: LoudnessReport, config: BatchConfig) -> str:
    """loudnorm filter for pass 2, fed with the pass 1 measurements."""
    return (
        f"loudnorm=I={config.target_lufs}"
        f":TP={config.target_true_peak}"
        f":LRA={config.target_lra}"
        f":measured_I={report.integrated_loudness}"
        f":measured_TP={report.true_peak}"
        f":measured_LRA={report.loudness_range}"
        f":measured_thresh={report.threshold}"
        f":offset={report.target_offset}"
        f":linear=true"
        f":print_format=summary"
    )


def normalize_file(
    input_path: Path,
    report: LoudnessReport,
    output_folder: Path,
    config: BatchConfig,
) -> Path:
    """Rewrite the audio of one file to the target loudness.

    Video is stream-copied; audio is re-encoded with the configured codec,
    bitrate and sample rate. Returns the output path. On failure no output
    file is left behind.
    """
    output_path = normalized_output_path(input_path, output_folder, config.normalized_suffix)
    log_step(
        "Normalize",
        f"Pass 2: {escape(input_path.name)} → {config.target_lufs} LUFS (linear mode)",
    )

    video_args = ["-c:v", "copy"] if config.copy_video else []
    try:
        run_ffmpeg(
            [
                "-y",
                "-i", str(input_path),
                "-af", build_loudnorm_filter(report, config),
                *video_args,
                "-c:a", config.audio_codec,
                "-b:a", config.audio_bitrate,
                "-ar", str(config.audio_sample_rate),
                str(output_path),
            ],
            engine=config.engine_path,
            timeout=config.normalize_timeout,
            on_line=log_engine_line if config.echo_engine_output else None,
        )
    except EngineTimeout as e:
        output_path.unlink(missing_ok=True)
        raise NormalizationTimeout(input_path, config.normalize_timeout) from e
    except EngineError as e:
        output_path.unlink(missing_ok=True)
        raise NormalizationFailure(
            input_path, f"engine exited with status {e.returncode}"
        ) from e

    if not output_path.is_file() or output_path.stat().st_size == 0:
        output_path.unlink(missing_ok=True)
        raise NormalizationFailure(input_path, f"engine produced no output at {output_path}")

    size_mb = output_path.stat().st_size / 1_000_000
    log_step("Normalize", f"{escape(output_path.name)}: {size_mb:.1f} MB")
    return output_path
