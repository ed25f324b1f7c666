"""Configuration model for a normalization batch."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from loudconcat.utils.io import read_yaml


class BatchConfig(BaseModel):
    """Tuning knobs for one batch run.

    Loudness targets feed both loudnorm passes. Timeouts are in seconds and
    bound each engine invocation separately.
    """

    engine_path: str = "ffmpeg"
    list_file_name: str = "files.txt"

    # Loudness targets (YouTube-style defaults; -14 LUFS is the other common choice)
    target_lufs: float = Field(default=-16.0, ge=-70.0, le=-5.0)
    target_true_peak: float = Field(default=-1.0, ge=-9.0, le=0.0)
    target_lra: float = Field(default=7.0, ge=1.0, le=50.0)

    # Source loudness assumed when pass 1 fails; None means "already at target"
    default_source_lufs: float | None = Field(default=None, ge=-99.0, le=0.0)

    # Pass 2 output profile
    audio_codec: str = "aac"
    audio_bitrate: str = "320k"
    audio_sample_rate: int = Field(default=48000, ge=8000, le=192000)
    copy_video: bool = True
    normalized_suffix: str = "_normalized"
    final_stem: str = "final_concatenated"

    measure_timeout: float = Field(default=600.0, gt=0)
    normalize_timeout: float = Field(default=300.0, gt=0)
    concat_timeout: float = Field(default=300.0, gt=0)

    measure_attempts: int = Field(default=1, ge=1, le=10)
    retry_backoff: float = Field(default=1.0, ge=0.0)

    on_normalize_failure: Literal["abort", "skip"] = "skip"
    jobs: int = Field(default=1, ge=1, le=32)
    strict_inputs: bool = False

    echo_engine_output: bool = False
    write_report: bool = True


def load_config(path: Path | str | None = None, **overrides) -> BatchConfig:
    """Build a config from an optional YAML file plus explicit overrides.

    Overrides whose value is None are ignored so CLI options left unset fall
    through to the file (or model) defaults.
    """
    data: dict = {}
    if path is not None:
        data.update(read_yaml(path))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return BatchConfig(**data)
