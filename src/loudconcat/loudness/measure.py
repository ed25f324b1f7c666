"""Loudness measurement — loudnorm pass 1 and report parsing."""

from __future__ import annotations

import json
import math
import re
from pathlib import Path

from rich.markup import escape

from loudconcat.errors import (
    MeasurementError,
    MeasurementFailure,
    MeasurementFieldMissing,
    MeasurementParseFailure,
    MeasurementTimeout,
)
from loudconcat.models.batch import LoudnessReport, MeasurementOutcome
from loudconcat.models.config import BatchConfig
from loudconcat.utils.ffmpeg import EngineError, EngineTimeout, run_ffmpeg
from loudconcat.utils.progress import log_engine_line, log_step, log_warning
from loudconcat.utils.retry import retrying

# loudnorm prints its JSON as a flat object; nested braces never occur.
_REPORT_BLOCK = re.compile(r"\{[^{}]*\"input_i\"[^{}]*\}", re.DOTALL)

REPORT_FIELDS = {
    "input_i": "integrated_loudness",
    "input_tp": "true_peak",
    "input_lra": "loudness_range",
    "input_thresh": "threshold",
    "target_offset": "target_offset",
}


def parse_loudness_report(text: str, *, path: Path | None = None) -> LoudnessReport:
    """Extract the loudnorm report from captured engine output.

    The JSON block is located by scanning for the object that carries
    ``input_i``; everything around it is ignored. Values may be numbers or
    quoted numeric strings.
    """
    match = _REPORT_BLOCK.search(text)
    if match is None:
        raise MeasurementParseFailure("no loudnorm report found in engine output", path)

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise MeasurementParseFailure(f"malformed loudnorm report: {e}", path) from e

    values = {}
    for key, attr in REPORT_FIELDS.items():
        raw = data.get(key)
        if raw is None:
            raise MeasurementFieldMissing(key, path=path)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise MeasurementFieldMissing(key, raw, path=path) from None
        # silent input yields "-inf", which loudnorm cannot take back as a measurement
        if not math.isfinite(value):
            raise MeasurementFieldMissing(key, raw, path=path)
        values[attr] = value

    return LoudnessReport(**values)


def analysis_filter(config: BatchConfig) -> str:
    return (
        f"loudnorm=I={config.target_lufs}"
        f":TP={config.target_true_peak}"
        f":LRA={config.target_lra}"
        f":print_format=json"
    )


def measure_loudness(input_path: Path, config: BatchConfig) -> LoudnessReport:
    """Run loudnorm in analysis mode on one file and parse its report."""
    try:
        result = run_ffmpeg(
            [
                "-i", str(input_path),
                "-af", analysis_filter(config),
                "-vn", "-sn", "-dn",
                "-f", "null", "-",
            ],
            engine=config.engine_path,
            timeout=config.measure_timeout,
            on_line=log_engine_line if config.echo_engine_output else None,
        )
    except EngineTimeout as e:
        raise MeasurementTimeout(input_path, config.measure_timeout) from e
    except EngineError as e:
        raise MeasurementFailure(input_path, f"engine exited with status {e.returncode}") from e

    return parse_loudness_report(result.output, path=input_path)


def assess_loudness(input_path: Path, config: BatchConfig) -> MeasurementOutcome:
    """Measure one file, falling back to the assumed report on any failure.

    A failed measurement never stops the batch: the file is still normalized,
    using ``LoudnessReport.assumed``.
    """
    log_step("Measure", f"Pass 1: analysing {escape(input_path.name)}...")
    try:
        for attempt in retrying(
            (MeasurementTimeout, MeasurementFailure),
            max_attempts=config.measure_attempts,
            backoff=config.retry_backoff,
        ):
            with attempt:
                n = attempt.retry_state.attempt_number
                if n > 1:
                    log_step("Measure", f"Retrying {escape(input_path.name)} (attempt {n})")
                report = measure_loudness(input_path, config)
    except MeasurementError as e:
        fallback = LoudnessReport.assumed(config)
        log_warning(
            f"Measurement failed ({escape(str(e))}); assuming "
            f"{fallback.integrated_loudness:.1f} LUFS for {escape(input_path.name)}"
        )
        return MeasurementOutcome(report=fallback, defaulted=True, reason=str(e))

    log_step(
        "Measure",
        f"{escape(input_path.name)}: {report.integrated_loudness:.2f} LUFS, "
        f"TP {report.true_peak:.2f} dBTP, LRA {report.loudness_range:.2f} LU",
    )
    return MeasurementOutcome(report=report)
