"""Batch report — JSON record of a run and the console summary rows."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from loudconcat.utils.io import write_json

if TYPE_CHECKING:
    from loudconcat.pipeline.orchestrator import BatchPipeline


def build_report(pipeline: BatchPipeline) -> dict:
    """Everything needed to audit a run after the fact."""
    result = pipeline.result
    files = []
    for run in pipeline.runs:
        entry = {
            "input": run.descriptor.relative_path,
            "resolved_path": str(run.descriptor.resolved_path),
            "state": run.state.value,
            "normalized_path": None,
            "measurement_defaulted": None,
            "loudness": None,
            "error": run.failure.error if run.failure else None,
        }
        if run.processed is not None:
            entry["normalized_path"] = str(run.processed.normalized_path)
            entry["measurement_defaulted"] = run.processed.measurement_defaulted
            if run.processed.loudness_report is not None:
                entry["loudness"] = run.processed.loudness_report.model_dump()
        files.append(entry)

    return {
        "version": "1.0",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "source_folder": str(pipeline.source_folder),
        "output_folder": str(pipeline.output_folder),
        "state": pipeline.state.value,
        "final_path": str(result.final_path) if result.final_path else None,
        "missing": list(result.missing),
        "files": files,
        "config": pipeline.config.model_dump(mode="json"),
    }


def write_report(path: Path, pipeline: BatchPipeline) -> None:
    write_json(path, build_report(pipeline))


def summary_rows(pipeline: BatchPipeline) -> list[tuple[str, str, str, str]]:
    rows = []
    for run in pipeline.runs:
        loudness = "—"
        output = "—"
        if run.processed is not None:
            output = run.processed.normalized_path.name
            report = run.processed.loudness_report
            if report is not None:
                loudness = f"{report.integrated_loudness:.1f} LUFS"
            elif run.processed.measurement_defaulted:
                loudness = "assumed"
        rows.append((run.descriptor.relative_path, run.state.value, loudness, output))
    return rows
