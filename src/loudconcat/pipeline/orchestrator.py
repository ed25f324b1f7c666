"""Batch runner: measure → normalize each listed file, then concatenate."""

from __future__ import annotations

import shutil
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from loudconcat.concat.concatenate import concatenate
from loudconcat.errors import (
    BatchAborted,
    BatchError,
    EngineNotFound,
    ManifestNotFound,
    NormalizationError,
    OutputNameCollision,
)
from loudconcat.ingestion.listfile import read_list_file
from loudconcat.loudness.measure import assess_loudness
from loudconcat.loudness.normalize import normalize_file, normalized_output_path
from loudconcat.models.batch import (
    BatchResult,
    BatchState,
    FileFailure,
    FileState,
    InputDescriptor,
    ProcessedFile,
)
from loudconcat.models.config import BatchConfig
from loudconcat.pipeline.report import summary_rows, write_report
from loudconcat.utils.progress import (
    log,
    log_error,
    log_step,
    log_success,
    log_warning,
    show_batch_summary,
)

REPORT_NAME = "batch-report.json"

_COMPLETED_STAGES = (
    FileState.MEASURED,
    FileState.MEASUREMENT_DEFAULTED,
    FileState.NORMALIZED,
)


@dataclass
class _FileRun:
    """Mutable per-file bookkeeping, owned by the pipeline."""

    descriptor: InputDescriptor
    state: FileState = FileState.PENDING
    last_completed: FileState | None = None
    processed: ProcessedFile | None = None
    failure: FileFailure | None = None


class BatchPipeline:
    """Drive one batch from the list file to the final concatenated output.

    Batch states: idle → reading_manifest → processing_files → concatenating
    → done | failed. Each file moves pending → measuring → measured |
    measurement_defaulted → normalizing → normalized | normalization_failed.
    Concatenation only starts once every file is in a terminal state.
    """

    def __init__(self, config: BatchConfig, source_folder: Path | str, output_folder: Path | str):
        self.config = config
        self.source_folder = Path(source_folder).resolve()
        self.output_folder = Path(output_folder).resolve()
        self.state = BatchState.IDLE
        self.runs: list[_FileRun] = []
        self.result = BatchResult()
        self._abort = threading.Event()
        self._lock = threading.Lock()

    # -- public API -------------------------------------------------------

    def run(self) -> BatchResult:
        start = time.time()
        log(f"[bold]loudconcat[/bold] — target {self.config.target_lufs} LUFS")
        log(f"Source folder: {escape(str(self.source_folder))}")
        log(f"Output folder: {escape(str(self.output_folder))}")

        try:
            self._read_manifest()
            if not self.runs:
                self.result.nothing_to_do = True
                self._set_state(BatchState.DONE)
                log_warning("No video files to process (list file has no usable entries).")
                return self.result

            self._process_files()
            self._collect()

            if not self.result.processed:
                raise BatchAborted(
                    "no file was normalized successfully",
                    stage=BatchState.PROCESSING_FILES.value,
                )

            self._set_state(BatchState.CONCATENATING)
            self.result.final_path = concatenate(
                [p.normalized_path for p in self.result.processed],
                self.output_folder,
                self.config,
            )
            self._set_state(BatchState.DONE)
        except BatchError as e:
            stage = self.state.value
            self._set_state(BatchState.FAILED)
            log_error(f"Batch failed during {stage}: {escape(str(e))}")
            raise
        except Exception as e:
            stage = self.state.value
            self._set_state(BatchState.FAILED)
            log_error(f"Batch failed during {stage} ({type(e).__name__}): {escape(str(e))}")
            raise
        finally:
            if self.runs:
                self._finish(time.time() - start)

        log_success(f"Final output: {escape(str(self.result.final_path))}")
        return self.result

    # -- stages -----------------------------------------------------------

    def _read_manifest(self) -> None:
        self._set_state(BatchState.READING_MANIFEST)
        if not self.source_folder.is_dir():
            raise ManifestNotFound(self.source_folder / self.config.list_file_name)

        listing = read_list_file(
            self.source_folder,
            list_name=self.config.list_file_name,
            strict=self.config.strict_inputs,
        )
        self.result.missing = [d.relative_path for d in listing.missing]
        self._check_collisions(listing.inputs)
        self.runs = [_FileRun(descriptor=d) for d in listing.inputs]
        log(f"Found {len(self.runs)} file(s) to process from {listing.path.name}")

    def _check_collisions(self, inputs: list[InputDescriptor]) -> None:
        seen: dict[Path, str] = {}
        for d in inputs:
            out = normalized_output_path(
                d.resolved_path, self.output_folder, self.config.normalized_suffix
            )
            if out in seen:
                raise OutputNameCollision(out, seen[out], d.relative_path)
            seen[out] = d.relative_path

    def _process_files(self) -> None:
        self._set_state(BatchState.PROCESSING_FILES)
        if shutil.which(self.config.engine_path) is None:
            raise EngineNotFound(self.config.engine_path)
        self.output_folder.mkdir(parents=True, exist_ok=True)

        if self.config.jobs == 1 or len(self.runs) == 1:
            for index, run in enumerate(self.runs):
                self._process_one(index, run)
            return

        # Results stay attached to their manifest slot, so completion order
        # never affects the concatenation order.
        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            futures = [
                pool.submit(self._process_one, index, run)
                for index, run in enumerate(self.runs)
            ]
            for future in futures:
                future.result()

    def _process_one(self, index: int, run: _FileRun) -> None:
        name = run.descriptor.relative_path
        if self._abort.is_set():
            self._set_file_state(run, FileState.SKIPPED)
            return

        log_step(f"{index + 1}/{len(self.runs)}", escape(name))
        self._set_file_state(run, FileState.MEASURING)
        outcome = assess_loudness(run.descriptor.resolved_path, self.config)
        self._set_file_state(
            run,
            FileState.MEASUREMENT_DEFAULTED if outcome.defaulted else FileState.MEASURED,
        )

        self._set_file_state(run, FileState.NORMALIZING)
        try:
            normalized = normalize_file(
                run.descriptor.resolved_path,
                outcome.report,
                self.output_folder,
                self.config,
            )
        except NormalizationError as e:
            run.failure = FileFailure(
                relative_path=name,
                stage=FileState.NORMALIZING,
                error=str(e),
            )
            self._set_file_state(run, FileState.NORMALIZATION_FAILED)
            if self.config.on_normalize_failure == "abort":
                self._abort.set()
                log_error(f"Normalization failed for {escape(name)}: {escape(str(e))}")
            else:
                log_warning(
                    f"Normalization failed for {escape(name)}, excluding it: {escape(str(e))}"
                )
            return

        run.processed = ProcessedFile(
            original_path=run.descriptor.resolved_path,
            normalized_path=normalized,
            loudness_report=None if outcome.defaulted else outcome.report,
            measurement_defaulted=outcome.defaulted,
        )
        self._set_file_state(run, FileState.NORMALIZED)
        log_success(f"Normalized: {escape(normalized.name)}")

    def _collect(self) -> None:
        for run in self.runs:
            if not run.state.terminal:
                raise BatchError(f"{run.descriptor.relative_path} left in state {run.state.value}")
        self.result.failures = [r.failure for r in self.runs if r.failure is not None]
        self.result.processed = [r.processed for r in self.runs if r.processed is not None]

        if self._abort.is_set():
            failed = next(r for r in self.runs if r.failure is not None)
            raise BatchAborted(
                f"normalization failed: {failed.failure.error}",
                stage=failed.last_completed.value if failed.last_completed else None,
                file=failed.descriptor.relative_path,
            )

    # -- bookkeeping ------------------------------------------------------

    def _set_state(self, state: BatchState) -> None:
        self.state = state

    def _set_file_state(self, run: _FileRun, state: FileState) -> None:
        with self._lock:
            run.state = state
            if state in _COMPLETED_STAGES:
                run.last_completed = state

    def _finish(self, elapsed: float) -> None:
        if self.config.write_report:
            report_path = self.output_folder / REPORT_NAME
            try:
                write_report(report_path, self)
            except OSError as e:
                log_warning(f"Could not write {report_path.name}: {e}")
        show_batch_summary(summary_rows(self), elapsed)
