"""Batch data model — inputs, loudness reports and per-file results."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from loudconcat.models.config import BatchConfig

# Lowest measured_thresh value loudnorm accepts.
MIN_MEASURED_THRESHOLD = -99.0


class FileState(str, Enum):
    """Lifecycle of one input file through the batch."""

    PENDING = "pending"
    MEASURING = "measuring"
    MEASURED = "measured"
    MEASUREMENT_DEFAULTED = "measurement_defaulted"
    NORMALIZING = "normalizing"
    NORMALIZED = "normalized"
    NORMALIZATION_FAILED = "normalization_failed"
    SKIPPED = "skipped"  # never started because the batch was aborted

    @property
    def terminal(self) -> bool:
        return self in (FileState.NORMALIZED, FileState.NORMALIZATION_FAILED, FileState.SKIPPED)


class BatchState(str, Enum):
    IDLE = "idle"
    READING_MANIFEST = "reading_manifest"
    PROCESSING_FILES = "processing_files"
    CONCATENATING = "concatenating"
    DONE = "done"
    FAILED = "failed"


class InputDescriptor(BaseModel):
    """One usable line of the list file."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    resolved_path: Path
    exists: bool


class LoudnessReport(BaseModel):
    """Pass 1 loudnorm measurements for one file."""

    model_config = ConfigDict(frozen=True)

    integrated_loudness: float  # LUFS
    true_peak: float  # dBTP
    loudness_range: float  # LU
    threshold: float  # LUFS
    target_offset: float  # LU

    @classmethod
    def assumed(cls, config: BatchConfig) -> LoudnessReport:
        """The report used when measurement fails.

        With no configured source loudness the file is assumed to already sit
        at the target, so pass 2 applies no gain.
        """
        source = config.default_source_lufs
        if source is None:
            source = config.target_lufs
        return cls(
            integrated_loudness=source,
            true_peak=config.target_true_peak,
            loudness_range=config.target_lra,
            # loudnorm's gating threshold sits 10 LU under integrated loudness;
            # measured_thresh is only accepted down to -99
            threshold=max(source - 10.0, MIN_MEASURED_THRESHOLD),
            target_offset=0.0,
        )


class MeasurementOutcome(BaseModel):
    """Result of pass 1 after the degrade policy has been applied."""

    model_config = ConfigDict(frozen=True)

    report: LoudnessReport
    defaulted: bool = False
    reason: str | None = None


class ProcessedFile(BaseModel):
    """A file that made it through both passes."""

    model_config = ConfigDict(frozen=True)

    original_path: Path
    normalized_path: Path
    loudness_report: LoudnessReport | None = None
    measurement_defaulted: bool = False


class FileFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    relative_path: str
    stage: FileState
    error: str


class ListFile(BaseModel):
    """Parsed list file: usable inputs in order, plus entries that were missing."""

    path: Path
    inputs: list[InputDescriptor] = Field(default_factory=list)
    missing: list[InputDescriptor] = Field(default_factory=list)


class BatchResult(BaseModel):
    """Terminal output of a batch run."""

    processed: list[ProcessedFile] = Field(default_factory=list)
    final_path: Path | None = None
    failures: list[FileFailure] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    nothing_to_do: bool = False
