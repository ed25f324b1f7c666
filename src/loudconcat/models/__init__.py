"""Pydantic data models for loudconcat."""

from loudconcat.models.batch import (
    BatchResult,
    BatchState,
    FileFailure,
    FileState,
    InputDescriptor,
    ListFile,
    LoudnessReport,
    MeasurementOutcome,
    ProcessedFile,
)
from loudconcat.models.config import BatchConfig, load_config

__all__ = [
    "BatchConfig",
    "BatchResult",
    "BatchState",
    "FileFailure",
    "FileState",
    "InputDescriptor",
    "ListFile",
    "LoudnessReport",
    "MeasurementOutcome",
    "ProcessedFile",
    "load_config",
]
