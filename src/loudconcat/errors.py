"""Exceptions raised by the batch pipeline stages."""

from __future__ import annotations

from pathlib import Path


class BatchError(Exception):
    """Base class for all batch processing errors."""


class ManifestNotFound(BatchError):
    """The list file (or the folder holding it) does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"List file not found: {path}")


class EngineNotFound(BatchError):
    def __init__(self, engine: str):
        self.engine = engine
        super().__init__(f"FFmpeg executable not found: {engine}")


class InputFileMissing(BatchError):
    """A list file entry points at a file that does not exist."""

    def __init__(self, relative_path: str, resolved_path: Path):
        self.relative_path = relative_path
        self.resolved_path = resolved_path
        super().__init__(f"File not found: {relative_path} ({resolved_path})")


class OutputNameCollision(BatchError):
    """Two inputs would be written to the same normalized output file."""

    def __init__(self, output_path: Path, first: str, second: str):
        self.output_path = output_path
        super().__init__(
            f"{first} and {second} both map to {output_path.name}; "
            f"rename one of them"
        )


class MeasurementError(BatchError):
    """Loudness measurement (pass 1) did not yield a usable report."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path.name}: {message}")


class MeasurementTimeout(MeasurementError):
    def __init__(self, path: Path, timeout: float):
        self.timeout = timeout
        super().__init__(path, f"loudness analysis timed out after {timeout:g}s")


class MeasurementFailure(MeasurementError):
    """The engine exited with a non-zero status during analysis."""


class MeasurementParseFailure(MeasurementError):
    """No loudness report block could be found or decoded."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(path or Path("<output>"), message)


class MeasurementFieldMissing(MeasurementParseFailure):
    """The report block lacks a field, or the field is not a finite number."""

    def __init__(self, field: str, value: object = None, path: Path | None = None):
        self.field = field
        self.value = value
        detail = "missing" if value is None else f"not a number: {value!r}"
        super().__init__(f"loudness field '{field}' {detail}", path)


class NormalizationError(BatchError):
    """Loudness normalization (pass 2) failed for one file."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path.name}: {message}")


class NormalizationTimeout(NormalizationError):
    def __init__(self, path: Path, timeout: float):
        self.timeout = timeout
        super().__init__(path, f"normalization timed out after {timeout:g}s")


class NormalizationFailure(NormalizationError):
    pass


class ConcatenationError(BatchError):
    """Joining the normalized files into the final output failed."""


class ConcatenationTimeout(ConcatenationError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"concatenation timed out after {timeout:g}s")


class ConcatenationFailure(ConcatenationError):
    pass


class BatchAborted(BatchError):
    """The batch stopped before producing a final output."""

    def __init__(self, message: str, *, stage: str | None = None, file: str | None = None):
        self.stage = stage
        self.file = file
        parts = [message]
        if file:
            parts.append(f"file: {file}")
        if stage:
            parts.append(f"last completed stage: {stage}")
        super().__init__(" | ".join(parts))
