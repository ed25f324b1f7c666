"""Retry policies using tenacity."""

from __future__ import annotations

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


def retrying(
    exceptions: tuple[type[BaseException], ...],
    *,
    max_attempts: int = 1,
    backoff: float = 1.0,
) -> Retrying:
    """Build a retry loop for engine invocations with exponential backoff.

    Usage::

        for attempt in retrying((MeasurementTimeout,), max_attempts=3):
            with attempt:
                ...
    """
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff, min=0, max=30),
        retry=retry_if_exception_type(exceptions),
        reraise=True,
    )
