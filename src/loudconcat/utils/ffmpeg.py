"""FFmpeg command runner with streamed output capture and a bounded wait."""

from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass, field
from typing import IO, Callable

# Seconds to wait for pipe readers to drain after the process has exited.
_READER_JOIN_TIMEOUT = 5.0


class EngineError(Exception):
    """Raised when an FFmpeg command exits with a non-zero status."""

    def __init__(
        self,
        cmd: list[str],
        returncode: int,
        output: str,
        message: str | None = None,
    ):
        self.cmd = cmd
        self.returncode = returncode
        self.output = output
        super().__init__(message or f"FFmpeg failed (rc={returncode}): {output[-500:]}")


class EngineTimeout(EngineError):
    """Raised when an FFmpeg command exceeds its time bound and was killed."""

    def __init__(self, cmd: list[str], timeout: float, output: str, returncode: int):
        self.timeout = timeout
        super().__init__(
            cmd,
            returncode,
            output,
            message=f"FFmpeg timed out after {timeout:g}s and was terminated",
        )


@dataclass
class EngineRun:
    """Captured result of one engine invocation."""

    cmd: list[str]
    returncode: int
    lines: list[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


def run_ffmpeg(
    args: list[str],
    *,
    engine: str = "ffmpeg",
    timeout: float | None = None,
    check: bool = True,
    on_line: Callable[[str], None] | None = None,
) -> EngineRun:
    """Run an FFmpeg command, capturing stdout and stderr line by line.

    Both streams are drained on reader threads while the caller waits, so the
    output gathered up to a kill is kept and full pipes never stall the
    process. On timeout the process is killed and reaped before
    ``EngineTimeout`` is raised.
    """
    cmd = [engine, "-hide_banner", "-nostdin", *args]
    lines: list[str] = []
    lock = threading.Lock()

    def _pump(stream: IO[str]) -> None:
        with stream:
            for raw in stream:
                line = raw.rstrip("\r\n")
                with lock:
                    lines.append(line)
                if on_line is not None:
                    on_line(line)

    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    readers = [
        threading.Thread(target=_pump, args=(stream,), daemon=True)
        for stream in (proc.stdout, proc.stderr)
    ]
    for reader in readers:
        reader.start()

    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
        _join(readers)
        with lock:
            captured = "\n".join(lines)
        raise EngineTimeout(cmd, timeout or 0.0, captured, proc.returncode)
    except BaseException:
        proc.kill()
        proc.wait()
        raise

    _join(readers)
    with lock:
        result = EngineRun(cmd=cmd, returncode=proc.returncode, lines=list(lines))

    if check and result.returncode != 0:
        raise EngineError(cmd, result.returncode, result.output)
    return result


def _join(readers: list[threading.Thread]) -> None:
    for reader in readers:
        reader.join(timeout=_READER_JOIN_TIMEOUT)
