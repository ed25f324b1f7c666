"""List file reading — resolve the ordered batch inputs from files.txt."""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from loudconcat.errors import InputFileMissing, ManifestNotFound
from loudconcat.models.batch import InputDescriptor, ListFile
from loudconcat.utils.io import write_atomic
from loudconcat.utils.progress import log, log_step, log_warning

LIST_FILE_NAME = "files.txt"
VIDEO_EXTENSIONS = (".mp4", ".mov", ".mkv", ".m4v", ".avi", ".webm", ".ts")


def read_list_file(
    source_folder: Path | str,
    *,
    list_name: str = LIST_FILE_NAME,
    strict: bool = False,
) -> ListFile:
    """Read ``<source_folder>/<list_name>`` into an ordered list of inputs.

    Blank lines and lines starting with ``#`` are ignored; every other line is
    a path relative to the source folder. Entries whose file does not exist
    are reported and left out, unless ``strict`` is set, in which case the
    first one raises ``InputFileMissing``. Line order is kept since it is the
    order of the final concatenation. The file is read as UTF-8 (with or
    without a BOM).
    """
    source_folder = Path(source_folder).resolve()
    list_path = source_folder / list_name
    if not list_path.is_file():
        raise ManifestNotFound(list_path)

    result = ListFile(path=list_path)
    # Undecodable bytes become U+FFFD; an entry hit by one resolves to a
    # missing file instead of failing the whole read.
    text = list_path.read_text(encoding="utf-8-sig", errors="replace")
    for raw in text.splitlines():
        entry = raw.strip()
        if not entry or entry.startswith("#"):
            continue

        resolved = (source_folder / entry).resolve()
        exists = resolved.is_file()
        descriptor = InputDescriptor(relative_path=entry, resolved_path=resolved, exists=exists)

        if exists:
            result.inputs.append(descriptor)
            log_step("Queue", escape(entry))
        elif strict:
            raise InputFileMissing(entry, resolved)
        else:
            result.missing.append(descriptor)
            log_warning(f"File not found, skipping: {escape(entry)}")

    return result


def scaffold_list_file(
    source_folder: Path | str,
    *,
    list_name: str = LIST_FILE_NAME,
    extensions: tuple[str, ...] = VIDEO_EXTENSIONS,
    overwrite: bool = False,
) -> tuple[Path, list[str]]:
    """Write a list file naming every video file directly in ``source_folder``.

    Files are listed in name order. Returns the list path and the entries.
    """
    source_folder = Path(source_folder).resolve()
    list_path = source_folder / list_name
    if list_path.exists() and not overwrite:
        raise FileExistsError(f"{list_path} already exists")

    entries = sorted(
        p.name
        for p in source_folder.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    )
    header = [
        "# One video per line, relative to this folder.",
        "# Lines starting with # are ignored. Order is the output order.",
    ]
    write_atomic(list_path, "\n".join(header + entries) + "\n")
    log(f"Wrote {len(entries)} entr{'y' if len(entries) == 1 else 'ies'} to {list_path}")
    return list_path, entries
