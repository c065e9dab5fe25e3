from __future__ import annotations

import os
from pathlib import Path

from .logging import get_logger

log = get_logger(__name__)

BLOCK_START = "# coalesce-memory symlinked files"
BLOCK_END = "# end coalesce-memory"


def listed_names(text: str) -> list[str]:
    """Filenames inside the coalesce-memory block of *text*, in file order."""
    lines = text.split("\n")
    start, end = _block_bounds(lines)
    if start is None or end is None:
        return []
    return [ln.strip() for ln in lines[start + 1 : end] if ln.strip()]


def _block_bounds(lines: list[str]) -> tuple[int | None, int | None]:
    start = next((i for i, ln in enumerate(lines) if ln.strip() == BLOCK_START), None)
    if start is None:
        return None, None
    end = next(
        (i for i in range(start + 1, len(lines)) if lines[i].strip() == BLOCK_END), None
    )
    return start, end


def _write_atomic(path: Path, text: str) -> None:
    tmp = path.with_name(f"{path.name}.tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def add_to_ignore_list(path: Path, filename: str, *, dry_run: bool = False) -> str:
    """Make sure *filename* is listed in the block of the ignore file at *path*.

    Returns what happened: ``"created"`` (new file), ``"appended"`` (new block
    in an existing file), ``"inserted"``, ``"present"`` or ``"dry-run"``.
    """

    if dry_run:
        log.debug("[dry-run] Would add %s to %s", filename, path.name)
        return "dry-run"

    log.debug("Processing %s for %s", path.name, filename)
    if not path.exists():
        path.write_text(f"{BLOCK_START}\n{filename}\n{BLOCK_END}\n", encoding="utf-8")
        log.info("Created %s with coalesce-memory block and added %s", path.name, filename)
        log.debug("Added block: %s ... %s", BLOCK_START, BLOCK_END)
        return "created"

    with path.open(encoding="utf-8", newline="") as fh:
        content = fh.read()
    lines = content.split("\n")
    start, end = _block_bounds(lines)
    if start is not None and end is not None:
        if any(ln.strip() == filename for ln in lines[start + 1 : end]):
            return "present"
        # keep the file's own line endings
        eol = "\r" if lines[end].endswith("\r") else ""
        lines.insert(end, filename + eol)
        _write_atomic(path, "\n".join(lines))
        log.debug("Added %s to %s", filename, path.name)
        log.debug("Updated existing block at lines %d-%d", start + 1, end + 1)
        return "inserted"

    separator = "\n\n" if content else ""
    with path.open("a", encoding="utf-8", newline="") as fh:
        fh.write(f"{separator}{BLOCK_START}\n{filename}\n{BLOCK_END}\n")
    log.info("Added %s to %s in coalesce-memory block", filename, path.name)
    log.debug("Created new block: %s ... %s", BLOCK_START, BLOCK_END)
    return "appended"
