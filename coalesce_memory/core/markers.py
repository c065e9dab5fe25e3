"""Block markers inside the unified file.

A block looks like::

    `>>> CLAUDE.md`
    ...content...
    `<<< CLAUDE.md`

Backticks in the filename are escaped with a backslash so the marker line
stays unambiguous. A block exists when a line equals its start marker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidFilenameError

START_PREFIX = ">>> "
END_PREFIX = "<<< "


def escape_filename(filename: str) -> str:
    return filename.replace("`", "\\`")


def _key(filename: str) -> str:
    if "\n" in filename or "\r" in filename:
        raise InvalidFilenameError(f"Filename contains a line break: {filename!r}")
    return escape_filename(filename)


def block_markers(filename: str) -> tuple[str, str]:
    """Return ``(start, end)`` marker lines for *filename*."""
    safe = _key(filename)
    return f"`{START_PREFIX}{safe}`", f"`{END_PREFIX}{safe}`"


@dataclass(frozen=True)
class BlockSpan:
    """Line span of one block; ``end_line`` is None when the end marker is missing."""

    key: str
    start_line: int
    end_line: Optional[int]


def _lines(text: str) -> list[str]:
    return [line.rstrip("\r") for line in text.split("\n")]


def _marker_key(line: str, prefix: str) -> Optional[str]:
    if len(line) > len(prefix) + 2 and line[0] == "`" and line[-1] == "`":
        inner = line[1:-1]
        if inner.startswith(prefix):
            return inner[len(prefix):]
    return None


def scan_blocks(text: str) -> list[BlockSpan]:
    """Index every block in *text*, in file order.

    Only the first start marker per key counts; later duplicates are ignored.
    """

    lines = _lines(text)
    spans: list[BlockSpan] = []
    seen: set[str] = set()
    for idx, line in enumerate(lines):
        key = _marker_key(line, START_PREFIX)
        if key is None or key in seen:
            continue
        seen.add(key)
        end_marker = f"`{END_PREFIX}{key}`"
        end_line = next(
            (j for j in range(idx + 1, len(lines)) if lines[j] == end_marker), None
        )
        spans.append(BlockSpan(key=key, start_line=idx, end_line=end_line))
    return spans


def find_block(text: str, filename: str) -> Optional[BlockSpan]:
    key = _key(filename)
    for span in scan_blocks(text):
        if span.key == key:
            return span
    return None


def has_block(text: str, filename: str) -> bool:
    return find_block(text, filename) is not None


def read_block(text: str, filename: str) -> Optional[str]:
    """Return the body of *filename*'s block, or None if absent or unterminated."""
    span = find_block(text, filename)
    if span is None or span.end_line is None:
        return None
    lines = _lines(text)
    return "\n".join(lines[span.start_line + 1 : span.end_line])


def render_block(existing: str, filename: str, content: str) -> str:
    """Text to append to *existing* so it gains a block for *filename*."""
    start, end = block_markers(filename)
    separator = "\n\n" if existing and not existing.endswith("\n\n") else ""
    return f"{separator}{start}\n{content.strip()}\n{end}\n"
