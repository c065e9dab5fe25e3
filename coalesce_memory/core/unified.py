from __future__ import annotations

from .config import Options
from .logging import get_logger
from .markers import block_markers, find_block, render_block

log = get_logger(__name__)


def ensure_unified(opts: Options) -> bool:
    """Create an empty unified file if none exists. Returns True when created."""
    path = opts.unified_path
    if opts.dry_run:
        log.debug("[dry-run] Would ensure unified file exists: %s", opts.output)
        return False
    if path.exists():
        log.debug("Unified file %s already exists", opts.output)
        return False
    path.write_text("", encoding="utf-8")
    log.debug("Created empty unified file: %s", opts.output)
    return True


def read_unified(opts: Options) -> str:
    path = opts.unified_path
    if opts.dry_run and not path.exists():
        return ""
    return path.read_text(encoding="utf-8", errors="replace")


def merge_content(opts: Options, filename: str, content: str) -> bool:
    """Append a block for *filename* unless one is already present.

    Existing bytes of the unified file are never rewritten. Returns True when a
    block was (or in dry-run would be) appended.
    """

    start, end = block_markers(filename)
    existing = read_unified(opts)
    span = find_block(existing, filename)
    if span is not None:
        log.debug("Block for %s already exists in %s, skipping merge", filename, opts.output)
        log.debug("Found existing block: %s", start)
        if span.end_line is None:
            log.warning("Block for %s in %s has no end marker %s", filename, opts.output, end)
        return False

    if not opts.dry_run:
        with opts.unified_path.open("a", encoding="utf-8") as fh:
            fh.write(render_block(existing, filename, content))
    prefix = "[dry-run] Would merge" if opts.dry_run else "Merged"
    log.info("%s %s into %s", prefix, filename, opts.output)
    log.debug("Block markers: %s ... %s", start, end)
    return True
