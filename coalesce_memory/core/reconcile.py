"""Drive every input file to a link pointing at the unified file.

Files are handled one at a time in argument order. An error aborts the run;
files converted before it stay converted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from . import links
from .config import Options
from .ignore_list import add_to_ignore_list
from .links import LinkState
from .logging import get_logger
from .markers import block_markers
from .unified import ensure_unified, merge_content

log = get_logger(__name__)


@dataclass(frozen=True)
class FileResult:
    name: str
    state: Optional[LinkState]
    action: str
    target: Optional[str] = None
    merged: bool = False


def _done(opts: Options, verb: str) -> str:
    return f"[dry-run] Would {verb.lower()}" if opts.dry_run else f"{verb}d"


def reconcile_file(opts: Options, name: str) -> FileResult:
    if opts.is_unified(name):
        log.debug("Skipping %s (the unified file itself)", name)
        return FileResult(name, None, "skipped")

    log.debug("Processing file: %s", name)
    path = opts.input_path(name)
    target = opts.link_target(path)
    state = links.link_state(path, target)

    if state is LinkState.ABSENT:
        if not opts.dry_run:
            links.create_link(target, path, opts.unified_path)
        log.info("%s symlink for non-existent file: %s", _done(opts, "Create"), name)
        log.debug("Symlink target: %s", target)
        action = "created"
        merged = False
    elif state is LinkState.SYMLINK_WRONG:
        log.info(
            "Symlink %s points to wrong target (%s), updating to %s",
            name,
            os.readlink(path),
            target,
        )
        if not opts.dry_run:
            links.relink(target, path, opts.unified_path)
        log.info("%s symlink target for %s", _done(opts, "Update"), name)
        action = "relinked"
        merged = False
    elif state is LinkState.SYMLINK_CORRECT:
        log.debug("Skipping %s (already a symlink with correct target)", name)
        log.debug("Current target: %s", target)
        action = "unchanged"
        merged = False
    else:
        content = path.read_text(encoding="utf-8", errors="replace")
        merged = merge_content(opts, name, content)
        if not opts.dry_run:
            links.replace_with_link(path, target, opts.unified_path)
        log.info("%s %s with a symlink to %s", _done(opts, "Replace"), name, opts.output)
        log.debug("Symlink target: %s", target)
        action = "replaced"

    add_to_ignore_list(opts.ignore_path, name, dry_run=opts.dry_run)
    return FileResult(name, state, action, target, merged)


def reconcile(opts: Options) -> list[FileResult]:
    """Run the whole reconciliation described by *opts*."""
    for name in opts.files:
        if not opts.is_unified(name):
            block_markers(name)

    if opts.dry_run:
        log.info("[dry-run] Dry run mode: no changes will be made.")
    log.debug(
        "Processing %d files with unified output: %s", len(opts.files), opts.output
    )
    log.debug(
        "Options: absolute=%s, dry_run=%s, verbose=%s",
        opts.absolute,
        opts.dry_run,
        opts.verbose,
    )

    ensure_unified(opts)
    results = [reconcile_file(opts, name) for name in opts.files]
    log.info(
        "Reconciled %d file(s) into %s",
        sum(1 for r in results if r.action != "skipped"),
        opts.output,
    )
    return results
