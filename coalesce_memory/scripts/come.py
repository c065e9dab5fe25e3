#!/usr/bin/env python3
"""Unify agent memory files into AGENTS.md and symlink them."""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError, version
from typing import Sequence

from rich.console import Console

from coalesce_memory.core.config import HELP, USAGE, parse_options
from coalesce_memory.core.errors import CoalesceError
from coalesce_memory.core.logging import set_verbose
from coalesce_memory.core.reconcile import reconcile

DIST_NAME = "coalesce-memory"

err_console = Console(stderr=True)


def package_version() -> str:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return "0.0.0+unknown"


def _error(message: str) -> None:
    err_console.print(
        f"Error: {message}",
        style="red",
        markup=False,
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )


def main(argv: Sequence[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    try:
        opts = parse_options(argv)
    except CoalesceError as exc:
        _error(str(exc))
        return 1

    if opts.help:
        print(HELP)
        return 0
    if opts.version:
        print(package_version())
        return 0
    if not opts.files:
        print("No input files specified.")
        print(USAGE)
        return 0

    set_verbose(opts.verbose)
    try:
        reconcile(opts)
    except (CoalesceError, OSError, UnicodeError) as exc:
        _error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
