from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import UsageError

USAGE = "Usage: come [options] <file1.md> [file2.md] [...]"

HELP = f"""{USAGE}

Options:
  -h, --help       display help information
      --version    display version
  -o, --output     unified output file (default: AGENTS.md)
      --absolute   use absolute paths for symlink targets
      --dry-run    show actions without making changes
  -v, --verbose    enable verbose logging"""


class Settings(BaseSettings):
    # Defaults only; explicit flags on the command line always win.
    output: str = "AGENTS.md"
    absolute: bool = False
    verbose: bool = False
    ignore_file: str = ".gitignore"
    model_config = SettingsConfigDict(
        env_prefix="COME_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class Options(BaseModel):
    """Resolved options for one run. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)

    output: str = "AGENTS.md"
    absolute: bool = False
    dry_run: bool = False
    verbose: bool = False
    help: bool = False
    version: bool = False
    files: tuple[str, ...] = ()
    cwd: Path = Path(".")
    ignore_file: str = ".gitignore"

    @property
    def unified_path(self) -> Path:
        out = Path(self.output)
        return out if out.is_absolute() else self.cwd / out

    @property
    def ignore_path(self) -> Path:
        return self.cwd / self.ignore_file

    def input_path(self, name: str) -> Path:
        return self.cwd / name

    def link_target(self, link_path: Path) -> str:
        """Target string a link at *link_path* must carry to reach the unified file."""
        if self.absolute:
            return str(self.unified_path)
        return os.path.relpath(self.unified_path, link_path.parent)

    def is_unified(self, name: str) -> bool:
        if name == self.output:
            return True
        return os.path.abspath(self.input_path(name)) == os.path.abspath(self.unified_path)


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


FLAGS = frozenset(
    {"-h", "--help", "--version", "-o", "--output", "--absolute", "--dry-run", "-v", "--verbose"}
)
VALUE_FLAGS = frozenset({"-o", "--output"})


def _check_tokens(argv: Sequence[str]) -> None:
    # Only exact flag spellings; no "--", "--output=X", "-oX" or bundled "-vh".
    it = iter(argv)
    for token in it:
        if token in VALUE_FLAGS:
            next(it, None)
        elif token.startswith("-") and token not in FLAGS:
            raise UsageError(f"Unknown option: {token}")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    ap = _Parser(prog="come", add_help=False, allow_abbrev=False)
    ap.add_argument("-h", "--help", action="store_true", dest="help")
    ap.add_argument("--version", action="store_true")
    ap.add_argument("-o", "--output", default=settings.output)
    ap.add_argument("--absolute", action="store_true", default=settings.absolute)
    ap.add_argument("--dry-run", action="store_true", dest="dry_run")
    ap.add_argument("-v", "--verbose", action="store_true", default=settings.verbose)
    ap.add_argument("files", nargs="*")
    return ap


def parse_options(
    argv: Sequence[str],
    *,
    cwd: str | Path | None = None,
    settings: Settings | None = None,
) -> Options:
    """Turn a flat argument list into :class:`Options`.

    Raises :class:`UsageError` for unknown flags and for value flags given no
    value. Tokens that are not flags are input files, kept in order.
    """

    settings = settings or Settings()
    argv = list(argv)
    _check_tokens(argv)
    args, extra = build_parser(settings).parse_known_intermixed_args(argv)
    for token in [*extra, *args.files]:
        if token.startswith("-"):
            raise UsageError(f"Unknown option: {token}")
    if extra:
        raise UsageError(f"unrecognized arguments: {' '.join(extra)}")
    return Options(
        output=args.output,
        absolute=args.absolute,
        dry_run=args.dry_run,
        verbose=args.verbose,
        help=args.help,
        version=args.version,
        files=tuple(args.files),
        cwd=Path(os.path.abspath(cwd or os.getcwd())),
        ignore_file=settings.ignore_file,
    )
