"""Symbolic link helpers.

Covers link-state detection, link creation with a copy fallback for Windows
hosts that refuse symlinks, and the backup-then-link swap that keeps a
regular file recoverable until its link is in place.
"""

from __future__ import annotations

import enum
import os
import shutil
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import RollbackError
from .logging import get_logger

log = get_logger(__name__)

# ERROR_PRIVILEGE_NOT_HELD: unprivileged symlink creation on Windows
_WIN_PRIVILEGE_NOT_HELD = 1314


class LinkState(str, enum.Enum):
    ABSENT = "absent"
    SYMLINK_CORRECT = "symlink-correct"
    SYMLINK_WRONG = "symlink-wrong"
    REGULAR_FILE = "regular-file"


def _is_windows() -> bool:
    return os.name == "nt"


def link_state(path: Path, expected_target: str) -> LinkState:
    """Classify *path* without following links."""
    if not os.path.lexists(path):
        return LinkState.ABSENT
    if path.is_symlink():
        if os.readlink(path) == expected_target:
            return LinkState.SYMLINK_CORRECT
        return LinkState.SYMLINK_WRONG
    return LinkState.REGULAR_FILE


def _windows_fallback_applies(exc: OSError) -> bool:
    if not _is_windows():
        return False
    if isinstance(exc, (PermissionError, FileNotFoundError)):
        return True
    return getattr(exc, "winerror", None) == _WIN_PRIVILEGE_NOT_HELD


def create_link(target: str, link_path: Path, fallback_source: Path) -> bool:
    """Create ``link_path -> target``.

    On Windows a permission or missing-support failure is recovered by copying
    *fallback_source* to *link_path*. Returns True when a real link was made.
    """

    try:
        os.symlink(target, link_path)
    except OSError as exc:
        if not _windows_fallback_applies(exc):
            log.debug("Symlink error: %s", exc)
            raise
        log.info(
            "Symlink failed on Windows, falling back to copy mode for %s", link_path.name
        )
        log.debug("Error: %s", exc)
        shutil.copyfile(fallback_source, link_path)
        log.debug("Copied file: %s -> %s", fallback_source, link_path)
        return False
    log.debug("Created symlink: %s -> %s", link_path, target)
    return True


def relink(target: str, link_path: Path, fallback_source: Path) -> bool:
    """Replace a stale link at *link_path* with one pointing at *target*."""
    link_path.unlink()
    return create_link(target, link_path, fallback_source)


def backup_path_for(path: Path) -> Path:
    return path.with_name(f"{path.name}.backup-{int(time.time() * 1000)}")


@contextmanager
def backup_swap(path: Path) -> Iterator[Path]:
    """Move *path* aside for the duration of the block.

    The backup is deleted when the block succeeds and renamed back over *path*
    when it raises. If that rename fails too, :class:`RollbackError` names the
    backup so the content can be recovered by hand.
    """

    backup = backup_path_for(path)
    os.rename(path, backup)
    log.debug("Moved %s to backup %s", path.name, backup.name)
    try:
        yield backup
    except BaseException as exc:
        try:
            if os.path.lexists(path):
                os.unlink(path)
            os.rename(backup, path)
        except OSError as rollback_exc:
            log.critical("Failed to rollback %s. Backup at %s", path.name, backup)
            raise RollbackError(path, backup, rollback_exc) from exc
        log.debug("Restored %s from backup after failure", path.name)
        raise
    os.unlink(backup)


def replace_with_link(path: Path, target: str, fallback_source: Path) -> bool:
    """Turn regular file *path* into a link to *target*, rolling back on failure."""
    with backup_swap(path):
        return create_link(target, path, fallback_source)
