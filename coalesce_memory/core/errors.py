from __future__ import annotations

from pathlib import Path


class CoalesceError(Exception):
    """Base class for errors reported by the ``come`` command."""


class UsageError(CoalesceError):
    """Unknown option or an option missing its value."""


class InvalidFilenameError(UsageError):
    """Input filename that cannot be used as a block key."""


class RollbackError(CoalesceError):
    """A failed link could not be undone; the original lives at ``backup_path``."""

    def __init__(self, path: Path, backup_path: Path, cause: BaseException) -> None:
        self.path = Path(path)
        self.backup_path = Path(backup_path)
        self.cause = cause
        super().__init__(
            f"Critical error: Failed to rollback {self.path.name}. "
            f"Backup at {self.backup_path} ({cause})"
        )
