"""Error kinds raised by the twig core.

Every error carries the exact message shown to the user. The command service
catches ``TwigError`` once and turns it into a failed result; nothing below it
prints.
"""

from __future__ import annotations


class TwigError(Exception):
    """Base class for all user-facing twig failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(TwigError):
    """Missing branch, commit, file or stored object."""


class FileNotInCommit(NotFound):
    def __init__(self, path: str):
        self.path = path
        super().__init__("File does not exist in that commit.")


class AlreadyExists(TwigError):
    """Duplicate branch or repository."""


class UntrackedFileConflict(TwigError):
    def __init__(self, paths: list[str] | None = None):
        self.paths = sorted(paths or [])
        super().__init__(
            "There is an untracked file in the way; delete it or add it first."
        )


class NoChangesToCommit(TwigError):
    def __init__(self):
        super().__init__("No changes added to the commit.")


class InvalidOperands(TwigError):
    """Malformed command arguments."""


class InvalidOperation(TwigError):
    """Well-formed request refused in the current repository state."""


class CorruptState(TwigError):
    """Persisted state is missing pieces or cannot be decoded."""
