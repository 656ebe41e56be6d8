"""Core version-control model: commits, errors and merge classification.

Storage-backed pieces (``ObjectStore``, ``Repository``) are imported from
their modules directly since they depend on ``twig.db``.
"""

from .commit import Commit, ancestors, create_commit, find_split_point
from .errors import (
    AlreadyExists,
    CorruptState,
    FileNotInCommit,
    InvalidOperands,
    InvalidOperation,
    NoChangesToCommit,
    NotFound,
    TwigError,
    UntrackedFileConflict,
)
from .merge import MergeAction, MergeOutcome, classify, conflict_content

__all__ = [
    "Commit",
    "ancestors",
    "create_commit",
    "find_split_point",
    "TwigError",
    "NotFound",
    "FileNotInCommit",
    "AlreadyExists",
    "UntrackedFileConflict",
    "NoChangesToCommit",
    "InvalidOperands",
    "InvalidOperation",
    "CorruptState",
    "MergeAction",
    "MergeOutcome",
    "classify",
    "conflict_content",
]
