"""Commit records and ancestry traversal.

Commits form a tree: every commit has at most one parent, merge commits
included. Ancestry helpers take a ``load`` callable (commit id -> Commit) so
they work against any store and stay lazy.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from twig.config.constants import TIMESTAMP_FORMAT
from twig.core.errors import NotFound

CommitLoader = Callable[[str], "Commit"]


@dataclass(frozen=True)
class Commit:
    id: str
    parent_id: str | None
    message: str
    timestamp: str
    branch_label: str
    tracked: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def short_id(self, length: int) -> str:
        return self.id[:length]

    def blob_for(self, path: str) -> str | None:
        return self.tracked.get(path)


def current_timestamp(now: datetime | None = None) -> str:
    """Local time truncated to whole seconds in the fixed commit format."""
    now = now or datetime.now()
    return now.replace(microsecond=0).strftime(TIMESTAMP_FORMAT)


def compute_commit_id(
    tracked: Mapping[str, str],
    parent_id: str | None,
    message: str,
    timestamp: str,
) -> str:
    """SHA-1 over the sorted blob ids, parent id, message and timestamp.

    The root commit has no parent and no files; it hashes message and
    timestamp only.
    """
    sha = hashlib.sha1()
    if parent_id is None:
        parts = [message, timestamp]
    else:
        parts = [*sorted(tracked.values()), parent_id, message, timestamp]
    for part in parts:
        sha.update(part.encode("utf-8"))
        sha.update(b"\x00")
    return sha.hexdigest()


def create_commit(
    tracked: Mapping[str, str],
    parent: Commit | None,
    message: str,
    branch: str,
    *,
    now: datetime | None = None,
) -> Commit:
    """Build a new commit node; ``parent`` may only be None for the root."""
    timestamp = current_timestamp(now)
    if parent is None:
        if tracked:
            raise ValueError("The root commit cannot track files")
        parent_id = None
    else:
        parent_id = parent.id
    commit_id = compute_commit_id(tracked, parent_id, message, timestamp)
    return Commit(
        id=commit_id,
        parent_id=parent_id,
        message=message,
        timestamp=timestamp,
        branch_label=branch,
        tracked=dict(tracked),
    )


def ancestors(commit: Commit, load: CommitLoader) -> Iterator[Commit]:
    """Yield ``commit`` and then each parent up to the root."""
    current: Commit | None = commit
    while current is not None:
        yield current
        current = load(current.parent_id) if current.parent_id else None


def find_split_point(a: Commit, b: Commit, load: CommitLoader) -> Commit:
    """Nearest common ancestor of ``a`` and ``b``.

    Walks ``a`` toward the root and returns the first commit that also lies on
    ``b``'s ancestor chain. The chain of ``b`` is collected once, so the walk
    is linear in the combined history length.

    Raises:
        NotFound: If the two commits share no ancestor.
    """
    b_chain = {c.id for c in ancestors(b, load)}
    for candidate in ancestors(a, load):
        if candidate.id in b_chain:
            return candidate
    raise NotFound("No common ancestor between the given commits.")
