"""Three-way merge of a branch into the active branch.

Every path touched by any of the three snapshots (split point, head, target)
is classified independently by ``classify``; the engine then applies the
resulting actions to the working tree and staging area and either commits
the merge or stops at conflicts for the user to resolve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from twig.config.constants import (
    CONFLICT_END_MARKER,
    CONFLICT_HEAD_MARKER,
    CONFLICT_SEPARATOR,
)
from twig.core.commit import Commit
from twig.core.errors import InvalidOperation, NotFound, UntrackedFileConflict
from twig.utils.logger import merge_logger

if TYPE_CHECKING:
    from twig.core.repository import Repository


class MergeAction(str, Enum):
    KEEP_HEAD = "keep_head"
    TAKE_TARGET = "take_target"
    DELETE = "delete"
    CONFLICT = "conflict"
    KEEP_ABSENT = "keep_absent"


class MergeOutcome(str, Enum):
    MERGED = "merged"
    CONFLICTED = "conflicted"
    FAST_FORWARD = "fast_forward"


def classify(
    split_blob: str | None, head_blob: str | None, target_blob: str | None
) -> MergeAction:
    """Decide what happens to one path given its blob id on each side.

    ``None`` means the snapshot does not track the path.
    """
    if head_blob == target_blob:
        # Same on both sides (including both absent)
        return _keep(head_blob)
    if target_blob == split_blob:
        return _keep(head_blob)
    if head_blob == split_blob:
        if target_blob is None:
            return MergeAction.DELETE
        return MergeAction.TAKE_TARGET
    return MergeAction.CONFLICT


def _keep(head_blob: str | None) -> MergeAction:
    if head_blob is None:
        return MergeAction.KEEP_ABSENT
    return MergeAction.KEEP_HEAD


def _terminated(content: bytes) -> bytes:
    if content and not content.endswith(b"\n"):
        return content + b"\n"
    return content


def conflict_content(head: bytes | None, target: bytes | None) -> bytes:
    """Both sides of a conflicting file between conflict markers.

    A missing side contributes nothing.
    """
    return b"".join(
        [
            f"{CONFLICT_HEAD_MARKER}\n".encode(),
            _terminated(head or b""),
            f"{CONFLICT_SEPARATOR}\n".encode(),
            _terminated(target or b""),
            f"{CONFLICT_END_MARKER}\n".encode(),
        ]
    )


@dataclass
class MergeResult:
    outcome: MergeOutcome
    commit: Commit | None = None
    conflicts: list[str] = field(default_factory=list)
    actions: dict[str, MergeAction] = field(default_factory=dict)

    @property
    def conflicted(self) -> bool:
        return self.outcome is MergeOutcome.CONFLICTED


def plan_merge(
    split: Commit, head: Commit, target: Commit
) -> dict[str, MergeAction]:
    """Classify every path any of the three snapshots tracks."""
    paths = set(split.tracked) | set(head.tracked) | set(target.tracked)
    return {
        path: classify(
            split.blob_for(path), head.blob_for(path), target.blob_for(path)
        )
        for path in sorted(paths)
    }


class MergeEngine:
    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def merge(self, branch: str) -> MergeResult:
        """Merge ``branch`` into the active branch.

        Raises:
            InvalidOperation: Uncommitted changes, self-merge, or the branch
                is already an ancestor of head.
            NotFound: If the branch does not exist.
            UntrackedFileConflict: If the merge would overwrite an untracked
                working file.
        """
        repo = self.repo
        head = repo.head
        current = repo.active_branch

        if not repo.staging.is_empty:
            raise InvalidOperation("You have uncommitted changes.")
        if branch not in repo.branches:
            raise NotFound("A branch with that name does not exist.")
        target_id = repo.branches.get(branch)
        if target_id == head.id:
            raise InvalidOperation("Cannot merge a branch with itself.")

        target = repo.load_commit(target_id)
        split = repo.split_point(head, target)
        merge_logger.debug(
            "Split point found",
            head=head.id[:8],
            target=target.id[:8],
            split=split.id[:8],
        )

        if split.id == target.id:
            raise InvalidOperation("Given branch is an ancestor of the current branch.")

        if split.id == head.id:
            # Materializing raises UntrackedFileConflict before touching anything
            repo.materialize(target, current, move_branch=True)
            merge_logger.info(
                "Fast-forwarded",
                branch=current,
                target=branch,
                commit_id=target.id[:8],
            )
            return MergeResult(outcome=MergeOutcome.FAST_FORWARD, commit=target)

        actions = plan_merge(split, head, target)
        writes = [
            p
            for p, a in actions.items()
            if a in (MergeAction.TAKE_TARGET, MergeAction.CONFLICT)
        ]
        blocking = repo.worktree.untracked_in_the_way(
            target, head, repo.staging.staged().keys(), candidates=writes
        )
        if blocking:
            raise UntrackedFileConflict(blocking)

        conflicts = self._apply(actions, head, target)

        if conflicts:
            merge_logger.warning(
                "Merge stopped on conflicts", target=branch, conflicts=conflicts
            )
            return MergeResult(
                outcome=MergeOutcome.CONFLICTED, conflicts=conflicts, actions=actions
            )

        message = f"Merged {branch} with {current}."
        merge_commit = repo.commit(message, allow_empty=True)
        merge_logger.info(
            "Merged", target=branch, branch=current, commit_id=merge_commit.id[:8]
        )
        return MergeResult(
            outcome=MergeOutcome.MERGED, commit=merge_commit, actions=actions
        )

    def _apply(
        self, actions: dict[str, MergeAction], head: Commit, target: Commit
    ) -> list[str]:
        repo = self.repo
        store = repo.store
        conflicts: list[str] = []

        for path, action in actions.items():
            if action is MergeAction.TAKE_TARGET:
                blob_id = target.tracked[path]
                repo.worktree.write(path, store.get_blob(blob_id))
                repo.staging.stage_blob(path, blob_id)
            elif action is MergeAction.DELETE:
                preserved = None
                if repo.worktree.exists(path):
                    preserved = repo.worktree.read(path)
                repo.staging.mark_removed(path, preserved)
                repo.worktree.delete(path)
            elif action is MergeAction.CONFLICT:
                head_blob = head.blob_for(path)
                target_blob = target.blob_for(path)
                merged = conflict_content(
                    store.get_blob(head_blob) if head_blob else None,
                    store.get_blob(target_blob) if target_blob else None,
                )
                blob_id = store.put_blob(merged)
                repo.worktree.write(path, merged)
                repo.staging.stage_blob(path, blob_id)
                conflicts.append(path)
        return conflicts
