"""Load/save contracts for repository state and commit records.

The engine core never touches SQL directly; it goes through these functions.
Every failure to read is reported as ``CorruptState`` (unreadable) or
``NotFound`` (absent).
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from twig.core.commit import Commit
from twig.core.errors import CorruptState, NotFound
from twig.db.base import get_session
from twig.db.models import (
    BaseORM,
    BranchORM,
    CommitORM,
    RemovedEntryORM,
    RepoStateORM,
    StagedEntryORM,
)
from twig.utils.logger import get_logger

logger = get_logger("twig.db.state")

_STATE_ROW_ID = 1


@dataclass
class RepositoryState:
    """Everything mutable about a repository, as persisted."""

    head_id: str
    active_branch: str
    branches: dict[str, str] = field(default_factory=dict)
    staged: dict[str, str] = field(default_factory=dict)
    removed: dict[str, str | None] = field(default_factory=dict)


def ensure_tables(engine: Engine) -> None:
    """Create all tables if missing."""
    BaseORM.metadata.create_all(engine)


def _to_commit(row: CommitORM) -> Commit:
    try:
        tracked = json.loads(row.tracked_json)
    except json.JSONDecodeError as e:
        raise CorruptState(f"Commit {row.id} has an unreadable file map.") from e
    if not isinstance(tracked, dict):
        raise CorruptState(f"Commit {row.id} has an unreadable file map.")
    return Commit(
        id=row.id,
        parent_id=row.parent_id,
        message=row.message,
        timestamp=row.timestamp,
        branch_label=row.branch_label,
        tracked=tracked,
    )


def load_repository_state(engine: Engine) -> RepositoryState:
    """Read head, active branch, branch table and staging entries."""
    try:
        with get_session(engine) as session:
            row = session.get(RepoStateORM, _STATE_ROW_ID)
            if row is None:
                raise CorruptState("Repository state is missing.")
            branches = {
                b.name: b.commit_id
                for b in session.scalars(
                    select(BranchORM).order_by(BranchORM.position)
                )
            }
            staged = {
                s.path: s.blob_id for s in session.scalars(select(StagedEntryORM))
            }
            removed = {
                r.path: r.blob_id for r in session.scalars(select(RemovedEntryORM))
            }
            state = RepositoryState(
                head_id=row.head_id,
                active_branch=row.active_branch,
                branches=branches,
                staged=staged,
                removed=removed,
            )
    except SQLAlchemyError as e:
        logger.error("Failed to read repository state", error=str(e))
        raise CorruptState("Repository state is unreadable.") from e

    if state.active_branch not in state.branches:
        raise CorruptState(
            f"Active branch '{state.active_branch}' is missing from the branch table."
        )
    return state


def save_repository_state(engine: Engine, state: RepositoryState) -> None:
    """Replace the persisted state with ``state`` in one transaction."""
    with get_session(engine) as session:
        session.merge(
            RepoStateORM(
                id=_STATE_ROW_ID,
                head_id=state.head_id,
                active_branch=state.active_branch,
            )
        )
        session.execute(delete(BranchORM))
        session.execute(delete(StagedEntryORM))
        session.execute(delete(RemovedEntryORM))
        session.add_all(
            BranchORM(name=name, commit_id=commit_id, position=pos)
            for pos, (name, commit_id) in enumerate(state.branches.items())
        )
        session.add_all(
            StagedEntryORM(path=path, blob_id=blob_id)
            for path, blob_id in state.staged.items()
        )
        session.add_all(
            RemovedEntryORM(path=path, blob_id=blob_id)
            for path, blob_id in state.removed.items()
        )
        session.commit()
    logger.debug(
        "Repository state saved",
        head=state.head_id[:8],
        branch=state.active_branch,
        staged=len(state.staged),
        removed=len(state.removed),
    )


def save_commit(engine: Engine, commit: Commit) -> None:
    """Insert a commit record; re-saving an existing id is a no-op."""
    with get_session(engine) as session:
        if session.get(CommitORM, commit.id) is not None:
            return
        last_seq = session.scalar(select(func.max(CommitORM.seq)))
        session.add(
            CommitORM(
                id=commit.id,
                seq=(last_seq or 0) + 1,
                parent_id=commit.parent_id,
                message=commit.message,
                timestamp=commit.timestamp,
                branch_label=commit.branch_label,
                tracked_json=json.dumps(dict(commit.tracked), sort_keys=True),
            )
        )
        session.commit()


def load_commit(engine: Engine, commit_id: str) -> Commit:
    try:
        with get_session(engine) as session:
            row = session.get(CommitORM, commit_id)
            if row is None:
                raise NotFound("No commit with that id exists.")
            return _to_commit(row)
    except SQLAlchemyError as e:
        raise CorruptState("Commit records are unreadable.") from e


def find_commit_ids(engine: Engine, prefix: str) -> list[str]:
    """Ids of all commits starting with ``prefix``."""
    try:
        with get_session(engine) as session:
            query = select(CommitORM.id).where(
                CommitORM.id.startswith(prefix, autoescape=True)
            )
            return list(session.scalars(query))
    except SQLAlchemyError as e:
        raise CorruptState("Commit records are unreadable.") from e


def iter_commit_rows(engine: Engine) -> Iterator[Commit]:
    """Every stored commit in the order it was saved."""
    try:
        with get_session(engine) as session:
            rows = list(session.scalars(select(CommitORM).order_by(CommitORM.seq)))
    except SQLAlchemyError as e:
        raise CorruptState("Commit records are unreadable.") from e
    for row in rows:
        yield _to_commit(row)
