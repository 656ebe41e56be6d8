"""Database package: engine/session management, ORM models and state I/O."""

from .base import get_engine, get_session
from .models import (
    BaseORM,
    BranchORM,
    CommitORM,
    RemovedEntryORM,
    RepoStateORM,
    StagedEntryORM,
)
from .state import (
    RepositoryState,
    ensure_tables,
    find_commit_ids,
    iter_commit_rows,
    load_commit,
    load_repository_state,
    save_commit,
    save_repository_state,
)

__all__ = [
    "get_engine",
    "get_session",
    "BaseORM",
    "BranchORM",
    "CommitORM",
    "RemovedEntryORM",
    "RepoStateORM",
    "StagedEntryORM",
    "RepositoryState",
    "ensure_tables",
    "find_commit_ids",
    "iter_commit_rows",
    "load_commit",
    "load_repository_state",
    "save_commit",
    "save_repository_state",
]
