from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class BaseORM(DeclarativeBase):
    pass


class CommitORM(BaseORM):
    """One immutable commit record; ``tracked_json`` maps path -> blob id."""

    __tablename__ = "commits"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    parent_id: Mapped[str | None] = mapped_column(String, nullable=True)
    message: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[str] = mapped_column(String)
    branch_label: Mapped[str] = mapped_column(String)
    tracked_json: Mapped[str] = mapped_column(Text)
    # Insertion order for global-log
    seq: Mapped[int] = mapped_column(Integer, index=True)

    __table_args__ = (Index("ix_commits_message", "message"),)


class BranchORM(BaseORM):
    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    commit_id: Mapped[str] = mapped_column(String)
    # Insertion order for listing
    position: Mapped[int] = mapped_column(Integer)


class RepoStateORM(BaseORM):
    """Single-row table holding head and the active branch."""

    __tablename__ = "repo_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    head_id: Mapped[str] = mapped_column(String)
    active_branch: Mapped[str] = mapped_column(String)


class StagedEntryORM(BaseORM):
    __tablename__ = "staged_entries"

    path: Mapped[str] = mapped_column(String, primary_key=True)
    blob_id: Mapped[str] = mapped_column(String)


class RemovedEntryORM(BaseORM):
    __tablename__ = "removed_entries"

    path: Mapped[str] = mapped_column(String, primary_key=True)
    # Preserved working copy, None when the file was already gone
    blob_id: Mapped[str | None] = mapped_column(String, nullable=True)
