"""Repository context: the one mutable session value every operation runs on.

A ``Repository`` is loaded once per operation, mutated in memory, and saved
once on success. Nothing is persisted when an operation raises, except blobs
and commit records, which are append-only and harmless when orphaned.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.engine import Engine

from twig.config import ConfigManager, Settings, create_config_manager
from twig.config.constants import OBJECTS_DIR_NAME, STATE_DB_NAME, STATE_DIR_NAME
from twig.core.branches import BranchTable
from twig.core.commit import Commit, ancestors, create_commit, find_split_point
from twig.core.errors import (
    AlreadyExists,
    CorruptState,
    InvalidOperands,
    InvalidOperation,
    NoChangesToCommit,
    NotFound,
)
from twig.core.objects import ObjectStore
from twig.core.staging import StagingArea
from twig.core.worktree import WorkingTree
from twig.db import (
    RepositoryState,
    ensure_tables,
    get_engine,
    load_repository_state,
    save_repository_state,
)
from twig.utils.logger import get_logger

logger = get_logger("twig.repository")


@dataclass
class StatusReport:
    branches: list[tuple[str, bool]] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    # (path, "modified" | "deleted")
    unstaged: list[tuple[str, str]] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)


def state_dir_for(root: Path) -> Path:
    return root / STATE_DIR_NAME


class Repository:
    """A twig repository rooted at ``root``.

    Use ``Repository.init`` to create one and ``Repository.open`` to load an
    existing one; both return an object usable as a context manager that
    releases the database engine on exit.
    """

    def __init__(
        self,
        root: Path,
        settings: Settings,
        engine: Engine,
        store: ObjectStore,
        head: Commit,
        branches: BranchTable,
        staging: StagingArea,
    ) -> None:
        self.root = root
        self.settings = settings
        self.engine = engine
        self.store = store
        self.head = head
        self.branches = branches
        self.staging = staging
        self.worktree = WorkingTree(root, store, settings.reserved_spec())

    # ---- lifecycle ----
    @staticmethod
    def _load_settings(state_dir: Path) -> Settings:
        manager: ConfigManager = create_config_manager(state_dir)
        return Settings(manager)

    @classmethod
    def init(cls, root: Path) -> Repository:
        """Create a repository with a root commit on the default branch."""
        root = root.resolve()
        state_dir = state_dir_for(root)
        if state_dir.exists():
            raise AlreadyExists(
                "A twig version-control system already exists in the current directory."
            )
        state_dir.mkdir(parents=True)

        settings = cls._load_settings(state_dir)
        engine = get_engine(state_dir / STATE_DB_NAME)
        ensure_tables(engine)
        store = ObjectStore.init(state_dir / OBJECTS_DIR_NAME, engine)

        branch = settings.default_branch
        root_commit = create_commit({}, None, settings.initial_commit_message, branch)
        store.put_commit(root_commit)

        repo = cls(
            root=root,
            settings=settings,
            engine=engine,
            store=store,
            head=root_commit,
            branches=BranchTable({branch: root_commit.id}, branch),
            staging=StagingArea(store),
        )
        repo.save()
        logger.info(
            "Repository initialized", root=str(root), commit_id=root_commit.id[:8]
        )
        return repo

    @classmethod
    def open(cls, root: Path) -> Repository:
        """Load the repository rooted at ``root``.

        Raises:
            NotFound: If ``root`` holds no repository.
            CorruptState: If the persisted state cannot be read.
        """
        root = root.resolve()
        state_dir = state_dir_for(root)
        db_path = state_dir / STATE_DB_NAME
        if not state_dir.is_dir():
            raise NotFound("Not in an initialized twig directory.")
        if not db_path.is_file():
            raise CorruptState("Repository state is missing.")

        settings = cls._load_settings(state_dir)
        engine = get_engine(db_path)
        try:
            store = ObjectStore(state_dir / OBJECTS_DIR_NAME, engine)
            state = load_repository_state(engine)
            try:
                head = store.get_commit(state.head_id)
            except NotFound as e:
                raise CorruptState("Head commit is missing.") from e
            branches = BranchTable(state.branches, state.active_branch)
        except Exception:
            engine.dispose()
            raise

        return cls(
            root=root,
            settings=settings,
            engine=engine,
            store=store,
            head=head,
            branches=branches,
            staging=StagingArea(store, state.staged, state.removed),
        )

    def save(self) -> None:
        save_repository_state(
            self.engine,
            RepositoryState(
                head_id=self.head.id,
                active_branch=self.branches.active,
                branches=self.branches.as_dict(),
                staged=self.staging.staged(),
                removed=self.staging.removed(),
            ),
        )

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ---- helpers ----
    @property
    def active_branch(self) -> str:
        return self.branches.active

    def load_commit(self, commit_id: str) -> Commit:
        return self.store.get_commit(commit_id)

    def short_id(self, commit: Commit) -> str:
        return commit.short_id(self.settings.commit_id_display_length)

    def split_point(self, a: Commit, b: Commit) -> Commit:
        return find_split_point(a, b, self.load_commit)

    # ---- staging ----
    def add(self, path: str) -> bool:
        """Stage the working copy of ``path``; False when it matches head."""
        rel = self.worktree.normalize(path)
        if not self.worktree.exists(rel):
            raise NotFound("File does not exist.")
        return self.staging.stage(rel, self.worktree.read(rel), self.head.blob_for(rel))

    def remove(self, path: str) -> None:
        """Untrack ``path`` at the next commit."""
        rel = self.worktree.normalize(path)
        if not self.worktree.exists(rel):
            self.staging.mark_removed(rel)
            return

        tracked = rel in self.head.tracked
        if not tracked and not self.staging.is_staged(rel):
            raise InvalidOperation("No reason to remove the file.")
        if not tracked:
            # Staged only: unstage, keep the file on disk
            self.staging.unstage(rel)
            return
        self.staging.mark_removed(rel, self.worktree.read(rel))
        self.worktree.delete(rel)

    # ---- commits ----
    def commit(self, message: str, *, allow_empty: bool = False) -> Commit:
        """Freeze head's snapshot plus staged changes into a new commit."""
        if not message or not message.strip():
            raise InvalidOperation("Please enter a commit message.")
        if self.staging.is_empty and not allow_empty:
            raise NoChangesToCommit()

        tracked = dict(self.head.tracked)
        for path in self.staging.removed():
            tracked.pop(path, None)
        tracked.update(self.staging.staged())

        new_commit = create_commit(tracked, self.head, message, self.active_branch)
        self.store.put_commit(new_commit)
        self.head = new_commit
        self.branches.move(self.active_branch, new_commit.id)
        self.staging.clear()
        logger.info(
            "Commit created",
            commit_id=new_commit.id[:8],
            branch=self.active_branch,
            files=len(tracked),
        )
        return new_commit

    def log(self) -> Iterator[Commit]:
        return ancestors(self.head, self.load_commit)

    def global_log(self) -> Iterator[Commit]:
        return self.store.iter_commits()

    def find(self, message: str) -> list[Commit]:
        found = [c for c in self.store.iter_commits() if c.message == message]
        if not found:
            raise NotFound("Found no commit with that message.")
        return found

    # ---- branches ----
    def create_branch(self, name: str) -> None:
        if not name or any(ch.isspace() for ch in name):
            raise InvalidOperands("Incorrect operands.")
        self.branches.create(name, self.head.id)

    def remove_branch(self, name: str) -> None:
        if name not in self.branches:
            raise NotFound("A branch with that name does not exist.")
        if name == self.active_branch:
            raise InvalidOperation("Cannot remove the current branch.")
        self.branches.delete(name)

    # ---- working tree ----
    def materialize(
        self, target: Commit, branch_label: str, *, move_branch: bool = False
    ) -> list[str]:
        """Check out ``target`` in full and make ``branch_label`` active.

        With ``move_branch`` the branch is (re)pointed at ``target`` first,
        which also recreates a deleted branch.
        """
        written = self.worktree.materialize(
            target, self.head, self.staging.staged().keys()
        )
        self.staging.clear()
        self.head = target
        if move_branch:
            self.branches.move(branch_label, target.id)
        self.branches.switch(branch_label)
        return written

    def checkout_file(self, path: str, commit_id: str | None = None) -> None:
        commit = self.head
        if commit_id is not None:
            commit = self.store.resolve_commit(commit_id)
        self.worktree.checkout_file(commit, self.worktree.normalize(path))

    def checkout_branch(self, name: str) -> list[str]:
        if name not in self.branches:
            raise NotFound("No such branch exists.")
        if name == self.active_branch:
            raise InvalidOperation("No need to checkout the current branch.")
        target = self.load_commit(self.branches.get(name))
        return self.materialize(target, name)

    def reset(self, commit_id: str) -> Commit:
        """Materialize a commit and continue on the branch it was made on."""
        target = self.store.resolve_commit(commit_id)
        self.materialize(target, target.branch_label, move_branch=True)
        return target

    # ---- status ----
    def status(self) -> StatusReport:
        staged = self.staging.staged()
        removed = self.staging.removed()
        working = set(self.worktree.list_files())
        report = StatusReport(
            branches=[(b.name, b.active) for b in self.branches.listing()],
            staged=sorted(staged),
            removed=sorted(removed),
        )

        unstaged: dict[str, str] = {}
        for path, blob_id in self.head.tracked.items():
            if path in staged or path in removed:
                continue
            if path not in working:
                unstaged[path] = "deleted"
            elif self.worktree.hash(path) != blob_id:
                unstaged[path] = "modified"
        for path, blob_id in staged.items():
            if path not in working:
                unstaged[path] = "deleted"
            elif self.worktree.hash(path) != blob_id:
                unstaged[path] = "modified"
        report.unstaged = sorted(unstaged.items())

        report.untracked = sorted(
            p
            for p in working
            if p not in staged and (p not in self.head.tracked or p in removed)
        )
        return report
