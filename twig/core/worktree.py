"""Working-tree reconciler.

Reads and writes the user's working directory. Paths handed around are always
POSIX-style and relative to the repository root. Reserved infrastructure
paths (gitignore-style patterns, ``.twig/`` at minimum) are invisible here:
never listed, never deleted, never written.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

import pathspec

from twig.core.commit import Commit
from twig.core.errors import FileNotInCommit, InvalidOperands, UntrackedFileConflict
from twig.core.objects import ObjectStore, hash_content
from twig.utils.logger import get_logger

logger = get_logger("twig.worktree")


class WorkingTree:
    def __init__(
        self, root: Path, store: ObjectStore, reserved: pathspec.PathSpec
    ) -> None:
        self.root = root
        self.store = store
        self.reserved = reserved

    # ---- paths ----
    def normalize(self, path: str) -> str:
        """Map a path given relative to the root onto a repository-relative POSIX path.

        Raises:
            InvalidOperands: If the path leaves the repository or is reserved.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            rel = candidate.resolve().relative_to(self.root.resolve())
        except ValueError as e:
            raise InvalidOperands(f"{path} is outside the repository.") from e
        rel_str = PurePosixPath(*rel.parts).as_posix()
        if rel_str in ("", "."):
            raise InvalidOperands("A file path is required.")
        if self.is_reserved(rel_str):
            raise InvalidOperands(f"{rel_str} is reserved and cannot be tracked.")
        return rel_str

    def is_reserved(self, rel_path: str) -> bool:
        return self.reserved.match_file(rel_path)

    def _abs(self, rel_path: str) -> Path:
        return self.root / rel_path

    # ---- file access ----
    def list_files(self) -> list[str]:
        """Every non-reserved regular file under the root, sorted."""
        found: list[str] = []
        for current, dirs, files in os.walk(self.root):
            rel_root = Path(current).relative_to(self.root)

            # Prune reserved directories so we never descend into .twig/
            kept = []
            for d in dirs:
                dir_rel = (rel_root / d).as_posix()
                if not self.reserved.match_file(f"{dir_rel}/"):
                    kept.append(d)
            dirs[:] = kept

            for filename in files:
                rel = (rel_root / filename).as_posix()
                if not self.is_reserved(rel) and (Path(current) / filename).is_file():
                    found.append(rel)
        return sorted(found)

    def exists(self, rel_path: str) -> bool:
        return self._abs(rel_path).is_file()

    def read(self, rel_path: str) -> bytes:
        return self._abs(rel_path).read_bytes()

    def hash(self, rel_path: str) -> str:
        return hash_content(self.read(rel_path))

    def write(self, rel_path: str, content: bytes) -> None:
        target = self._abs(rel_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def delete(self, rel_path: str) -> bool:
        target = self._abs(rel_path)
        if target.is_file():
            target.unlink()
            self._prune_parents(target.parent)
            return True
        return False

    def _prune_parents(self, directory: Path) -> None:
        """Remove now-empty directories between ``directory`` and the root."""
        root = self.root.resolve()
        current = directory.resolve()
        while current != root and root in current.parents:
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent

    # ---- reconciliation ----
    def untracked_in_the_way(
        self,
        target: Commit,
        head: Commit,
        staged_paths: Iterable[str],
        candidates: Iterable[str] | None = None,
    ) -> list[str]:
        """Working files that ``target`` would overwrite but head does not track.

        ``candidates`` narrows the check to specific paths (merge); by default
        every path the target tracks is considered.
        """
        staged = set(staged_paths)
        paths = target.tracked.keys() if candidates is None else candidates
        return sorted(
            p
            for p in paths
            if p in target.tracked
            and p not in head.tracked
            and p not in staged
            and self.exists(p)
        )

    def materialize(
        self, target: Commit, head: Commit, staged_paths: Iterable[str]
    ) -> list[str]:
        """Replace the working tree with ``target``'s snapshot.

        Raises:
            UntrackedFileConflict: Before any mutation, if an untracked file
                would be overwritten.

        Returns:
            Paths written, sorted.
        """
        blocking = self.untracked_in_the_way(target, head, staged_paths)
        if blocking:
            raise UntrackedFileConflict(blocking)

        # Read every blob first so a missing object aborts before deleting
        contents = {
            path: self.store.get_blob(blob_id)
            for path, blob_id in target.tracked.items()
        }

        deleted = 0
        for path in self.list_files():
            self._abs(path).unlink()
            deleted += 1
        self._prune_empty_dirs()

        for path in sorted(contents):
            self.write(path, contents[path])

        logger.info(
            "Working tree materialized",
            commit_id=target.id[:8],
            written=len(contents),
            deleted=deleted,
        )
        return sorted(contents)

    def _prune_empty_dirs(self) -> None:
        # Walk bottom-up so we delete child dirs before parents
        for current, dirs, _files in os.walk(self.root, topdown=False):
            for dir_name in dirs:
                dir_path = Path(current) / dir_name
                rel = dir_path.relative_to(self.root).as_posix()
                if self.reserved.match_file(f"{rel}/"):
                    continue
                try:
                    if not any(dir_path.iterdir()):
                        dir_path.rmdir()
                except OSError:
                    pass

    def checkout_file(self, commit: Commit, rel_path: str) -> None:
        """Overwrite one working file with its version in ``commit``."""
        blob_id = commit.blob_for(rel_path)
        if blob_id is None:
            raise FileNotInCommit(rel_path)
        self.write(rel_path, self.store.get_blob(blob_id))
