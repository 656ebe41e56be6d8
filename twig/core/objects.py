"""Content-addressed object store.

File blobs live in a dulwich ``DiskObjectStore`` (pure Python, git binary not
required) and are addressed by their git blob SHA-1. Commit records live in
the repository's SQLite database. The store is append-only: nothing is ever
updated or deleted.
"""

from __future__ import annotations

import string
from collections.abc import Iterator
from pathlib import Path

from dulwich.object_store import DiskObjectStore
from dulwich.objects import Blob
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from twig.config.constants import MIN_COMMIT_PREFIX_LENGTH
from twig.core.commit import Commit
from twig.core.errors import CorruptState, InvalidOperands, NotFound
from twig.db.state import find_commit_ids, iter_commit_rows, load_commit, save_commit
from twig.utils.logger import store_logger

# Loose objects are written zlib "stored" (level 0): no compression
LOOSE_COMPRESSION_LEVEL = 0


def hash_content(content: bytes) -> str:
    """Blob id for ``content`` without storing it."""
    return Blob.from_string(content).id.decode("ascii")


class ObjectStore:
    """Blob and commit persistence for one repository."""

    def __init__(self, objects_dir: Path, engine: Engine) -> None:
        self.objects_dir = objects_dir
        self.engine = engine
        try:
            self._blobs = DiskObjectStore(
                str(objects_dir), loose_compression_level=LOOSE_COMPRESSION_LEVEL
            )
        except OSError as e:
            raise CorruptState("Object store is unreadable.") from e

    @classmethod
    def init(cls, objects_dir: Path, engine: Engine) -> ObjectStore:
        """Create the on-disk blob store layout and open it."""
        DiskObjectStore.init(str(objects_dir))
        return cls(objects_dir, engine)

    # ---- blobs ----
    def put_blob(self, content: bytes) -> str:
        """Store ``content`` and return its id. Re-storing is a no-op."""
        blob = Blob.from_string(content)
        if blob.id not in self._blobs:
            self._blobs.add_object(blob)
        return blob.id.decode("ascii")

    def has_blob(self, blob_id: str) -> bool:
        return blob_id.encode("ascii") in self._blobs

    def get_blob(self, blob_id: str) -> bytes:
        try:
            obj = self._blobs[blob_id.encode("ascii")]
        except KeyError as e:
            raise NotFound(f"Blob {blob_id} does not exist.") from e
        if not isinstance(obj, Blob):
            raise CorruptState(f"Object {blob_id} is not a blob.")
        return obj.as_raw_string()

    # ---- commits ----
    def put_commit(self, commit: Commit) -> str:
        """Persist ``commit``.

        Write failures are logged and swallowed; the commit stays usable in
        memory for the rest of the operation.
        """
        try:
            save_commit(self.engine, commit)
        except (OSError, SQLAlchemyError) as e:
            store_logger.error(
                "Failed to save commit", commit_id=commit.id, error=str(e)
            )
        return commit.id

    def get_commit(self, commit_id: str) -> Commit:
        return load_commit(self.engine, commit_id)

    def iter_commits(self) -> Iterator[Commit]:
        return iter_commit_rows(self.engine)

    def resolve_commit(self, prefix: str) -> Commit:
        """Find the commit whose id starts with ``prefix``.

        Raises:
            NotFound: If no commit matches, or the prefix is too short or not
                hexadecimal.
            InvalidOperands: If the prefix is ambiguous.
        """
        prefix = prefix.strip().lower()
        if len(prefix) < MIN_COMMIT_PREFIX_LENGTH or any(
            ch not in string.hexdigits for ch in prefix
        ):
            raise NotFound("No commit with that id exists.")
        matches = find_commit_ids(self.engine, prefix)
        if not matches:
            raise NotFound("No commit with that id exists.")
        if len(matches) > 1:
            raise InvalidOperands(f"Commit id {prefix} is ambiguous.")
        return self.get_commit(matches[0])
