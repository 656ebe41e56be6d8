"""Staging area: pending additions and removal markers.

Both sets are plain in-memory mappings loaded once per operation. Staged
content is written to the object store at stage time, so an entry only holds
the blob id.
"""

from __future__ import annotations

from twig.core.objects import ObjectStore


class StagingArea:
    def __init__(
        self,
        store: ObjectStore,
        staged: dict[str, str] | None = None,
        removed: dict[str, str | None] | None = None,
    ) -> None:
        self.store = store
        self._staged: dict[str, str] = dict(staged or {})
        self._removed: dict[str, str | None] = dict(removed or {})

    def stage(self, path: str, content: bytes, head_blob: str | None) -> bool:
        """Record ``content`` as the pending version of ``path``.

        When the content matches ``head_blob`` nothing is staged and any
        pending entry for the path is dropped, so a staged path never equals
        head's version.

        Returns:
            True if an entry was staged.
        """
        self._removed.pop(path, None)
        blob_id = self.store.put_blob(content)
        if blob_id == head_blob:
            self._staged.pop(path, None)
            return False
        self._staged[path] = blob_id
        return True

    def stage_blob(self, path: str, blob_id: str) -> None:
        """Stage an already stored blob (merge results)."""
        self._removed.pop(path, None)
        self._staged[path] = blob_id

    def unstage(self, path: str) -> bool:
        return self._staged.pop(path, None) is not None

    def mark_removed(self, path: str, preserved: bytes | None = None) -> None:
        """Mark ``path`` for untracking, keeping ``preserved`` content if given.

        Removal takes priority over a pending add.
        """
        self._staged.pop(path, None)
        blob_id = self.store.put_blob(preserved) if preserved is not None else None
        self._removed[path] = blob_id

    def unmark_removed(self, path: str) -> bool:
        if path in self._removed:
            del self._removed[path]
            return True
        return False

    def is_staged(self, path: str) -> bool:
        return path in self._staged

    def is_removed(self, path: str) -> bool:
        return path in self._removed

    def staged(self) -> dict[str, str]:
        return dict(self._staged)

    def removed(self) -> dict[str, str | None]:
        return dict(self._removed)

    @property
    def is_empty(self) -> bool:
        return not self._staged and not self._removed

    def clear(self) -> None:
        self._staged.clear()
        self._removed.clear()
