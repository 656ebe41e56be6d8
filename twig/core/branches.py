from __future__ import annotations

from dataclasses import dataclass

from twig.core.errors import AlreadyExists, NotFound


@dataclass
class BranchInfo:
    name: str
    commit_id: str
    active: bool


class BranchTable:
    """Ordered mapping of branch name -> commit id, plus the active branch."""

    def __init__(self, branches: dict[str, str], active: str) -> None:
        if active not in branches:
            raise ValueError(f"Active branch {active!r} is not in the table")
        self._branches = dict(branches)
        self._active = active

    @property
    def active(self) -> str:
        return self._active

    def switch(self, name: str) -> None:
        if name not in self._branches:
            raise NotFound("No such branch exists.")
        self._active = name

    def __contains__(self, name: str) -> bool:
        return name in self._branches

    def get(self, name: str) -> str:
        try:
            return self._branches[name]
        except KeyError as e:
            raise NotFound("A branch with that name does not exist.") from e

    def create(self, name: str, commit_id: str) -> None:
        if name in self._branches:
            raise AlreadyExists("A branch with that name already exists.")
        self._branches[name] = commit_id

    def move(self, name: str, commit_id: str) -> None:
        """Point ``name`` at ``commit_id``, adding it at the end if new."""
        self._branches[name] = commit_id

    def delete(self, name: str) -> None:
        if name not in self._branches:
            raise NotFound("A branch with that name does not exist.")
        del self._branches[name]

    def listing(self) -> list[BranchInfo]:
        return [
            BranchInfo(name=name, commit_id=commit_id, active=name == self._active)
            for name, commit_id in self._branches.items()
        ]

    def as_dict(self) -> dict[str, str]:
        return dict(self._branches)
