"""Command service: runs one twig verb against a repository and renders text.

Each verb opens the repository, performs a single core operation, saves the
session state only when the operation succeeds, and returns a
``CommandResult`` with the text to show. Domain errors are caught here and
nowhere else.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from twig.config import ConfigValidationError, TwigConfig, create_config_manager
from twig.core.commit import Commit
from twig.core.errors import InvalidOperands, TwigError
from twig.core.merge import MergeEngine, MergeOutcome
from twig.core.repository import Repository, StatusReport, state_dir_for
from twig.utils.logger import command_log, get_logger

logger = get_logger("twig.commands")


@dataclass
class CommandResult:
    ok: bool
    message: str = ""


def format_log_entry(commit: Commit, short_length: int) -> str:
    return "\n".join(
        [
            "===",
            f"commit {commit.short_id(short_length)}",
            f"Date: {commit.timestamp}",
            commit.message,
            "",
        ]
    )


def format_status(report: StatusReport) -> str:
    lines = ["=== Branches ==="]
    lines += [f"*{name}" if active else name for name, active in report.branches]
    lines += ["", "=== Staged Files ==="]
    lines += report.staged
    lines += ["", "=== Removed Files ==="]
    lines += report.removed
    lines += ["", "=== Modifications Not Staged For Commit ==="]
    lines += [f"{path} ({kind})" for path, kind in report.unstaged]
    lines += ["", "=== Untracked Files ==="]
    lines += report.untracked
    return "\n".join(lines) + "\n"


class CommandService:
    """Dispatches twig verbs for the repository rooted at ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    # ---- plumbing ----
    def _run(
        self,
        verb: str,
        operation: Callable[[Repository], str],
        *,
        mutates: bool = True,
    ) -> CommandResult:
        start = time.perf_counter()
        try:
            with Repository.open(self.root) as repo:
                message = operation(repo)
                if mutates:
                    repo.save()
        except TwigError as e:
            return self._failed(verb, e.message, start, error_type=type(e).__name__)
        except ConfigValidationError as e:
            return self._failed(verb, str(e), start, error_type="ConfigValidationError")

        command_log(logger, verb, True, self._elapsed(start))
        return CommandResult(ok=True, message=message)

    def _failed(
        self, verb: str, message: str, start: float, **kwargs
    ) -> CommandResult:
        logger.debug("Command failed", verb=verb, error=message, **kwargs)
        command_log(logger, verb, False, self._elapsed(start), **kwargs)
        return CommandResult(ok=False, message=message)

    @staticmethod
    def _elapsed(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)

    # ---- verbs ----
    def init(self) -> CommandResult:
        start = time.perf_counter()
        try:
            repo = Repository.init(self.root)
        except TwigError as e:
            return self._failed("init", e.message, start, error_type=type(e).__name__)
        except ConfigValidationError as e:
            return self._failed(
                "init", str(e), start, error_type="ConfigValidationError"
            )
        repo.close()
        command_log(logger, "init", True, self._elapsed(start))
        return CommandResult(ok=True)

    def add(self, path: str) -> CommandResult:
        def op(repo: Repository) -> str:
            repo.add(path)
            return ""

        return self._run("add", op)

    def commit(self, message: str) -> CommandResult:
        def op(repo: Repository) -> str:
            repo.commit(message)
            return ""

        return self._run("commit", op)

    def rm(self, path: str) -> CommandResult:
        def op(repo: Repository) -> str:
            repo.remove(path)
            return ""

        return self._run("rm", op)

    def log(self) -> CommandResult:
        def op(repo: Repository) -> str:
            length = repo.settings.commit_id_display_length
            return "\n".join(format_log_entry(c, length) for c in repo.log())

        return self._run("log", op, mutates=False)

    def global_log(self) -> CommandResult:
        def op(repo: Repository) -> str:
            length = repo.settings.commit_id_display_length
            return "\n".join(format_log_entry(c, length) for c in repo.global_log())

        return self._run("global-log", op, mutates=False)

    def find(self, message: str) -> CommandResult:
        def op(repo: Repository) -> str:
            return "\n".join(repo.short_id(c) for c in repo.find(message))

        return self._run("find", op, mutates=False)

    def status(self) -> CommandResult:
        return self._run(
            "status", lambda repo: format_status(repo.status()), mutates=False
        )

    def checkout(self, operands: Sequence[str]) -> CommandResult:
        """``-- <file>``, ``<commit> -- <file>`` or ``<branch>``."""
        args = list(operands)

        def op(repo: Repository) -> str:
            if len(args) == 2 and args[0] == "--":
                repo.checkout_file(args[1])
            elif len(args) == 3 and args[1] == "--":
                repo.checkout_file(args[2], args[0])
            elif len(args) == 1 and args[0] != "--":
                repo.checkout_branch(args[0])
            else:
                raise InvalidOperands("Incorrect operands.")
            return ""

        return self._run("checkout", op)

    def branch(self, name: str) -> CommandResult:
        def op(repo: Repository) -> str:
            repo.create_branch(name)
            return ""

        return self._run("branch", op)

    def rm_branch(self, name: str) -> CommandResult:
        def op(repo: Repository) -> str:
            repo.remove_branch(name)
            return ""

        return self._run("rm-branch", op)

    def reset(self, commit_id: str) -> CommandResult:
        def op(repo: Repository) -> str:
            repo.reset(commit_id)
            return ""

        return self._run("reset", op)

    def merge(self, branch: str) -> CommandResult:
        def op(repo: Repository) -> str:
            result = MergeEngine(repo).merge(branch)
            if result.outcome is MergeOutcome.FAST_FORWARD:
                return "Current branch fast-forwarded."
            if result.outcome is MergeOutcome.CONFLICTED:
                return "Encountered a merge conflict."
            return ""

        return self._run("merge", op)

    def config(self, key: str, value: str | None = None) -> CommandResult:
        """Print one configuration value, or set it in the repository config."""

        def op(repo: Repository) -> str:
            if key not in TwigConfig.model_fields:
                raise InvalidOperands(f"Unknown configuration key: {key}")
            manager = create_config_manager(state_dir_for(repo.root))
            if value is None:
                return json.dumps(manager.get(key))
            manager.set(key, _parse_config_value(value))
            return ""

        return self._run("config", op, mutates=False)


def _parse_config_value(raw: str) -> Any:
    """JSON literal when it parses (numbers, booleans, lists), else the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw
