"""Command-line entry point for twig.

Parses global flags first and exports the logging ones as environment
variables, so ``twig.utils.logger`` picks them up when it is first imported.
"""

from __future__ import annotations

import os
import sys
from argparse import REMAINDER, ArgumentParser
from pathlib import Path

# verb -> (min operands, max operands, help)
VERBS: dict[str, tuple[int, int, str]] = {
    "init": (0, 0, "Create a repository in the current directory"),
    "add": (1, 1, "Stage a file"),
    "commit": (0, 1, "Commit staged changes with a message"),
    "rm": (1, 1, "Untrack a file and delete it"),
    "log": (0, 0, "Show history from head to the initial commit"),
    "global-log": (0, 0, "Show every commit ever made"),
    "find": (1, 1, "Print ids of commits with the given message"),
    "status": (0, 0, "Show branches, staged, removed and untracked files"),
    "checkout": (1, 3, "-- FILE | COMMIT -- FILE | BRANCH"),
    "branch": (1, 1, "Create a branch at head"),
    "rm-branch": (1, 1, "Delete a branch pointer"),
    "reset": (1, 1, "Check out a commit and move its branch there"),
    "merge": (1, 1, "Merge a branch into the current branch"),
    "config": (1, 2, "Read or set a repository configuration value"),
}


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="twig", description="A small single-user version-control system"
    )
    parser.add_argument(
        "-C",
        dest="root",
        default=".",
        help="Run as if started in this directory (the repository root)",
    )
    parser.add_argument(
        "--log-format",
        choices=["pretty", "json"],
        help="Log format (pretty or json). Overrides config and LOG_FORMAT env var.",
    )
    parser.add_argument(
        "--log-colors",
        type=lambda x: x.lower() in ("true", "1", "yes", "on"),
        help="Enable colored logs (true/false). Overrides config and LOG_COLORS env var.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    for verb, (_min, _max, help_text) in VERBS.items():
        sub = subparsers.add_parser(verb, help=help_text)
        # REMAINDER keeps a literal "--" so checkout can tell files from branches
        sub.add_argument("operands", nargs=REMAINDER)
    return parser


def run_command(root: Path, command: str, operands: list[str]):
    """Validate operand count and call the matching ``CommandService`` verb."""
    from twig.services import CommandResult, CommandService

    low, high, _help = VERBS[command]
    if not low <= len(operands) <= high:
        return CommandResult(ok=False, message="Incorrect operands.")

    service = CommandService(root)
    if command == "checkout":
        return service.checkout(operands)
    if command == "commit":
        # A missing message reaches the core as empty and is rejected there
        return service.commit(operands[0] if operands else "")
    return getattr(service, command.replace("-", "_"))(*operands)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set logging env vars from CLI flags before logger import
    if args.log_format:
        os.environ["LOG_FORMAT"] = args.log_format
    if args.log_colors is not None:
        os.environ["LOG_COLORS"] = "true" if args.log_colors else "false"
    if args.verbose:
        os.environ["TWIG_LOG_LEVEL"] = "DEBUG"

    from twig.config import ConfigValidationError, Settings, create_config_manager
    from twig.config.constants import STATE_DIR_NAME
    from twig.utils.logger import configure_structlog, get_logger, set_log_level

    cli_logger = get_logger("twig.cli")

    if not args.command:
        print("Please enter a command.")
        return 1

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        print(f"{root} is not a directory.")
        return 1

    state_dir = root / STATE_DIR_NAME
    try:
        cli_settings = Settings(
            create_config_manager(state_dir if state_dir.is_dir() else None)
        )
    except ConfigValidationError as e:
        print(f"Invalid configuration: {e}")
        return 1

    # Config file values apply where neither flags nor the environment chose
    os.environ.setdefault("LOG_FORMAT", cli_settings.log_format)
    os.environ.setdefault("LOG_COLORS", str(cli_settings.log_colors).lower())
    configure_structlog()
    set_log_level(os.environ.get("TWIG_LOG_LEVEL", cli_settings.log_level))

    cli_logger.debug("Running command", command=args.command, root=str(root))
    result = run_command(root, args.command, args.operands)
    if result.message:
        print(result.message, end="" if result.message.endswith("\n") else "\n")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
