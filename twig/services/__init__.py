from .commands import CommandResult, CommandService

__all__ = ["CommandResult", "CommandService"]
