"""Exceptions for the sprint lifecycle."""


class SprintError(Exception):
    """Base exception for sprint lifecycle errors."""


class CommandRejectedError(SprintError):
    """A trigger was refused before any state changed.

    Attributes:
        reason: Short message suitable for showing to the user.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidCommandError(CommandRejectedError):
    """Unknown command string."""


class InvalidSprintInputError(CommandRejectedError):
    """Malformed end date or sprint name."""


class SprintAlreadyActiveError(CommandRejectedError):
    """A sprint is running and a new one was requested."""


class NoActiveSprintError(CommandRejectedError):
    """The command needs a running sprint and there is none."""


class SprintNameUsedError(CommandRejectedError):
    """The sprint name appears in the history already."""


class MissingSprintContextError(SprintError):
    """A command that needs an active sprint reached the orchestrator without one."""
