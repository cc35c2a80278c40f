"""Command parsing - Turns inbound triggers into sprint commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sprintbot.sprint.exceptions import (
    InvalidCommandError,
    InvalidSprintInputError,
    NoActiveSprintError,
    SprintAlreadyActiveError,
    SprintNameUsedError,
)
from sprintbot.sprint.models import SprintContext, SprintHistory

logger = logging.getLogger("sprintbot.sprint.commands")

END_DATE_FORMAT = "%m/%d/%Y"

PREVIEW_COMMAND = "/sprint-kickoff"
KICKOFF_COMMAND = "/sprint-kickoff-confirm"
CHECK_IN_COMMAND = "/sprint-check-in"
CANCEL_COMMAND = "/sprint-cancel"
END_COMMAND = "/sprint-end"

MANUAL_COMMANDS = (PREVIEW_COMMAND, KICKOFF_COMMAND, CHECK_IN_COMMAND, CANCEL_COMMAND, END_COMMAND)


@dataclass(frozen=True)
class ManualTrigger:
    """A command typed or clicked by a user in chat."""

    command: str
    text: str = ""
    channel_id: str = ""
    response_url: str | None = None


@dataclass(frozen=True)
class ScheduledTrigger:
    """A tick from the cadence rule."""


Trigger = ManualTrigger | ScheduledTrigger


@dataclass(frozen=True)
class Preview:
    name: str
    end_date: date
    channel_id: str


@dataclass(frozen=True)
class Kickoff:
    name: str
    end_date: date
    channel_id: str


@dataclass(frozen=True)
class CheckIn:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class End:
    pass


@dataclass(frozen=True)
class DailySummary:
    pass


@dataclass(frozen=True)
class Review:
    pass


SprintCommand = Preview | Kickoff | CheckIn | Cancel | End | DailySummary | Review


def parse_sprint_input(text: str, today: date) -> tuple[date, str]:
    """Split a ``"MM/DD/YYYY <sprint name>"`` payload.

    Args:
        text: Raw command text.
        today: Current date; the end date may not be earlier.

    Returns:
        Tuple of (end_date, name).

    Raises:
        InvalidSprintInputError: If the payload is malformed.
    """
    parts = text.strip().split(" ", 1)
    if len(parts) < 2 or not parts[1].strip():
        raise InvalidSprintInputError(
            "Expected an end date and a sprint name, e.g. 01/31/2025 Sprint 12"
        )
    raw_date, name = parts[0], parts[1].strip()
    try:
        end_date = datetime.strptime(raw_date, END_DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidSprintInputError(
            f"Could not read end date '{raw_date}', expected MM/DD/YYYY"
        ) from e
    if end_date < today:
        raise InvalidSprintInputError(f"End date {raw_date} is in the past")
    return end_date, name


def parse_command(
    trigger: Trigger,
    active_context: SprintContext | None,
    history: SprintHistory,
    today: date,
) -> SprintCommand:
    """Decide which command a trigger stands for.

    Pure function of its inputs; performs no I/O.

    Raises:
        CommandRejectedError: If the trigger is not valid in the current state.
    """
    if isinstance(trigger, ScheduledTrigger):
        if active_context is None:
            raise NoActiveSprintError("No sprint in progress")
        if active_context.days_until_end(today) <= 0:
            return Review()
        return DailySummary()

    command = trigger.command
    if command not in MANUAL_COMMANDS:
        raise InvalidCommandError(f"Invalid command {command}")

    if active_context is not None:
        match command:
            case "/sprint-kickoff" | "/sprint-kickoff-confirm":
                raise SprintAlreadyActiveError(f"Sprint {active_context.name} already in progress")
            case "/sprint-check-in":
                return CheckIn()
            case "/sprint-cancel":
                return Cancel()
            case _:
                return End()

    if command not in (PREVIEW_COMMAND, KICKOFF_COMMAND):
        raise NoActiveSprintError("No sprint in progress")

    end_date, name = parse_sprint_input(trigger.text, today)
    if history.was_name_used(name):
        raise SprintNameUsedError(f"Sprint name {name} was already used")

    logger.debug("Parsed %s for sprint '%s' ending %s", command, name, end_date)
    if command == KICKOFF_COMMAND:
        return Kickoff(name=name, end_date=end_date, channel_id=trigger.channel_id)
    return Preview(name=name, end_date=end_date, channel_id=trigger.channel_id)
