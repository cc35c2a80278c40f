"""Sprint - Ticket reconciliation, classification and the sprint lifecycle."""

from sprintbot.sprint.classifier import classify
from sprintbot.sprint.commands import (
    Cancel,
    CheckIn,
    DailySummary,
    End,
    Kickoff,
    ManualTrigger,
    Preview,
    Review,
    ScheduledTrigger,
    SprintCommand,
    Trigger,
    parse_command,
)
from sprintbot.sprint.exceptions import (
    CommandRejectedError,
    InvalidCommandError,
    InvalidSprintInputError,
    MissingSprintContextError,
    NoActiveSprintError,
    SprintAlreadyActiveError,
    SprintError,
    SprintNameUsedError,
)
from sprintbot.sprint.models import (
    CumulativeSprintRecord,
    DailyTicketSnapshot,
    DailyTicketSnapshots,
    SprintContext,
    SprintHistory,
    TicketSummary,
)
from sprintbot.sprint.orchestrator import (
    SprintOrchestrator,
    SprintOutcome,
    SprintTransition,
    plan_transition,
)
from sprintbot.sprint.reconciler import reconcile
from sprintbot.sprint.report import SprintReport, render_report

__all__ = [
    "Cancel",
    "CheckIn",
    "CommandRejectedError",
    "CumulativeSprintRecord",
    "DailySummary",
    "DailyTicketSnapshot",
    "DailyTicketSnapshots",
    "End",
    "InvalidCommandError",
    "InvalidSprintInputError",
    "Kickoff",
    "ManualTrigger",
    "MissingSprintContextError",
    "NoActiveSprintError",
    "Preview",
    "Review",
    "ScheduledTrigger",
    "SprintAlreadyActiveError",
    "SprintCommand",
    "SprintContext",
    "SprintError",
    "SprintHistory",
    "SprintNameUsedError",
    "SprintOrchestrator",
    "SprintOutcome",
    "SprintReport",
    "SprintTransition",
    "TicketSummary",
    "Trigger",
    "classify",
    "parse_command",
    "plan_transition",
    "reconcile",
    "render_report",
]
