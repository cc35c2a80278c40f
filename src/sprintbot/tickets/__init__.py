"""Tickets - Tracker and code-review sources plus the shared ticket vocabulary."""

from sprintbot.tickets.exceptions import (
    BoardNotFoundError,
    InvalidPullRequestUrlError,
    PullRequestError,
    TicketSourceError,
)
from sprintbot.tickets.github import PullRequestClient
from sprintbot.tickets.models import (
    CheckRun,
    PullRequestInfo,
    Ticket,
    TicketLabel,
    TicketLink,
    TicketSourceRecord,
    TicketState,
)
from sprintbot.tickets.trello import TrelloAdapter

__all__ = [
    "BoardNotFoundError",
    "CheckRun",
    "InvalidPullRequestUrlError",
    "PullRequestClient",
    "PullRequestError",
    "PullRequestInfo",
    "Ticket",
    "TicketLabel",
    "TicketLink",
    "TicketSourceError",
    "TicketSourceRecord",
    "TicketState",
    "TrelloAdapter",
]
