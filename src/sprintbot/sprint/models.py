"""Data models for the sprint lifecycle.

Persisted documents are pydantic models so they validate on load and dump
to plain JSON; working values that never leave the process are dataclasses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date

from pydantic import BaseModel, ConfigDict

from sprintbot.tickets.models import Ticket, TicketLabel, TicketLink, TicketState

MOON_MARKERS = ("🌕", "🌔", "🌓", "🌒")
NEW_MOON = "🌑"


def _round_half_away_from_zero(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return math.ceil(value - 0.5)


class DailyTicketSnapshot(BaseModel):
    """What was known about a ticket at the end of the previous run."""

    id: str
    name: str
    url: str
    state: TicketState
    labels: list[TicketLabel] = []
    added_on: date
    added_in_sprint: str
    last_moved_on: date
    dependency_link: TicketLink | None = None

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> DailyTicketSnapshot:
        return cls(
            id=ticket.id,
            name=ticket.name,
            url=ticket.url,
            state=ticket.state,
            labels=[label for label in TicketLabel if label in ticket.labels],
            added_on=ticket.added_on,
            added_in_sprint=ticket.added_in_sprint,
            last_moved_on=ticket.last_moved_on,
            dependency_link=ticket.source.dependency_link,
        )


class DailyTicketSnapshots(BaseModel):
    """Ordered snapshot set, one entry per ticket id."""

    tickets: list[DailyTicketSnapshot] = []

    def by_id(self) -> dict[str, DailyTicketSnapshot]:
        return {snapshot.id: snapshot for snapshot in self.tickets}

    @classmethod
    def from_tickets(cls, tickets: list[Ticket]) -> DailyTicketSnapshots:
        """Build a set from tickets, keeping the first entry for a repeated id."""
        seen: set[str] = set()
        snapshots = []
        for ticket in tickets:
            if ticket.id in seen:
                continue
            seen.add(ticket.id)
            snapshots.append(DailyTicketSnapshot.from_ticket(ticket))
        return cls(tickets=snapshots)


class SprintContext(BaseModel):
    """The active sprint. At most one exists at a time."""

    name: str
    start_date: date
    end_date: date
    channel_id: str
    open_ticket_count_at_start: int
    in_scope_count_at_start: int
    board: str

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days

    def days_until_end(self, today: date) -> int:
        return (self.end_date - today).days

    def total_days_elapsed(self, today: date) -> int:
        return (today - self.start_date).days

    def remaining_time_indicator(self, today: date) -> str:
        """Moon-phase marker for how much of the sprint is left.

        Full moon at the start, waning towards a new moon at the end. A sprint
        that starts and ends on the same day always shows a full moon.
        """
        total = self.total_days
        if total == 0:
            return MOON_MARKERS[0]
        ratio = self.days_until_end(today) / total
        index = _round_half_away_from_zero((1 - ratio) * 4)
        if 0 <= index < len(MOON_MARKERS):
            return MOON_MARKERS[index]
        return NEW_MOON


class CumulativeSprintRecord(BaseModel):
    """Rollup of a closed sprint."""

    model_config = ConfigDict(frozen=True)

    name: str
    start_date: date
    end_date: date
    percent_complete: float | None
    completed_count: int
    open_delta: int
    scope_delta: int


class SprintHistory(BaseModel):
    """Append-only sequence of closed sprints, oldest first."""

    history: list[CumulativeSprintRecord] = []

    def count_sprints_since(self, sprint_name: str) -> int:
        """Number of closed sprints from the most recent back to ``sprint_name``.

        Returns:
            1 if the most recent sprint has that name, 2 if the one before,
            and so on. 0 if the name never appears.
        """
        for index, record in enumerate(reversed(self.history)):
            if record.name == sprint_name:
                return index + 1
        return 0

    def was_name_used(self, sprint_name: str) -> bool:
        return self.count_sprints_since(sprint_name) > 0

    def appended(self, record: CumulativeSprintRecord) -> SprintHistory:
        """Return a new history with ``record`` added at the end."""
        return SprintHistory(history=[*self.history, record])


@dataclass
class TicketSummary:
    """Classified tickets plus the counters derived from them."""

    completed: list[Ticket] = field(default_factory=list)
    demo: list[Ticket] = field(default_factory=list)
    blocked_prs: list[Ticket] = field(default_factory=list)
    open_prs: list[Ticket] = field(default_factory=list)
    open_tickets: list[Ticket] = field(default_factory=list)
    deferred: list[Ticket] = field(default_factory=list)
    sprint_ticket_count: int = 0
    project_ticket_count_in_scope: int = 0

    @property
    def open_ticket_count(self) -> int:
        return self.sprint_ticket_count - len(self.completed) - len(self.deferred)

    @property
    def completed_percentage(self) -> float | None:
        """Share of sprint tickets that are done, or None for an empty sprint."""
        if self.sprint_ticket_count == 0:
            return None
        return 100 * len(self.completed) / self.sprint_ticket_count

    def buckets(self) -> list[tuple[str, list[Ticket]]]:
        """All buckets in report order."""
        return [
            ("completed", self.completed),
            ("demo", self.demo),
            ("blocked_prs", self.blocked_prs),
            ("open_prs", self.open_prs),
            ("open_tickets", self.open_tickets),
            ("deferred", self.deferred),
        ]

    def snapshot_tickets(self) -> list[Ticket]:
        return [ticket for _, bucket in self.buckets() for ticket in bucket]

    def without_closed(self) -> TicketSummary:
        """Copy with the completed and deferred buckets emptied."""
        return TicketSummary(
            demo=list(self.demo),
            blocked_prs=list(self.blocked_prs),
            open_prs=list(self.open_prs),
            open_tickets=list(self.open_tickets),
            sprint_ticket_count=self.sprint_ticket_count,
            project_ticket_count_in_scope=self.project_ticket_count_in_scope,
        )
