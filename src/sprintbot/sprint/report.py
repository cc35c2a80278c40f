"""Report composition - Structured report content for each sprint command.

Sections carry text and tickets only; turning them into chat blocks is the
notifier's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sprintbot.sprint.commands import (
    KICKOFF_COMMAND,
    Cancel,
    CheckIn,
    DailySummary,
    End,
    Kickoff,
    Preview,
    Review,
    SprintCommand,
)
from sprintbot.sprint.models import (
    CumulativeSprintRecord,
    SprintContext,
    SprintHistory,
    TicketSummary,
)
from sprintbot.tickets.models import Ticket

DISPLAY_DATE_FORMAT = "%m/%d/%Y"

GROUP_TITLES = {
    "demo": "🎬 Demo / Final Approval",
    "blocked_prs": "🚨 Blocked PRs",
    "open_prs": "📢 Open PRs",
    "open_tickets": "Open Tickets",
    "completed": "✅ Completed Tickets",
    "deferred": "Deferred Tickets",
}


@dataclass(frozen=True)
class HeaderSection:
    text: str


@dataclass(frozen=True)
class TextSection:
    text: str


@dataclass(frozen=True)
class TicketGroupSection:
    key: str
    title: str
    tickets: list[Ticket] = field(default_factory=list)


@dataclass(frozen=True)
class HistorySection:
    records: list[CumulativeSprintRecord] = field(default_factory=list)


@dataclass(frozen=True)
class LinkSection:
    text: str
    url: str


@dataclass(frozen=True)
class ActionSection:
    label: str
    action_id: str
    value: str


ReportSection = (
    HeaderSection | TextSection | TicketGroupSection | HistorySection | LinkSection | ActionSection
)


@dataclass
class SprintReport:
    """Ordered report content for one command."""

    title: str
    sections: list[ReportSection] = field(default_factory=list)


def format_date(value: date) -> str:
    return value.strftime(DISPLAY_DATE_FORMAT)


def format_percentage(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f}%"


def format_delta(value: int, noun: str) -> str:
    """Describe a signed change, e.g. ``"2 tickets added to scope"``."""
    if value >= 0:
        return f"{value} tickets added to {noun}"
    return f"{-value} tickets removed from {noun}"


def ticket_groups(summary: TicketSummary) -> list[TicketGroupSection]:
    """Non-empty ticket groups in report order."""
    buckets = dict(summary.buckets())
    return [
        TicketGroupSection(key=key, title=title, tickets=list(buckets[key]))
        for key, title in GROUP_TITLES.items()
        if buckets[key]
    ]


def history_sections(history: SprintHistory) -> list[ReportSection]:
    if not history.history:
        return []
    return [HistorySection(records=list(history.history))]


def _progress_sections(
    context: SprintContext, summary: TicketSummary, today: date
) -> list[ReportSection]:
    return [
        TextSection(
            f"*{summary.open_ticket_count}/{summary.sprint_ticket_count} Tickets* Open.\n"
            f"*{context.days_until_end(today)} Days* Remain In Sprint."
        ),
        TextSection(f"*{format_percentage(summary.completed_percentage)} of tasks completed.*"),
    ]


def render_report(
    command: SprintCommand,
    context: SprintContext,
    summary: TicketSummary,
    history: SprintHistory,
    today: date,
    board_url: str,
    closed_record: CumulativeSprintRecord | None = None,
) -> SprintReport:
    """Compose the report for a command.

    Args:
        command: The command being carried out.
        context: The sprint being reported on. For Preview and Kickoff this
            is the sprint about to start.
        summary: Classified tickets.
        history: Closed sprints before this run.
        today: Current date.
        board_url: Link to the ticket board.
        closed_record: Rollup written for End and Review.

    Returns:
        The report.
    """
    board_link = LinkSection(text="View sprint board", url=board_url)
    today_text = format_date(today)
    end_text = format_date(context.end_date)
    name = context.name
    sections: list[ReportSection]

    match command:
        case Preview():
            title = f"🔭 Sprint {name} Preview: {today_text} - {end_text}"
            sections = [
                HeaderSection(title),
                TextSection(
                    f"*{summary.open_ticket_count} Tickets*\n"
                    f"*{context.days_until_end(today)} Days*"
                ),
                *ticket_groups(summary),
                *history_sections(history),
                board_link,
                ActionSection(
                    label="Kick Off",
                    action_id=KICKOFF_COMMAND,
                    value=f"{end_text} {name}",
                ),
            ]
        case Kickoff():
            title = f"🚀 Sprint {name} Kickoff: {today_text} - {end_text}"
            sections = [
                HeaderSection(title),
                TextSection("Sprint starts now!"),
                TextSection(
                    f"*{summary.open_ticket_count} Tickets*\n"
                    f"*{context.days_until_end(today)} Days*"
                ),
                *ticket_groups(summary),
                board_link,
            ]
        case CheckIn():
            title = f"{context.remaining_time_indicator(today)} Sprint {name} Check-In: {today_text}"
            sections = [
                HeaderSection(title),
                *_progress_sections(context, summary, today),
                *ticket_groups(summary),
                board_link,
            ]
        case DailySummary():
            title = f"{context.remaining_time_indicator(today)} Daily Summary: {today_text}"
            sections = [
                HeaderSection(title),
                *_progress_sections(context, summary, today),
                *ticket_groups(summary),
                board_link,
            ]
        case End() | Review():
            title = f"🎆 Sprint {name} Review: {today_text} - {end_text}"
            sections = [
                HeaderSection(title),
                TextSection(
                    f"*{len(summary.completed)}/{summary.sprint_ticket_count} Tickets* "
                    f"Completed in {context.total_days} Days"
                ),
                TextSection(f"*{format_percentage(summary.completed_percentage)} of tasks completed.*"),
            ]
            if closed_record is not None:
                sections.append(TextSection(format_delta(closed_record.open_delta, "sprint")))
                sections.append(TextSection(format_delta(closed_record.scope_delta, "scope")))
            sections.extend(ticket_groups(summary))
            sections.extend(history_sections(history))
            sections.append(board_link)
        case Cancel():
            title = f"🛑 Sprint {name} Cancelled"
            sections = [
                HeaderSection(title),
                TextSection(f"Sprint {name} was cancelled on {today_text}. No history was recorded."),
            ]
        case _:
            raise ValueError(f"No report for command {command!r}")

    return SprintReport(title=title, sections=sections)
