"""SprintOrchestrator - Runs one trigger through the sprint lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Protocol

from sprintbot.config import DEFAULT_DAILY_CRON, DEFAULT_REVIEW_CRON
from sprintbot.scheduler.models import ScheduleAction, ScheduleChange
from sprintbot.scheduler.scheduler import apply_schedule_change
from sprintbot.sprint.classifier import classify
from sprintbot.sprint.commands import (
    Cancel,
    CheckIn,
    DailySummary,
    End,
    Kickoff,
    Preview,
    Review,
    SprintCommand,
    Trigger,
    parse_command,
)
from sprintbot.sprint.exceptions import MissingSprintContextError
from sprintbot.sprint.models import (
    CumulativeSprintRecord,
    DailyTicketSnapshots,
    SprintContext,
    SprintHistory,
    TicketSummary,
)
from sprintbot.sprint.reconciler import PullRequestSource, fetch_pull_requests, reconcile
from sprintbot.sprint.report import SprintReport, render_report
from sprintbot.tickets.models import TicketSourceRecord

if TYPE_CHECKING:
    from sprintbot.scheduler.scheduler import RuleScheduler
    from sprintbot.state_store.store import SprintStore

logger = logging.getLogger(__name__)


class TicketSource(Protocol):
    def fetch_all(self) -> list[TicketSourceRecord]: ...


@dataclass
class SprintTransition:
    """Everything a command changes, decided before anything is written.

    Attributes:
        context: Sprint the report is about.
        new_context: Context to store as the active sprint, if any.
        clear_context: Whether to remove the active sprint.
        snapshots: Snapshot set to store, if any.
        history: History to store, if any.
        closed_record: Rollup appended to the history on End and Review.
        schedule: Cadence rule change, if any.
    """

    context: SprintContext
    new_context: SprintContext | None = None
    clear_context: bool = False
    snapshots: DailyTicketSnapshots | None = None
    history: SprintHistory | None = None
    closed_record: CumulativeSprintRecord | None = None
    schedule: ScheduleChange | None = None

    @property
    def has_writes(self) -> bool:
        return (
            self.new_context is not None
            or self.clear_context
            or self.snapshots is not None
            or self.history is not None
            or self.schedule is not None
        )


@dataclass
class SprintOutcome:
    """Result of handling a trigger."""

    command: SprintCommand
    channel_id: str
    report: SprintReport
    transition: SprintTransition


def close_sprint(context: SprintContext, summary: TicketSummary) -> CumulativeSprintRecord:
    """Build the history entry for a sprint being closed."""
    return CumulativeSprintRecord(
        name=context.name,
        start_date=context.start_date,
        end_date=context.end_date,
        percent_complete=summary.completed_percentage,
        completed_count=len(summary.completed),
        open_delta=summary.open_ticket_count - context.open_ticket_count_at_start,
        scope_delta=summary.project_ticket_count_in_scope - context.in_scope_count_at_start,
    )


def plan_transition(
    command: SprintCommand,
    context: SprintContext | None,
    summary: TicketSummary,
    history: SprintHistory,
    today: date,
    board: str,
    daily_cron: str = DEFAULT_DAILY_CRON,
    review_cron: str = DEFAULT_REVIEW_CRON,
) -> SprintTransition:
    """Decide the state changes for a command.

    Pure function; nothing is written here.

    Args:
        command: Parsed command.
        context: Active sprint, if any.
        summary: Classified tickets for this run.
        history: Closed sprints.
        today: Current date.
        board: Tracker board identifier stored on a new sprint.
        daily_cron: Cadence for a new sprint's rule.
        review_cron: Cadence once only the review day is left.

    Returns:
        The transition to commit.

    Raises:
        MissingSprintContextError: If the command needs an active sprint and
            there is none.
    """
    match command:
        case Preview(name=name, end_date=end_date, channel_id=channel_id) | Kickoff(
            name=name, end_date=end_date, channel_id=channel_id
        ):
            pending = SprintContext(
                name=name,
                start_date=today,
                end_date=end_date,
                channel_id=channel_id,
                open_ticket_count_at_start=summary.open_ticket_count,
                in_scope_count_at_start=summary.project_ticket_count_in_scope,
                board=board,
            )
            if isinstance(command, Preview):
                return SprintTransition(context=pending)
            return SprintTransition(
                context=pending,
                new_context=pending,
                snapshots=DailyTicketSnapshots.from_tickets(summary.snapshot_tickets()),
                schedule=ScheduleChange.create(name, daily_cron),
            )

    if context is None:
        raise MissingSprintContextError(f"{type(command).__name__} requires an active sprint")

    match command:
        case CheckIn():
            return SprintTransition(context=context)
        case DailySummary():
            schedule = None
            if context.days_until_end(today) == 1:
                schedule = ScheduleChange.change(context.name, review_cron)
            return SprintTransition(
                context=context,
                snapshots=DailyTicketSnapshots.from_tickets(summary.snapshot_tickets()),
                schedule=schedule,
            )
        case Cancel():
            return SprintTransition(
                context=context,
                clear_context=True,
                schedule=ScheduleChange.delete(context.name),
            )
        case End() | Review():
            record = close_sprint(context, summary)
            remaining = summary.without_closed()
            return SprintTransition(
                context=context,
                clear_context=True,
                snapshots=DailyTicketSnapshots.from_tickets(remaining.snapshot_tickets()),
                history=history.appended(record),
                closed_record=record,
                schedule=ScheduleChange.delete(context.name),
            )
        case _:
            raise ValueError(f"Unsupported command {command!r}")


class SprintOrchestrator:
    """Handles triggers end to end.

    For each trigger it:
    - Loads the active sprint and history
    - Parses the trigger into a command
    - Fetches and reconciles tickets, then classifies them
    - Plans the state changes and composes the report
    - Writes the changes, only after everything above succeeded
    """

    def __init__(
        self,
        store: SprintStore,
        scheduler: RuleScheduler,
        ticket_source: TicketSource,
        pr_source: PullRequestSource,
        board: str,
        board_url: str,
        daily_cron: str = DEFAULT_DAILY_CRON,
        review_cron: str = DEFAULT_REVIEW_CRON,
        pr_fetch_workers: int = 8,
        clock: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the SprintOrchestrator.

        Args:
            store: Sprint document store.
            scheduler: Cadence rule scheduler.
            ticket_source: Tracker to read tickets from.
            pr_source: Code review system to read PR status from.
            board: Tracker board identifier.
            board_url: Link to the board shown in reports.
            daily_cron: Cadence for a new sprint's rule.
            review_cron: Cadence once only the review day is left.
            pr_fetch_workers: Maximum concurrent PR requests.
            clock: Returns the current date.
        """
        self.store = store
        self.scheduler = scheduler
        self.ticket_source = ticket_source
        self.pr_source = pr_source
        self.board = board
        self.board_url = board_url
        self.daily_cron = daily_cron
        self.review_cron = review_cron
        self.pr_fetch_workers = pr_fetch_workers
        self.clock = clock

    def handle(self, trigger: Trigger) -> SprintOutcome:
        """Run a trigger through the lifecycle.

        Args:
            trigger: Manual or scheduled trigger.

        Returns:
            SprintOutcome with the report and where to send it.

        Raises:
            CommandRejectedError: If the trigger is not valid right now.
                Nothing is fetched or written in that case.
        """
        today = self.clock()
        context = self.store.get_active_sprint()
        history = self.store.get_history()

        command = parse_command(trigger, context, history, today)
        logger.info("Handling %s (active sprint: %s)", type(command).__name__, context and context.name)

        match command:
            case Cancel():
                summary = TicketSummary()
            case Preview(name=name) | Kickoff(name=name):
                summary = self.summarize(name, history, today)
            case _:
                if context is None:
                    raise MissingSprintContextError(
                        f"{type(command).__name__} requires an active sprint"
                    )
                summary = self.summarize(context.name, history, today)

        transition = plan_transition(
            command,
            context,
            summary,
            history,
            today,
            board=self.board,
            daily_cron=self.daily_cron,
            review_cron=self.review_cron,
        )
        report = render_report(
            command,
            transition.context,
            summary,
            history,
            today,
            self.board_url,
            closed_record=transition.closed_record,
        )

        self.commit(transition)
        return SprintOutcome(
            command=command,
            channel_id=transition.context.channel_id,
            report=report,
            transition=transition,
        )

    def summarize(self, sprint_name: str, history: SprintHistory, today: date) -> TicketSummary:
        """Fetch, reconcile and classify the board's tickets."""
        snapshots = self.store.get_snapshots()
        members = self.store.get_members()
        records = self.ticket_source.fetch_all()
        pull_requests = fetch_pull_requests(records, self.pr_source, self.pr_fetch_workers)
        tickets = reconcile(
            records, snapshots, sprint_name, history, members, pull_requests, today
        )
        return classify(tickets)

    def commit(self, transition: SprintTransition) -> None:
        """Write a transition.

        Keys are written one at a time with no rollback. A rule deletion runs
        before the documents; any other rule change runs after them.
        """
        if not transition.has_writes:
            return

        schedule = transition.schedule
        if schedule is not None and schedule.action == ScheduleAction.DELETE:
            apply_schedule_change(self.scheduler, schedule)
            schedule = None

        if transition.history is not None:
            self.store.put_history(transition.history)
        if transition.snapshots is not None:
            self.store.put_snapshots(transition.snapshots)
        if transition.new_context is not None:
            self.store.put_active_sprint(transition.new_context)
        if transition.clear_context:
            self.store.clear_active_sprint()

        if schedule is not None:
            apply_schedule_change(self.scheduler, schedule)

        logger.info("Committed changes for sprint %s", transition.context.name)
