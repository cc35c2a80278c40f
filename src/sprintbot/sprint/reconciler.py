"""Reconciler - Merges live tracker records with the persisted snapshot set."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Protocol

from sprintbot.sprint.models import DailyTicketSnapshot, DailyTicketSnapshots, SprintHistory
from sprintbot.tickets.models import (
    PullRequestInfo,
    Ticket,
    TicketSourceRecord,
    TicketState,
)

logger = logging.getLogger("sprintbot.sprint.reconciler")

NEW_TICKET_WINDOW_DAYS = 3


class PullRequestSource(Protocol):
    def fetch(self, url: str) -> PullRequestInfo: ...


def fetch_pull_requests(
    records: list[TicketSourceRecord],
    source: PullRequestSource,
    max_workers: int = 8,
) -> dict[str, PullRequestInfo]:
    """Fetch PR status for every record that declares a PR URL.

    Requests run concurrently; this returns only once all of them have
    finished. The first failure is re-raised.

    Args:
        records: Live tracker records.
        source: Pull request source to query.
        max_workers: Upper bound on concurrent requests.

    Returns:
        Mapping of PR URL to its status.
    """
    urls = list(dict.fromkeys(record.pr_url for record in records if record.pr_url))
    if not urls:
        return {}

    logger.info("Fetching %d pull requests", len(urls))
    with ThreadPoolExecutor(max_workers=min(max_workers, len(urls))) as executor:
        futures = {url: executor.submit(source.fetch, url) for url in urls}
        return {url: future.result() for url, future in futures.items()}


def _is_new(added_on: date, today: date) -> bool:
    return (today - added_on).days <= NEW_TICKET_WINDOW_DAYS


def reconcile_ticket(
    record: TicketSourceRecord,
    snapshot: DailyTicketSnapshot | None,
    sprint_name: str,
    history: SprintHistory,
    members: dict[str, str],
    pull_request: PullRequestInfo | None,
    today: date,
) -> Ticket:
    """Build the working ticket for one live record.

    Args:
        record: Live tracker record.
        snapshot: What the previous run persisted for this ticket, if anything.
        sprint_name: Name of the sprint being reported on.
        history: Closed sprints, used to age tickets.
        members: Tracker member ID to chat user mapping.
        pull_request: Status of ``record.pr_url``, if it has one.
        today: Current date.

    Returns:
        The reconciled ticket.
    """
    member_names = [members[member_id] for member_id in record.member_ids if member_id in members]

    if snapshot is None:
        return Ticket(
            source=record,
            added_on=today,
            added_in_sprint=sprint_name,
            last_moved_on=today,
            sprint_age=0,
            is_new=True,
            moved_out_of_sprint=False,
            member_names=member_names,
            pull_request=pull_request,
        )

    last_moved_on = today if snapshot.state != record.state else snapshot.last_moved_on
    return Ticket(
        source=record,
        added_on=snapshot.added_on,
        added_in_sprint=snapshot.added_in_sprint,
        last_moved_on=last_moved_on,
        sprint_age=history.count_sprints_since(snapshot.added_in_sprint),
        is_new=_is_new(snapshot.added_on, today),
        moved_out_of_sprint=record.state <= TicketState.IN_SCOPE,
        member_names=member_names,
        pull_request=pull_request,
    )


def materialize_orphan(snapshot: DailyTicketSnapshot, history: SprintHistory, today: date) -> Ticket:
    """Rebuild a ticket the tracker no longer reports.

    Finished tickets stay done; anything else is treated as sent back to
    the backlog.
    """
    state = TicketState.DONE if snapshot.state == TicketState.DONE else TicketState.BACKLOG_IDEAS
    record = TicketSourceRecord(
        id=snapshot.id,
        name=snapshot.name,
        state=state,
        url=snapshot.url,
        has_description=True,
        has_labels=True,
        labels=frozenset(snapshot.labels),
        dependency_link=snapshot.dependency_link,
    )
    return Ticket(
        source=record,
        added_on=snapshot.added_on,
        added_in_sprint=snapshot.added_in_sprint,
        last_moved_on=snapshot.last_moved_on,
        sprint_age=history.count_sprints_since(snapshot.added_in_sprint),
        is_new=_is_new(snapshot.added_on, today),
        moved_out_of_sprint=True,
    )


def reconcile(
    records: list[TicketSourceRecord],
    snapshots: DailyTicketSnapshots,
    sprint_name: str,
    history: SprintHistory,
    members: dict[str, str],
    pull_requests: dict[str, PullRequestInfo],
    today: date,
) -> list[Ticket]:
    """Reconcile all live records against the snapshot set.

    Live tickets come first in tracker order, followed by snapshot-only
    tickets in snapshot order.

    Raises:
        KeyError: If a record declares a PR URL missing from ``pull_requests``.
    """
    previous = snapshots.by_id()
    tickets = []
    seen: set[str] = set()

    for record in records:
        if record.id in seen:
            logger.warning("Tracker reported ticket %s twice, keeping the first", record.id)
            continue
        seen.add(record.id)
        pull_request = pull_requests[record.pr_url] if record.pr_url else None
        tickets.append(
            reconcile_ticket(
                record,
                previous.get(record.id),
                sprint_name,
                history,
                members,
                pull_request,
                today,
            )
        )

    orphans = [snapshot for snapshot in snapshots.tickets if snapshot.id not in seen]
    for snapshot in orphans:
        tickets.append(materialize_orphan(snapshot, history, today))

    logger.info(
        "Reconciled %d live tickets and %d snapshot-only tickets",
        len(tickets) - len(orphans),
        len(orphans),
    )
    return tickets
