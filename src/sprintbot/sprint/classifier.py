"""Classifier - Sorts reconciled tickets into report buckets."""

from __future__ import annotations

import logging

from sprintbot.sprint.models import TicketSummary
from sprintbot.tickets.models import Ticket, TicketState

logger = logging.getLogger("sprintbot.sprint.classifier")


class _Bucket:
    """Ordered list where goal tickets are kept ahead of the rest.

    Goals are inserted after the goals already present, so arrival order
    holds within goals and within non-goals.
    """

    def __init__(self) -> None:
        self.tickets: list[Ticket] = []
        self._goal_count = 0

    def push(self, ticket: Ticket) -> None:
        if ticket.is_goal:
            self.tickets.insert(self._goal_count, ticket)
            self._goal_count += 1
        else:
            self.tickets.append(ticket)


def classify(tickets: list[Ticket]) -> TicketSummary:
    """Partition tickets into buckets and count them.

    First match wins for each ticket:

    1. Done goes to completed.
    2. At or before In Scope goes to deferred if it was moved out of the
       sprint; otherwise it only counts towards the in-scope total.
    3. Demo/Final Approval goes to demo.
    4. Anything else is active work: a non-draft PR that is blocked goes to
       blocked PRs, any other non-draft PR to open PRs, the rest to open
       tickets.

    Args:
        tickets: Reconciled tickets for the sprint.

    Returns:
        TicketSummary with every bucket and counter filled in.
    """
    completed = _Bucket()
    demo = _Bucket()
    blocked_prs = _Bucket()
    open_prs = _Bucket()
    open_tickets = _Bucket()
    deferred = _Bucket()
    in_scope_count = 0

    for ticket in tickets:
        if ticket.state == TicketState.DONE:
            completed.push(ticket)
        elif ticket.state <= TicketState.IN_SCOPE:
            if ticket.moved_out_of_sprint:
                deferred.push(ticket)
            else:
                in_scope_count += 1
        elif ticket.state == TicketState.DEMO_FINAL_APPROVAL:
            demo.push(ticket)
        elif ticket.has_open_pull_request and ticket.pull_request.is_blocked:
            blocked_prs.push(ticket)
        elif ticket.has_open_pull_request:
            open_prs.push(ticket)
        else:
            open_tickets.push(ticket)

    summary = TicketSummary(
        completed=completed.tickets,
        demo=demo.tickets,
        blocked_prs=blocked_prs.tickets,
        open_prs=open_prs.tickets,
        open_tickets=open_tickets.tickets,
        deferred=deferred.tickets,
        sprint_ticket_count=len(tickets) - in_scope_count,
        project_ticket_count_in_scope=in_scope_count,
    )
    logger.info(
        "Classified %d sprint tickets (%d completed, %d deferred, %d in scope)",
        summary.sprint_ticket_count,
        len(summary.completed),
        len(summary.deferred),
        in_scope_count,
    )
    return summary
