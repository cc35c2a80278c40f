"""Shared pytest fixtures and configuration."""

from datetime import date

import pytest

from sprintbot.sprint.models import SprintContext, SprintHistory
from sprintbot.state_store import InMemoryKeyValueStore, SprintStore
from sprintbot.tickets.models import (
    PullRequestInfo,
    Ticket,
    TicketLabel,
    TicketSourceRecord,
    TicketState,
)


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: calls real Trello/GitHub/Slack APIs (local only)")


# Shared fixtures


@pytest.fixture
def today() -> date:
    """Fixed current date for lifecycle tests."""
    return date(2024, 3, 15)


@pytest.fixture
def sprint_store() -> SprintStore:
    """SprintStore over an in-memory key-value store."""
    return SprintStore(InMemoryKeyValueStore())


@pytest.fixture
def active_context(today: date) -> SprintContext:
    """A two-week sprint that started five days ago."""
    return SprintContext(
        name="Sprint 7",
        start_date=date(2024, 3, 10),
        end_date=date(2024, 3, 24),
        channel_id="C123",
        open_ticket_count_at_start=4,
        in_scope_count_at_start=2,
        board="board123",
    )


@pytest.fixture
def empty_history() -> SprintHistory:
    return SprintHistory()


@pytest.fixture
def make_record():
    """Factory for live tracker records with sensible defaults."""

    def _make(
        id: str = "t1",
        state: TicketState = TicketState.IN_PROGRESS,
        **overrides,
    ) -> TicketSourceRecord:
        fields = {
            "id": id,
            "name": f"Ticket {id}",
            "state": state,
            "url": f"https://trello.com/c/{id}",
            "member_ids": ("m1",),
            "has_description": True,
            "has_labels": True,
            "labels": frozenset({TicketLabel.BACK_END}),
        }
        fields.update(overrides)
        return TicketSourceRecord(**fields)

    return _make


@pytest.fixture
def make_ticket(make_record, today: date):
    """Factory for reconciled tickets."""

    def _make(
        id: str = "t1",
        state: TicketState = TicketState.IN_PROGRESS,
        pull_request: PullRequestInfo | None = None,
        moved_out_of_sprint: bool = False,
        member_names: list[str] | None = None,
        **record_overrides,
    ) -> Ticket:
        return Ticket(
            source=make_record(id, state, **record_overrides),
            added_on=today,
            added_in_sprint="Sprint 7",
            last_moved_on=today,
            moved_out_of_sprint=moved_out_of_sprint,
            member_names=["U1"] if member_names is None else member_names,
            pull_request=pull_request,
        )

    return _make
