"""Unit tests for command parsing."""

from datetime import date

import pytest

from sprintbot.sprint import (
    Cancel,
    CheckIn,
    CumulativeSprintRecord,
    DailySummary,
    End,
    InvalidCommandError,
    InvalidSprintInputError,
    Kickoff,
    ManualTrigger,
    NoActiveSprintError,
    Preview,
    Review,
    ScheduledTrigger,
    SprintAlreadyActiveError,
    SprintContext,
    SprintHistory,
    SprintNameUsedError,
    parse_command,
)
from sprintbot.sprint.commands import parse_sprint_input


@pytest.mark.unit
class TestParseSprintInput:
    """Tests for parse_sprint_input."""

    def test_valid(self, today: date) -> None:
        assert parse_sprint_input("03/29/2024 Sprint 8", today) == (date(2024, 3, 29), "Sprint 8")

    def test_end_date_today_allowed(self, today: date) -> None:
        assert parse_sprint_input("03/15/2024 Quick", today) == (today, "Quick")

    @pytest.mark.parametrize("text", ["", "03/29/2024", "03/29/2024   ", "Sprint 8"])
    def test_missing_parts(self, text: str, today: date) -> None:
        with pytest.raises(InvalidSprintInputError):
            parse_sprint_input(text, today)

    def test_bad_date(self, today: date) -> None:
        with pytest.raises(InvalidSprintInputError, match="MM/DD/YYYY"):
            parse_sprint_input("2024-03-29 Sprint 8", today)

    def test_past_date(self, today: date) -> None:
        with pytest.raises(InvalidSprintInputError, match="in the past"):
            parse_sprint_input("03/14/2024 Sprint 8", today)


@pytest.mark.unit
class TestParseCommandWithoutSprint:
    """Commands when no sprint is active."""

    def test_preview(self, today: date, empty_history: SprintHistory) -> None:
        trigger = ManualTrigger("/sprint-kickoff", "03/29/2024 Sprint 8", "C1")
        command = parse_command(trigger, None, empty_history, today)
        assert command == Preview(name="Sprint 8", end_date=date(2024, 3, 29), channel_id="C1")

    def test_kickoff(self, today: date, empty_history: SprintHistory) -> None:
        trigger = ManualTrigger("/sprint-kickoff-confirm", "03/29/2024 Sprint 8", "C1")
        command = parse_command(trigger, None, empty_history, today)
        assert command == Kickoff(name="Sprint 8", end_date=date(2024, 3, 29), channel_id="C1")

    @pytest.mark.parametrize("name", ["/sprint-check-in", "/sprint-cancel", "/sprint-end"])
    def test_lifecycle_commands_rejected(
        self, name: str, today: date, empty_history: SprintHistory
    ) -> None:
        with pytest.raises(NoActiveSprintError) as exc_info:
            parse_command(ManualTrigger(name), None, empty_history, today)
        assert exc_info.value.reason == "No sprint in progress"

    def test_scheduled_rejected(self, today: date, empty_history: SprintHistory) -> None:
        with pytest.raises(NoActiveSprintError):
            parse_command(ScheduledTrigger(), None, empty_history, today)

    def test_reused_name_rejected(self, today: date) -> None:
        history = SprintHistory(
            history=[
                CumulativeSprintRecord(
                    name="Sprint 8",
                    start_date=date(2024, 1, 1),
                    end_date=date(2024, 1, 14),
                    percent_complete=None,
                    completed_count=0,
                    open_delta=0,
                    scope_delta=0,
                )
            ]
        )
        trigger = ManualTrigger("/sprint-kickoff", "03/29/2024 Sprint 8", "C1")

        with pytest.raises(SprintNameUsedError):
            parse_command(trigger, None, history, today)

    def test_invalid_input(self, today: date, empty_history: SprintHistory) -> None:
        trigger = ManualTrigger("/sprint-kickoff", "tomorrow", "C1")
        with pytest.raises(InvalidSprintInputError):
            parse_command(trigger, None, empty_history, today)


@pytest.mark.unit
class TestParseCommandWithSprint:
    """Commands while a sprint is active."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("/sprint-check-in", CheckIn()),
            ("/sprint-cancel", Cancel()),
            ("/sprint-end", End()),
        ],
    )
    def test_lifecycle_commands(
        self,
        name: str,
        expected,
        active_context: SprintContext,
        today: date,
        empty_history: SprintHistory,
    ) -> None:
        assert parse_command(ManualTrigger(name), active_context, empty_history, today) == expected

    @pytest.mark.parametrize("name", ["/sprint-kickoff", "/sprint-kickoff-confirm"])
    def test_kickoff_rejected(
        self,
        name: str,
        active_context: SprintContext,
        today: date,
        empty_history: SprintHistory,
    ) -> None:
        trigger = ManualTrigger(name, "03/29/2024 Sprint 8", "C1")
        with pytest.raises(SprintAlreadyActiveError) as exc_info:
            parse_command(trigger, active_context, empty_history, today)
        assert exc_info.value.reason == "Sprint Sprint 7 already in progress"

    def test_scheduled_before_end_is_daily(
        self, active_context: SprintContext, today: date, empty_history: SprintHistory
    ) -> None:
        command = parse_command(ScheduledTrigger(), active_context, empty_history, today)
        assert command == DailySummary()

    @pytest.mark.parametrize("today", [date(2024, 3, 24), date(2024, 3, 26)])
    def test_scheduled_on_or_after_end_is_review(
        self, active_context: SprintContext, today: date, empty_history: SprintHistory
    ) -> None:
        command = parse_command(ScheduledTrigger(), active_context, empty_history, today)
        assert command == Review()


@pytest.mark.unit
class TestInvalidCommand:
    """Unknown commands are rejected in every state."""

    def test_unknown_without_sprint(self, today: date, empty_history: SprintHistory) -> None:
        with pytest.raises(InvalidCommandError) as exc_info:
            parse_command(ManualTrigger("/sprint-party"), None, empty_history, today)
        assert exc_info.value.reason == "Invalid command /sprint-party"

    def test_unknown_with_sprint(
        self, active_context: SprintContext, today: date, empty_history: SprintHistory
    ) -> None:
        with pytest.raises(InvalidCommandError):
            parse_command(ManualTrigger("/deploy"), active_context, empty_history, today)
