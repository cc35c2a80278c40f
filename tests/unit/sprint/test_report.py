"""Unit tests for report composition."""

from datetime import date

import pytest

from sprintbot.sprint import (
    Cancel,
    CheckIn,
    CumulativeSprintRecord,
    DailySummary,
    End,
    Kickoff,
    Preview,
    Review,
    SprintContext,
    SprintHistory,
    TicketSummary,
    render_report,
)
from sprintbot.sprint.report import (
    ActionSection,
    HeaderSection,
    HistorySection,
    LinkSection,
    TextSection,
    TicketGroupSection,
    format_delta,
    format_percentage,
    ticket_groups,
)
from sprintbot.tickets import TicketState

BOARD_URL = "https://trello.com/b/board123"


def _record(name: str = "Sprint 6", open_delta: int = 2, scope_delta: int = -1) -> CumulativeSprintRecord:
    return CumulativeSprintRecord(
        name=name,
        start_date=date(2024, 2, 25),
        end_date=date(2024, 3, 9),
        percent_complete=75.0,
        completed_count=3,
        open_delta=open_delta,
        scope_delta=scope_delta,
    )


@pytest.fixture
def summary(make_ticket) -> TicketSummary:
    return TicketSummary(
        completed=[make_ticket("done", TicketState.DONE)],
        open_prs=[make_ticket("review")],
        open_tickets=[make_ticket("open")],
        demo=[make_ticket("demo", TicketState.DEMO_FINAL_APPROVAL)],
        sprint_ticket_count=4,
    )


def _texts(report) -> list[str]:
    return [s.text for s in report.sections if isinstance(s, TextSection)]


@pytest.mark.unit
class TestFormatting:
    """Tests for formatting helpers."""

    def test_format_percentage(self) -> None:
        assert format_percentage(50.0) == "50.00%"
        assert format_percentage(100 / 3) == "33.33%"
        assert format_percentage(None) == "N/A"

    def test_format_delta(self) -> None:
        assert format_delta(2, "scope") == "2 tickets added to scope"
        assert format_delta(0, "sprint") == "0 tickets added to sprint"
        assert format_delta(-3, "scope") == "3 tickets removed from scope"

    def test_ticket_groups_order_and_skip_empty(self, summary: TicketSummary) -> None:
        groups = ticket_groups(summary)
        assert [g.key for g in groups] == ["demo", "open_prs", "open_tickets", "completed"]
        assert groups[0].title == "🎬 Demo / Final Approval"


@pytest.mark.unit
class TestRenderReport:
    """Tests for render_report per command."""

    def test_preview_offers_kickoff(
        self, active_context: SprintContext, summary: TicketSummary, today: date
    ) -> None:
        report = render_report(
            Preview("Sprint 7", date(2024, 3, 24), "C123"),
            active_context,
            summary,
            SprintHistory(history=[_record()]),
            today,
            BOARD_URL,
        )

        assert report.title == "🔭 Sprint Sprint 7 Preview: 03/15/2024 - 03/24/2024"
        assert report.sections[0] == HeaderSection(report.title)
        assert any(isinstance(s, HistorySection) for s in report.sections)
        action = report.sections[-1]
        assert action == ActionSection(
            label="Kick Off", action_id="/sprint-kickoff-confirm", value="03/24/2024 Sprint 7"
        )
        assert LinkSection(text="View sprint board", url=BOARD_URL) in report.sections

    def test_kickoff(self, active_context: SprintContext, summary: TicketSummary, today: date) -> None:
        report = render_report(
            Kickoff("Sprint 7", date(2024, 3, 24), "C123"),
            active_context,
            summary,
            SprintHistory(),
            today,
            BOARD_URL,
        )

        assert report.title.startswith("🚀 Sprint Sprint 7 Kickoff")
        assert "Sprint starts now!" in _texts(report)
        assert not any(isinstance(s, ActionSection) for s in report.sections)

    def test_check_in_progress(
        self, active_context: SprintContext, summary: TicketSummary, today: date
    ) -> None:
        report = render_report(CheckIn(), active_context, summary, SprintHistory(), today, BOARD_URL)

        assert report.title == "🌔 Sprint Sprint 7 Check-In: 03/15/2024"
        assert _texts(report) == [
            "*3/4 Tickets* Open.\n*9 Days* Remain In Sprint.",
            "*25.00% of tasks completed.*",
        ]
        groups = [s for s in report.sections if isinstance(s, TicketGroupSection)]
        assert [g.key for g in groups] == ["demo", "open_prs", "open_tickets", "completed"]

    def test_daily_summary_title(
        self, active_context: SprintContext, summary: TicketSummary, today: date
    ) -> None:
        report = render_report(
            DailySummary(), active_context, summary, SprintHistory(), today, BOARD_URL
        )
        assert report.title == "🌔 Daily Summary: 03/15/2024"

    def test_empty_sprint_percentage(self, active_context: SprintContext, today: date) -> None:
        report = render_report(
            DailySummary(), active_context, TicketSummary(), SprintHistory(), today, BOARD_URL
        )
        assert "*N/A of tasks completed.*" in _texts(report)

    @pytest.mark.parametrize("command", [End(), Review()])
    def test_review_with_rollup(
        self, command, active_context: SprintContext, summary: TicketSummary, today: date
    ) -> None:
        report = render_report(
            command,
            active_context,
            summary,
            SprintHistory(history=[_record()]),
            today,
            BOARD_URL,
            closed_record=_record("Sprint 7"),
        )

        assert report.title == "🎆 Sprint Sprint 7 Review: 03/15/2024 - 03/24/2024"
        texts = _texts(report)
        assert "*1/4 Tickets* Completed in 14 Days" in texts
        assert "2 tickets added to sprint" in texts
        assert "1 tickets removed from scope" in texts
        assert any(isinstance(s, HistorySection) for s in report.sections)

    def test_cancel(self, active_context: SprintContext, summary: TicketSummary, today: date) -> None:
        report = render_report(Cancel(), active_context, summary, SprintHistory(), today, BOARD_URL)

        assert report.title == "🛑 Sprint Sprint 7 Cancelled"
        assert not any(isinstance(s, TicketGroupSection) for s in report.sections)
