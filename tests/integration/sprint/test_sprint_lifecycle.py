"""Integration tests for a full sprint lifecycle.

Real stores, scheduler and HTTP adapters; the Trello, GitHub and Slack APIs
are served by httpx mock transports.
"""

import json
from datetime import date
from pathlib import Path

import httpx
import pytest
from sqlalchemy import inspect

from sprintbot.api.dependencies import dispatch_trigger
from sprintbot.notifications import SlackNotifier
from sprintbot.scheduler import CronRuleScheduler
from sprintbot.sprint import (
    DailySummary,
    ManualTrigger,
    Review,
    ScheduledTrigger,
    SprintAlreadyActiveError,
    SprintNameUsedError,
    SprintOrchestrator,
)
from sprintbot.state_store import Database, SprintStore, SqlKeyValueStore
from sprintbot.tickets import PullRequestClient, TrelloAdapter

pytestmark = pytest.mark.integration

LISTS = [
    {"id": "l-scope", "name": "In Scope"},
    {"id": "l-backlog", "name": "Backlog/Ideas"},
    {"id": "l-progress", "name": "In Progress"},
    {"id": "l-done", "name": "Done"},
]
LIST_IDS = {item["name"]: item["id"] for item in LISTS}
PR_URL = "https://github.com/acme/app/pull/5"


class FakeBoard:
    """Serves Trello lists and cards from a mutable card table."""

    def __init__(self) -> None:
        self.cards: dict[str, dict] = {}

    def put(self, card_id: str, list_name: str, attachments: list[dict] | None = None) -> None:
        self.cards[card_id] = {
            "id": card_id,
            "name": f"Card {card_id}",
            "desc": "Details",
            "idList": LIST_IDS[list_name],
            "idMembers": ["m1"],
            "url": f"https://trello.com/c/{card_id}",
            "labels": [{"name": "Back-End"}],
            "badges": {"checkItems": 0, "checkItemsChecked": 0},
            "attachments": attachments or [],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/lists"):
            return httpx.Response(200, json=LISTS)
        if request.url.path.endswith("/cards"):
            return httpx.Response(200, json=list(self.cards.values()))
        return httpx.Response(404, json={"message": "not found"})


def github_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/repos/acme/app/pulls/5":
        return httpx.Response(
            200,
            json={"draft": False, "merged": False, "mergeable": True, "comments": 2, "head": {"sha": "s1"}},
        )
    if request.url.path == "/repos/acme/app/commits/s1/check-runs":
        return httpx.Response(200, json={"check_runs": [{"name": "ci", "conclusion": "success"}]})
    return httpx.Response(404, json={"message": "Not Found"})


class FakeSlack:
    """Records posted messages."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.messages.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "ts": str(len(self.messages))})


@pytest.fixture
def db(tmp_path: Path):
    database = Database(str(tmp_path / "sprintbot.db"))
    yield database
    database.close()


@pytest.fixture
def board() -> FakeBoard:
    return FakeBoard()


@pytest.fixture
def slack() -> FakeSlack:
    return FakeSlack()


@pytest.fixture
def clock() -> dict[str, date]:
    return {"today": date(2024, 3, 10)}


@pytest.fixture
def scheduler(db: Database):
    s = CronRuleScheduler(on_fire=lambda name: None, engine=db.engine)
    s.start()
    yield s
    s.shutdown()


@pytest.fixture
def store(db: Database) -> SprintStore:
    return SprintStore(SqlKeyValueStore(db))


@pytest.fixture
def orchestrator(store, scheduler, board: FakeBoard, clock) -> SprintOrchestrator:
    trello = TrelloAdapter(board_id="board1", api_key="k", api_token="t", base_url="https://trello.test/1")
    trello._client = httpx.Client(
        base_url="https://trello.test/1", transport=httpx.MockTransport(board.handler)
    )
    github = PullRequestClient(token="ghp_test", base_url="https://github.test")
    github._client = httpx.Client(
        base_url="https://github.test", transport=httpx.MockTransport(github_handler)
    )
    return SprintOrchestrator(
        store=store,
        scheduler=scheduler,
        ticket_source=trello,
        pr_source=github,
        board="board1",
        board_url="https://trello.com/b/board1",
        clock=lambda: clock["today"],
    )


@pytest.fixture
def notifier(slack: FakeSlack) -> SlackNotifier:
    n = SlackNotifier(token="xoxb-test", base_url="https://slack.test/api")
    n._client = httpx.Client(transport=httpx.MockTransport(slack.handler))
    return n


class TestSprintLifecycle:
    """Kickoff, daily summary and review against persistent storage."""

    def test_full_sprint(
        self,
        orchestrator: SprintOrchestrator,
        notifier: SlackNotifier,
        store: SprintStore,
        scheduler: CronRuleScheduler,
        board: FakeBoard,
        slack: FakeSlack,
        clock,
        db: Database,
    ) -> None:
        board.put("A", "In Progress", attachments=[{"name": "PR", "url": PR_URL}])
        board.put("B", "In Scope")
        board.put("C", "In Progress")

        # Kickoff
        outcome = dispatch_trigger(
            orchestrator,
            notifier,
            ManualTrigger("/sprint-kickoff-confirm", "03/14/2024 Sprint 1", "C1"),
        )

        assert outcome.channel_id == "C1"
        context = store.get_active_sprint()
        assert context.start_date == date(2024, 3, 10)
        assert context.open_ticket_count_at_start == 2
        assert context.in_scope_count_at_start == 1
        assert [s.id for s in store.get_snapshots().tickets] == ["A", "C"]
        assert "hour='19'" in scheduler.get_rule("Sprint 1")
        assert "cadence_rules" in inspect(db.engine).get_table_names()
        assert slack.messages[-1]["channel"] == "C1"

        # A second kickoff is refused while the sprint runs
        with pytest.raises(SprintAlreadyActiveError):
            orchestrator.handle(ManualTrigger("/sprint-kickoff", "03/20/2024 Sprint 2", "C1"))

        # Day before the end: A is done, C went back to the backlog
        clock["today"] = date(2024, 3, 13)
        board.put("A", "Done", attachments=[{"name": "PR", "url": PR_URL}])
        board.put("C", "Backlog/Ideas")

        outcome = dispatch_trigger(orchestrator, notifier, ScheduledTrigger())

        assert isinstance(outcome.command, DailySummary)
        assert "hour='16'" in scheduler.get_rule("Sprint 1")
        snapshots = store.get_snapshots().by_id()
        assert snapshots["A"].last_moved_on == date(2024, 3, 13)
        assert snapshots["A"].added_on == date(2024, 3, 10)

        # Review day
        clock["today"] = date(2024, 3, 14)
        outcome = dispatch_trigger(orchestrator, notifier, ScheduledTrigger())

        assert isinstance(outcome.command, Review)
        record = store.get_history().history[-1]
        assert record.name == "Sprint 1"
        assert record.completed_count == 1
        assert record.percent_complete == 50.0
        assert store.get_active_sprint() is None
        assert store.get_snapshots().tickets == []
        assert scheduler.get_rule("Sprint 1") is None
        assert len(slack.messages) == 3

        # Names cannot be reused
        with pytest.raises(SprintNameUsedError):
            orchestrator.handle(ManualTrigger("/sprint-kickoff", "03/28/2024 Sprint 1", "C1"))

    def test_cancel_leaves_history_untouched(
        self,
        orchestrator: SprintOrchestrator,
        notifier: SlackNotifier,
        store: SprintStore,
        scheduler: CronRuleScheduler,
        board: FakeBoard,
    ) -> None:
        board.put("A", "In Progress")
        dispatch_trigger(
            orchestrator,
            notifier,
            ManualTrigger("/sprint-kickoff-confirm", "03/14/2024 Sprint 1", "C1"),
        )

        outcome = dispatch_trigger(orchestrator, notifier, ManualTrigger("/sprint-cancel"))

        assert outcome.report.title == "🛑 Sprint Sprint 1 Cancelled"
        assert store.get_active_sprint() is None
        assert store.get_history().history == []
        assert scheduler.get_rule("Sprint 1") is None
