"""Unit tests for TrelloAdapter."""

from unittest.mock import MagicMock

import httpx
import pytest

from sprintbot.tickets import (
    BoardNotFoundError,
    TicketLabel,
    TicketSourceError,
    TicketState,
    TrelloAdapter,
)

LISTS = [
    {"id": "l1", "name": "In Progress"},
    {"id": "l2", "name": "Done"},
    {"id": "l3", "name": "Someday"},
]


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock HTTP client."""
    return MagicMock()


@pytest.fixture
def adapter(mock_client: MagicMock) -> TrelloAdapter:
    """Create a TrelloAdapter instance with mocked client."""
    adapter = TrelloAdapter(board_id="board123", api_key="key", api_token="token")
    adapter._client = mock_client
    return adapter


def _mock_response(data, status_code: int = 200) -> MagicMock:
    """Create a mock REST response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data
    response.text = str(data)
    return response


def _card(card_id: str = "c1", list_id: str = "l1", **overrides) -> dict:
    card = {
        "id": card_id,
        "name": f"Card {card_id}",
        "desc": "Some description",
        "idList": list_id,
        "idMembers": ["m1"],
        "url": f"https://trello.com/c/{card_id}",
        "labels": [{"name": "Back-End"}],
        "badges": {"checkItems": 0, "checkItemsChecked": 0},
        "attachments": [],
    }
    card.update(overrides)
    return card


@pytest.mark.unit
class TestFetchLists:
    """Tests for fetch_lists."""

    def test_returns_id_to_name(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.return_value = _mock_response(LISTS)

        lists = adapter.fetch_lists()

        assert lists == {"l1": "In Progress", "l2": "Done", "l3": "Someday"}
        mock_client.get.assert_called_once_with("/boards/board123/lists", params=None)

    def test_board_not_found(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.return_value = _mock_response("not found", status_code=404)

        with pytest.raises(BoardNotFoundError):
            adapter.fetch_lists()

    def test_server_error(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.return_value = _mock_response("boom", status_code=500)

        with pytest.raises(TicketSourceError, match="500"):
            adapter.fetch_lists()

    def test_transport_error(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(TicketSourceError, match="failed"):
            adapter.fetch_lists()

    def test_non_list_payload(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.return_value = _mock_response({"error": "odd"})

        with pytest.raises(TicketSourceError, match="Expected a list"):
            adapter.fetch_lists()


@pytest.mark.unit
class TestFetchAll:
    """Tests for fetch_all."""

    def test_maps_cards_to_records(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.side_effect = [
            _mock_response(LISTS),
            _mock_response([_card("c1", "l1"), _card("c2", "l2")]),
        ]

        records = adapter.fetch_all()

        assert [r.id for r in records] == ["c1", "c2"]
        assert records[0].state == TicketState.IN_PROGRESS
        assert records[1].state == TicketState.DONE
        assert records[0].labels == frozenset({TicketLabel.BACK_END})
        assert records[0].member_ids == ("m1",)
        assert records[0].has_description is True
        assert records[0].has_labels is True

    def test_requests_cards_with_attachments(
        self, adapter: TrelloAdapter, mock_client: MagicMock
    ) -> None:
        mock_client.get.side_effect = [_mock_response(LISTS), _mock_response([])]

        adapter.fetch_all()

        cards_call = mock_client.get.call_args_list[1]
        assert cards_call.args[0] == "/boards/board123/cards"
        assert cards_call.kwargs["params"]["attachments"] == "true"

    def test_skips_untracked_lists(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        mock_client.get.side_effect = [
            _mock_response(LISTS),
            _mock_response([_card("c1", "l3"), _card("c2", "missing")]),
        ]

        assert adapter.fetch_all() == []

    def test_unknown_labels_ignored(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        """Unknown labels are dropped but still count as having labels."""
        mock_client.get.side_effect = [
            _mock_response(LISTS),
            _mock_response([_card(labels=[{"name": "Marketing"}])]),
        ]

        record = adapter.fetch_all()[0]

        assert record.labels == frozenset()
        assert record.has_labels is True

    def test_pull_request_and_dependency_attachments(
        self, adapter: TrelloAdapter, mock_client: MagicMock
    ) -> None:
        attachments = [
            {"name": "design", "url": "https://docs.example.com/d"},
            {"name": "API ticket", "url": "https://trello.com/c/dep1/api"},
            {"name": "PR", "url": "https://github.com/acme/app/pull/12"},
        ]
        mock_client.get.side_effect = [
            _mock_response(LISTS),
            _mock_response([_card(attachments=attachments)]),
        ]

        record = adapter.fetch_all()[0]

        assert record.pr_url == "https://github.com/acme/app/pull/12"
        assert record.dependency_link is not None
        assert record.dependency_link.name == "API ticket"
        assert record.dependency_link.url == "https://trello.com/c/dep1/api"

    def test_checklist_and_empty_description(
        self, adapter: TrelloAdapter, mock_client: MagicMock
    ) -> None:
        card = _card(desc="", badges={"checkItems": 5, "checkItemsChecked": 2}, labels=[])
        mock_client.get.side_effect = [_mock_response(LISTS), _mock_response([card])]

        record = adapter.fetch_all()[0]

        assert record.has_description is False
        assert record.has_labels is False
        assert record.checklist_total == 5
        assert record.checklist_done == 2
        assert record.pr_url is None
        assert record.dependency_link is None

    def test_malformed_card(self, adapter: TrelloAdapter, mock_client: MagicMock) -> None:
        card = _card()
        del card["name"]
        mock_client.get.side_effect = [_mock_response(LISTS), _mock_response([card])]

        with pytest.raises(TicketSourceError, match="Malformed card"):
            adapter.fetch_all()


@pytest.mark.unit
class TestClientLifecycle:
    """Tests for client creation and close."""

    def test_client_created_lazily(self) -> None:
        adapter = TrelloAdapter(board_id="b", api_key="k", api_token="t")
        assert adapter._client is None
        client = adapter.client
        assert isinstance(client, httpx.Client)
        assert adapter.client is client
        adapter.close()
        assert adapter._client is None
