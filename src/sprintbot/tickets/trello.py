"""TrelloAdapter - Reads sprint tickets from a Trello board."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sprintbot.logging import sanitize_for_log, truncate_output
from sprintbot.tickets.exceptions import BoardNotFoundError, TicketSourceError
from sprintbot.tickets.models import (
    TicketLabel,
    TicketLink,
    TicketSourceRecord,
    TicketState,
)

logger = logging.getLogger("sprintbot.tickets.trello")

CARD_FIELDS = "badges,name,desc,idList,idMembers,url,labels"


def is_pull_request_url(url: str) -> bool:
    return "github.com" in url and "/pull/" in url


def is_card_url(url: str) -> bool:
    return "trello.com/c/" in url


class TrelloAdapter:
    """Adapter for a Trello board used as the sprint ticket source.

    Lists map onto ``TicketState`` by name; cards in any other list are
    ignored.
    """

    def __init__(
        self,
        board_id: str,
        api_key: str,
        api_token: str,
        base_url: str = "https://api.trello.com/1",
    ) -> None:
        """Initialize Trello Adapter.

        Args:
            board_id: Trello board ID (or short link)
            api_key: Trello API key
            api_token: Trello API token with read access to the board
            base_url: Trello REST API URL (for testing)
        """
        self.board_id = board_id
        self.api_key = api_key
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for the Trello API."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                params={"key": self.api_key, "token": self.api_token},
                headers={"Accept": "application/json"},
                timeout=30.0,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _get(self, path: str, params: dict[str, str] | None = None) -> list[dict[str, Any]]:
        """Issue a GET against the board API.

        Raises:
            BoardNotFoundError: If the board does not exist.
            TicketSourceError: On transport failure or unexpected response.
        """
        try:
            response = self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise TicketSourceError(
                f"Trello request to {path} failed: {sanitize_for_log(str(e))}"
            ) from e

        if response.status_code == 404:
            raise BoardNotFoundError(f"Board {self.board_id} not found")
        if response.status_code != 200:
            raise TicketSourceError(
                f"Trello request to {path} failed: {response.status_code} - "
                f"{truncate_output(response.text, 500)}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TicketSourceError(f"Invalid JSON from Trello for {path}") from e

        if not isinstance(data, list):
            raise TicketSourceError(f"Expected a list from Trello for {path}")
        return data

    def fetch_lists(self) -> dict[str, str]:
        """Get the board's lists.

        Returns:
            Mapping of list ID to list name.
        """
        lists = self._get(f"/boards/{self.board_id}/lists")
        return {item["id"]: item["name"] for item in lists}

    def fetch_all(self) -> list[TicketSourceRecord]:
        """Fetch every card that sits in a tracked list.

        Returns:
            One record per card, in board order.

        Raises:
            TicketSourceError: If the board cannot be read.
        """
        list_names = self.fetch_lists()
        cards = self._get(
            f"/boards/{self.board_id}/cards",
            params={"fields": CARD_FIELDS, "attachments": "true"},
        )

        records = []
        for card in cards:
            list_name = list_names.get(card.get("idList", ""), "")
            state = TicketState.from_list_name(list_name)
            if state is None:
                logger.debug("Skipping card %s in untracked list '%s'", card.get("id"), list_name)
                continue
            try:
                records.append(self._card_to_record(card, state))
            except KeyError as e:
                raise TicketSourceError(f"Malformed card from Trello: missing {e}") from e

        logger.info("Fetched %d tickets from board %s", len(records), self.board_id)
        return records

    def _card_to_record(self, card: dict[str, Any], state: TicketState) -> TicketSourceRecord:
        raw_labels = card.get("labels") or []
        labels = frozenset(
            label
            for label in (TicketLabel.from_name(raw.get("name", "")) for raw in raw_labels)
            if label is not None
        )
        attachments = card.get("attachments") or []
        badges = card.get("badges") or {}

        pr_url = next(
            (a["url"] for a in attachments if is_pull_request_url(a.get("url", ""))),
            None,
        )
        dependency = next(
            (a for a in attachments if is_card_url(a.get("url", ""))),
            None,
        )
        dependency_link = None
        if dependency is not None:
            dependency_link = TicketLink(
                name=dependency.get("name") or dependency["url"],
                url=dependency["url"],
            )

        return TicketSourceRecord(
            id=card["id"],
            name=card["name"],
            state=state,
            url=card["url"],
            member_ids=tuple(card.get("idMembers") or ()),
            has_description=bool(card.get("desc")),
            has_labels=bool(raw_labels),
            labels=labels,
            checklist_total=int(badges.get("checkItems", 0)),
            checklist_done=int(badges.get("checkItemsChecked", 0)),
            pr_url=pr_url,
            dependency_link=dependency_link,
        )
