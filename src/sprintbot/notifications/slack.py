"""SlackNotifier - Delivers sprint reports and replies to Slack."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sprintbot.logging import truncate_output
from sprintbot.notifications.blocks import render_blocks
from sprintbot.notifications.exceptions import NotificationError
from sprintbot.sprint.report import SprintReport

logger = logging.getLogger("sprintbot.notifications.slack")


class SlackNotifier:
    """Posts messages through the Slack Web API."""

    def __init__(self, token: str, base_url: str = "https://slack.com/api") -> None:
        """Initialize the notifier.

        Args:
            token: Slack bot token (xoxb-...)
            base_url: Slack Web API URL (for testing)
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for the Slack API."""
        if self._client is None:
            self._client = httpx.Client(
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
                timeout=30.0,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            response = self.client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(f"Slack request failed: {e}") from e
        if response.status_code != 200:
            raise NotificationError(
                f"Slack request failed: {response.status_code} - "
                f"{truncate_output(response.text, 500)}"
            )
        return response

    def send(self, channel_id: str, report: SprintReport) -> str:
        """Post a report to a channel.

        Args:
            channel_id: Slack channel ID.
            report: Report to render.

        Returns:
            Timestamp of the posted message.

        Raises:
            NotificationError: If Slack rejects the message.
        """
        payload = {
            "channel": channel_id,
            "text": report.title,
            "blocks": render_blocks(report),
            "unfurl_links": False,
        }
        response = self._post(f"{self.base_url}/chat.postMessage", payload)
        data = response.json()
        if not data.get("ok"):
            raise NotificationError(f"Slack rejected message: {data.get('error', 'unknown error')}")

        logger.info("Posted '%s' to %s", report.title, channel_id)
        return str(data.get("ts", ""))

    def respond(self, response_url: str, text: str, ephemeral: bool = True) -> None:
        """Reply through an interaction's response URL.

        Raises:
            NotificationError: If the reply cannot be delivered.
        """
        payload = {
            "response_type": "ephemeral" if ephemeral else "in_channel",
            "text": text,
        }
        self._post(response_url, payload)
        logger.debug("Replied via response URL: %s", text)
