"""Notifications - Render sprint reports as Slack blocks and deliver them."""

from sprintbot.notifications.blocks import render_blocks, render_ticket
from sprintbot.notifications.exceptions import NotificationError
from sprintbot.notifications.slack import SlackNotifier

__all__ = [
    "NotificationError",
    "SlackNotifier",
    "render_blocks",
    "render_ticket",
]
