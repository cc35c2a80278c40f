"""HTTP entry point for Sprintbot: Slack endpoints and the sprint API."""

from sprintbot.api.app import app, create_app
from sprintbot.api.models import APIResponse, SlackReply

__all__ = [
    "APIResponse",
    "SlackReply",
    "app",
    "create_app",
]
