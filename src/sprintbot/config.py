"""Runtime configuration for the Sprintbot service.

Settings are read from the environment (prefix ``SPRINTBOT_``) or a ``.env``
file at the entry point only, then handed to components as plain arguments.
"""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DAILY_CRON = "0 19 * * *"
DEFAULT_REVIEW_CRON = "0 16 * * *"


class ConfigError(Exception):
    """Raised when required configuration is missing."""


class Settings(BaseSettings):
    """Service settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPRINTBOT_",
        env_file=".env",
        extra="ignore",
    )

    # Ticket tracker
    trello_api_key: str = ""
    trello_api_token: str = ""
    trello_board_id: str = ""
    trello_base_url: str = "https://api.trello.com/1"

    # Code review
    github_token: str = ""
    github_base_url: str = "https://api.github.com"

    # Chat
    slack_bot_token: str = ""
    slack_signing_secret: str = ""
    slack_base_url: str = "https://slack.com/api"

    # Storage and scheduling
    db_path: str = "sprintbot.db"
    daily_cron: str = DEFAULT_DAILY_CRON
    review_cron: str = DEFAULT_REVIEW_CRON
    timezone: str = "UTC"

    pr_fetch_workers: int = Field(default=8, ge=1, le=32)

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000

    log_dir: str = "logs"
    log_level: str = "INFO"

    @property
    def board_url(self) -> str:
        """Public URL of the tracked board."""
        return f"https://trello.com/b/{self.trello_board_id}"

    def require(self, *names: str) -> None:
        """Ensure the named settings are non-empty.

        Raises:
            ConfigError: If any named setting is empty.
        """
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_names = ", ".join(f"SPRINTBOT_{name.upper()}" for name in missing)
            raise ConfigError(f"Missing required settings: {env_names}")


def today_in(timezone: str) -> date:
    """Current date in the given IANA timezone."""
    return datetime.now(ZoneInfo(timezone)).date()
