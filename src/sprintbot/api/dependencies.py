"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated, Protocol

from fastapi import Depends

from sprintbot.config import Settings
from sprintbot.sprint import SprintOutcome, Trigger
from sprintbot.sprint.report import SprintReport  # noqa: TC001
from sprintbot.state_store import SprintStore


class Orchestrator(Protocol):
    """Interface for the SprintOrchestrator component."""

    def handle(self, trigger: Trigger) -> SprintOutcome:
        """Run a trigger through the sprint lifecycle."""
        ...


class Notifier(Protocol):
    """Interface for the chat notifier."""

    def send(self, channel_id: str, report: SprintReport) -> str:
        """Post a report to a channel."""
        ...

    def respond(self, response_url: str, text: str, ephemeral: bool = True) -> None:
        """Reply through an interaction's response URL."""
        ...


# Global Settings instance (initialized on app startup)
_settings: Settings | None = None


def init_settings(settings: Settings) -> Settings:
    """Initialize the global Settings instance."""
    global _settings  # noqa: PLW0603
    _settings = settings
    return _settings


def get_settings() -> Generator[Settings, None, None]:
    """Dependency that provides the Settings instance."""
    if _settings is None:
        raise RuntimeError("Settings not initialized. Call init_settings() first.")
    yield _settings


SettingsDep = Annotated[Settings, Depends(get_settings)]

# Global SprintStore instance (initialized on app startup)
_sprint_store: SprintStore | None = None


def init_sprint_store(store: SprintStore) -> SprintStore:
    """Initialize the global SprintStore instance."""
    global _sprint_store  # noqa: PLW0603
    _sprint_store = store
    return _sprint_store


def get_sprint_store() -> Generator[SprintStore, None, None]:
    """Dependency that provides the SprintStore instance."""
    if _sprint_store is None:
        raise RuntimeError("SprintStore not initialized. Call init_sprint_store() first.")
    yield _sprint_store


SprintStoreDep = Annotated[SprintStore, Depends(get_sprint_store)]

# Global Orchestrator instance (initialized on app startup)
_orchestrator: Orchestrator | None = None


def init_orchestrator(orchestrator: Orchestrator) -> None:
    """Initialize the global Orchestrator instance."""
    global _orchestrator  # noqa: PLW0603
    _orchestrator = orchestrator


def get_orchestrator() -> Generator[Orchestrator, None, None]:
    """Dependency that provides the Orchestrator instance."""
    if _orchestrator is None:
        raise RuntimeError("Orchestrator not initialized. Call init_orchestrator() first.")
    yield _orchestrator


OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]

# Global Notifier instance (initialized on app startup)
_notifier: Notifier | None = None


def init_notifier(notifier: Notifier) -> None:
    """Initialize the global Notifier instance."""
    global _notifier  # noqa: PLW0603
    _notifier = notifier


def get_notifier() -> Generator[Notifier, None, None]:
    """Dependency that provides the Notifier instance."""
    if _notifier is None:
        raise RuntimeError("Notifier not initialized. Call init_notifier() first.")
    yield _notifier


NotifierDep = Annotated[Notifier, Depends(get_notifier)]


def close_all() -> None:
    """Drop every global instance."""
    global _settings, _sprint_store, _orchestrator, _notifier  # noqa: PLW0603
    _settings = None
    _sprint_store = None
    _orchestrator = None
    _notifier = None


def dispatch_trigger(orchestrator: Orchestrator, notifier: Notifier, trigger: Trigger) -> SprintOutcome:
    """Handle a trigger and post the resulting report to its channel."""
    outcome = orchestrator.handle(trigger)
    notifier.send(outcome.channel_id, outcome.report)
    return outcome
