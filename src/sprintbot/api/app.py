"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from sprintbot import __version__
from sprintbot.api.dependencies import (
    close_all,
    dispatch_trigger,
    init_notifier,
    init_orchestrator,
    init_settings,
    init_sprint_store,
)
from sprintbot.api.models import APIResponse
from sprintbot.api.routes import slack, triggers
from sprintbot.config import Settings, today_in
from sprintbot.logging import setup_logging
from sprintbot.notifications import NotificationError, SlackNotifier
from sprintbot.scheduler import CronRuleScheduler, SchedulerError
from sprintbot.sprint import (
    CommandRejectedError,
    ScheduledTrigger,
    SprintError,
    SprintOrchestrator,
)
from sprintbot.state_store import Database, SprintStore, SqlKeyValueStore, StateStoreError
from sprintbot.tickets import (
    PullRequestClient,
    PullRequestError,
    TicketSourceError,
    TrelloAdapter,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger("sprintbot.api")

REQUIRED_SETTINGS = (
    "trello_api_key",
    "trello_api_token",
    "trello_board_id",
    "github_token",
    "slack_bot_token",
    "slack_signing_secret",
)


def run_scheduled(orchestrator: SprintOrchestrator, notifier: SlackNotifier, rule_name: str) -> None:
    """Handle a cadence rule firing."""
    try:
        dispatch_trigger(orchestrator, notifier, ScheduledTrigger())
    except CommandRejectedError as e:
        logger.warning("Rule %s fired but was rejected: %s", rule_name, e.reason)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_dir, level=settings.log_level)
    settings.require(*REQUIRED_SETTINGS)

    # Startup
    init_settings(settings)
    db = Database(settings.db_path)
    store = init_sprint_store(SprintStore(SqlKeyValueStore(db)))
    tickets = TrelloAdapter(
        board_id=settings.trello_board_id,
        api_key=settings.trello_api_key,
        api_token=settings.trello_api_token,
        base_url=settings.trello_base_url,
    )
    pull_requests = PullRequestClient(token=settings.github_token, base_url=settings.github_base_url)
    notifier = SlackNotifier(token=settings.slack_bot_token, base_url=settings.slack_base_url)
    init_notifier(notifier)

    scheduler = CronRuleScheduler(
        on_fire=lambda rule_name: run_scheduled(orchestrator, notifier, rule_name),
        engine=db.engine,
        timezone=settings.timezone,
    )
    orchestrator = SprintOrchestrator(
        store=store,
        scheduler=scheduler,
        ticket_source=tickets,
        pr_source=pull_requests,
        board=settings.trello_board_id,
        board_url=settings.board_url,
        daily_cron=settings.daily_cron,
        review_cron=settings.review_cron,
        pr_fetch_workers=settings.pr_fetch_workers,
        clock=partial(today_in, settings.timezone),
    )
    init_orchestrator(orchestrator)
    scheduler.start()

    yield
    # Shutdown
    scheduler.shutdown()
    tickets.close()
    pull_requests.close()
    notifier.close()
    db.close()
    close_all()


def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=error).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map sprint and collaborator errors to APIResponse bodies."""

    @app.exception_handler(CommandRejectedError)
    async def command_rejected_handler(_request: Request, exc: CommandRejectedError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, exc.reason)

    @app.exception_handler(SprintError)
    async def sprint_error_handler(_request: Request, exc: SprintError) -> JSONResponse:
        logger.error("Sprint error: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(TicketSourceError)
    async def ticket_source_error_handler(_request: Request, exc: TicketSourceError) -> JSONResponse:
        logger.error("Ticket source error: %s", exc)
        return _error_response(status.HTTP_502_BAD_GATEWAY, f"Ticket source error: {exc}")

    @app.exception_handler(PullRequestError)
    async def pull_request_error_handler(_request: Request, exc: PullRequestError) -> JSONResponse:
        logger.error("Pull request error: %s", exc)
        return _error_response(status.HTTP_502_BAD_GATEWAY, f"Pull request error: {exc}")

    @app.exception_handler(NotificationError)
    async def notification_error_handler(_request: Request, exc: NotificationError) -> JSONResponse:
        logger.error("Notification error: %s", exc)
        return _error_response(status.HTTP_502_BAD_GATEWAY, f"Notification error: {exc}")

    @app.exception_handler(StateStoreError)
    async def state_store_error_handler(_request: Request, exc: StateStoreError) -> JSONResponse:
        logger.error("State store error: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, f"State store error: {exc}")

    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(_request: Request, exc: SchedulerError) -> JSONResponse:
        logger.error("Scheduler error: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Scheduler error: {exc}")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Sprintbot API",
        description="Sprint reports from the ticket board, delivered to Slack",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings if settings is not None else Settings()

    register_exception_handlers(app)

    app.include_router(slack.router)
    app.include_router(triggers.router, prefix="/api/v1")

    return app


# Default app instance (uvicorn sprintbot.api.app:app)
app = create_app()


def main() -> None:
    """Serve the default app on the configured host and port."""
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
