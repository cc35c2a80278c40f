"""Scheduled trigger and sprint status endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from sprintbot.api.dependencies import (
    NotifierDep,
    OrchestratorDep,
    SettingsDep,
    SprintStoreDep,
    dispatch_trigger,
)
from sprintbot.api.models import (
    APIResponse,
    SprintContextResponse,
    SprintRecordResponse,
    SprintStatusResponse,
    TriggerResultResponse,
)
from sprintbot.config import today_in
from sprintbot.sprint import ScheduledTrigger

logger = logging.getLogger("sprintbot.api.triggers")

router = APIRouter(tags=["sprint"])


@router.post("/triggers/scheduled", response_model=APIResponse[TriggerResultResponse])
async def scheduled_trigger(
    orchestrator: OrchestratorDep, notifier: NotifierDep
) -> APIResponse[TriggerResultResponse]:
    """Run the scheduled daily summary or review now."""
    outcome = await run_in_threadpool(dispatch_trigger, orchestrator, notifier, ScheduledTrigger())
    return APIResponse(
        data=TriggerResultResponse(
            command=type(outcome.command).__name__,
            channel_id=outcome.channel_id,
            title=outcome.report.title,
        )
    )


@router.get("/sprint", response_model=APIResponse[SprintStatusResponse])
def get_sprint(store: SprintStoreDep, settings: SettingsDep) -> APIResponse[SprintStatusResponse]:
    """Get the active sprint and the sprint history."""
    context = store.get_active_sprint()
    history = store.get_history()
    status = SprintStatusResponse(
        history=[SprintRecordResponse.model_validate(r.model_dump()) for r in history.history]
    )
    if context is not None:
        today = today_in(settings.timezone)
        status.active = SprintContextResponse.model_validate(context.model_dump())
        status.days_until_end = context.days_until_end(today)
        status.remaining_time_indicator = context.remaining_time_indicator(today)
    return APIResponse(data=status)
