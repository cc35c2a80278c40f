"""Slack endpoints: slash commands and interactive block actions."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.concurrency import run_in_threadpool

from sprintbot.api.dependencies import NotifierDep, OrchestratorDep, dispatch_trigger
from sprintbot.api.models import SlackReply
from sprintbot.api.security import verified_slack_body
from sprintbot.notifications import NotificationError
from sprintbot.scheduler import SchedulerError
from sprintbot.sprint import CommandRejectedError, ManualTrigger
from sprintbot.state_store import StateStoreError
from sprintbot.tickets import PullRequestError, TicketSourceError

logger = logging.getLogger("sprintbot.api.slack")

router = APIRouter(prefix="/slack", tags=["slack"])

VerifiedBody = Annotated[bytes, Depends(verified_slack_body)]

# Collaborator failures reported back to the user instead of a bare 500
COLLABORATOR_ERRORS = (
    TicketSourceError,
    PullRequestError,
    StateStoreError,
    SchedulerError,
    NotificationError,
)


def _form(body: bytes) -> dict[str, str]:
    fields = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] for key, values in fields.items()}


def parse_block_action(payload: dict[str, Any]) -> ManualTrigger:
    """Turn a block action payload into a trigger.

    The first action's ID is the command and its value the command text.

    Raises:
        ValueError: If the payload has no usable action.
    """
    if not isinstance(payload, dict):
        raise ValueError("Block action payload must be an object")
    actions = payload.get("actions")
    if not isinstance(actions, list) or not actions:
        raise ValueError("Block action payload has no actions")
    action = actions[0]
    if not isinstance(action, dict):
        raise ValueError("Block action must be an object")
    channel = payload.get("channel")
    return ManualTrigger(
        command=action.get("action_id", ""),
        text=action.get("value", ""),
        channel_id=channel.get("id", "") if isinstance(channel, dict) else "",
        response_url=payload.get("response_url"),
    )


@router.post("/commands", response_model=SlackReply)
async def slash_command(
    body: VerifiedBody, orchestrator: OrchestratorDep, notifier: NotifierDep
) -> SlackReply:
    """Handle a sprint slash command."""
    try:
        form = _form(body)
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid command body: {e}"
        ) from e
    trigger = ManualTrigger(
        command=form.get("command", ""),
        text=form.get("text", ""),
        channel_id=form.get("channel_id", ""),
        response_url=form.get("response_url"),
    )
    logger.info("Slash command %s from channel %s", trigger.command, trigger.channel_id)

    try:
        outcome = await run_in_threadpool(dispatch_trigger, orchestrator, notifier, trigger)
    except CommandRejectedError as e:
        return SlackReply(text=e.reason)
    except COLLABORATOR_ERRORS as e:
        logger.exception("Slash command %s failed", trigger.command)
        return SlackReply(text=f"Sprint command failed: {e}")

    return SlackReply(text=f"Posted: {outcome.report.title}")


@router.post("/actions")
async def block_action(
    body: VerifiedBody, orchestrator: OrchestratorDep, notifier: NotifierDep
) -> Response:
    """Handle a button click, such as confirming a sprint kickoff."""
    try:
        payload = json.loads(_form(body).get("payload", ""))
        trigger = parse_block_action(payload)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid action payload: {e}"
        ) from e
    logger.info("Block action %s from channel %s", trigger.command, trigger.channel_id)

    try:
        await run_in_threadpool(dispatch_trigger, orchestrator, notifier, trigger)
    except CommandRejectedError as e:
        if trigger.response_url:
            await run_in_threadpool(notifier.respond, trigger.response_url, e.reason)
    except COLLABORATOR_ERRORS as e:
        logger.exception("Block action %s failed", trigger.command)
        if trigger.response_url:
            await run_in_threadpool(
                notifier.respond, trigger.response_url, f"Sprint command failed: {e}"
            )

    return Response(status_code=status.HTTP_200_OK)
