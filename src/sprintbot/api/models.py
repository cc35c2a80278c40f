"""Pydantic models for the HTTP API."""

from datetime import date
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


class SlackReply(BaseModel):
    """Immediate reply to a slash command."""

    response_type: str = "ephemeral"
    text: str


# Sprint models


class SprintContextResponse(BaseModel):
    """Response model for the active sprint."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    start_date: date
    end_date: date
    channel_id: str
    open_ticket_count_at_start: int
    in_scope_count_at_start: int
    board: str


class SprintRecordResponse(BaseModel):
    """Response model for a closed sprint."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    start_date: date
    end_date: date
    percent_complete: float | None
    completed_count: int
    open_delta: int
    scope_delta: int


class SprintStatusResponse(BaseModel):
    """Active sprint (if any) and the closed sprints before it."""

    active: SprintContextResponse | None = None
    days_until_end: int | None = None
    remaining_time_indicator: str | None = None
    history: list[SprintRecordResponse] = []


class TriggerResultResponse(BaseModel):
    """Outcome of a handled trigger."""

    command: str
    channel_id: str
    title: str
