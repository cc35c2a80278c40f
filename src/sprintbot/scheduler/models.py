"""Data models for the Scheduler module."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ScheduleAction(str, Enum):
    """What to do to a cadence rule."""

    CREATE = "create"
    CHANGE = "change"
    DELETE = "delete"


@dataclass(frozen=True)
class ScheduleChange:
    """A requested change to the cadence rule of a sprint.

    Attributes:
        action: Create, change or delete.
        rule_name: Rule identifier; the sprint name.
        cron: Five-field cron expression. Unused for deletes.
    """

    action: ScheduleAction
    rule_name: str
    cron: str | None = None

    @classmethod
    def create(cls, rule_name: str, cron: str) -> ScheduleChange:
        return cls(ScheduleAction.CREATE, rule_name, cron)

    @classmethod
    def change(cls, rule_name: str, cron: str) -> ScheduleChange:
        return cls(ScheduleAction.CHANGE, rule_name, cron)

    @classmethod
    def delete(cls, rule_name: str) -> ScheduleChange:
        return cls(ScheduleAction.DELETE, rule_name)
