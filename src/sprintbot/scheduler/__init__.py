"""Scheduler - Recurring cadence rules for the active sprint."""

from sprintbot.scheduler.exceptions import InvalidCronError, RuleNotFoundError, SchedulerError
from sprintbot.scheduler.models import ScheduleAction, ScheduleChange
from sprintbot.scheduler.scheduler import (
    CronRuleScheduler,
    InMemoryRuleScheduler,
    RuleScheduler,
    apply_schedule_change,
)

__all__ = [
    "CronRuleScheduler",
    "InMemoryRuleScheduler",
    "InvalidCronError",
    "RuleNotFoundError",
    "RuleScheduler",
    "ScheduleAction",
    "ScheduleChange",
    "SchedulerError",
    "apply_schedule_change",
]
