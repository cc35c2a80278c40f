"""Exceptions for the cadence rule scheduler."""


class SchedulerError(Exception):
    """Base exception for scheduler errors."""


class InvalidCronError(SchedulerError):
    """Cron expression could not be parsed."""


class RuleNotFoundError(SchedulerError):
    """No rule exists with the given name."""
