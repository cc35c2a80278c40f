"""Scheduler - Cadence rules that fire scheduled sprint triggers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from apscheduler.jobstores.base import BaseJobStore, JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import Engine

from sprintbot.scheduler.exceptions import InvalidCronError, RuleNotFoundError, SchedulerError
from sprintbot.scheduler.models import ScheduleAction, ScheduleChange

logger = logging.getLogger(__name__)

RULE_JOBS_TABLE = "cadence_rules"

_rule_handler: Callable[[str], None] | None = None


def fire_rule(rule_name: str) -> None:
    """Job entry point for every cadence rule.

    Jobs are persisted by reference, so this stays a module-level function
    and dispatches to whichever handler the running scheduler registered.
    """
    if _rule_handler is None:
        logger.warning("Rule %s fired with no handler registered", rule_name)
        return
    logger.info("Rule %s fired", rule_name)
    _rule_handler(rule_name)


class RuleScheduler(Protocol):
    """Create, change and delete named recurring rules."""

    def create_rule(self, name: str, cron: str) -> None: ...

    def change_rule(self, name: str, cron: str) -> None: ...

    def delete_rule(self, name: str) -> None: ...


def apply_schedule_change(scheduler: RuleScheduler, change: ScheduleChange) -> None:
    """Carry out a requested rule change."""
    match change.action:
        case ScheduleAction.CREATE:
            scheduler.create_rule(change.rule_name, change.cron or "")
        case ScheduleAction.CHANGE:
            scheduler.change_rule(change.rule_name, change.cron or "")
        case ScheduleAction.DELETE:
            scheduler.delete_rule(change.rule_name)


class CronRuleScheduler:
    """Rule scheduler backed by an APScheduler background scheduler.

    Each rule is one job whose ID is the rule name. With an engine the jobs
    live in the service database and survive restarts.
    """

    def __init__(
        self,
        on_fire: Callable[[str], None],
        engine: Engine | None = None,
        timezone: str = "UTC",
        jobstore: BaseJobStore | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            on_fire: Called with the rule name each time a rule fires.
            engine: SQLAlchemy engine for persistent job storage.
            timezone: Timezone cron expressions are evaluated in.
            jobstore: Explicit job store, overriding ``engine``.
        """
        if jobstore is None:
            if engine is not None:
                jobstore = SQLAlchemyJobStore(engine=engine, tablename=RULE_JOBS_TABLE)
            else:
                jobstore = MemoryJobStore()
        self.on_fire = on_fire
        self.timezone = timezone
        self._scheduler = BackgroundScheduler(jobstores={"default": jobstore}, timezone=timezone)

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def start(self) -> None:
        """Register the fire handler and start the background thread."""
        global _rule_handler
        _rule_handler = self.on_fire
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Cadence scheduler started (timezone=%s)", self.timezone)

    def shutdown(self) -> None:
        global _rule_handler
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Cadence scheduler stopped")
        if _rule_handler is self.on_fire:
            _rule_handler = None

    def _trigger(self, cron: str) -> CronTrigger:
        try:
            return CronTrigger.from_crontab(cron, timezone=self.timezone)
        except ValueError as e:
            raise InvalidCronError(f"Invalid cron expression '{cron}': {e}") from e

    def create_rule(self, name: str, cron: str) -> None:
        """Create (or replace) the rule called ``name``.

        Raises:
            InvalidCronError: If ``cron`` cannot be parsed.
        """
        trigger = self._trigger(cron)
        self._scheduler.add_job(
            fire_rule,
            trigger=trigger,
            args=[name],
            id=name,
            name=f"Sprint {name} cadence",
            replace_existing=True,
        )
        logger.info("Created rule %s (%s)", name, cron)

    def change_rule(self, name: str, cron: str) -> None:
        """Switch an existing rule to a new cadence.

        Raises:
            InvalidCronError: If ``cron`` cannot be parsed.
            RuleNotFoundError: If the rule does not exist.
        """
        trigger = self._trigger(cron)
        try:
            self._scheduler.reschedule_job(name, trigger=trigger)
        except JobLookupError as e:
            raise RuleNotFoundError(f"Rule {name} not found") from e
        logger.info("Changed rule %s to %s", name, cron)

    def delete_rule(self, name: str) -> None:
        """Delete a rule. Deleting a rule that does not exist only logs."""
        try:
            self._scheduler.remove_job(name)
        except JobLookupError:
            logger.warning("Rule %s already absent", name)
            return
        logger.info("Deleted rule %s", name)

    def get_rule(self, name: str) -> str | None:
        """Describe a rule's trigger, or None if it does not exist."""
        job = self._scheduler.get_job(name)
        if job is None:
            return None
        return str(job.trigger)


class InMemoryRuleScheduler:
    """Rule scheduler that only records rules. Used in tests and local runs."""

    def __init__(self) -> None:
        self.rules: dict[str, str] = {}
        self.calls: list[ScheduleChange] = []

    def create_rule(self, name: str, cron: str) -> None:
        if not cron.strip():
            raise SchedulerError("Cron expression is empty")
        self.rules[name] = cron
        self.calls.append(ScheduleChange.create(name, cron))

    def change_rule(self, name: str, cron: str) -> None:
        if name not in self.rules:
            raise RuleNotFoundError(f"Rule {name} not found")
        self.rules[name] = cron
        self.calls.append(ScheduleChange.change(name, cron))

    def delete_rule(self, name: str) -> None:
        self.rules.pop(name, None)
        self.calls.append(ScheduleChange.delete(name))
