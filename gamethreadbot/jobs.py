from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Tuple

from apscheduler.triggers.cron import CronTrigger

from .config import logger


Action = Callable[[], Awaitable[Any]]


_CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")


def _crontab_weekday(part: str) -> str:
    # crontab counts weekdays from Sunday=0 (7 is Sunday too); APScheduler counts from Monday=0
    if not part.replace("-", "").isdigit():
        return part
    bounds = [int(x) for x in part.split("-", 1)]
    start, end = bounds[0], bounds[-1]
    if start > end or end > 7:
        raise ValueError(f"Invalid day of week '{part}'")
    days = sorted({d % 7 for d in range(start, end + 1)})
    return ",".join(_CRON_WEEKDAYS[d] for d in days)


def crontab_trigger(cron_expression: str, timezone: str) -> CronTrigger:
    """CronTrigger for a standard 5-field crontab expression."""
    fields = cron_expression.split()
    if len(fields) != 5:
        raise ValueError(f"Wrong number of fields; got {len(fields)}, expected 5")
    minute, hour, day, month, day_of_week = fields
    day_of_week = ",".join(_crontab_weekday(p) for p in day_of_week.split(","))
    return CronTrigger(
        minute=minute, hour=hour, day=day, month=month, day_of_week=day_of_week, timezone=timezone
    )


def game_day_fire_time(game_day: date, tz: tzinfo, hour: int = 5) -> datetime:
    """Wall-clock moment a game-day check runs: `hour`:00 local on the game's date."""
    return datetime.combine(game_day, time(hour=hour), tzinfo=tz)


@dataclass
class Job:
    """A one-shot trigger: run `action` once at `fire_time`."""
    key: str
    fire_time: datetime
    action: Action
    run_if_overdue: bool = True
    task: Optional[asyncio.Task] = field(default=None, repr=False)
    running: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return self.task is not None and not self.task.done() and not self.running


class JobScheduler:
    """Registry of time-triggered jobs keyed by a stable identifier.

    All registry mutations happen without awaiting, so on the single event
    loop a firing job never observes a half-applied reconciliation.
    """

    def __init__(self, tz: tzinfo, clock: Optional[Callable[[], datetime]] = None):
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(tz))
        self._jobs: Dict[str, Job] = {}
        self._detached: Set[asyncio.Task] = set()

        self._weekly_task: Optional[asyncio.Task] = None
        self._weekly_trigger: Optional[CronTrigger] = None
        self._weekly_last_fire: Optional[datetime] = None
        self._weekly_run: Optional[asyncio.Task] = None

    def now(self) -> datetime:
        return self._clock().astimezone(self.tz)

    # ------------------------------------------------------------------
    # Weekly refresh
    # ------------------------------------------------------------------

    def register_weekly(self, cron_expression: str, timezone: str, action: Action) -> bool:
        if self._weekly_task is not None and not self._weekly_task.done():
            logger.warning("Weekly task already running.")
            return False

        self._weekly_trigger = crontab_trigger(cron_expression, timezone)
        self._weekly_last_fire = None
        self._weekly_task = asyncio.create_task(self._weekly_loop(action))
        logger.info(f"Registered weekly job '{cron_expression}' ({timezone}), next run: {self.next_weekly_run()}")
        return True

    def next_weekly_run(self) -> Optional[datetime]:
        if self._weekly_trigger is None or self._weekly_task is None or self._weekly_task.done():
            return None
        now = self.now()
        if self._weekly_last_fire is not None and now <= self._weekly_last_fire:
            now = self._weekly_last_fire + timedelta(seconds=1)
        next_fire = self._weekly_trigger.get_next_fire_time(None, now)
        return next_fire.astimezone(self.tz) if next_fire else None

    async def _weekly_loop(self, action: Action) -> None:
        while True:
            next_fire = self.next_weekly_run()
            if next_fire is None:
                logger.warning("Weekly trigger has no further fire times, stopping")
                return
            delay = (next_fire - self.now()).total_seconds()
            logger.debug(f"Next weekly run in {delay:.0f}s at {next_fire.isoformat()}")
            if delay > 0:
                await asyncio.sleep(delay)

            self._weekly_last_fire = next_fire
            self._weekly_run = asyncio.create_task(self._fire(action, "weekly refresh"))
            # A stop while the refresh is running must not interrupt it
            await asyncio.shield(self._weekly_run)

    # ------------------------------------------------------------------
    # Per-game jobs
    # ------------------------------------------------------------------

    def has_task(self, key: str) -> bool:
        return key in self._jobs

    def get_job(self, key: str) -> Optional[Job]:
        return self._jobs.get(key)

    def keys(self) -> Set[str]:
        return set(self._jobs)

    def add_task(self, key: str, fire_time: datetime, action: Action, run_if_overdue: bool = True) -> bool:
        """Register a job unless the key already exists. Returns True if added."""
        if key in self._jobs:
            return False
        job = Job(key=key, fire_time=fire_time, action=action, run_if_overdue=run_if_overdue)
        self._jobs[key] = job
        self._start(job)
        return True

    def remove_task(self, key: str) -> bool:
        job = self._jobs.pop(key, None)
        if job is None:
            return False
        self._cancel(job)
        return True

    def reconcile(self, desired: Mapping[str, Tuple[datetime, Action]]) -> Tuple[List[str], List[str]]:
        """Bring the registry in line with `desired` by set difference.

        Keys only in `desired` are added, keys only in the registry are
        removed, and keys whose fire time moved are rescheduled. Jobs for
        unchanged keys keep their timers.
        """
        existing = set(self._jobs)
        wanted = set(desired)

        to_remove = existing - wanted
        to_add = wanted - existing
        moved = {
            key for key in existing & wanted
            if self._jobs[key].fire_time != desired[key][0]
        }

        for key in sorted(to_remove | moved):
            self._cancel(self._jobs.pop(key))
            if key in to_remove:
                logger.info(f"Removed obsolete game day job: {key}")

        for key in sorted(to_add | moved):
            fire_time, action = desired[key]
            job = Job(key=key, fire_time=fire_time, action=action)
            self._jobs[key] = job
            self._start(job)
            if key in moved:
                logger.info(f"Rescheduled game day job {key} to {fire_time.isoformat()}")

        return sorted(to_add), sorted(to_remove)

    def stop_all(self) -> None:
        if self._weekly_task is not None:
            self._weekly_task.cancel()
            self._weekly_task = None
        self._weekly_trigger = None

        for job in self._jobs.values():
            self._cancel(job)
        count = len(self._jobs)
        self._jobs.clear()
        logger.info(f"Scheduled jobs stopped ({count} game day job(s) cancelled)")

    def _start(self, job: Job) -> None:
        delay = (job.fire_time - self.now()).total_seconds()
        if delay <= 0 and not job.run_if_overdue:
            job.fired = True
            logger.info(f"Registered game day job {job.key} (fire time {job.fire_time.isoformat()} already passed)")
            return
        job.task = asyncio.create_task(self._run_job(job, delay))
        logger.info(f"Scheduled game day job {job.key} at {job.fire_time.isoformat()}")

    def _cancel(self, job: Job) -> None:
        if job.task is None or job.task.done():
            return
        if job.running:
            # Already firing: let it finish, it just stops being tracked
            logger.info(f"Game day job {job.key} is running; detaching instead of cancelling")
            self._detached.add(job.task)
            job.task.add_done_callback(self._detached.discard)
            return
        job.task.cancel()

    async def _run_job(self, job: Job, delay: float) -> None:
        try:
            if delay > 0:
                logger.debug(f"Game day job {job.key} sleeping {delay:.0f}s")
                await asyncio.sleep(delay)
            else:
                logger.info(f"Running overdue game day job {job.key} immediately (was {-delay:.0f}s late)")
        except asyncio.CancelledError:
            logger.debug(f"Cancelled game day job {job.key}")
            raise

        job.running = True
        try:
            await self._fire(job.action, f"game day job {job.key}")
        finally:
            job.running = False
            job.fired = True

    async def _fire(self, action: Action, description: str) -> None:
        logger.info(f"⏰ Running {description}")
        try:
            await action()
        except Exception as e:
            logger.error(f"❌ {description} failed: {e}", exc_info=True)
