"""SchedulerEngine — the minute-tick loop that dispatches due tasks."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import inspect
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.config import settings
from src.scheduler.models import TaskOutcome
from src.scheduler.schedule import truncate_to_minute

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.scheduler.models import ScheduledTask
    from src.scheduler.registry import TaskSource

logger = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    TICKING = "ticking"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _cancel_requested() -> bool:
    """True when someone called ``cancel()`` on the running task."""
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class SchedulerEngine:
    """Runs due tasks once per tick until stopped.

    Each tick truncates the clock to the minute, re-reads the task set from
    *source*, runs every task whose schedule matches concurrently and waits
    for all of them.  Only then does it sleep *interval* seconds, so a slow
    tick pushes later ticks back rather than overlapping them.  Task failures
    and tick-level failures are logged and never stop the loop.

    Args:
        source: TaskSource queried on every tick.
        interval: Seconds to sleep between ticks (default from settings).
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        source: TaskSource,
        interval: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._interval = interval if interval is not None else settings.scheduler_tick_seconds
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._stop_event = asyncio.Event()
        self._loop_task: asyncio.Task | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the tick loop as a background task."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._state = SchedulerState.IDLE
        self._loop_task = asyncio.create_task(self._run(), name="scheduler-loop")
        logger.info("Scheduler started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        """Request a stop and wait for the loop to exit.

        An in-flight dispatch is allowed to finish first.
        """
        if self._loop_task is None:
            self._state = SchedulerState.STOPPED
            return
        self._stop_event.set()
        await self._loop_task
        self._loop_task = None
        logger.info("Scheduler stopped")

    # -- Tick ------------------------------------------------------------------

    async def run_tick(self, now: datetime | None = None) -> list[TaskOutcome]:
        """Run one tick and return the outcome of every task dispatched."""
        self._state = SchedulerState.TICKING
        try:
            instant = truncate_to_minute(now or self._clock())
            logger.debug("Checking schedules for %s UTC", instant.strftime("%Y-%m-%d %H:%M"))

            tasks = self._source.current_tasks()
            if inspect.isawaitable(tasks):
                tasks = await tasks
            due = [task for task in tasks if task.is_due(instant)]
            if not due:
                return []
            if self._stop_event.is_set():
                logger.info("Stop requested; skipping %d due task(s)", len(due))
                return []

            self._state = SchedulerState.DISPATCHING
            logger.info("Found %d task(s) due now, executing concurrently", len(due))
            outcomes = await asyncio.gather(*(self._execute(task) for task in due))

            failed = sum(1 for outcome in outcomes if not outcome.success)
            logger.info(
                "Tick complete: %d succeeded, %d failed",
                len(outcomes) - failed,
                failed,
            )
            return list(outcomes)
        finally:
            self._state = SchedulerState.IDLE

    async def _execute(self, task: ScheduledTask) -> TaskOutcome:
        logger.info("Executing task: '%s' (%s)", task.name, task.schedule)
        try:
            await task.execute()
        except asyncio.CancelledError as exc:
            if _cancel_requested():
                raise
            logger.error("Task '%s' was cancelled", task.name)
            return TaskOutcome(name=task.name, error=exc)
        except Exception as exc:
            logger.exception("Task '%s' failed to execute", task.name)
            return TaskOutcome(name=task.name, error=exc)
        logger.info("Task executed successfully: '%s'", task.name)
        return TaskOutcome(name=task.name)

    # -- Loop ------------------------------------------------------------------

    async def _run(self) -> None:
        logger.info("Scheduler loop running, checking schedules every %ss", self._interval)
        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_tick()
                except asyncio.CancelledError:
                    if _cancel_requested():
                        raise
                    logger.exception("Scheduler tick was cancelled")
                except Exception:
                    logger.exception("Unhandled error during scheduler tick")

                await self._sleep()
        finally:
            self._state = SchedulerState.STOPPED
            logger.info("Scheduler loop exiting")

    async def _sleep(self) -> None:
        """Wait out the interval, waking early if a stop is requested."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
