"""Task registry — the source the scheduler pulls its tasks from each tick."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, runtime_checkable

from src.scheduler.models import FunctionTask, ScheduledTask

logger = logging.getLogger(__name__)

TaskAction = Callable[[], Awaitable[None]]


@runtime_checkable
class TaskSource(Protocol):
    """Anything that can hand the scheduler its current set of tasks."""

    def current_tasks(self) -> Sequence[ScheduledTask]:
        """Return the tasks to consider on this tick."""
        ...


class TaskRegistry:
    """In-process catalog of scheduled tasks.

    Usage::

        registry = TaskRegistry()
        registry.register(DailyMaintenanceTask(store))

        @registry.task("Nightly export", "Daily@02:15")
        async def nightly_export() -> None:
            ...
    """

    def __init__(self) -> None:
        self._tasks: dict[str, ScheduledTask] = {}

    def register(self, task: ScheduledTask) -> ScheduledTask:
        """Add *task*, replacing any task already registered under its name."""
        if task.spec is None:
            logger.warning(
                "Task '%s' has a malformed schedule %r and will never run",
                task.name,
                task.schedule,
            )
        if task.name in self._tasks:
            logger.warning("Replacing scheduled task: %s", task.name)
        self._tasks[task.name] = task
        logger.info("Registered scheduled task: %s (%s)", task.name, task.schedule)
        return task

    def task(self, name: str, schedule: str) -> Callable[[TaskAction], TaskAction]:
        """Decorator to register a coroutine function as a scheduled task."""

        def decorator(fn: TaskAction) -> TaskAction:
            self.register(FunctionTask(name, schedule, fn))
            return fn

        return decorator

    def unregister(self, name: str) -> bool:
        """Remove a task by name. Returns True if it was registered."""
        removed = self._tasks.pop(name, None) is not None
        if removed:
            logger.info("Unregistered scheduled task: %s", name)
        return removed

    def get(self, name: str) -> ScheduledTask | None:
        return self._tasks.get(name)

    @property
    def names(self) -> list[str]:
        """All registered task names, in registration order."""
        return list(self._tasks)

    def current_tasks(self) -> list[ScheduledTask]:
        """Snapshot of the registered tasks; later changes do not affect it."""
        return list(self._tasks.values())
