"""ScheduledTask capability and per-run outcome types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from src.scheduler.schedule import ScheduleSpec, parse_schedule

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime


class ScheduledTask(ABC):
    """A named unit of work that runs on a ``<Day|Daily>@<HH:MM>`` schedule.

    Subclass and set ``name`` and ``schedule``, or use
    :meth:`TaskRegistry.task` to wrap a plain coroutine function.

    Example::

        class CleanupTask(ScheduledTask):
            name = "Cleanup"
            schedule = "Daily@04:00"

            async def execute(self) -> None:
                ...
    """

    name: str = ""
    schedule: str = ""

    @cached_property
    def spec(self) -> ScheduleSpec | None:
        """Parsed schedule, or None if the declaration is malformed."""
        return parse_schedule(self.schedule)

    def is_due(self, instant: datetime) -> bool:
        spec = self.spec
        return spec is not None and spec.matches(instant)

    @abstractmethod
    async def execute(self) -> None:
        """Run the task. Raise to signal failure."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} {self.schedule!r}>"


class FunctionTask(ScheduledTask):
    """ScheduledTask backed by a zero-argument coroutine function."""

    def __init__(
        self,
        name: str,
        schedule: str,
        action: Callable[[], Awaitable[None]],
    ) -> None:
        self.name = name
        self.schedule = schedule
        self._action = action

    async def execute(self) -> None:
        await self._action()


@dataclass(frozen=True)
class TaskOutcome:
    """Result of one task execution within a tick."""

    name: str
    error: BaseException | None = None

    @property
    def success(self) -> bool:
        return self.error is None
