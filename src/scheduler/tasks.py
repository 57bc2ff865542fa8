"""Built-in scheduled tasks."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.config import settings
from src.scheduler.models import ScheduledTask
from src.webhooks.models import BroadcastPayload

if TYPE_CHECKING:
    from src.scheduler.registry import TaskRegistry
    from src.webhooks.broadcast import BroadcastEngine
    from src.webhooks.store import ListenerStore

logger = logging.getLogger(__name__)


class DailyMaintenanceTask(ScheduledTask):
    """Routine housekeeping, every day at 04:00 UTC."""

    name = "Daily Maintenance & Cleanup"
    schedule = "Daily@04:00"

    def __init__(self, store: ListenerStore) -> None:
        self._store = store

    async def execute(self) -> None:
        listeners = await self._store.list_all()
        sources = {listener.source for listener in listeners}
        logger.info(
            "Maintenance: %d listener(s) registered across %d source(s)",
            len(listeners),
            len(sources),
        )


class WeeklyReportTask(ScheduledTask):
    """Broadcasts a short report to the report listeners on one weekday at 08:30 UTC."""

    def __init__(self, day: str, engine: BroadcastEngine, source: str | None = None) -> None:
        self.name = f"Weekly Report ({day})"
        self.schedule = f"{day}@08:30"
        self._day = day
        self._engine = engine
        self._source = source if source is not None else settings.report_source

    async def execute(self) -> None:
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        payload = BroadcastPayload(content=f"{self._day} report for {today}")
        logger.info("Sending %s to source '%s'", self.name, self._source)
        await self._engine.broadcast_to_source(payload, self._source)


def register_builtin_tasks(
    registry: TaskRegistry,
    store: ListenerStore,
    engine: BroadcastEngine,
) -> None:
    """Register the maintenance task and the Monday/Friday reports."""
    registry.register(DailyMaintenanceTask(store))
    registry.register(WeeklyReportTask("Monday", engine))
    registry.register(WeeklyReportTask("Friday", engine))
