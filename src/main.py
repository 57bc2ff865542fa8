"""Relay entry point: scheduler loop and webhook API in one event loop."""

import asyncio
import logging
import signal

from src.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=settings.get_log_level(),
)
logger = logging.getLogger(__name__)


async def run() -> None:
    """Wire the components, run until SIGINT/SIGTERM, then shut down."""
    from src.scheduler.engine import SchedulerEngine
    from src.scheduler.registry import TaskRegistry
    from src.scheduler.tasks import register_builtin_tasks
    from src.webhooks.broadcast import BroadcastEngine
    from src.webhooks.server import WebhookServer
    from src.webhooks.service import WebhookService
    from src.webhooks.store import SQLiteListenerStore

    store = SQLiteListenerStore.get()
    await store.initialise()

    broadcaster = BroadcastEngine(store)
    service = WebhookService(store, broadcaster)

    registry = TaskRegistry()
    register_builtin_tasks(registry, store, broadcaster)

    scheduler = SchedulerEngine(registry)
    server = WebhookServer(service, registry)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    if settings.scheduler_enabled:
        await scheduler.start()
    else:
        logger.warning("SCHEDULER_ENABLED is false; scheduled tasks will not run")
    await server.start()

    try:
        await stop.wait()
        logger.info("Shutdown requested")
    finally:
        await server.stop()
        await scheduler.stop()
        await broadcaster.aclose()


def main() -> None:
    """Start the scheduler and the API server."""
    logger.info("Starting Relay on %s:%d...", settings.server_host, settings.server_port)
    asyncio.run(run())


if __name__ == "__main__":
    main()
