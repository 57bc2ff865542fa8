"""Lightweight async HTTP API for listener management and broadcasts.

Runs in the same asyncio event loop as the scheduler.  Uses aiohttp's
AppRunner/TCPSite for non-blocking start/stop.

Routes:

- ``GET    /health``
- ``GET    /api/webhook/listeners[?source=...]``
- ``POST   /api/webhook/register``     ``{"url": ..., "source": ...}``
- ``DELETE /api/webhook/unregister``   ``{"url": ...}``
- ``POST   /api/webhook/broadcast``    ``{"content": ..., "source": ...}``
- ``GET    /api/scheduler/tasks``
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from aiohttp import web

from src.config import settings
from src.scheduler.registry import TaskRegistry
from src.webhooks.service import ErrorKind, ServiceResult, WebhookService

logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("webhook_service", WebhookService)
REGISTRY_KEY = web.AppKey("task_registry", TaskRegistry)

_ERROR_STATUS = {
    ErrorKind.EMPTY_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NO_LISTENERS: 400,
}


class _BadRequest(Exception):
    pass


async def _read_json(request: web.Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except Exception as exc:
        raise _BadRequest("invalid JSON") from exc
    if not isinstance(payload, dict):
        raise _BadRequest("expected a JSON object")
    return payload


def _string_field(payload: dict[str, Any], key: str, default: str = "") -> str:
    value = payload.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise _BadRequest(f"'{key}' must be a string")
    return value


def _respond(result: ServiceResult) -> web.Response:
    if result.success:
        body: dict[str, Any] = dict(result.data or {})
        if result.message:
            body["message"] = result.message
        return web.json_response(body)
    return web.json_response(
        {"error": str(result.error), "message": result.message},
        status=_ERROR_STATUS[result.error],
    )


def _bad_request(exc: _BadRequest) -> web.Response:
    logger.warning("API bad request: %s", exc)
    return web.json_response({"error": "bad_request", "message": str(exc)}, status=400)


# -- Handlers ------------------------------------------------------------------


async def _health(request: web.Request) -> web.Response:
    """GET /health — basic liveness check."""
    return web.json_response({"status": "ok"})


async def _list_listeners(request: web.Request) -> web.Response:
    source = request.query.get("source")
    return _respond(await request.app[SERVICE_KEY].list_listeners(source))


async def _register(request: web.Request) -> web.Response:
    try:
        payload = await _read_json(request)
        url = _string_field(payload, "url")
        source = _string_field(payload, "source")
    except _BadRequest as exc:
        return _bad_request(exc)
    return _respond(await request.app[SERVICE_KEY].register(url, source))


async def _unregister(request: web.Request) -> web.Response:
    try:
        payload = await _read_json(request)
        url = _string_field(payload, "url")
    except _BadRequest as exc:
        return _bad_request(exc)
    return _respond(await request.app[SERVICE_KEY].unregister(url))


async def _broadcast(request: web.Request) -> web.Response:
    try:
        payload = await _read_json(request)
        content = _string_field(payload, "content")
        source = payload.get("source")
        if source is not None and not isinstance(source, str):
            raise _BadRequest("'source' must be a string")
    except _BadRequest as exc:
        return _bad_request(exc)
    return _respond(await request.app[SERVICE_KEY].broadcast(content, source))


async def _list_tasks(request: web.Request) -> web.Response:
    """GET /api/scheduler/tasks — registered tasks and their next run (UTC)."""
    now = datetime.now(UTC)
    tasks = []
    for task in request.app[REGISTRY_KEY].current_tasks():
        spec = task.spec
        tasks.append({
            "name": task.name,
            "schedule": task.schedule,
            "valid": spec is not None,
            "next_run_at": spec.next_run_after(now).isoformat() if spec else None,
        })
    return web.json_response({"tasks": tasks})


def create_web_app(service: WebhookService, registry: TaskRegistry) -> web.Application:
    """Build the aiohttp Application with routes."""
    app = web.Application()
    app[SERVICE_KEY] = service
    app[REGISTRY_KEY] = registry
    app.router.add_get("/health", _health)
    app.router.add_get("/api/webhook/listeners", _list_listeners)
    app.router.add_post("/api/webhook/register", _register)
    app.router.add_delete("/api/webhook/unregister", _unregister)
    app.router.add_post("/api/webhook/broadcast", _broadcast)
    app.router.add_get("/api/scheduler/tasks", _list_tasks)
    return app


class WebhookServer:
    """Manages the aiohttp server lifecycle."""

    def __init__(
        self,
        service: WebhookService,
        registry: TaskRegistry,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        self._service = service
        self._registry = registry
        self.host = host or settings.server_host
        self.port = port or settings.server_port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening for API requests."""
        app = create_web_app(self._service, self._registry)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("API server listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("API server stopped")
