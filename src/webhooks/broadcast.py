"""BroadcastEngine — concurrent best-effort webhook delivery."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from src.config import settings
from src.webhooks.models import stamped_body

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pydantic import BaseModel

    from src.webhooks.store import ListenerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of POSTing one payload to one URL."""

    url: str
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def _cancel_requested() -> bool:
    """True when someone called ``cancel()`` on the running task."""
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class BroadcastEngine:
    """Fans a payload out to listener URLs with one POST each.

    Deliveries run concurrently and are isolated: a failing URL is logged and
    never affects the others or raises to the caller.  Every broadcast call
    returns only once all of its deliveries have settled.  There are no
    retries.

    Payloads are any pydantic model; a ``timestamp`` field, when present, is
    overwritten at send time.  One ``httpx.AsyncClient`` is opened on first
    use and shared by every broadcast until :meth:`aclose`.

    Args:
        store: ListenerStore used to resolve targets for ``broadcast`` and
            ``broadcast_to_source``.
        timeout: Per-delivery timeout in seconds (default from settings).
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        store: ListenerStore,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = store
        self._timeout = timeout if timeout is not None else settings.broadcast_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """The shared HTTP client, opened lazily."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        """Close the shared HTTP client. A later broadcast opens a new one."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def broadcast(self, payload: BaseModel) -> None:
        """Send *payload* to every registered listener."""
        listeners = await self._store.list_all()
        await self.broadcast_to(payload, [listener.url for listener in listeners])

    async def broadcast_to_source(self, payload: BaseModel, source: str) -> None:
        """Send *payload* to the listeners registered under *source*."""
        listeners = await self._store.list_by_source(source)
        await self.broadcast_to(payload, [listener.url for listener in listeners])

    async def broadcast_to(self, payload: BaseModel, urls: Iterable[str]) -> None:
        """Send *payload* to each URL in *urls*."""
        targets = list(urls)
        if not targets:
            logger.info("Broadcast skipped: no target URLs")
            return

        body = stamped_body(payload)
        logger.info("Broadcasting to %d listener(s)", len(targets))
        client = self.client
        outcomes = await asyncio.gather(*(self._deliver(client, url, body) for url in targets))

        failed = [outcome.url for outcome in outcomes if not outcome.success]
        logger.info(
            "Broadcast complete: %d delivered, %d failed",
            len(outcomes) - len(failed),
            len(failed),
        )

    async def _deliver(
        self, client: httpx.AsyncClient, url: str, body: dict[str, Any]
    ) -> DeliveryOutcome:
        """POST one body, turning every failure into a logged outcome."""
        try:
            resp = await client.post(url, json=body)
        except asyncio.CancelledError:
            if _cancel_requested():
                raise
            logger.warning("Webhook POST failed for URL: %s (cancelled)", url)
            return DeliveryOutcome(url=url, error="cancelled")
        except Exception as exc:
            logger.warning("Webhook POST failed for URL: %s (%s)", url, exc)
            return DeliveryOutcome(url=url, error=str(exc) or type(exc).__name__)

        if resp.status_code >= 400:
            logger.warning("Webhook POST failed for URL: %s (status %d)", url, resp.status_code)
            return DeliveryOutcome(url=url, error=f"HTTP {resp.status_code}")

        logger.debug("Webhook delivered: %s (status %d)", url, resp.status_code)
        return DeliveryOutcome(url=url)
