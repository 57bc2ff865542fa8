"""WebhookService — listener registration and broadcast-trigger operations.

Validates caller input, talks to the ListenerStore and hands payloads to
the BroadcastEngine.  Every operation returns a ``ServiceResult`` instead of
raising for expected conditions (blank URL, unknown URL, nobody listening).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from src.webhooks.models import BroadcastPayload

if TYPE_CHECKING:
    from src.webhooks.broadcast import BroadcastEngine
    from src.webhooks.store import ListenerStore

logger = logging.getLogger(__name__)


class ErrorKind(enum.StrEnum):
    EMPTY_INPUT = "empty_input"
    NOT_FOUND = "not_found"
    NO_LISTENERS = "no_listeners"


@dataclass
class ServiceResult:
    """Outcome of a WebhookService operation."""

    data: dict[str, Any] | None = None
    error: ErrorKind | None = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.error is None


def _safe_for_log(url: str) -> str:
    return url.replace("\r", "").replace("\n", "")


class WebhookService:
    """Registration surface over a ListenerStore and a BroadcastEngine."""

    def __init__(self, store: ListenerStore, engine: BroadcastEngine) -> None:
        self._store = store
        self._engine = engine

    async def list_listeners(self, source: str | None = None) -> ServiceResult:
        """List listener URLs, optionally only those registered under *source*."""
        urls = await self._listener_urls(source)
        return ServiceResult(data={"listeners": urls})

    async def register(self, url: str, source: str = "") -> ServiceResult:
        """Register *url* under *source*. Registering a known URL is a no-op."""
        if not url or not url.strip():
            return ServiceResult(error=ErrorKind.EMPTY_INPUT, message="URL cannot be empty.")
        url = url.strip()

        await self._store.add(url, source)
        logger.info("Registered webhook listener: %s (source=%s)", _safe_for_log(url), source)
        return ServiceResult(
            data={"url": url, "source": source},
            message=f"Listener added successfully: {url}",
        )

    async def unregister(self, url: str) -> ServiceResult:
        """Remove *url*; reports NOT_FOUND if it was never registered."""
        if not url or not url.strip():
            return ServiceResult(error=ErrorKind.EMPTY_INPUT, message="URL cannot be empty.")
        url = url.strip()

        removed = await self._store.remove(url)
        if not removed:
            return ServiceResult(error=ErrorKind.NOT_FOUND, message=f"URL not found: {url}")

        logger.info("Unregistered webhook listener: %s", _safe_for_log(url))
        return ServiceResult(data={"url": url}, message=f"Listener removed: {url}")

    async def broadcast(self, content: str, source: str | None = None) -> ServiceResult:
        """Broadcast *content* to all listeners, or only those of *source*.

        Waits for every delivery to settle.  Individual delivery failures only
        show up in the logs.
        """
        if not content or not content.strip():
            return ServiceResult(error=ErrorKind.EMPTY_INPUT, message="Content cannot be empty.")

        urls = await self._listener_urls(source)
        if not urls:
            return ServiceResult(
                error=ErrorKind.NO_LISTENERS,
                message="No listeners registered to broadcast to.",
            )

        logger.info("Broadcasting payload to %d listener(s): %.80s", len(urls), content)
        await self._engine.broadcast_to(BroadcastPayload(content=content), urls)
        return ServiceResult(
            data={"listeners": len(urls)},
            message=(
                f"Broadcast sent for message: '{content}'. Check logs for delivery status."
            ),
        )

    async def _listener_urls(self, source: str | None) -> list[str]:
        if source is None:
            listeners = await self._store.list_all()
        else:
            listeners = await self._store.list_by_source(source)
        return [listener.url for listener in listeners]
