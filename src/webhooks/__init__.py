"""Webhook listeners and broadcast delivery."""

from src.webhooks.broadcast import BroadcastEngine, DeliveryOutcome
from src.webhooks.models import BroadcastPayload, ListenerRecord
from src.webhooks.service import ErrorKind, ServiceResult, WebhookService
from src.webhooks.store import ListenerStore, SQLiteListenerStore

__all__ = [
    "BroadcastEngine",
    "BroadcastPayload",
    "DeliveryOutcome",
    "ErrorKind",
    "ListenerRecord",
    "ListenerStore",
    "SQLiteListenerStore",
    "ServiceResult",
    "WebhookService",
]
