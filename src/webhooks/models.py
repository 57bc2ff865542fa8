"""Listener records and broadcast payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ListenerRecord:
    """A registered webhook listener.

    Attributes:
        id: Surrogate key assigned by the store.
        url: Target URL; unique across the store, matched verbatim.
        source: Free-text category used to target broadcasts.
        created_at: ISO 8601 timestamp (UTC).
    """

    id: int
    url: str
    source: str
    created_at: str = ""

    @classmethod
    def from_row(cls, row: tuple) -> ListenerRecord:
        """Deserialize from a ``webhook_listeners`` row tuple."""
        return cls(id=int(row[0]), url=row[1], source=row[2] or "", created_at=row[3] or "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "source": self.source,
            "created_at": self.created_at,
        }


class BroadcastPayload(BaseModel):
    """Default body POSTed to every listener.

    ``timestamp`` is stamped by the broadcast engine at send time; any value
    supplied by the caller is overwritten.
    """

    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


def stamped_body(payload: BaseModel, at: datetime | None = None) -> dict[str, Any]:
    """Serialize *payload* for sending, with a fresh ``timestamp`` if it has one.

    Any pydantic model can be broadcast.  Models without a ``timestamp`` field
    are sent as they are.  The caller's object is never mutated.
    """
    if "timestamp" in type(payload).model_fields:
        payload = payload.model_copy(update={"timestamp": at or _utcnow()})
    return payload.model_dump(mode="json")
