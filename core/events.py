"""
Domain events for the walk-in queue.

Immutable event objects published after a queue mutation commits. Handlers
(snapshot cache invalidation, notifications) react without the queue
service knowing who is listening.

Every event names the shop whose queue changed, so a handler interested in
"anything changed at shop X" can subscribe to the QueueEvent base class.

Events carry the committed entry so handlers don't need to re-fetch state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class QueueEvent:
    """Base class for all queue domain events."""
    shop_id: UUID
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True, kw_only=True)
class QueueEntryEvent(QueueEvent):
    """Something happened to a single entry."""
    entry: Any = None  # QueueEntry, Any to keep events free of model imports

    @classmethod
    def create(cls, entry: Any) -> "QueueEntryEvent":
        return cls(shop_id=entry.shop_id, entry=entry)


@dataclass(frozen=True, kw_only=True)
class QueueEntryJoined(QueueEntryEvent):
    """A customer was admitted to the queue."""


@dataclass(frozen=True, kw_only=True)
class QueueEntryStarted(QueueEntryEvent):
    """The barber started serving the entry."""


@dataclass(frozen=True, kw_only=True)
class QueueEntryCompleted(QueueEntryEvent):
    """Service finished; the entry left the queue."""


@dataclass(frozen=True, kw_only=True)
class QueueEntryCancelled(QueueEntryEvent):
    """The customer or owner cancelled the entry."""


@dataclass(frozen=True, kw_only=True)
class QueueEntryNoShow(QueueEntryEvent):
    """The customer was not there when called."""


@dataclass(frozen=True, kw_only=True)
class QueueEntryUpdated(QueueEntryEvent):
    """Services, notes or priority attributes changed before service."""


@dataclass(frozen=True, kw_only=True)
class QueueReordered(QueueEvent):
    """The owner manually exchanged two positions."""
    entry_ids: tuple = ()

    @classmethod
    def create(cls, shop_id: UUID, *entry_ids: UUID) -> "QueueReordered":
        return cls(shop_id=shop_id, entry_ids=tuple(entry_ids))
