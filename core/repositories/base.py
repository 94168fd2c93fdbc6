"""
Storage contract for queue entries.

The ranking, estimation and renumbering code never touches storage; it
works on lists of QueueEntry. Repositories only persist and fetch, and
provide the per-scope transaction that makes a read-modify-write atomic.
"""

from contextlib import AbstractContextManager
from typing import Iterable, Protocol, Sequence
from uuid import UUID

from core.models import QueueEntry, QueueStatus


def shop_lock_key(shop_id: UUID) -> str:
    """Lock key serialising all mutations of one shop's queue."""
    return f"shop:{shop_id}"


def customer_lock_key(customer_id: UUID) -> str:
    """Lock key serialising admissions of one customer across shops."""
    return f"customer:{customer_id}"


class QueueRepository(Protocol):
    """Persistence operations the queue engine needs."""

    def transaction(self, lock_keys: Iterable[str]) -> AbstractContextManager:
        """
        Exclusive, atomic unit of work.

        Holds every lock in `lock_keys` (acquired in sorted order) until the
        block exits. Writes made inside the block are visible to reads inside
        it but to no other reader until the block exits cleanly; an exception
        discards all of them.
        """
        ...

    def get_by_id(self, entry_id: UUID) -> QueueEntry | None: ...

    def list_active(self, shop_id: UUID) -> list[QueueEntry]:
        """Waiting and in-progress entries, ascending by position."""
        ...

    def list_for_shop(
        self,
        shop_id: UUID,
        statuses: Iterable[QueueStatus] | None = None,
        limit: int = 100,
    ) -> list[QueueEntry]:
        """Entries of a shop, newest first, optionally filtered by status."""
        ...

    def list_for_customer(self, customer_id: UUID, limit: int = 50) -> list[QueueEntry]:
        """Entries of a customer across shops, newest first."""
        ...

    def find_active_for_customer(self, customer_id: UUID) -> QueueEntry | None: ...

    def add(self, entry: QueueEntry) -> QueueEntry: ...

    def update(self, entry: QueueEntry) -> QueueEntry: ...

    def update_many(self, entries: Sequence[QueueEntry]) -> list[QueueEntry]: ...
