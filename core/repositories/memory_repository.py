"""
In-memory queue repository.

Backs tests and the offline demo mode. Mutations are serialised with one
threading.Lock per lock key; writes inside a transaction are staged per
context and published in one step on commit, so concurrent readers only
ever see committed state.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Iterable, List, Sequence
from uuid import UUID

from core.exceptions import NotFoundError
from core.models import QueueEntry, QueueStatus

logger = logging.getLogger(__name__)


class InMemoryQueueRepository:
    """
    Dict-backed QueueRepository.

    Usage:
        repo = InMemoryQueueRepository()

        with repo.transaction([shop_lock_key(shop_id)]):
            repo.add(entry)            # staged
            repo.list_active(shop_id)  # sees the staged entry
        # committed: visible to every reader
    """

    def __init__(self):
        self._entries: Dict[UUID, QueueEntry] = {}
        self._commit_lock = threading.Lock()
        # Locks vanish once no transaction holds or waits on them
        self._key_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._key_locks_guard = threading.Lock()
        self._staged: ContextVar[Dict[UUID, QueueEntry] | None] = ContextVar(
            f"queue_repo_staged_{id(self)}", default=None
        )

    def _lock_for(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    @contextmanager
    def transaction(self, lock_keys: Iterable[str]):
        """Hold the scope locks and stage writes until the block exits."""
        if self._staged.get() is not None:
            raise RuntimeError("Nested queue transactions are not supported")

        locks = [self._lock_for(key) for key in sorted(set(lock_keys))]
        acquired: List[threading.Lock] = []
        token = None
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)

            token = self._staged.set({})
            yield

            staged = self._staged.get()
            with self._commit_lock:
                self._entries.update(staged)
            if staged:
                logger.debug("Committed %d queue entry write(s)", len(staged))
        finally:
            if token is not None:
                self._staged.reset(token)
            for lock in reversed(acquired):
                lock.release()

    def _view(self) -> Dict[UUID, QueueEntry]:
        """Committed entries overlaid with this context's staged writes."""
        with self._commit_lock:
            view = dict(self._entries)
        staged = self._staged.get()
        if staged:
            view.update(staged)
        return view

    def _write(self, entry: QueueEntry) -> QueueEntry:
        staged = self._staged.get()
        if staged is not None:
            staged[entry.id] = entry
        else:
            with self._commit_lock:
                self._entries[entry.id] = entry
        return entry

    def get_by_id(self, entry_id: UUID) -> QueueEntry | None:
        return self._view().get(entry_id)

    def list_active(self, shop_id: UUID) -> list[QueueEntry]:
        active = [
            entry for entry in self._view().values()
            if entry.shop_id == shop_id and entry.is_active
        ]
        return sorted(active, key=lambda e: (e.position, e.joined_at))

    def list_for_shop(
        self,
        shop_id: UUID,
        statuses: Iterable[QueueStatus] | None = None,
        limit: int = 100,
    ) -> list[QueueEntry]:
        wanted = set(statuses) if statuses is not None else None
        entries = [
            entry for entry in self._view().values()
            if entry.shop_id == shop_id and (wanted is None or entry.status in wanted)
        ]
        entries.sort(key=lambda e: e.joined_at, reverse=True)
        return entries[:limit]

    def list_for_customer(self, customer_id: UUID, limit: int = 50) -> list[QueueEntry]:
        entries = [
            entry for entry in self._view().values()
            if entry.customer_id == customer_id
        ]
        entries.sort(key=lambda e: e.joined_at, reverse=True)
        return entries[:limit]

    def find_active_for_customer(self, customer_id: UUID) -> QueueEntry | None:
        for entry in self._view().values():
            if entry.customer_id == customer_id and entry.is_active:
                return entry
        return None

    def add(self, entry: QueueEntry) -> QueueEntry:
        if entry.id in self._view():
            raise ValueError(f"Queue entry {entry.id} already exists")
        return self._write(entry)

    def update(self, entry: QueueEntry) -> QueueEntry:
        if entry.id not in self._view():
            raise NotFoundError(f"Queue entry {entry.id} not found")
        return self._write(entry)

    def update_many(self, entries: Sequence[QueueEntry]) -> list[QueueEntry]:
        return [self.update(entry) for entry in entries]
