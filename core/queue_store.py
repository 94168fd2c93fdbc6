"""
Queue store: ordered per-shop queue state on top of a QueueRepository.

Owns the entry state machine and every position write (insert with shift,
swap, move). Callers must hold the shop's repository transaction; the store
itself never locks.

    waiting --start--> in_progress --complete--> completed
    waiting --cancel--> cancelled
    in_progress --cancel--> cancelled
    waiting --no_show--> no_show

Terminal entries keep the position they held when they left, frozen for
history, and drop out of list_active.
"""

import logging
from typing import Sequence
from uuid import UUID

from core.exceptions import (
    ConflictError, InvalidTransitionError, NotFoundError, ScopeMismatchError,
)
from core.models import QueueEntry, QueueStatus
from core.reconciler import shift_for_insert
from core.repositories.base import QueueRepository
from utils.timezone import now_utc, elapsed_minutes

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[QueueStatus, frozenset[QueueStatus]] = {
    QueueStatus.WAITING: frozenset({
        QueueStatus.IN_PROGRESS, QueueStatus.CANCELLED, QueueStatus.NO_SHOW,
    }),
    QueueStatus.IN_PROGRESS: frozenset({
        QueueStatus.COMPLETED, QueueStatus.CANCELLED,
    }),
}


class QueueStore:
    """Position-aware queue operations."""

    def __init__(self, repository: QueueRepository):
        self.repository = repository

    def list_active(self, shop_id: UUID) -> list[QueueEntry]:
        """Active entries of the shop, ascending by position."""
        return self.repository.list_active(shop_id)

    def get(self, entry_id: UUID) -> QueueEntry:
        """
        Get an entry that must exist.

        Raises:
            NotFoundError: If no entry has this ID
        """
        entry = self.repository.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Queue entry {entry_id} not found")
        return entry

    def save_positions(self, entries: Sequence[QueueEntry]) -> list[QueueEntry]:
        """Persist position changes, stamping updated_at."""
        now = now_utc()
        return self.repository.update_many(
            [entry.model_copy(update={"updated_at": now}) for entry in entries]
        )

    def insert(self, entry: QueueEntry) -> QueueEntry:
        """
        Persist a new entry at entry.position, shifting the rest down.

        Args:
            entry: New active entry with its admission position set

        Returns:
            Persisted entry

        Raises:
            ConflictError: If the position is outside [1, active_count + 1]
        """
        active = self.list_active(entry.shop_id)
        if not 1 <= entry.position <= len(active) + 1:
            raise ConflictError(
                f"Position {entry.position} is outside 1..{len(active) + 1} "
                f"for shop {entry.shop_id}"
            )

        self.save_positions(shift_for_insert(active, entry.position))
        return self.repository.add(entry)

    def set_status(self, entry_id: UUID, new_status: QueueStatus) -> tuple[QueueEntry, QueueEntry]:
        """
        Transition an entry's status and stamp the matching timestamps.

        Args:
            entry_id: Queue entry UUID
            new_status: Requested status

        Returns:
            (entry before, entry after)

        Raises:
            NotFoundError: If entry does not exist
            InvalidTransitionError: If the state machine forbids the move
        """
        current = self.get(entry_id)

        if new_status not in ALLOWED_TRANSITIONS.get(current.status, frozenset()):
            raise InvalidTransitionError(
                f"Queue entry {entry_id} cannot move from "
                f"'{current.status.value}' to '{new_status.value}'"
            )

        now = now_utc()
        updates: dict = {"status": new_status, "updated_at": now}

        if new_status == QueueStatus.IN_PROGRESS:
            updates["started_at"] = current.started_at or now

        if new_status == QueueStatus.COMPLETED:
            updates["completed_at"] = now
            if current.started_at is not None:
                updates["actual_duration_minutes"] = elapsed_minutes(current.started_at, now)

        if new_status in (QueueStatus.COMPLETED, QueueStatus.CANCELLED, QueueStatus.NO_SHOW):
            updates["closed_at"] = now

        updated = self.repository.update(current.model_copy(update=updates))
        return current, updated

    def swap_positions(self, entry_a_id: UUID, entry_b_id: UUID) -> tuple[QueueEntry, QueueEntry]:
        """
        Exchange the positions of two active entries of the same shop.

        Raises:
            NotFoundError: If either entry does not exist
            ScopeMismatchError: If the entries belong to different shops
            ConflictError: If an entry is not active, or both IDs are the same
        """
        if entry_a_id == entry_b_id:
            raise ConflictError(f"Cannot swap queue entry {entry_a_id} with itself")

        entry_a = self.get(entry_a_id)
        entry_b = self.get(entry_b_id)

        if entry_a.shop_id != entry_b.shop_id:
            raise ScopeMismatchError(
                f"Queue entries {entry_a_id} and {entry_b_id} belong to different shops"
            )

        for entry in (entry_a, entry_b):
            if not entry.is_active:
                raise ConflictError(
                    f"Queue entry {entry.id} is {entry.status.value} and holds no live position"
                )

        swapped_a, swapped_b = self.save_positions([
            entry_a.model_copy(update={"position": entry_b.position}),
            entry_b.model_copy(update={"position": entry_a.position}),
        ])
        return swapped_a, swapped_b

    def move_to(self, entry_id: UUID, position: int) -> QueueEntry:
        """
        Move an active entry to another position, sliding the entries between.

        Raises:
            NotFoundError: If entry does not exist
            ConflictError: If the entry is not active or the position is
                outside [1, active_count]
        """
        entry = self.get(entry_id)
        if not entry.is_active:
            raise ConflictError(
                f"Queue entry {entry_id} is {entry.status.value} and holds no live position"
            )

        active = self.list_active(entry.shop_id)
        if not 1 <= position <= len(active):
            raise ConflictError(
                f"Position {position} is outside 1..{len(active)} for shop {entry.shop_id}"
            )

        old = entry.position
        if position == old:
            return entry

        moved = []
        for other in active:
            if other.id == entry.id:
                continue
            if old < other.position <= position:
                moved.append(other.model_copy(update={"position": other.position - 1}))
            elif position <= other.position < old:
                moved.append(other.model_copy(update={"position": other.position + 1}))
        moved.append(entry.model_copy(update={"position": position}))

        logger.debug(f"Moving queue entry {entry_id} from {old} to {position}")
        return self.save_positions(moved)[-1]
