"""
Queue service: the public face of the walk-in queue engine.

Every mutation runs inside one repository transaction holding the shop's
lock, so admission, renumbering and wait estimates commit together or not
at all. Domain events are published only after the transaction commits.
"""

import logging
from typing import Sequence
from uuid import UUID, uuid4

from core import ranking
from core.catalog import ServiceCatalog
from core.config import QueueSettings
from core.estimator import estimate_wait, refresh_estimates
from core.event_bus import EventBus
from core.events import (
    QueueEntryCancelled,
    QueueEntryCompleted,
    QueueEntryJoined,
    QueueEntryNoShow,
    QueueEntryStarted,
    QueueEntryUpdated,
    QueueEvent,
    QueueReordered,
)
from core.exceptions import (
    ConflictError,
    DuplicateActiveEntryError,
    InvalidTransitionError,
    NotFoundError,
    ReconciliationError,
    ScopeMismatchError,
)
from core.models import (
    MoveDirection,
    PriceQuote,
    QueueEntry,
    QueueEntryCreate,
    QueueEntryUpdate,
    QueueStatus,
    QuoteRequest,
    Service,
    ShopQueueSummary,
)
from core.queue_store import QueueStore
from core.reconciler import assert_dense, compact_after_removal
from core.repositories.base import QueueRepository, customer_lock_key, shop_lock_key
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_STATUS_EVENTS = {
    QueueStatus.IN_PROGRESS: QueueEntryStarted,
    QueueStatus.COMPLETED: QueueEntryCompleted,
    QueueStatus.CANCELLED: QueueEntryCancelled,
    QueueStatus.NO_SHOW: QueueEntryNoShow,
}

_TERMINAL_STATUSES = (QueueStatus.COMPLETED, QueueStatus.CANCELLED, QueueStatus.NO_SHOW)

_PRIORITY_FIELDS = {"customer_type", "is_emergency"}

_CLEARABLE_FIELDS = {"notes", "emergency_reason"}


class QueueService:
    """Service for walk-in queue operations."""

    def __init__(
        self,
        repository: QueueRepository,
        catalog: ServiceCatalog,
        event_bus: EventBus | None = None,
        settings: QueueSettings | None = None,
    ):
        self.repository = repository
        self.store = QueueStore(repository)
        self.catalog = catalog
        self.event_bus = event_bus
        self.settings = settings or QueueSettings()

    # --- Mutations ---

    def join(self, data: QueueEntryCreate) -> QueueEntry:
        """
        Admit a customer to a shop's queue.

        The entry is ranked by priority score: it lands behind the customers
        already in service, before the first entry scoring lower than it.

        Args:
            data: Join request

        Returns:
            Created entry with its position and estimated wait

        Raises:
            NotFoundError: If a service is unknown or switched off
            ScopeMismatchError: If a service belongs to another shop
            PaymentRequiredError: If a priority booking chose pay_at_shop
            DuplicateActiveEntryError: If the customer is already queued anywhere
        """
        services = self._resolve_services(data.shop_id, data.service_ids)
        price = ranking.quote(services, data.customer_type, data.is_emergency, self.settings)
        ranking.require_payment(price.priority_score, data.payment_option, self.settings)

        lock_keys = [shop_lock_key(data.shop_id), customer_lock_key(data.customer_id)]
        with self.repository.transaction(lock_keys):
            existing = self.repository.find_active_for_customer(data.customer_id)
            if existing is not None:
                raise DuplicateActiveEntryError(data.customer_id, existing.id, existing.shop_id)

            active = self.store.list_active(data.shop_id)
            position = ranking.insertion_position(active, price.priority_score, self.settings)
            now = now_utc()

            entry_id = uuid4()
            self.store.insert(QueueEntry(
                id=entry_id,
                shop_id=data.shop_id,
                service_ids=list(data.service_ids),
                customer_id=data.customer_id,
                customer_name=data.customer_name,
                position=position,
                status=QueueStatus.WAITING,
                customer_type=data.customer_type,
                is_emergency=data.is_emergency,
                emergency_reason=data.emergency_reason if data.is_emergency else None,
                payment_option=data.payment_option,
                service_duration_minutes=sum(s.duration_minutes for s in services),
                estimated_wait_minutes=estimate_wait(active, position),
                base_price_cents=price.base_price_cents,
                priority_fee_cents=price.priority_fee_cents,
                notes=data.notes,
                joined_at=now,
                updated_at=now,
            ))
            self._refresh_estimates(data.shop_id)
            entry = self.store.get(entry_id)

        logger.info(
            f"Customer {entry.customer_id} joined shop {entry.shop_id} at position "
            f"{entry.position} (score {price.priority_score}, wait {entry.estimated_wait_minutes}m)"
        )
        self._publish(QueueEntryJoined.create(entry))
        return entry

    def set_status(self, entry_id: UUID, status: QueueStatus) -> QueueEntry:
        """
        Move an entry through its lifecycle.

        Leaving the active queue closes the gap: everyone behind moves up
        one place and wait estimates are recomputed, in the same transaction.

        Args:
            entry_id: Queue entry UUID
            status: Requested status

        Returns:
            Updated entry

        Raises:
            NotFoundError: If entry does not exist
            InvalidTransitionError: If the lifecycle forbids the change
            ReconciliationError: If renumbering failed (transition rolled back)
        """
        shop_id = self.store.get(entry_id).shop_id

        with self.repository.transaction([shop_lock_key(shop_id)]):
            before, after = self.store.set_status(entry_id, status)
            if status in _TERMINAL_STATUSES:
                self._reconcile(shop_id, before.position)

        logger.info(f"Queue entry {entry_id}: {before.status.value} -> {after.status.value}")
        self._publish(_STATUS_EVENTS[status].create(after))
        return after

    def start(self, entry_id: UUID) -> QueueEntry:
        return self.set_status(entry_id, QueueStatus.IN_PROGRESS)

    def complete(self, entry_id: UUID) -> QueueEntry:
        return self.set_status(entry_id, QueueStatus.COMPLETED)

    def cancel(self, entry_id: UUID) -> QueueEntry:
        return self.set_status(entry_id, QueueStatus.CANCELLED)

    def mark_no_show(self, entry_id: UUID) -> QueueEntry:
        return self.set_status(entry_id, QueueStatus.NO_SHOW)

    def swap_positions(self, entry_a_id: UUID, entry_b_id: UUID) -> tuple[QueueEntry, QueueEntry]:
        """
        Exchange two entries' positions (owner override).

        Returns:
            Both entries after the swap, in argument order

        Raises:
            NotFoundError: If either entry does not exist
            ScopeMismatchError: If the entries belong to different shops
            ConflictError: If an entry is not active, or both IDs are the same
        """
        if entry_a_id == entry_b_id:
            raise ConflictError(f"Cannot swap queue entry {entry_a_id} with itself")

        shop_id = self.store.get(entry_a_id).shop_id

        with self.repository.transaction([shop_lock_key(shop_id)]):
            self.store.swap_positions(entry_a_id, entry_b_id)
            self._refresh_estimates(shop_id)
            swapped = (self.store.get(entry_a_id), self.store.get(entry_b_id))

        logger.info(
            f"Swapped queue entries {entry_a_id} and {entry_b_id} "
            f"(now at {swapped[0].position} and {swapped[1].position})"
        )
        self._publish(QueueReordered.create(shop_id, entry_a_id, entry_b_id))
        return swapped

    def move(self, entry_id: UUID, direction: MoveDirection) -> QueueEntry:
        """
        Swap an entry with its neighbour one place up or down.

        Moving the first entry up, or the last entry down, changes nothing.

        Raises:
            NotFoundError: If entry does not exist
            ConflictError: If the entry is not active
        """
        shop_id = self.store.get(entry_id).shop_id
        neighbour = None

        with self.repository.transaction([shop_lock_key(shop_id)]):
            entry = self.store.get(entry_id)
            if not entry.is_active:
                raise ConflictError(
                    f"Queue entry {entry_id} is {entry.status.value} and holds no live position"
                )

            offset = -1 if direction == MoveDirection.UP else 1
            target = entry.position + offset
            neighbour = next(
                (e for e in self.store.list_active(shop_id) if e.position == target),
                None,
            )

            if neighbour is not None:
                self.store.swap_positions(entry_id, neighbour.id)
                self._refresh_estimates(shop_id)
                entry = self.store.get(entry_id)

        if neighbour is None:
            logger.debug(f"Queue entry {entry_id} already at the {direction.value} edge")
            return entry

        self._publish(QueueReordered.create(shop_id, entry_id, neighbour.id))
        return entry

    def move_up(self, entry_id: UUID) -> QueueEntry:
        return self.move(entry_id, MoveDirection.UP)

    def move_down(self, entry_id: UUID) -> QueueEntry:
        return self.move(entry_id, MoveDirection.DOWN)

    def update(self, entry_id: UUID, data: QueueEntryUpdate) -> QueueEntry:
        """
        Edit a waiting entry.

        New services recompute duration and price. A change of priority
        attributes re-runs the payment gate and re-ranks the entry as if it
        had just arrived with the new score.

        Args:
            entry_id: Queue entry UUID
            data: Fields to change

        Returns:
            Updated entry

        Raises:
            NotFoundError: If entry or a service does not exist
            InvalidTransitionError: If the entry is no longer waiting
            ScopeMismatchError: If a service belongs to another shop
            PaymentRequiredError: If the new priority needs pay_now
            ValueError: If an emergency booking lacks a reason
        """
        shop_id = self.store.get(entry_id).shop_id
        updates = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in _CLEARABLE_FIELDS
        }

        with self.repository.transaction([shop_lock_key(shop_id)]):
            current = self.store.get(entry_id)
            if current.status != QueueStatus.WAITING:
                raise InvalidTransitionError(
                    f"Queue entry {entry_id} is {current.status.value}; "
                    f"only waiting entries can be edited"
                )
            if not updates:
                return current

            merged = current.model_copy(update=updates)
            if not merged.is_emergency:
                merged = merged.model_copy(update={"emergency_reason": None})
            elif not (merged.emergency_reason or "").strip():
                raise ValueError("Emergency bookings require an emergency_reason")

            services = self._resolve_services(shop_id, merged.service_ids)
            price = ranking.quote(
                services, merged.customer_type, merged.is_emergency, self.settings
            )
            ranking.require_payment(price.priority_score, merged.payment_option, self.settings)

            self.repository.update(merged.model_copy(update={
                "service_duration_minutes": sum(s.duration_minutes for s in services),
                "base_price_cents": price.base_price_cents,
                "priority_fee_cents": price.priority_fee_cents,
                "updated_at": now_utc(),
            }))

            if _PRIORITY_FIELDS & updates.keys() and (
                price.priority_score != ranking.score_of(current, self.settings)
            ):
                self._rerank(merged, price.priority_score)

            self._refresh_estimates(shop_id)
            entry = self.store.get(entry_id)

        logger.info(f"Updated queue entry {entry_id}: {', '.join(sorted(updates))}")
        self._publish(QueueEntryUpdated.create(entry))
        return entry

    # --- Reads ---

    def get_by_id(self, entry_id: UUID) -> QueueEntry | None:
        """
        Get queue entry by ID.

        Returns:
            QueueEntry if found, None otherwise.
        """
        return self.repository.get_by_id(entry_id)

    def list_active(self, shop_id: UUID) -> list[QueueEntry]:
        """Waiting and in-progress entries of a shop, ascending by position."""
        return self.store.list_active(shop_id)

    def list_history(self, shop_id: UUID, limit: int | None = None) -> list[QueueEntry]:
        """Entries that have left a shop's queue, newest first."""
        return self.repository.list_for_shop(
            shop_id,
            statuses=_TERMINAL_STATUSES,
            limit=limit or self.settings.history_limit,
        )

    def list_for_customer(self, customer_id: UUID, limit: int = 50) -> list[QueueEntry]:
        """A customer's entries across shops, newest first."""
        return self.repository.list_for_customer(customer_id, limit=limit)

    def get_active_for_customer(self, customer_id: UUID) -> QueueEntry | None:
        """The customer's live entry, if they are queued anywhere."""
        return self.repository.find_active_for_customer(customer_id)

    def estimate_wait(self, shop_id: UUID, position: int) -> int:
        """
        Minutes someone at `position` would wait right now.

        Position N+1 answers "how long if I join at the back".

        Raises:
            ConflictError: If position is outside [1, active_count + 1]
        """
        active = self.store.list_active(shop_id)
        if not 1 <= position <= len(active) + 1:
            raise ConflictError(
                f"Position {position} is outside 1..{len(active) + 1} for shop {shop_id}"
            )
        return estimate_wait(active, position)

    def summarize_shop(self, shop_id: UUID) -> ShopQueueSummary:
        active = self.store.list_active(shop_id)
        in_progress = sum(1 for e in active if e.status == QueueStatus.IN_PROGRESS)
        return ShopQueueSummary(
            shop_id=shop_id,
            waiting_count=len(active) - in_progress,
            in_progress_count=in_progress,
            active_count=len(active),
            next_estimated_wait_minutes=estimate_wait(active, len(active) + 1),
        )

    def quote(self, data: QuoteRequest) -> PriceQuote:
        """
        Price a prospective booking without joining.

        Raises:
            NotFoundError: If a service is unknown or switched off
            ScopeMismatchError: If a service belongs to another shop
        """
        services = self._resolve_services(data.shop_id, data.service_ids)
        return ranking.quote(services, data.customer_type, data.is_emergency, self.settings)

    # --- Internals ---

    def _resolve_services(self, shop_id: UUID, service_ids: Sequence[UUID]) -> list[Service]:
        """Load the booked services, all of which must be live at this shop."""
        services = self.catalog.get_services_by_ids(service_ids)
        found = {service.id: service for service in services}

        missing = [str(sid) for sid in service_ids if sid not in found]
        if missing:
            raise NotFoundError(f"Services not found: {', '.join(missing)}")

        for service in services:
            if service.shop_id != shop_id:
                raise ScopeMismatchError(
                    f"Service {service.id} belongs to shop {service.shop_id}, not {shop_id}"
                )
            if not service.is_active:
                raise NotFoundError(f"Service {service.id} is not currently offered")

        return [found[sid] for sid in service_ids]

    def _rerank(self, entry: QueueEntry, score: int) -> None:
        """Re-place an entry as though it had just arrived with `score`."""
        others = [e for e in self.store.list_active(entry.shop_id) if e.id != entry.id]
        compacted = [
            e.model_copy(update={"position": index})
            for index, e in enumerate(others, start=1)
        ]
        target = ranking.insertion_position(compacted, score, self.settings)
        self.store.move_to(entry.id, target)

    def _reconcile(self, shop_id: UUID, vacated_position: int) -> None:
        """
        Close the gap left at `vacated_position` and refresh estimates.

        Any failure here is an internal fault and surfaces as
        ReconciliationError so the enclosing transaction rolls back.
        """
        try:
            remaining = self.store.list_active(shop_id)
            self.store.save_positions(compact_after_removal(remaining, vacated_position))
            self._refresh_estimates(shop_id)
        except ReconciliationError:
            raise
        except Exception as e:
            logger.error(f"Renumbering failed for shop {shop_id}: {e}")
            raise ReconciliationError(
                f"Could not renumber queue for shop {shop_id} after position {vacated_position}"
            ) from e

    def _refresh_estimates(self, shop_id: UUID) -> None:
        active = self.store.list_active(shop_id)
        assert_dense(active)
        changed = refresh_estimates(active)
        if changed:
            self.repository.update_many(changed)

    def _publish(self, event: QueueEvent) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)
