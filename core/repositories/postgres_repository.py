"""
PostgreSQL queue repository.

Each transaction runs on one pinned connection. Scope locks are
transaction-level advisory locks keyed by hashtext(lock_key), released
automatically on commit or rollback. Schema: schema/queue.sql.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Sequence
from uuid import UUID

from clients.postgres_client import PostgresClient
from core.exceptions import NotFoundError
from core.models import ACTIVE_STATUSES, QueueEntry, QueueStatus

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


class PostgresQueueRepository:
    """QueueRepository backed by the queue_entries table."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    @contextmanager
    def transaction(self, lock_keys: Iterable[str]):
        """Open a transaction and take the advisory lock of every key, in sorted order."""
        with self.postgres.transaction():
            for key in sorted(set(lock_keys)):
                self.postgres.execute(
                    "SELECT pg_advisory_xact_lock(hashtext(%s))",
                    (key,)
                )
            yield

    def get_by_id(self, entry_id: UUID) -> QueueEntry | None:
        row = self.postgres.execute_single(
            "SELECT * FROM queue_entries WHERE id = %s",
            (entry_id,)
        )

        if row is None:
            return None

        return QueueEntry.model_validate(row)

    def list_active(self, shop_id: UUID) -> list[QueueEntry]:
        rows = self.postgres.execute(
            """
            SELECT * FROM queue_entries
            WHERE shop_id = %s AND status = ANY(%s)
            ORDER BY position ASC, joined_at ASC
            """,
            (shop_id, _ACTIVE_VALUES)
        )

        return [QueueEntry.model_validate(row) for row in rows]

    def list_for_shop(
        self,
        shop_id: UUID,
        statuses: Iterable[QueueStatus] | None = None,
        limit: int = 100,
    ) -> list[QueueEntry]:
        if statuses is None:
            rows = self.postgres.execute(
                """
                SELECT * FROM queue_entries
                WHERE shop_id = %s
                ORDER BY joined_at DESC
                LIMIT %s
                """,
                (shop_id, limit)
            )
        else:
            rows = self.postgres.execute(
                """
                SELECT * FROM queue_entries
                WHERE shop_id = %s AND status = ANY(%s)
                ORDER BY joined_at DESC
                LIMIT %s
                """,
                (shop_id, [status.value for status in statuses], limit)
            )

        return [QueueEntry.model_validate(row) for row in rows]

    def list_for_customer(self, customer_id: UUID, limit: int = 50) -> list[QueueEntry]:
        rows = self.postgres.execute(
            """
            SELECT * FROM queue_entries
            WHERE customer_id = %s
            ORDER BY joined_at DESC
            LIMIT %s
            """,
            (customer_id, limit)
        )

        return [QueueEntry.model_validate(row) for row in rows]

    def find_active_for_customer(self, customer_id: UUID) -> QueueEntry | None:
        row = self.postgres.execute_single(
            """
            SELECT * FROM queue_entries
            WHERE customer_id = %s AND status = ANY(%s)
            LIMIT 1
            """,
            (customer_id, _ACTIVE_VALUES)
        )

        if row is None:
            return None

        return QueueEntry.model_validate(row)

    def add(self, entry: QueueEntry) -> QueueEntry:
        row = self.postgres.execute_returning(
            """
            INSERT INTO queue_entries (
                id, shop_id, service_ids, customer_id, customer_name,
                position, status, customer_type, is_emergency, emergency_reason,
                payment_option, service_duration_minutes, estimated_wait_minutes,
                base_price_cents, priority_fee_cents, notes,
                joined_at, started_at, completed_at, closed_at,
                actual_duration_minutes, updated_at
            ) VALUES (
                %s, %s, %s::uuid[], %s, %s,
                %s, %s, %s, %s, %s,
                %s, %s, %s,
                %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                entry.id, entry.shop_id, list(entry.service_ids), entry.customer_id, entry.customer_name,
                entry.position, entry.status.value, entry.customer_type.value,
                entry.is_emergency, entry.emergency_reason,
                entry.payment_option.value, entry.service_duration_minutes, entry.estimated_wait_minutes,
                entry.base_price_cents, entry.priority_fee_cents, entry.notes,
                entry.joined_at, entry.started_at, entry.completed_at, entry.closed_at,
                entry.actual_duration_minutes, entry.updated_at
            )
        )[0]

        return QueueEntry.model_validate(row)

    def update(self, entry: QueueEntry) -> QueueEntry:
        # joined_at, shop and customer never change after admission
        rows = self.postgres.execute_returning(
            """
            UPDATE queue_entries
            SET service_ids = %s::uuid[], position = %s, status = %s,
                customer_type = %s, is_emergency = %s, emergency_reason = %s,
                payment_option = %s, service_duration_minutes = %s,
                estimated_wait_minutes = %s, base_price_cents = %s,
                priority_fee_cents = %s, notes = %s,
                started_at = %s, completed_at = %s, closed_at = %s,
                actual_duration_minutes = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (
                list(entry.service_ids), entry.position, entry.status.value,
                entry.customer_type.value, entry.is_emergency, entry.emergency_reason,
                entry.payment_option.value, entry.service_duration_minutes,
                entry.estimated_wait_minutes, entry.base_price_cents,
                entry.priority_fee_cents, entry.notes,
                entry.started_at, entry.completed_at, entry.closed_at,
                entry.actual_duration_minutes, entry.updated_at,
                entry.id
            )
        )

        if not rows:
            raise NotFoundError(f"Queue entry {entry.id} not found")

        return QueueEntry.model_validate(rows[0])

    def update_many(self, entries: Sequence[QueueEntry]) -> list[QueueEntry]:
        return [self.update(entry) for entry in entries]
