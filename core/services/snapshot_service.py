"""
Cached read model of each shop's active queue.

Customers poll the queue screen constantly; the snapshot serves those reads
from Valkey for a few seconds instead of hitting Postgres each time. Every
committed queue mutation invalidates the shop's snapshot (see
core/handlers/queue_snapshot_handler.py), so the TTL only bounds staleness
when an invalidation is lost.
"""

import logging
from uuid import UUID

from clients.valkey_client import ValkeyClient
from core.services.queue_service import QueueService

logger = logging.getLogger(__name__)


def snapshot_key(shop_id: UUID) -> str:
    return f"winqroo:queue:active:{shop_id}"


class QueueSnapshotService:
    """Read-through cache of active queue listings."""

    def __init__(self, queue_service: QueueService, valkey: ValkeyClient, ttl_seconds: int):
        self.queue_service = queue_service
        self.valkey = valkey
        self.ttl_seconds = ttl_seconds

    def get_active(self, shop_id: UUID) -> list[dict]:
        """
        Active entries of a shop as JSON-ready dicts, ascending by position.

        Args:
            shop_id: Shop UUID

        Returns:
            Cached snapshot if still fresh, otherwise a fresh listing that
            is stored for the next caller
        """
        key = snapshot_key(shop_id)
        cached = self.valkey.get_json(key)
        if cached is not None:
            return cached

        snapshot = [
            entry.model_dump(mode="json")
            for entry in self.queue_service.list_active(shop_id)
        ]
        self.valkey.set_json(key, snapshot, expire_seconds=self.ttl_seconds)
        return snapshot

    def invalidate(self, shop_id: UUID) -> None:
        """Drop the shop's snapshot so the next read goes to storage."""
        if self.valkey.delete(snapshot_key(shop_id)):
            logger.debug(f"Invalidated queue snapshot for shop {shop_id}")
