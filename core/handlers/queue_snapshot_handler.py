"""
Handler for every QueueEvent.

Any committed change to a shop's queue makes its cached snapshot stale;
drop it so the next read rebuilds from storage.
"""

import logging
from typing import Callable

from core.events import QueueEvent

logger = logging.getLogger(__name__)


def handle_queue_changed(snapshot_service) -> Callable:
    """
    Factory that returns a QueueEvent handler.

    Args:
        snapshot_service: QueueSnapshotService instance

    Returns:
        Handler callable that invalidates the shop's snapshot
    """

    def handler(event: QueueEvent):
        snapshot_service.invalidate(event.shop_id)

    return handler
