"""
Position renumbering after entries leave the active queue.

Active positions in a shop must always be exactly 1..N. When an entry
completes, cancels or no-shows, everything behind it moves up one place.
"""

import logging
from typing import Sequence

from core.exceptions import ReconciliationError
from core.models import QueueEntry

logger = logging.getLogger(__name__)


def compact_after_removal(
    active: Sequence[QueueEntry],
    vacated_position: int,
) -> list[QueueEntry]:
    """
    Close the gap left by a removed entry.

    Args:
        active: Remaining active entries of the shop (removed entry excluded)
        vacated_position: Position the removed entry held

    Returns:
        Updated copies of the entries that moved, ascending by position
    """
    return [
        entry.model_copy(update={"position": entry.position - 1})
        for entry in sorted(active, key=lambda e: e.position)
        if entry.position > vacated_position
    ]


def shift_for_insert(active: Sequence[QueueEntry], position: int) -> list[QueueEntry]:
    """
    Make room at `position` by moving it and everything behind it down one.

    Returns:
        Updated copies of the entries that moved, descending by position
    """
    return [
        entry.model_copy(update={"position": entry.position + 1})
        for entry in sorted(active, key=lambda e: e.position, reverse=True)
        if entry.position >= position
    ]


def assert_dense(active: Sequence[QueueEntry]) -> None:
    """
    Verify active positions are exactly {1, ..., N}.

    Raises:
        ReconciliationError: On any gap or duplicate
    """
    positions = sorted(entry.position for entry in active)
    expected = list(range(1, len(positions) + 1))
    if positions != expected:
        shop_ids = {str(entry.shop_id) for entry in active}
        logger.error(
            "Queue positions not dense for shop(s) %s: %s",
            ", ".join(sorted(shop_ids)),
            positions,
        )
        raise ReconciliationError(
            f"Active positions {positions} are not the dense sequence 1..{len(positions)}"
        )
