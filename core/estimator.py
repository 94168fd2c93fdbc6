"""
Wait-time estimation.

An entry waits for the combined service time of everyone ahead of it.
No averaging or historical correction: deterministic and conservative.
"""

from typing import Sequence

from core.models import QueueEntry


def estimate_wait(active: Sequence[QueueEntry], position: int) -> int:
    """
    Minutes until the entry at `position` is served.

    Args:
        active: Active entries of one shop
        position: Queue position being asked about

    Returns:
        Sum of service durations of active entries with a smaller position
    """
    return sum(
        entry.service_duration_minutes
        for entry in active
        if entry.position < position
    )


def refresh_estimates(active: Sequence[QueueEntry]) -> list[QueueEntry]:
    """
    Recompute estimated_wait_minutes for every active entry.

    Returns:
        Entries whose estimate changed, as updated copies, ascending by
        position. Unchanged entries are left out.
    """
    changed = []
    elapsed = 0
    for entry in sorted(active, key=lambda e: e.position):
        if entry.estimated_wait_minutes != elapsed:
            changed.append(entry.model_copy(update={"estimated_wait_minutes": elapsed}))
        elapsed += entry.service_duration_minutes
    return changed
