"""
Event bus for queue domain events.

Synchronous in-process pub/sub. Handlers run in the publisher's thread,
after the queue transaction has committed. Handler errors are logged and
never propagate back into the queue operation.
"""

import logging
from typing import Callable, Dict, List

from core.events import QueueEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus for queue domain events.

    Subscribe by event class name. A subscription to a base class name
    (e.g. 'QueueEvent') also receives every subclass event. Handlers for
    the most specific class run first.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """
        Subscribe to events of a type and its subclasses.

        Args:
            event_type: Event class name (e.g. 'QueueEntryJoined', 'QueueEvent')
            callback: Function called with the event instance
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def publish(self, event: QueueEvent) -> None:
        """
        Deliver an event to every matching subscriber.

        Args:
            event: QueueEvent instance to publish
        """
        for cls in type(event).__mro__:
            for callback in self._subscribers.get(cls.__name__, ()):
                try:
                    callback(event)
                except Exception:
                    logger.exception(
                        "Handler %s failed for %s (event_id=%s)",
                        getattr(callback, "__name__", repr(callback)),
                        type(event).__name__,
                        event.event_id,
                    )
            if cls is QueueEvent:
                break
