"""Core domain models."""

from core.models.service import Service, ServiceCreate, ServiceUpdate
from core.models.queue_entry import (
    ACTIVE_STATUSES,
    CustomerType,
    MoveDirection,
    PaymentOption,
    PositionMove,
    PositionSwap,
    PriceQuote,
    QueueEntry,
    QueueEntryCreate,
    QueueEntryUpdate,
    QueueStatus,
    QueueStatusUpdate,
    QuoteRequest,
    ShopQueueSummary,
)

__all__ = [
    # Service
    "Service", "ServiceCreate", "ServiceUpdate",
    # QueueEntry
    "QueueEntry", "QueueEntryCreate", "QueueEntryUpdate", "QueueStatus",
    "ACTIVE_STATUSES", "CustomerType", "PaymentOption",
    # Owner and HTTP inputs
    "QueueStatusUpdate", "PositionSwap", "PositionMove", "MoveDirection", "QuoteRequest",
    # Derived views
    "PriceQuote", "ShopQueueSummary",
]
