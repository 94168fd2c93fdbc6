"""Walk-in queue entry domain models."""

from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, model_validator


class QueueStatus(str, Enum):
    """Queue entry lifecycle status."""

    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ACTIVE_STATUSES = frozenset({QueueStatus.WAITING, QueueStatus.IN_PROGRESS})


class CustomerType(str, Enum):
    """Loyalty tier of the customer joining the queue."""

    STANDARD = "standard"
    REGULAR = "regular"
    VIP = "vip"


class PaymentOption(str, Enum):
    """How the customer settles the bill."""

    PAY_NOW = "pay_now"
    PAY_AT_SHOP = "pay_at_shop"


def _reject_duplicate_services(service_ids: list[UUID]) -> list[UUID]:
    if len(set(service_ids)) != len(service_ids):
        raise ValueError("service_ids must not contain duplicates")
    return service_ids


# A multi-service booking lists each service once
ServiceIds = Annotated[
    list[UUID], Field(min_length=1), AfterValidator(_reject_duplicate_services)
]


class QueueEntryCreate(BaseModel):
    """Data required to join a shop's queue."""

    shop_id: UUID
    service_ids: ServiceIds
    customer_id: UUID
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_type: CustomerType = CustomerType.STANDARD
    is_emergency: bool = False
    emergency_reason: str | None = Field(None, max_length=500)
    payment_option: PaymentOption = PaymentOption.PAY_AT_SHOP
    notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_emergency(self) -> "QueueEntryCreate":
        """Emergency bookings must say why."""
        if self.is_emergency and not (self.emergency_reason or "").strip():
            raise ValueError("Emergency bookings require an emergency_reason")
        return self


class QueueEntryUpdate(BaseModel):
    """
    Edits allowed before service starts. All fields optional.

    Changing services recomputes duration and price. Changing any priority
    attribute re-runs admission ranking for the entry.
    """

    service_ids: ServiceIds | None = None
    notes: str | None = Field(None, max_length=1000)
    customer_type: CustomerType | None = None
    is_emergency: bool | None = None
    emergency_reason: str | None = Field(None, max_length=500)
    payment_option: PaymentOption | None = None


class QueueStatusUpdate(BaseModel):
    """Requested status transition."""

    status: QueueStatus


class PositionSwap(BaseModel):
    """Owner-driven exchange of two entries' positions."""

    entry_a_id: UUID
    entry_b_id: UUID


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class PositionMove(BaseModel):
    direction: MoveDirection


class QueueEntry(BaseModel):
    """Full queue entry as stored."""

    id: UUID
    shop_id: UUID
    service_ids: list[UUID]
    customer_id: UUID
    customer_name: str
    position: int = Field(..., ge=1)
    status: QueueStatus
    customer_type: CustomerType
    is_emergency: bool
    emergency_reason: str | None = None
    payment_option: PaymentOption
    service_duration_minutes: int = Field(..., ge=0)
    estimated_wait_minutes: int = Field(0, ge=0)
    base_price_cents: int = Field(0, ge=0)
    priority_fee_cents: int = Field(0, ge=0)
    notes: str | None = None
    joined_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    closed_at: datetime | None = None
    actual_duration_minutes: int | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_active(self) -> bool:
        """Whether the entry occupies a position in the live queue."""
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Whether the entry has left the queue for good."""
        return not self.is_active

    @property
    def total_price_cents(self) -> int:
        return self.base_price_cents + self.priority_fee_cents


class PriceQuote(BaseModel):
    """What a booking costs, including any priority surcharge."""

    base_price_cents: int
    priority_fee_cents: int
    total_price_cents: int
    priority_score: int
    requires_online_payment: bool


class QuoteRequest(BaseModel):
    """Prospective booking to price before joining."""

    shop_id: UUID
    service_ids: ServiceIds
    customer_type: CustomerType = CustomerType.STANDARD
    is_emergency: bool = False


class ShopQueueSummary(BaseModel):
    """At-a-glance queue state shown before a customer joins."""

    shop_id: UUID
    waiting_count: int
    in_progress_count: int
    active_count: int
    next_estimated_wait_minutes: int
