"""Fixtures for engine tests that work on plain entry lists."""

from uuid import uuid4

import pytest

from core.models import (
    CustomerType, PaymentOption, QueueEntry, QueueStatus,
)
from utils.timezone import now_utc


@pytest.fixture
def make_entry(shop_id):
    """Build a QueueEntry without touching storage."""

    def _make(
        position: int,
        duration: int = 30,
        status: QueueStatus = QueueStatus.WAITING,
        customer_type: CustomerType = CustomerType.STANDARD,
        is_emergency: bool = False,
        shop=None,
        **overrides,
    ) -> QueueEntry:
        now = now_utc()
        fields = dict(
            id=uuid4(),
            shop_id=shop or shop_id,
            service_ids=[uuid4()],
            customer_id=uuid4(),
            customer_name=f"Customer {position}",
            position=position,
            status=status,
            customer_type=customer_type,
            is_emergency=is_emergency,
            emergency_reason="Flight" if is_emergency else None,
            payment_option=PaymentOption.PAY_AT_SHOP,
            service_duration_minutes=duration,
            joined_at=now,
            updated_at=now,
        )
        fields.update(overrides)
        return QueueEntry(**fields)

    return _make
