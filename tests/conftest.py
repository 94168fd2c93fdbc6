"""Shared test fixtures for the queue engine test suite."""

import pytest
from uuid import UUID, uuid4
from pathlib import Path

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.catalog import InMemoryServiceCatalog
from core.event_bus import EventBus
from core.models import (
    CustomerType, PaymentOption, QueueEntryCreate, ServiceCreate,
)
from core.repositories.memory_repository import InMemoryQueueRepository
from core.services.queue_service import QueueService


# =============================================================================
# SHOP CONSTANTS
# =============================================================================

# Primary test shop - use for single-shop tests
TEST_SHOP_ID = UUID("00000000-0000-0000-0000-0000000000a1")

# Secondary test shop - use for cross-shop tests
TEST_SHOP_B_ID = UUID("00000000-0000-0000-0000-0000000000b2")


@pytest.fixture
def shop_id() -> UUID:
    return TEST_SHOP_ID


@pytest.fixture
def shop_b_id() -> UUID:
    return TEST_SHOP_B_ID


# =============================================================================
# CATALOG FIXTURES
# =============================================================================


@pytest.fixture
def catalog():
    return InMemoryServiceCatalog()


@pytest.fixture
def haircut(catalog, shop_id):
    """30-minute, 2000-cent haircut at the primary shop."""
    return catalog.add(ServiceCreate(
        shop_id=shop_id, name="Haircut", duration_minutes=30, price_cents=2000,
    ))


@pytest.fixture
def shave(catalog, shop_id):
    """15-minute, 1000-cent shave at the primary shop."""
    return catalog.add(ServiceCreate(
        shop_id=shop_id, name="Shave", duration_minutes=15, price_cents=1000,
    ))


@pytest.fixture
def shop_b_haircut(catalog, shop_b_id):
    return catalog.add(ServiceCreate(
        shop_id=shop_b_id, name="Haircut", duration_minutes=45, price_cents=2500,
    ))


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def repository():
    return InMemoryQueueRepository()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def published(event_bus):
    """Every event the bus delivers, in order."""
    events = []
    event_bus.subscribe("QueueEvent", events.append)
    return events


@pytest.fixture
def queue_service(repository, catalog, event_bus):
    return QueueService(repository, catalog, event_bus)


@pytest.fixture
def join(queue_service, shop_id, haircut):
    """
    Join the primary shop for a fresh customer.

    Priority bookings default to pay_now so the payment gate passes.
    """

    def _join(
        customer_type: CustomerType = CustomerType.STANDARD,
        is_emergency: bool = False,
        service_ids=None,
        payment_option: PaymentOption | None = None,
        customer_id: UUID | None = None,
        name: str = "Walk-in",
        shop=None,
    ):
        if payment_option is None:
            priority = is_emergency or customer_type != CustomerType.STANDARD
            payment_option = PaymentOption.PAY_NOW if priority else PaymentOption.PAY_AT_SHOP

        return queue_service.join(QueueEntryCreate(
            shop_id=shop or shop_id,
            service_ids=service_ids or [haircut.id],
            customer_id=customer_id or uuid4(),
            customer_name=name,
            customer_type=customer_type,
            is_emergency=is_emergency,
            emergency_reason="Wedding in an hour" if is_emergency else None,
            payment_option=payment_option,
        ))

    return _join
