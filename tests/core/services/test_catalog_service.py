"""Tests for CatalogService against a mocked PostgresClient."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient
from core.catalog import InMemoryServiceCatalog
from core.models import Service, ServiceCreate, ServiceUpdate
from core.services.catalog_service import CatalogService
from utils.timezone import now_utc


@pytest.fixture
def postgres():
    return MagicMock(spec=PostgresClient)


@pytest.fixture
def catalog_service(postgres):
    return CatalogService(postgres)


def _service_row(shop_id, **overrides) -> dict:
    now = now_utc()
    row = dict(
        id=uuid4(), shop_id=shop_id, name="Haircut", description=None,
        duration_minutes=30, price_cents=2000, category=None,
        is_active=True, created_at=now, updated_at=now,
    )
    row.update(overrides)
    return row


class TestCreate:

    def test_create_returns_service(self, catalog_service, postgres, shop_id):
        postgres.execute_returning.return_value = [_service_row(shop_id)]

        service = catalog_service.create(ServiceCreate(
            shop_id=shop_id, name="Haircut", duration_minutes=30, price_cents=2000,
        ))

        assert isinstance(service, Service)
        assert service.price_dollars == 20.0

    def test_duration_must_be_at_least_five_minutes(self, shop_id):
        with pytest.raises(ValueError):
            ServiceCreate(shop_id=shop_id, name="Blink", duration_minutes=1, price_cents=0)


class TestGetServicesByIds:

    def test_preserves_requested_order_and_omits_unknown(self, catalog_service, postgres, shop_id):
        a = _service_row(shop_id, name="A")
        b = _service_row(shop_id, name="B")
        postgres.execute.return_value = [a, b]

        result = catalog_service.get_services_by_ids([b["id"], uuid4(), a["id"]])

        assert [s.name for s in result] == ["B", "A"]

    def test_empty_request_skips_query(self, catalog_service, postgres):
        assert catalog_service.get_services_by_ids([]) == []
        postgres.execute.assert_not_called()


class TestUpdate:

    def test_missing_service(self, catalog_service, postgres):
        postgres.execute_single.return_value = None
        with pytest.raises(ValueError, match="not found"):
            catalog_service.update(uuid4(), ServiceUpdate(price_cents=100))

    def test_empty_update_returns_current(self, catalog_service, postgres, shop_id):
        row = _service_row(shop_id)
        postgres.execute_single.return_value = row

        result = catalog_service.update(row["id"], ServiceUpdate())

        assert result.id == row["id"]
        postgres.execute_returning.assert_not_called()

    def test_sets_only_given_fields(self, catalog_service, postgres, shop_id):
        row = _service_row(shop_id)
        postgres.execute_single.return_value = row
        postgres.execute_returning.return_value = [dict(row, price_cents=2500)]

        result = catalog_service.update(row["id"], ServiceUpdate(price_cents=2500))

        query, _ = postgres.execute_returning.call_args.args
        assert "price_cents = %s" in query
        assert "name = %s" not in query
        assert result.price_cents == 2500


class TestInMemoryCatalog:

    def test_add_and_lookup(self, shop_id):
        catalog = InMemoryServiceCatalog()
        service = catalog.add(ServiceCreate(
            shop_id=shop_id, name="Beard trim", duration_minutes=10, price_cents=800,
        ))

        assert catalog.get_services_by_ids([uuid4(), service.id]) == [service]

    def test_deactivate(self, shop_id):
        catalog = InMemoryServiceCatalog()
        service = catalog.add(ServiceCreate(
            shop_id=shop_id, name="Beard trim", duration_minutes=10, price_cents=800,
        ))

        catalog.deactivate(service.id)

        assert catalog.get_services_by_ids([service.id])[0].is_active is False
