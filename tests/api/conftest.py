"""API test fixtures: TestClient over the in-memory service graph."""

import pytest
from starlette.testclient import TestClient

from api.app import build_services, create_app
from core.models import ServiceCreate


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def services():
    """Queue service graph with no database or cache configured."""
    return build_services()


@pytest.fixture
def api_haircut(services, shop_id):
    return services["catalog"].add(ServiceCreate(
        shop_id=shop_id, name="Haircut", duration_minutes=30, price_cents=2000,
    ))


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def join_body(shop_id, api_haircut):
    """Build a join request body for a fresh customer."""
    from uuid import uuid4

    def _body(**overrides) -> dict:
        body = {
            "shop_id": str(shop_id),
            "service_ids": [str(api_haircut.id)],
            "customer_id": str(uuid4()),
            "customer_name": "Walk-in",
        }
        body.update(overrides)
        return body

    return _body
