"""
Application assembly.

Wires storage, catalog, event bus and snapshot cache into the queue
service, then mounts the HTTP layer on a FastAPI app.
"""

import logging

from fastapi import FastAPI

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.queue_routes import create_queue_router
from core.catalog import InMemoryServiceCatalog
from core.config import QueueSettings
from core.event_bus import EventBus
from core.handlers.queue_snapshot_handler import handle_queue_changed
from core.repositories.memory_repository import InMemoryQueueRepository
from core.services.queue_service import QueueService

logger = logging.getLogger(__name__)


def build_services(
    database_url: str | None = None,
    valkey_url: str | None = None,
    settings: QueueSettings | None = None,
) -> dict:
    """
    Build the service graph the routers need.

    Args:
        database_url: PostgreSQL URL. Without one the queue runs on the
            in-memory repository and catalog (offline demo mode).
        valkey_url: Valkey URL for the active-queue snapshot cache. Without
            one, reads go straight to storage.
        settings: Queue configuration

    Returns:
        Dict with 'queue', 'catalog', 'snapshot' (or None) and 'event_bus'
    """
    settings = settings or QueueSettings()
    event_bus = EventBus()

    if database_url:
        from clients.postgres_client import PostgresClient
        from core.repositories.postgres_repository import PostgresQueueRepository
        from core.services.catalog_service import CatalogService

        postgres = PostgresClient(database_url)
        repository = PostgresQueueRepository(postgres)
        catalog = CatalogService(postgres)
    else:
        logger.warning("No database configured; queue state lives in memory only")
        repository = InMemoryQueueRepository()
        catalog = InMemoryServiceCatalog()

    queue_service = QueueService(repository, catalog, event_bus, settings)

    snapshot_service = None
    if valkey_url:
        from clients.valkey_client import ValkeyClient
        from core.services.snapshot_service import QueueSnapshotService

        snapshot_service = QueueSnapshotService(
            queue_service, ValkeyClient(valkey_url), settings.snapshot_ttl_seconds
        )
        event_bus.subscribe("QueueEvent", handle_queue_changed(snapshot_service))

    return {
        "queue": queue_service,
        "catalog": catalog,
        "snapshot": snapshot_service,
        "event_bus": event_bus,
    }


def create_app(services: dict) -> FastAPI:
    """FastAPI app with request IDs, error handlers and the queue routes."""
    app = FastAPI(title="Winqroo Queue")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(create_queue_router(services), prefix="/api")
    return app
