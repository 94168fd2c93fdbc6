"""Service catalog lookup used by queue admission."""

from typing import Iterable, Protocol, Sequence
from uuid import UUID, uuid4

from core.models import Service, ServiceCreate
from utils.timezone import now_utc


class ServiceCatalog(Protocol):
    """Read access to shop services, as queue admission needs it."""

    def get_services_by_ids(self, service_ids: Sequence[UUID]) -> list[Service]:
        """
        Fetch services by ID, in the order requested.

        Unknown IDs are omitted rather than raised; the caller decides
        whether a missing service is an error.
        """
        ...


class InMemoryServiceCatalog:
    """Dict-backed ServiceCatalog for tests and the offline demo mode."""

    def __init__(self, services: Iterable[Service] = ()):
        self._services: dict[UUID, Service] = {service.id: service for service in services}

    def add(self, data: ServiceCreate) -> Service:
        now = now_utc()
        service = Service(id=uuid4(), created_at=now, updated_at=now, **data.model_dump())
        self._services[service.id] = service
        return service

    def deactivate(self, service_id: UUID) -> Service:
        service = self._services[service_id].model_copy(
            update={"is_active": False, "updated_at": now_utc()}
        )
        self._services[service_id] = service
        return service

    def get_services_by_ids(self, service_ids: Sequence[UUID]) -> list[Service]:
        return [self._services[sid] for sid in service_ids if sid in self._services]
