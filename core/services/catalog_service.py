"""
Catalog service for shop services (haircuts, shaves, colouring...).

Manages each shop's offerings with their duration and price. Queue
admission reads durations and prices through get_services_by_ids; the
queue engine never writes to the catalog.
"""

import logging
from typing import Sequence
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.models import Service, ServiceCreate, ServiceUpdate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "name", "description", "duration_minutes",
    "price_cents", "category", "is_active"
}


class CatalogService:
    """Service for shop service catalog operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, data: ServiceCreate) -> Service:
        """
        Add a service to a shop's catalog.

        Args:
            data: Service creation data

        Returns:
            Created service
        """
        service_id = uuid4()
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO services (
                id, shop_id, name, description,
                duration_minutes, price_cents, category,
                is_active, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s,
                %s, %s, %s,
                %s, %s, %s
            )
            RETURNING *
            """,
            (
                service_id, data.shop_id, data.name, data.description,
                data.duration_minutes, data.price_cents, data.category,
                data.is_active, now, now
            )
        )[0]

        service = Service.model_validate(row)
        logger.info(f"Created service {service.id} for shop {service.shop_id}")
        return service

    def get_by_id(self, service_id: UUID) -> Service | None:
        """
        Get service by ID.

        Args:
            service_id: Service UUID

        Returns:
            Service if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM services WHERE id = %s",
            (service_id,)
        )

        if row is None:
            return None

        return Service.model_validate(row)

    def get_services_by_ids(self, service_ids: Sequence[UUID]) -> list[Service]:
        """
        Fetch several services at once, in the order requested.

        Args:
            service_ids: Service UUIDs

        Returns:
            Services found; unknown IDs are omitted
        """
        if not service_ids:
            return []

        rows = self.postgres.execute(
            "SELECT * FROM services WHERE id = ANY(%s::uuid[])",
            (list(service_ids),)
        )

        by_id = {}
        for row in rows:
            service = Service.model_validate(row)
            by_id[service.id] = service
        return [by_id[sid] for sid in service_ids if sid in by_id]

    def list_for_shop(self, shop_id: UUID, include_inactive: bool = False) -> list[Service]:
        """
        List a shop's services.

        Args:
            shop_id: Shop UUID
            include_inactive: Include services the shop has switched off

        Returns:
            Services ordered by name
        """
        if include_inactive:
            rows = self.postgres.execute(
                "SELECT * FROM services WHERE shop_id = %s ORDER BY name ASC",
                (shop_id,)
            )
        else:
            rows = self.postgres.execute(
                """
                SELECT * FROM services
                WHERE shop_id = %s AND is_active = true
                ORDER BY name ASC
                """,
                (shop_id,)
            )

        return [Service.model_validate(row) for row in rows]

    def update(self, service_id: UUID, data: ServiceUpdate) -> Service:
        """
        Update service fields.

        Entries already in a queue keep the duration and price captured
        when they joined.

        Args:
            service_id: Service UUID
            data: Fields to update

        Returns:
            Updated service

        Raises:
            ValueError: If service not found
        """
        current = self.get_by_id(service_id)
        if current is None:
            raise ValueError(f"Service {service_id} not found")

        updates = data.model_dump(exclude_none=True)
        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return current

        set_parts = []
        params = []
        for field, value in valid_updates.items():
            set_parts.append(f"{field} = %s")
            params.append(value)

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(service_id)

        row = self.postgres.execute_returning(
            f"""
            UPDATE services
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        return Service.model_validate(row)
