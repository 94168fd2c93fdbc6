"""/api/queues: walk-in queue endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.exceptions import NotFoundError
from core.models import (
    PositionMove,
    PositionSwap,
    QueueEntryCreate,
    QueueEntryUpdate,
    QueueStatusUpdate,
    QuoteRequest,
)


def _ok(request: Request, data) -> dict:
    request_id = getattr(request.state, "request_id", None)
    return success_response(data, request_id).model_dump(mode="json")


def create_queue_router(services: dict) -> APIRouter:
    router = APIRouter(prefix="/queues")

    queue_svc = services["queue"]
    snapshot_svc = services.get("snapshot")

    # -------------------------------------------------------------------------
    # Joining
    # -------------------------------------------------------------------------

    @router.post("", status_code=201)
    async def join_queue(request: Request, body: QueueEntryCreate):
        entry = queue_svc.join(body)
        return _ok(request, entry.model_dump(mode="json"))

    @router.post("/quote")
    async def quote(request: Request, body: QuoteRequest):
        return _ok(request, queue_svc.quote(body).model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Shop views (must be registered before /{entry_id})
    # -------------------------------------------------------------------------

    @router.get("/shop/{shop_id}")
    async def shop_queue(request: Request, shop_id: UUID):
        if snapshot_svc is not None:
            return _ok(request, snapshot_svc.get_active(shop_id))
        entries = queue_svc.list_active(shop_id)
        return _ok(request, [e.model_dump(mode="json") for e in entries])

    @router.get("/shop/{shop_id}/history")
    async def shop_history(
        request: Request,
        shop_id: UUID,
        limit: int | None = Query(None, ge=1, le=1000),
    ):
        entries = queue_svc.list_history(shop_id, limit=limit)
        return _ok(request, [e.model_dump(mode="json") for e in entries])

    @router.get("/shop/{shop_id}/summary")
    async def shop_summary(request: Request, shop_id: UUID):
        return _ok(request, queue_svc.summarize_shop(shop_id).model_dump(mode="json"))

    @router.get("/shop/{shop_id}/estimate")
    async def shop_estimate(request: Request, shop_id: UUID, position: int = Query(...)):
        minutes = queue_svc.estimate_wait(shop_id, position)
        return _ok(request, {
            "shop_id": str(shop_id),
            "position": position,
            "estimated_wait_minutes": minutes,
        })

    # -------------------------------------------------------------------------
    # Customer views
    # -------------------------------------------------------------------------

    @router.get("/customer/{customer_id}")
    async def customer_entries(
        request: Request,
        customer_id: UUID,
        limit: int = Query(50, ge=1, le=500),
    ):
        entries = queue_svc.list_for_customer(customer_id, limit=limit)
        return _ok(request, [e.model_dump(mode="json") for e in entries])

    @router.get("/customer/{customer_id}/active")
    async def customer_active_entry(request: Request, customer_id: UUID):
        entry = queue_svc.get_active_for_customer(customer_id)
        return _ok(request, entry.model_dump(mode="json") if entry else None)

    # -------------------------------------------------------------------------
    # Owner controls
    # -------------------------------------------------------------------------

    @router.put("/swap")
    async def swap_positions(request: Request, body: PositionSwap):
        entry_a, entry_b = queue_svc.swap_positions(body.entry_a_id, body.entry_b_id)
        return _ok(request, [entry_a.model_dump(mode="json"), entry_b.model_dump(mode="json")])

    @router.put("/{entry_id}/move")
    async def move_entry(request: Request, entry_id: UUID, body: PositionMove):
        entry = queue_svc.move(entry_id, body.direction)
        return _ok(request, entry.model_dump(mode="json"))

    @router.put("/{entry_id}/status")
    async def set_status(request: Request, entry_id: UUID, body: QueueStatusUpdate):
        entry = queue_svc.set_status(entry_id, body.status)
        return _ok(request, entry.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Single entry
    # -------------------------------------------------------------------------

    @router.get("/{entry_id}")
    async def get_entry(request: Request, entry_id: UUID):
        entry = queue_svc.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Queue entry {entry_id} not found")
        return _ok(request, entry.model_dump(mode="json"))

    @router.put("/{entry_id}")
    async def update_entry(request: Request, entry_id: UUID, body: QueueEntryUpdate):
        entry = queue_svc.update(entry_id, body)
        return _ok(request, entry.model_dump(mode="json"))

    @router.delete("/{entry_id}")
    async def cancel_entry(request: Request, entry_id: UUID):
        entry = queue_svc.cancel(entry_id)
        return _ok(request, entry.model_dump(mode="json"))

    return router
