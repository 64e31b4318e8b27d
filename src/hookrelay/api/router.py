"""FastAPI router for hookrelay inspection endpoints.

Meant for a settings/debugging screen that polls every few seconds.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hookrelay import __version__
from hookrelay.logging import get_logger
from hookrelay.models import ALL_EVENT_KINDS
from hookrelay.webhooks import WebhookDispatcher

from .schemas import (
    ClearDeliveriesResponse,
    DeliveriesResponse,
    EventKindResponse,
    EventKindsResponse,
    HealthResponse,
)

logger = get_logger(__name__)

router = APIRouter()

# Dispatcher instance (set by app lifespan)
_dispatcher: WebhookDispatcher | None = None


def set_dispatcher(dispatcher: WebhookDispatcher | None) -> None:
    """Set the global dispatcher instance."""
    global _dispatcher
    _dispatcher = dispatcher


async def get_dispatcher() -> WebhookDispatcher:
    """Dependency to get the WebhookDispatcher instance."""
    if _dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dispatcher not initialized",
        )
    return _dispatcher


DispatcherDep = Annotated[WebhookDispatcher, Depends(get_dispatcher)]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Check service health."""
    ready = _dispatcher is not None
    return HealthResponse(
        status="healthy" if ready else "unhealthy",
        version=__version__,
        dispatcher_ready=ready,
    )


@router.get("/webhooks/events", response_model=EventKindsResponse, tags=["webhooks"])
async def list_event_kinds() -> EventKindsResponse:
    """List the event kinds a subscription can select."""
    return EventKindsResponse(
        events=[
            EventKindResponse(value=kind, label=kind.label, entity=kind.entity)
            for kind in ALL_EVENT_KINDS
        ]
    )


@router.get("/webhooks/deliveries", response_model=DeliveriesResponse, tags=["webhooks"])
async def get_recent_deliveries(
    dispatcher: DispatcherDep,
    limit: Annotated[int | None, Query(ge=1, description="Return at most this many")] = None,
) -> DeliveriesResponse:
    """Get recent webhook deliveries, newest first."""
    deliveries = dispatcher.recent_deliveries()
    if limit is not None:
        deliveries = deliveries[:limit]
    return DeliveriesResponse(
        deliveries=deliveries,
        count=len(deliveries),
        capacity=dispatcher.delivery_log.capacity,
    )


@router.delete("/webhooks/deliveries", response_model=ClearDeliveriesResponse, tags=["webhooks"])
async def clear_recent_deliveries(dispatcher: DispatcherDep) -> ClearDeliveriesResponse:
    """Clear the recent deliveries log."""
    cleared = dispatcher.clear_recent_deliveries()
    logger.info("webhook_deliveries_cleared", cleared=cleared)
    return ClearDeliveriesResponse(cleared=cleared)
