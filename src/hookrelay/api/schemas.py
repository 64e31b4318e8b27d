"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from hookrelay.models import EventKind, WebhookDelivery


class HealthResponse(BaseModel):
    """Response for health check endpoint.

    Attributes:
        status: Service status (healthy, unhealthy).
        version: API version.
        dispatcher_ready: Whether a dispatcher is configured.
    """

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
    dispatcher_ready: bool


class EventKindResponse(BaseModel):
    """One subscribable event kind."""

    model_config = ConfigDict(extra="forbid")

    value: EventKind
    label: str
    entity: str


class EventKindsResponse(BaseModel):
    """All event kinds a subscription can select."""

    model_config = ConfigDict(extra="forbid")

    events: list[EventKindResponse]


class DeliveriesResponse(BaseModel):
    """Recent deliveries, newest first.

    Attributes:
        deliveries: Logged deliveries.
        count: Number of deliveries returned.
        capacity: Maximum number of deliveries the log keeps.
    """

    model_config = ConfigDict(extra="forbid")

    deliveries: list[WebhookDelivery] = Field(default_factory=list)
    count: int = Field(ge=0)
    capacity: int = Field(ge=1)


class ClearDeliveriesResponse(BaseModel):
    """Result of clearing the delivery log."""

    model_config = ConfigDict(extra="forbid")

    cleared: int = Field(ge=0, description="Number of deliveries removed")
