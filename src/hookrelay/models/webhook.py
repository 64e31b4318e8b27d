"""Webhook models for outbound event notifications.

Provides event kinds, subscription records, the payload envelope sent to
endpoints, and the delivery record kept for each subscription per trigger.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from hookrelay.exceptions import InvalidTransitionError

from .base import generate_id, utc_now_iso


class EventKind(str, Enum):
    """Domain events that can trigger webhooks, named ``<entity>.<verb>``."""

    CLIENT_CREATED = "client.created"
    CLIENT_UPDATED = "client.updated"
    CLIENT_DELETED = "client.deleted"
    CLIENT_STATUS_CHANGED = "client.status_changed"
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_COMPLETED = "project.completed"
    ACTIVITY_CREATED = "activity.created"

    @property
    def entity(self) -> str:
        """Entity part of the event name (``client`` for ``client.created``)."""
        return self.value.split(".", 1)[0]

    @property
    def label(self) -> str:
        """Human-readable name shown on settings screens."""
        return EVENT_LABELS[self]


EVENT_LABELS: dict[EventKind, str] = {
    EventKind.CLIENT_CREATED: "Client Created",
    EventKind.CLIENT_UPDATED: "Client Updated",
    EventKind.CLIENT_DELETED: "Client Deleted",
    EventKind.CLIENT_STATUS_CHANGED: "Client Status Changed",
    EventKind.PROJECT_CREATED: "Project Created",
    EventKind.PROJECT_UPDATED: "Project Updated",
    EventKind.PROJECT_COMPLETED: "Project Completed",
    EventKind.ACTIVITY_CREATED: "Activity Logged",
}

ALL_EVENT_KINDS: list[EventKind] = list(EventKind)

DeliveryStatus = Literal["pending", "success", "failed"]

# One entry of a diff map: {"from": <previous value>, "to": <current value>}
FieldChange = TypedDict("FieldChange", {"from": Any, "to": Any})


class Subscription(BaseModel):
    """A configured destination for webhook deliveries.

    Owned by the external registry; the delivery core only reads it.

    Attributes:
        id: Unique identifier for this subscription.
        scope: Tenant the subscription belongs to (a workspace ID).
        name: Human-readable name.
        url: Endpoint receiving POST requests.
        secret: Shared secret for HMAC-SHA256 signatures. No signature is sent without one.
        events: Event kinds this subscription wants.
        active: Whether deliveries are currently enabled.
        created_by: User who registered the subscription.
        created_at: When the subscription was registered.
        updated_at: When the subscription was last modified.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("whk"))
    scope: str = Field(description="Tenant (workspace) the subscription belongs to")
    name: str = Field(description="Human-readable name")
    url: HttpUrl = Field(description="Endpoint receiving webhook events")
    secret: str | None = Field(default=None, description="Shared secret for signatures")
    events: set[EventKind] = Field(default_factory=set, description="Subscribed event kinds")
    active: bool = Field(default=True, description="Whether the subscription is active")
    created_by: str | None = Field(default=None, description="User who created it")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the subscription was registered",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the subscription was last modified",
    )

    @property
    def signs_payloads(self) -> bool:
        """Whether deliveries to this subscription carry a signature."""
        return bool(self.secret)

    def subscribes_to(self, event: EventKind) -> bool:
        """Check if this subscription is eligible for the given event."""
        return self.active and event in self.events


class WebhookPayload(BaseModel):
    """Envelope sent to webhook endpoints.

    One envelope is built per trigger and shared by every matched
    subscription, so all of them see the same timestamp and data.

    Attributes:
        event: Event kind.
        timestamp: When the event was triggered (ISO-8601, UTC).
        data: Entity snapshot under the entity key, plus optional
            ``previous`` and ``changes``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    event: EventKind = Field(description="Event kind")
    timestamp: str = Field(default_factory=utc_now_iso, description="ISO-8601 trigger time")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific payload")

    @field_validator("data")
    @classmethod
    def _drop_missing_sections(cls, value: dict[str, Any]) -> dict[str, Any]:
        """Omit sections that were not supplied (e.g. no previous snapshot)."""
        return {key: section for key, section in value.items() if section is not None}

    def to_bytes(self) -> bytes:
        """Serialize to the exact JSON bytes sent as the request body."""
        return self.model_dump_json().encode("utf-8")


class WebhookDelivery(BaseModel):
    """Outcome of delivering one payload to one subscription.

    Created as ``pending`` before the first attempt, updated in place as
    attempts are made, and final once it reaches ``success`` or ``failed``.

    Attributes:
        id: Unique identifier for this delivery.
        subscription_id: ID of the target subscription.
        subscription_name: Name of the target subscription.
        url: Endpoint the payload was sent to.
        event: Event kind being delivered.
        payload: The envelope being delivered.
        status: pending, success or failed.
        status_code: HTTP status of the last response, if one was received.
        response_body: Body of the last response (truncated).
        error_message: Why the last attempt did not succeed.
        timestamp: When the delivery started.
        retry_count: Retries performed so far (0 means only the first attempt).
        max_retries: Retry budget for this delivery.
        completed_at: When the delivery reached a terminal status.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("dlv"))
    subscription_id: str = Field(description="ID of the target subscription")
    subscription_name: str = Field(description="Name of the target subscription")
    url: str = Field(description="Endpoint the payload is sent to")
    event: EventKind = Field(description="Event kind")
    payload: WebhookPayload = Field(description="Envelope being delivered")
    status: DeliveryStatus = Field(default="pending", description="Delivery status")
    status_code: int | None = Field(default=None, description="Last HTTP status code")
    response_body: str | None = Field(default=None, description="Last response body")
    error_message: str | None = Field(default=None, description="Last error message")
    timestamp: str = Field(default_factory=utc_now_iso, description="When delivery started")
    retry_count: int = Field(default=0, ge=0, description="Retries performed")
    max_retries: int = Field(default=3, ge=0, description="Retry budget")
    completed_at: datetime | None = Field(default=None, description="When delivery finished")

    @classmethod
    def for_subscription(
        cls,
        subscription: Subscription,
        payload: WebhookPayload,
        max_retries: int,
    ) -> "WebhookDelivery":
        """Create a pending delivery of ``payload`` to ``subscription``."""
        return cls(
            subscription_id=subscription.id,
            subscription_name=subscription.name,
            url=str(subscription.url),
            event=payload.event,
            payload=payload,
            max_retries=max_retries,
        )

    @property
    def is_terminal(self) -> bool:
        """Whether the delivery has reached success or failed."""
        return self.status != "pending"

    def _ensure_pending(self) -> None:
        if self.is_terminal:
            raise InvalidTransitionError(self.id, self.status)

    def start_attempt(self, attempt: int) -> "WebhookDelivery":
        """Record that attempt number ``attempt`` (zero-based) is starting."""
        self._ensure_pending()
        self.retry_count = attempt
        return self

    def record_response(
        self, status_code: int, response_body: str | None = None
    ) -> "WebhookDelivery":
        """Record the response of the current attempt."""
        self._ensure_pending()
        self.status_code = status_code
        self.response_body = response_body
        self.error_message = None if 200 <= status_code < 300 else f"HTTP {status_code}"
        return self

    def record_error(self, error: str) -> "WebhookDelivery":
        """Record a transport error for the current attempt."""
        self._ensure_pending()
        self.status_code = None
        self.response_body = None
        self.error_message = error
        return self

    def mark_success(self) -> "WebhookDelivery":
        """Mark delivery as successful."""
        self._ensure_pending()
        self.status = "success"
        self.completed_at = datetime.now(UTC)
        return self

    def mark_failed(self, error: str | None = None) -> "WebhookDelivery":
        """Mark delivery as failed, keeping the last observed outcome.

        Args:
            error: Overrides the last error message when given.
        """
        self._ensure_pending()
        self.status = "failed"
        self.completed_at = datetime.now(UTC)
        if error is not None:
            self.error_message = error
        return self


__all__ = [
    "ALL_EVENT_KINDS",
    "EVENT_LABELS",
    "DeliveryStatus",
    "EventKind",
    "FieldChange",
    "Subscription",
    "WebhookDelivery",
    "WebhookPayload",
]
