"""Models for hookrelay.

Webhook Types:
    - Subscription: A configured destination (URL, events, optional secret)
    - WebhookPayload: The envelope sent to endpoints
    - WebhookDelivery: Outcome of delivering one payload to one subscription

Supporting Types:
    - EventKind: Closed set of domain events
    - FieldChange: One entry of a computed diff map
"""

from .base import generate_id, utc_now_iso
from .webhook import (
    ALL_EVENT_KINDS,
    EVENT_LABELS,
    DeliveryStatus,
    EventKind,
    FieldChange,
    Subscription,
    WebhookDelivery,
    WebhookPayload,
)

__all__ = [
    # Helpers
    "generate_id",
    "utc_now_iso",
    # Webhook types
    "ALL_EVENT_KINDS",
    "EVENT_LABELS",
    "DeliveryStatus",
    "EventKind",
    "FieldChange",
    "Subscription",
    "WebhookDelivery",
    "WebhookPayload",
]
