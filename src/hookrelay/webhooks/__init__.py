"""Webhook delivery system for hookrelay.

Provides HMAC-signed webhook delivery with jittered exponential backoff
retry and a bounded log of recent outcomes.

Example:
    ```python
    from hookrelay.storage import InMemorySubscriptionRegistry
    from hookrelay.webhooks import WebhookDispatcher, WebhookEvents

    dispatcher = WebhookDispatcher(InMemorySubscriptionRegistry([subscription]))
    events = WebhookEvents(dispatcher)

    # Using a typed helper
    await events.client_created("ws_123", {"id": "c_1", "name": "Acme"})

    # Using the dispatcher directly
    await dispatcher.trigger("ws_123", "project.completed", {"project": project})

    dispatcher.recent_deliveries()
    ```
"""

from .backoff import BackoffPolicy
from .delivery import (
    EVENT_HEADER,
    RETRY_COUNT_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    DeliveryExecutor,
)
from .dispatcher import WebhookDispatcher, trigger_webhooks
from .events import WebhookEvents, compute_changes
from .log import DeliveryLog
from .signing import compute_signature, verify_signature

__all__ = [
    "EVENT_HEADER",
    "RETRY_COUNT_HEADER",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "BackoffPolicy",
    "DeliveryExecutor",
    "DeliveryLog",
    "WebhookDispatcher",
    "WebhookEvents",
    "compute_changes",
    "compute_signature",
    "trigger_webhooks",
    "verify_signature",
]
