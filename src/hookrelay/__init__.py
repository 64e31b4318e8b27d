"""hookrelay: webhooks you can verify.

Notifies external endpoints when domain events occur, delivering each event
at least once with an HMAC signature, bounded retries, and an inspectable
log of recent deliveries.

Quick Start:
    from hookrelay import EventKind, Subscription
    from hookrelay.storage import InMemorySubscriptionRegistry
    from hookrelay.webhooks import WebhookDispatcher, WebhookEvents

    registry = InMemorySubscriptionRegistry([
        Subscription(
            scope="ws_123",
            name="CRM sync",
            url="https://crm.example/hook",
            secret="shared-secret",
            events={EventKind.CLIENT_CREATED},
        )
    ])
    events = WebhookEvents(WebhookDispatcher(registry))

    deliveries = await events.client_created("ws_123", {"id": "c_1", "name": "Acme"})

Delivery guarantees:
    - At least once: up to max_retries + 1 attempts per subscription
    - Any 2xx response counts as success
    - Failures never propagate to the code that triggered the event
"""

__version__ = "0.1.0"

# Configuration
from .config import RetrySettings, Settings, settings

# Exceptions
from .exceptions import (
    HookRelayError,
    InvalidTransitionError,
    RegistryError,
    SigningError,
    ValidationError,
)

# Logging
from .logging import (
    bound_context,
    configure_logging,
    get_logger,
)

# Models
from .models import (
    ALL_EVENT_KINDS,
    EventKind,
    Subscription,
    WebhookDelivery,
    WebhookPayload,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "RetrySettings",
    "Settings",
    "settings",
    # Exceptions
    "HookRelayError",
    "InvalidTransitionError",
    "RegistryError",
    "SigningError",
    "ValidationError",
    # Logging
    "bound_context",
    "configure_logging",
    "get_logger",
    # Models
    "ALL_EVENT_KINDS",
    "EventKind",
    "Subscription",
    "WebhookDelivery",
    "WebhookPayload",
]
