"""Subscription storage for hookrelay.

Example:
    ```python
    from hookrelay.storage import InMemorySubscriptionRegistry

    registry = InMemorySubscriptionRegistry([subscription])
    matches = await registry.find_active("ws_123", EventKind.CLIENT_CREATED)
    ```
"""

from .registry import InMemorySubscriptionRegistry, SubscriptionRegistry

__all__ = [
    "InMemorySubscriptionRegistry",
    "SubscriptionRegistry",
]
