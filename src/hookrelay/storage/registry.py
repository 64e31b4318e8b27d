"""Subscription registry lookups.

The delivery core only ever asks one question of storage: which active
subscriptions in a scope want a given event. ``SubscriptionRegistry`` is that
contract; ``InMemorySubscriptionRegistry`` is a process-local implementation
used by tests and small deployments.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from hookrelay.models import EventKind, Subscription


@runtime_checkable
class SubscriptionRegistry(Protocol):
    """Read-only view of the subscription store."""

    async def find_active(self, scope: str, event: EventKind) -> list[Subscription]:
        """Return active subscriptions in ``scope`` that subscribe to ``event``.

        Raises:
            RegistryError: If the backing store cannot be queried.
        """
        ...


class InMemorySubscriptionRegistry:
    """Subscription registry held in process memory.

    Subscriptions are returned in registration order.

    Example:
        ```python
        registry = InMemorySubscriptionRegistry()
        registry.add(Subscription(scope="ws_1", name="CRM", url=..., events={...}))
        matches = await registry.find_active("ws_1", EventKind.CLIENT_CREATED)
        ```
    """

    def __init__(self, subscriptions: Iterable[Subscription] = ()) -> None:
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()
        for subscription in subscriptions:
            self.add(subscription)

    def add(self, subscription: Subscription) -> str:
        """Register or replace a subscription.

        Returns:
            The subscription ID.
        """
        with self._lock:
            self._subscriptions[subscription.id] = subscription
        return subscription.id

    def remove(self, subscription_id: str) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        with self._lock:
            return self._subscriptions.pop(subscription_id, None) is not None

    def get(self, subscription_id: str) -> Subscription | None:
        """Get a subscription by ID."""
        with self._lock:
            return self._subscriptions.get(subscription_id)

    def list_subscriptions(self, scope: str | None = None) -> list[Subscription]:
        """List subscriptions, optionally restricted to one scope."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        if scope is None:
            return subscriptions
        return [sub for sub in subscriptions if sub.scope == scope]

    async def find_active(self, scope: str, event: EventKind) -> list[Subscription]:
        """Get all active subscriptions in a scope that subscribe to an event.

        Args:
            scope: Tenant (workspace) ID.
            event: The event kind to filter for.

        Returns:
            Matching subscriptions in registration order.
        """
        return [sub for sub in self.list_subscriptions(scope) if sub.subscribes_to(event)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)
