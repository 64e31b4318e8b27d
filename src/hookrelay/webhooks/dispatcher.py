"""Fan-out of domain events to subscribed webhook endpoints."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from hookrelay.config import Settings
from hookrelay.exceptions import RegistryError, ValidationError
from hookrelay.logging import bound_context, get_logger
from hookrelay.models import EventKind, WebhookPayload

from .delivery import DeliveryExecutor
from .log import DeliveryLog

if TYPE_CHECKING:
    import structlog

    from hookrelay.models import Subscription, WebhookDelivery
    from hookrelay.storage import SubscriptionRegistry


def _coerce_event(event: EventKind | str) -> EventKind:
    try:
        return EventKind(event)
    except ValueError:
        raise ValidationError("event", f"Unknown event kind: {event!r}") from None


class WebhookDispatcher:
    """Dispatches domain events to registered webhook subscriptions.

    Handles:
    - Finding active subscriptions in a scope that want the event
    - Building one payload envelope shared by every match
    - Delivering to matches concurrently (bounded), retrying each in turn
    - Recording each outcome in the delivery log as it completes

    Example:
        ```python
        dispatcher = WebhookDispatcher(registry)

        deliveries = await dispatcher.trigger(
            "ws_123", EventKind.CLIENT_CREATED, {"client": {"id": "c_1"}}
        )

        # Debugging view
        dispatcher.recent_deliveries()
        ```
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        executor: DeliveryExecutor | None = None,
        delivery_log: DeliveryLog | None = None,
        max_concurrent: int | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Source of subscriptions.
            executor: Delivery executor. Built from settings when omitted.
            delivery_log: Log receiving each completed delivery.
            max_concurrent: Maximum subscriptions delivered to at once by
                one ``trigger`` call.
            logger: Structured logger for dispatch events.
            settings: Settings used for any collaborator not supplied.

        Raises:
            ValueError: If ``max_concurrent`` is less than 1.
        """
        if settings is None:
            settings = Settings()
        if max_concurrent is None:
            max_concurrent = settings.max_concurrent_deliveries
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self._registry = registry
        self._logger = logger or get_logger(__name__)
        self._executor = executor or DeliveryExecutor.from_settings(settings, logger=self._logger)
        # An empty log is falsy, so test for None explicitly
        if delivery_log is None:
            delivery_log = DeliveryLog(settings.delivery_log_capacity)
        self._delivery_log = delivery_log
        self._max_concurrent = max_concurrent

    @property
    def delivery_log(self) -> DeliveryLog:
        """Log of recent deliveries made by this dispatcher."""
        return self._delivery_log

    async def trigger(
        self,
        scope: str,
        event: EventKind | str,
        data: Mapping[str, Any],
    ) -> list[WebhookDelivery]:
        """Dispatch an event to all matching subscriptions.

        Args:
            scope: Tenant (workspace) the event happened in.
            event: Event kind.
            data: Event-specific payload data.

        Returns:
            One delivery record per matched subscription, in registry order.
            Empty when nothing matches.

        Raises:
            ValidationError: If ``event`` is not a known event kind.
        """
        event = _coerce_event(event)
        with bound_context(scope=scope, webhook_event=event.value):
            subscriptions = await self._find_subscriptions(scope, event)

            if not subscriptions:
                self._logger.debug("no_webhooks_subscribed")
                return []

            payload = WebhookPayload(event=event, data=dict(data))
            self._logger.debug("webhook_dispatch", subscriptions=len(subscriptions))

            # Bounds this trigger only; concurrent triggers do not share slots
            semaphore = asyncio.Semaphore(self._max_concurrent)
            deliveries = await asyncio.gather(
                *(
                    self._deliver(semaphore, subscription, payload)
                    for subscription in subscriptions
                )
            )
        return list(deliveries)

    async def _find_subscriptions(self, scope: str, event: EventKind) -> list[Subscription]:
        """Look up matching subscriptions; a failed lookup counts as no match."""
        try:
            subscriptions = await self._registry.find_active(scope, event)
        except RegistryError as e:
            self._logger.error("webhook_registry_lookup_failed", error=e.message)
            return []
        except Exception as e:
            self._logger.exception("webhook_registry_lookup_failed", error=str(e))
            return []
        return list(subscriptions or [])

    async def _deliver(
        self,
        semaphore: asyncio.Semaphore,
        subscription: Subscription,
        payload: WebhookPayload,
    ) -> WebhookDelivery:
        async with semaphore:
            delivery = await self._executor.deliver(subscription, payload)
        self._delivery_log.record(delivery)
        return delivery

    def recent_deliveries(self) -> list[WebhookDelivery]:
        """Recent deliveries, newest first."""
        return self._delivery_log.recent()

    def clear_recent_deliveries(self) -> int:
        """Clear the delivery log. Returns the number of entries removed."""
        return self._delivery_log.clear()


async def trigger_webhooks(
    registry: SubscriptionRegistry,
    scope: str,
    event: EventKind | str,
    data: Mapping[str, Any],
    delivery_log: DeliveryLog | None = None,
) -> list[WebhookDelivery]:
    """Convenience function to dispatch one event without keeping a dispatcher.

    Args:
        registry: Source of subscriptions.
        scope: Tenant (workspace) the event happened in.
        event: Event kind.
        data: Event-specific payload data.
        delivery_log: Optional log to record outcomes in.

    Returns:
        One delivery record per matched subscription.
    """
    dispatcher = WebhookDispatcher(registry, delivery_log=delivery_log)
    return await dispatcher.trigger(scope, event, data)
