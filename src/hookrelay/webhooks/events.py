"""Typed helpers for triggering each domain event.

Each helper shapes the ``data`` section of the envelope the same way:
created, deleted and completed events carry the entity snapshot; updated
and status-changed events also carry ``previous`` and the computed ``changes``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from hookrelay.models import EventKind, FieldChange

if TYPE_CHECKING:
    from hookrelay.models import WebhookDelivery

    from .dispatcher import WebhookDispatcher

Snapshot = Mapping[str, Any] | BaseModel


def _snapshot(entity: Snapshot | None) -> dict[str, Any] | None:
    """Plain dict of an entity snapshot; pydantic models keep only set fields."""
    if entity is None:
        return None
    if isinstance(entity, BaseModel):
        return entity.model_dump(mode="json", exclude_unset=True)
    return dict(entity)


def compute_changes(
    previous: Snapshot | None,
    current: Snapshot | None,
) -> dict[str, FieldChange]:
    """Field-by-field diff of two snapshots.

    Only keys of ``current`` are compared, so a field dropped from
    ``current`` does not show up as a change.

    Example:
        ```python
        compute_changes({"status": "lead"}, {"status": "active", "name": "Acme"})
        # {"status": {"from": "lead", "to": "active"}}
        ```
    """
    before = _snapshot(previous)
    after = _snapshot(current)
    if before is None or after is None:
        return {}

    changes: dict[str, FieldChange] = {}
    for key, value in after.items():
        old = before.get(key)
        if key not in before or old != value:
            changes[key] = {"from": old, "to": value}
    return changes


class WebhookEvents:
    """One helper per event kind, in front of a dispatcher.

    Example:
        ```python
        events = WebhookEvents(dispatcher)
        await events.client_updated("ws_123", client, previous=old_client)
        ```
    """

    def __init__(self, dispatcher: WebhookDispatcher) -> None:
        self._dispatcher = dispatcher

    async def trigger(
        self, scope: str, event: EventKind, data: Mapping[str, Any]
    ) -> list[WebhookDelivery]:
        """Dispatch an event with an already-shaped ``data`` section."""
        return await self._dispatcher.trigger(scope, event, data)

    async def _updated(
        self,
        scope: str,
        event: EventKind,
        entity: Snapshot,
        previous: Snapshot | None,
    ) -> list[WebhookDelivery]:
        current = _snapshot(entity)
        before = _snapshot(previous)
        return await self.trigger(
            scope,
            event,
            {
                event.entity: current,
                "previous": before,
                "changes": compute_changes(before, current),
            },
        )

    async def client_created(self, scope: str, client: Snapshot) -> list[WebhookDelivery]:
        """Client was created."""
        return await self.trigger(scope, EventKind.CLIENT_CREATED, {"client": _snapshot(client)})

    async def client_updated(
        self, scope: str, client: Snapshot, previous: Snapshot | None = None
    ) -> list[WebhookDelivery]:
        """Client was edited; ``previous`` is its state before the edit."""
        return await self._updated(scope, EventKind.CLIENT_UPDATED, client, previous)

    async def client_deleted(self, scope: str, client: Snapshot) -> list[WebhookDelivery]:
        """Client was deleted."""
        return await self.trigger(scope, EventKind.CLIENT_DELETED, {"client": _snapshot(client)})

    async def client_status_changed(
        self, scope: str, client: Snapshot, previous_status: str
    ) -> list[WebhookDelivery]:
        """Client moved to a new status.

        ``previous`` holds only the old status, so ``changes`` reports the
        status move and every other current field as new.
        """
        current = _snapshot(client)
        previous = {"status": previous_status}
        return await self.trigger(
            scope,
            EventKind.CLIENT_STATUS_CHANGED,
            {
                "client": current,
                "previous": previous,
                "changes": compute_changes(previous, current),
            },
        )

    async def project_created(self, scope: str, project: Snapshot) -> list[WebhookDelivery]:
        """Project was created."""
        return await self.trigger(
            scope, EventKind.PROJECT_CREATED, {"project": _snapshot(project)}
        )

    async def project_updated(
        self, scope: str, project: Snapshot, previous: Snapshot | None = None
    ) -> list[WebhookDelivery]:
        """Project was edited; ``previous`` is its state before the edit."""
        return await self._updated(scope, EventKind.PROJECT_UPDATED, project, previous)

    async def project_completed(self, scope: str, project: Snapshot) -> list[WebhookDelivery]:
        """Project was marked complete."""
        return await self.trigger(
            scope, EventKind.PROJECT_COMPLETED, {"project": _snapshot(project)}
        )

    async def activity_created(self, scope: str, activity: Snapshot) -> list[WebhookDelivery]:
        """Activity was logged."""
        return await self.trigger(
            scope, EventKind.ACTIVITY_CREATED, {"activity": _snapshot(activity)}
        )
