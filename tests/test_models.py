"""Tests for hookrelay data models."""

from __future__ import annotations

import json
import re

import pytest
from pydantic import ValidationError

from hookrelay.exceptions import InvalidTransitionError
from hookrelay.models import (
    ALL_EVENT_KINDS,
    EventKind,
    Subscription,
    WebhookDelivery,
    WebhookPayload,
)
from hookrelay.models.base import generate_id, utc_now_iso

ISO_MILLIS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestBaseHelpers:
    """Tests for ID and timestamp helpers."""

    def test_generate_id_prefix(self) -> None:
        """IDs should carry the given prefix."""
        assert generate_id("whk").startswith("whk_")

    def test_generate_id_unique(self) -> None:
        """IDs should not repeat."""
        assert len({generate_id("dlv") for _ in range(100)}) == 100

    def test_timestamp_format(self) -> None:
        """Timestamps should be UTC ISO-8601 with milliseconds and a Z suffix."""
        assert ISO_MILLIS.match(utc_now_iso())


class TestEventKind:
    """Tests for EventKind."""

    def test_all_kinds(self) -> None:
        """All eight event kinds should be listed."""
        assert [kind.value for kind in ALL_EVENT_KINDS] == [
            "client.created",
            "client.updated",
            "client.deleted",
            "client.status_changed",
            "project.created",
            "project.updated",
            "project.completed",
            "activity.created",
        ]

    def test_entity(self) -> None:
        """Entity should be the part before the dot."""
        assert EventKind.CLIENT_STATUS_CHANGED.entity == "client"
        assert EventKind.PROJECT_COMPLETED.entity == "project"
        assert EventKind.ACTIVITY_CREATED.entity == "activity"

    def test_labels(self) -> None:
        """Every kind should have a human-readable label."""
        assert EventKind.ACTIVITY_CREATED.label == "Activity Logged"
        assert all(kind.label for kind in EventKind)

    def test_from_string(self) -> None:
        """Kinds should be constructible from their wire value."""
        assert EventKind("project.updated") is EventKind.PROJECT_UPDATED


class TestSubscription:
    """Tests for Subscription model."""

    def test_defaults(self) -> None:
        """New subscriptions should be active with a generated ID."""
        sub = Subscription(scope="ws_1", name="CRM", url="https://crm.example/hook")

        assert sub.id.startswith("whk_")
        assert sub.active is True
        assert sub.secret is None
        assert sub.events == set()
        assert sub.signs_payloads is False

    def test_events_from_strings(self) -> None:
        """Event names should be coerced to EventKind."""
        sub = Subscription(
            scope="ws_1",
            name="CRM",
            url="https://crm.example/hook",
            events=["client.created", "client.deleted"],
        )
        assert sub.events == {EventKind.CLIENT_CREATED, EventKind.CLIENT_DELETED}

    def test_invalid_url_rejected(self) -> None:
        """URLs must be absolute http(s) URLs."""
        with pytest.raises(ValidationError):
            Subscription(scope="ws_1", name="Bad", url="not a url")

    def test_unknown_event_rejected(self) -> None:
        """Unknown event names should be rejected."""
        with pytest.raises(ValidationError):
            Subscription(
                scope="ws_1", name="Bad", url="https://x.example/h", events=["client.exploded"]
            )

    def test_extra_fields_rejected(self) -> None:
        """Unexpected fields should be rejected."""
        with pytest.raises(ValidationError):
            Subscription(scope="ws_1", name="Bad", url="https://x.example/h", color="red")

    def test_empty_secret_does_not_sign(self) -> None:
        """An empty secret should count as no secret."""
        sub = Subscription(scope="ws_1", name="CRM", url="https://crm.example/hook", secret="")
        assert sub.signs_payloads is False

    def test_subscribes_to(self, subscription: Subscription) -> None:
        """subscribes_to should require active and a subscribed event."""
        assert subscription.subscribes_to(EventKind.CLIENT_CREATED)
        assert not subscription.subscribes_to(EventKind.PROJECT_CREATED)

        inactive = subscription.model_copy(update={"active": False})
        assert not inactive.subscribes_to(EventKind.CLIENT_CREATED)


class TestWebhookPayload:
    """Tests for WebhookPayload model."""

    def test_serialized_shape(self, payload: WebhookPayload) -> None:
        """Body should contain exactly event, timestamp and data."""
        body = json.loads(payload.to_bytes())

        assert set(body) == {"event", "timestamp", "data"}
        assert body["event"] == "client.created"
        assert ISO_MILLIS.match(body["timestamp"])
        assert body["data"] == {"client": {"id": "c_1", "name": "Acme", "status": "lead"}}

    def test_missing_sections_omitted(self) -> None:
        """None-valued sections should not be serialized."""
        payload = WebhookPayload(
            event=EventKind.CLIENT_UPDATED,
            data={"client": {"id": "c_1"}, "previous": None, "changes": {}},
        )
        body = json.loads(payload.to_bytes())

        assert "previous" not in body["data"]
        assert body["data"]["changes"] == {}

    def test_serialization_is_stable(self, payload: WebhookPayload) -> None:
        """Serializing twice should give identical bytes."""
        assert payload.to_bytes() == payload.to_bytes()

    def test_frozen(self, payload: WebhookPayload) -> None:
        """Payloads should be immutable once built."""
        with pytest.raises(ValidationError):
            payload.event = EventKind.CLIENT_DELETED  # type: ignore[misc]


class TestWebhookDelivery:
    """Tests for WebhookDelivery model."""

    def test_for_subscription(self, subscription: Subscription, payload: WebhookPayload) -> None:
        """New deliveries should be pending and copy subscription details."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, max_retries=3)

        assert delivery.id.startswith("dlv_")
        assert delivery.status == "pending"
        assert delivery.subscription_id == "whk_ok"
        assert delivery.subscription_name == "CRM sync"
        assert delivery.url == "https://ok.example/hook"
        assert delivery.event is EventKind.CLIENT_CREATED
        assert delivery.payload is payload
        assert delivery.retry_count == 0
        assert delivery.max_retries == 3
        assert delivery.completed_at is None
        assert ISO_MILLIS.match(delivery.timestamp)

    def test_record_success_response(
        self, subscription: Subscription, payload: WebhookPayload
    ) -> None:
        """A 2xx response should leave no error message."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        delivery.record_response(204, "")

        assert delivery.status_code == 204
        assert delivery.error_message is None

    def test_record_failed_response(
        self, subscription: Subscription, payload: WebhookPayload
    ) -> None:
        """A non-2xx response should set an HTTP error message."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        delivery.record_response(503, "busy")

        assert delivery.error_message == "HTTP 503"
        assert delivery.response_body == "busy"

    def test_record_error_clears_response(
        self, subscription: Subscription, payload: WebhookPayload
    ) -> None:
        """A transport error should replace the previous attempt's response."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        delivery.record_response(500, "oops")
        delivery.start_attempt(1).record_error("connection refused")

        assert delivery.status_code is None
        assert delivery.response_body is None
        assert delivery.error_message == "connection refused"
        assert delivery.retry_count == 1

    def test_mark_success(self, subscription: Subscription, payload: WebhookPayload) -> None:
        """mark_success should set the terminal status and completion time."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        delivery.record_response(200, "ok").mark_success()

        assert delivery.status == "success"
        assert delivery.is_terminal
        assert delivery.completed_at is not None

    def test_mark_failed_keeps_last_error(
        self, subscription: Subscription, payload: WebhookPayload
    ) -> None:
        """mark_failed without a message should keep the last observed error."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        delivery.record_response(500, "oops").mark_failed()

        assert delivery.status == "failed"
        assert delivery.error_message == "HTTP 500"
        assert delivery.completed_at is not None

    def test_mark_failed_with_message(
        self, subscription: Subscription, payload: WebhookPayload
    ) -> None:
        """mark_failed with a message should override the error."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        delivery.mark_failed("Delivery cancelled")

        assert delivery.error_message == "Delivery cancelled"

    @pytest.mark.parametrize("finish", ["mark_success", "mark_failed"])
    def test_terminal_records_are_final(
        self, subscription: Subscription, payload: WebhookPayload, finish: str
    ) -> None:
        """Terminal deliveries should reject further transitions."""
        delivery = WebhookDelivery.for_subscription(subscription, payload, 3)
        getattr(delivery, finish)()

        with pytest.raises(InvalidTransitionError):
            delivery.mark_success()
        with pytest.raises(InvalidTransitionError):
            delivery.record_response(200)
        with pytest.raises(InvalidTransitionError):
            delivery.start_attempt(1)

    def test_retry_count_bounds(self, subscription: Subscription, payload: WebhookPayload) -> None:
        """retry_count cannot be negative."""
        with pytest.raises(ValidationError):
            WebhookDelivery(
                subscription_id=subscription.id,
                subscription_name=subscription.name,
                url=str(subscription.url),
                event=payload.event,
                payload=payload,
                retry_count=-1,
            )
