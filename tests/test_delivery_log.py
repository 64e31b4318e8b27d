"""Tests for the bounded delivery log."""

from __future__ import annotations

import threading

import pytest

from hookrelay.models import EventKind, WebhookDelivery, WebhookPayload
from hookrelay.webhooks.log import DeliveryLog


def make_delivery(n: int) -> WebhookDelivery:
    payload = WebhookPayload(event=EventKind.ACTIVITY_CREATED, data={"activity": {"n": n}})
    return WebhookDelivery(
        id=f"dlv_{n}",
        subscription_id="whk_1",
        subscription_name="Activity feed",
        url="https://feed.example/hook",
        event=payload.event,
        payload=payload,
    )


class TestDeliveryLog:
    """Tests for DeliveryLog."""

    def test_starts_empty(self) -> None:
        """A new log should be empty with the default capacity."""
        log = DeliveryLog()
        assert len(log) == 0
        assert log.recent() == []
        assert log.capacity == 50

    def test_newest_first(self) -> None:
        """The most recently recorded delivery should be at index 0."""
        log = DeliveryLog()
        for n in range(3):
            log.record(make_delivery(n))

        assert [d.id for d in log.recent()] == ["dlv_2", "dlv_1", "dlv_0"]

    def test_evicts_oldest_beyond_capacity(self) -> None:
        """After the 51st insertion the oldest entry should be gone."""
        log = DeliveryLog()
        for n in range(51):
            log.record(make_delivery(n))

        recent = log.recent()
        assert len(recent) == 50
        assert recent[0].id == "dlv_50"
        assert recent[-1].id == "dlv_1"
        assert "dlv_0" not in {d.id for d in recent}

    def test_never_exceeds_capacity(self) -> None:
        """The log should never hold more entries than its capacity."""
        log = DeliveryLog(capacity=5)
        for n in range(100):
            log.record(make_delivery(n))
            assert len(log) <= 5

    def test_recent_returns_copy(self) -> None:
        """Mutating the returned list should not affect the log."""
        log = DeliveryLog()
        log.record(make_delivery(1))

        snapshot = log.recent()
        snapshot.clear()

        assert len(log) == 1

    def test_clear(self) -> None:
        """clear() should empty the log and report how many entries it removed."""
        log = DeliveryLog()
        for n in range(4):
            log.record(make_delivery(n))

        assert log.clear() == 4
        assert log.recent() == []
        assert log.clear() == 0

    def test_invalid_capacity(self) -> None:
        """Capacity must be positive."""
        with pytest.raises(ValueError):
            DeliveryLog(capacity=0)

    def test_logs_are_independent(self) -> None:
        """Separate logs should not share entries."""
        first, second = DeliveryLog(), DeliveryLog()
        first.record(make_delivery(1))

        assert len(second) == 0

    def test_concurrent_writers(self) -> None:
        """Concurrent inserts should never overflow the log."""
        log = DeliveryLog(capacity=50)

        def writer(offset: int) -> None:
            for n in range(200):
                log.record(make_delivery(offset + n))

        threads = [threading.Thread(target=writer, args=(i * 1000,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(log) == 50
