"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from hookrelay.config import Settings
from hookrelay.models import EventKind, Subscription, WebhookPayload

# Add tests directory to path so helpers can be imported from test modules
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

# A canned outcome: a status code, (status code, body), or an exception to raise
Outcome = int | tuple[int, str] | Exception


class RecordingHandler:
    """MockTransport handler that replays canned outcomes and records requests.

    The last outcome repeats once the list is exhausted.
    """

    def __init__(self, *outcomes: Outcome, delay: float = 0.0) -> None:
        self.outcomes = list(outcomes) or [200]
        self.requests: list[httpx.Request] = []
        self.delay = delay
        self.in_flight = 0
        self.peak_in_flight = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes[min(len(self.requests), len(self.outcomes)) - 1]

        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, tuple):
            status_code, text = outcome
            return httpx.Response(status_code, text=text)
        return httpx.Response(outcome, text="ok" if outcome < 300 else "error")


def mock_client(handler: RecordingHandler) -> httpx.AsyncClient:
    """HTTP client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Backoff sleep that returns immediately and records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def subscription() -> Subscription:
    """An active, signed subscription to client events."""
    return Subscription(
        id="whk_ok",
        scope="ws_1",
        name="CRM sync",
        url="https://ok.example/hook",
        secret="test_secret_16chars",
        events={EventKind.CLIENT_CREATED, EventKind.CLIENT_UPDATED},
    )


@pytest.fixture
def unsigned_subscription() -> Subscription:
    """An active subscription without a secret."""
    return Subscription(
        id="whk_plain",
        scope="ws_1",
        name="Plain",
        url="https://plain.example/hook",
        events={EventKind.CLIENT_CREATED},
    )


@pytest.fixture
def payload() -> WebhookPayload:
    """A client.created envelope."""
    return WebhookPayload(
        event=EventKind.CLIENT_CREATED,
        data={"client": {"id": "c_1", "name": "Acme", "status": "lead"}},
    )
