"""Webhook delivery with HMAC signatures and jittered exponential backoff.

One call to ``DeliveryExecutor.deliver`` sends one payload to one
subscription:
- The envelope is serialized once and the same bytes are signed and sent
  on every attempt
- Any 2xx response ends the delivery successfully
- Non-2xx responses and transport errors are retried up to ``max_retries``
  times, sleeping per ``BackoffPolicy`` in between
- Every outcome, including failures, is returned as a ``WebhookDelivery``
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing, asynccontextmanager
from typing import TYPE_CHECKING

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from hookrelay.exceptions import SigningError
from hookrelay.logging import get_logger
from hookrelay.models import WebhookDelivery

from .backoff import BackoffPolicy
from .signing import compute_signature

if TYPE_CHECKING:
    import structlog

    from hookrelay.config import Settings
    from hookrelay.models import Subscription, WebhookPayload

EVENT_HEADER = "X-Webhook-Event"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"
RETRY_COUNT_HEADER = "X-Webhook-Retry-Count"
SIGNATURE_HEADER = "X-Webhook-Signature"

BODY_UNAVAILABLE = "Unable to read response body"


class UnsuccessfulResponseError(Exception):
    """Endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}")


RETRYABLE_ERRORS = (httpx.HTTPError, UnsuccessfulResponseError)


class DeliveryExecutor:
    """Delivers a payload to a single subscription, retrying on failure.

    Attempts for one delivery are strictly sequential. The backoff sleep and
    the HTTP request are the only suspension points; cancelling the calling
    task interrupts either one.

    Example:
        ```python
        async with httpx.AsyncClient() as client:
            executor = DeliveryExecutor(client=client)
            delivery = await executor.deliver(subscription, payload)
            print(delivery.status, delivery.retry_count)
        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        backoff: BackoffPolicy | None = None,
        max_retries: int = 3,
        timeout_seconds: float = 10.0,
        response_body_limit: int = 1000,
        user_agent: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            client: Shared HTTP client. A short-lived client is opened per
                delivery when omitted.
            backoff: Retry delay policy.
            max_retries: Retries after the first attempt.
            timeout_seconds: Timeout applied to every request.
            response_body_limit: Characters of response body kept on the record.
            user_agent: Optional User-Agent header.
            sleep: Coroutine used to wait between attempts.
            logger: Structured logger for delivery events.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self._client = client
        self._backoff = backoff or BackoffPolicy()
        self.max_retries = max_retries
        self._timeout = timeout_seconds
        self._response_body_limit = response_body_limit
        self._user_agent = user_agent
        self._sleep = sleep
        self._logger = logger or get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> DeliveryExecutor:
        """Build an executor from application settings."""
        return cls(
            client=client,
            backoff=BackoffPolicy.from_settings(settings.retry),
            max_retries=settings.retry.max_retries,
            timeout_seconds=settings.request_timeout_seconds,
            response_body_limit=settings.response_body_limit,
            user_agent=settings.user_agent,
            logger=logger,
        )

    @property
    def backoff(self) -> BackoffPolicy:
        """Retry delay policy in use."""
        return self._backoff

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    def build_headers(
        self,
        subscription: Subscription,
        payload: WebhookPayload,
        body: bytes,
    ) -> dict[str, str]:
        """Headers shared by every attempt of one delivery.

        Raises:
            SigningError: If the subscription's secret cannot be used.
        """
        headers = {
            "Content-Type": "application/json",
            EVENT_HEADER: payload.event.value,
            TIMESTAMP_HEADER: payload.timestamp,
        }
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        if subscription.secret:
            headers[SIGNATURE_HEADER] = compute_signature(body, subscription.secret)
        return headers

    async def deliver(
        self,
        subscription: Subscription,
        payload: WebhookPayload,
    ) -> WebhookDelivery:
        """Deliver ``payload`` to ``subscription``.

        Returns:
            The terminal delivery record. Failures are captured on the record,
            never raised.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled. The
                record is marked failed first.
        """
        delivery = WebhookDelivery.for_subscription(subscription, payload, self.max_retries)
        log = self._logger.bind(
            delivery_id=delivery.id,
            subscription_id=subscription.id,
            webhook_event=payload.event.value,
            url=delivery.url,
        )

        # Serialization errors from pydantic are ValueErrors
        try:
            body = payload.to_bytes()
            headers = self.build_headers(subscription, payload, body)
        except (SigningError, ValueError) as e:
            delivery.mark_failed(error=f"Unable to prepare payload: {e}")
            log.error("webhook_signing_failed", error=str(e))
            return delivery

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self._backoff,
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=self._sleep,
            before_sleep=lambda state: self._log_retry(log, delivery, state),
            reraise=True,
        )

        try:
            async with self._session() as client:
                async for attempt in retrying:
                    with attempt:
                        await self._attempt(
                            client,
                            delivery,
                            body,
                            headers,
                            attempt.retry_state.attempt_number - 1,
                        )
        except RETRYABLE_ERRORS:
            delivery.mark_failed()
            log.warning(
                "webhook_failed",
                attempts=delivery.retry_count + 1,
                status_code=delivery.status_code,
                error=delivery.error_message,
            )
        except asyncio.CancelledError:
            delivery.mark_failed(error="Delivery cancelled")
            log.warning("webhook_cancelled", attempts=delivery.retry_count + 1)
            raise
        except Exception as e:
            delivery.mark_failed(error=f"Unexpected error: {e}")
            log.exception("webhook_delivery_error", error=str(e))
        else:
            delivery.mark_success()
            log.info(
                "webhook_delivered",
                status_code=delivery.status_code,
                retry_count=delivery.retry_count,
            )

        return delivery

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        delivery: WebhookDelivery,
        body: bytes,
        headers: dict[str, str],
        attempt: int,
    ) -> None:
        """Make one POST and record its outcome on ``delivery``.

        ``timeout_seconds`` is a deadline for the whole attempt, from
        sending the request to reading the last kept byte of the response.

        Raises:
            httpx.HTTPError: On transport failure or timeout.
            UnsuccessfulResponseError: On a non-2xx response.
        """
        delivery.start_attempt(attempt)
        request = client.build_request(
            "POST",
            delivery.url,
            content=body,
            headers={**headers, RETRY_COUNT_HEADER: str(attempt)},
            timeout=self._timeout,
        )
        timed_out = f"Request timed out after {self._timeout:g}s"

        try:
            async with asyncio.timeout(self._timeout):
                response = await client.send(request, stream=True)
                try:
                    response_body = await self._read_body(response)
                finally:
                    await response.aclose()
        except TimeoutError as e:
            delivery.record_error(timed_out)
            raise httpx.TimeoutException(timed_out, request=request) from e
        except httpx.TimeoutException:
            delivery.record_error(timed_out)
            raise
        except httpx.HTTPError as e:
            delivery.record_error(str(e) or type(e).__name__)
            raise

        delivery.record_response(response.status_code, response_body)
        if not 200 <= response.status_code < 300:
            raise UnsuccessfulResponseError(response.status_code)

    async def _read_body(self, response: httpx.Response) -> str:
        """Read up to ``response_body_limit`` characters of the body.

        Stops pulling from the stream once the limit is reached. A body that
        cannot be read is replaced by a placeholder.
        """
        chunks: list[str] = []
        size = 0
        try:
            async with aclosing(response.aiter_text()) as text:
                async for chunk in text:
                    chunks.append(chunk)
                    size += len(chunk)
                    if size >= self._response_body_limit:
                        break
        except (httpx.HTTPError, httpx.StreamError, UnicodeError, LookupError) as e:
            self._logger.debug("webhook_response_unreadable", error=str(e))
            return BODY_UNAVAILABLE
        return "".join(chunks)[: self._response_body_limit]

    def _log_retry(
        self,
        log: structlog.stdlib.BoundLogger,
        delivery: WebhookDelivery,
        retry_state: RetryCallState,
    ) -> None:
        """Log a failed attempt that is about to be retried."""
        next_sleep = retry_state.next_action.sleep if retry_state.next_action else None
        log.info(
            "webhook_attempt_failed",
            attempt=retry_state.attempt_number - 1,
            status_code=delivery.status_code,
            error=delivery.error_message,
            retry_in_seconds=next_sleep,
        )
