"""Retry delay policy for webhook delivery.

Capped exponential backoff with symmetric jitter, so that many
subscriptions failing at the same moment do not retry in lockstep.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tenacity import RetryCallState

    from hookrelay.config import RetrySettings


class BackoffPolicy:
    """Computes the delay before each retry.

    ``attempt_index`` is zero-based and counts retries only: index 0 is the
    wait between the first attempt and the first retry.

    Example:
        ```python
        policy = BackoffPolicy()
        policy.delay_ms(0)  # ~1000 (750..1250)
        policy.delay_ms(5)  # ~10000 (7500..12500), capped
        ```
    """

    def __init__(
        self,
        initial_delay_ms: int = 1000,
        max_delay_ms: int = 10000,
        jitter_ratio: float = 0.25,
        rng: random.Random | None = None,
    ) -> None:
        if initial_delay_ms < 0 or max_delay_ms < 0:
            raise ValueError("Backoff delays must be non-negative")
        if not 0.0 <= jitter_ratio <= 1.0:
            raise ValueError(f"jitter_ratio must be within [0, 1], got {jitter_ratio}")
        self.initial_delay_ms = initial_delay_ms
        self.max_delay_ms = max_delay_ms
        self.jitter_ratio = jitter_ratio
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, retry: RetrySettings, rng: random.Random | None = None) -> BackoffPolicy:
        """Build a policy from retry settings."""
        return cls(
            initial_delay_ms=retry.initial_delay_ms,
            max_delay_ms=retry.max_delay_ms,
            jitter_ratio=retry.jitter_ratio,
            rng=rng,
        )

    def base_delay_ms(self, attempt_index: int) -> int:
        """Un-jittered delay: ``initial * 2**attempt_index``, capped."""
        if attempt_index < 0:
            raise ValueError(f"attempt_index must be >= 0, got {attempt_index}")
        # Any cap is reached before 2**64
        exponent = min(attempt_index, 64)
        return min(self.initial_delay_ms * 2**exponent, self.max_delay_ms)

    def delay_ms(self, attempt_index: int) -> int:
        """Jittered delay in milliseconds, never negative."""
        capped = self.base_delay_ms(attempt_index)
        jitter = capped * self.jitter_ratio * self._rng.uniform(-1, 1)
        return max(0, round(capped + jitter))

    def delay_seconds(self, attempt_index: int) -> float:
        """Jittered delay in seconds."""
        return self.delay_ms(attempt_index) / 1000

    def max_possible_delay_ms(self) -> int:
        """Largest delay this policy can ever return."""
        return round(self.max_delay_ms * (1 + self.jitter_ratio))

    def __call__(self, retry_state: RetryCallState) -> float:
        """Wait strategy for tenacity, in seconds.

        tenacity numbers attempts from 1, so after attempt ``n`` fails the
        next wait is retry index ``n - 1``.
        """
        return self.delay_seconds(retry_state.attempt_number - 1)
