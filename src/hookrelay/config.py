"""Configuration management for hookrelay."""

import logging
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class RetrySettings(BaseModel):
    """Retry and backoff tuning for webhook delivery.

    The delay before retry ``n`` (zero-based) is:
        capped = min(initial_delay_ms * 2**n, max_delay_ms)
        delay = capped + capped * jitter_ratio * uniform(-1, 1)

    Attributes:
        max_retries: Retries after the first attempt (3 means 4 attempts total).
        initial_delay_ms: Delay before the first retry.
        max_delay_ms: Upper bound on the un-jittered delay.
        jitter_ratio: Symmetric jitter as a fraction of the capped delay.
    """

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the initial attempt",
    )
    initial_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Delay before the first retry, in milliseconds",
    )
    max_delay_ms: int = Field(
        default=10000,
        ge=0,
        description="Cap on the exponential delay, in milliseconds",
    )
    jitter_ratio: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Symmetric jitter as a fraction of the capped delay",
    )

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> "RetrySettings":
        """Initial delay must not exceed the cap."""
        if self.initial_delay_ms > self.max_delay_ms:
            raise ValueError(
                f"initial_delay_ms ({self.initial_delay_ms}) must not exceed "
                f"max_delay_ms ({self.max_delay_ms})"
            )
        return self


class Settings(BaseSettings):
    """hookrelay configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the HOOKRELAY_ prefix. For example:
        HOOKRELAY_REQUEST_TIMEOUT_SECONDS=5
        HOOKRELAY_RETRY__MAX_RETRIES=5
    """

    # Environment
    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Delivery
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Timeout for a single outbound webhook request",
    )
    retry: RetrySettings = Field(
        default_factory=RetrySettings,
        description="Retry and backoff tuning",
    )
    max_concurrent_deliveries: int = Field(
        default=10,
        ge=1,
        le=100,
        description=(
            "Maximum subscriptions delivered to concurrently for one trigger. "
            "Retries for a single subscription are always sequential."
        ),
    )
    response_body_limit: int = Field(
        default=1000,
        ge=0,
        description="Characters of the response body kept on a delivery record",
    )
    user_agent: str = Field(
        default="hookrelay/0.1.0",
        description="User-Agent header sent with webhook requests",
    )

    # Delivery log
    delivery_log_capacity: int = Field(
        default=50,
        ge=1,
        le=10000,
        description=(
            "Number of recent deliveries kept in memory. "
            "When exceeded, the oldest entry is evicted."
        ),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    model_config = {
        "env_prefix": "HOOKRELAY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
    }

    @model_validator(mode="after")
    def warn_on_long_worst_case(self) -> "Settings":
        """Warn when one subscription could block for more than two minutes."""
        worst = self.worst_case_delivery_seconds
        if worst > 120:
            logger.warning(
                "Worst-case delivery time per subscription is %.1fs "
                "(timeout=%.1fs, max_retries=%d, max_delay_ms=%d)",
                worst,
                self.request_timeout_seconds,
                self.retry.max_retries,
                self.retry.max_delay_ms,
            )
        return self

    @property
    def worst_case_delivery_seconds(self) -> float:
        """Upper bound on time spent delivering to one subscription."""
        attempts = self.retry.max_retries + 1
        max_sleep = self.retry.max_delay_ms * (1 + self.retry.jitter_ratio) / 1000
        return attempts * self.request_timeout_seconds + self.retry.max_retries * max_sleep


# Global settings instance
settings = Settings()
