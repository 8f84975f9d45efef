"""Resilience policy for declared-method invocations.

One immutable value configures retry, backoff, timeout, result validation,
fallback and the admission gates of a built instance.

Example:
    >>> policy = ResiliencePolicy(max_retries=2, retry_delay_ms=500, timeout_ms=30_000)
    >>> policy.max_attempts
    3
    >>> policy.delay_for(2)
    1.0
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

from intentcall.adapters.base import Adapter
from intentcall.foundation.config import IntentcallSettings, get_settings

ResultValidator = Callable[[Any], bool]


class ResiliencePolicy(BaseModel):
    """Retry, timeout, fallback and gate configuration.

    Attributes:
        max_retries: Retries after the first attempt (0 = single attempt)
        retry_delay_ms: Delay before the first retry
        backoff_multiplier: Factor applied to the delay per further retry
        timeout_ms: Per-attempt timeout (0 = none)
        result_validator: Predicate a successful result must satisfy
        fallback_adapter: Adapter tried once after the primary is exhausted
        max_concurrent_requests: In-flight bound (0 = unbounded)
        max_requests_per_minute: Admission rate bound (0 = unbounded)
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    max_retries: Annotated[int, Field(ge=0)] = 0
    retry_delay_ms: Annotated[float, Field(ge=0)] = 1000.0
    backoff_multiplier: Annotated[float, Field(ge=1.0)] = 2.0
    timeout_ms: Annotated[float, Field(ge=0)] = 0.0
    result_validator: ResultValidator | None = Field(default=None, exclude=True, repr=False)
    fallback_adapter: Adapter | None = Field(default=None, exclude=True)
    max_concurrent_requests: Annotated[int, Field(ge=0)] = 0
    max_requests_per_minute: Annotated[int, Field(ge=0)] = 0

    @computed_field
    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout_ms / 1000.0 if self.timeout_ms > 0 else None

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (1-indexed)."""
        return self.retry_delay_ms * self.backoff_multiplier ** (attempt - 1) / 1000.0

    def with_changes(self, **changes: Any) -> Self:
        """Validated copy with the given fields replaced."""
        return type(self)(**{**dict(self), **changes})

    @classmethod
    def from_settings(cls, settings: IntentcallSettings | None = None, **overrides: Any) -> Self:
        """Policy defaults from configuration, with explicit overrides."""
        settings = settings or get_settings()
        r = settings.resilience
        return cls(**{
            "max_retries": r.max_retries,
            "retry_delay_ms": r.retry_delay_ms,
            "backoff_multiplier": r.backoff_multiplier,
            "timeout_ms": r.timeout_ms,
            "max_concurrent_requests": r.max_concurrent_requests,
            "max_requests_per_minute": settings.rate_limit.max_requests_per_minute,
            **overrides,
        })
