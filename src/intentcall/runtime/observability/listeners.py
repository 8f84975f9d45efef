"""Request lifecycle listeners.

The resilience executor notifies listeners in registration order:
``on_start`` before the first attempt, then exactly one of ``on_complete``
or ``on_error``. A listener that raises is logged and skipped; it never
changes the outcome of the request.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from intentcall.foundation.errors import ErrorInfo

if TYPE_CHECKING:
    from intentcall.adapters.base import UsageInfo
    from intentcall.foundation.core.context import PromptContext

logger = logging.getLogger("intentcall.listeners")


class RequestListener:
    """Base listener; override the hooks you need."""

    def on_start(self, context: PromptContext) -> None:
        pass

    def on_complete(
        self,
        context: PromptContext,
        result: Any,
        duration_ms: float,
        usage: UsageInfo | None = None,
    ) -> None:
        pass

    def on_error(self, context: PromptContext, error: BaseException, duration_ms: float) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Logging Listener
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(slots=True)
class LoggingListener(RequestListener):
    """Log request execution with timing and status.

    Logs at INFO level on completion, WARNING on failure. Failures are
    classified through ``ErrorInfo`` (error code, fatal or recoverable).

    Args:
        log: Logger instance (defaults to intentcall.listeners)
        log_context: Include the method invocation text (off for privacy)

    Example:
        >>> builder.listener(LoggingListener(log_context=True))
    """

    log: logging.Logger = field(default_factory=lambda: logger)
    log_context: bool = False

    def on_start(self, context: PromptContext) -> None:
        detail = f" invocation={context.method_invocation}" if self.log_context else ""
        self.log.info(f"[{context.method_name}] Starting{detail}")

    def on_complete(
        self,
        context: PromptContext,
        result: Any,
        duration_ms: float,
        usage: UsageInfo | None = None,
    ) -> None:
        tokens = f", {usage.total_tokens} tokens" if usage else ""
        self.log.info(f"[{context.method_name}] OK ({duration_ms:.1f}ms{tokens})")

    def on_error(self, context: PromptContext, error: BaseException, duration_ms: float) -> None:
        info = ErrorInfo.from_exception(context.method_name, error)
        kind = info.code if info.recoverable else f"{info.code}, fatal"
        self.log.warning(f"[{info.method_name}] FAILED ({duration_ms:.1f}ms, {kind}): {info.message}")


# ─────────────────────────────────────────────────────────────────────────────
# Usage Tracking
# ─────────────────────────────────────────────────────────────────────────────

class ModelUsage(BaseModel):
    """Aggregated usage for one model."""

    model_config = ConfigDict(frozen=True)

    model: str
    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class UsageTracker(RequestListener):
    """Thread-safe aggregation of reported usage, per model.

    Cache hits report the usage of the call that filled the cache entry,
    so repeated prompts count each time they are served.
    """

    __slots__ = ("_lock", "_by_model", "_requests", "_unreported")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_model: dict[str, ModelUsage] = {}
        self._requests = 0
        self._unreported = 0

    def on_complete(
        self,
        context: PromptContext,
        result: Any,
        duration_ms: float,
        usage: UsageInfo | None = None,
    ) -> None:
        with self._lock:
            self._requests += 1
            if usage is None:
                self._unreported += 1
                return
            current = self._by_model.get(usage.model, ModelUsage(model=usage.model))
            self._by_model[usage.model] = ModelUsage(
                model=usage.model,
                requests=current.requests + 1,
                input_tokens=current.input_tokens + usage.input_tokens,
                output_tokens=current.output_tokens + usage.output_tokens,
                estimated_cost=current.estimated_cost + usage.estimated_cost,
            )

    @property
    def requests(self) -> int:
        with self._lock:
            return self._requests

    @property
    def total_tokens(self) -> int:
        with self._lock:
            return sum(m.total_tokens for m in self._by_model.values())

    @property
    def total_cost(self) -> float:
        with self._lock:
            return sum(m.estimated_cost for m in self._by_model.values())

    def by_model(self) -> dict[str, ModelUsage]:
        with self._lock:
            return dict(self._by_model)

    def reset(self) -> None:
        with self._lock:
            self._by_model.clear()
            self._requests = 0
            self._unreported = 0

    def summary(self) -> dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "unreported": self._unreported,
                "models": {name: m.model_dump() for name, m in self._by_model.items()},
            }
