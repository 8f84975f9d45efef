"""Retry, timeout, validation and fallback around one adapter request.

Execution states::

    NOT_STARTED → ATTEMPTING(n) → SUCCEEDED
                               → RETRYING → ATTEMPTING(n+1)
                               → EXHAUSTED_PRIMARY → FALLBACK_ATTEMPTING → SUCCEEDED | FAILED

Caller cancellation is never retried and never reported to listeners; it
propagates as ``asyncio.CancelledError``. Fatal errors (configuration,
arguments) are reported once and propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from intentcall.foundation.core.context import MessageRole
from intentcall.foundation.errors import IntentTimeoutError, ResilienceError, ResultValidationError, is_fatal

if TYPE_CHECKING:
    from intentcall.adapters.base import Adapter, AdapterResponse
    from intentcall.foundation.core.context import PromptContext
    from intentcall.runtime.observability.listeners import RequestListener
    from intentcall.tools.provider import ToolProvider

    from .policy import ResiliencePolicy

logger = logging.getLogger("intentcall.resilience")

Sleep = Callable[[float], Awaitable[None]]


class ExecutionState(StrEnum):
    NOT_STARTED = "not_started"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    EXHAUSTED_PRIMARY = "exhausted_primary"
    FALLBACK_ATTEMPTING = "fallback_attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class Attempt:
    """One adapter call made by the executor."""
    number: int
    adapter: str
    fallback: bool = False
    duration_ms: float = 0.0
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class ExecutionRecord:
    """State trail and attempts of one execution."""
    method_name: str = ""
    state: ExecutionState = ExecutionState.NOT_STARTED
    states: list[ExecutionState] = field(default_factory=list)
    attempts: list[Attempt] = field(default_factory=list)

    def transition(self, state: ExecutionState) -> None:
        self.state = state
        self.states.append(state)


class ResilienceExecutor:
    """Runs adapter requests under a ``ResiliencePolicy``.

    Args:
        policy: Retry, timeout, validation and fallback configuration
        listeners: Lifecycle listeners, notified in order
        sleep: Wait strategy between attempts (seconds)
        clock: Timer for durations (seconds)

    Attributes:
        last_run: Record of the most recently started execution. Concurrent
            executions on one executor replace it as each starts, so it
            describes a single call only when calls do not overlap.

    Example:
        >>> executor = ResilienceExecutor(ResiliencePolicy(max_retries=2))
        >>> result = await executor.execute(adapter, context, str)
    """

    __slots__ = ("_policy", "_listeners", "_sleep", "_clock", "last_run")

    def __init__(
        self,
        policy: ResiliencePolicy,
        listeners: Sequence[RequestListener] = (),
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._policy = policy
        self._listeners = tuple(listeners)
        self._sleep = sleep
        self._clock = clock
        self.last_run: ExecutionRecord | None = None

    @property
    def policy(self) -> ResiliencePolicy:
        return self._policy

    @property
    def listeners(self) -> tuple[RequestListener, ...]:
        return self._listeners

    async def execute(
        self,
        adapter: Adapter,
        context: PromptContext,
        result_shape: type,
        tool_providers: Sequence[ToolProvider] = (),
    ) -> Any:
        """Produce a result for ``context`` or raise the terminal error."""
        record = ExecutionRecord(method_name=context.method_name)
        self.last_run = record
        self._notify("on_start", context)
        start = self._clock()
        max_attempts = self._policy.max_attempts
        errors: list[BaseException] = []
        current = context

        for number in range(1, max_attempts + 1):
            record.transition(ExecutionState.ATTEMPTING)
            try:
                response = await self._attempt(record, number, adapter, current, result_shape, tool_providers)
                self._validate(response.result)
            except Exception as e:
                errors.append(e)
                if record.attempts and record.attempts[-1].error is None:
                    record.attempts[-1].error = e
                if is_fatal(e):
                    record.transition(ExecutionState.FAILED)
                    self._notify("on_error", current, e, self._elapsed_ms(start))
                    raise
                logger.warning(f"[{context.method_name}] Attempt {number}/{max_attempts} failed: {e}")
                if isinstance(e, ResultValidationError):
                    current = current.with_message(
                        MessageRole.USER, f"Validation failed: {e}. Please correct your response."
                    )
                if number < max_attempts:
                    record.transition(ExecutionState.RETRYING)
                    await self._sleep(self._policy.delay_for(number))
                continue
            record.transition(ExecutionState.SUCCEEDED)
            self._notify("on_complete", current, response.result, self._elapsed_ms(start), response.usage)
            return response.result

        record.transition(ExecutionState.EXHAUSTED_PRIMARY)
        primary_error = errors[-1]
        fallback = self._policy.fallback_adapter

        if fallback is None:
            record.transition(ExecutionState.FAILED)
            error = ResilienceError(
                f"All {max_attempts} attempt(s) failed",
                errors=errors, primary_error=primary_error, context=current,
            )
            error.__cause__ = primary_error
            self._notify("on_error", current, error, self._elapsed_ms(start))
            raise error

        logger.info(f"[{context.method_name}] Primary adapter exhausted, trying fallback {fallback!r}")
        record.transition(ExecutionState.FALLBACK_ATTEMPTING)
        try:
            response = await self._attempt(record, max_attempts + 1, fallback, current, result_shape, tool_providers, fallback=True)
        except Exception as e:
            errors.append(e)
            if e.__cause__ is None:
                e.__cause__ = primary_error
            record.transition(ExecutionState.FAILED)
            error = ResilienceError(
                "All attempts failed including fallback",
                errors=errors, primary_error=primary_error, context=current,
            )
            self._notify("on_error", current, error, self._elapsed_ms(start))
            raise error from e
        record.transition(ExecutionState.SUCCEEDED)
        self._notify("on_complete", current, response.result, self._elapsed_ms(start), response.usage)
        return response.result

    async def _attempt(
        self,
        record: ExecutionRecord,
        number: int,
        adapter: Adapter,
        context: PromptContext,
        result_shape: type,
        tool_providers: Sequence[ToolProvider],
        *,
        fallback: bool = False,
    ) -> AdapterResponse:
        attempt = Attempt(number=number, adapter=repr(adapter), fallback=fallback)
        record.attempts.append(attempt)
        started = self._clock()
        call = adapter.handle_request_with_usage(context, result_shape, tool_providers)
        timeout = self._policy.timeout_seconds
        try:
            if timeout is None:
                return await call
            try:
                return await asyncio.wait_for(call, timeout)
            except TimeoutError:
                raise IntentTimeoutError(
                    f"Request timed out after {self._policy.timeout_ms:g}ms", context=context
                ) from None
        except Exception as e:
            attempt.error = e
            raise
        finally:
            attempt.duration_ms = self._elapsed_ms(started)

    def _validate(self, result: Any) -> None:
        validator = self._policy.result_validator
        if validator is None:
            return
        if not validator(result):
            raise ResultValidationError("Result did not pass validation")

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000.0

    def _notify(self, hook: str, *args: Any) -> None:
        for listener in self._listeners:
            try:
                getattr(listener, hook)(*args)
            except Exception:
                logger.exception(f"Listener {listener!r} failed in {hook}")
