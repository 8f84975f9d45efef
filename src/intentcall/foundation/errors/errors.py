"""Error taxonomy for declared-method invocations.

Every failure raised by the orchestration core derives from ``IntentError``.
Two families are fatal and never retried (``ConfigurationError`` and
``ArgumentError``); everything an adapter raises is transient and counts
toward the retry budget. ``ErrorInfo`` is the structured rendering used in
logs and in feedback handed back to a model.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from intentcall.foundation.core.context import PromptContext


class ErrorCode(StrEnum):
    """Machine-readable classification of invocation failures."""
    CONFIGURATION = "CONFIGURATION"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    UNKNOWN_METHOD = "UNKNOWN_METHOD"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    PARSE_ERROR = "PARSE_ERROR"
    TOOL_ERROR = "TOOL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    EXHAUSTED = "EXHAUSTED"
    UNKNOWN = "UNKNOWN"


_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connection": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "rate": ErrorCode.RATE_LIMITED,
    "limit": ErrorCode.RATE_LIMITED,
    "parse": ErrorCode.PARSE_ERROR,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.VALIDATION_FAILED,
    "value": ErrorCode.INVALID_ARGUMENTS,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map an exception to an error code.

    Library errors carry their own code; anything else is classified by
    pattern matching on its type name and message.
    """
    if isinstance(exc, IntentError):
        return exc.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


# ═════════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═════════════════════════════════════════════════════════════════════════════


class IntentError(Exception):
    """Base class for all intentcall failures.

    Attributes:
        context: Prompt context of the failing request, when one was built
        code: Classification used by logging and ``ErrorInfo``
        fatal: Fatal errors propagate without retry or fallback
    """

    code: ClassVar[ErrorCode] = ErrorCode.UNKNOWN
    fatal: ClassVar[bool] = False

    def __init__(self, message: str, *, context: PromptContext | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class ConfigurationError(IntentError):
    """Invalid wiring: missing adapter, unresolvable result shape, bad interceptor output."""
    code = ErrorCode.CONFIGURATION
    fatal = True


class ArgumentError(IntentError):
    """Call arguments do not fit the declared operation."""
    code = ErrorCode.INVALID_ARGUMENTS
    fatal = True


class UnknownMethodError(ArgumentError):
    """A decision or tool call named a method the interface does not declare."""
    code = ErrorCode.UNKNOWN_METHOD

    def __init__(self, method: str, available: Sequence[str], *, context: PromptContext | None = None) -> None:
        super().__init__(f"Unknown method '{method}'. Available: {list(available)}", context=context)
        self.method = method
        self.available = tuple(available)


class AdapterError(IntentError):
    """Transient backend failure; eligible for retry."""
    code = ErrorCode.EXTERNAL_SERVICE_ERROR


class IntentTimeoutError(AdapterError):
    """A single attempt exceeded the policy timeout."""
    code = ErrorCode.TIMEOUT


class ResultValidationError(AdapterError):
    """The result validator rejected an otherwise successful response."""
    code = ErrorCode.VALIDATION_FAILED


class DeserializationError(AdapterError):
    """Backend output could not be converted into the declared result shape."""
    code = ErrorCode.PARSE_ERROR


class ToolInvocationError(IntentError):
    """A tool call could not be parsed or executed."""
    code = ErrorCode.TOOL_ERROR


class ResilienceError(IntentError):
    """All attempts, including any fallback, failed.

    ``__cause__`` is the final error. ``primary_error`` is the last error of
    the primary adapter and ``errors`` lists every attempt's error in order.
    """
    code = ErrorCode.EXHAUSTED

    def __init__(
        self,
        message: str,
        *,
        errors: Sequence[BaseException] = (),
        primary_error: BaseException | None = None,
        context: PromptContext | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.errors = tuple(errors)
        self.primary_error = primary_error

    @property
    def attempts(self) -> int:
        return len(self.errors)


def is_fatal(exc: BaseException) -> bool:
    """Whether ``exc`` must bypass retry and fallback."""
    return isinstance(exc, IntentError) and exc.fatal


# ═════════════════════════════════════════════════════════════════════════════
# Structured Rendering
# ═════════════════════════════════════════════════════════════════════════════


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
    ErrorCode.VALIDATION_FAILED,
    ErrorCode.PARSE_ERROR,
    ErrorCode.EXTERNAL_SERVICE_ERROR,
})


class ErrorInfo(BaseModel):
    """Structured error description for logs and model feedback.

    Attributes:
        method_name: Declared operation that failed
        message: Human-readable error message
        code: Machine-readable error code
        recoverable: Whether a retry might succeed
        details: Optional stack trace
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
    )

    method_name: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = True
    details: str | None = None

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | BaseException) -> str:
        if isinstance(v, BaseException):
            return str(v) or type(v).__name__
        return v

    @computed_field
    @property
    def is_retryable(self) -> bool:
        return self.code in _RETRYABLE_CODES

    @classmethod
    def from_exception(
        cls,
        method_name: str,
        exc: BaseException,
        *,
        include_trace: bool = False,
    ) -> Self:
        """Create from an exception with auto-classification."""
        return cls(
            method_name=method_name or "unknown",
            message=str(exc).strip() or type(exc).__name__,
            code=classify_exception(exc),
            recoverable=not is_fatal(exc),
            details="".join(traceback.format_exception(exc)) if include_trace else None,
        )

    def render(self) -> str:
        """Format the error for model consumption."""
        parts = [f"**Error ({self.method_name}):** {self.message}"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying or trying an alternative approach._")
        if self.details:
            parts.append(f"\n\nDetails:\n```\n{self.details}\n```")
        return "".join(parts)

    __str__ = render
