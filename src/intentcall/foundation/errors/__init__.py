"""Error handling for intentcall.

- ErrorCode / classify_exception: programmatic classification
- IntentError hierarchy: fatal configuration and argument errors, transient adapter errors
- ErrorInfo: structured rendering for logs and model feedback
"""

from .errors import (
    AdapterError,
    ArgumentError,
    ConfigurationError,
    DeserializationError,
    ErrorCode,
    ErrorInfo,
    IntentError,
    IntentTimeoutError,
    ResilienceError,
    ResultValidationError,
    ToolInvocationError,
    UnknownMethodError,
    classify_exception,
    is_fatal,
)

__all__ = [
    "ErrorCode", "classify_exception", "is_fatal",
    "IntentError", "ConfigurationError", "ArgumentError", "UnknownMethodError",
    "AdapterError", "IntentTimeoutError", "ResultValidationError", "DeserializationError",
    "ToolInvocationError", "ResilienceError",
    "ErrorInfo",
]
