"""Foundation - core building blocks for intentcall.

Contains: declared operations and descriptors, prompt context, JSON renderings,
error handling, config.
"""

from __future__ import annotations

__all__ = [
    # Core
    "operation", "declared_operations", "OperationSpec", "OperationMode",
    "MethodDescriptor", "ParameterDescriptor", "PromptContext", "Message", "MessageRole", "TypedKey",
    # Errors
    "ErrorCode", "IntentError", "ConfigurationError", "ArgumentError", "UnknownMethodError",
    "AdapterError", "IntentTimeoutError", "ResultValidationError", "ResilienceError", "classify_exception",
    # Config
    "IntentcallSettings", "get_settings", "clear_settings_cache",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("operation", "declared_operations", "OperationSpec", "OperationMode",
                "MethodDescriptor", "ParameterDescriptor", "PromptContext", "Message", "MessageRole", "TypedKey"):
        from . import core
        return getattr(core, name)

    if name in ("ErrorCode", "IntentError", "ConfigurationError", "ArgumentError", "UnknownMethodError",
                "AdapterError", "IntentTimeoutError", "ResultValidationError", "ResilienceError",
                "classify_exception"):
        from . import errors
        return getattr(errors, name)

    if name in ("IntentcallSettings", "get_settings", "clear_settings_cache"):
        from . import config
        return getattr(config, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
