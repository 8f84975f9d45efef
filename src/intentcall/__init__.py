"""Intentcall - typed, declared-method interfaces answered by AI backends.

Declare what you want as a plain class of stub methods; intentcall builds an
implementation that turns each call into a structured prompt, runs it through
interceptors, gates and a resilience executor, and hands it to an adapter.

Quick Start:
    >>> from concurrent.futures import Future
    >>> from pydantic import BaseModel, Field
    >>> from intentcall import IntentBuilder, operation
    >>> from intentcall.testing import MockAdapter
    >>>
    >>> class Verdict(BaseModel):
    ...     label: str = Field(description="positive, negative or neutral")
    ...     confidence: float = Field(description="Between 0 and 1")
    >>>
    >>> class Reviewer:
    ...     @operation(summary="Classify sentiment", returns=Verdict, memorize="last verdict")
    ...     def classify(self, text: str) -> Future[Verdict]:
    ...         '''Classify a review.
    ...
    ...         Args:
    ...             text: The review text
    ...         '''
    >>>
    >>> adapter = MockAdapter.scripted({"label": "positive", "confidence": 0.9})
    >>> reviewer = IntentBuilder(Reviewer).adapter(adapter).resilience(max_retries=2).build()
    >>> reviewer.api.classify("Loved it").result().label
    'positive'

Async and Streaming:
    >>> class Writer:
    ...     @operation(summary="Draft a reply")
    ...     async def draft(self, topic: str) -> str: ...
    ...
    ...     @operation(summary="Draft a reply", stream=True)
    ...     def draft_stream(self, topic: str) -> AsyncIterator[str]: ...

Autonomous Agents:
    >>> from intentcall.agents import AutonomousAgent, AutonomousAIApi, DecidingAgentAPI
    >>> agent = AutonomousAgent(target_instance, decider_instance.api)
    >>> agent.run(max_steps=5).value
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    AdapterError,
    ArgumentError,
    ConfigurationError,
    ErrorCode,
    IntentError,
    IntentTimeoutError,
    ResilienceError,
    ResultValidationError,
    UnknownMethodError,
    classify_exception,
)

# Config
from .foundation.config import IntentcallSettings, clear_settings_cache, get_settings

# Core
from .foundation.core import (
    Message,
    MessageRole,
    MethodDescriptor,
    OperationMode,
    PromptContext,
    TypedKey,
    declared_operations,
    operation,
)

# Tools
from .tools import FunctionToolProvider, ToolCall, ToolDefinition, ToolProvider, ToolResult

# Adapters
from .adapters import Adapter, CachingAdapter, RoutingAdapter, StubAdapter, ToolCallingAdapter, UsageInfo, route

# Runtime
from .runtime.assembly import InterceptorChain, MemoryFilterInterceptor, PropertyInterceptor
from .runtime.observability import LoggingListener, RequestListener, UsageTracker, configure_logging
from .runtime.resilience import ResiliencePolicy

# Builder
from .builder import IntentBuilder, IntentInstance, build

# IO
from .io import InMemoryStore, MemoryStore

__all__ = [
    "__version__",
    # Errors
    "ErrorCode", "IntentError", "ConfigurationError", "ArgumentError", "UnknownMethodError",
    "AdapterError", "IntentTimeoutError", "ResultValidationError", "ResilienceError", "classify_exception",
    # Config
    "IntentcallSettings", "get_settings", "clear_settings_cache",
    # Core
    "operation", "declared_operations", "OperationMode", "MethodDescriptor",
    "PromptContext", "Message", "MessageRole", "TypedKey",
    # Tools
    "ToolDefinition", "ToolCall", "ToolResult", "ToolProvider", "FunctionToolProvider",
    # Adapters
    "Adapter", "ToolCallingAdapter", "UsageInfo", "CachingAdapter", "RoutingAdapter", "StubAdapter", "route",
    # Runtime
    "InterceptorChain", "MemoryFilterInterceptor", "PropertyInterceptor",
    "RequestListener", "LoggingListener", "UsageTracker", "configure_logging",
    "ResiliencePolicy",
    # Builder
    "IntentBuilder", "IntentInstance", "build",
    # IO
    "MemoryStore", "InMemoryStore",
]
