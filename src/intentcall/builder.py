"""Fluent construction of implementations for declared interfaces.

Example:
    >>> instance = (
    ...     IntentBuilder(TravelAgent)
    ...     .adapter(OpenAIAdapter())
    ...     .resilience(max_retries=2, timeout_ms=30_000)
    ...     .interceptor(lambda ctx: ctx.with_property("tenant", "acme"))
    ...     .cache(ttl_ms=60_000)
    ...     .build()
    ... )
    >>> plan = instance.api.plan_trip("Lisbon", days=3).result()
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from intentcall.adapters.base import Adapter
from intentcall.adapters.caching import CachingAdapter
from intentcall.adapters.routing import RoutingAdapter
from intentcall.foundation.config import IntentcallSettings, get_settings
from intentcall.foundation.core.descriptor import declared_operations
from intentcall.foundation.errors import ConfigurationError
from intentcall.io.memory import InMemoryStore, MemoryStore
from intentcall.runtime.assembly import DefaultContextBuilder, InterceptorChain
from intentcall.runtime.observability import RequestListener, UsageTracker
from intentcall.runtime.proxy import IntentPipeline, implement
from intentcall.runtime.resilience import ResiliencePolicy
from intentcall.tools.provider import ToolProvider

if TYPE_CHECKING:
    from intentcall.foundation.core.context import PromptContext
    from intentcall.runtime.assembly import ContextBuilder, Interceptor

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class IntentInstance(Generic[T]):
    """A built implementation together with its memory and usage figures.

    Attributes:
        api: Object implementing the declared interface
        memory: Store receiving memorized results
        interface: The declared interface class
        usage: Aggregated token usage of completed requests
    """
    api: T
    memory: MemoryStore
    interface: type[T]
    usage: UsageTracker
    pipeline: IntentPipeline = field(repr=False, compare=False)


class IntentBuilder(Generic[T]):
    """Configures and builds an ``IntentInstance`` for ``interface``.

    Unset resilience and cache options fall back to ``IntentcallSettings``.
    """

    def __init__(self, interface: type[T], *, settings: IntentcallSettings | None = None) -> None:
        if not declared_operations(interface):
            raise ConfigurationError(f"{interface.__name__} declares no @operation methods")
        self._interface = interface
        self._settings = settings or get_settings()
        self._adapter: Adapter | None = None
        self._context_builder: ContextBuilder = DefaultContextBuilder()
        self._interceptors: list[Interceptor | Callable[[PromptContext], PromptContext]] = []
        self._tool_providers: list[ToolProvider] = []
        self._listeners: list[RequestListener] = []
        self._policy = ResiliencePolicy.from_settings(self._settings)
        self._memory: MemoryStore | None = None
        cache = self._settings.cache
        self._cache: tuple[float, int] | None = (cache.ttl_ms, cache.max_entries) if cache.enabled else None

    def adapter(self, adapter: Adapter) -> IntentBuilder[T]:
        if not isinstance(adapter, Adapter):
            raise ConfigurationError(f"Expected an Adapter, got {type(adapter).__name__}")
        self._adapter = adapter
        return self

    def router(self, router: Callable[[PromptContext], Adapter]) -> IntentBuilder[T]:
        """Choose the adapter per request."""
        self._adapter = RoutingAdapter(router)
        return self

    def adapter_class(self, adapter_cls: type[Adapter]) -> IntentBuilder[T]:
        """Instantiate an adapter class that needs no constructor arguments."""
        try:
            inspect.signature(adapter_cls).bind()
        except TypeError as e:
            raise ConfigurationError(f"{adapter_cls.__name__} has no no-arg constructor: {e}") from e
        return self.adapter(adapter_cls())

    def context_builder(self, builder: ContextBuilder) -> IntentBuilder[T]:
        self._context_builder = builder
        return self

    def interceptor(self, interceptor: Interceptor | Callable[[PromptContext], PromptContext]) -> IntentBuilder[T]:
        self._interceptors.append(interceptor)
        return self

    def resilience(self, policy: ResiliencePolicy | None = None, **fields: Any) -> IntentBuilder[T]:
        """Replace the policy, or update fields of the current one."""
        base = policy or self._policy
        self._policy = base.with_changes(**fields) if fields else base
        return self

    def tool_provider(self, provider: ToolProvider) -> IntentBuilder[T]:
        if not isinstance(provider, ToolProvider):
            raise ConfigurationError(f"Expected a ToolProvider, got {type(provider).__name__}")
        self._tool_providers.append(provider)
        return self

    def tool_providers(self, providers: Iterable[ToolProvider]) -> IntentBuilder[T]:
        for provider in providers:
            self.tool_provider(provider)
        return self

    def listener(self, listener: RequestListener) -> IntentBuilder[T]:
        self._listeners.append(listener)
        return self

    def cache(self, ttl_ms: float | None = None, max_entries: int | None = None) -> IntentBuilder[T]:
        """Cache single-shot responses of the adapter."""
        defaults = self._settings.cache
        self._cache = (
            defaults.ttl_ms if ttl_ms is None else ttl_ms,
            defaults.max_entries if max_entries is None else max_entries,
        )
        return self

    def memory_store(self, store: MemoryStore) -> IntentBuilder[T]:
        self._memory = store
        return self

    def build(self) -> IntentInstance[T]:
        if self._adapter is None:
            raise ConfigurationError("Adapter must be provided. Use adapter(...), router(...) or adapter_class(...)")
        adapter = self._adapter
        if self._cache is not None:
            adapter = CachingAdapter(adapter, *self._cache)

        memory = self._memory if self._memory is not None else InMemoryStore()
        usage = UsageTracker()
        pipeline = IntentPipeline(
            adapter=adapter,
            context_builder=self._context_builder,
            interceptors=InterceptorChain(self._interceptors),
            policy=self._policy,
            memory=memory,
            listeners=(*self._listeners, usage),
            tool_providers=self._tool_providers,
            rate_window_ms=self._settings.rate_limit.window_ms,
        )
        return IntentInstance(
            api=implement(self._interface, pipeline),
            memory=memory,
            interface=self._interface,
            usage=usage,
            pipeline=pipeline,
        )


def build(
    interface: type[T],
    adapter: Adapter,
    *,
    interceptors: Iterable[Interceptor | Callable[[PromptContext], PromptContext]] = (),
    tool_providers: Iterable[ToolProvider] = (),
    listeners: Iterable[RequestListener] = (),
    policy: ResiliencePolicy | None = None,
    cache: bool = False,
    memory: MemoryStore | None = None,
    settings: IntentcallSettings | None = None,
) -> IntentInstance[T]:
    """One-call shorthand for ``IntentBuilder``."""
    builder = IntentBuilder(interface, settings=settings).adapter(adapter).tool_providers(tool_providers)
    for interceptor in interceptors:
        builder.interceptor(interceptor)
    for listener in listeners:
        builder.listener(listener)
    if policy is not None:
        builder.resilience(policy)
    if cache:
        builder.cache()
    if memory is not None:
        builder.memory_store(memory)
    return builder.build()
