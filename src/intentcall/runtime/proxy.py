"""The per-instance invocation pipeline and the generated implementation class.

Every declared operation forwards to ``IntentPipeline``:

1. bind arguments into a descriptor and snapshot memory
2. build the context, attach tool definitions, run the interceptor chain
3. pass the rate gate, then hold the concurrency gate
4. run the resilience executor against the adapter
5. memorize the result under the operation's label

Cooperative (``async def``) operations run this on the caller's loop;
future-style operations run it on the shared background loop. Streaming
operations skip steps 3 to 5.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import AsyncIterator, Sequence
from concurrent.futures import Future
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any, TypeVar

from intentcall.foundation.core.descriptor import OperationMode, declared_operations
from intentcall.foundation.core.schema import to_json_string
from intentcall.foundation.errors import ConfigurationError
from intentcall.tools.loop import ToolLoopCoordinator

from .assembly import IntentRequest, InterceptorChain
from .concurrency import ConcurrencyGate, RateGate, get_background_loop
from .resilience import ResilienceExecutor

if TYPE_CHECKING:
    from intentcall.adapters.base import Adapter
    from intentcall.foundation.core.context import PromptContext
    from intentcall.foundation.core.descriptor import OperationSpec
    from intentcall.io.memory import MemoryStore
    from intentcall.tools.provider import ToolProvider

    from .assembly import ContextBuilder
    from .concurrency import BackgroundLoop
    from .observability import RequestListener
    from .resilience import ResiliencePolicy

logger = logging.getLogger("intentcall.pipeline")

T = TypeVar("T")


class IntentPipeline:
    """Shared invocation path for every operation of one built instance."""

    __slots__ = (
        "adapter", "context_builder", "interceptors", "memory", "policy", "tool_providers",
        "executor", "rate_gate", "concurrency_gate", "_tools", "_loop",
    )

    def __init__(
        self,
        *,
        adapter: Adapter,
        context_builder: ContextBuilder,
        interceptors: InterceptorChain,
        policy: ResiliencePolicy,
        memory: MemoryStore,
        listeners: Sequence[RequestListener] = (),
        tool_providers: Sequence[ToolProvider] = (),
        rate_window_ms: float = 60_000,
        background: BackgroundLoop | None = None,
    ) -> None:
        self.adapter = adapter
        self.context_builder = context_builder
        self.interceptors = interceptors
        self.memory = memory
        self.policy = policy
        self.tool_providers = tuple(tool_providers)
        self.executor = ResilienceExecutor(policy, listeners)
        self.rate_gate = RateGate(policy.max_requests_per_minute, rate_window_ms) if policy.max_requests_per_minute else None
        self.concurrency_gate = ConcurrencyGate(policy.max_concurrent_requests) if policy.max_concurrent_requests else None
        self._tools = ToolLoopCoordinator(self.tool_providers) if self.tool_providers else None
        self._loop = background

    def assemble(self, spec: OperationSpec, args: tuple[Any, ...], kwargs: dict[str, Any]) -> PromptContext:
        """Build the final context for one call."""
        descriptor = spec.describe(args, kwargs)
        request = IntentRequest(descriptor=descriptor, memory=self.memory.get_all(), result_shape=spec.result_shape)
        context = self.context_builder.build(request)
        if self._tools is not None:
            context = context.evolve(available_tools=tuple(self._tools.available_tools()))
        return self.interceptors.apply(context)

    async def run(self, spec: OperationSpec, context: PromptContext) -> Any:
        """Gates, executor and memorization for an assembled context."""
        async with AsyncExitStack() as stack:
            if self.rate_gate is not None:
                await self.rate_gate.acquire_async()
            if self.concurrency_gate is not None:
                await stack.enter_async_context(self.concurrency_gate.hold_async())
            result = await self.executor.execute(self.adapter, context, spec.result_shape, self.tool_providers)
        if spec.memorize:
            self.memory.put(spec.memorize, to_json_string(result))
        return result

    async def invoke_async(self, spec: OperationSpec, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        return await self.run(spec, self.assemble(spec, args, kwargs))

    def invoke_future(self, spec: OperationSpec, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Future[Any]:
        """Assemble now, run on the background loop.

        Argument errors raise here rather than through the future.
        """
        context = self.assemble(spec, args, kwargs)
        loop = self._loop or get_background_loop()
        return loop.submit(self.run(spec, context))

    def invoke_stream(self, spec: OperationSpec, args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncIterator[str]:
        """Assemble now and return the adapter's chunk stream."""
        return self._stream(self.assemble(spec, args, kwargs))

    async def _stream(self, context: PromptContext) -> AsyncIterator[str]:
        if self.tool_providers:
            chunks = self.adapter.handle_request_streaming_with_tools(context, self.tool_providers)
        else:
            chunks = self.adapter.handle_request_streaming(context)
        try:
            async for chunk in chunks:
                yield chunk
        finally:
            if (aclose := getattr(chunks, "aclose", None)) is not None:
                await aclose()


# ═════════════════════════════════════════════════════════════════════════════
# Generated Implementation
# ═════════════════════════════════════════════════════════════════════════════


def _forwarder(spec: OperationSpec, pipeline: IntentPipeline) -> Any:
    if spec.mode is OperationMode.ASYNC:
        async def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            return await pipeline.invoke_async(spec, args, kwargs)
    elif spec.mode is OperationMode.STREAM:
        def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            return pipeline.invoke_stream(spec, args, kwargs)
    else:
        def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            return pipeline.invoke_future(spec, args, kwargs)
    return method


def implement(interface: type[T], pipeline: IntentPipeline) -> T:
    """Instantiate a subclass of ``interface`` whose operations call ``pipeline``."""
    operations = declared_operations(interface)
    if not operations:
        raise ConfigurationError(f"{interface.__name__} declares no @operation methods")

    namespace: dict[str, Any] = {"__module__": interface.__module__}
    for attr, spec in operations.items():
        stub = getattr(interface, attr)
        namespace[attr] = functools.wraps(stub)(_forwarder(spec, pipeline))
    namespace["__repr__"] = lambda self: f"<{interface.__name__} implementation>"

    impl = type(f"{interface.__name__}Impl", (interface,), namespace)
    try:
        return impl()
    except TypeError as e:
        raise ConfigurationError(f"{interface.__name__} must be constructible without arguments: {e}") from e
