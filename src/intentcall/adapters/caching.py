"""Caching decorator around another adapter.

Identical prompts (same ``cache_key``) within the TTL are answered from the
cache without calling the inner adapter. Streaming and tool-calling
requests always bypass the cache. The cache keeps its own copy of each
result and every hit returns a fresh copy.

Example:
    >>> adapter = CachingAdapter(OpenAIAdapter(), ttl_ms=60_000, max_entries=500)
"""

from __future__ import annotations

import copy
import logging
import time
from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from intentcall.io.cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_MS, ResponseCache

from .base import Adapter, AdapterResponse

if TYPE_CHECKING:
    from intentcall.foundation.core.context import PromptContext
    from intentcall.io.cache.cache import Clock
    from intentcall.tools.provider import ToolProvider

logger = logging.getLogger("intentcall.cache")

R = TypeVar("R")


def detached(value: Any) -> Any:
    """Deep copy of a result, so callers never share the cached object."""
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    return copy.deepcopy(value)


class CachingAdapter(Adapter):
    """Adapter that memoizes single-shot responses of ``inner``.

    Args:
        inner: Adapter answering cache misses
        ttl_ms: Entry lifetime in milliseconds
        max_entries: Capacity; the oldest-inserted entry is evicted first
        clock: Monotonic clock in seconds
    """

    __slots__ = ("_inner", "_cache")

    def __init__(
        self,
        inner: Adapter,
        ttl_ms: float = DEFAULT_TTL_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self._inner = inner
        self._cache = ResponseCache(ttl_ms, max_entries, clock=clock)

    @property
    def inner(self) -> Adapter:
        return self._inner

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    async def handle_request(self, context: PromptContext, result_shape: type[R]) -> R:
        return (await self.handle_request_with_usage(context, result_shape)).result

    async def handle_request_with_tools(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider],
    ) -> R:
        return await self._inner.handle_request_with_tools(context, result_shape, tool_providers)

    async def handle_request_with_usage(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider] = (),
    ) -> AdapterResponse:
        if tool_providers:
            return await self._inner.handle_request_with_usage(context, result_shape, tool_providers)

        key = context.cache_key()
        if (entry := self._cache.get(key)) is not None:
            logger.debug(f"[{context.method_name}] cache hit")
            return AdapterResponse(detached(entry.result), entry.usage)

        response = await self._inner.handle_request_with_usage(context, result_shape)
        self._cache.put(key, detached(response.result), response.usage)
        return response

    def handle_request_streaming(self, context: PromptContext) -> AsyncIterator[str]:
        return self._inner.handle_request_streaming(context)

    def handle_request_streaming_with_tools(
        self,
        context: PromptContext,
        tool_providers: Sequence[ToolProvider],
    ) -> AsyncIterator[str]:
        return self._inner.handle_request_streaming_with_tools(context, tool_providers)

    def __repr__(self) -> str:
        return f"CachingAdapter({self._inner!r})"
