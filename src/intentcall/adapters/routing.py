"""Per-request adapter selection.

``RoutingAdapter`` asks a router function which adapter should answer each
request and delegates every request form to it. ``route`` builds such a
router from predicate rules and method-name rules.

Example:
    >>> router = route(
    ...     (lambda ctx: len(ctx.method_invocation) > 4000, long_context_adapter),
    ...     default=fast_adapter,
    ...     summarize=strong_adapter,
    ... )
    >>> adapter = RoutingAdapter(router)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from .base import Adapter, AdapterResponse

if TYPE_CHECKING:
    from intentcall.foundation.core.context import PromptContext
    from intentcall.tools.provider import ToolProvider

logger = logging.getLogger("intentcall.routing")

R = TypeVar("R")

Router = Callable[["PromptContext"], Adapter]
Predicate = Callable[["PromptContext"], bool]


class RoutingAdapter(Adapter):
    """Stateless adapter delegating to ``router(context)``."""

    __slots__ = ("_router",)

    def __init__(self, router: Router) -> None:
        self._router = router

    async def handle_request(self, context: PromptContext, result_shape: type[R]) -> R:
        return await self._router(context).handle_request(context, result_shape)

    async def handle_request_with_tools(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider],
    ) -> R:
        return await self._router(context).handle_request_with_tools(context, result_shape, tool_providers)

    async def handle_request_with_usage(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider] = (),
    ) -> AdapterResponse:
        return await self._router(context).handle_request_with_usage(context, result_shape, tool_providers)

    def handle_request_streaming(self, context: PromptContext) -> AsyncIterator[str]:
        return self._router(context).handle_request_streaming(context)

    def handle_request_streaming_with_tools(
        self,
        context: PromptContext,
        tool_providers: Sequence[ToolProvider],
    ) -> AsyncIterator[str]:
        return self._router(context).handle_request_streaming_with_tools(context, tool_providers)


@dataclass(frozen=True, slots=True)
class Route:
    """A routing rule: condition → adapter.

    Attributes:
        condition: Predicate over the prompt context
        adapter: Adapter answering when the condition holds
        name: Optional name for logging
    """

    condition: Predicate
    adapter: Adapter
    name: str = ""

    def matches(self, context: PromptContext) -> bool:
        """A condition that raises counts as not matching."""
        try:
            return bool(self.condition(context))
        except Exception:
            return False


def route(
    *rules: Route | tuple[Predicate, Adapter],
    default: Adapter,
    **by_method: Adapter,
) -> Router:
    """Build a router: method-name rules first, then predicates in order, then ``default``."""
    routes = [r if isinstance(r, Route) else Route(*r) for r in rules]

    def select(context: PromptContext) -> Adapter:
        if (adapter := by_method.get(context.method_name)) is not None:
            return adapter
        for r in routes:
            if r.matches(context):
                logger.debug(f"[{context.method_name}] routed via {r.name or r.adapter!r}")
                return r.adapter
        return default

    return select
