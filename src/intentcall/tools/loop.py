"""Adapter-side coordination of the tool-calling loop.

An adapter that supports tool calling drives ``ToolLoopCoordinator.run``
with a ``turn`` callable: each turn sends the context plus the previous
results to the backend and returns either tool calls or a final response.
Every dispatched call gets exactly one result carrying the call's id.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from intentcall.foundation.errors import ConfigurationError

from .models import ToolCall, ToolDefinition, ToolResult

if TYPE_CHECKING:
    from intentcall.foundation.core.context import PromptContext

    from .provider import ToolProvider

logger = logging.getLogger("intentcall.tools")


@dataclass(frozen=True, slots=True)
class BackendTurn:
    """One backend response: tool calls to run, or the final result."""
    tool_calls: tuple[ToolCall, ...] = ()
    final: Any = None

    @property
    def is_final(self) -> bool:
        return not self.tool_calls

    @classmethod
    def calls(cls, *calls: ToolCall) -> BackendTurn:
        return cls(tool_calls=calls)

    @classmethod
    def done(cls, result: Any) -> BackendTurn:
        return cls(final=result)


Turn = Callable[["PromptContext", Sequence[ToolResult]], Awaitable[BackendTurn]]


class ToolLoopCoordinator:
    """Routes tool calls to the provider that declares the tool."""

    __slots__ = ("_providers",)

    def __init__(self, providers: Sequence[ToolProvider]) -> None:
        self._providers = tuple(providers)

    @property
    def providers(self) -> tuple[ToolProvider, ...]:
        return self._providers

    def _index(self) -> dict[str, tuple[ToolDefinition, ToolProvider]]:
        index: dict[str, tuple[ToolDefinition, ToolProvider]] = {}
        for provider in self._providers:
            for definition in provider.list_tools():
                if definition.name in index:
                    raise ConfigurationError(f"Tool '{definition.name}' is declared by more than one provider")
                index[definition.name] = (definition, provider)
        return index

    def available_tools(self) -> list[ToolDefinition]:
        """Union of every provider's tools, in provider order."""
        return [definition for definition, _ in self._index().values()]

    async def dispatch(self, call: ToolCall) -> ToolResult:
        """Run one call on its owning provider; failures become error results."""
        entry = self._index().get(call.tool_name)
        if entry is None:
            return ToolResult.error(call, f"Error: No provider for tool '{call.tool_name}'")
        try:
            result = await entry[1].call_tool(call)
        except Exception as e:
            logger.warning(f"Tool '{call.tool_name}' raised: {e}")
            return ToolResult.error(call, f"Error: {e}")
        if result.id != call.id:
            logger.warning(f"Tool '{call.tool_name}' returned id {result.id!r} for call {call.id!r}; correcting")
            result = result.model_copy(update={"id": call.id})
        return result

    async def dispatch_all(self, calls: Sequence[ToolCall]) -> list[ToolResult]:
        """Run calls in order, one result per call."""
        return [await self.dispatch(call) for call in calls]

    async def run(self, turn: Turn, context: PromptContext) -> Any:
        """Drive turns until the backend produces a final response.

        Tools already listed on ``context`` (set during assembly and possibly
        narrowed by interceptors) are kept; an empty list is filled with the
        union of the providers' tools.
        """
        if not context.available_tools and (tools := tuple(self.available_tools())):
            context = context.evolve(available_tools=tools)
        results: Sequence[ToolResult] = ()
        while True:
            step = await turn(context, results)
            if step.is_final:
                return step.final
            logger.debug(f"[{context.method_name}] backend requested {len(step.tool_calls)} tool call(s)")
            results = await self.dispatch_all(step.tool_calls)
