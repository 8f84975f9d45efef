"""The backend boundary.

An ``Adapter`` turns a ``PromptContext`` into a typed result. Only
``handle_request`` is required; every other form has a default that
delegates to it. Adapters that speak a tool-calling backend subclass
``ToolCallingAdapter`` and implement a single ``backend_turn``.

Example:
    >>> class EchoAdapter(Adapter):
    ...     async def handle_request(self, context, result_shape):
    ...         return context.method_invocation
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt, computed_field

from intentcall.tools.loop import BackendTurn, ToolLoopCoordinator

if TYPE_CHECKING:
    from intentcall.foundation.core.context import PromptContext
    from intentcall.tools.models import ToolResult
    from intentcall.tools.provider import ToolProvider

R = TypeVar("R")


class UsageInfo(BaseModel):
    """Token accounting reported by a backend for one call."""

    model_config = ConfigDict(frozen=True)

    model: Annotated[str, Field(min_length=1)]
    input_tokens: NonNegativeInt = 0
    output_tokens: NonNegativeInt = 0
    input_cost_per_token: NonNegativeFloat = 0.0
    output_cost_per_token: NonNegativeFloat = 0.0

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @computed_field
    @property
    def estimated_cost(self) -> float:
        return self.input_tokens * self.input_cost_per_token + self.output_tokens * self.output_cost_per_token


@dataclass(frozen=True, slots=True)
class AdapterResponse:
    """A result plus the usage the backend reported for it, if any."""
    result: Any
    usage: UsageInfo | None = None


class Adapter(ABC):
    """Base class for backend adapters."""

    @abstractmethod
    async def handle_request(self, context: PromptContext, result_shape: type[R]) -> R:
        """Answer one request with a value of ``result_shape``."""

    async def handle_request_with_tools(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider],
    ) -> R:
        """Answer with tools available; adapters without tool support ignore them."""
        return await self.handle_request(context, result_shape)

    async def handle_request_with_usage(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider] = (),
    ) -> AdapterResponse:
        """Answer and report usage. Override to surface token accounting."""
        if tool_providers:
            result = await self.handle_request_with_tools(context, result_shape, tool_providers)
        else:
            result = await self.handle_request(context, result_shape)
        return AdapterResponse(result)

    async def handle_request_streaming(self, context: PromptContext) -> AsyncIterator[str]:
        """Stream text chunks; the default yields the single-shot text result once."""
        yield await self.handle_request(context, str)

    def handle_request_streaming_with_tools(
        self,
        context: PromptContext,
        tool_providers: Sequence[ToolProvider],
    ) -> AsyncIterator[str]:
        return self.handle_request_streaming(context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ToolCallingAdapter(Adapter):
    """Adapter for backends that can request tool calls.

    Subclasses implement ``backend_turn``: send the context (with
    ``available_tools`` set) and the previous turn's tool results, and
    return either the requested calls or the final, typed result.
    """

    @abstractmethod
    async def backend_turn(
        self,
        context: PromptContext,
        results: Sequence[ToolResult],
        result_shape: type[R],
    ) -> BackendTurn:
        """One round trip to the backend."""

    async def handle_request(self, context: PromptContext, result_shape: type[R]) -> R:
        return (await self.backend_turn(context, (), result_shape)).final

    async def handle_request_with_tools(
        self,
        context: PromptContext,
        result_shape: type[R],
        tool_providers: Sequence[ToolProvider],
    ) -> R:
        async def turn(ctx: PromptContext, results: Sequence[ToolResult]) -> BackendTurn:
            return await self.backend_turn(ctx, results, result_shape)

        return await ToolLoopCoordinator(tool_providers).run(turn, context)
