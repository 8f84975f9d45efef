"""Interceptors rewrite the prompt context before it reaches the adapter.

Each interceptor receives the previous one's output and returns a new
context; interceptors run in registration order and never mutate their
input.

Example:
    >>> chain = InterceptorChain([
    ...     MemoryFilterInterceptor(deny={"scratch"}),
    ...     SystemInstructionInterceptor("Answer in French."),
    ...     lambda ctx: ctx.with_property("request_id", "abc123"),
    ... ])
    >>> ctx = chain.apply(ctx)
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from intentcall.foundation.core.context import PromptContext, TypedKey
from intentcall.foundation.errors import ConfigurationError

if TYPE_CHECKING:
    from intentcall.tools.models import ToolDefinition


@runtime_checkable
class Interceptor(Protocol):
    """Pure transformation of a prompt context."""

    def intercept(self, context: PromptContext) -> PromptContext: ...


@dataclass(frozen=True, slots=True)
class FunctionInterceptor:
    """Wraps a plain ``context -> context`` callable."""
    func: Callable[[PromptContext], PromptContext]

    def intercept(self, context: PromptContext) -> PromptContext:
        return self.func(context)


def as_interceptor(obj: Interceptor | Callable[[PromptContext], PromptContext]) -> Interceptor:
    if isinstance(obj, Interceptor):
        return obj
    if callable(obj):
        return FunctionInterceptor(obj)
    raise ConfigurationError(f"Not an interceptor: {obj!r}")


class InterceptorChain:
    """Ordered, immutable sequence of interceptors."""

    __slots__ = ("_interceptors",)

    def __init__(self, interceptors: Iterable[Interceptor | Callable[[PromptContext], PromptContext]] = ()) -> None:
        self._interceptors: tuple[Interceptor, ...] = tuple(as_interceptor(i) for i in interceptors)

    def then(self, interceptor: Interceptor | Callable[[PromptContext], PromptContext]) -> InterceptorChain:
        return InterceptorChain((*self._interceptors, as_interceptor(interceptor)))

    def apply(self, context: PromptContext) -> PromptContext:
        for interceptor in self._interceptors:
            out = interceptor.intercept(context)
            if not isinstance(out, PromptContext):
                raise ConfigurationError(
                    f"Interceptor {interceptor!r} returned {type(out).__name__}, expected PromptContext"
                )
            context = out
        return context

    def __len__(self) -> int:
        return len(self._interceptors)

    def __iter__(self) -> Iterator[Interceptor]:
        return iter(self._interceptors)


# ─────────────────────────────────────────────────────────────────────────────
# Built-in Interceptors
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class MemoryFilterInterceptor:
    """Restrict which memory entries reach the backend.

    Args:
        allow: Keep only these keys (None keeps all)
        deny: Drop these keys
    """
    allow: frozenset[str] | None = None
    deny: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.allow is not None:
            object.__setattr__(self, "allow", frozenset(self.allow))
        object.__setattr__(self, "deny", frozenset(self.deny))

    def intercept(self, context: PromptContext) -> PromptContext:
        kept = {
            k: v for k, v in context.memory.items()
            if (self.allow is None or k in self.allow) and k not in self.deny
        }
        return context.evolve(memory=kept)


@dataclass(frozen=True, slots=True)
class PropertyInterceptor:
    """Inject a property; a callable value is evaluated per request."""
    key: str | TypedKey[Any]
    value: Any

    def intercept(self, context: PromptContext) -> PromptContext:
        value = self.value() if callable(self.value) else self.value
        return context.with_property(self.key, value)


@dataclass(frozen=True, slots=True)
class SystemInstructionInterceptor:
    """Append text to the system instructions; a callable is evaluated per request."""
    text: str | Callable[[], str]

    def intercept(self, context: PromptContext) -> PromptContext:
        extra = self.text() if callable(self.text) else self.text
        return context.evolve(system_instructions=f"{context.system_instructions}\n\n{extra}")


@dataclass(frozen=True, slots=True)
class MemoryBudgetInterceptor:
    """Drop the oldest memory entries until the serialized memory fits ``max_chars``."""
    max_chars: int

    def intercept(self, context: PromptContext) -> PromptContext:
        memory = dict(context.memory)
        while memory and len(json.dumps(memory, ensure_ascii=False)) > self.max_chars:
            del memory[next(iter(memory))]
        if len(memory) == len(context.memory):
            return context
        return context.evolve(memory=memory)


@dataclass(frozen=True, slots=True)
class ToolInterceptor:
    """Add tool definitions to the request; names already present are kept as they are."""
    tools: Sequence[ToolDefinition]

    def intercept(self, context: PromptContext) -> PromptContext:
        present = {t.name for t in context.available_tools}
        added = tuple(t for t in self.tools if t.name not in present)
        if not added:
            return context
        return context.evolve(available_tools=(*context.available_tools, *added))
