"""Tests for context building and the interceptor chain."""

from __future__ import annotations

import json
from concurrent.futures import Future

import pytest

from intentcall.foundation.core import PromptContext, declared_operations, operation
from intentcall.foundation.errors import ConfigurationError
from intentcall.runtime.assembly import (
    SYSTEM_PREAMBLE,
    DefaultContextBuilder,
    InterceptorChain,
    IntentRequest,
    MemoryBudgetInterceptor,
    MemoryFilterInterceptor,
    PropertyInterceptor,
    SystemInstructionInterceptor,
    ToolInterceptor,
)
from intentcall.tools import ToolDefinition


class Echo:
    @operation(summary="Echo")
    def echo(self, text: str) -> Future[str]: ...


def test_default_builder() -> None:
    descriptor = declared_operations(Echo)["echo"].describe(("hi",), {})
    ctx = DefaultContextBuilder().build(IntentRequest(descriptor=descriptor, memory={"k": "v"}))
    assert ctx.system_instructions == SYSTEM_PREAMBLE
    assert ctx.memory == {"k": "v"}
    assert ctx.method_name == "echo"
    assert json.loads(ctx.method_invocation)["parameters"][0]["value"] == "hi"


def test_chain_runs_in_order(context: PromptContext) -> None:
    chain = InterceptorChain([
        SystemInstructionInterceptor("first"),
        lambda ctx: ctx.evolve(system_instructions=ctx.system_instructions + "|second"),
    ]).then(SystemInstructionInterceptor("third"))
    out = chain.apply(context)
    assert out.system_instructions == "sys\n\nfirst|second\n\nthird"
    assert len(chain) == 3
    assert context.system_instructions == "sys"


def test_chain_rejects_non_context(context: PromptContext) -> None:
    chain = InterceptorChain([lambda ctx: None])
    with pytest.raises(ConfigurationError, match="expected PromptContext"):
        chain.apply(context)


def test_chain_rejects_non_callable() -> None:
    with pytest.raises(ConfigurationError):
        InterceptorChain(["not an interceptor"])  # type: ignore[list-item]


def test_empty_chain_is_identity(context: PromptContext) -> None:
    assert InterceptorChain().apply(context) is context


def test_memory_filter(context: PromptContext) -> None:
    ctx = context.with_memory({"keep": "1", "drop": "2", "other": "3"})
    assert MemoryFilterInterceptor(deny={"drop"}).intercept(ctx).memory == {"keep": "1", "other": "3"}
    assert MemoryFilterInterceptor(allow={"keep", "drop"}, deny={"drop"}).intercept(ctx).memory == {"keep": "1"}


def test_property_interceptor_evaluates_callables(context: PromptContext) -> None:
    counter = iter(range(10))
    interceptor = PropertyInterceptor("request_id", lambda: next(counter))
    assert interceptor.intercept(context).get("request_id") == 0
    assert interceptor.intercept(context).get("request_id") == 1
    assert PropertyInterceptor("tenant", "acme").intercept(context).get("tenant") == "acme"


def test_memory_budget_drops_oldest(context: PromptContext) -> None:
    ctx = context.with_memory({"old": "x" * 40, "mid": "y" * 10, "new": "z"})
    out = MemoryBudgetInterceptor(max_chars=40).intercept(ctx)
    assert list(out.memory) == ["mid", "new"]
    assert MemoryBudgetInterceptor(max_chars=1000).intercept(ctx) is ctx


def test_tool_interceptor_adds_missing_tools(context: PromptContext) -> None:
    search = ToolDefinition(name="search", description="Search")
    ctx = ToolInterceptor([search]).intercept(context)
    assert [t.name for t in ctx.available_tools] == ["search"]
    again = ToolInterceptor([search, ToolDefinition(name="fetch")]).intercept(ctx)
    assert [t.name for t in again.available_tools] == ["search", "fetch"]
