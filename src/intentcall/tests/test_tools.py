"""Tests for tool providers, the tool loop and tool-calling adapters."""

from __future__ import annotations

import json
from collections.abc import Sequence
from concurrent.futures import Future

import pytest

from intentcall import IntentBuilder, operation
from intentcall.adapters import ToolCallingAdapter
from intentcall.foundation.core import PromptContext
from intentcall.foundation.errors import ConfigurationError
from intentcall.testing import MockAdapter, MockToolProvider, assert_has_tool
from intentcall.tools import (
    BackendTurn,
    FunctionToolProvider,
    InterfaceToolProvider,
    ToolCall,
    ToolDefinition,
    ToolLoopCoordinator,
    ToolResult,
)


def lookup(city: str, unit: str = "C") -> str:
    """Current temperature for a city.

    Args:
        city: City name
        unit: C or F
    """
    return f"21{unit} in {city}"


async def add(a: int, b: int) -> dict[str, int]:
    """Add two numbers."""
    return {"sum": a + b}


def explode() -> str:
    raise RuntimeError("kaput")


# ═════════════════════════════════════════════════════════════════════════════
# Models
# ═════════════════════════════════════════════════════════════════════════════


def test_tool_call_arguments() -> None:
    assert ToolCall(id="1", tool_name="t", arguments='{"a": 1}').parsed_arguments() == {"a": 1}
    assert ToolCall(id="1", tool_name="t", arguments="").parsed_arguments() == {}


def test_tool_definition_requires_name() -> None:
    with pytest.raises(ValueError):
        ToolDefinition(name="")


# ═════════════════════════════════════════════════════════════════════════════
# FunctionToolProvider
# ═════════════════════════════════════════════════════════════════════════════


class TestFunctionToolProvider:

    def test_definitions_from_signature(self) -> None:
        provider = FunctionToolProvider(lookup, add)
        tools = {t.name: t for t in provider.list_tools()}
        assert tools["lookup"].description == "Current temperature for a city."
        schema = json.loads(tools["lookup"].input_schema)
        assert schema["properties"]["city"]["description"] == "City name"
        assert schema["required"] == ["city"]
        assert tools["add"].description == "Add two numbers."

    def test_decorator_and_duplicates(self) -> None:
        provider = FunctionToolProvider()

        @provider.tool(name="shout", description="Uppercase text")
        def upper(text: str) -> str:
            return text.upper()

        assert upper("x") == "X"
        assert [t.name for t in provider.list_tools()] == ["shout"]
        with pytest.raises(ConfigurationError):
            provider.register(upper, name="shout")

    @pytest.mark.asyncio
    async def test_call_sync_and_async(self) -> None:
        provider = FunctionToolProvider(lookup, add)
        weather = await provider.call_tool(ToolCall(id="c1", tool_name="lookup", arguments='{"city": "Oslo"}'))
        assert (weather.id, weather.content, weather.is_error) == ("c1", "21C in Oslo", False)
        total = await provider.call_tool(ToolCall(id="c2", tool_name="add", arguments='{"a": 2, "b": 3}'))
        assert json.loads(total.content) == {"sum": 5}

    @pytest.mark.asyncio
    async def test_failures_become_error_results(self) -> None:
        provider = FunctionToolProvider(lookup, explode)
        unknown = await provider.call_tool(ToolCall(id="1", tool_name="nope"))
        assert unknown.is_error and unknown.content == "Error: No handler for tool 'nope'"
        invalid = await provider.call_tool(ToolCall(id="2", tool_name="lookup", arguments="{}"))
        assert invalid.is_error and "Invalid arguments" in invalid.content
        bad_json = await provider.call_tool(ToolCall(id="3", tool_name="lookup", arguments="{oops"))
        assert bad_json.is_error
        raised = await provider.call_tool(ToolCall(id="4", tool_name="explode"))
        assert raised.is_error and "kaput" in raised.content


# ═════════════════════════════════════════════════════════════════════════════
# ToolLoopCoordinator
# ═════════════════════════════════════════════════════════════════════════════


class WrongIdProvider:
    def list_tools(self) -> list[ToolDefinition]:
        return [ToolDefinition(name="sloppy")]

    async def call_tool(self, call: ToolCall) -> ToolResult:
        return ToolResult(id="wrong", tool_name=call.tool_name, content="done")


class RaisingProvider:
    def list_tools(self) -> list[ToolDefinition]:
        return [ToolDefinition(name="fragile")]

    async def call_tool(self, call: ToolCall) -> ToolResult:
        raise ConnectionError("backend gone")


class TestToolLoopCoordinator:

    def test_duplicate_tool_names(self) -> None:
        coordinator = ToolLoopCoordinator([FunctionToolProvider(lookup), FunctionToolProvider(lookup)])
        with pytest.raises(ConfigurationError, match="more than one provider"):
            coordinator.available_tools()

    @pytest.mark.asyncio
    async def test_dispatch_results_match_call_ids(self) -> None:
        coordinator = ToolLoopCoordinator([WrongIdProvider(), RaisingProvider()])
        calls = [
            ToolCall(id="a", tool_name="sloppy"),
            ToolCall(id="b", tool_name="fragile"),
            ToolCall(id="c", tool_name="missing"),
        ]
        results = await coordinator.dispatch_all(calls)
        assert [r.id for r in results] == ["a", "b", "c"]
        assert [r.is_error for r in results] == [False, True, True]
        assert "backend gone" in results[1].content
        assert results[2].content == "Error: No provider for tool 'missing'"

    @pytest.mark.asyncio
    async def test_run_loops_until_final(self, context: PromptContext) -> None:
        provider = MockToolProvider.returning({"search": "found it"})
        seen: list[Sequence[ToolResult]] = []

        async def turn(ctx: PromptContext, results: Sequence[ToolResult]) -> BackendTurn:
            seen.append(results)
            assert_has_tool(ctx, "search")
            if not results:
                return BackendTurn.calls(ToolCall(id="s1", tool_name="search", arguments='{"q": "x"}'))
            return BackendTurn.done(f"answer: {results[0].content}")

        result = await ToolLoopCoordinator([provider]).run(turn, context)
        assert result == "answer: found it"
        assert provider.called_with("search") == [{"q": "x"}]
        assert len(seen) == 2


# ═════════════════════════════════════════════════════════════════════════════
# Tool-calling adapters through a built instance
# ═════════════════════════════════════════════════════════════════════════════


class ScriptedToolAdapter(ToolCallingAdapter):
    """Requests one tool call, then answers with its content."""

    def __init__(self) -> None:
        self.contexts: list[PromptContext] = []

    async def backend_turn(self, context, results, result_shape):
        self.contexts.append(context)
        if not results:
            return BackendTurn.calls(ToolCall(id="t1", tool_name="lookup", arguments='{"city": "Lima"}'))
        return BackendTurn.done(results[0].content)


class Weather:
    @operation(summary="Report the weather")
    def report(self, city: str) -> Future[str]: ...


def test_built_instance_runs_tool_loop() -> None:
    adapter = ScriptedToolAdapter()
    instance = IntentBuilder(Weather).adapter(adapter).tool_provider(FunctionToolProvider(lookup)).build()
    assert instance.api.report("Lima").result(timeout=5) == "21C in Lima"
    assert_has_tool(adapter.contexts[0], "lookup")


def test_interceptor_narrows_tools_seen_by_backend() -> None:
    def secret() -> str:
        """Internal only."""
        return "classified"

    adapter = ScriptedToolAdapter()
    instance = (
        IntentBuilder(Weather)
        .adapter(adapter)
        .tool_provider(FunctionToolProvider(lookup, secret))
        .interceptor(lambda ctx: ctx.evolve(
            available_tools=tuple(t for t in ctx.available_tools if t.name != "secret")
        ))
        .build()
    )
    assert instance.api.report("Lima").result(timeout=5) == "21C in Lima"
    assert [[t.name for t in ctx.available_tools] for ctx in adapter.contexts] == [["lookup"], ["lookup"]]


@pytest.mark.asyncio
async def test_run_fills_tools_only_when_context_has_none(context: PromptContext) -> None:
    seen: list[list[str]] = []

    async def turn(ctx: PromptContext, results: Sequence[ToolResult]) -> BackendTurn:
        seen.append([t.name for t in ctx.available_tools])
        return BackendTurn.done("ok")

    coordinator = ToolLoopCoordinator([FunctionToolProvider(lookup, add)])
    await coordinator.run(turn, context)
    await coordinator.run(turn, context.evolve(available_tools=(ToolDefinition(name="add"),)))
    assert seen == [["lookup", "add"], ["add"]]


def test_tool_provider_type_checked() -> None:
    with pytest.raises(ConfigurationError):
        IntentBuilder(Weather).tool_provider(object())  # type: ignore[arg-type]


# ═════════════════════════════════════════════════════════════════════════════
# InterfaceToolProvider
# ═════════════════════════════════════════════════════════════════════════════


class Calculator:
    @operation(summary="Add", returns=int)
    def add(self, a: int, b: int) -> Future[int]:
        """Add numbers.

        Args:
            a: First number
            b: Second number
        """


@pytest.mark.asyncio
async def test_interface_tool_provider() -> None:
    backend = MockAdapter.dynamic(lambda ctx, shape: sum(
        p["value"] for p in json.loads(ctx.method_invocation)["parameters"]
    ))
    provider = InterfaceToolProvider(IntentBuilder(Calculator).adapter(backend).build())
    [definition] = provider.list_tools()
    assert definition.name == "add"
    assert json.loads(definition.input_schema)["required"] == ["a", "b"]

    result = await provider.call_tool(ToolCall(id="x", tool_name="add", arguments='{"a": 2, "b": "3"}'))
    assert (result.id, result.content, result.is_error) == ("x", "5", False)

    missing = await provider.call_tool(ToolCall(id="y", tool_name="add", arguments='{"a": 2}'))
    assert missing.is_error and "Missing required argument 'b'" in missing.content

    unknown = await provider.call_tool(ToolCall(id="z", tool_name="divide"))
    assert unknown.content == "Error: No handler for tool 'divide'"
