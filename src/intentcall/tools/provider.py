"""Tool providers: the side of the tool-calling contract that executes calls.

Example:
    >>> tools = FunctionToolProvider()
    >>> @tools.tool(description="Current temperature for a city")
    ... def weather(city: str, unit: str = "C") -> str:
    ...     '''Args:
    ...         city: City name
    ...         unit: C or F
    ...     '''
    ...     return f"21{unit} in {city}"
    >>> [t.name for t in tools.list_tools()]
    ['weather']
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, get_type_hints, overload, runtime_checkable

from pydantic import BaseModel, Field, ValidationError, create_model

from intentcall.foundation.core.descriptor import _parse_docstring_params
from intentcall.foundation.core.schema import to_json_string
from intentcall.foundation.errors import ConfigurationError, ToolInvocationError

from .models import ToolCall, ToolDefinition, ToolResult

logger = logging.getLogger("intentcall.tools")

F = TypeVar("F", bound=Callable[..., Any])


@runtime_checkable
class ToolProvider(Protocol):
    """Source of tool definitions and executor of tool calls.

    ``call_tool`` reports failures as error results rather than raising.
    """

    def list_tools(self) -> list[ToolDefinition]: ...

    async def call_tool(self, call: ToolCall) -> ToolResult: ...


# ─────────────────────────────────────────────────────────────────────────────
# Function-backed Provider
# ─────────────────────────────────────────────────────────────────────────────

def _generate_schema(func: Callable[..., Any], model_name: str) -> type[BaseModel]:
    """Arguments model from a function signature and its docstring."""
    sig = inspect.signature(func)
    hints = get_type_hints(func)
    param_docs = _parse_docstring_params(func.__doc__)

    fields: dict[str, tuple[Any, Any]] = {}
    for name, param in sig.parameters.items():
        if name in ("self", "cls"):
            continue
        field_type = hints.get(name, str)
        description = param_docs.get(name, f"Parameter: {name}")
        if param.default is inspect.Parameter.empty:
            fields[name] = (field_type, Field(..., description=description))
        else:
            fields[name] = (field_type, Field(default=param.default, description=description))
    return create_model(model_name, **fields)  # type: ignore[call-overload]


@dataclass(frozen=True, slots=True)
class _RegisteredTool:
    definition: ToolDefinition
    func: Callable[..., Any]
    params: type[BaseModel]


class FunctionToolProvider:
    """Exposes plain or async Python callables as tools.

    Sync callables run in a worker thread so they never block the event loop.
    """

    __slots__ = ("_tools",)

    def __init__(self, *funcs: Callable[..., Any]) -> None:
        self._tools: dict[str, _RegisteredTool] = {}
        for func in funcs:
            self.register(func)

    def register(self, func: Callable[..., Any], *, name: str | None = None, description: str | None = None) -> None:
        tool_name = name or func.__name__
        if tool_name in self._tools:
            raise ConfigurationError(f"Tool '{tool_name}' is already registered")
        params = _generate_schema(func, f"{tool_name.title().replace('_', '')}Args")
        doc = inspect.cleandoc(func.__doc__ or "").split("\n\n", 1)[0]
        if doc.lower().startswith(("args:", "arguments:", "parameters:")):
            doc = ""
        self._tools[tool_name] = _RegisteredTool(
            definition=ToolDefinition(
                name=tool_name,
                description=description or " ".join(doc.split()) or tool_name,
                input_schema=json.dumps(params.model_json_schema(), ensure_ascii=False),
            ),
            func=func,
            params=params,
        )

    @overload
    def tool(self, func: F) -> F: ...
    @overload
    def tool(self, *, name: str | None = None, description: str | None = None) -> Callable[[F], F]: ...

    def tool(
        self,
        func: F | None = None,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> F | Callable[[F], F]:
        """Decorator registering a function; the function itself is returned unchanged."""
        def decorator(fn: F) -> F:
            self.register(fn, name=name, description=description)
            return fn
        return decorator(func) if func is not None else decorator

    def list_tools(self) -> list[ToolDefinition]:
        return [t.definition for t in self._tools.values()]

    async def call_tool(self, call: ToolCall) -> ToolResult:
        registered = self._tools.get(call.tool_name)
        if registered is None:
            return ToolResult.error(call, f"Error: No handler for tool '{call.tool_name}'")
        try:
            args = registered.params.model_validate(call.parsed_arguments())
        except ToolInvocationError as e:
            return ToolResult.error(call, f"Error: {e}")
        except ValidationError as e:
            return ToolResult.error(call, f"Error: Invalid arguments for tool '{call.tool_name}': {e}")
        kwargs = {k: getattr(args, k) for k in type(args).model_fields}
        try:
            if inspect.iscoroutinefunction(registered.func):
                value = await registered.func(**kwargs)
            else:
                value = await asyncio.to_thread(registered.func, **kwargs)
        except Exception as e:
            logger.warning(f"Tool '{call.tool_name}' failed: {e}")
            return ToolResult.error(call, f"Error: {e}")
        return ToolResult.ok(call, to_json_string(value))
