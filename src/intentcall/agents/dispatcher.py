"""Dispatching a decision to an operation of a built instance.

Arguments arrive as text (from a decision) or as JSON values (from a tool
call). They are matched to parameters by name; when exactly one argument and
one parameter exist, an unmatched name still binds positionally. Values are
coerced to the parameter's annotation before the call.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Mapping
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from intentcall.foundation.core.descriptor import declared_operations
from intentcall.foundation.core.schema import unwrap_optional
from intentcall.foundation.errors import ArgumentError, UnknownMethodError
from intentcall.runtime.concurrency import run_sync

if TYPE_CHECKING:
    from intentcall.builder import IntentInstance
    from intentcall.foundation.core.descriptor import OperationSpec, ParameterSpec

logger = logging.getLogger("intentcall.agents")

_TRUE = frozenset({"true", "yes", "1"})
_FALSE = frozenset({"false", "no", "0"})


@dataclass(frozen=True, slots=True)
class DispatchResult:
    method_name: str
    value: Any
    is_terminal: bool


def coerce(value: Any, annotation: Any, name: str = "value") -> Any:
    """Convert ``value`` to ``annotation``; scalars parse from text."""
    target = unwrap_optional(annotation)
    if value is None or target is Any or target is inspect.Parameter.empty:
        return value
    try:
        if target is str:
            return value if isinstance(value, str) else str(value)
        if target is bool:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(f"not a boolean: {value!r}")
        if target is int:
            return value if isinstance(value, int) and not isinstance(value, bool) else int(str(value).strip())
        if target is float:
            return float(value) if isinstance(value, (int, float)) else float(str(value).strip())
        adapter = TypeAdapter(target)
        if isinstance(value, str) and target is not str:
            try:
                return adapter.validate_json(value)
            except ValidationError:
                return adapter.validate_python(value)
        return adapter.validate_python(value)
    except (ValueError, TypeError, ValidationError) as e:
        raise ArgumentError(f"Cannot convert argument '{name}' to {getattr(target, '__name__', target)}: {e}") from None


class AgentDispatcher:
    """Invokes operations of ``instance.api`` by name."""

    __slots__ = ("_instance", "_operations")

    def __init__(self, instance: IntentInstance[Any]) -> None:
        self._instance = instance
        self._operations: dict[str, OperationSpec] = declared_operations(instance.interface)

    @property
    def available(self) -> list[str]:
        return list(self._operations)

    def resolve(self, method: str) -> OperationSpec:
        try:
            return self._operations[method]
        except KeyError:
            raise UnknownMethodError(method, self.available) from None

    def is_terminal(self, method: str) -> bool:
        spec = self._operations.get(method)
        return spec is not None and spec.terminal

    def first_parameterless_terminal(self) -> str | None:
        """Name of the first terminal operation callable without arguments."""
        return next((name for name, s in self._operations.items() if s.terminal and s.parameterless), None)

    def resolve_arguments(self, method: str, args: Mapping[str, Any]) -> dict[str, Any]:
        """Match and coerce ``args`` for ``method``."""
        spec = self.resolve(method)
        positional = len(args) == 1 and len(spec.params) == 1
        resolved: dict[str, Any] = {}
        for param in spec.params:
            if param.name in args:
                raw = args[param.name]
            elif positional:
                raw = next(iter(args.values()))
            elif param.required:
                raise ArgumentError(f"Missing required argument '{param.name}' for '{method}'")
            else:
                continue
            resolved[param.name] = self._coerce(param, raw)

        if ignored := set(args) - set(spec.param_names) - ({next(iter(args))} if positional else set()):
            logger.debug(f"Ignoring unknown arguments for '{method}': {sorted(ignored)}")
        return resolved

    @staticmethod
    def _coerce(param: ParameterSpec, raw: Any) -> Any:
        return coerce(raw, param.annotation, param.name)

    def _call(self, method: str, args: Mapping[str, Any]) -> Any:
        kwargs = self.resolve_arguments(method, args)
        logger.debug(f"Dispatching {method}({', '.join(kwargs)})")
        return getattr(self._instance.api, method)(**kwargs)

    def dispatch(self, method: str, args: Mapping[str, Any] | None = None) -> DispatchResult:
        """Call ``method`` and block until its result is available."""
        outcome = self._call(method, args or {})
        if isinstance(outcome, Future):
            value = outcome.result()
        elif inspect.isawaitable(outcome):
            value = run_sync(_resolve(outcome))
        elif isinstance(outcome, AsyncIterator):
            value = run_sync(_join(outcome))
        else:
            value = outcome
        return DispatchResult(method, value, self.is_terminal(method))

    async def dispatch_async(self, method: str, args: Mapping[str, Any] | None = None) -> DispatchResult:
        """Call ``method`` and await its result."""
        outcome = self._call(method, args or {})
        if isinstance(outcome, Future):
            value = await asyncio.wrap_future(outcome)
        elif inspect.isawaitable(outcome):
            value = await outcome
        elif isinstance(outcome, AsyncIterator):
            value = await _join(outcome)
        else:
            value = outcome
        return DispatchResult(method, value, self.is_terminal(method))


async def _resolve(awaitable: Any) -> Any:
    return await awaitable


async def _join(chunks: AsyncIterator[str]) -> str:
    return "".join([chunk async for chunk in chunks])
