"""Declared operations and the per-call descriptors built from them.

A declared interface is a plain class whose stub methods are marked with
``@operation``. Registration reads each stub once: its signature, parameter
descriptions (explicit or from the docstring ``Args:`` section), result
shape and invocation mode. Every call then binds its arguments against that
entry to produce a ``MethodDescriptor``.

Example:
    >>> class Summarizer:
    ...     @operation(summary="Summarize", returns=Summary, memorize="last summary")
    ...     def summarize(self, text: str, words: int = 50) -> Future[Summary]:
    ...         '''Summarize text.
    ...
    ...         Args:
    ...             text: The text to summarize
    ...             words: Target length in words
    ...         '''
    ...
    >>> spec = declared_operations(Summarizer)["summarize"]
    >>> spec.describe(("hello",), {}).parameters[1].value
    50
"""

from __future__ import annotations

import builtins
import inspect
import json
import re
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import Any, TypeVar, get_type_hints, overload

from pydantic import BaseModel, ConfigDict
from pydantic_core import to_jsonable_python

from intentcall.foundation.errors import ArgumentError, ConfigurationError

F = TypeVar("F", bound=Callable[..., Any])

OPERATION_ATTR = "__intent_operation__"
SCALAR_SHAPES: tuple[type, ...] = (str, int, float, bool)


def _canonical(value: Any) -> str:
    return json.dumps(to_jsonable_python(value, fallback=repr), sort_keys=True, ensure_ascii=False)


def _hash_key(value: Any) -> Hashable:
    """Hashable stand-in for ``value``; values that compare equal give equal keys."""
    if isinstance(value, Mapping):
        return frozenset((k, _hash_key(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_hash_key(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    if isinstance(value, BaseModel):
        return (type(value), _hash_key(value.__dict__))
    try:
        hash(value)
    except TypeError:
        return _canonical(value)
    return value


# ═════════════════════════════════════════════════════════════════════════════
# Per-call Descriptors
# ═════════════════════════════════════════════════════════════════════════════


class ParameterDescriptor(BaseModel):
    """One bound argument of a call."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str = ""
    value: Any = None

    def __hash__(self) -> int:
        return hash((self.name, self.description, _hash_key(self.value)))


class MethodDescriptor(BaseModel):
    """Pure value describing one call: operation metadata plus bound arguments.

    Two descriptors are equal when every field, argument values included, is
    equal.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    operation_summary: str = ""
    operation_description: str = ""
    parameters: tuple[ParameterDescriptor, ...] = ()
    result_shape: Any = str
    response_description: str = ""

    def __hash__(self) -> int:
        return hash((
            self.name,
            self.operation_summary,
            self.operation_description,
            self.parameters,
            self.result_shape,
            self.response_description,
        ))

    @property
    def arguments(self) -> dict[str, Any]:
        return {p.name: p.value for p in self.parameters}


# ═════════════════════════════════════════════════════════════════════════════
# Registration
# ═════════════════════════════════════════════════════════════════════════════


class OperationMode(StrEnum):
    """How a generated method returns its result."""
    FUTURE = "future"
    ASYNC = "async"
    STREAM = "stream"


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    name: str
    description: str
    annotation: Any = str
    default: Any = inspect.Parameter.empty

    @property
    def required(self) -> bool:
        return self.default is inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Static registration entry for one declared operation."""

    name: str
    summary: str
    description: str
    params: tuple[ParameterSpec, ...]
    result_shape: type
    response_description: str = ""
    memorize: str | None = None
    terminal: bool = False
    mode: OperationMode = OperationMode.FUTURE
    signature: inspect.Signature = field(default_factory=inspect.Signature, compare=False, repr=False)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params)

    @property
    def parameterless(self) -> bool:
        return not any(p.required for p in self.params)

    def bind(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
        """Bind call arguments by signature, applying declared defaults."""
        try:
            bound = self.signature.bind(*args, **kwargs)
        except TypeError as e:
            raise ArgumentError(f"Invalid arguments for '{self.name}': {e}") from None
        bound.apply_defaults()
        return dict(bound.arguments)

    def describe(self, args: tuple[Any, ...] = (), kwargs: dict[str, Any] | None = None) -> MethodDescriptor:
        """Build the descriptor for one call."""
        values = self.bind(args, kwargs or {})
        return MethodDescriptor(
            name=self.name,
            operation_summary=self.summary,
            operation_description=self.description,
            parameters=tuple(
                ParameterDescriptor(name=p.name, description=p.description, value=values[p.name])
                for p in self.params
            ),
            result_shape=self.result_shape,
            response_description=self.response_description,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Docstring Parsing
# ─────────────────────────────────────────────────────────────────────────────

_PARAM_PATTERN = re.compile(
    r"^\s*(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<desc>.+?)(?=\n\s*\w+\s*(?:\([^)]*\))?\s*:|$)",
    re.MULTILINE | re.DOTALL,
)


def _parse_docstring_params(docstring: str | None) -> dict[str, str]:
    """Extract parameter descriptions from a Google style ``Args:`` section."""
    if not docstring:
        return {}
    sections = re.split(r"\n\s*(?:Args|Arguments|Parameters)\s*:\s*\n", inspect.cleandoc(docstring), flags=re.IGNORECASE)
    if len(sections) < 2:
        return {}
    args_section = re.split(r"\n\s*(?:Returns|Raises|Examples?|Notes?|Yields)\s*:", sections[1], flags=re.IGNORECASE)[0]
    return {m.group("name"): " ".join(m.group("desc").split()) for m in _PARAM_PATTERN.finditer(args_section)}


def _docstring_summary(docstring: str | None) -> str:
    if not docstring:
        return ""
    return " ".join(inspect.cleandoc(docstring).split("\n\n", 1)[0].split())


def _resolve_hints(func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return get_type_hints(func)
    except Exception:
        # Forward references not resolvable yet; keep the builtin scalars
        raw = getattr(func, "__annotations__", {})
        return {k: getattr(builtins, v, str) if isinstance(v, str) else v for k, v in raw.items()}


def resolve_result_shape(shape: Any, method: str) -> type:
    """Validate a declared result shape."""
    if shape is None:
        return str
    if isinstance(shape, type) and (shape in SCALAR_SHAPES or issubclass(shape, (Enum, BaseModel))):
        return shape
    raise ConfigurationError(
        f"Cannot resolve result shape {shape!r} for '{method}': expected str, int, float, bool, an Enum or a BaseModel"
    )


def _build_spec(
    func: Callable[..., Any],
    *,
    summary: str,
    description: str,
    params: dict[str, str] | None,
    returns: Any,
    response: str,
    memorize: str | None,
    terminal: bool,
    stream: bool,
) -> OperationSpec:
    op_name = func.__name__
    sig = inspect.signature(func)
    parameters = list(sig.parameters.values())
    if parameters and parameters[0].name in ("self", "cls"):
        parameters = parameters[1:]
    for p in parameters:
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise ConfigurationError(f"Operation '{op_name}' cannot declare *{p.name}")

    hints = _resolve_hints(func)
    docs = {**_parse_docstring_params(func.__doc__), **(params or {})}
    unknown = set(params or {}) - {p.name for p in parameters}
    if unknown:
        raise ConfigurationError(f"Operation '{op_name}' describes undeclared parameters: {sorted(unknown)}")

    if stream:
        mode, shape = OperationMode.STREAM, str
    else:
        mode = OperationMode.ASYNC if inspect.iscoroutinefunction(func) else OperationMode.FUTURE
        shape = resolve_result_shape(returns, op_name)

    return OperationSpec(
        name=op_name,
        summary=summary,
        description=description or _docstring_summary(func.__doc__),
        params=tuple(
            ParameterSpec(
                name=p.name,
                description=docs.get(p.name, ""),
                annotation=hints.get(p.name, str),
                default=p.default,
            )
            for p in parameters
        ),
        result_shape=shape,
        response_description=response,
        memorize=memorize or None,
        terminal=terminal,
        mode=mode,
        signature=sig.replace(parameters=parameters),
    )


@overload
def operation(func: F) -> F: ...

@overload
def operation(
    *,
    summary: str = "",
    description: str = "",
    params: dict[str, str] | None = None,
    returns: Any = None,
    response: str = "",
    memorize: str | None = None,
    terminal: bool = False,
    stream: bool = False,
) -> Callable[[F], F]: ...


def operation(
    func: F | None = None,
    *,
    summary: str = "",
    description: str = "",
    params: dict[str, str] | None = None,
    returns: Any = None,
    response: str = "",
    memorize: str | None = None,
    terminal: bool = False,
    stream: bool = False,
) -> F | Callable[[F], F]:
    """Mark a stub method as a declared operation.

    The stub body is never executed. ``async def`` stubs are awaited by the
    caller; ``stream=True`` stubs return an async iterator of text chunks;
    all others return a ``concurrent.futures.Future``.

    Args:
        func: Stub (when used without parentheses)
        summary: Short operation summary
        description: Longer description, defaults to the docstring summary
        params: Parameter descriptions, overriding the docstring
        returns: Result shape: str, a scalar, an Enum or a BaseModel subclass
        response: Description of the expected response
        memorize: Memory label under which the result is stored
        terminal: Whether the operation ends an agent run
        stream: Stream text chunks instead of returning one result
    """
    def decorator(fn: F) -> F:
        spec = _build_spec(
            fn, summary=summary, description=description, params=params,
            returns=returns, response=response, memorize=memorize, terminal=terminal, stream=stream,
        )
        setattr(fn, OPERATION_ATTR, spec)
        return fn

    return decorator(func) if func is not None else decorator


def operation_of(obj: Any) -> OperationSpec | None:
    return getattr(obj, OPERATION_ATTR, None)


def declared_operations(interface: type) -> dict[str, OperationSpec]:
    """All operations of ``interface`` in declaration order.

    Base class operations come first; overrides keep the base position.
    """
    found: dict[str, OperationSpec] = {}
    for klass in reversed(interface.__mro__):
        for attr, value in vars(klass).items():
            if (spec := operation_of(value)) is not None:
                found[attr] = spec
            elif attr in found:
                del found[attr]
    return found
