"""Tests for operation registration and per-call descriptors.

Validates:
- Docstring and explicit parameter descriptions
- Result shape resolution and invocation modes
- Argument binding, defaults and errors
- Descriptor equality
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from concurrent.futures import Future
from enum import Enum

import pytest
from pydantic import BaseModel, Field

from intentcall.foundation.core import (
    MethodDescriptor,
    OperationMode,
    ParameterDescriptor,
    declared_operations,
    operation,
    operation_of,
)
from intentcall.foundation.errors import ArgumentError, ConfigurationError


class Mood(Enum):
    HAPPY = "happy"
    SAD = "sad"


class Summary(BaseModel):
    title: str = Field(description="Short title")
    points: list[str] = Field(description="Key points")


class Notes:
    @operation(summary="Summarize", returns=Summary, memorize="last summary", response="A short summary")
    def summarize(self, text: str, words: int = 50) -> Future[Summary]:
        """Summarize text.

        Args:
            text: The text to summarize
            words: Target length in words
        """

    @operation(params={"text": "Text to classify"}, returns=Mood)
    async def mood(self, text: str) -> Mood: ...

    @operation(summary="Draft", stream=True)
    def draft(self, topic: str) -> AsyncIterator[str]: ...

    @operation(terminal=True)
    def finish(self) -> Future[str]:
        """Deliver the final answer."""

    def helper(self) -> str:
        return "not an operation"


# ═════════════════════════════════════════════════════════════════════════════
# Registration
# ═════════════════════════════════════════════════════════════════════════════


def test_declared_operations_in_declaration_order() -> None:
    assert list(declared_operations(Notes)) == ["summarize", "mood", "draft", "finish"]


def test_docstring_params_and_summary() -> None:
    spec = declared_operations(Notes)["summarize"]
    assert spec.summary == "Summarize"
    assert spec.description == "Summarize text."
    assert [p.description for p in spec.params] == ["The text to summarize", "Target length in words"]
    assert spec.memorize == "last summary"
    assert spec.result_shape is Summary
    assert spec.response_description == "A short summary"


def test_explicit_params_override_docstring() -> None:
    spec = declared_operations(Notes)["mood"]
    assert spec.params[0].description == "Text to classify"
    assert spec.result_shape is Mood


def test_invocation_modes() -> None:
    ops = declared_operations(Notes)
    assert ops["summarize"].mode is OperationMode.FUTURE
    assert ops["mood"].mode is OperationMode.ASYNC
    assert ops["draft"].mode is OperationMode.STREAM
    assert ops["draft"].result_shape is str


def test_terminal_and_parameterless() -> None:
    ops = declared_operations(Notes)
    assert ops["finish"].terminal and ops["finish"].parameterless
    assert not ops["summarize"].parameterless
    assert operation_of(Notes.helper) is None


def test_unsupported_result_shape_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Cannot resolve result shape"):
        @operation(returns=dict)
        def broken(self, x: str) -> Future[dict]: ...


def test_var_args_rejected() -> None:
    with pytest.raises(ConfigurationError):
        @operation
        def broken(self, *items: str) -> Future[str]: ...


def test_describing_undeclared_parameter_rejected() -> None:
    with pytest.raises(ConfigurationError, match="undeclared"):
        @operation(params={"missing": "nope"})
        def broken(self, x: str) -> Future[str]: ...


def test_subclass_inherits_and_overrides() -> None:
    class MoreNotes(Notes):
        @operation(summary="Better summary", returns=Summary)
        def summarize(self, text: str, words: int = 20) -> Future[Summary]: ...

        @operation
        def extra(self) -> Future[str]: ...

    ops = declared_operations(MoreNotes)
    assert list(ops) == ["summarize", "mood", "draft", "finish", "extra"]
    assert ops["summarize"].summary == "Better summary"


# ═════════════════════════════════════════════════════════════════════════════
# Descriptors
# ═════════════════════════════════════════════════════════════════════════════


def test_describe_applies_defaults() -> None:
    descriptor = declared_operations(Notes)["summarize"].describe(("hello",), {})
    assert descriptor.name == "summarize"
    assert descriptor.arguments == {"text": "hello", "words": 50}
    assert descriptor.parameters[1].description == "Target length in words"


def test_describe_keyword_arguments() -> None:
    descriptor = declared_operations(Notes)["summarize"].describe((), {"text": "x", "words": 3})
    assert descriptor.arguments == {"text": "x", "words": 3}


def test_missing_required_argument() -> None:
    with pytest.raises(ArgumentError, match="summarize"):
        declared_operations(Notes)["summarize"].describe((), {})


def test_unexpected_argument() -> None:
    with pytest.raises(ArgumentError):
        declared_operations(Notes)["summarize"].describe(("x",), {"style": "brief"})


def test_descriptor_equality_is_structural() -> None:
    spec = declared_operations(Notes)["summarize"]
    a = spec.describe(("same text",), {"words": 10})
    b = spec.describe((), {"text": "same text", "words": 10})
    c = spec.describe(("other text",), {"words": 10})
    assert a == b
    assert hash(a) == hash(b)
    assert a != c


def test_descriptor_hash_with_unhashable_values() -> None:
    class Lists:
        @operation
        def total(self, values: list[int]) -> Future[str]: ...

    spec = declared_operations(Lists)["total"]
    assert hash(spec.describe(([1, 2],), {})) == hash(spec.describe(([1, 2],), {}))


@pytest.mark.parametrize(
    ("left", "right"),
    [
        (1, True),
        (1, 1.0),
        ([1, 2], [1.0, 2]),
        ({"a": [1], "b": {"c": 0}}, {"b": {"c": False}, "a": [1.0]}),
    ],
)
def test_equal_descriptors_hash_equal(left: object, right: object) -> None:
    a = MethodDescriptor(name="m", parameters=(ParameterDescriptor(name="x", value=left),))
    b = MethodDescriptor(name="m", parameters=(ParameterDescriptor(name="x", value=right),))
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1
