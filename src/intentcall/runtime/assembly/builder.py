"""Turning a call into its initial ``PromptContext``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from intentcall.foundation.core.context import PromptContext
from intentcall.foundation.core.schema import invocation_string

if TYPE_CHECKING:
    from intentcall.foundation.core.descriptor import MethodDescriptor

SYSTEM_PREAMBLE = """\
You are a specialized AI Assistant that handles request/response method calls and returns results in JSON or plain text.

Rules:
1. A JSON block describes the method, its parameters, and any stored memory.
2. The 'resultSchema' field indicates the JSON format you must return.
   - Do NOT add any fields not mentioned in the schema.
   - If the schema is "Text", return plain text without JSON wrapping.
3. If memory is provided, use it to inform your answer.
4. Do not include apology statements, disclaimers, or meta-commentary.
5. Return only the specified structure or text, without superfluous information.
6. When a result is memorized it is stored for later calls, so minimize tokens and maximize content."""


@dataclass(frozen=True, slots=True)
class IntentRequest:
    """Input to a context builder: one call plus the memory snapshot taken for it."""
    descriptor: MethodDescriptor
    memory: Mapping[str, str] = field(default_factory=dict)
    result_shape: Any = str


@runtime_checkable
class ContextBuilder(Protocol):
    """Builds the initial prompt context for a request."""

    def build(self, request: IntentRequest) -> PromptContext: ...


class DefaultContextBuilder:
    """Fixed preamble, JSON invocation text and the memory snapshot.

    Args:
        preamble: System instructions placed before every request
    """

    __slots__ = ("preamble",)

    def __init__(self, preamble: str = SYSTEM_PREAMBLE) -> None:
        self.preamble = preamble

    def build(self, request: IntentRequest) -> PromptContext:
        return PromptContext(
            system_instructions=self.preamble,
            method_invocation=invocation_string(request.descriptor),
            memory=dict(request.memory),
            method_name=request.descriptor.name,
        )
