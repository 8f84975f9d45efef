"""The immutable request value handed to adapters.

A ``PromptContext`` is built once per invocation, rewritten by interceptors
through copy-with-changes, and never mutated afterwards. Its ``cache_key``
covers only what a backend would see as prompt text; properties and tool
definitions are side-channel data and never participate.

Example:
    >>> ctx = PromptContext(system_instructions="sys", method_invocation="{}")
    >>> later = ctx.with_message(MessageRole.USER, "try again")
    >>> len(ctx.conversation_history), len(later.conversation_history)
    (0, 1)
"""

from __future__ import annotations

import hashlib
import json
from enum import StrEnum
from typing import Any, Generic, TypeVar, overload

from pydantic import BaseModel, ConfigDict, Field

from intentcall.tools.models import ToolDefinition

T = TypeVar("T")


class MessageRole(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One turn of conversation history."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


class TypedKey(Generic[T]):
    """Typed handle for a context property.

    Keys compare by name, so two handles with the same name address the same
    property.
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TypedKey) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("TypedKey", self.name))

    def __repr__(self) -> str:
        return f"TypedKey({self.name!r})"


class PromptContext(BaseModel):
    """Everything an adapter needs to answer one invocation.

    Attributes:
        system_instructions: Fixed preamble describing the response contract
        method_invocation: JSON text describing the call
        memory: Snapshot of the instance's memory at assembly time
        properties: Side-channel values for interceptors and adapters
        available_tools: Tools the backend may call
        conversation_history: Extra turns, e.g. validation feedback
        method_name: Declared operation name
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    system_instructions: str
    method_invocation: str
    memory: dict[str, str] = Field(default_factory=dict)
    properties: dict[str, Any] = Field(default_factory=dict)
    available_tools: tuple[ToolDefinition, ...] = ()
    conversation_history: tuple[Message, ...] = ()
    method_name: str = ""

    def evolve(self, **changes: Any) -> PromptContext:
        """Copy with the given fields replaced, validating the result."""
        return type(self)(**{**dict(self), **changes})

    def with_property(self, key: str | TypedKey[Any], value: Any) -> PromptContext:
        name = key.name if isinstance(key, TypedKey) else key
        return self.evolve(properties={**self.properties, name: value})

    def with_message(self, role: MessageRole, content: str) -> PromptContext:
        return self.evolve(conversation_history=(*self.conversation_history, Message(role=role, content=content)))

    def with_memory(self, memory: dict[str, str]) -> PromptContext:
        return self.evolve(memory=dict(memory))

    @overload
    def get(self, key: TypedKey[T]) -> T | None: ...
    @overload
    def get(self, key: str) -> Any: ...

    def get(self, key: str | TypedKey[Any]) -> Any:
        """Property lookup; missing keys yield None."""
        return self.properties.get(key.name if isinstance(key, TypedKey) else key)

    def __getitem__(self, key: TypedKey[T]) -> T | None:
        return self.get(key)

    def cache_key(self) -> str:
        """Structural hash of the prompt-visible fields."""
        payload = json.dumps(
            [
                self.system_instructions,
                self.method_invocation,
                sorted(self.memory.items()),
                [[m.role.value, m.content] for m in self.conversation_history],
                self.method_name,
            ],
            ensure_ascii=False,
            separators=(",", ":"),
        )
        return hashlib.sha256(payload.encode()).hexdigest()
