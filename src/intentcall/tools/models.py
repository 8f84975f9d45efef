"""Tool-calling wire types exchanged between adapters and tool providers."""

from __future__ import annotations

import json
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field

from intentcall.foundation.errors import ToolInvocationError

EMPTY_INPUT_SCHEMA = '{"type":"object","properties":{}}'


class ToolDefinition(BaseModel):
    """A tool a backend may request to call.

    Attributes:
        name: Unique within a provider set
        description: What the tool does, shown to the model
        input_schema: JSON-Schema text describing the arguments object
        output_schema: Optional JSON text describing the result
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: Annotated[str, Field(min_length=1)]
    description: str = ""
    input_schema: str = EMPTY_INPUT_SCHEMA
    output_schema: str | None = None


class ToolCall(BaseModel):
    """A backend's request to run one tool."""

    model_config = ConfigDict(frozen=True)

    id: str
    tool_name: str
    arguments: str = "{}"

    def parsed_arguments(self) -> dict[str, Any]:
        """Decode the JSON arguments object."""
        try:
            parsed = json.loads(self.arguments or "{}")
        except json.JSONDecodeError as e:
            raise ToolInvocationError(f"Invalid JSON arguments for tool '{self.tool_name}': {e}") from e
        if not isinstance(parsed, dict):
            raise ToolInvocationError(f"Arguments for tool '{self.tool_name}' must be a JSON object")
        return parsed


class ToolResult(BaseModel):
    """Outcome of one tool call; ``id`` always matches the originating call."""

    model_config = ConfigDict(frozen=True)

    id: str
    tool_name: str
    content: str
    is_error: bool = False

    @classmethod
    def ok(cls, call: ToolCall, content: str) -> Self:
        return cls(id=call.id, tool_name=call.tool_name, content=content)

    @classmethod
    def error(cls, call: ToolCall, message: str) -> Self:
        return cls(id=call.id, tool_name=call.tool_name, content=message, is_error=True)
