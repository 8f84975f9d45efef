"""Expose a built instance's declared operations as tools.

Lets one interface serve as a toolbox for another backend, or for an
external tool server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from intentcall.agents.dispatcher import AgentDispatcher
from intentcall.foundation.core.schema import to_json_string, tool_definitions
from intentcall.foundation.errors import IntentError

from .models import ToolCall, ToolDefinition, ToolResult

if TYPE_CHECKING:
    from intentcall.builder import IntentInstance

logger = logging.getLogger("intentcall.tools")


class InterfaceToolProvider:
    """Tools named after the operations of ``instance``; calls dispatch to it."""

    __slots__ = ("_instance", "_dispatcher", "_definitions")

    def __init__(self, instance: IntentInstance[Any]) -> None:
        self._instance = instance
        self._dispatcher = AgentDispatcher(instance)
        self._definitions = tool_definitions(instance.interface)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._definitions)

    async def call_tool(self, call: ToolCall) -> ToolResult:
        if call.tool_name not in self._dispatcher.available:
            return ToolResult.error(call, f"Error: No handler for tool '{call.tool_name}'")
        try:
            result = await self._dispatcher.dispatch_async(call.tool_name, call.parsed_arguments())
        except IntentError as e:
            logger.warning(f"Tool '{call.tool_name}' failed: {e}")
            return ToolResult.error(call, f"Error: {e}")
        return ToolResult.ok(call, to_json_string(result.value))
