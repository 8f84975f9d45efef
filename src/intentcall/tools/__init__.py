"""Tool-calling protocol: definitions, calls, results, providers and the loop coordinator."""

from __future__ import annotations

from .models import ToolCall, ToolDefinition, ToolResult
from .provider import FunctionToolProvider, ToolProvider
from .loop import BackendTurn, ToolLoopCoordinator, Turn

__all__ = [
    "ToolCall", "ToolDefinition", "ToolResult",
    "ToolProvider", "FunctionToolProvider", "InterfaceToolProvider",
    "BackendTurn", "ToolLoopCoordinator", "Turn",
]


def __getattr__(name: str):
    """Lazy import; the interface provider depends on the agents package."""
    if name == "InterfaceToolProvider":
        from .interface import InterfaceToolProvider
        return InterfaceToolProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
