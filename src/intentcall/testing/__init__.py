"""Testing utilities: mock adapters, mock tool providers and prompt assertions."""

from .assertions import (
    assert_has_tool,
    assert_history_contains,
    assert_invocation,
    assert_memory_contains,
    assert_prompt_contains,
)
from .mock import MockAdapter, MockToolProvider, convert

__all__ = [
    "MockAdapter", "MockToolProvider", "convert",
    "assert_prompt_contains", "assert_invocation", "assert_memory_contains",
    "assert_has_tool", "assert_history_contains",
]
