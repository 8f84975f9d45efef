"""Resilience - policy and executor for retry, timeout, validation and fallback."""

from .executor import Attempt, ExecutionRecord, ExecutionState, ResilienceExecutor, Sleep
from .policy import ResiliencePolicy, ResultValidator

__all__ = [
    "Attempt", "ExecutionRecord", "ExecutionState", "ResilienceExecutor", "Sleep",
    "ResiliencePolicy", "ResultValidator",
]
