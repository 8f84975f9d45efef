"""Runtime - request assembly, gates, resilience, observability and the invocation pipeline."""

from __future__ import annotations

__all__ = [
    "IntentPipeline", "implement",
    "ResilienceExecutor", "ResiliencePolicy",
    "RateGate", "ConcurrencyGate",
    "RequestListener", "UsageTracker", "configure_logging",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("IntentPipeline", "implement"):
        from . import proxy
        return getattr(proxy, name)

    if name in ("ResilienceExecutor", "ResiliencePolicy"):
        from . import resilience
        return getattr(resilience, name)

    if name in ("RateGate", "ConcurrencyGate"):
        from . import concurrency
        return getattr(concurrency, name)

    if name in ("RequestListener", "UsageTracker", "configure_logging"):
        from . import observability
        return getattr(observability, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
