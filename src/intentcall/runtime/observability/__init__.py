"""Observability - lifecycle listeners, usage tracking and logging setup."""

from .listeners import LoggingListener, ModelUsage, RequestListener, UsageTracker
from .logging import JsonFormatter, configure_logging

__all__ = [
    "RequestListener", "LoggingListener", "ModelUsage", "UsageTracker",
    "JsonFormatter", "configure_logging",
]
