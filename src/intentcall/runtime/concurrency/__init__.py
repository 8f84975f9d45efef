"""Concurrency primitives: admission gates and sync/async bridging."""

from .gates import ConcurrencyGate, RateGate
from .interop import BackgroundLoop, get_background_loop, reset_background_loop, run_sync

__all__ = [
    "ConcurrencyGate", "RateGate",
    "BackgroundLoop", "get_background_loop", "reset_background_loop", "run_sync",
]
