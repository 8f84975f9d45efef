"""Adapters - the backend boundary and its decorators."""

from .base import Adapter, AdapterResponse, ToolCallingAdapter, UsageInfo
from .caching import CachingAdapter
from .routing import Route, Router, RoutingAdapter, route
from .stub import StubAdapter, default_instance

__all__ = [
    "Adapter", "AdapterResponse", "ToolCallingAdapter", "UsageInfo",
    "CachingAdapter",
    "Route", "Router", "RoutingAdapter", "route",
    "StubAdapter", "default_instance",
]
