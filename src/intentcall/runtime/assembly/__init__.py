"""Request assembly: context builders and the interceptor chain."""

from .builder import SYSTEM_PREAMBLE, ContextBuilder, DefaultContextBuilder, IntentRequest
from .interceptors import (
    FunctionInterceptor,
    Interceptor,
    InterceptorChain,
    MemoryBudgetInterceptor,
    MemoryFilterInterceptor,
    PropertyInterceptor,
    SystemInstructionInterceptor,
    ToolInterceptor,
    as_interceptor,
)

__all__ = [
    "SYSTEM_PREAMBLE", "ContextBuilder", "DefaultContextBuilder", "IntentRequest",
    "Interceptor", "FunctionInterceptor", "InterceptorChain", "as_interceptor",
    "MemoryFilterInterceptor", "PropertyInterceptor", "SystemInstructionInterceptor",
    "MemoryBudgetInterceptor", "ToolInterceptor",
]
