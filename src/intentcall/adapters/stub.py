"""Offline adapter returning zero values of the requested shape."""

from __future__ import annotations

import types
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from .base import Adapter

if TYPE_CHECKING:
    from intentcall.foundation.core.context import PromptContext

R = TypeVar("R")

_ZERO: dict[Any, Any] = {str: "", int: 0, float: 0.0, bool: False}


def default_instance(shape: Any) -> Any:
    """Zero value for a result shape.

    Enums yield their first member; models are built from field defaults,
    with zero values for required fields.
    """
    if shape in _ZERO:
        return _ZERO[shape]
    origin = get_origin(shape)
    if origin in (list, tuple, set, frozenset):
        return origin()
    if origin is dict:
        return {}
    if origin in (Union, types.UnionType):
        return None if type(None) in get_args(shape) else default_instance(get_args(shape)[0])
    if isinstance(shape, type) and issubclass(shape, Enum):
        return next(iter(shape))
    if isinstance(shape, type) and issubclass(shape, BaseModel):
        values = {
            name: default_instance(info.annotation)
            for name, info in shape.model_fields.items()
            if info.is_required()
        }
        try:
            return shape.model_validate(values)
        except ValidationError:
            return shape.model_construct(**values)
    return None


class StubAdapter(Adapter):
    """Deterministic adapter for wiring tests and offline runs."""

    async def handle_request(self, context: PromptContext, result_shape: type[R]) -> R:
        return default_instance(result_shape)
