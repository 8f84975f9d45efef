"""JSON renderings of calls, result shapes and interfaces.

Adapters embed these in prompts; the agent decider embeds the interface
metadata as its schema string. All renderings are deterministic: same input,
same text.
"""

from __future__ import annotations

import json
import types
from enum import Enum
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from intentcall.foundation.core.descriptor import declared_operations
from intentcall.tools.models import ToolDefinition

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from intentcall.foundation.core.descriptor import MethodDescriptor

JsonValue = Any

_JSON_TYPES: dict[type, str] = {str: "string", int: "integer", float: "number", bool: "boolean"}
_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


def unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        members = [a for a in get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def _field_structure(annotation: Any, description: str) -> JsonValue:
    annotation = unwrap_optional(annotation)
    origin = get_origin(annotation)
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(annotation)
        return [_field_structure(args[0], description) if args else description]
    if isinstance(annotation, type) and issubclass(annotation, (Enum, BaseModel)):
        return result_structure(annotation)
    return description


def result_structure(shape: type) -> JsonValue:
    """Example structure describing a result shape.

    Text results render as ``"Text"``, enums as their value list and models
    as a mapping of field name to description (nested models recurse, lists
    become one-element arrays).
    """
    if shape is str:
        return "Text"
    if shape in _JSON_TYPES:
        return _JSON_TYPES[shape]
    if isinstance(shape, type) and issubclass(shape, Enum):
        return {"enum": [to_jsonable_python(m.value, fallback=str) for m in shape]}
    if isinstance(shape, type) and issubclass(shape, BaseModel):
        return {
            name: _field_structure(info.annotation, info.description or name)
            for name, info in shape.model_fields.items()
        }
    return "Text"


def to_jsonable(value: Any) -> JsonValue:
    """JSON-compatible form of an argument value, ``str()`` as last resort."""
    try:
        return to_jsonable_python(value)
    except Exception:
        return str(value)


def to_json_string(value: Any) -> str:
    """Stable text used when memorizing a result.

    Text results are stored as-is; everything else as compact JSON.
    """
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable(value), ensure_ascii=False, sort_keys=True)


def invocation_json(descriptor: MethodDescriptor, memory: Mapping[str, str] | None = None) -> dict[str, JsonValue]:
    """JSON object describing one call."""
    about = descriptor.operation_summary or descriptor.operation_description
    payload: dict[str, JsonValue] = {
        "method": f"{descriptor.name}: {about}" if about else descriptor.name,
        "parameters": [
            {"name": p.name, "description": p.description, "value": to_jsonable(p.value)}
            for p in descriptor.parameters
        ],
    }
    if memory:
        payload["memory"] = dict(memory)
    if descriptor.response_description:
        payload["responseDescription"] = descriptor.response_description
    payload["resultSchema"] = result_structure(descriptor.result_shape)
    return payload


def invocation_string(descriptor: MethodDescriptor, memory: Mapping[str, str] | None = None) -> str:
    return json.dumps(invocation_json(descriptor, memory), indent=2, ensure_ascii=False)


# ═════════════════════════════════════════════════════════════════════════════
# Interface Renderings
# ═════════════════════════════════════════════════════════════════════════════


def _type_label(shape: type) -> str:
    return "String" if shape is str else shape.__name__


def interface_metadata(
    interface: type,
    excluded: Iterable[str] = (),
    memory: Mapping[str, str] | None = None,
) -> dict[str, JsonValue]:
    """Decider-facing description of an interface's operations.

    Methods appear in declaration order; names in ``excluded`` are omitted.
    """
    skip = set(excluded)
    methods: list[dict[str, JsonValue]] = []
    for name, spec in declared_operations(interface).items():
        if name in skip:
            continue
        entry: dict[str, JsonValue] = {"name": name}
        if spec.summary:
            entry["summary"] = spec.summary
        elif spec.description:
            entry["description"] = spec.description
        if spec.terminal:
            entry["terminal"] = True
        if spec.result_shape is not str:
            entry["returnType"] = _type_label(spec.result_shape)
        if spec.params:
            entry["parameters"] = [{"name": p.name, "description": p.description} for p in spec.params]
        methods.append(entry)
    payload: dict[str, JsonValue] = {"Agent Name": interface.__name__, "methods": methods}
    if memory:
        payload["memory"] = dict(memory)
    return payload


def interface_metadata_string(
    interface: type,
    excluded: Iterable[str] = (),
    memory: Mapping[str, str] | None = None,
) -> str:
    return json.dumps(interface_metadata(interface, excluded, memory), indent=2, ensure_ascii=False)


def json_type(annotation: Any) -> str:
    """JSON-Schema type name for a parameter annotation; unknown types map to string."""
    return _JSON_TYPES.get(unwrap_optional(annotation), "string")


def input_schema(spec_params: Iterable[Any]) -> str:
    properties: dict[str, JsonValue] = {}
    required: list[str] = []
    for p in spec_params:
        properties[p.name] = {"type": json_type(p.annotation), "description": p.description}
        if p.required:
            required.append(p.name)
    schema: dict[str, JsonValue] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return json.dumps(schema, ensure_ascii=False)


def tool_definitions(interface: type) -> list[ToolDefinition]:
    """Each declared operation as a tool definition."""
    return [
        ToolDefinition(
            name=name,
            description=spec.description or spec.summary or name,
            input_schema=input_schema(spec.params),
            output_schema=json.dumps(result_structure(spec.result_shape), ensure_ascii=False),
        )
        for name, spec in declared_operations(interface).items()
    ]
