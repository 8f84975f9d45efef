"""Core values: declared operations, call descriptors, prompt context, JSON renderings."""

from .context import Message, MessageRole, PromptContext, TypedKey
from .descriptor import (
    MethodDescriptor,
    OperationMode,
    OperationSpec,
    ParameterDescriptor,
    ParameterSpec,
    declared_operations,
    operation,
    operation_of,
    resolve_result_shape,
)
from .schema import (
    interface_metadata,
    interface_metadata_string,
    invocation_json,
    invocation_string,
    result_structure,
    to_json_string,
    tool_definitions,
)

__all__ = [
    "Message", "MessageRole", "PromptContext", "TypedKey",
    "MethodDescriptor", "OperationMode", "OperationSpec", "ParameterDescriptor", "ParameterSpec",
    "declared_operations", "operation", "operation_of", "resolve_result_shape",
    "interface_metadata", "interface_metadata_string", "invocation_json", "invocation_string",
    "result_structure", "to_json_string", "tool_definitions",
]
