"""Parameter normalization and schema validation for parsed tool calls."""

from dataclasses import dataclass
from typing import Optional

from .catalog import Catalog, DEFAULT_CATALOG
from .models import ToolCall, ToolDefinition

# Names small models commonly use instead of the canonical parameter name
PARAMETER_ALIASES = {
    "input": "code",
    "source": "code",
    "python_code": "code",
    "js_code": "code",
    "javascript_code": "code",
    "sql_query": "query",
    "search_query": "query",
    "search": "query",
    "file_path": "path",
    "filepath": "path",
    "filename": "path",
    "text": "content",
    "body": "content",
    "math": "expression",
    "expr": "expression",
    "formula": "expression",
}


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    call: Optional[ToolCall] = None


def normalize_parameters(call: ToolCall, definition: ToolDefinition) -> ToolCall:
    """
    Map aliased parameter names onto the tool's canonical names.

    An alias is only applied when its canonical name is a parameter of this
    tool, is not already present, and the alias is not itself a declared
    parameter (create_file has its own "filename", move_file its own
    "source"). Afterwards, a tool with exactly one required parameter that
    received exactly one value of the right kind under some other key gets
    that value renamed.
    """
    params = dict(call.parameters)
    declared = {p.name for p in definition.parameters}

    for alias, canonical in PARAMETER_ALIASES.items():
        if alias in params and alias not in declared and canonical in declared and canonical not in params:
            params[canonical] = params.pop(alias)

    required = definition.required_parameters
    if len(required) == 1 and len(params) == 1:
        target = required[0]
        (key, value), = params.items()
        if key != target.name and target.kind.matches(value):
            params = {target.name: value}

    return ToolCall(tool=call.tool, parameters=params)


def validate_tool_call(call: ToolCall, catalog: Catalog = DEFAULT_CATALOG) -> ValidationResult:
    """
    Normalize and check a call against its definition.

    The first broken rule wins. Never raises; on success `result.call` is
    the normalized call that should be dispatched.
    """
    if not isinstance(call.tool, str):
        return ValidationResult(valid=False, error=f"Unknown tool: {call.tool!r}")

    definition = catalog.lookup(call.tool)
    if definition is None:
        return ValidationResult(valid=False, error=f"Unknown tool: {call.tool}")

    if not isinstance(call.parameters, dict):
        return ValidationResult(valid=False, error="Parameters must be an object")

    call = normalize_parameters(call, definition)
    params = call.parameters

    for param in definition.parameters:
        if param.name not in params:
            if param.required:
                return ValidationResult(valid=False, error=f"Missing required parameter: {param.name}", call=call)
            continue

        value = params[param.name]
        if not param.kind.matches(value):
            return ValidationResult(
                valid=False,
                error=f"Parameter {param.name} must be a {param.kind.value}",
                call=call,
            )

        if param.allowed_values is not None and value not in param.allowed_values:
            allowed = ", ".join(sorted(param.allowed_values))
            return ValidationResult(
                valid=False,
                error=f"Parameter {param.name} must be one of: {allowed}",
                call=call,
            )

    return ValidationResult(valid=True, call=call)
