"""Core value types shared by the catalog, extractor, validator and registry."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class ParamKind(str, Enum):
    """Declared type of a tool parameter."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    def matches(self, value: Any) -> bool:
        """Check a parsed JSON value against this kind."""
        if self is ParamKind.STRING:
            return isinstance(value, str)
        if self is ParamKind.NUMBER:
            # bool is an int subclass; "true" is never a number here
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self is ParamKind.BOOLEAN:
            return isinstance(value, bool)
        if self is ParamKind.ARRAY:
            return isinstance(value, list)
        return isinstance(value, dict)


@dataclass(frozen=True)
class ToolParameter:
    """One parameter of a tool, as advertised to the model."""
    name: str
    kind: ParamKind
    description: str
    required: bool = False
    allowed_values: Optional[FrozenSet[str]] = None


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool the model can call."""
    name: str
    description: str
    parameters: Tuple[ToolParameter, ...]
    handler_key: str

    @property
    def required_parameters(self) -> Tuple[ToolParameter, ...]:
        return tuple(p for p in self.parameters if p.required)

    def parameter(self, name: str) -> Optional[ToolParameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def to_schema(self) -> Dict[str, Any]:
        """Render the parameters as a JSON Schema object."""
        properties: Dict[str, Any] = {}
        for param in self.parameters:
            prop: Dict[str, Any] = {
                "type": param.kind.value,
                "description": param.description,
            }
            if param.allowed_values:
                prop["enum"] = sorted(param.allowed_values)
            properties[param.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [p.name for p in self.required_parameters],
        }


@dataclass
class ToolCall:
    """An unvalidated tool invocation parsed out of model text."""
    tool: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def dedup_key(self) -> str:
        """Tool name plus canonical parameter JSON."""
        params = json.dumps(self.parameters, sort_keys=True, ensure_ascii=False, default=str)
        return f"{self.tool}:{params}"


@dataclass
class ToolResult:
    """Outcome of a single tool invocation. Never raised, always returned."""
    success: bool
    output: str
    data: Any = None

    @classmethod
    def ok(cls, output: str, data: Any = None) -> "ToolResult":
        return cls(success=True, output=output, data=data)

    @classmethod
    def fail(cls, output: str) -> "ToolResult":
        return cls(success=False, output=output)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "output": self.output, "data": self.data}
