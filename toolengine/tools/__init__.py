"""Tool-call extraction, validation and dispatch."""

from .catalog import Catalog, DEFAULT_CATALOG, TOOL_DEFINITIONS
from .context import ExecutionContext
from .extractor import extract_tool_calls
from .models import ParamKind, ToolCall, ToolDefinition, ToolParameter, ToolResult
from .pipeline import prepare_tool_calls, run_tool_calls
from .registry import ToolRegistry
from .sanitizer import parse_lenient, strip_dangerous_keys
from .validation import ValidationResult, normalize_parameters, validate_tool_call
