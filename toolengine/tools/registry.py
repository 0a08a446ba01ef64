"""Tool registration and dispatch."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .builtin import BUILTIN_HANDLERS, Handler
from .catalog import Catalog, DEFAULT_CATALOG
from .context import Capability, ExecutionContext
from .models import ToolCall, ToolDefinition, ToolResult
from .validation import validate_tool_call

logger = logging.getLogger(__name__)


@dataclass
class RegisteredTool:
    """A tool definition bound to the handler that executes it."""
    definition: ToolDefinition
    handler: Handler


class ToolRegistry:
    """
    Validates tool calls and routes them to their handlers.

    Each registry owns its catalog snapshot, its dispatch map and one
    ExecutionContext. Every catalog entry must resolve to a handler.
    """

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG, handlers: Mapping[str, Handler] = BUILTIN_HANDLERS):
        missing = [d.name for d in catalog.list() if d.handler_key not in handlers]
        if missing:
            raise ValueError(f"No handler for tool(s): {', '.join(missing)}")

        self._catalog = catalog
        self._context = ExecutionContext()
        self._tools: Dict[str, RegisteredTool] = {
            d.name: RegisteredTool(definition=d, handler=handlers[d.handler_key])
            for d in catalog.list()
        }

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def context(self) -> ExecutionContext:
        return self._context

    def register(self, name: str, definition: ToolDefinition, handler: Handler):
        """Register a custom tool at runtime."""
        if name != definition.name:
            raise ValueError(f"Tool name '{name}' does not match definition '{definition.name}'")
        self._catalog = self._catalog.extended(definition)
        self._tools[name] = RegisteredTool(definition=definition, handler=handler)
        logger.info("Registered tool '%s'", name)

    def set_context(self, capabilities: Optional[Mapping[str, Optional[Capability]]] = None, **kwargs: Optional[Capability]):
        """Inject runtime capabilities (Python runtime, document search, ...)."""
        merged: Dict[str, Optional[Capability]] = dict(capabilities or {})
        merged.update(kwargs)
        self._context.merge(merged)

    def tool_names(self) -> List[str]:
        return list(self._tools)

    def has(self, name: str) -> bool:
        return name in self._tools

    def get_definition(self, name: str) -> Optional[ToolDefinition]:
        tool = self._tools.get(name)
        return tool.definition if tool else None

    async def execute(self, call: ToolCall) -> ToolResult:
        """Execute one tool call. Never raises for tool-level failures."""
        validation = validate_tool_call(call, self._catalog)
        if not validation.valid:
            return ToolResult.fail(f"Invalid tool call: {validation.error}")

        call = validation.call
        tool = self._tools.get(call.tool)
        if tool is None:
            return ToolResult.fail(f"Unknown tool: {call.tool}")

        logger.info("Executing tool '%s'", call.tool)
        try:
            result: Any = await tool.handler(call.parameters, self._context)
        except Exception as e:
            logger.warning("Tool '%s' raised: %s", call.tool, e, exc_info=True)
            return ToolResult.fail(f"Error executing tool '{call.tool}': {e}")

        if isinstance(result, ToolResult):
            return result
        return ToolResult.ok(str(result) if result is not None else "")

    async def execute_many(self, calls: List[ToolCall]) -> List[ToolResult]:
        """Execute calls concurrently; results come back in call order."""
        return list(await asyncio.gather(*(self.execute(call) for call in calls)))
