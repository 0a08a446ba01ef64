"""End-to-end flow: model text -> extracted calls -> validated calls -> results."""

import logging
from typing import List, Tuple

from .catalog import Catalog, DEFAULT_CATALOG
from .extractor import extract_tool_calls
from .models import ToolCall, ToolResult
from .registry import ToolRegistry
from .validation import ValidationResult, validate_tool_call

logger = logging.getLogger(__name__)


def prepare_tool_calls(text: str, catalog: Catalog = DEFAULT_CATALOG) -> List[Tuple[ToolCall, ValidationResult]]:
    """Extract candidates from `text` and pair each with its validation outcome."""
    return [(call, validate_tool_call(call, catalog)) for call in extract_tool_calls(text, catalog)]


async def run_tool_calls(text: str, registry: ToolRegistry) -> List[ToolResult]:
    """
    Execute every tool call found in one model turn.

    Calls run one after another in text order, so a write_file followed by
    a read_file in the same turn sees its own write. Use
    ToolRegistry.execute_many for independent calls.
    """
    calls = extract_tool_calls(text, registry.catalog)
    if not calls:
        return []
    logger.info("Running %d tool call(s)", len(calls))
    results = []
    for call in calls:
        results.append(await registry.execute(call))
    return results
