"""
Find tool-call candidates inside free-form model output.

Three passes run in fixed precedence over character offsets:

1. fenced code blocks whose body is a JSON object or array,
2. inline ``{"tool": ...}`` objects outside any fence,
3. a fuzzy last resort, only when 1 and 2 found nothing: a bare
   ``tool: <known name>`` mention is widened to its enclosing braces.

Every span consumed by a pass is recorded so later passes never capture the
same text twice. Candidates naming tools outside the catalog are dropped
silently; duplicates (same tool and canonical parameters) keep the first
occurrence.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .catalog import Catalog, DEFAULT_CATALOG
from .models import ToolCall
from .sanitizer import parse_lenient

logger = logging.getLogger(__name__)

FENCE = "```"
WRAPPER_KEYS = ("tools", "tool_calls")
PARAMETER_KEYS = ("parameters", "arguments", "args")

_FENCED_BLOCK = re.compile(r"```[ \t]*([\w+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)
_INLINE_START = re.compile(r"""\{\s*["']?tool["']?\s*:""")


class ClaimedSpans:
    """Half-open [start, end) intervals already consumed by an earlier pass."""

    def __init__(self):
        self._spans: List[Tuple[int, int]] = []

    def claim(self, start: int, end: int):
        self._spans.append((start, end))

    def covers(self, pos: int) -> bool:
        return any(start <= pos < end for start, end in self._spans)


def find_balanced_end(text: str, start: int) -> Optional[int]:
    """
    Return the offset just past the brace that closes text[start] == "{".

    Quoted strings (single or double) are skipped so braces inside string
    values do not count. Returns None when the object never closes.
    """
    depth = 0
    quote: Optional[str] = None
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ('"', "'"):
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def find_enclosing_start(text: str, pos: int) -> Optional[int]:
    """Walk back from pos to the nearest "{" that is not closed before pos."""
    depth = 0
    for i in range(pos - 1, -1, -1):
        ch = text[i]
        if ch == "}":
            depth += 1
        elif ch == "{":
            if depth == 0:
                return i
            depth -= 1
    return None


def _parse_object(
    text: str, start: int, catalog: Catalog, limit: Optional[int] = None
) -> Tuple[int, Optional[ToolCall]]:
    """
    Parse the object opening at text[start]; return (end offset, call).

    An object that never closes is cut shorter until a prefix parses: first
    everything up to `limit` (the end of the text by default), then each
    prefix ending at a "}", longest first. The sanitizer closes the braces.
    """
    end = find_balanced_end(text, start)
    if end is not None:
        return end, parse_candidate(text[start:end], catalog)

    limit = len(text) if limit is None else limit
    cuts = [limit] + [i + 1 for i in range(limit - 1, start, -1) if text[i] == "}"]
    for cut in cuts:
        call = parse_candidate(text[start:cut].rstrip(), catalog)
        if call is not None:
            return cut, call
    return limit, None


def _coerce_call(obj: Any, catalog: Catalog) -> Optional[ToolCall]:
    """Build a ToolCall from a parsed mapping if it names a known tool."""
    if not isinstance(obj, dict):
        return None
    tool = obj.get("tool")
    if not isinstance(tool, str) or not tool:
        return None
    if tool not in catalog:
        logger.debug("Dropping candidate for unknown tool %r", tool)
        return None

    for key in PARAMETER_KEYS:
        if key in obj:
            params = obj[key]
            return ToolCall(tool=tool, parameters=dict(params) if isinstance(params, dict) else {})

    # No wrapper: whatever sits next to "tool" is taken as the parameters
    params: Dict[str, Any] = {k: v for k, v in obj.items() if k != "tool"}
    return ToolCall(tool=tool, parameters=params)


def parse_candidate(raw: str, catalog: Catalog = DEFAULT_CATALOG) -> Optional[ToolCall]:
    """
    Parse one fragment into a ToolCall.

    Accepts a direct call object, a {"tools": [...]} / {"tool_calls": [...]}
    wrapper, or a root-level array. Only the first entry of a wrapper is used.
    """
    parsed = parse_lenient(raw)
    if parsed is None:
        return None

    entries = None
    if isinstance(parsed, list):
        entries = parsed
    elif isinstance(parsed, dict):
        for key in WRAPPER_KEYS:
            if isinstance(parsed.get(key), list):
                entries = parsed[key]
                break

    if entries:
        call = _coerce_call(entries[0], catalog)
        if call is not None:
            return call

    return _coerce_call(parsed, catalog)


class _Collector:
    """Ordered, deduplicated candidate list for one extraction pass."""

    def __init__(self):
        self._seen = set()
        self.found: List[Tuple[int, ToolCall]] = []

    def add(self, pos: int, call: Optional[ToolCall]):
        if call is None:
            return
        key = call.dedup_key()
        if key in self._seen:
            logger.debug("Dropping duplicate call to %s", call.tool)
            return
        self._seen.add(key)
        self.found.append((pos, call))

    def calls(self) -> List[ToolCall]:
        return [call for _, call in sorted(self.found, key=lambda item: item[0])]


def _scan_fenced(text: str, catalog: Catalog, claimed: ClaimedSpans, out: _Collector):
    pos = 0
    while True:
        match = _FENCED_BLOCK.search(text, pos)
        if match is None:
            break
        claimed.claim(match.start(), match.end())
        body = match.group(2).strip()
        if body.startswith(("{", "[")):
            out.add(match.start(), parse_candidate(body, catalog))
        pos = match.end()

    # An unterminated fence swallows the rest of the text
    if text.count(FENCE, pos) % 2 == 1:
        claimed.claim(text.index(FENCE, pos), len(text))


def _scan_inline(text: str, catalog: Catalog, claimed: ClaimedSpans, out: _Collector):
    pos = 0
    while True:
        match = _INLINE_START.search(text, pos)
        if match is None:
            break
        start = match.start()
        if claimed.covers(start):
            pos = start + 1
            continue
        following = _INLINE_START.search(text, start + 1)
        end, call = _parse_object(text, start, catalog, following.start() if following else None)
        claimed.claim(start, end)
        out.add(start, call)
        pos = end


def _scan_fuzzy(text: str, catalog: Catalog, out: _Collector):
    for name in catalog.names():
        pattern = re.compile(
            r"""["']?tool["']?\s*[:=]\s*["']?""" + re.escape(name) + r"""(?!\w)["']?""",
            re.IGNORECASE,
        )
        for match in pattern.finditer(text):
            start = find_enclosing_start(text, match.start())
            if start is None:
                continue
            _, call = _parse_object(text, start, catalog)
            if call is not None:
                out.add(start, call)
                break


def extract_tool_calls(text: str, catalog: Catalog = DEFAULT_CATALOG) -> List[ToolCall]:
    """Return the tool calls found in `text`, deduplicated, in text order."""
    if not text:
        return []

    claimed = ClaimedSpans()
    out = _Collector()
    _scan_fenced(text, catalog, claimed, out)
    _scan_inline(text, catalog, claimed, out)

    if not out.found:
        _scan_fuzzy(text, catalog, out)

    calls = out.calls()
    if calls:
        logger.debug("Extracted %d tool call(s): %s", len(calls), [c.tool for c in calls])
    return calls
