"""Best-effort repair and hardening of near-JSON emitted by small models.

Each repair rule is a single, non-recursive text rewrite. None of them is a
general lenient parser: a fragment that is still broken after all rules ran
simply fails to parse and yields nothing.
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Keys that can corrupt a shared object graph when merged into trusted state
DANGEROUS_KEYS = frozenset({
    "__proto__",
    "constructor",
    "prototype",
    "__class__",
    "__dict__",
})

_SINGLE_QUOTE_DELIMITER = re.compile(r"(?<=[{\[,:])(\s*)'|'(?=\s*[:,}\]])")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")
_BARE_KEY = re.compile(r"([{,])\s*([A-Za-z_]\w*)\s*:")


def strip_dangerous_keys(value: Any) -> Any:
    """Recursively drop DANGEROUS_KEYS from dicts, descending into lists."""
    if isinstance(value, dict):
        return {
            key: strip_dangerous_keys(item)
            for key, item in value.items()
            if key not in DANGEROUS_KEYS
        }
    if isinstance(value, list):
        return [strip_dangerous_keys(item) for item in value]
    return value


def convert_single_quotes(raw: str) -> str:
    """Turn single-quote string delimiters next to structural characters into double quotes."""
    return _SINGLE_QUOTE_DELIMITER.sub(lambda m: f'{m.group(1) or ""}"', raw)


def remove_trailing_commas(raw: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", raw)


def quote_bare_keys(raw: str) -> str:
    """{tool: "x"} -> {"tool": "x"}"""
    return _BARE_KEY.sub(r'\1"\2":', raw)


def close_braces(raw: str) -> str:
    """Append one closing brace per unmatched opening brace."""
    missing = raw.count("{") - raw.count("}")
    if missing > 0:
        return raw + "}" * missing
    return raw


def repair_json(raw: str) -> str:
    fixed = convert_single_quotes(raw)
    fixed = remove_trailing_commas(fixed)
    fixed = quote_bare_keys(fixed)
    fixed = close_braces(fixed)
    return fixed


def _loads(raw: str) -> Any:
    return strip_dangerous_keys(json.loads(raw))


def parse_lenient(raw: str) -> Optional[Any]:
    """
    Parse a fragment as JSON, repairing it when the strict parse fails.

    Returns the parsed value with dangerous keys removed, or None when the
    fragment cannot be parsed even after repair. Never raises.
    """
    try:
        return _loads(raw)
    except (ValueError, RecursionError):
        pass

    try:
        return _loads(repair_json(raw))
    except (ValueError, RecursionError):
        logger.debug("Unrepairable fragment: %.80r", raw)
        return None
