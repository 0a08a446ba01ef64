"""Injectable external capabilities for context-dependent tools."""

import logging
import threading
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

Capability = Callable[..., Awaitable[Any]]

# Capability name -> expected call signature
CAPABILITIES = {
    "execute_python": "(code) -> str",
    "execute_javascript": "(code) -> str",
    "execute_sql": "(query) -> str",
    "execute_shell": "(command) -> str",
    "search_documents": "(query, limit) -> list[dict]",
    "analyze_image": "(question) -> str | dict",
    "create_file": "(type, content, filename) -> Any",
    "read_file": "(path) -> str",
    "write_file": "(path, content) -> None",
    "list_files": "(path) -> list[str]",
    "delete_file": "(path) -> None",
    "move_file": "(source, destination) -> None",
    "update_plan": "(*, target, operation, tasks, title, content) -> Any",
}


class ExecutionContext:
    """
    Capability name -> async callable, shared by all handlers of a registry.

    Merges are additive: a capability, once set, can be replaced by a newer
    function but never removed.
    """

    def __init__(self, capabilities: Optional[Mapping[str, Optional[Capability]]] = None):
        self._lock = threading.Lock()
        self._capabilities: Dict[str, Capability] = {}
        if capabilities:
            self.merge(capabilities)

    def merge(self, capabilities: Mapping[str, Optional[Capability]]):
        with self._lock:
            for name, func in capabilities.items():
                if func is None:
                    continue
                if not callable(func):
                    raise TypeError(f"Capability '{name}' must be callable")
                if name not in CAPABILITIES:
                    logger.warning("Registering non-standard capability '%s'", name)
                self._capabilities[name] = func

    def get(self, name: str) -> Optional[Capability]:
        return self._capabilities.get(name)

    def has(self, name: str) -> bool:
        return name in self._capabilities

    def names(self) -> List[str]:
        return sorted(self._capabilities)

    def snapshot(self) -> Dict[str, bool]:
        """Availability of every standard capability, for status endpoints."""
        return {name: name in self._capabilities for name in CAPABILITIES}
