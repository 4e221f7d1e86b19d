"""
Process-wide TTL cache for tool results.

Keys combine the tool name with the argument mapping serialised in sorted-key
order, so calls that differ only in argument order share an entry. Storage is
a bounded cachetools.TTLCache: expired entries are dropped as new ones are
written, and the least recently used entry goes once `max_entries` is reached.
"""

import json
import logging
import time
from threading import Lock
from typing import Any, Callable, Dict

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class _Miss:
    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


class ToolCache:
    """Thread-safe key/value store with a fixed time-to-live."""

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=clock)
        # TTLCache is not thread safe
        self._lock = Lock()

    @staticmethod
    def make_key(tool_name: str, args: Dict[str, Any]) -> str:
        return f"{tool_name}:{json.dumps(args, sort_keys=True, default=str, separators=(',', ':'))}"

    def get(self, key: str) -> Any:
        """Return the cached value, or MISS when absent or expired."""
        with self._lock:
            return self._entries.get(key, MISS)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value
        logger.debug("Cache SET: %s", key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
