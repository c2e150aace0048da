"""
Result Cache

Keeps synthesis results keyed by exact input so that repeated identical
queries are free and return the same data for the lifetime of the process.
"""

import logging
from typing import Any, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


class ResultCache:
    """
    In-memory key-value store owned by a SynthesisEngine.

    No eviction and no TTL: inputs are few in practice and the cache exists
    to make repeated queries deterministic, including degraded results.

    Usage:
        cache = ResultCache()
        cache.put("O gato", result)
        cache.get("O gato")
    """

    def __init__(self):
        self._entries: Dict[Hashable, Any] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value for key, or None."""
        if key in self._entries:
            self.hits += 1
            logger.debug(f"Cache hit: {key!r}")
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, key: Hashable, value: Any) -> Any:
        self._entries[key] = value
        return value

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
