"""
Similarity Cache - In-process memoization of pairwise computations.

Caches expensive comparisons (edit distances, text similarities, bipartite
matches) keyed by normalized inputs. The cache is owned by a SignalEngine
and shared by every pair it scores, so it is protected by a lock.

A cache failure never reaches the caller: lookups and stores that raise are
logged and the value is computed directly.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, Tuple, TypeVar

from .primitives import normalize_terms, normalize_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 50000


@dataclass
class CacheStats:
    """Hit / miss counters for a SimilarityCache."""
    hits: int = 0
    misses: int = 0
    errors: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["hit_rate"] = self.hit_rate
        return result


def pair_key(value_a: str, value_b: str) -> Tuple[str, str]:
    """Order-independent key for a pair of strings."""
    a = normalize_text(value_a)
    b = normalize_text(value_b)
    return (a, b) if a <= b else (b, a)


def terms_key(values: Iterable[str]) -> Tuple[str, ...]:
    """Order-independent key for a category list."""
    return tuple(sorted(normalize_terms(values)))


class SimilarityCache:
    """
    Bounded, thread-safe memo for similarity computations.

    Entries are grouped by namespace ("levenshtein", "text", "bipartite", ...)
    and evicted least-recently-used once max_entries is reached.

    Attributes:
        max_entries: Maximum number of cached values across all namespaces
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._store: "OrderedDict[Tuple[str, Hashable], Any]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def get_or_compute(self, namespace: str, key: Hashable, compute: Callable[[], T]) -> T:
        """
        Return the cached value for (namespace, key), computing it on a miss.

        Errors raised by compute() propagate; errors raised by the cache
        itself are logged and the value is computed without caching.
        """
        full_key = (namespace, key)
        try:
            with self._lock:
                if full_key in self._store:
                    self._store.move_to_end(full_key)
                    self._stats.hits += 1
                    return self._store[full_key]
                self._stats.misses += 1
        except Exception as e:
            self._record_error(f"lookup in '{namespace}' failed: {e}")
            return compute()

        value = compute()

        try:
            with self._lock:
                self._store[full_key] = value
                while len(self._store) > self.max_entries:
                    self._store.popitem(last=False)
        except Exception as e:
            self._record_error(f"store in '{namespace}' failed: {e}")
        return value

    def clear(self, namespace: Optional[str] = None) -> None:
        """Drop every entry, or only the entries of one namespace."""
        with self._lock:
            if namespace is None:
                self._store.clear()
                self._stats = CacheStats()
            else:
                for full_key in [k for k in self._store if k[0] == namespace]:
                    del self._store[full_key]
        logger.debug(f"Cleared similarity cache (namespace={namespace})")

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                errors=self._stats.errors,
                size=len(self._store)
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _record_error(self, message: str) -> None:
        logger.warning(f"Similarity cache {message}; computing without cache")
        with self._lock:
            self._stats.errors += 1
