"""In-memory TTL cache with cost-bounded admission."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 48 * 3600
DEFAULT_MAX_COST = 150_000_000


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cached value with its absolute expiry."""

    value: Any
    expires_at: float
    cost: int


class TTLCache:
    """
    Thread-safe key/value store with per-entry expiration.

    Admission is bounded by the summed cost of retained entries. When a new
    entry does not fit, expired entries are purged first and then the entries
    closest to expiry are evicted. An entry that can never fit is refused.
    Callers must treat a refused write exactly like a later miss.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_cost: int = DEFAULT_MAX_COST,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when set() gets none
            max_cost: Upper bound on the summed cost of retained entries (0 retains nothing)
            clock: Monotonic time source, injectable for tests
        """
        self.default_ttl = default_ttl
        self.max_cost = max_cost
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._cost = 0
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[Any, bool]:
        """Return (value, found). Expired entries are reported as misses."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None, False
            if self._clock() >= entry.expires_at:
                self._remove(key)
                self._misses += 1
                return None, False
            self._hits += 1
            return entry.value, True

    def set(self, key: str, value: Any, ttl: Optional[float] = None, cost: int = 1) -> bool:
        """
        Store value under key, replacing any existing entry.

        Returns:
            True if the entry was admitted, False if it was refused
        """
        ttl = self.default_ttl if ttl is None else ttl
        cost = max(int(cost), 0)
        if ttl <= 0 or cost > self.max_cost:
            logger.debug(f"Cache refused {key} (cost={cost}, max_cost={self.max_cost})")
            return False

        with self._lock:
            now = self._clock()
            self._remove(key)
            if self._cost + cost > self.max_cost:
                self._purge_expired(now)
            while self._cost + cost > self.max_cost and self._store:
                victim = min(self._store, key=lambda k: self._store[k].expires_at)
                self._remove(victim)
            self._store[key] = CacheEntry(value=value, expires_at=now + ttl, cost=cost)
            self._cost += cost
            return True

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._store),
                "cost": self._cost,
                "hits": self._hits,
                "misses": self._misses,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _remove(self, key: str) -> None:
        entry = self._store.pop(key, None)
        if entry is not None:
            self._cost -= entry.cost

    def _purge_expired(self, now: float) -> None:
        for key in [k for k, e in self._store.items() if now >= e.expires_at]:
            self._remove(key)
