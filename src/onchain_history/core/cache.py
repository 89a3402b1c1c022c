"""TTL-based cache for reconciled transaction histories."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, NamedTuple, Protocol

from onchain_history.core.models import UnifiedTransaction

logger = logging.getLogger(__name__)


class CacheKey(NamedTuple):
    """Composite cache identity: lowercased address, chain and block range."""

    address: str
    chain_id: int
    from_block: int
    to_block: int

    @classmethod
    def build(cls, address: str, chain_id: int, from_block: int, to_block: int) -> "CacheKey":
        return cls(address.lower(), chain_id, from_block, to_block)


class CacheEntry:
    """
    Cached value with the time it was stored.

    Parameters
    ----------
    value : Any
        Cached value
    stored_at : float
        Unix timestamp of the write

    """

    def __init__(self, value: Any, stored_at: float) -> None:
        self.value = value
        self.stored_at = stored_at

    def is_fresh(self, ttl: float, now: float) -> bool:
        """
        Check whether the entry is still within its TTL.

        Parameters
        ----------
        ttl : float
            Time-to-live in seconds
        now : float
            Current Unix timestamp

        Returns
        -------
        bool
            True while ``now - stored_at < ttl``

        """
        return (now - self.stored_at) < ttl


class CacheStore(Protocol):
    """Backing key-value store for ``HistoryCache``."""

    def get(self, key: CacheKey) -> CacheEntry | None: ...

    def put(self, key: CacheKey, value: Any, stored_at: float) -> None: ...

    def delete(self, key: CacheKey) -> None: ...

    def clear(self) -> None: ...

    def items(self) -> list[tuple[CacheKey, CacheEntry]]: ...


class InMemoryCacheStore:
    """Process-local dict store, safe to share between request threads."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: CacheKey, value: Any, stored_at: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value, stored_at)

    def delete(self, key: CacheKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def items(self) -> list[tuple[CacheKey, CacheEntry]]:
        with self._lock:
            return list(self._entries.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class HistoryCache:
    """
    Freshness-checked cache of reconciled histories.

    Expiry is lazy: a stale entry is ignored (and dropped) when it is read, no
    timers are scheduled. ``cleanup_expired`` is available for callers that
    want to bound memory with a periodic sweep. Store failures are logged and
    behave like misses so a broken cache never blocks a scan.

    Parameters
    ----------
    ttl : int
        Time-to-live in seconds
    store : CacheStore | None
        Backing store. Uses a new ``InMemoryCacheStore`` if None.
    enabled : bool
        When False every lookup misses and writes are skipped
    clock : Callable[[], float]
        Time source, injectable for tests

    """

    def __init__(
        self,
        ttl: int = 300,
        store: CacheStore | None = None,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self.store = store if store is not None else InMemoryCacheStore()
        self.enabled = enabled
        self.clock = clock

    def get(
        self,
        address: str,
        chain_id: int,
        from_block: int,
        to_block: int,
    ) -> tuple[list[UnifiedTransaction], bool]:
        """
        Look up a fresh cached history.

        Returns
        -------
        tuple[list[UnifiedTransaction], bool]
            The cached list and True on a fresh hit, otherwise ``([], False)``

        """
        if not self.enabled:
            return [], False

        key = CacheKey.build(address, chain_id, from_block, to_block)
        try:
            entry = self.store.get(key)
            if entry is None:
                return [], False

            if not entry.is_fresh(self.ttl, self.clock()):
                self.store.delete(key)
                return [], False
        except Exception:
            logger.warning("Cache read failed for %s, treating as miss", key, exc_info=True)
            return [], False

        return list(entry.value), True

    def put(self, key: CacheKey, value: list[UnifiedTransaction]) -> None:
        """Store a reconciled history under ``key``."""
        if not self.enabled:
            return

        try:
            self.store.put(key, tuple(value), self.clock())
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    def clear(self) -> None:
        """Drop all entries (manual invalidation, e.g. after a reorg)."""
        try:
            self.store.clear()
        except Exception:
            logger.warning("Cache clear failed", exc_info=True)

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries from the store.

        Returns
        -------
        int
            Number of entries removed

        """
        now = self.clock()
        removed = 0
        try:
            expired_keys = [key for key, entry in self.store.items() if not entry.is_fresh(self.ttl, now)]
            for key in expired_keys:
                self.store.delete(key)
                removed += 1
        except Exception:
            logger.warning("Cache cleanup failed after %d removals", removed, exc_info=True)
        return removed
