"""
Plan Cache - in-process TTL cache for generated action plans.

Entries are keyed by goal id only; editing a goal does not invalidate its
entry. At most one generation per key is in flight: concurrent callers for
the same key block on the in-flight result instead of generating again.
A failed generation is never stored, and every waiter sees the same error.
Expired entries are dropped whenever a new entry is stored or stats are read.
"""

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class _InFlight:
    """A generation currently running for one key."""

    def __init__(self):
        self.event = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None


class PlanCache:
    """Thread-safe TTL cache with per-key request coalescing."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl_seconds: Lifetime of a stored entry
            clock: Monotonic time source, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._inflight: Dict[str, _InFlight] = {}
        self.hits = 0
        self.misses = 0

    def _fresh_entry(self, key: str) -> Optional[Dict[str, Any]]:
        # Caller holds the lock
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry['expires_at']:
            del self._entries[key]
            return None
        return entry

    def _purge_expired(self) -> None:
        # Caller holds the lock
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry['expires_at']]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired plan cache entries")

    def get(self, key: str) -> Any:
        """Stored value for key, or None if absent or expired."""
        with self._lock:
            entry = self._fresh_entry(key)
            return copy.deepcopy(entry['value']) if entry else None

    def fetch(self, key: str, generate: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, generating it at most once.

        Args:
            key: Cache key (goal id)
            generate: Zero-argument callable producing the value

        Returns:
            A copy of the cached or freshly generated value

        Raises:
            Whatever `generate` raised, for the generating caller and all waiters
        """
        with self._lock:
            entry = self._fresh_entry(key)
            if entry is not None:
                self.hits += 1
                return copy.deepcopy(entry['value'])

            inflight = self._inflight.get(key)
            owner = inflight is None
            if owner:
                inflight = _InFlight()
                self._inflight[key] = inflight
                self.misses += 1

        if not owner:
            logger.debug(f"Waiting on in-flight plan generation for {key}")
            inflight.event.wait()
            if inflight.error is not None:
                raise inflight.error
            return copy.deepcopy(inflight.result)

        try:
            value = generate()
        except BaseException as e:
            inflight.error = e
            with self._lock:
                self._inflight.pop(key, None)
            inflight.event.set()
            logger.warning(f"Plan generation for {key} failed; nothing cached")
            raise

        with self._lock:
            self._purge_expired()
            self._entries[key] = {
                'value': copy.deepcopy(value),
                'expires_at': self._clock() + self.ttl_seconds,
            }
            self._inflight.pop(key, None)

        inflight.result = copy.deepcopy(value)
        inflight.event.set()
        return copy.deepcopy(value)

    def invalidate(self, key: str) -> None:
        """Drop one entry."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, int]:
        """Counters for the metrics endpoint"""
        with self._lock:
            self._purge_expired()
            return {
                'entries': len(self._entries),
                'in_flight': len(self._inflight),
                'hits': self.hits,
                'misses': self.misses,
            }
