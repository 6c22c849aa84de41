"""
In-process TTL cache for computed aggregates.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from cellblock.core.logging import get_logger

T = TypeVar("T")


class CacheService:
    """
    Namespaced key/value cache with per-entry expiry.

    Expiry is checked on read against an injectable monotonic clock.
    """

    def __init__(
        self,
        namespace: str = "svc",
        default_ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._logger = get_logger(self.__class__.__name__)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(self._key(key))
            if entry is None:
                self._logger.debug(f"Cache miss: {key}")
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[self._key(key)]
                self._logger.debug(f"Cache expired: {key}")
                return default
        self._logger.debug(f"Cache hit: {key}")
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        with self._lock:
            self._entries[self._key(key)] = (self._clock() + ttl, value)
        self._logger.debug(f"Cache set: {key} (TTL: {ttl}s)")

    def delete(self, key: str) -> bool:
        """Drop `key` and start a new generation so in-flight computes are not stored."""
        full_key = self._key(key)
        with self._lock:
            self._generations[full_key] = self._generations.get(full_key, 0) + 1
            return self._entries.pop(full_key, None) is not None

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(self._key(key), 0)

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], T],
        ttl_seconds: Optional[float] = None,
    ) -> T:
        """
        Return the cached value, computing and storing it on a miss.

        The computed value is returned but not stored when `key` was
        deleted while `factory` ran, since it may predate that change.
        """
        sentinel = object()
        cached = self.get(key, sentinel)
        if cached is not sentinel:
            return cached  # type: ignore[return-value]
        started = self.generation(key)
        value = factory()
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        full_key = self._key(key)
        with self._lock:
            if self._generations.get(full_key, 0) != started:
                stored = False
            else:
                self._entries[full_key] = (self._clock() + ttl, value)
                stored = True
        if stored:
            self._logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
        else:
            self._logger.debug(f"Cache store skipped, invalidated during compute: {key}")
        return value
