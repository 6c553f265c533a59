"""Thread-safe in-memory cache with TTL support and a background eviction sweep."""

import threading
import time
from threading import Lock
from typing import Any, Dict, Optional, Tuple

# Default TTL in seconds
DEFAULT_TTL = 12 * 60 * 60  # 12 hours
DEFAULT_SWEEP_INTERVAL = 10 * 60  # 10 minutes


class ExpiringCache:
    """
    Thread-safe in-memory cache with TTL support.

    Backs the logged-off token set. Expired entries are dropped lazily on lookup and
    periodically by a daemon sweeper thread (see ``start_sweeper``).
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL) -> None:
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self._lock = Lock()
        self._default_ttl = default_ttl
        self._sweeper: Optional[threading.Thread] = None
        self._stop = threading.Event()

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from cache if it exists and hasn't expired.

        Returns None if key doesn't exist or is expired.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._cache[key]
                return None

            return value

    def contains(self, key: str) -> bool:
        """Return True if key is present and not expired."""
        return self.get(key) is not None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Set a value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache (must not be None)
            ttl: Time-to-live in seconds (defaults to the cache's default_ttl)
        """
        ttl = self._default_ttl if ttl is None else ttl
        with self._lock:
            self._cache[key] = (value, time.monotonic() + ttl)

    def invalidate(self, key: str) -> bool:
        """
        Remove a specific key from cache.

        Returns True if key was present, False otherwise.
        """
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> int:
        """
        Clear all cached entries.

        Returns count of entries removed.
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns count of entries removed.
        """
        now = time.monotonic()
        with self._lock:
            expired = [k for k, (_, exp) in self._cache.items() if now >= exp]
            for k in expired:
                del self._cache[k]
            return len(expired)

    def size(self) -> int:
        """Return current number of entries in cache, expired or not."""
        with self._lock:
            return len(self._cache)

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        """Start a daemon thread calling ``cleanup_expired`` every ``interval`` seconds."""
        if self.sweeping:
            return
        self._stop.clear()

        def _run():
            while not self._stop.wait(interval):
                self.cleanup_expired()

        self._sweeper = threading.Thread(target=_run, name="expiring-cache-sweeper", daemon=True)
        self._sweeper.start()

    def stop_sweeper(self, timeout: Optional[float] = 1.0) -> None:
        """Signal the sweeper thread to exit and wait for it."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=timeout)
            self._sweeper = None
