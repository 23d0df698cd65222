# File: services/options_cache.py
import os
import time
import threading
import logging
from typing import Any, Callable, Optional
from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class OptionsCache:
    """
    Single-slot TTL cache for the filter dropdown options.
    Invalidated purely by expiry; the dataset is static while serving.
    Pass `timer` to control time in tests.
    """

    _KEY = "options"

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._cache = TTLCache(maxsize=1, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    def get(self) -> Optional[Any]:
        with self._lock:
            return self._cache.get(self._KEY)

    def set(self, value: Any):
        with self._lock:
            self._cache[self._KEY] = value

    def get_or_load(self, loader: Callable[[], Any]) -> Any:
        cached = self.get()
        if cached is not None:
            return cached

        value = loader()
        self.set(value)
        logger.debug(f"Options cache refreshed (ttl={self.ttl}s)")
        return value

    def clear(self):
        with self._lock:
            self._cache.clear()


_options_cache = OptionsCache(
    ttl=float(os.getenv("OPTIONS_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
)


def get_options_cache() -> OptionsCache:
    """FastAPI dependency returning the process-wide cache."""
    return _options_cache
