"""
Caching utilities for report queries
Provides cache key generation and the get/remember/forget cache layer
"""

import hashlib
import json
import logging
import os
from typing import Any, Callable, Optional, Protocol, Sequence

import diskcache as dc

from .exceptions import CacheBackendError

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "analytics_reports."
DEFAULT_CACHE_DIR = os.path.join(os.path.expanduser("~"), ".ga_reports_cache")

_MISSING = object()


def generate_cache_key(args: Sequence[Any], prefix: str = CACHE_KEY_PREFIX) -> str:
    """
    Generate a stable cache key using SHA-256 hashing.

    The arguments are hashed as an ordered list, so swapping two arguments
    gives a different key. ``None`` stands for an absent optional argument.

    Args:
        args: Query arguments in API argument order
        prefix: Namespace prefix kept apart from unrelated cache entries

    Returns:
        str: Stable cache key
    """
    cache_string = json.dumps(list(args), sort_keys=True, default=str, separators=(',', ':'))
    return f"{prefix}{hashlib.sha256(cache_string.encode()).hexdigest()}"


class CacheBackend(Protocol):
    """Minimal store interface; ``diskcache.Cache`` satisfies it"""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any, expire: Optional[float] = None) -> Any:
        ...

    def delete(self, key: str) -> Any:
        ...


class ReportCache:
    """
    Cache layer used by the report client.

    ``remember`` computes and stores on a miss. A lifetime of 0 minutes means
    the computed value is returned without being stored. Backend failures are
    raised as CacheBackendError.
    """

    def __init__(self, backend: CacheBackend, prefix: str = ""):
        self.backend = backend
        self.prefix = prefix

    @classmethod
    def on_disk(cls, cache_dir: Optional[str] = None, size_limit: int = 500 * 1024 * 1024,
                prefix: str = "") -> "ReportCache":
        if cache_dir is None:
            cache_dir = DEFAULT_CACHE_DIR
        os.makedirs(cache_dir, exist_ok=True)
        return cls(dc.Cache(cache_dir, size_limit=size_limit), prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self.backend.get(self._key(key), default)
        except Exception as e:
            logger.error(f"Cache read failed for {key}: {e}")
            raise CacheBackendError(f"Cache read failed for {key}: {e}") from e

    def put(self, key: str, value: Any, ttl_minutes: int) -> None:
        if ttl_minutes <= 0:
            return
        try:
            self.backend.set(self._key(key), value, expire=ttl_minutes * 60)
        except Exception as e:
            logger.error(f"Cache write failed for {key}: {e}")
            raise CacheBackendError(f"Cache write failed for {key}: {e}") from e

    def forget(self, key: str) -> None:
        try:
            self.backend.delete(self._key(key))
        except Exception as e:
            logger.error(f"Cache delete failed for {key}: {e}")
            raise CacheBackendError(f"Cache delete failed for {key}: {e}") from e

    def remember(self, key: str, ttl_minutes: int, compute: Callable[[], Any]) -> Any:
        """Return the cached value for key, computing and storing it on a miss"""
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"Cache hit for {key}")
            return cached

        logger.debug(f"Cache miss for {key}")
        value = compute()
        self.put(key, value, ttl_minutes)
        return value

    get_or_compute = remember
