"""In-process cache of container name -> container identifier."""
import logging
import threading
from typing import Optional

from cachetools import LRUCache

from .models import ContainerId

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


def container_key(name: str) -> str:
    """Cache key shared by both tiers for a container name."""
    return f"container:{name}"


class LocalContainerIndex:
    """
    Bounded, thread-safe map of container names to Barbican container identifiers.

    Entries are evicted least-recently-used first once ``capacity`` is reached.
    There is no time-based expiry: an entry lives until evicted or the process exits.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._cache: LRUCache = LRUCache(maxsize=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return int(self._cache.maxsize)

    def get(self, name: str) -> Optional[ContainerId]:
        """Return the identifier for ``name`` or None when unknown."""
        with self._lock:
            return self._cache.get(container_key(name))

    def set(self, name: str, identifier: str) -> None:
        with self._lock:
            self._cache[container_key(name)] = ContainerId(identifier)
        logger.debug(f"Cached container {name} -> {identifier}")

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return container_key(name) in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
