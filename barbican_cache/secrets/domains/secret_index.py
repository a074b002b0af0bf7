"""Redis-backed cache of secret name -> secret identifier, one hash per container."""
import logging
from typing import Optional

import redis

from .container_index import container_key
from .errors import CacheUnavailable

logger = logging.getLogger(__name__)


class SharedSecretIndex:
    """
    Shared tier visible to every instance of the service.

    Each container is stored as a Redis hash under ``container:<name>`` whose
    fields are secret names and values are secret identifiers. A missing field
    is reported as None; any Redis failure is raised as CacheUnavailable.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "SharedSecretIndex":
        """Create an index connected to the Redis server at ``url``."""
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def ping(self) -> None:
        try:
            self._client.ping()
        except redis.exceptions.RedisError as e:
            raise CacheUnavailable(f"Redis ping failed: {e}") from e

    def hset(self, container: str, secret_name: str, identifier: str) -> None:
        key = container_key(container)
        try:
            self._client.hset(key, secret_name, identifier)
        except redis.exceptions.RedisError as e:
            raise CacheUnavailable(f"Failed to cache {key}/{secret_name}: {e}") from e

    def hget(self, container: str, secret_name: str) -> Optional[str]:
        """
        Look up a secret identifier.

        Returns:
            The identifier, or None if the container has no such field

        Raises:
            CacheUnavailable: If Redis could not answer
        """
        key = container_key(container)
        try:
            value = self._client.hget(key, secret_name)
        except redis.exceptions.RedisError as e:
            raise CacheUnavailable(f"Failed to read {key}/{secret_name}: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def hdel(self, container: str, secret_name: str) -> None:
        key = container_key(container)
        try:
            self._client.hdel(key, secret_name)
        except redis.exceptions.RedisError as e:
            raise CacheUnavailable(f"Failed to remove {key}/{secret_name}: {e}") from e
