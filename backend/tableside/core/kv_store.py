"""
Key-value storage for small JSON documents (diner feedback lists).
Uses Redis when REDIS_URL is configured, otherwise an in-process dictionary.
"""
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    """In-memory key-value store. Contents are lost on restart."""

    def __init__(self):
        self._data: dict = {}

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return json.loads(value) if value is not None else None

    def set(self, key: str, value: Any):
        # Store serialized so callers never share mutable state with the store
        self._data[key] = json.dumps(value, default=str)

    def delete(self, key: str):
        self._data.pop(key, None)

    def clear(self):
        self._data.clear()


class RedisKeyValueStore:
    """Redis-backed key-value store."""

    def __init__(self, client):
        self._redis = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisKeyValueStore":
        import redis
        client = redis.from_url(redis_url, socket_connect_timeout=2, decode_responses=True)
        client.ping()
        logger.info("Redis key-value store connected")
        return cls(client)

    def get(self, key: str) -> Optional[Any]:
        value = self._redis.get(key)
        return json.loads(value) if value else None

    def set(self, key: str, value: Any):
        self._redis.set(key, json.dumps(value, default=str))

    def delete(self, key: str):
        self._redis.delete(key)


def build_kv_store(redis_url: str | None = None):
    """Create the configured store, using memory when Redis is not configured or unreachable."""
    if redis_url:
        try:
            return RedisKeyValueStore.from_url(redis_url)
        except Exception as e:
            logger.warning(f"Redis unavailable, using memory store: {e}")
    return MemoryKeyValueStore()
