"""
Redis access wrapper for presence and change-feed hooks.

Architecture (Single DB + Key Prefix Pattern):
- All data in db=0, isolated by key prefix (see redis_keys.py)
- JSON serialization of values
- Redis errors are logged and reported through return values, never raised

Usage:
    from worksync.db.redis_cache import get_redis_cache
    from worksync.db.redis_keys import RedisKeyPrefix

    cache = get_redis_cache()
    cache.hset(RedisKeyPrefix.presence_key(workspace_id), {user_id: {"email": email}})
    cache.publish(RedisKeyPrefix.changes_channel(workspace_id), {"op": "update"})
"""

import json
from typing import Any

import fakeredis
import redis

from worksync.settings import settings
from worksync.utils import get_logger

logger = get_logger(__name__)


def create_redis_client() -> redis.Redis:
    """Create a Redis client based on settings.

    Returns:
        FakeRedis for redis_type="in_memory", a real client otherwise
    """
    if settings.redis_type == "in_memory":
        logger.info("Using FakeRedis (in-memory)")
        return fakeredis.FakeRedis(decode_responses=True)

    redis_config: dict[str, Any] = {
        "host": settings.redis_host,
        "port": settings.redis_port,
        "db": 0,
        "socket_connect_timeout": settings.redis_socket_connect_timeout,
        "socket_timeout": settings.redis_socket_timeout,
        "decode_responses": True,
    }
    if settings.redis_password:
        redis_config["password"] = settings.redis_password

    logger.info(f"Using real Redis: {settings.redis_host}:{settings.redis_port}")
    return redis.Redis(**redis_config)


class RedisCache:
    """Redis wrapper with JSON values and logged errors."""

    def __init__(self, client: redis.Redis | None = None):
        """
        Args:
            client: Optional pre-configured Redis client (for testing with fakeredis)
        """
        self._client: redis.Redis | None = client

    @property
    def client(self) -> redis.Redis:
        """Lazy initialization of the Redis client."""
        if self._client is None:
            self._client = create_redis_client()
        return self._client

    # ==================== Keys ====================

    def expire(self, key: str, seconds: int) -> bool:
        """Set expiry on an existing key."""
        try:
            return bool(self.client.expire(key, seconds))
        except redis.RedisError as e:
            logger.error(f"Redis expire error for key {key}: {e}")
            return False

    # ==================== Hash Operations (presence) ====================

    def hset(self, key: str, mapping: dict[str, Any]) -> bool:
        """Set multiple hash fields; values are JSON serialized."""
        try:
            serialized = {k: json.dumps(v, default=str) for k, v in mapping.items()}
            self.client.hset(key, mapping=serialized)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis hset error for key {key}: {e}")
            return False

    def hgetall(self, key: str) -> dict[str, Any]:
        """Get all hash fields (empty dict if missing or on error)."""
        try:
            data = self.client.hgetall(key)
        except redis.RedisError as e:
            logger.error(f"Redis hgetall error for key {key}: {e}")
            return {}

        result = {}
        for k, v in data.items():
            try:
                result[k] = json.loads(v)
            except json.JSONDecodeError:
                result[k] = v
        return result

    def hdel(self, key: str, *fields: str) -> int:
        """Delete hash fields."""
        try:
            return self.client.hdel(key, *fields)
        except redis.RedisError as e:
            logger.error(f"Redis hdel error for key {key}: {e}")
            return 0

    # ==================== Pub/Sub (change feed) ====================

    def publish(self, channel: str, message: Any) -> int:
        """Publish a JSON message. Returns the number of receivers."""
        try:
            return self.client.publish(channel, json.dumps(message, default=str))
        except redis.RedisError as e:
            logger.error(f"Redis publish error for channel {channel}: {e}")
            return 0

    # ==================== Utility Methods ====================

    def ping(self) -> bool:
        """Check Redis connection."""
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            self._client.close()
            self._client = None


_redis_cache: RedisCache | None = None


def get_redis_cache() -> RedisCache:
    """Get the shared Redis cache instance."""
    global _redis_cache
    if _redis_cache is None:
        _redis_cache = RedisCache()
    return _redis_cache
