"""Realtime hooks: change feed and presence.

Both sit on the Redis wrapper and treat Redis as an opaque pub/sub and
key/value channel. Failures are logged by the wrapper and reported through
return values; nothing here raises into the caller's mutation path.
"""

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel

from worksync.components.workspace.models import User
from worksync.db.redis_cache import RedisCache, get_redis_cache
from worksync.db.redis_keys import RedisKeyPrefix
from worksync.settings import settings
from worksync.utils import get_logger, get_timestamp_ms

logger = get_logger(__name__)


class ChangeEvent(BaseModel):
    """A persisted change to one node of a workspace."""

    workspaceId: str
    entity: str  # "workspace" | "folder" | "file"
    op: str  # "create" | "update" | "delete"
    entityId: str
    folderId: str | None = None
    actorId: str | None = None
    payload: dict[str, Any] | None = None
    timestamp: int = 0


class ChangeFeed:
    """Publishes change events on a per-workspace channel."""

    def __init__(self, cache: RedisCache | None = None):
        self.cache = cache or get_redis_cache()

    def publish(self, event: ChangeEvent) -> int:
        """Publish an event. Returns the number of subscribers reached."""
        if not event.timestamp:
            event = event.model_copy(update={"timestamp": get_timestamp_ms()})
        channel = RedisKeyPrefix.changes_channel(event.workspaceId)
        receivers = self.cache.publish(channel, event.model_dump())
        logger.debug(f"Published {event.entity}.{event.op} {event.entityId} to {receivers} subscribers")
        return receivers

    def subscribe(self, workspace_id: str):
        """Open a pub/sub subscription on a workspace channel."""
        pubsub = self.cache.client.pubsub()
        pubsub.subscribe(RedisKeyPrefix.changes_channel(workspace_id))
        return pubsub

    @staticmethod
    def read(pubsub, timeout: float = 0.0) -> Iterator[ChangeEvent]:
        """Drain pending events from a subscription, skipping control messages."""
        while True:
            message = pubsub.get_message(timeout=timeout)
            if message is None:
                return
            if message.get("type") != "message":
                continue
            yield ChangeEvent.model_validate_json(message["data"])


class PresenceService:
    """Tracks which users are viewing a workspace.

    Each workspace has one Redis hash keyed by user id. Every join refreshes
    the TTL of the hash, so an abandoned workspace clears itself.
    """

    def __init__(self, cache: RedisCache | None = None, ttl_seconds: int | None = None):
        self.cache = cache or get_redis_cache()
        self.ttl_seconds = ttl_seconds or settings.presence_ttl_seconds

    def join(self, workspace_id: str, user: User) -> bool:
        key = RedisKeyPrefix.presence_key(workspace_id)
        entry = {"email": user.email, "fullName": user.fullName, "joinedAt": get_timestamp_ms()}
        if not self.cache.hset(key, {user.id: entry}):
            return False
        self.cache.expire(key, self.ttl_seconds)
        return True

    def leave(self, workspace_id: str, user_id: str) -> bool:
        return self.cache.hdel(RedisKeyPrefix.presence_key(workspace_id), user_id) > 0

    def list(self, workspace_id: str) -> dict[str, dict[str, Any]]:
        """Users currently viewing the workspace, keyed by user id."""
        return self.cache.hgetall(RedisKeyPrefix.presence_key(workspace_id))
