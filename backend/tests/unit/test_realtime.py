"""Tests for the change feed and presence hooks."""

from worksync.components.workspace.models import User
from worksync.db.redis_keys import RedisKeyPrefix
from worksync.services.realtime import ChangeEvent, ChangeFeed, PresenceService

ANN = User(id="u1", email="ann@example.com", fullName="Ann")
BOB = User(id="u2", email="bob@example.com")


class TestChangeFeed:
    def test_publish_reaches_workspace_subscribers_only(self, redis_cache):
        feed = ChangeFeed(redis_cache)
        mine = feed.subscribe("w1")
        other = feed.subscribe("w2")

        receivers = feed.publish(ChangeEvent(workspaceId="w1", entity="file", op="update", entityId="fi1", folderId="fo1"))
        assert receivers == 1

        events = list(ChangeFeed.read(mine))
        assert len(events) == 1
        assert events[0].entityId == "fi1"
        assert events[0].timestamp > 0
        assert list(ChangeFeed.read(other)) == []
        mine.close()
        other.close()

    def test_publish_without_subscribers(self, redis_cache):
        event = ChangeEvent(workspaceId="w1", entity="workspace", op="delete", entityId="w1")
        assert ChangeFeed(redis_cache).publish(event) == 0

    def test_channel_name(self):
        assert RedisKeyPrefix.changes_channel("w1") == "worksync:workspace:changes:w1"


class TestPresence:
    def test_join_list_leave(self, redis_cache):
        presence = PresenceService(redis_cache, ttl_seconds=30)
        assert presence.join("w1", ANN)
        assert presence.join("w1", BOB)

        viewers = presence.list("w1")
        assert set(viewers) == {"u1", "u2"}
        assert viewers["u1"]["email"] == "ann@example.com"

        assert presence.leave("w1", "u1")
        assert not presence.leave("w1", "u1")
        assert set(presence.list("w1")) == {"u2"}

    def test_presence_expires(self, redis_cache, fake_redis_client):
        presence = PresenceService(redis_cache, ttl_seconds=30)
        presence.join("w1", ANN)
        ttl = fake_redis_client.ttl(RedisKeyPrefix.presence_key("w1"))
        assert 0 < ttl <= 30

    def test_unknown_workspace_is_empty(self, redis_cache):
        assert PresenceService(redis_cache).list("nope") == {}
