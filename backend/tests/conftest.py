#!/usr/bin/env python
"""
pytest configuration file

This file contains shared fixtures for all tests.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_TYPE", "in_memory")

import fakeredis  # noqa: E402
import pytest  # noqa: E402

from worksync.components.workspace.models import User  # noqa: E402
from worksync.db.database import create_db_engine, create_session_factory, init_db  # noqa: E402
from worksync.db.models import Base  # noqa: E402
from worksync.db.redis_cache import RedisCache  # noqa: E402
from worksync.repositories import user_repository  # noqa: E402
from worksync.services.persistence import PersistenceService, user_from_model  # noqa: E402


@pytest.fixture
def fake_redis_client():
    """
    Create a fakeredis client for unit tests.

    This provides an in-memory Redis implementation that allows
    unit tests to run without a real Redis server.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.close()


@pytest.fixture
def redis_cache(fake_redis_client) -> RedisCache:
    """RedisCache backed by fakeredis."""
    return RedisCache(client=fake_redis_client)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every session (StaticPool)."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    """A session on the in-memory database."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def persistence(session_factory) -> PersistenceService:
    return PersistenceService(session_factory)


@pytest.fixture
def owner(db_session) -> User:
    """A user owning workspaces in the tests."""
    return user_from_model(user_repository.create_user(db_session, "ann@example.com", "Ann"))


@pytest.fixture
def other_user(db_session) -> User:
    """A second user, used as collaborator."""
    return user_from_model(user_repository.create_user(db_session, "Bob@Example.com", "Bob"))
