"""Database module for the worksync backend.

Components:
- Relational store (SQLAlchemy): users, workspaces, folders, files,
  collaborators, subscriptions
- Redis: presence and change-feed hooks
"""

from worksync.db.database import (
    check_connection,
    close_db,
    create_db_engine,
    create_session_factory,
    get_db_session,
    get_engine,
    get_session_factory,
    init_db,
)
from worksync.db.models import (
    Base,
    CollaboratorModel,
    FileModel,
    FolderModel,
    SubscriptionModel,
    UserModel,
    WorkspaceModel,
)
from worksync.db.redis_cache import RedisCache, get_redis_cache
from worksync.db.redis_keys import RedisKeyPrefix

__all__ = [
    # Redis
    "RedisCache",
    "RedisKeyPrefix",
    "get_redis_cache",
    # Relational - Connection
    "create_db_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "get_db_session",
    "init_db",
    "close_db",
    "check_connection",
    # Relational - Models
    "Base",
    "UserModel",
    "WorkspaceModel",
    "FolderModel",
    "FileModel",
    "CollaboratorModel",
    "SubscriptionModel",
]
