"""Services layer.

- persistence: async data-access contract returning QueryResult
- identity: access tokens and the current actor
- realtime: change feed and presence on Redis
"""

from worksync.services.identity import IdentityResolver, trash_marker
from worksync.services.persistence import (
    ErrorKind,
    ParentStateError,
    PersistenceService,
    QueryResult,
    RecordNotFoundError,
    query,
)
from worksync.services.realtime import ChangeEvent, ChangeFeed, PresenceService

__all__ = [
    "PersistenceService",
    "QueryResult",
    "ErrorKind",
    "RecordNotFoundError",
    "ParentStateError",
    "query",
    "IdentityResolver",
    "trash_marker",
    "ChangeEvent",
    "ChangeFeed",
    "PresenceService",
]
