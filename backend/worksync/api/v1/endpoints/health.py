"""Health check API endpoint."""

from fastapi import APIRouter

from worksync.db.database import check_connection
from worksync.db.redis_cache import get_redis_cache

router = APIRouter(tags=["Health"])


@router.get("")
async def health_check():
    """Report the relational store and the Redis channel used by presence and the change feed.

    Redis being down only degrades realtime hooks, so status stays "healthy"
    as long as the database answers.
    """
    database = check_connection()
    redis = get_redis_cache().ping()
    return {"status": "healthy" if database else "degraded", "database": database, "redis": redis}
