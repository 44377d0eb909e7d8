"""Subscription repository (read-only for this service)."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from worksync.db.models import SubscriptionModel
from worksync.repositories.base import BaseRepository


class SubscriptionRepository(BaseRepository[SubscriptionModel]):
    """Repository for Subscription entity operations."""

    def __init__(self):
        super().__init__(SubscriptionModel)

    def get_by_user(self, db: Session, user_id: str) -> SubscriptionModel | None:
        """Most recent subscription of a user, if any."""
        stmt = (
            select(SubscriptionModel)
            .where(SubscriptionModel.user_id == user_id)
            .order_by(SubscriptionModel.created.desc())
            .limit(1)
        )
        return db.execute(stmt).scalar_one_or_none()


# Singleton instance
subscription_repository = SubscriptionRepository()
