"""User repository for database operations."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from worksync.db.models import UserModel
from worksync.repositories.base import BaseRepository
from worksync.utils import generate_id, get_timestamp_ms


class UserRepository(BaseRepository[UserModel]):
    """Repository for User entity operations."""

    def __init__(self):
        super().__init__(UserModel)

    def search_by_email(self, db: Session, prefix: str, limit: int = 20) -> list[UserModel]:
        """Case-insensitive email prefix search.

        Wildcard characters in the prefix are matched literally.

        Args:
            db: Database session
            prefix: Leading part of the email address
            limit: Maximum number of users to return

        Returns:
            Matching users ordered by email
        """
        if not prefix:
            return []
        stmt = (
            select(UserModel)
            .where(func.lower(UserModel.email).startswith(prefix.lower(), autoescape=True))
            .order_by(UserModel.email)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all())

    def create_user(
        self,
        db: Session,
        email: str,
        full_name: str | None = None,
        user_id: str | None = None,
    ) -> UserModel:
        """Create a new user.

        Args:
            db: Database session
            email: User email
            full_name: Display name
            user_id: Explicit id (generated when omitted)

        Returns:
            Created user
        """
        now = get_timestamp_ms()
        user_data = {
            "id": user_id or generate_id(),
            "email": email,
            "full_name": full_name,
            "created_at": now,
            "updated_at": now,
        }
        return self.create(db, user_data)


# Singleton instance
user_repository = UserRepository()
