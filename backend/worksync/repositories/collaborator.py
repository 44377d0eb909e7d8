"""Collaborator repository for database operations.

Add and remove are idempotent: adding an existing (workspace, user) pair and
removing a missing one are both no-ops.
"""

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from worksync.db.models import CollaboratorModel, UserModel
from worksync.repositories.base import BaseRepository
from worksync.utils import generate_id, get_timestamp_ms


class CollaboratorRepository(BaseRepository[CollaboratorModel]):
    """Repository for the workspace/user association."""

    def __init__(self):
        super().__init__(CollaboratorModel)

    def exists_pair(self, db: Session, workspace_id: str, user_id: str) -> bool:
        """Check whether the user collaborates on the workspace."""
        stmt = select(CollaboratorModel.id).where(
            CollaboratorModel.workspace_id == workspace_id,
            CollaboratorModel.user_id == user_id,
        )
        return db.execute(stmt).first() is not None

    def get_users(self, db: Session, workspace_id: str) -> list[UserModel]:
        """Users collaborating on a workspace, in the order they were added."""
        stmt = (
            select(UserModel)
            .join(CollaboratorModel, CollaboratorModel.user_id == UserModel.id)
            .where(CollaboratorModel.workspace_id == workspace_id)
            .order_by(CollaboratorModel.created_at.asc())
        )
        return list(db.execute(stmt).scalars().all())

    def add(self, db: Session, workspace_id: str, user_ids: list[str]) -> int:
        """Add collaborators, skipping pairs that already exist.

        Returns:
            Number of rows inserted
        """
        added = 0
        for user_id in dict.fromkeys(user_ids):
            if self.exists_pair(db, workspace_id, user_id):
                continue
            db.add(
                CollaboratorModel(
                    id=generate_id(),
                    workspace_id=workspace_id,
                    user_id=user_id,
                    created_at=get_timestamp_ms(),
                )
            )
            added += 1
        db.commit()
        return added

    def remove(self, db: Session, workspace_id: str, user_ids: list[str]) -> int:
        """Remove collaborators; missing pairs are ignored.

        Returns:
            Number of rows deleted
        """
        if not user_ids:
            return 0
        stmt = delete(CollaboratorModel).where(
            CollaboratorModel.workspace_id == workspace_id,
            CollaboratorModel.user_id.in_(user_ids),
        )
        result = db.execute(stmt)
        db.commit()
        return result.rowcount or 0


# Singleton instance
collaborator_repository = CollaboratorRepository()
