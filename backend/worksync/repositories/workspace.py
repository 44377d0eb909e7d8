"""Workspace repository for database operations.

Visibility rules:
- private: owned by the user, no collaborator rows
- shared: owned by the user, at least one collaborator row
- collaborating: the user appears as a collaborator
"""

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from worksync.db.models import CollaboratorModel, WorkspaceModel
from worksync.repositories.base import BaseRepository


class WorkspaceRepository(BaseRepository[WorkspaceModel]):
    """Repository for Workspace entity operations."""

    def __init__(self):
        super().__init__(WorkspaceModel)

    def _has_collaborators(self):
        return exists().where(CollaboratorModel.workspace_id == WorkspaceModel.id)

    def get_private(self, db: Session, user_id: str) -> list[WorkspaceModel]:
        """Workspaces owned by the user that nobody else can see."""
        return self.list_where(db, WorkspaceModel.workspace_owner == user_id, ~self._has_collaborators())

    def get_shared(self, db: Session, user_id: str) -> list[WorkspaceModel]:
        """Workspaces owned by the user that have at least one collaborator."""
        return self.list_where(db, WorkspaceModel.workspace_owner == user_id, self._has_collaborators())

    def get_collaborating(self, db: Session, user_id: str) -> list[WorkspaceModel]:
        """Workspaces the user was added to as a collaborator."""
        stmt = (
            select(WorkspaceModel)
            .join(CollaboratorModel, CollaboratorModel.workspace_id == WorkspaceModel.id)
            .where(CollaboratorModel.user_id == user_id)
            .order_by(WorkspaceModel.created_at.asc())
        )
        return list(db.execute(stmt).scalars().all())

    def get_first_for_owner(self, db: Session, user_id: str) -> WorkspaceModel | None:
        """Oldest workspace owned by the user (default landing workspace)."""
        owned = self.list_where(db, WorkspaceModel.workspace_owner == user_id, limit=1)
        return owned[0] if owned else None


# Singleton instance
workspace_repository = WorkspaceRepository()
