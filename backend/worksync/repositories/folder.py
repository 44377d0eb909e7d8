"""Folder repository for database operations."""

from sqlalchemy.orm import Session

from worksync.db.models import FolderModel
from worksync.repositories.base import BaseRepository


class FolderRepository(BaseRepository[FolderModel]):
    """Repository for Folder entity operations."""

    def __init__(self):
        super().__init__(FolderModel)

    def get_by_workspace(self, db: Session, workspace_id: str) -> list[FolderModel]:
        """Folders of a workspace, oldest first, trashed ones included."""
        return self.list_where(db, FolderModel.workspace_id == workspace_id)


# Singleton instance
folder_repository = FolderRepository()
