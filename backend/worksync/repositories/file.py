"""File repository for database operations."""

from sqlalchemy.orm import Session

from worksync.db.models import FileModel
from worksync.repositories.base import BaseRepository


class FileRepository(BaseRepository[FileModel]):
    """Repository for File entity operations."""

    def __init__(self):
        super().__init__(FileModel)

    def get_by_folder(self, db: Session, folder_id: str) -> list[FileModel]:
        """Files of a folder, oldest first."""
        return self.list_where(db, FileModel.folder_id == folder_id)

    def get_by_workspace(self, db: Session, workspace_id: str) -> list[FileModel]:
        """Files of a workspace across all folders, oldest first."""
        return self.list_where(db, FileModel.workspace_id == workspace_id)


# Singleton instance
file_repository = FileRepository()
