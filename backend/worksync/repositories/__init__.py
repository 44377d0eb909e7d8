"""Repository layer for database access.

Repositories wrap the SQLAlchemy queries for each entity of the workspace tree.

Usage:
    from worksync.repositories import folder_repository

    folders = folder_repository.get_by_workspace(db, workspace_id)
"""

from worksync.repositories.collaborator import CollaboratorRepository, collaborator_repository
from worksync.repositories.file import FileRepository, file_repository
from worksync.repositories.folder import FolderRepository, folder_repository
from worksync.repositories.subscription import SubscriptionRepository, subscription_repository
from worksync.repositories.user import UserRepository, user_repository
from worksync.repositories.workspace import WorkspaceRepository, workspace_repository

__all__ = [
    "UserRepository",
    "user_repository",
    "WorkspaceRepository",
    "workspace_repository",
    "FolderRepository",
    "folder_repository",
    "FileRepository",
    "file_repository",
    "CollaboratorRepository",
    "collaborator_repository",
    "SubscriptionRepository",
    "subscription_repository",
]
