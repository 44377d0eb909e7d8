"""Data-access functions for the workspace tree.

Every operation:
- validates its id arguments before touching the database
- runs one unit of work in its own session
- returns a `QueryResult` instead of raising for expected failures

Failures are normalized by the `@query` decorator:
- malformed id -> kind "validation", no database access
- missing record -> kind "not_found"
- any database error or violated parent rule -> `{data: None, error: "Error"}`,
  kind "persistence", logged with the exception
"""

import functools
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from worksync.components.workspace.models import (
    File,
    FileUpdate,
    Folder,
    FolderUpdate,
    Subscription,
    User,
    Workspace,
    WorkspaceUpdate,
)
from worksync.db.database import get_db_session
from worksync.db.models import FileModel, FolderModel, SubscriptionModel, UserModel, WorkspaceModel
from worksync.repositories import (
    collaborator_repository,
    file_repository,
    folder_repository,
    subscription_repository,
    user_repository,
    workspace_repository,
)
from worksync.utils import IdValidationError, get_logger, validate_id

logger = get_logger(__name__)

T = TypeVar("T")

PERSISTENCE_ERROR = "Error"


class ErrorKind(str, Enum):
    validation = "validation"
    not_found = "not_found"
    persistence = "persistence"


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Outcome of a data-access call: exactly one of data/error is meaningful."""

    data: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "QueryResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: str, kind: ErrorKind) -> "QueryResult[T]":
        return cls(data=None, error=error, kind=kind)


class RecordNotFoundError(LookupError):
    """The addressed record does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ParentStateError(Exception):
    """A create addressed a missing, trashed or inconsistent parent."""


def query(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[QueryResult[T]]]:
    """Wrap a data-access coroutine so it returns a QueryResult."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> QueryResult[T]:
        try:
            return QueryResult.success(await func(*args, **kwargs))
        except IdValidationError as e:
            logger.warning(f"{func.__name__}: {e}")
            return QueryResult.failure(str(e), ErrorKind.validation)
        except RecordNotFoundError as e:
            logger.info(f"{func.__name__}: {e}")
            return QueryResult.failure(str(e), ErrorKind.not_found)
        except (SQLAlchemyError, ParentStateError) as e:
            logger.error(f"{func.__name__} failed: {e}", exc_info=True)
            return QueryResult.failure(PERSISTENCE_ERROR, ErrorKind.persistence)

    return wrapper


# ==================== ORM -> API model conversion ====================

# API field name -> column name, for the patchable fields
_PATCH_COLUMNS = {
    "title": "title",
    "iconId": "icon_id",
    "data": "data",
    "inTrash": "in_trash",
    "bannerUrl": "banner_url",
    "logo": "logo",
}


def _columns(changes: dict[str, Any]) -> dict[str, Any]:
    return {_PATCH_COLUMNS[k]: v for k, v in changes.items()}


def workspace_from_model(m: WorkspaceModel) -> Workspace:
    return Workspace(
        id=m.id,
        workspaceOwner=m.workspace_owner,
        title=m.title,
        iconId=m.icon_id,
        data=m.data,
        inTrash=m.in_trash or "",
        logo=m.logo,
        bannerUrl=m.banner_url,
        createdAt=m.created_at,
    )


def folder_from_model(m: FolderModel) -> Folder:
    return Folder(
        id=m.id,
        workspaceId=m.workspace_id,
        title=m.title,
        iconId=m.icon_id,
        data=m.data,
        inTrash=m.in_trash or "",
        bannerUrl=m.banner_url,
        createdAt=m.created_at,
    )


def file_from_model(m: FileModel) -> File:
    return File(
        id=m.id,
        folderId=m.folder_id,
        workspaceId=m.workspace_id,
        title=m.title,
        iconId=m.icon_id,
        data=m.data,
        inTrash=m.in_trash or "",
        bannerUrl=m.banner_url,
        createdAt=m.created_at,
    )


def user_from_model(m: UserModel) -> User:
    return User(id=m.id, email=m.email, fullName=m.full_name, avatarUrl=m.avatar_url)


def subscription_from_model(m: SubscriptionModel) -> Subscription:
    return Subscription(
        id=m.id,
        userId=m.user_id,
        status=m.status,
        priceId=m.price_id,
        quantity=m.quantity,
        cancelAtPeriodEnd=bool(m.cancel_at_period_end),
        currentPeriodStart=m.current_period_start,
        currentPeriodEnd=m.current_period_end,
    )


def _entity_columns(entity: Workspace | Folder | File) -> dict[str, Any]:
    return {
        "id": entity.id,
        "title": entity.title,
        "icon_id": entity.iconId,
        "data": entity.data,
        "in_trash": entity.inTrash,
        "banner_url": entity.bannerUrl,
        "created_at": entity.createdAt,
    }


def _ids(values: Iterable[str], field: str) -> list[str]:
    return [validate_id(v, field) for v in values]


class PersistenceService:
    """Async data-access contract over the relational store.

    Calls are coroutines so callers (reconciler, HTTP handlers) suspend on
    them; the SQLAlchemy work itself is synchronous, as in the rest of the
    backend.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        """
        Args:
            session_factory: Session factory to use (the application's by default)
        """
        self._session_factory = session_factory

    def _session(self):
        return get_db_session(self._session_factory)

    # ==================== Workspaces ====================

    @query
    async def get_workspace_details(self, workspace_id: str) -> Workspace:
        validate_id(workspace_id, "workspace_id")
        with self._session() as db:
            workspace = workspace_repository.get_by_id(db, workspace_id)
            if workspace is None:
                raise RecordNotFoundError("Workspace", workspace_id)
            return workspace_from_model(workspace)

    @query
    async def get_private_workspaces(self, user_id: str) -> list[Workspace]:
        validate_id(user_id, "user_id")
        with self._session() as db:
            return [workspace_from_model(w) for w in workspace_repository.get_private(db, user_id)]

    @query
    async def get_collaborating_workspaces(self, user_id: str) -> list[Workspace]:
        validate_id(user_id, "user_id")
        with self._session() as db:
            return [workspace_from_model(w) for w in workspace_repository.get_collaborating(db, user_id)]

    @query
    async def get_shared_workspaces(self, user_id: str) -> list[Workspace]:
        validate_id(user_id, "user_id")
        with self._session() as db:
            return [workspace_from_model(w) for w in workspace_repository.get_shared(db, user_id)]

    @query
    async def create_workspace(self, workspace: Workspace) -> Workspace:
        validate_id(workspace.id, "workspace_id")
        validate_id(workspace.workspaceOwner, "workspace_owner")
        with self._session() as db:
            created = workspace_repository.create(
                db,
                {
                    **_entity_columns(workspace),
                    "workspace_owner": workspace.workspaceOwner,
                    "logo": workspace.logo,
                },
            )
            return workspace_from_model(created)

    @query
    async def update_workspace(self, workspace_id: str, patch: WorkspaceUpdate | dict) -> Workspace:
        validate_id(workspace_id, "workspace_id")
        if isinstance(patch, dict):
            patch = WorkspaceUpdate(**patch)
        with self._session() as db:
            workspace = workspace_repository.get_by_id(db, workspace_id)
            if workspace is None:
                raise RecordNotFoundError("Workspace", workspace_id)
            updated = workspace_repository.update(db, workspace, _columns(patch.changes()))
            return workspace_from_model(updated)

    @query
    async def delete_workspace(self, workspace_id: str) -> str:
        """Hard delete; folders, files and collaborator rows cascade."""
        validate_id(workspace_id, "workspace_id")
        with self._session() as db:
            if not workspace_repository.delete(db, workspace_id):
                raise RecordNotFoundError("Workspace", workspace_id)
        logger.info(f"Deleted workspace {workspace_id}")
        return workspace_id

    @query
    async def get_first_workspace(self, user_id: str) -> Workspace | None:
        """Oldest workspace the user owns, None when they have not set one up."""
        validate_id(user_id, "user_id")
        with self._session() as db:
            workspace = workspace_repository.get_first_for_owner(db, user_id)
            return workspace_from_model(workspace) if workspace is not None else None

    @query
    async def has_workspace_access(self, workspace_id: str, user_id: str) -> bool:
        """True if the user owns or collaborates on the workspace."""
        validate_id(workspace_id, "workspace_id")
        validate_id(user_id, "user_id")
        with self._session() as db:
            workspace = workspace_repository.get_by_id(db, workspace_id)
            if workspace is None:
                raise RecordNotFoundError("Workspace", workspace_id)
            if workspace.workspace_owner == user_id:
                return True
            return collaborator_repository.exists_pair(db, workspace_id, user_id)

    # ==================== Folders ====================

    @query
    async def get_folders(self, workspace_id: str) -> list[Folder]:
        """All folders of a workspace, trashed included, oldest first."""
        validate_id(workspace_id, "workspace_id")
        with self._session() as db:
            return [folder_from_model(f) for f in folder_repository.get_by_workspace(db, workspace_id)]

    @query
    async def get_folder_details(self, folder_id: str) -> Folder:
        validate_id(folder_id, "folder_id")
        with self._session() as db:
            folder = folder_repository.get_by_id(db, folder_id)
            if folder is None:
                raise RecordNotFoundError("Folder", folder_id)
            return folder_from_model(folder)

    @query
    async def create_folder(self, folder: Folder) -> Folder:
        validate_id(folder.id, "folder_id")
        validate_id(folder.workspaceId, "workspace_id")
        with self._session() as db:
            workspace = workspace_repository.get_by_id(db, folder.workspaceId)
            if workspace is None:
                raise ParentStateError(f"Workspace {folder.workspaceId} does not exist")
            if workspace.in_trash:
                raise ParentStateError(f"Workspace {folder.workspaceId} is in trash")
            created = folder_repository.create(
                db,
                {**_entity_columns(folder), "workspace_id": folder.workspaceId},
            )
            return folder_from_model(created)

    @query
    async def update_folder(self, folder_id: str, patch: FolderUpdate | dict) -> Folder:
        validate_id(folder_id, "folder_id")
        if isinstance(patch, dict):
            patch = FolderUpdate(**patch)
        with self._session() as db:
            folder = folder_repository.get_by_id(db, folder_id)
            if folder is None:
                raise RecordNotFoundError("Folder", folder_id)
            return folder_from_model(folder_repository.update(db, folder, _columns(patch.changes())))

    @query
    async def delete_folder(self, folder_id: str) -> str:
        """Hard delete; files of the folder cascade."""
        validate_id(folder_id, "folder_id")
        with self._session() as db:
            if not folder_repository.delete(db, folder_id):
                raise RecordNotFoundError("Folder", folder_id)
        logger.info(f"Deleted folder {folder_id}")
        return folder_id

    # ==================== Files ====================

    @query
    async def get_files(self, folder_id: str) -> list[File]:
        """All files of a folder, trashed included, oldest first."""
        validate_id(folder_id, "folder_id")
        with self._session() as db:
            return [file_from_model(f) for f in file_repository.get_by_folder(db, folder_id)]

    @query
    async def get_file_details(self, file_id: str) -> File:
        validate_id(file_id, "file_id")
        with self._session() as db:
            file = file_repository.get_by_id(db, file_id)
            if file is None:
                raise RecordNotFoundError("File", file_id)
            return file_from_model(file)

    @query
    async def create_file(self, file: File) -> File:
        validate_id(file.id, "file_id")
        validate_id(file.folderId, "folder_id")
        validate_id(file.workspaceId, "workspace_id")
        with self._session() as db:
            folder = folder_repository.get_by_id(db, file.folderId)
            if folder is None:
                raise ParentStateError(f"Folder {file.folderId} does not exist")
            if folder.in_trash:
                raise ParentStateError(f"Folder {file.folderId} is in trash")
            if folder.workspace_id != file.workspaceId:
                raise ParentStateError(
                    f"Folder {file.folderId} belongs to workspace {folder.workspace_id}, not {file.workspaceId}"
                )
            created = file_repository.create(
                db,
                {**_entity_columns(file), "folder_id": file.folderId, "workspace_id": file.workspaceId},
            )
            return file_from_model(created)

    @query
    async def update_file(self, file_id: str, patch: FileUpdate | dict) -> File:
        validate_id(file_id, "file_id")
        if isinstance(patch, dict):
            patch = FileUpdate(**patch)
        with self._session() as db:
            file = file_repository.get_by_id(db, file_id)
            if file is None:
                raise RecordNotFoundError("File", file_id)
            return file_from_model(file_repository.update(db, file, _columns(patch.changes())))

    @query
    async def delete_file(self, file_id: str) -> str:
        validate_id(file_id, "file_id")
        with self._session() as db:
            if not file_repository.delete(db, file_id):
                raise RecordNotFoundError("File", file_id)
        logger.info(f"Deleted file {file_id}")
        return file_id

    # ==================== Collaborators ====================

    @query
    async def get_collaborators(self, workspace_id: str) -> list[User]:
        validate_id(workspace_id, "workspace_id")
        with self._session() as db:
            return [user_from_model(u) for u in collaborator_repository.get_users(db, workspace_id)]

    @query
    async def add_collaborators(self, workspace_id: str, user_ids: Iterable[str]) -> int:
        """Add collaborators; existing pairs are skipped. Returns rows added."""
        validate_id(workspace_id, "workspace_id")
        ids = _ids(user_ids, "user_id")
        with self._session() as db:
            return collaborator_repository.add(db, workspace_id, ids)

    @query
    async def remove_collaborators(self, workspace_id: str, user_ids: Iterable[str]) -> int:
        """Remove collaborators; missing pairs are ignored. Returns rows removed."""
        validate_id(workspace_id, "workspace_id")
        ids = _ids(user_ids, "user_id")
        with self._session() as db:
            return collaborator_repository.remove(db, workspace_id, ids)

    # ==================== Users ====================

    @query
    async def get_user(self, user_id: str) -> User:
        validate_id(user_id, "user_id")
        with self._session() as db:
            user = user_repository.get_by_id(db, user_id)
            if user is None:
                raise RecordNotFoundError("User", user_id)
            return user_from_model(user)

    @query
    async def search_users_by_email(self, prefix: str, limit: int = 20) -> list[User]:
        """Case-insensitive email prefix search."""
        with self._session() as db:
            return [user_from_model(u) for u in user_repository.search_by_email(db, prefix, limit)]

    # ==================== Subscriptions ====================

    @query
    async def get_user_subscription_status(self, user_id: str) -> Subscription:
        validate_id(user_id, "user_id")
        with self._session() as db:
            subscription = subscription_repository.get_by_user(db, user_id)
            if subscription is None:
                raise RecordNotFoundError("Subscription", user_id)
            return subscription_from_model(subscription)
