"""Folder API endpoints.

Folders are addressed within their workspace:
/workspaces/{workspace_id}/folders/{folder_id}. A folder id that exists but
belongs to another workspace is reported as 404.
"""

from fastapi import APIRouter, HTTPException, status

from worksync.api.deps import CurrentUser, Persistence, require_workspace_access, unwrap
from worksync.components.workspace.models import CreateFolderRequest, Folder, FolderUpdate
from worksync.services.identity import trash_marker
from worksync.services.persistence import PersistenceService
from worksync.utils import generate_id, get_timestamp_ms

router = APIRouter()


async def get_folder_in_workspace(persistence: PersistenceService, workspace_id: str, folder_id: str) -> Folder:
    """Fetch a folder and check it lives in the given workspace."""
    folder = unwrap(await persistence.get_folder_details(folder_id))
    if folder.workspaceId != workspace_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Folder {folder_id} not found")
    return folder


@router.get("", response_model=list[Folder])
async def list_folders(
    workspace_id: str,
    user: CurrentUser,
    persistence: Persistence,
    include_trashed: bool = True,
) -> list[Folder]:
    """List the folders of a workspace, oldest first."""
    await require_workspace_access(workspace_id, user, persistence)
    folders = unwrap(await persistence.get_folders(workspace_id))
    if not include_trashed:
        folders = [f for f in folders if not f.is_trashed]
    return folders


@router.post("", response_model=Folder, status_code=status.HTTP_201_CREATED)
async def create_folder(
    workspace_id: str,
    request: CreateFolderRequest,
    user: CurrentUser,
    persistence: Persistence,
) -> Folder:
    await require_workspace_access(workspace_id, user, persistence)
    folder = Folder(
        id=generate_id(),
        workspaceId=workspace_id,
        title=request.title,
        iconId=request.iconId,
        createdAt=get_timestamp_ms(),
    )
    return unwrap(await persistence.create_folder(folder))


@router.get("/{folder_id}", response_model=Folder)
async def get_folder(workspace_id: str, folder_id: str, user: CurrentUser, persistence: Persistence) -> Folder:
    await require_workspace_access(workspace_id, user, persistence)
    return await get_folder_in_workspace(persistence, workspace_id, folder_id)


@router.patch("/{folder_id}", response_model=Folder)
async def update_folder(
    workspace_id: str,
    folder_id: str,
    patch: FolderUpdate,
    user: CurrentUser,
    persistence: Persistence,
) -> Folder:
    await require_workspace_access(workspace_id, user, persistence)
    await get_folder_in_workspace(persistence, workspace_id, folder_id)
    return unwrap(await persistence.update_folder(folder_id, patch))


@router.post("/{folder_id}/trash", response_model=Folder)
async def trash_folder(workspace_id: str, folder_id: str, user: CurrentUser, persistence: Persistence) -> Folder:
    await require_workspace_access(workspace_id, user, persistence)
    await get_folder_in_workspace(persistence, workspace_id, folder_id)
    return unwrap(await persistence.update_folder(folder_id, FolderUpdate(inTrash=trash_marker(user.email))))


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(workspace_id: str, folder_id: str, user: CurrentUser, persistence: Persistence) -> None:
    """Hard-delete a folder with its files."""
    await require_workspace_access(workspace_id, user, persistence)
    await get_folder_in_workspace(persistence, workspace_id, folder_id)
    unwrap(await persistence.delete_folder(folder_id))
