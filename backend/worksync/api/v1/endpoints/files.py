"""File API endpoints.

Files are addressed by their full ancestry:
/workspaces/{workspace_id}/folders/{folder_id}/files/{file_id}.
"""

from fastapi import APIRouter, HTTPException, status

from worksync.api.deps import CurrentUser, Persistence, require_workspace_access, unwrap
from worksync.api.v1.endpoints.folders import get_folder_in_workspace
from worksync.components.workspace.models import CreateFileRequest, File, FileUpdate
from worksync.services.identity import trash_marker
from worksync.services.persistence import PersistenceService
from worksync.utils import generate_id, get_timestamp_ms

router = APIRouter()


async def get_file_in_folder(persistence: PersistenceService, workspace_id: str, folder_id: str, file_id: str) -> File:
    file = unwrap(await persistence.get_file_details(file_id))
    if file.folderId != folder_id or file.workspaceId != workspace_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File {file_id} not found")
    return file


@router.get("", response_model=list[File])
async def list_files(
    workspace_id: str,
    folder_id: str,
    user: CurrentUser,
    persistence: Persistence,
    include_trashed: bool = True,
) -> list[File]:
    """List the files of a folder, oldest first."""
    await require_workspace_access(workspace_id, user, persistence)
    await get_folder_in_workspace(persistence, workspace_id, folder_id)
    files = unwrap(await persistence.get_files(folder_id))
    if not include_trashed:
        files = [f for f in files if not f.is_trashed]
    return files


@router.post("", response_model=File, status_code=status.HTTP_201_CREATED)
async def create_file(
    workspace_id: str,
    folder_id: str,
    request: CreateFileRequest,
    user: CurrentUser,
    persistence: Persistence,
) -> File:
    await require_workspace_access(workspace_id, user, persistence)
    await get_folder_in_workspace(persistence, workspace_id, folder_id)
    file = File(
        id=generate_id(),
        folderId=folder_id,
        workspaceId=workspace_id,
        title=request.title,
        iconId=request.iconId,
        createdAt=get_timestamp_ms(),
    )
    return unwrap(await persistence.create_file(file))


@router.get("/{file_id}", response_model=File)
async def get_file(
    workspace_id: str,
    folder_id: str,
    file_id: str,
    user: CurrentUser,
    persistence: Persistence,
) -> File:
    await require_workspace_access(workspace_id, user, persistence)
    return await get_file_in_folder(persistence, workspace_id, folder_id, file_id)


@router.patch("/{file_id}", response_model=File)
async def update_file(
    workspace_id: str,
    folder_id: str,
    file_id: str,
    patch: FileUpdate,
    user: CurrentUser,
    persistence: Persistence,
) -> File:
    await require_workspace_access(workspace_id, user, persistence)
    await get_file_in_folder(persistence, workspace_id, folder_id, file_id)
    return unwrap(await persistence.update_file(file_id, patch))


@router.post("/{file_id}/trash", response_model=File)
async def trash_file(
    workspace_id: str,
    folder_id: str,
    file_id: str,
    user: CurrentUser,
    persistence: Persistence,
) -> File:
    await require_workspace_access(workspace_id, user, persistence)
    await get_file_in_folder(persistence, workspace_id, folder_id, file_id)
    return unwrap(await persistence.update_file(file_id, FileUpdate(inTrash=trash_marker(user.email))))


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    workspace_id: str,
    folder_id: str,
    file_id: str,
    user: CurrentUser,
    persistence: Persistence,
) -> None:
    await require_workspace_access(workspace_id, user, persistence)
    await get_file_in_folder(persistence, workspace_id, folder_id, file_id)
    unwrap(await persistence.delete_file(file_id))
