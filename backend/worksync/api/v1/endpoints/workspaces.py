"""Workspace API endpoints.

Workspaces are addressed by id at /workspaces/{workspace_id}. A workspace the
current user neither owns nor collaborates on is reported as 404.
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from worksync.api.deps import CurrentUser, Persistence, require_workspace_access, unwrap
from worksync.components.workspace.models import (
    CollaboratorsRequest,
    CreateWorkspaceRequest,
    User,
    Workspace,
    WorkspaceUpdate,
)
from worksync.services.identity import trash_marker
from worksync.utils import generate_id, get_logger, get_timestamp_ms

logger = get_logger(__name__)

router = APIRouter()


class WorkspaceListing(BaseModel):
    """Workspaces visible to the current user, by access kind."""

    private: list[Workspace]
    collaborating: list[Workspace]
    shared: list[Workspace]


class CollaboratorChange(BaseModel):
    count: int


@router.get("", response_model=WorkspaceListing)
async def list_workspaces(user: CurrentUser, persistence: Persistence) -> WorkspaceListing:
    """List the workspaces of the current user, oldest first in each group."""
    return WorkspaceListing(
        private=unwrap(await persistence.get_private_workspaces(user.id)),
        collaborating=unwrap(await persistence.get_collaborating_workspaces(user.id)),
        shared=unwrap(await persistence.get_shared_workspaces(user.id)),
    )


@router.post("", response_model=Workspace, status_code=status.HTTP_201_CREATED)
async def create_workspace(request: CreateWorkspaceRequest, user: CurrentUser, persistence: Persistence) -> Workspace:
    """Create a workspace owned by the current user."""
    workspace = Workspace(
        id=generate_id(),
        workspaceOwner=user.id,
        title=request.title,
        iconId=request.iconId,
        logo=request.logo,
        data=request.data,
        createdAt=get_timestamp_ms(),
    )
    created = unwrap(await persistence.create_workspace(workspace))
    logger.info(f"Workspace {created.id} created by {user.id}")
    return created


@router.get("/{workspace_id}", response_model=Workspace)
async def get_workspace(workspace_id: str, user: CurrentUser, persistence: Persistence) -> Workspace:
    await require_workspace_access(workspace_id, user, persistence)
    return unwrap(await persistence.get_workspace_details(workspace_id))


@router.patch("/{workspace_id}", response_model=Workspace)
async def update_workspace(
    workspace_id: str,
    patch: WorkspaceUpdate,
    user: CurrentUser,
    persistence: Persistence,
) -> Workspace:
    """Merge-patch a workspace: only the fields present in the body change."""
    await require_workspace_access(workspace_id, user, persistence)
    return unwrap(await persistence.update_workspace(workspace_id, patch))


@router.post("/{workspace_id}/trash", response_model=Workspace)
async def trash_workspace(workspace_id: str, user: CurrentUser, persistence: Persistence) -> Workspace:
    """Soft-delete a workspace, recording who deleted it."""
    await require_workspace_access(workspace_id, user, persistence)
    patch = WorkspaceUpdate(inTrash=trash_marker(user.email))
    return unwrap(await persistence.update_workspace(workspace_id, patch))


@router.delete("/{workspace_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workspace(workspace_id: str, user: CurrentUser, persistence: Persistence) -> None:
    """Hard-delete a workspace with its folders and files (owner only)."""
    workspace = unwrap(await persistence.get_workspace_details(workspace_id))
    if workspace.workspaceOwner != user.id:
        await require_workspace_access(workspace_id, user, persistence)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the owner can delete a workspace")
    unwrap(await persistence.delete_workspace(workspace_id))


# ==================== Collaborators ====================


@router.get("/{workspace_id}/collaborators", response_model=list[User])
async def list_collaborators(workspace_id: str, user: CurrentUser, persistence: Persistence) -> list[User]:
    await require_workspace_access(workspace_id, user, persistence)
    return unwrap(await persistence.get_collaborators(workspace_id))


@router.post("/{workspace_id}/collaborators", response_model=CollaboratorChange)
async def add_collaborators(
    workspace_id: str,
    request: CollaboratorsRequest,
    user: CurrentUser,
    persistence: Persistence,
) -> CollaboratorChange:
    """Add collaborators; users already collaborating are skipped."""
    await require_workspace_access(workspace_id, user, persistence)
    return CollaboratorChange(count=unwrap(await persistence.add_collaborators(workspace_id, request.userIds)))


@router.delete("/{workspace_id}/collaborators", response_model=CollaboratorChange)
async def remove_collaborators(
    workspace_id: str,
    request: CollaboratorsRequest,
    user: CurrentUser,
    persistence: Persistence,
) -> CollaboratorChange:
    """Remove collaborators; users not collaborating are ignored."""
    await require_workspace_access(workspace_id, user, persistence)
    return CollaboratorChange(count=unwrap(await persistence.remove_collaborators(workspace_id, request.userIds)))
