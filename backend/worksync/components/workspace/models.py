"""Workspace data models.

Defines the entities of the workspace tree and its companions:
- Workspace: top-level container owned by one user
- Folder: mid-level container scoped to one workspace
- File: leaf document scoped to one folder
- WorkspaceNode / FolderNode: the same entities carrying their loaded children
- User, Collaborator, Subscription

Entities are immutable; every change produces a new instance via `model_copy`.
Field names follow the wire format used by the dashboard client.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Entity(BaseModel):
    """Fields shared by workspaces, folders and files."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    iconId: str = ""
    data: str | None = None
    # Empty string means active; anything else is the soft-delete provenance
    inTrash: str = ""
    bannerUrl: str | None = None
    createdAt: int

    @property
    def is_trashed(self) -> bool:
        return bool(self.inTrash)


class Workspace(Entity):
    """Workspace model."""

    workspaceOwner: str
    logo: str | None = None


class Folder(Entity):
    """Folder model. `workspaceId` never changes after creation."""

    workspaceId: str


class File(Entity):
    """File model. `workspaceId` always equals the folder's workspace."""

    folderId: str
    workspaceId: str


class FolderNode(Folder):
    """Folder as held in the local tree, with its loaded files."""

    files: tuple[File, ...] = ()


class WorkspaceNode(Workspace):
    """Workspace as held in the local tree, with its loaded folders."""

    folders: tuple[FolderNode, ...] = ()


# Partial updates (shallow merge-patch: only fields explicitly set are applied)


class EntityUpdate(BaseModel):
    """Fields of a workspace, folder or file that may be patched."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = None
    iconId: str | None = None
    data: str | None = None
    inTrash: str | None = None
    bannerUrl: str | None = None

    @model_validator(mode="after")
    def check_required_fields(self) -> "EntityUpdate":
        """title, iconId and inTrash may be changed but never cleared to null."""
        for name in ("title", "iconId", "inTrash"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """The explicitly set fields, as a dict."""
        return self.model_dump(exclude_unset=True)


class WorkspaceUpdate(EntityUpdate):
    """Partial update for a workspace."""

    logo: str | None = None


class FolderUpdate(EntityUpdate):
    """Partial update for a folder."""


class FileUpdate(EntityUpdate):
    """Partial update for a file."""


# Users and access


class User(BaseModel):
    """User model."""

    id: str
    email: str
    fullName: str | None = None
    avatarUrl: str | None = None


class Collaborator(BaseModel):
    """Association granting a user access to a workspace they do not own."""

    workspaceId: str
    userId: str
    createdAt: int


class SubscriptionStatus(str, Enum):
    """Billing status of a subscription."""

    trialing = "trialing"
    active = "active"
    canceled = "canceled"
    incomplete = "incomplete"
    incomplete_expired = "incomplete_expired"
    past_due = "past_due"
    unpaid = "unpaid"


class Subscription(BaseModel):
    """Per-user billing record (read-only input to UI gating)."""

    id: str
    userId: str
    status: SubscriptionStatus | None = None
    priceId: str | None = None
    quantity: int | None = None
    cancelAtPeriodEnd: bool = False
    currentPeriodStart: int
    currentPeriodEnd: int

    @property
    def is_active(self) -> bool:
        return self.status in (SubscriptionStatus.active, SubscriptionStatus.trialing)


class Landing(BaseModel):
    """Where the dashboard sends a signed-in user.

    Users who own a workspace land on the oldest one. Everyone else is sent to
    workspace setup, which shows their subscription (if any) to gate plan
    features.
    """

    setup: bool
    workspaceId: str | None = None
    path: str | None = None
    subscription: Subscription | None = None


# Request models


class CreateWorkspaceRequest(BaseModel):
    """Request to create a new workspace."""

    title: str = Field(..., min_length=1)
    iconId: str = ""
    logo: str | None = None
    data: str | None = None


class CreateFolderRequest(BaseModel):
    """Request to create a new folder."""

    title: str = "Untitled"
    iconId: str = ""


class CreateFileRequest(BaseModel):
    """Request to create a new file."""

    title: str = "Untitled"
    iconId: str = ""


class CollaboratorsRequest(BaseModel):
    """Request to add or remove collaborators."""

    userIds: list[str] = Field(..., min_length=1)
