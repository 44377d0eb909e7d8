"""Store actions.

The closed set of mutations accepted by `WorkspaceStore.dispatch`. Each
action is an immutable value; the reducer handles every type in
`ACTION_TYPES` and nothing else.
"""

from dataclasses import dataclass
from typing import Union

from worksync.components.workspace.models import (
    File,
    FileUpdate,
    Folder,
    FolderUpdate,
    Workspace,
    WorkspaceUpdate,
)


def _coerce_patch(action, model_cls) -> None:
    """Accept plain dicts as patches and validate them into the update model."""
    if isinstance(action.patch, dict):
        object.__setattr__(action, "patch", model_cls(**action.patch))
    elif not isinstance(action.patch, model_cls):
        raise TypeError(f"{type(action).__name__}.patch must be a {model_cls.__name__} or dict")


# ==================== Workspaces ====================


@dataclass(frozen=True)
class SetWorkspaces:
    """Replace the whole workspace list."""

    workspaces: tuple[Workspace, ...]

    def __post_init__(self):
        object.__setattr__(self, "workspaces", tuple(self.workspaces))


@dataclass(frozen=True)
class AddWorkspace:
    """Insert a workspace, appended unless `position` names its list index."""

    workspace: Workspace
    position: int | None = None


@dataclass(frozen=True)
class UpdateWorkspace:
    workspace_id: str
    patch: WorkspaceUpdate

    def __post_init__(self):
        _coerce_patch(self, WorkspaceUpdate)


@dataclass(frozen=True)
class DeleteWorkspace:
    """Remove a workspace with all its folders and files."""

    workspace_id: str


# ==================== Folders ====================


@dataclass(frozen=True)
class SetFolders:
    workspace_id: str
    folders: tuple[Folder, ...]

    def __post_init__(self):
        object.__setattr__(self, "folders", tuple(self.folders))


@dataclass(frozen=True)
class AddFolder:
    workspace_id: str
    folder: Folder


@dataclass(frozen=True)
class UpdateFolder:
    workspace_id: str
    folder_id: str
    patch: FolderUpdate

    def __post_init__(self):
        _coerce_patch(self, FolderUpdate)


@dataclass(frozen=True)
class DeleteFolder:
    workspace_id: str
    folder_id: str


# ==================== Files ====================


@dataclass(frozen=True)
class SetFiles:
    workspace_id: str
    folder_id: str
    files: tuple[File, ...]

    def __post_init__(self):
        object.__setattr__(self, "files", tuple(self.files))


@dataclass(frozen=True)
class AddFile:
    workspace_id: str
    folder_id: str
    file: File


@dataclass(frozen=True)
class UpdateFile:
    workspace_id: str
    folder_id: str
    file_id: str
    patch: FileUpdate

    def __post_init__(self):
        _coerce_patch(self, FileUpdate)


@dataclass(frozen=True)
class DeleteFile:
    workspace_id: str
    folder_id: str
    file_id: str


# ==================== Navigation ====================


@dataclass(frozen=True)
class SetCurrentWorkspace:
    workspace_id: str | None


@dataclass(frozen=True)
class SetCurrentFolder:
    folder_id: str | None


Action = Union[
    SetWorkspaces,
    AddWorkspace,
    UpdateWorkspace,
    DeleteWorkspace,
    SetFolders,
    AddFolder,
    UpdateFolder,
    DeleteFolder,
    SetFiles,
    AddFile,
    UpdateFile,
    DeleteFile,
    SetCurrentWorkspace,
    SetCurrentFolder,
]

ACTION_TYPES: tuple[type, ...] = Action.__args__
