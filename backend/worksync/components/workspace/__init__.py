"""Workspace tree module.

This module holds the in-memory tree of workspaces, folders and files that a
session works on, and the pure functions that read and transform it.

Components:
- models.py: Workspace, Folder, File and their tree nodes, update patches
- actions.py: the closed set of store actions
- state.py: AppState, the reducer and WorkspaceStore
- selectors.py: read accessors over AppState
- keys.py: NodeKey, structured addressing of tree nodes
- notifications.py: user-visible notifications
- editing.py: the title editing state machine
- reconciler.py: optimistic mutations paired with persistence calls
- session.py: WorkspaceSession, the per-actor lifecycle

The reconciler and session depend on the services package; import them from
their modules:
    from worksync.components.workspace.session import WorkspaceSession
"""

from worksync.components.workspace.actions import (
    ACTION_TYPES,
    Action,
    AddFile,
    AddFolder,
    AddWorkspace,
    DeleteFile,
    DeleteFolder,
    DeleteWorkspace,
    SetCurrentFolder,
    SetCurrentWorkspace,
    SetFiles,
    SetFolders,
    SetWorkspaces,
    UpdateFile,
    UpdateFolder,
    UpdateWorkspace,
)
from worksync.components.workspace.keys import NodeKey, NodeKind
from worksync.components.workspace.models import (
    File,
    FileUpdate,
    Folder,
    FolderNode,
    FolderUpdate,
    Subscription,
    User,
    Workspace,
    WorkspaceNode,
    WorkspaceUpdate,
)
from worksync.components.workspace.notifications import Notification, NotificationLog, NotificationVariant
from worksync.components.workspace.selectors import (
    find_file,
    find_folder,
    find_workspace,
    list_non_trashed_children,
)
from worksync.components.workspace.state import AppState, WorkspaceStore, reduce

__all__ = [
    # Models
    "Workspace",
    "Folder",
    "File",
    "WorkspaceNode",
    "FolderNode",
    "WorkspaceUpdate",
    "FolderUpdate",
    "FileUpdate",
    "User",
    "Subscription",
    # Actions
    "Action",
    "ACTION_TYPES",
    "SetWorkspaces",
    "AddWorkspace",
    "UpdateWorkspace",
    "DeleteWorkspace",
    "SetFolders",
    "AddFolder",
    "UpdateFolder",
    "DeleteFolder",
    "SetFiles",
    "AddFile",
    "UpdateFile",
    "DeleteFile",
    "SetCurrentWorkspace",
    "SetCurrentFolder",
    # State
    "AppState",
    "WorkspaceStore",
    "reduce",
    # Selectors
    "find_workspace",
    "find_folder",
    "find_file",
    "list_non_trashed_children",
    # Keys
    "NodeKey",
    "NodeKind",
    # Notifications
    "Notification",
    "NotificationLog",
    "NotificationVariant",
]
