"""Read accessors over AppState.

Pure functions; nothing here is stored. Lookups return None for ids not in
the tree, listings return tuples in tree order.
"""

from worksync.components.workspace.models import Entity, File, FolderNode, WorkspaceNode
from worksync.components.workspace.state import AppState


def find_workspace(state: AppState, workspace_id: str) -> WorkspaceNode | None:
    for workspace in state.workspaces:
        if workspace.id == workspace_id:
            return workspace
    return None


def find_folder(state: AppState, workspace_id: str, folder_id: str) -> FolderNode | None:
    workspace = find_workspace(state, workspace_id)
    if workspace is None:
        return None
    for folder in workspace.folders:
        if folder.id == folder_id:
            return folder
    return None


def find_file(state: AppState, workspace_id: str, folder_id: str, file_id: str) -> File | None:
    folder = find_folder(state, workspace_id, folder_id)
    if folder is None:
        return None
    for file in folder.files:
        if file.id == file_id:
            return file
    return None


def current_workspace(state: AppState) -> WorkspaceNode | None:
    if state.current_workspace_id is None:
        return None
    return find_workspace(state, state.current_workspace_id)


def current_folder(state: AppState) -> FolderNode | None:
    if state.current_workspace_id is None or state.current_folder_id is None:
        return None
    return find_folder(state, state.current_workspace_id, state.current_folder_id)


def _active(nodes) -> tuple:
    return tuple(node for node in nodes if not node.is_trashed)


def _trashed(nodes) -> tuple:
    return tuple(node for node in nodes if node.is_trashed)


def list_non_trashed_children(
    state: AppState,
    workspace_id: str | None = None,
    folder_id: str | None = None,
) -> tuple[Entity, ...]:
    """Children of a node whose trash marker is empty.

    - no ids: the workspaces
    - workspace_id: the folders of that workspace
    - workspace_id and folder_id: the files of that folder

    An unknown parent yields an empty tuple.

    Raises:
        ValueError: If folder_id is given without workspace_id
    """
    if workspace_id is None:
        if folder_id is not None:
            raise ValueError("folder_id requires workspace_id")
        return _active(state.workspaces)
    if folder_id is None:
        workspace = find_workspace(state, workspace_id)
        return _active(workspace.folders) if workspace else ()
    folder = find_folder(state, workspace_id, folder_id)
    return _active(folder.files) if folder else ()


def list_active_workspaces(state: AppState) -> tuple[WorkspaceNode, ...]:
    return _active(state.workspaces)


def list_active_folders(state: AppState, workspace_id: str) -> tuple[FolderNode, ...]:
    return list_non_trashed_children(state, workspace_id)  # type: ignore[return-value]


def list_active_files(state: AppState, workspace_id: str, folder_id: str) -> tuple[File, ...]:
    return list_non_trashed_children(state, workspace_id, folder_id)  # type: ignore[return-value]


def list_trashed_folders(state: AppState, workspace_id: str) -> tuple[FolderNode, ...]:
    """Trashed folders of a workspace (the trash view)."""
    workspace = find_workspace(state, workspace_id)
    return _trashed(workspace.folders) if workspace else ()


def list_trashed_files(state: AppState, workspace_id: str) -> tuple[File, ...]:
    """Trashed files anywhere in a workspace, including under trashed folders."""
    workspace = find_workspace(state, workspace_id)
    if workspace is None:
        return ()
    return tuple(file for folder in workspace.folders for file in folder.files if file.is_trashed)
