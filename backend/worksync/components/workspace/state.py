"""Hierarchical state store.

Holds the in-memory tree of workspaces -> folders -> files visible to the
current actor, plus the navigation context (current workspace and folder).

The tree is immutable. `reduce(state, action)` is a pure, synchronous
function returning the next state; `WorkspaceStore` owns the current state
for one session and is the single mutation entry point.

Tree rules enforced by the reducer:
- every folder sits under the workspace named by its `workspaceId`
- every file sits under the folder named by its `folderId`, inside the
  workspace named by its `workspaceId`
- an action addressing a missing parent, or inserting an id that already
  exists, is a logged no-op and returns the state unchanged
- deleting a node removes its whole subtree and clears navigation context
  pointing into it
"""

from collections.abc import Callable, Iterable
from typing import TypeVar

from pydantic import BaseModel, ConfigDict

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
from worksync.components.workspace.models import File, Folder, FolderNode, Workspace, WorkspaceNode
from worksync.utils import get_logger

logger = get_logger(__name__)

NodeT = TypeVar("NodeT", bound=BaseModel)


class AppState(BaseModel):
    """Snapshot of the local tree and navigation context."""

    model_config = ConfigDict(frozen=True)

    workspaces: tuple[WorkspaceNode, ...] = ()
    current_workspace_id: str | None = None
    current_folder_id: str | None = None


# ==================== Node helpers ====================


def as_workspace_node(workspace: Workspace, folders: Iterable[FolderNode] | None = None) -> WorkspaceNode:
    """Wrap a workspace as a tree node, keeping children it already carries."""
    if isinstance(workspace, WorkspaceNode):
        return workspace if folders is None else workspace.model_copy(update={"folders": tuple(folders)})
    return WorkspaceNode(**workspace.model_dump(), folders=tuple(folders or ()))


def as_folder_node(folder: Folder, files: Iterable[File] | None = None) -> FolderNode:
    """Wrap a folder as a tree node, keeping children it already carries."""
    if isinstance(folder, FolderNode):
        return folder if files is None else folder.model_copy(update={"files": tuple(files)})
    return FolderNode(**folder.model_dump(), files=tuple(files or ()))


def as_file(file: File) -> File:
    """Files are leaves; subclasses are narrowed to plain File."""
    if type(file) is File:
        return file
    return File(**file.model_dump(include=set(File.model_fields)))


def _index(nodes: Iterable[NodeT], node_id: str) -> int:
    for i, node in enumerate(nodes):
        if node.id == node_id:
            return i
    return -1


def _by_created_at(nodes: Iterable[NodeT]) -> tuple[NodeT, ...]:
    return tuple(sorted(nodes, key=lambda n: n.createdAt))


def _dedupe(nodes: Iterable[NodeT], what: str) -> list[NodeT]:
    seen: set[str] = set()
    result = []
    for node in nodes:
        if node.id in seen:
            logger.warning(f"Dropping duplicate {what} {node.id}")
            continue
        seen.add(node.id)
        result.append(node)
    return result


def _owned_files(folder: Folder, files: Iterable[File], action_name: str) -> tuple[File, ...]:
    """Files that belong to `folder`; strays are logged and skipped."""
    kept = []
    for file in _dedupe(files, "file"):
        if file.folderId != folder.id or file.workspaceId != folder.workspaceId:
            logger.warning(
                f"{action_name}: file {file.id} addresses {file.workspaceId}/{file.folderId}, "
                f"not {folder.workspaceId}/{folder.id}, skipping"
            )
            continue
        kept.append(as_file(file))
    return tuple(kept)


def _checked_folder(folder: Folder, action_name: str, files: Iterable[File] | None = None) -> FolderNode:
    """Folder node whose carried (or given) files all belong to it."""
    node = as_folder_node(folder)
    return node.model_copy(update={"files": _owned_files(node, node.files if files is None else files, action_name)})


def _owned_folders(workspace_id: str, folders: Iterable[Folder], action_name: str) -> list[Folder]:
    """Folders that belong to the workspace; strays are logged and skipped."""
    kept = []
    for folder in _dedupe(folders, "folder"):
        if folder.workspaceId != workspace_id:
            logger.warning(
                f"{action_name}: folder {folder.id} belongs to {folder.workspaceId}, not {workspace_id}, skipping"
            )
            continue
        kept.append(folder)
    return kept


def _checked_workspace(
    workspace: Workspace,
    action_name: str,
    folders: Iterable[FolderNode] | None = None,
) -> WorkspaceNode:
    """Workspace node whose carried (or given) subtree all belongs to it."""
    node = as_workspace_node(workspace)
    carried = node.folders if folders is None else folders
    checked = tuple(_checked_folder(f, action_name) for f in _owned_folders(node.id, carried, action_name))
    return node.model_copy(update={"folders": checked})


def _replace_at(nodes: tuple[NodeT, ...], index: int, node: NodeT) -> tuple[NodeT, ...]:
    return nodes[:index] + (node,) + nodes[index + 1 :]


def _remove_at(nodes: tuple[NodeT, ...], index: int) -> tuple[NodeT, ...]:
    return nodes[:index] + nodes[index + 1 :]


def _with_workspace(
    state: AppState,
    workspace_id: str,
    change: Callable[[WorkspaceNode], WorkspaceNode | None],
    action_name: str,
) -> AppState:
    """Apply `change` to one workspace; `change` returns None for a no-op."""
    index = _index(state.workspaces, workspace_id)
    if index < 0:
        logger.warning(f"{action_name}: workspace {workspace_id} not in tree, ignoring")
        return state
    updated = change(state.workspaces[index])
    if updated is None:
        return state
    return state.model_copy(update={"workspaces": _replace_at(state.workspaces, index, updated)})


def _with_folder(
    state: AppState,
    workspace_id: str,
    folder_id: str,
    change: Callable[[FolderNode], FolderNode | None],
    action_name: str,
) -> AppState:
    """Apply `change` to one folder of one workspace."""

    def change_workspace(workspace: WorkspaceNode) -> WorkspaceNode | None:
        index = _index(workspace.folders, folder_id)
        if index < 0:
            logger.warning(f"{action_name}: folder {folder_id} not in workspace {workspace_id}, ignoring")
            return None
        updated = change(workspace.folders[index])
        if updated is None:
            return None
        return workspace.model_copy(update={"folders": _replace_at(workspace.folders, index, updated)})

    return _with_workspace(state, workspace_id, change_workspace, action_name)


# ==================== Reducer ====================

_REDUCERS: dict[type, Callable[[AppState, Action], AppState]] = {}


def _handles(action_type: type):
    def register(func):
        _REDUCERS[action_type] = func
        return func

    return register


@_handles(SetWorkspaces)
def _set_workspaces(state: AppState, action: SetWorkspaces) -> AppState:
    loaded = {w.id: w.folders for w in state.workspaces}
    nodes = []
    for workspace in _dedupe(action.workspaces, "workspace"):
        if isinstance(workspace, WorkspaceNode) and workspace.folders:
            nodes.append(_checked_workspace(workspace, "SetWorkspaces"))
        else:
            nodes.append(_checked_workspace(workspace, "SetWorkspaces", loaded.get(workspace.id, ())))
    ids = {n.id for n in nodes}
    update = {"workspaces": tuple(nodes)}
    if state.current_workspace_id is not None and state.current_workspace_id not in ids:
        update.update(current_workspace_id=None, current_folder_id=None)
    return state.model_copy(update=update)


@_handles(AddWorkspace)
def _add_workspace(state: AppState, action: AddWorkspace) -> AppState:
    if _index(state.workspaces, action.workspace.id) >= 0:
        logger.warning(f"AddWorkspace: workspace {action.workspace.id} already in tree, ignoring")
        return state
    node = _checked_workspace(action.workspace, "AddWorkspace")
    position = len(state.workspaces) if action.position is None else max(0, action.position)
    workspaces = state.workspaces[:position] + (node,) + state.workspaces[position:]
    return state.model_copy(update={"workspaces": workspaces})


@_handles(UpdateWorkspace)
def _update_workspace(state: AppState, action: UpdateWorkspace) -> AppState:
    changes = action.patch.changes()
    return _with_workspace(
        state,
        action.workspace_id,
        lambda w: w.model_copy(update=changes),
        "UpdateWorkspace",
    )


@_handles(DeleteWorkspace)
def _delete_workspace(state: AppState, action: DeleteWorkspace) -> AppState:
    index = _index(state.workspaces, action.workspace_id)
    if index < 0:
        logger.warning(f"DeleteWorkspace: workspace {action.workspace_id} not in tree, ignoring")
        return state
    update = {"workspaces": _remove_at(state.workspaces, index)}
    if state.current_workspace_id == action.workspace_id:
        update.update(current_workspace_id=None, current_folder_id=None)
    elif state.current_folder_id is not None and _index(
        state.workspaces[index].folders, state.current_folder_id
    ) >= 0:
        update["current_folder_id"] = None
    return state.model_copy(update=update)


@_handles(SetFolders)
def _set_folders(state: AppState, action: SetFolders) -> AppState:
    def change(workspace: WorkspaceNode) -> WorkspaceNode:
        loaded = {f.id: f.files for f in workspace.folders}
        nodes = []
        for folder in _owned_folders(workspace.id, action.folders, "SetFolders"):
            if isinstance(folder, FolderNode) and folder.files:
                nodes.append(_checked_folder(folder, "SetFolders"))
            else:
                nodes.append(_checked_folder(folder, "SetFolders", loaded.get(folder.id, ())))
        return workspace.model_copy(update={"folders": tuple(nodes)})

    next_state = _with_workspace(state, action.workspace_id, change, "SetFolders")
    return _drop_dangling_folder(next_state)


@_handles(AddFolder)
def _add_folder(state: AppState, action: AddFolder) -> AppState:
    folder = action.folder

    def change(workspace: WorkspaceNode) -> WorkspaceNode | None:
        if folder.workspaceId != workspace.id:
            logger.warning(f"AddFolder: folder {folder.id} belongs to {folder.workspaceId}, not {workspace.id}")
            return None
        if _index(workspace.folders, folder.id) >= 0:
            logger.warning(f"AddFolder: folder {folder.id} already in workspace {workspace.id}, ignoring")
            return None
        folders = _by_created_at(workspace.folders + (_checked_folder(folder, "AddFolder"),))
        return workspace.model_copy(update={"folders": folders})

    return _with_workspace(state, action.workspace_id, change, "AddFolder")


@_handles(UpdateFolder)
def _update_folder(state: AppState, action: UpdateFolder) -> AppState:
    changes = action.patch.changes()
    return _with_folder(
        state,
        action.workspace_id,
        action.folder_id,
        lambda f: f.model_copy(update=changes),
        "UpdateFolder",
    )


@_handles(DeleteFolder)
def _delete_folder(state: AppState, action: DeleteFolder) -> AppState:
    def change(workspace: WorkspaceNode) -> WorkspaceNode | None:
        index = _index(workspace.folders, action.folder_id)
        if index < 0:
            logger.warning(f"DeleteFolder: folder {action.folder_id} not in workspace {workspace.id}, ignoring")
            return None
        return workspace.model_copy(update={"folders": _remove_at(workspace.folders, index)})

    next_state = _with_workspace(state, action.workspace_id, change, "DeleteFolder")
    if next_state is not state and next_state.current_folder_id == action.folder_id:
        next_state = next_state.model_copy(update={"current_folder_id": None})
    return next_state


@_handles(SetFiles)
def _set_files(state: AppState, action: SetFiles) -> AppState:
    def change(folder: FolderNode) -> FolderNode:
        return folder.model_copy(update={"files": _owned_files(folder, action.files, "SetFiles")})

    return _with_folder(state, action.workspace_id, action.folder_id, change, "SetFiles")


@_handles(AddFile)
def _add_file(state: AppState, action: AddFile) -> AppState:
    file = action.file

    def change(folder: FolderNode) -> FolderNode | None:
        if file.folderId != folder.id or file.workspaceId != folder.workspaceId:
            logger.warning(
                f"AddFile: file {file.id} addresses {file.workspaceId}/{file.folderId}, "
                f"not {folder.workspaceId}/{folder.id}"
            )
            return None
        if _index(folder.files, file.id) >= 0:
            logger.warning(f"AddFile: file {file.id} already in folder {folder.id}, ignoring")
            return None
        return folder.model_copy(update={"files": _by_created_at(folder.files + (as_file(file),))})

    return _with_folder(state, action.workspace_id, action.folder_id, change, "AddFile")


@_handles(UpdateFile)
def _update_file(state: AppState, action: UpdateFile) -> AppState:
    changes = action.patch.changes()

    def change(folder: FolderNode) -> FolderNode | None:
        index = _index(folder.files, action.file_id)
        if index < 0:
            logger.warning(f"UpdateFile: file {action.file_id} not in folder {folder.id}, ignoring")
            return None
        updated = folder.files[index].model_copy(update=changes)
        return folder.model_copy(update={"files": _replace_at(folder.files, index, updated)})

    return _with_folder(state, action.workspace_id, action.folder_id, change, "UpdateFile")


@_handles(DeleteFile)
def _delete_file(state: AppState, action: DeleteFile) -> AppState:
    def change(folder: FolderNode) -> FolderNode | None:
        index = _index(folder.files, action.file_id)
        if index < 0:
            logger.warning(f"DeleteFile: file {action.file_id} not in folder {folder.id}, ignoring")
            return None
        return folder.model_copy(update={"files": _remove_at(folder.files, index)})

    return _with_folder(state, action.workspace_id, action.folder_id, change, "DeleteFile")


@_handles(SetCurrentWorkspace)
def _set_current_workspace(state: AppState, action: SetCurrentWorkspace) -> AppState:
    return state.model_copy(update={"current_workspace_id": action.workspace_id})


@_handles(SetCurrentFolder)
def _set_current_folder(state: AppState, action: SetCurrentFolder) -> AppState:
    return state.model_copy(update={"current_folder_id": action.folder_id})


def _drop_dangling_folder(state: AppState) -> AppState:
    """Clear current_folder_id if the folder is no longer in the tree."""
    folder_id = state.current_folder_id
    if folder_id is None:
        return state
    for workspace in state.workspaces:
        if _index(workspace.folders, folder_id) >= 0:
            return state
    return state.model_copy(update={"current_folder_id": None})


_missing = set(ACTION_TYPES) - set(_REDUCERS)
if _missing:
    raise RuntimeError(f"No reducer for actions: {sorted(t.__name__ for t in _missing)}")


def reduce(state: AppState, action: Action) -> AppState:
    """Compute the next state for an action.

    Raises:
        TypeError: If the action is not one of ACTION_TYPES
    """
    handler = _REDUCERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {type(action).__name__}")
    return handler(state, action)


# ==================== Store ====================

Listener = Callable[[AppState, Action], None]


class WorkspaceStore:
    """Owns the local tree for one session.

    `dispatch` is synchronous and never suspends. Listeners run after every
    dispatch that changed the state.
    """

    def __init__(self, initial: AppState | None = None):
        self._state = initial or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def is_empty(self) -> bool:
        return not self._state.workspaces

    def dispatch(self, action: Action) -> AppState:
        """Apply an action and return the new state."""
        next_state = reduce(self._state, action)
        if next_state is self._state:
            return next_state
        self._state = next_state
        for listener in list(self._listeners):
            listener(next_state, action)
        return next_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> AppState:
        """The current state; safe to keep since states are immutable."""
        return self._state

    def restore(self, snapshot: AppState) -> None:
        """Replace the state wholesale (used when a session is reset)."""
        self._state = snapshot
