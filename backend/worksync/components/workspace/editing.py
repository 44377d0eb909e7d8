"""Inline title editing for folders and files.

Idle -> Editing on an explicit start (double click), Editing -> Idle on blur.
While editing, every keystroke is dispatched to the store so the tree shows
the pending title; blur commits it through the reconciler.
"""

from enum import Enum
from typing import TYPE_CHECKING

from worksync.components.workspace.actions import UpdateFile, UpdateFolder
from worksync.components.workspace.keys import NodeKey, NodeKind
from worksync.components.workspace.selectors import find_file, find_folder
from worksync.components.workspace.state import WorkspaceStore
from worksync.utils import get_logger

if TYPE_CHECKING:
    from worksync.components.workspace.reconciler import Reconciler
    from worksync.services.persistence import QueryResult

logger = get_logger(__name__)


class EditState(str, Enum):
    idle = "idle"
    editing = "editing"


class TitleEditor:
    """Title editing state machine for one folder or file node."""

    def __init__(self, store: WorkspaceStore, reconciler: "Reconciler", key: NodeKey):
        if key.kind == NodeKind.workspace:
            raise ValueError("TitleEditor edits folders and files only")
        self.store = store
        self.reconciler = reconciler
        self.key = key
        self.state = EditState.idle
        self.original: str | None = None
        self.pending: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.state == EditState.editing

    def _current_title(self) -> str | None:
        state = self.store.state
        if self.key.kind == NodeKind.folder:
            node = find_folder(state, self.key.workspace_id, self.key.folder_id)
        else:
            node = find_file(state, self.key.workspace_id, self.key.folder_id, self.key.file_id)
        return node.title if node is not None else None

    def _dispatch_title(self, title: str) -> None:
        if self.key.kind == NodeKind.folder:
            self.store.dispatch(UpdateFolder(self.key.workspace_id, self.key.folder_id, {"title": title}))
        else:
            self.store.dispatch(
                UpdateFile(self.key.workspace_id, self.key.folder_id, self.key.file_id, {"title": title})
            )

    def start_editing(self) -> bool:
        """Enter editing. Returns False if the node is not in the tree."""
        if self.is_editing:
            return True
        title = self._current_title()
        if title is None:
            logger.warning(f"Cannot edit {self.key}: not in tree")
            return False
        self.state = EditState.editing
        self.original = title
        self.pending = title
        return True

    def change(self, title: str) -> None:
        """Record a keystroke and show it in the tree."""
        if not self.is_editing:
            raise RuntimeError("change() called while not editing")
        self.pending = title
        self._dispatch_title(title)

    async def finish_editing(self) -> "QueryResult | None":
        """Blur: leave editing and commit the pending title.

        Returns:
            The persistence result, or None when the commit was aborted:
            - the pending title is empty (the original title is put back)
            - the node is gone or its title no longer matches the pending one
            - the title did not change
        """
        if not self.is_editing:
            return None
        self.state = EditState.idle
        pending, original = self.pending, self.original
        self.pending = self.original = None

        current = self._current_title()
        if current is None:
            return None
        if not pending or not pending.strip():
            if original is not None and current != original:
                self._dispatch_title(original)
            return None
        if current != pending or pending == original:
            return None

        key = self.key
        if key.kind == NodeKind.folder:
            return await self.reconciler.rename_folder(key.workspace_id, key.folder_id, pending, previous=original)
        return await self.reconciler.rename_file(
            key.workspace_id, key.folder_id, key.file_id, pending, previous=original
        )

    def cancel(self) -> None:
        """Escape: leave editing and put the original title back."""
        if not self.is_editing:
            return
        self.state = EditState.idle
        if self.original is not None and self._current_title() not in (None, self.original):
            self._dispatch_title(self.original)
        self.pending = self.original = None
