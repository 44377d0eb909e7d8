"""Reconciliation between the local tree and the persistence service.

Every user operation follows the same sequence:

1. snapshot the store and compute the inverse of the change
2. dispatch the optimistic action (the tree reflects it immediately)
3. await the persistence call
4. on success, notify and announce the change on the change feed
5. on failure, notify and resolve the divergence:
   - rollback: dispatch the inverse actions computed in step 1
   - refetch: reload the authoritative parent listing into the store

Requests for the same entity whose lifetimes overlap form a burst. Failures
inside a burst are notified as they happen, but divergence is resolved once,
by the last request to settle, from the outcomes of all of them (see
`RequestBurst.resolution`). A newer edit that persisted is never undone by
an older failure, and when every racing edit fails the tree returns to the
value from before the first of them.

Cancelling the awaiting task (see `RequestScope`) propagates
`asyncio.CancelledError` out of the operation. The optimistic change stays
in the store, so if the reconciler has a background scope that is still
open, a refetch of the parent listing is spawned on it first.
"""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from worksync.components.workspace.actions import (
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
from worksync.components.workspace.models import (
    Entity,
    File,
    FileUpdate,
    Folder,
    FolderUpdate,
    User,
    Workspace,
    WorkspaceUpdate,
)
from worksync.components.workspace.notifications import (
    Notification,
    NotificationLog,
    NotificationVariant,
    Notifier,
)
from worksync.components.workspace.selectors import find_file, find_folder, find_workspace
from worksync.components.workspace.state import AppState, WorkspaceStore
from worksync.services.identity import trash_marker
from worksync.services.persistence import PersistenceService, QueryResult
from worksync.services.realtime import ChangeEvent, ChangeFeed
from worksync.settings import settings
from worksync.utils import generate_id, get_logger, get_timestamp_ms

logger = get_logger(__name__)

DEFAULT_WORKSPACE_ICON = "💼"
DEFAULT_FOLDER_ICON = "📄"
DEFAULT_FILE_ICON = "📄"
UNTITLED = "Untitled"


class DivergenceStrategy(str, Enum):
    rollback = "rollback"
    refetch = "refetch"


class RequestScope:
    """Owns the in-flight request tasks of one component or session.

    Closing the scope cancels whatever is still running.

    Usage:
        async with RequestScope() as scope:
            scope.spawn(reconciler.rename_folder(ws_id, folder_id, "Notes"))
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Run a coroutine as a task owned by this scope."""
        if self._closed:
            coro.close()
            raise RuntimeError("RequestScope is closed")
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def aclose(self) -> None:
        """Cancel all in-flight tasks and wait for them to finish."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info(f"Cancelled {len(tasks)} in-flight request(s)")
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "RequestScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _inverse_patch(entity: Entity | None, changes: dict[str, Any], previous: dict[str, Any] | None) -> dict | None:
    """Values that undo `changes`, read from the pre-mutation entity."""
    if entity is None:
        return None
    undo = {name: getattr(entity, name) for name in changes}
    if previous:
        undo.update({k: v for k, v in previous.items() if k in changes})
    return undo


# Fields touched by a create or delete: the whole node
WHOLE_NODE = frozenset({"*"})


class Outcome(str, Enum):
    in_flight = "in_flight"
    persisted = "persisted"
    failed = "failed"
    cancelled = "cancelled"


@dataclass
class PendingRequest:
    """One optimistic change awaiting its persistence call."""

    fields: frozenset[str]
    undo: list[Action]
    outcome: Outcome = Outcome.in_flight

    def covers(self, other: "PendingRequest") -> bool:
        """True if this request writes every field `other` wrote."""
        return "*" in self.fields or ("*" not in other.fields and other.fields <= self.fields)


@dataclass
class RequestBurst:
    """Requests for one entity whose lifetimes overlapped, in dispatch order.

    Divergence is resolved once, when the last of them settles, from the
    outcomes of all of them.
    """

    requests: list[PendingRequest] = field(default_factory=list)

    @property
    def settled(self) -> bool:
        return all(r.outcome != Outcome.in_flight for r in self.requests)

    def resolution(self, strategy: DivergenceStrategy) -> DivergenceStrategy | None:
        """How to bring the tree back in line with persistence, None if it already is.

        - nothing failed, or the latest request persisted and overwrote every
          field the others wrote: the tree already matches
        - only a trailing run of requests failed (so whatever persisted came
          before them): their undo actions, applied newest first, restore the
          last persisted values
        - anything else (a persisted write after a failed one on other
          fields, a cancelled request whose write may or may not have landed):
          only the authoritative listing is known to be right
        """
        unconfirmed = [r for r in self.requests if r.outcome != Outcome.persisted]
        if not unconfirmed:
            return None
        latest = self.requests[-1]
        if latest.outcome == Outcome.persisted and all(latest.covers(r) for r in unconfirmed):
            return None
        trailing = self.requests[len(self.requests) - len(unconfirmed) :] == unconfirmed
        if (
            strategy == DivergenceStrategy.rollback
            and trailing
            and all(r.outcome == Outcome.failed for r in unconfirmed)
        ):
            return DivergenceStrategy.rollback
        return DivergenceStrategy.refetch

    def undo_actions(self) -> list[Action]:
        actions: list[Action] = []
        for request in reversed(self.requests):
            if request.outcome == Outcome.failed:
                actions.extend(request.undo)
        return actions


class Reconciler:
    """Pairs store mutations with persistence calls for one actor.

    `background` is the scope that outlives component-level scopes (the
    session's). When a request is cancelled while the store lives on, the
    refetch that settles its entity is spawned there.
    """

    def __init__(
        self,
        store: WorkspaceStore,
        persistence: PersistenceService,
        actor: User,
        notifier: Notifier | None = None,
        strategy: DivergenceStrategy | str | None = None,
        change_feed: ChangeFeed | None = None,
        background: RequestScope | None = None,
    ):
        self.store = store
        self.persistence = persistence
        self.actor = actor
        self.notifier = notifier or NotificationLog()
        self.strategy = DivergenceStrategy(strategy or settings.divergence_strategy)
        self.change_feed = change_feed
        self.background = background
        self._bursts: dict[tuple[str, str], RequestBurst] = {}

    # ==================== Core ====================

    def _notify(self, title: str, description: str, variant: NotificationVariant) -> None:
        self.notifier.notify(Notification(title=title, description=description, variant=variant))

    async def _mutate(
        self,
        key: tuple[str, str],
        optimistic: Action,
        call: Callable[[], Awaitable[QueryResult]],
        inverse: Callable[[AppState], Iterable[Action]],
        refetch: Callable[[], Awaitable[QueryResult]],
        success: str,
        failure: str,
        event: Callable[[QueryResult], ChangeEvent] | None = None,
        fields: Iterable[str] | None = None,
    ) -> QueryResult:
        request = PendingRequest(
            fields=WHOLE_NODE if fields is None else frozenset(fields),
            undo=list(inverse(self.store.snapshot())),
        )
        burst = self._bursts.setdefault(key, RequestBurst())
        burst.requests.append(request)

        self.store.dispatch(optimistic)
        try:
            result = await call()
        except asyncio.CancelledError:
            request.outcome = Outcome.cancelled
            self._settle_cancelled(key, burst, refetch)
            raise

        if result.ok:
            request.outcome = Outcome.persisted
            self._notify("Success", success, NotificationVariant.default)
            if self.change_feed is not None and event is not None:
                self.change_feed.publish(event(result))
        else:
            request.outcome = Outcome.failed
            self._notify("Error", failure, NotificationVariant.destructive)

        if not burst.settled:
            if not result.ok:
                logger.warning(f"{key[0]} {key[1]}: newer request in flight, leaving divergence to it")
            return result
        self._bursts.pop(key, None)

        resolution = burst.resolution(self.strategy)
        if resolution == DivergenceStrategy.rollback:
            logger.warning(f"{key[0]} {key[1]}: rolling back {type(optimistic).__name__}")
            for action in burst.undo_actions():
                self.store.dispatch(action)
        elif resolution == DivergenceStrategy.refetch:
            logger.warning(f"{key[0]} {key[1]}: refetching after failed {type(optimistic).__name__}")
            reloaded = await refetch()
            if not reloaded.ok:
                logger.error(f"{key[0]} {key[1]}: refetch failed, local tree left diverged")
        return result

    def _settle_cancelled(
        self,
        key: tuple[str, str],
        burst: RequestBurst,
        refetch: Callable[[], Awaitable[QueryResult]],
    ) -> None:
        """Settle the burst of a cancelled request without suspending."""
        if not burst.settled:
            return
        self._bursts.pop(key, None)
        if burst.resolution(self.strategy) is None:
            return
        if self.background is None or self.background.closed:
            logger.info(f"{key[0]} {key[1]}: cancelled with the session, nothing to reconcile")
            return
        logger.warning(f"{key[0]} {key[1]}: request cancelled, refetching in the background")
        self.background.spawn(refetch())

    def _event(self, workspace_id: str, entity: str, op: str, entity_id: str, folder_id: str | None = None):
        def build(result: QueryResult) -> ChangeEvent:
            payload = result.data.model_dump() if hasattr(result.data, "model_dump") else None
            return ChangeEvent(
                workspaceId=workspace_id,
                entity=entity,
                op=op,
                entityId=entity_id,
                folderId=folder_id,
                actorId=self.actor.id,
                payload=payload,
            )

        return build

    # ==================== Loads ====================

    async def load_workspaces(self, force: bool = False) -> QueryResult[list[Workspace]]:
        """Load every workspace the actor can see.

        Only fills an empty store unless `force` is set, so repeated calls
        from UI setup code are no-ops.
        """
        if not force and not self.store.is_empty:
            return QueryResult.success(list(self.store.state.workspaces))

        workspaces: list[Workspace] = []
        for fetch in (
            self.persistence.get_private_workspaces,
            self.persistence.get_collaborating_workspaces,
            self.persistence.get_shared_workspaces,
        ):
            result = await fetch(self.actor.id)
            if not result.ok:
                self._notify("Error", "Could not load workspaces", NotificationVariant.destructive)
                return result
            workspaces.extend(result.data)

        if force or self.store.is_empty:
            self.store.dispatch(SetWorkspaces(workspaces))
        return QueryResult.success(workspaces)

    async def load_folders(self, workspace_id: str) -> QueryResult[list[Folder]]:
        result = await self.persistence.get_folders(workspace_id)
        if result.ok:
            self.store.dispatch(SetFolders(workspace_id, result.data))
        return result

    async def load_files(self, workspace_id: str, folder_id: str) -> QueryResult[list[File]]:
        result = await self.persistence.get_files(folder_id)
        if result.ok:
            self.store.dispatch(SetFiles(workspace_id, folder_id, result.data))
        return result

    # ==================== Workspaces ====================

    async def create_workspace(
        self,
        title: str,
        icon_id: str = DEFAULT_WORKSPACE_ICON,
        logo: str | None = None,
    ) -> QueryResult[Workspace]:
        workspace = Workspace(
            id=generate_id(),
            workspaceOwner=self.actor.id,
            title=title,
            iconId=icon_id,
            logo=logo,
            createdAt=get_timestamp_ms(),
        )
        return await self._mutate(
            ("workspace", workspace.id),
            AddWorkspace(workspace),
            lambda: self.persistence.create_workspace(workspace),
            lambda _: [DeleteWorkspace(workspace.id)],
            lambda: self.load_workspaces(force=True),
            success="Workspace created.",
            failure="Could not create your workspace",
            event=self._event(workspace.id, "workspace", "create", workspace.id),
        )

    async def update_workspace(
        self,
        workspace_id: str,
        patch: WorkspaceUpdate | dict,
        previous: dict | None = None,
        success: str = "Workspace updated.",
        failure: str = "Could not update the workspace",
    ) -> QueryResult[Workspace]:
        """Merge-patch a workspace.

        Args:
            workspace_id: Workspace to patch
            patch: Fields to change
            previous: Values to restore on rollback, overriding the ones in the
                store (used when the store already holds an uncommitted edit)
        """
        action = UpdateWorkspace(workspace_id, patch)
        changes = action.patch.changes()

        def inverse(state: AppState) -> list[Action]:
            undo = _inverse_patch(find_workspace(state, workspace_id), changes, previous)
            return [UpdateWorkspace(workspace_id, undo)] if undo is not None else []

        return await self._mutate(
            ("workspace", workspace_id),
            action,
            lambda: self.persistence.update_workspace(workspace_id, action.patch),
            inverse,
            lambda: self.load_workspaces(force=True),
            success=success,
            failure=failure,
            event=self._event(workspace_id, "workspace", "update", workspace_id),
            fields=changes,
        )

    async def rename_workspace(self, workspace_id: str, title: str, previous: str | None = None):
        return await self.update_workspace(
            workspace_id,
            {"title": title},
            previous={"title": previous} if previous is not None else None,
            success="Workspace title changed.",
            failure="Could not update the title for this workspace",
        )

    async def trash_workspace(self, workspace_id: str):
        return await self.update_workspace(
            workspace_id,
            {"inTrash": trash_marker(self.actor.email)},
            success="Moved workspace to trash",
            failure="Could not move the workspace to trash",
        )

    async def restore_workspace(self, workspace_id: str):
        return await self.update_workspace(
            workspace_id,
            {"inTrash": ""},
            success="Workspace restored",
            failure="Could not restore the workspace",
        )

    async def delete_workspace(self, workspace_id: str) -> QueryResult[str]:
        def inverse(state: AppState) -> list[Action]:
            position = next((i for i, w in enumerate(state.workspaces) if w.id == workspace_id), None)
            if position is None:
                return []
            node = state.workspaces[position]
            undo: list[Action] = [AddWorkspace(node, position=position)]
            if state.current_workspace_id == workspace_id:
                undo.append(SetCurrentWorkspace(workspace_id))
            if any(f.id == state.current_folder_id for f in node.folders):
                undo.append(SetCurrentFolder(state.current_folder_id))
            return undo

        return await self._mutate(
            ("workspace", workspace_id),
            DeleteWorkspace(workspace_id),
            lambda: self.persistence.delete_workspace(workspace_id),
            inverse,
            lambda: self.load_workspaces(force=True),
            success="Workspace deleted.",
            failure="Could not delete the workspace",
            event=self._event(workspace_id, "workspace", "delete", workspace_id),
        )

    # ==================== Folders ====================

    async def create_folder(
        self,
        workspace_id: str,
        title: str = UNTITLED,
        icon_id: str = DEFAULT_FOLDER_ICON,
    ) -> QueryResult[Folder]:
        folder = Folder(
            id=generate_id(),
            workspaceId=workspace_id,
            title=title,
            iconId=icon_id,
            createdAt=get_timestamp_ms(),
        )
        return await self._mutate(
            ("folder", folder.id),
            AddFolder(workspace_id, folder),
            lambda: self.persistence.create_folder(folder),
            lambda _: [DeleteFolder(workspace_id, folder.id)],
            lambda: self.load_folders(workspace_id),
            success="Folder created.",
            failure="Could not create the folder",
            event=self._event(workspace_id, "folder", "create", folder.id),
        )

    async def update_folder(
        self,
        workspace_id: str,
        folder_id: str,
        patch: FolderUpdate | dict,
        previous: dict | None = None,
        success: str = "Folder updated.",
        failure: str = "Could not update the folder",
    ) -> QueryResult[Folder]:
        action = UpdateFolder(workspace_id, folder_id, patch)
        changes = action.patch.changes()

        def inverse(state: AppState) -> list[Action]:
            undo = _inverse_patch(find_folder(state, workspace_id, folder_id), changes, previous)
            return [UpdateFolder(workspace_id, folder_id, undo)] if undo is not None else []

        return await self._mutate(
            ("folder", folder_id),
            action,
            lambda: self.persistence.update_folder(folder_id, action.patch),
            inverse,
            lambda: self.load_folders(workspace_id),
            success=success,
            failure=failure,
            event=self._event(workspace_id, "folder", "update", folder_id),
            fields=changes,
        )

    async def rename_folder(self, workspace_id: str, folder_id: str, title: str, previous: str | None = None):
        return await self.update_folder(
            workspace_id,
            folder_id,
            {"title": title},
            previous={"title": previous} if previous is not None else None,
            success="Folder title changed.",
            failure="Could not update the title for this folder",
        )

    async def trash_folder(self, workspace_id: str, folder_id: str):
        return await self.update_folder(
            workspace_id,
            folder_id,
            {"inTrash": trash_marker(self.actor.email)},
            success="Moved folder to trash",
            failure="Could not move the folder to trash",
        )

    async def restore_folder(self, workspace_id: str, folder_id: str):
        return await self.update_folder(
            workspace_id,
            folder_id,
            {"inTrash": ""},
            success="Folder restored",
            failure="Could not restore the folder",
        )

    async def delete_folder(self, workspace_id: str, folder_id: str) -> QueryResult[str]:
        def inverse(state: AppState) -> list[Action]:
            node = find_folder(state, workspace_id, folder_id)
            if node is None:
                return []
            undo: list[Action] = [AddFolder(workspace_id, node)]
            if state.current_folder_id == folder_id:
                undo.append(SetCurrentFolder(folder_id))
            return undo

        return await self._mutate(
            ("folder", folder_id),
            DeleteFolder(workspace_id, folder_id),
            lambda: self.persistence.delete_folder(folder_id),
            inverse,
            lambda: self.load_folders(workspace_id),
            success="Folder deleted.",
            failure="Could not delete the folder",
            event=self._event(workspace_id, "folder", "delete", folder_id),
        )

    # ==================== Files ====================

    async def create_file(
        self,
        workspace_id: str,
        folder_id: str,
        title: str = UNTITLED,
        icon_id: str = DEFAULT_FILE_ICON,
    ) -> QueryResult[File]:
        file = File(
            id=generate_id(),
            folderId=folder_id,
            workspaceId=workspace_id,
            title=title,
            iconId=icon_id,
            createdAt=get_timestamp_ms(),
        )
        return await self._mutate(
            ("file", file.id),
            AddFile(workspace_id, folder_id, file),
            lambda: self.persistence.create_file(file),
            lambda _: [DeleteFile(workspace_id, folder_id, file.id)],
            lambda: self.load_files(workspace_id, folder_id),
            success="File created.",
            failure="Could not create a file",
            event=self._event(workspace_id, "file", "create", file.id, folder_id),
        )

    async def update_file(
        self,
        workspace_id: str,
        folder_id: str,
        file_id: str,
        patch: FileUpdate | dict,
        previous: dict | None = None,
        success: str = "File updated.",
        failure: str = "Could not update the file",
    ) -> QueryResult[File]:
        action = UpdateFile(workspace_id, folder_id, file_id, patch)
        changes = action.patch.changes()

        def inverse(state: AppState) -> list[Action]:
            undo = _inverse_patch(find_file(state, workspace_id, folder_id, file_id), changes, previous)
            return [UpdateFile(workspace_id, folder_id, file_id, undo)] if undo is not None else []

        return await self._mutate(
            ("file", file_id),
            action,
            lambda: self.persistence.update_file(file_id, action.patch),
            inverse,
            lambda: self.load_files(workspace_id, folder_id),
            success=success,
            failure=failure,
            event=self._event(workspace_id, "file", "update", file_id, folder_id),
            fields=changes,
        )

    async def rename_file(
        self,
        workspace_id: str,
        folder_id: str,
        file_id: str,
        title: str,
        previous: str | None = None,
    ):
        return await self.update_file(
            workspace_id,
            folder_id,
            file_id,
            {"title": title},
            previous={"title": previous} if previous is not None else None,
            success="File title changed.",
            failure="Could not update the title for this file",
        )

    async def trash_file(self, workspace_id: str, folder_id: str, file_id: str):
        return await self.update_file(
            workspace_id,
            folder_id,
            file_id,
            {"inTrash": trash_marker(self.actor.email)},
            success="Moved file to trash",
            failure="Could not move the file to trash",
        )

    async def restore_file(self, workspace_id: str, folder_id: str, file_id: str):
        return await self.update_file(
            workspace_id,
            folder_id,
            file_id,
            {"inTrash": ""},
            success="File restored",
            failure="Could not restore the file",
        )

    async def delete_file(self, workspace_id: str, folder_id: str, file_id: str) -> QueryResult[str]:
        def inverse(state: AppState) -> list[Action]:
            file = find_file(state, workspace_id, folder_id, file_id)
            return [AddFile(workspace_id, folder_id, file)] if file is not None else []

        return await self._mutate(
            ("file", file_id),
            DeleteFile(workspace_id, folder_id, file_id),
            lambda: self.persistence.delete_file(file_id),
            inverse,
            lambda: self.load_files(workspace_id, folder_id),
            success="File deleted.",
            failure="Could not delete the file",
            event=self._event(workspace_id, "file", "delete", file_id, folder_id),
        )

    # ==================== Collaborators ====================

    async def add_collaborators(self, workspace_id: str, users: Iterable[User]) -> QueryResult[int]:
        """Share a workspace. The tree is unaffected, so there is nothing to undo."""
        result = await self.persistence.add_collaborators(workspace_id, [u.id for u in users])
        if result.ok:
            self._notify("Success", "Collaborators added.", NotificationVariant.default)
        else:
            self._notify("Error", "Could not add collaborators", NotificationVariant.destructive)
        return result

    async def remove_collaborators(self, workspace_id: str, users: Iterable[User]) -> QueryResult[int]:
        result = await self.persistence.remove_collaborators(workspace_id, [u.id for u in users])
        if result.ok:
            self._notify("Success", "Collaborators removed.", NotificationVariant.default)
        else:
            self._notify("Error", "Could not remove collaborators", NotificationVariant.destructive)
        return result
