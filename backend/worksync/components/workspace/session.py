"""Per-actor session: store, reconciler and request scope with one lifecycle.

Usage:
    async with WorkspaceSession(actor, PersistenceService()) as session:
        await session.open_workspace(workspace_id)
        session.submit(session.reconciler.create_folder(workspace_id))
"""

from collections.abc import Coroutine
from typing import Any

from worksync.components.workspace.actions import SetCurrentFolder, SetCurrentWorkspace
from worksync.components.workspace.editing import TitleEditor
from worksync.components.workspace.keys import NodeKey
from worksync.components.workspace.models import User
from worksync.components.workspace.notifications import Notifier
from worksync.components.workspace.reconciler import DivergenceStrategy, Reconciler, RequestScope
from worksync.components.workspace.state import WorkspaceStore
from worksync.services.persistence import ErrorKind, PersistenceService, QueryResult
from worksync.services.realtime import ChangeFeed, PresenceService
from worksync.utils import get_logger

logger = get_logger(__name__)


class WorkspaceSession:
    """Everything one signed-in actor needs to browse and edit the tree."""

    def __init__(
        self,
        actor: User,
        persistence: PersistenceService,
        notifier: Notifier | None = None,
        strategy: DivergenceStrategy | str | None = None,
        change_feed: ChangeFeed | None = None,
        presence: PresenceService | None = None,
    ):
        self.actor = actor
        self.store = WorkspaceStore()
        self.scope = RequestScope()
        self.presence = presence
        self.reconciler = Reconciler(
            self.store,
            persistence,
            actor,
            notifier=notifier,
            strategy=strategy,
            change_feed=change_feed,
            background=self.scope,
        )

    @property
    def state(self):
        return self.store.state

    async def start(self) -> QueryResult:
        """Load the actor's workspaces into the store (once)."""
        result = await self.reconciler.load_workspaces()
        if result.ok:
            logger.info(f"Session started for {self.actor.email} with {len(self.store.state.workspaces)} workspace(s)")
        return result

    async def open_workspace(self, workspace_id: str) -> QueryResult:
        """Navigate to a workspace and load its folders."""
        previous = self.store.state.current_workspace_id
        if previous is not None and previous != workspace_id and self.presence is not None:
            self.presence.leave(previous, self.actor.id)

        self.store.dispatch(SetCurrentWorkspace(workspace_id))
        self.store.dispatch(SetCurrentFolder(None))
        result = await self.reconciler.load_folders(workspace_id)
        if result.ok and self.presence is not None:
            self.presence.join(workspace_id, self.actor)
        return result

    async def open_folder(self, folder_id: str) -> QueryResult:
        """Navigate to a folder of the current workspace and load its files."""
        workspace_id = self.store.state.current_workspace_id
        if workspace_id is None:
            return QueryResult.failure("No workspace selected", ErrorKind.validation)
        self.store.dispatch(SetCurrentFolder(folder_id))
        return await self.reconciler.load_files(workspace_id, folder_id)

    def submit(self, coro: Coroutine[Any, Any, Any]):
        """Run a reconciler operation in the background, owned by this session."""
        return self.scope.spawn(coro)

    def title_editor(self, key: NodeKey) -> TitleEditor:
        return TitleEditor(self.store, self.reconciler, key)

    async def close(self) -> None:
        """Cancel in-flight requests and leave presence."""
        await self.scope.aclose()
        workspace_id = self.store.state.current_workspace_id
        if workspace_id is not None and self.presence is not None:
            self.presence.leave(workspace_id, self.actor.id)
        logger.info(f"Session closed for {self.actor.email}")

    async def __aenter__(self) -> "WorkspaceSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
