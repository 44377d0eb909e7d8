"""Test doubles shared by the reconciler, editor and session tests."""

import asyncio

from worksync.components.workspace.actions import AddFile, AddFolder, AddWorkspace
from worksync.components.workspace.models import File, Folder, User, Workspace
from worksync.components.workspace.state import WorkspaceStore
from worksync.services.persistence import ErrorKind, QueryResult

FAILED = QueryResult.failure("Error", ErrorKind.persistence)

ACTOR = User(id="u1", email="ann@example.com")


class FakePersistence:
    """Stands in for PersistenceService.

    Automatic mode answers every call at once: a failure for names in
    `failures`, the canned listing for names in `listings`, otherwise the
    first argument echoed back. Manual mode parks every call on a future the
    test resolves.
    """

    def __init__(self, manual: bool = False):
        self.manual = manual
        self.calls: list[tuple[str, tuple]] = []
        self.pending: list[asyncio.Future] = []
        self.failures: set[str] = set()
        self.listings: dict[str, list] = {}

    def __getattr__(self, name: str):
        async def call(*args):
            self.calls.append((name, args))
            if self.manual:
                future = asyncio.get_running_loop().create_future()
                self.pending.append(future)
                return await future
            if name in self.failures:
                return FAILED
            if name in self.listings:
                return QueryResult.success(self.listings[name])
            return QueryResult.success(args[0] if args else None)

        return call


async def settle():
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


def seeded_store() -> WorkspaceStore:
    """Store holding w1 -> fo1 "A" -> fi1 "F"."""
    store = WorkspaceStore()
    store.dispatch(AddWorkspace(Workspace(id="w1", title="Acme", workspaceOwner="u1", createdAt=1)))
    store.dispatch(AddFolder("w1", Folder(id="fo1", workspaceId="w1", title="A", createdAt=1)))
    store.dispatch(AddFile("w1", "fo1", File(id="fi1", workspaceId="w1", folderId="fo1", title="F", createdAt=1)))
    return store
