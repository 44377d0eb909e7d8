"""Tests for the WorkspaceSession lifecycle."""

import pytest

from worksync.components.workspace.keys import NodeKey
from worksync.components.workspace.models import File, Folder, Workspace
from worksync.components.workspace.notifications import NotificationLog
from worksync.components.workspace.selectors import find_folder, list_non_trashed_children
from worksync.components.workspace.session import WorkspaceSession
from worksync.services.persistence import ErrorKind
from worksync.services.realtime import PresenceService
from worksync.utils import generate_id

from fakes import ACTOR, FakePersistence, settle


@pytest.fixture
def presence(redis_cache) -> PresenceService:
    return PresenceService(redis_cache, ttl_seconds=30)


async def seed(persistence, owner):
    """Workspace -> folder -> file persisted for the owner."""
    workspace = Workspace(id=generate_id(), title="Acme", workspaceOwner=owner.id, createdAt=1)
    folder = Folder(id=generate_id(), workspaceId=workspace.id, title="Untitled", createdAt=2)
    file = File(id=generate_id(), workspaceId=workspace.id, folderId=folder.id, title="Untitled", createdAt=3)
    assert (await persistence.create_workspace(workspace)).ok
    assert (await persistence.create_folder(folder)).ok
    assert (await persistence.create_file(file)).ok
    return workspace, folder, file


class TestWorkspaceSession:
    @pytest.mark.asyncio
    async def test_browse_and_edit_against_database(self, persistence, owner, presence):
        workspace, folder, file = await seed(persistence, owner)

        async with WorkspaceSession(owner, persistence, notifier=NotificationLog(), presence=presence) as session:
            assert [w.id for w in session.state.workspaces] == [workspace.id]

            assert (await session.open_workspace(workspace.id)).ok
            assert session.state.current_workspace_id == workspace.id
            assert owner.id in presence.list(workspace.id)

            assert (await session.open_folder(folder.id)).ok
            assert [f.id for f in list_non_trashed_children(session.state, workspace.id, folder.id)] == [file.id]

            editor = session.title_editor(NodeKey.for_folder(workspace.id, folder.id))
            editor.start_editing()
            editor.change("Specs")
            assert (await editor.finish_editing()).ok

            assert (await session.reconciler.trash_file(workspace.id, folder.id, file.id)).ok
            assert list_non_trashed_children(session.state, workspace.id, folder.id) == ()

        assert (await persistence.get_folder_details(folder.id)).data.title == "Specs"
        assert (await persistence.get_file_details(file.id)).data.inTrash == f"Deleted by {owner.email}"
        assert presence.list(workspace.id) == {}

    @pytest.mark.asyncio
    async def test_failed_persist_rolls_back_local_tree(self, persistence, owner):
        workspace, folder, _ = await seed(persistence, owner)
        session = WorkspaceSession(owner, persistence, strategy="rollback")
        await session.start()
        await session.open_workspace(workspace.id)

        # the folder disappears from the database behind the session
        await persistence.delete_folder(folder.id)
        result = await session.reconciler.rename_folder(workspace.id, folder.id, "Gone")
        assert result.kind == ErrorKind.not_found
        assert find_folder(session.state, workspace.id, folder.id).title == "Untitled"
        await session.close()

    @pytest.mark.asyncio
    async def test_refetch_replaces_local_listing(self, persistence, owner):
        workspace, folder, _ = await seed(persistence, owner)
        session = WorkspaceSession(owner, persistence, strategy="refetch")
        await session.start()
        await session.open_workspace(workspace.id)

        await persistence.delete_folder(folder.id)
        await session.reconciler.rename_folder(workspace.id, folder.id, "Gone")
        assert find_folder(session.state, workspace.id, folder.id) is None
        await session.close()

    @pytest.mark.asyncio
    async def test_open_folder_needs_workspace(self):
        session = WorkspaceSession(ACTOR, FakePersistence())
        result = await session.open_folder("fo1")
        assert result.kind == ErrorKind.validation

    @pytest.mark.asyncio
    async def test_close_cancels_submitted_requests(self):
        fake = FakePersistence(manual=True)
        session = WorkspaceSession(ACTOR, fake)
        task = session.submit(session.reconciler.create_workspace("Acme"))
        await settle()
        assert len(session.state.workspaces) == 1

        await session.close()
        assert task.cancelled()
        with pytest.raises(RuntimeError):
            session.submit(session.reconciler.create_workspace("Late"))

    @pytest.mark.asyncio
    async def test_switching_workspace_moves_presence(self, persistence, owner, presence):
        first, _, _ = await seed(persistence, owner)
        second, _, _ = await seed(persistence, owner)
        session = WorkspaceSession(owner, persistence, presence=presence)
        await session.start()

        await session.open_workspace(first.id)
        await session.open_workspace(second.id)
        assert presence.list(first.id) == {}
        assert owner.id in presence.list(second.id)
        await session.close()
