"""Tests for the workspace tree reducer and WorkspaceStore."""

import itertools
import random

import pytest

from worksync.components.workspace.actions import (
    ACTION_TYPES,
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
from worksync.components.workspace.selectors import (
    find_file,
    find_folder,
    find_workspace,
    list_non_trashed_children,
)
from worksync.components.workspace.state import _REDUCERS, AppState, WorkspaceStore, reduce

_clock = itertools.count(1_700_000_000_000)


def workspace(id: str, title: str = "Acme", **kw) -> Workspace:
    return Workspace(id=id, title=title, workspaceOwner="u1", createdAt=next(_clock), **kw)


def folder(id: str, workspace_id: str, title: str = "Untitled", **kw) -> Folder:
    kw.setdefault("createdAt", next(_clock))
    return Folder(id=id, workspaceId=workspace_id, title=title, **kw)


def file(id: str, workspace_id: str, folder_id: str, title: str = "Untitled", **kw) -> File:
    kw.setdefault("createdAt", next(_clock))
    return File(id=id, workspaceId=workspace_id, folderId=folder_id, title=title, **kw)


@pytest.fixture
def store() -> WorkspaceStore:
    """Store holding w1 -> fo1 -> fi1 and an empty w2."""
    store = WorkspaceStore()
    store.dispatch(AddWorkspace(workspace("w1")))
    store.dispatch(AddWorkspace(workspace("w2", "Other")))
    store.dispatch(AddFolder("w1", folder("fo1", "w1")))
    store.dispatch(AddFile("w1", "fo1", file("fi1", "w1", "fo1")))
    return store


def assert_no_orphans(state: AppState):
    for ws in state.workspaces:
        for fo in ws.folders:
            assert fo.workspaceId == ws.id
            for fi in fo.files:
                assert fi.folderId == fo.id
                assert fi.workspaceId == ws.id


class TestReducerRegistry:
    def test_every_action_has_a_reducer(self):
        assert set(_REDUCERS) == set(ACTION_TYPES)

    def test_unknown_action_rejected(self):
        with pytest.raises(TypeError):
            reduce(AppState(), object())  # type: ignore[arg-type]


class TestAddActions:
    def test_end_to_end_create_workspace_folder_file(self):
        store = WorkspaceStore()
        store.dispatch(AddWorkspace(workspace("w1", "Acme")))
        store.dispatch(AddFolder("w1", folder("fo1", "w1")))
        store.dispatch(AddFile("w1", "fo1", file("fi1", "w1", "fo1")))

        children = list_non_trashed_children(store.state, "w1", "fo1")
        assert [(f.id, f.title) for f in children] == [("fi1", "Untitled")]

    def test_random_add_sequences_leave_no_orphans(self):
        rng = random.Random(7)
        ws_ids = ["w1", "w2", "w3"]
        folder_ids = [f"fo{i}" for i in range(6)]
        for _ in range(50):
            store = WorkspaceStore()
            for i in range(40):
                kind = rng.choice(["ws", "folder", "file"])
                ws_id = rng.choice(ws_ids)
                folder_id = rng.choice(folder_ids)
                if kind == "ws":
                    store.dispatch(AddWorkspace(workspace(ws_id)))
                elif kind == "folder":
                    store.dispatch(AddFolder(ws_id, folder(f"{ws_id}-{folder_id}", ws_id)))
                else:
                    fo_id = f"{ws_id}-{folder_id}"
                    store.dispatch(AddFile(ws_id, fo_id, file(f"file{i}", ws_id, fo_id)))
                assert_no_orphans(store.state)

    def test_add_file_into_missing_folder_is_noop(self, store):
        before = store.state
        after = store.dispatch(AddFile("w1", "missing", file("fi9", "w1", "missing")))
        assert after is before

    def test_add_folder_into_missing_workspace_is_noop(self, store):
        before = store.state
        store.dispatch(AddFolder("nope", folder("fo9", "nope")))
        assert store.state is before

    def test_add_with_mismatched_parent_reference_is_noop(self, store):
        before = store.state
        store.dispatch(AddFolder("w1", folder("fo9", "w2")))
        store.dispatch(AddFile("w1", "fo1", file("fi9", "w2", "fo1")))
        assert store.state is before

    def test_duplicate_ids_are_ignored(self, store):
        before = store.state
        store.dispatch(AddWorkspace(workspace("w1", "Dup")))
        store.dispatch(AddFolder("w1", folder("fo1", "w1", "Dup")))
        store.dispatch(AddFile("w1", "fo1", file("fi1", "w1", "fo1", "Dup")))
        assert store.state is before

    def test_new_folder_starts_with_no_files(self, store):
        store.dispatch(AddFolder("w1", folder("fo2", "w1")))
        assert find_folder(store.state, "w1", "fo2").files == ()

    def test_children_kept_in_creation_order(self, store):
        store.dispatch(AddFolder("w1", folder("late", "w1", createdAt=9_999_999_999_999)))
        store.dispatch(AddFolder("w1", folder("early", "w1", createdAt=1)))
        ids = [f.id for f in find_workspace(store.state, "w1").folders]
        assert ids == ["early", "fo1", "late"]


class TestUpdateActions:
    def test_update_folder_changes_only_given_fields(self, store):
        store.dispatch(AddFolder("w1", folder("fo2", "w1", "Sibling")))
        before_target = find_folder(store.state, "w1", "fo1")
        before_sibling = find_folder(store.state, "w1", "fo2")

        store.dispatch(UpdateFolder("w1", "fo1", {"title": "X"}))

        after_target = find_folder(store.state, "w1", "fo1")
        assert after_target.title == "X"
        assert after_target.model_dump(exclude={"title"}) == before_target.model_dump(exclude={"title"})
        assert find_folder(store.state, "w1", "fo2") == before_sibling

    def test_update_workspace_preserves_folders(self, store):
        folders = find_workspace(store.state, "w1").folders
        store.dispatch(UpdateWorkspace("w1", {"title": "Renamed", "iconId": "🚀"}))
        ws = find_workspace(store.state, "w1")
        assert (ws.title, ws.iconId) == ("Renamed", "🚀")
        assert ws.folders == folders

    def test_update_file(self, store):
        store.dispatch(UpdateFile("w1", "fo1", "fi1", {"bannerUrl": "banner.png"}))
        fi = find_file(store.state, "w1", "fo1", "fi1")
        assert fi.bannerUrl == "banner.png"
        assert fi.title == "Untitled"

    def test_update_missing_node_is_noop(self, store):
        before = store.state
        store.dispatch(UpdateFile("w1", "fo1", "nope", {"title": "X"}))
        store.dispatch(UpdateFolder("w2", "fo1", {"title": "X"}))
        store.dispatch(UpdateWorkspace("nope", {"title": "X"}))
        assert store.state is before

    def test_patch_rejects_null_title(self):
        with pytest.raises(ValueError):
            UpdateFolder("w1", "fo1", {"title": None})

    def test_patch_rejects_unknown_field(self):
        with pytest.raises(ValueError):
            UpdateFolder("w1", "fo1", {"workspaceId": "w2"})


class TestDeleteActions:
    def test_delete_workspace_removes_subtree(self, store):
        store.dispatch(DeleteWorkspace("w1"))
        assert find_workspace(store.state, "w1") is None
        assert find_folder(store.state, "w1", "fo1") is None
        assert find_file(store.state, "w1", "fo1", "fi1") is None
        assert find_workspace(store.state, "w2") is not None

    def test_delete_folder_removes_files(self, store):
        store.dispatch(DeleteFolder("w1", "fo1"))
        assert find_folder(store.state, "w1", "fo1") is None
        assert find_file(store.state, "w1", "fo1", "fi1") is None

    def test_delete_file(self, store):
        store.dispatch(DeleteFile("w1", "fo1", "fi1"))
        assert find_folder(store.state, "w1", "fo1").files == ()

    def test_delete_clears_navigation_context(self, store):
        store.dispatch(SetCurrentWorkspace("w1"))
        store.dispatch(SetCurrentFolder("fo1"))
        store.dispatch(DeleteFolder("w1", "fo1"))
        assert store.state.current_workspace_id == "w1"
        assert store.state.current_folder_id is None

        store.dispatch(DeleteWorkspace("w1"))
        assert store.state.current_workspace_id is None

    def test_delete_missing_is_noop(self, store):
        before = store.state
        store.dispatch(DeleteWorkspace("nope"))
        store.dispatch(DeleteFolder("w1", "nope"))
        store.dispatch(DeleteFile("w1", "fo1", "nope"))
        assert store.state is before


class TestSetActions:
    def test_set_workspaces_initializes_empty_folders(self):
        state = reduce(AppState(), SetWorkspaces([workspace("w1"), workspace("w2")]))
        assert [w.id for w in state.workspaces] == ["w1", "w2"]
        assert all(isinstance(w, WorkspaceNode) and w.folders == () for w in state.workspaces)

    def test_set_workspaces_keeps_loaded_folders(self, store):
        store.dispatch(SetWorkspaces([workspace("w1", "Fresh")]))
        ws = find_workspace(store.state, "w1")
        assert ws.title == "Fresh"
        assert [f.id for f in ws.folders] == ["fo1"]

    def test_set_folders_keeps_loaded_files_and_skips_foreign(self, store):
        store.dispatch(SetFolders("w1", [folder("fo1", "w1", "Fresh"), folder("fo2", "w1"), folder("x", "w2")]))
        ws = find_workspace(store.state, "w1")
        assert [f.id for f in ws.folders] == ["fo1", "fo2"]
        assert [fi.id for fi in ws.folders[0].files] == ["fi1"]
        assert all(isinstance(f, FolderNode) for f in ws.folders)

    def test_set_workspaces_drops_foreign_carried_folders(self):
        node = WorkspaceNode(
            **workspace("w1").model_dump(),
            folders=(
                FolderNode(**folder("f9", "w2").model_dump()),
                FolderNode(**folder("f1", "w1").model_dump(), files=(file("x", "w1", "other"), file("a", "w1", "f1"))),
            ),
        )
        state = reduce(AppState(), SetWorkspaces([node]))
        ws = find_workspace(state, "w1")
        assert [f.id for f in ws.folders] == ["f1"]
        assert [fi.id for fi in ws.folders[0].files] == ["a"]
        assert_no_orphans(state)

    def test_add_workspace_drops_foreign_carried_folders(self, store):
        node = WorkspaceNode(**workspace("w3").model_dump(), folders=(FolderNode(**folder("f9", "w1").model_dump()),))
        store.dispatch(AddWorkspace(node))
        assert find_workspace(store.state, "w3").folders == ()
        assert_no_orphans(store.state)

    def test_add_workspace_at_position(self, store):
        store.dispatch(AddWorkspace(workspace("w0"), position=0))
        store.dispatch(AddWorkspace(workspace("w9"), position=99))
        assert [w.id for w in store.state.workspaces] == ["w0", "w1", "w2", "w9"]

    def test_set_folders_drops_files_of_other_folders(self, store):
        stray = file("s1", "w9", "other")
        node = FolderNode(**folder("fo2", "w1").model_dump(), files=(stray, file("ok", "w1", "fo2")))
        store.dispatch(SetFolders("w1", [folder("fo1", "w1"), node]))
        assert [f.id for f in find_folder(store.state, "w1", "fo2").files] == ["ok"]
        assert find_file(store.state, "w1", "fo2", "s1") is None
        assert_no_orphans(store.state)

    def test_add_folder_drops_files_of_other_workspaces(self, store):
        node = FolderNode(**folder("fo2", "w1").model_dump(), files=(file("s1", "w2", "fo2"),))
        store.dispatch(AddFolder("w1", node))
        assert find_folder(store.state, "w1", "fo2").files == ()
        assert_no_orphans(store.state)

    def test_set_files_replaces_list(self, store):
        store.dispatch(SetFiles("w1", "fo1", [file("a", "w1", "fo1"), file("b", "w1", "fo1")]))
        assert [f.id for f in find_folder(store.state, "w1", "fo1").files] == ["a", "b"]

    def test_set_current_only_touches_context(self, store):
        tree = store.state.workspaces
        store.dispatch(SetCurrentWorkspace("w1"))
        store.dispatch(SetCurrentFolder("fo1"))
        assert store.state.workspaces is tree
        assert (store.state.current_workspace_id, store.state.current_folder_id) == ("w1", "fo1")


class TestTrash:
    def test_trashed_folder_hidden_but_findable(self, store):
        store.dispatch(UpdateFolder("w1", "fo1", {"inTrash": "Deleted by user@x.com"}))
        assert list_non_trashed_children(store.state, "w1") == ()
        assert find_folder(store.state, "w1", "fo1").inTrash == "Deleted by user@x.com"

    def test_mixed_siblings(self, store):
        for i in range(6):
            marker = f"Deleted by u{i}" if i % 2 else ""
            store.dispatch(AddFolder("w1", folder(f"m{i}", "w1", inTrash=marker)))
        visible = {f.id for f in list_non_trashed_children(store.state, "w1")}
        assert visible == {"fo1", "m0", "m2", "m4"}


class TestWorkspaceStore:
    def test_subscribe_and_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda state, action: seen.append(type(action).__name__))
        store.dispatch(UpdateWorkspace("w1", {"title": "A"}))
        store.dispatch(DeleteWorkspace("missing"))  # no-op, not announced
        unsubscribe()
        store.dispatch(UpdateWorkspace("w1", {"title": "B"}))
        assert seen == ["UpdateWorkspace"]

    def test_snapshot_and_restore(self, store):
        snapshot = store.snapshot()
        store.dispatch(DeleteWorkspace("w1"))
        store.restore(snapshot)
        assert find_file(store.state, "w1", "fo1", "fi1") is not None

    def test_is_empty(self):
        store = WorkspaceStore()
        assert store.is_empty
        store.dispatch(AddWorkspace(workspace("w1")))
        assert not store.is_empty

    def test_states_are_immutable(self, store):
        with pytest.raises(Exception):
            store.state.current_workspace_id = "w1"  # type: ignore[misc]
