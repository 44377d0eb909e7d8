"""Integration tests for the workspace tree API.

Test cases for:
- Authentication
- Workspace CRUD, trash and collaborators
- Folder and file CRUD addressed through their ancestry
- Id validation and visibility (422 / 404 / 403)
- User search
"""

import pytest
from fastapi.testclient import TestClient

from worksync.api.deps import get_identity, get_persistence
from worksync.main import app
from worksync.services.identity import IdentityResolver
from worksync.utils import generate_id


@pytest.fixture
def identity(session_factory) -> IdentityResolver:
    return IdentityResolver(session_factory, secret_key="test-secret")


@pytest.fixture
def client(persistence, identity):
    app.dependency_overrides[get_persistence] = lambda: persistence
    app.dependency_overrides[get_identity] = lambda: identity
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def ann(identity, owner) -> dict:
    return {"Authorization": f"Bearer {identity.create_access_token(owner.id)}"}


@pytest.fixture
def bob(identity, other_user) -> dict:
    return {"Authorization": f"Bearer {identity.create_access_token(other_user.id)}"}


def create_workspace(client, headers, title="Acme") -> dict:
    response = client.post("/api/v1/workspaces", json={"title": title}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestAuthentication:
    def test_missing_token(self, client):
        assert client.get("/api/v1/workspaces").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/api/v1/workspaces", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_me(self, client, ann, owner):
        response = client.get("/api/v1/users/me", headers=ann)
        assert response.status_code == 200
        assert response.json()["email"] == owner.email


class TestWorkspaces:
    def test_create_and_list(self, client, ann, owner):
        created = create_workspace(client, ann)
        assert created["workspaceOwner"] == owner.id
        assert created["inTrash"] == ""

        listing = client.get("/api/v1/workspaces", headers=ann).json()
        assert [w["id"] for w in listing["private"]] == [created["id"]]
        assert listing["collaborating"] == []
        assert listing["shared"] == []

    def test_empty_title_rejected(self, client, ann):
        assert client.post("/api/v1/workspaces", json={"title": ""}, headers=ann).status_code == 422

    def test_patch_is_merge(self, client, ann):
        created = create_workspace(client, ann)
        url = f"/api/v1/workspaces/{created['id']}"

        response = client.patch(url, json={"iconId": "🚀"}, headers=ann)
        assert response.status_code == 200
        assert response.json()["iconId"] == "🚀"
        assert response.json()["title"] == "Acme"

    def test_trash(self, client, ann, owner):
        created = create_workspace(client, ann)
        response = client.post(f"/api/v1/workspaces/{created['id']}/trash", headers=ann)
        assert response.status_code == 200
        assert response.json()["inTrash"] == f"Deleted by {owner.email}"

    def test_malformed_id(self, client, ann):
        assert client.get("/api/v1/workspaces/not-a-uuid", headers=ann).status_code == 422

    def test_missing_workspace(self, client, ann):
        assert client.get(f"/api/v1/workspaces/{generate_id()}", headers=ann).status_code == 404

    def test_foreign_workspace_is_hidden(self, client, ann, bob):
        created = create_workspace(client, ann)
        assert client.get(f"/api/v1/workspaces/{created['id']}", headers=bob).status_code == 404
        assert client.delete(f"/api/v1/workspaces/{created['id']}", headers=bob).status_code == 404

    def test_delete_cascades(self, client, ann):
        created = create_workspace(client, ann)
        base = f"/api/v1/workspaces/{created['id']}"
        folder = client.post(f"{base}/folders", json={}, headers=ann).json()

        assert client.delete(base, headers=ann).status_code == 204
        assert client.get(base, headers=ann).status_code == 404
        assert client.get(f"{base}/folders/{folder['id']}", headers=ann).status_code == 404


class TestCollaborators:
    def test_share_workspace(self, client, ann, bob, other_user):
        created = create_workspace(client, ann)
        url = f"/api/v1/workspaces/{created['id']}/collaborators"

        response = client.post(url, json={"userIds": [other_user.id]}, headers=ann)
        assert response.json() == {"count": 1}
        assert client.post(url, json={"userIds": [other_user.id]}, headers=ann).json() == {"count": 0}

        assert [u["id"] for u in client.get(url, headers=ann).json()] == [other_user.id]
        assert client.get(f"/api/v1/workspaces/{created['id']}", headers=bob).status_code == 200

        listing = client.get("/api/v1/workspaces", headers=ann).json()
        assert [w["id"] for w in listing["shared"]] == [created["id"]]
        assert listing["private"] == []
        assert [w["id"] for w in client.get("/api/v1/workspaces", headers=bob).json()["collaborating"]] == [
            created["id"]
        ]

    def test_only_owner_deletes(self, client, ann, bob, other_user):
        created = create_workspace(client, ann)
        client.post(
            f"/api/v1/workspaces/{created['id']}/collaborators", json={"userIds": [other_user.id]}, headers=ann
        )
        assert client.delete(f"/api/v1/workspaces/{created['id']}", headers=bob).status_code == 403

    def test_remove(self, client, ann, bob, other_user):
        created = create_workspace(client, ann)
        url = f"/api/v1/workspaces/{created['id']}/collaborators"
        client.post(url, json={"userIds": [other_user.id]}, headers=ann)

        response = client.request("DELETE", url, json={"userIds": [other_user.id]}, headers=ann)
        assert response.json() == {"count": 1}
        assert client.get(f"/api/v1/workspaces/{created['id']}", headers=bob).status_code == 404


class TestFoldersAndFiles:
    def test_tree_crud(self, client, ann, owner):
        workspace = create_workspace(client, ann)
        folders_url = f"/api/v1/workspaces/{workspace['id']}/folders"

        folder = client.post(folders_url, json={}, headers=ann)
        assert folder.status_code == 201
        folder = folder.json()
        assert folder["title"] == "Untitled"

        files_url = f"{folders_url}/{folder['id']}/files"
        file = client.post(files_url, json={"title": "Notes"}, headers=ann).json()
        assert file["folderId"] == folder["id"]
        assert file["workspaceId"] == workspace["id"]

        renamed = client.patch(f"{folders_url}/{folder['id']}", json={"title": "Specs"}, headers=ann)
        assert renamed.json()["title"] == "Specs"

        trashed = client.post(f"{files_url}/{file['id']}/trash", headers=ann).json()
        assert trashed["inTrash"] == f"Deleted by {owner.email}"
        assert len(client.get(files_url, headers=ann).json()) == 1
        assert client.get(files_url, params={"include_trashed": False}, headers=ann).json() == []

        assert client.delete(f"{files_url}/{file['id']}", headers=ann).status_code == 204
        assert client.get(f"{files_url}/{file['id']}", headers=ann).status_code == 404

    def test_folder_in_other_workspace(self, client, ann):
        first = create_workspace(client, ann, "First")
        second = create_workspace(client, ann, "Second")
        folder = client.post(f"/api/v1/workspaces/{first['id']}/folders", json={}, headers=ann).json()

        response = client.get(f"/api/v1/workspaces/{second['id']}/folders/{folder['id']}", headers=ann)
        assert response.status_code == 404

    def test_folder_in_trashed_workspace(self, client, ann):
        workspace = create_workspace(client, ann)
        client.post(f"/api/v1/workspaces/{workspace['id']}/trash", headers=ann)
        response = client.post(f"/api/v1/workspaces/{workspace['id']}/folders", json={}, headers=ann)
        assert response.status_code == 500


class TestUsers:
    def test_search_excludes_self(self, client, ann, other_user):
        response = client.get("/api/v1/users/search", params={"email": "b"}, headers=ann)
        assert [u["id"] for u in response.json()] == [other_user.id]
        assert client.get("/api/v1/users/search", params={"email": "ann"}, headers=ann).json() == []

    def test_subscription_missing(self, client, ann):
        assert client.get("/api/v1/users/me/subscription", headers=ann).status_code == 404

    def test_landing_sends_new_user_to_setup(self, client, ann):
        response = client.get("/api/v1/users/me/landing", headers=ann)
        assert response.status_code == 200
        assert response.json() == {"setup": True, "workspaceId": None, "path": None, "subscription": None}

    def test_landing_opens_owned_workspace(self, client, ann, bob, other_user):
        workspace = create_workspace(client, ann)
        landing = client.get("/api/v1/users/me/landing", headers=ann).json()
        assert landing["setup"] is False
        assert (landing["workspaceId"], landing["path"]) == (workspace["id"], f"/dashboard/{workspace['id']}")

        # collaborating on someone else's workspace is not enough to skip setup
        client.post(f"/api/v1/workspaces/{workspace['id']}/collaborators", json={"userIds": [other_user.id]}, headers=ann)
        assert client.get("/api/v1/users/me/landing", headers=bob).json()["setup"] is True


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert set(response.json()) == {"status", "database", "redis"}
