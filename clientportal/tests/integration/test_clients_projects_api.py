from __future__ import annotations

import pytest
from httpx import AsyncClient

from clientportal.persistence.storage import MemoryStorage
from clientportal.tests.utils.auth import register_owner


@pytest.mark.asyncio
async def test_owner_scoped_endpoints_require_a_session(client: AsyncClient) -> None:
    for method, path in [
        ("GET", "/api/clients"),
        ("POST", "/api/clients"),
        ("GET", "/api/projects"),
        ("PUT", "/api/tasks/1"),
        ("DELETE", "/api/files/1"),
        ("GET", "/api/estimates"),
        ("GET", "/api/activities"),
    ]:
        response = await client.request(method, path, json={})
        assert response.status_code == 401, path


@pytest.mark.asyncio
async def test_client_crud_and_status_codes(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    bob = await register_owner(client, "bob")

    response = await client.post("/api/clients", json={"name": "Acme", "email": "hi@acme.test"}, headers=alice)
    assert response.status_code == 201
    acme = response.json()
    assert acme["name"] == "Acme"
    assert "userId" in acme and "createdAt" in acme

    response = await client.get("/api/clients", headers=alice)
    assert [c["id"] for c in response.json()] == [acme["id"]]
    response = await client.get("/api/clients", headers=bob)
    assert response.json() == []

    response = await client.get(f"/api/clients/{acme['id']}", headers=bob)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTH_FORBIDDEN"
    response = await client.get("/api/clients/9999", headers=bob)
    assert response.status_code == 404

    response = await client.put(
        f"/api/clients/{acme['id']}", json={"company": "Acme Inc.", "userId": 999}, headers=alice
    )
    assert response.status_code == 200
    assert response.json()["company"] == "Acme Inc."
    assert response.json()["userId"] == acme["userId"]

    response = await client.put(f"/api/clients/{acme['id']}", json={"nickname": "A"}, headers=alice)
    assert response.status_code == 400

    response = await client.post("/api/clients", json={"email": "missing-name@x.io"}, headers=alice)
    assert response.status_code == 400
    assert response.json()["error"]["details"]["errors"][0]["loc"] == ["body", "name"]


@pytest.mark.asyncio
async def test_project_lifecycle_and_client_filter(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    bob = await register_owner(client, "bob")
    acme = (await client.post("/api/clients", json={"name": "Acme"}, headers=alice)).json()
    globex = (await client.post("/api/clients", json={"name": "Globex"}, headers=alice)).json()
    bobs_client = (await client.post("/api/clients", json={"name": "Initech"}, headers=bob)).json()

    response = await client.post(
        "/api/projects",
        json={"clientId": acme["id"], "name": "Website", "progress": 90, "uuid": "mine"},
        headers=alice,
    )
    assert response.status_code == 201
    website = response.json()
    assert website["progress"] == 0
    assert website["uuid"] != "mine"
    assert website["status"] == "new"

    other = (
        await client.post("/api/projects", json={"clientId": globex["id"], "name": "Shop"}, headers=alice)
    ).json()
    assert other["uuid"] != website["uuid"]

    response = await client.get("/api/projects", params={"clientId": acme["id"]}, headers=alice)
    assert [p["id"] for p in response.json()] == [website["id"]]
    response = await client.get("/api/projects", params={"clientId": acme["id"]}, headers=bob)
    assert response.status_code == 403
    response = await client.get("/api/projects", params={"clientId": 9999}, headers=alice)
    assert response.status_code == 404

    response = await client.post(
        "/api/projects", json={"clientId": bobs_client["id"], "name": "Steal"}, headers=alice
    )
    assert response.status_code == 403

    response = await client.put(
        f"/api/projects/{website['id']}",
        json={"status": "in progress", "progress": 40, "uuid": "forged"},
        headers=alice,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in progress"
    assert response.json()["uuid"] == website["uuid"]

    response = await client.put(
        f"/api/projects/{website['id']}", json={"clientId": bobs_client["id"]}, headers=alice
    )
    assert response.status_code == 409

    response = await client.put(f"/api/projects/{website['id']}", json={"status": "archived"}, headers=alice)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_client_delete_cascades_projects_only(client: AsyncClient, storage: MemoryStorage) -> None:
    alice = await register_owner(client, "alice")
    acme = (await client.post("/api/clients", json={"name": "Acme"}, headers=alice)).json()
    website = (
        await client.post("/api/projects", json={"clientId": acme["id"], "name": "Website"}, headers=alice)
    ).json()
    task = (
        await client.post(f"/api/projects/{website['id']}/tasks", json={"name": "Design"}, headers=alice)
    ).json()

    response = await client.delete(f"/api/clients/{acme['id']}", headers=alice)
    assert response.json() == {"success": True}

    response = await client.get("/api/projects", headers=alice)
    assert response.json() == []
    response = await client.get(f"/api/projects/{website['id']}", headers=alice)
    assert response.status_code == 404
    # The orphaned task row is still stored.
    assert await storage.get_task(task["id"]) is not None
