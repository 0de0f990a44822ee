from __future__ import annotations

import pytest
from httpx import AsyncClient

from clientportal.tests.utils.auth import register_owner


@pytest.mark.asyncio
async def test_share_link_shows_completed_task(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    acme = (await client.post("/api/clients", json={"name": "Acme"}, headers=alice)).json()
    response = await client.post(
        "/api/projects", json={"clientId": acme["id"], "name": "Website"}, headers=alice
    )
    project = response.json()
    assert project["progress"] == 0
    assert project["uuid"]

    task = (
        await client.post(
            f"/api/projects/{project['id']}/tasks", json={"name": "Design mockup"}, headers=alice
        )
    ).json()
    assert task["status"] == "pending"
    response = await client.put(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=alice)
    assert response.json()["status"] == "completed"
    feed = (await client.get("/api/activities", headers=alice)).json()
    assert feed[0]["type"] == "task_completed"

    client.cookies.clear()
    response = await client.get(f"/api/public/projects/{project['uuid']}")
    assert response.status_code == 200
    view = response.json()
    assert view["project"]["name"] == "Website"
    assert view["client"]["name"] == "Acme"
    assert [(t["name"], t["status"]) for t in view["tasks"]] == [("Design mockup", "completed")]
    assert {a["type"] for a in view["activities"]} >= {"project_created", "task_created", "task_completed"}

    legacy = await client.get(f"/api/project-view/{project['uuid']}")
    assert legacy.json() == view


@pytest.mark.asyncio
async def test_unknown_share_token(client: AsyncClient) -> None:
    response = await client.get("/api/public/projects/not-a-real-token")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_views_never_leak_between_projects(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    acme = (await client.post("/api/clients", json={"name": "Acme"}, headers=alice)).json()
    website = (
        await client.post("/api/projects", json={"clientId": acme["id"], "name": "Website"}, headers=alice)
    ).json()
    shop = (
        await client.post("/api/projects", json={"clientId": acme["id"], "name": "Shop"}, headers=alice)
    ).json()
    await client.post(f"/api/projects/{website['id']}/tasks", json={"name": "Homepage"}, headers=alice)
    await client.post(f"/api/projects/{shop['id']}/tasks", json={"name": "Checkout"}, headers=alice)
    await client.post(
        "/api/estimates",
        json={"projectId": shop["id"], "clientId": acme["id"], "title": "Shop quote"},
        headers=alice,
    )

    view = (await client.get(f"/api/public/projects/{website['uuid']}")).json()
    assert [t["name"] for t in view["tasks"]] == ["Homepage"]
    assert view["estimates"] == []
    assert all(a["projectId"] == website["id"] for a in view["activities"])

    view = (await client.get(f"/api/public/projects/{shop['uuid']}")).json()
    assert [t["name"] for t in view["tasks"]] == ["Checkout"]
    assert [e["title"] for e in view["estimates"]] == ["Shop quote"]
