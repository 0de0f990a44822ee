from __future__ import annotations

import pytest
from httpx import AsyncClient

from clientportal.tests.utils.auth import register_owner


async def _project(client: AsyncClient, headers: dict[str, str]) -> tuple[dict, dict]:
    acme = (await client.post("/api/clients", json={"name": "Acme"}, headers=headers)).json()
    project = (
        await client.post("/api/projects", json={"clientId": acme["id"], "name": "Website"}, headers=headers)
    ).json()
    return acme, project


@pytest.mark.asyncio
async def test_estimate_lifecycle_with_item_reconcile(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    acme, project = await _project(client, alice)

    response = await client.post(
        "/api/estimates",
        json={
            "projectId": project["id"],
            "clientId": acme["id"],
            "title": "Website quote",
            "totalAmount": 5000,
            "items": [
                {"description": "Design", "quantity": 1, "price": 2000},
                {"description": "Build", "quantity": 3, "price": 1000},
            ],
        },
        headers=alice,
    )
    assert response.status_code == 201
    estimate = response.json()
    assert estimate["status"] == "draft"
    first, second = estimate["items"]

    response = await client.put(
        f"/api/estimates/{estimate['id']}",
        json={"items": [{"id": first["id"], "description": "Design v2"}, {"description": "new", "price": 300}]},
        headers=alice,
    )
    assert response.status_code == 200
    updated = response.json()
    assert [item["description"] for item in updated["items"]] == ["Design v2", "new"]
    assert second["id"] not in [item["id"] for item in updated["items"]]
    assert updated["totalAmount"] == 5000

    response = await client.get("/api/estimates", params={"projectId": project["id"]}, headers=alice)
    assert [e["id"] for e in response.json()] == [estimate["id"]]

    response = await client.get(f"/api/estimates/{estimate['id']}", headers=alice)
    assert len(response.json()["items"]) == 2

    response = await client.delete(f"/api/estimates/{estimate['id']}", headers=alice)
    assert response.json() == {"success": True}
    assert (await client.get(f"/api/estimates/{estimate['id']}", headers=alice)).status_code == 404

    types = [a["type"] for a in (await client.get("/api/activities", headers=alice)).json()]
    assert types[:3] == ["estimate_deleted", "estimate_updated", "estimate_created"]


@pytest.mark.asyncio
async def test_estimate_creation_checks_project_and_client(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    bob = await register_owner(client, "bob")
    acme, project = await _project(client, alice)
    initech, bobs_project = await _project(client, bob)
    globex = (await client.post("/api/clients", json={"name": "Globex"}, headers=alice)).json()

    def payload(project_id: int, client_id: int) -> dict:
        return {"projectId": project_id, "clientId": client_id, "title": "Quote"}

    assert (await client.post("/api/estimates", json=payload(bobs_project["id"], acme["id"]), headers=alice)).status_code == 403
    assert (await client.post("/api/estimates", json=payload(project["id"], initech["id"]), headers=alice)).status_code == 403
    assert (await client.post("/api/estimates", json=payload(9999, acme["id"]), headers=alice)).status_code == 404
    assert (await client.post("/api/estimates", json=payload(project["id"], globex["id"]), headers=alice)).status_code == 409
    assert (await client.get("/api/estimates", params={"projectId": project["id"]}, headers=bob)).status_code == 403


@pytest.mark.asyncio
async def test_foreign_item_id_is_rejected(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    acme, project = await _project(client, alice)
    base = {"projectId": project["id"], "clientId": acme["id"], "title": "Quote"}
    one = (await client.post("/api/estimates", json={**base, "items": [{"description": "a", "price": 1}]}, headers=alice)).json()
    two = (await client.post("/api/estimates", json={**base, "items": [{"description": "b", "price": 2}]}, headers=alice)).json()

    response = await client.put(
        f"/api/estimates/{one['id']}",
        json={"title": "Changed", "items": [{"id": two["items"][0]["id"], "price": 9}]},
        headers=alice,
    )
    assert response.status_code == 404
    unchanged = (await client.get(f"/api/estimates/{one['id']}", headers=alice)).json()
    assert unchanged["title"] == "Quote"
    assert [item["price"] for item in unchanged["items"]] == [1]


@pytest.mark.asyncio
async def test_create_rejects_item_ids(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    acme, project = await _project(client, alice)

    response = await client.post(
        "/api/estimates",
        json={
            "projectId": project["id"],
            "clientId": acme["id"],
            "title": "Quote",
            "items": [{"id": 999}],
        },
        headers=alice,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert (await client.get("/api/estimates", headers=alice)).json() == []
