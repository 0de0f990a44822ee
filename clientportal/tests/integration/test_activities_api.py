from __future__ import annotations

import pytest
from httpx import AsyncClient

from clientportal.tests.utils.auth import register_owner


@pytest.mark.asyncio
async def test_feed_is_newest_first_and_limited(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    for name in ("Acme", "Globex", "Initech"):
        await client.post("/api/clients", json={"name": name}, headers=alice)

    feed = (await client.get("/api/activities", headers=alice)).json()
    assert [a["description"] for a in feed] == [
        "Client Initech was created",
        "Client Globex was created",
        "Client Acme was created",
    ]

    limited = (await client.get("/api/activities", params={"limit": 2}, headers=alice)).json()
    assert [a["id"] for a in limited] == [a["id"] for a in feed[:2]]

    response = await client.get("/api/activities", params={"limit": 0}, headers=alice)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_feed_is_per_user(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    bob = await register_owner(client, "bob")
    await client.post("/api/clients", json={"name": "Acme"}, headers=alice)

    assert (await client.get("/api/activities", headers=bob)).json() == []
    assert (await client.get("/api/activities")).status_code == 401


@pytest.mark.asyncio
async def test_post_note(client: AsyncClient) -> None:
    alice = await register_owner(client, "alice")
    bob = await register_owner(client, "bob")
    acme = (await client.post("/api/clients", json={"name": "Acme"}, headers=alice)).json()
    project = (
        await client.post("/api/projects", json={"clientId": acme["id"], "name": "Website"}, headers=alice)
    ).json()

    response = await client.post(
        "/api/activities",
        json={"type": "note", "description": "Called the client", "projectId": project["id"]},
        headers=alice,
    )
    assert response.status_code == 201
    note = response.json()
    assert note["type"] == "note"
    assert note["projectId"] == project["id"]
    assert (await client.get("/api/activities", headers=alice)).json()[0]["id"] == note["id"]

    response = await client.post(
        "/api/activities",
        json={"type": "note", "description": "Snooping", "projectId": project["id"]},
        headers=bob,
    )
    assert response.status_code == 403

    response = await client.post("/api/activities", json={"type": "note"}, headers=alice)
    assert response.status_code == 400
