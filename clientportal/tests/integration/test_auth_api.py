from __future__ import annotations

import pytest
from httpx import AsyncClient

from clientportal.tests.utils.auth import DEFAULT_PASSWORD, register_owner


@pytest.mark.asyncio
async def test_register_login_and_current_user(client: AsyncClient) -> None:
    response = await client.post(
        "/api/register",
        json={
            "username": "alice",
            "password": DEFAULT_PASSWORD,
            "fullName": "Alice Supplier",
            "email": "alice@example.com",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["username"] == "alice"
    assert body["user"]["planType"] == "free"
    assert "passwordHash" not in body["user"]
    assert "cp_session" in response.cookies

    # The cookie alone authenticates the browser flow.
    response = await client.get("/api/user")
    assert response.status_code == 200
    assert response.json()["fullName"] == "Alice Supplier"

    response = await client.post("/api/logout")
    assert response.json() == {"success": True}
    client.cookies.clear()
    response = await client.get("/api/user")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_UNAUTHORIZED"

    response = await client.post("/api/login", json={"username": "alice", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    token = response.json()["token"]
    client.cookies.clear()
    response = await client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_username_and_bad_login(client: AsyncClient) -> None:
    await register_owner(client, "alice")
    response = await client.post(
        "/api/register",
        json={"username": "alice", "password": DEFAULT_PASSWORD, "fullName": "A", "email": "a@x.io"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"

    response = await client.post("/api/login", json={"username": "alice", "password": "wrong-password"})
    assert response.status_code == 401
    response = await client.post("/api/login", json={"username": "nobody", "password": "wrong-password"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_plan_update_is_the_only_user_mutation(client: AsyncClient) -> None:
    headers = await register_owner(client, "alice")
    response = await client.put("/api/user/plan", json={"planType": "pro"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["planType"] == "pro"

    response = await client.put("/api/user/plan", json={"planType": "pro", "username": "eve"}, headers=headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invalid_bearer_token_is_anonymous(client: AsyncClient) -> None:
    response = await client.get("/api/clients", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_register_validation_lists_every_field(client: AsyncClient) -> None:
    response = await client.post("/api/register", json={"username": ""})
    assert response.status_code == 400
    payload = response.json()
    assert payload["error"]["code"] == "VALIDATION_ERROR"
    locations = {tuple(error["loc"]) for error in payload["error"]["details"]["errors"]}
    assert ("body", "username") in locations
    assert ("body", "password") in locations
    assert ("body", "fullName") in locations
