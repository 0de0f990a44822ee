from __future__ import annotations

from httpx import AsyncClient

from clientportal.domain.principal import OwnerPrincipal
from clientportal.persistence.storage import Storage
from clientportal.services.auth.passwords import hash_password


DEFAULT_PASSWORD = "correct-horse-battery"


async def register_owner(client: AsyncClient, username: str) -> dict[str, str]:
    # Register through the API and return bearer headers for that user.
    response = await client.post(
        "/api/register",
        json={
            "username": username,
            "password": DEFAULT_PASSWORD,
            "fullName": f"{username.title()} Supplier",
            "email": f"{username}@example.com",
        },
    )
    assert response.status_code == 201, response.text
    # Drop the session cookie so each request authenticates explicitly.
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


async def create_demo_owner(storage: Storage, username: str = "alice") -> OwnerPrincipal:
    # Insert a user straight into storage for service-level tests.
    user = await storage.create_user(
        username=username,
        password_hash=hash_password(DEFAULT_PASSWORD),
        full_name=username.title(),
        email=f"{username}@example.com",
        plan_type="free",
    )
    return OwnerPrincipal(user_id=user.id)
