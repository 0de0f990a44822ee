from __future__ import annotations

import asyncio
import sys

from clientportal.core.config import get_settings
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.schemas import ClientCreate, ProjectCreate, TaskCreate, TaskPatch
from clientportal.persistence.storage import Storage, build_storage
from clientportal.services import clients, projects, tasks
from clientportal.services.auth.passwords import hash_password


DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo-password"


async def seed_demo(storage: Storage) -> str:
    """Seed one supplier with Acme / Website / Design mockup and return the share token."""
    existing = await storage.get_user_by_username(DEMO_USERNAME)
    if existing is not None:
        owned = await storage.list_projects(existing.id)
        if owned:
            print("Demo data already seeded; skipping.")
            return owned[0].uuid
        user = existing
    else:
        user = await storage.create_user(
            username=DEMO_USERNAME,
            password_hash=hash_password(DEMO_PASSWORD),
            full_name="Demo Supplier",
            email="demo@example.com",
            plan_type=get_settings().default_plan_type,
        )
    owner = OwnerPrincipal(user_id=user.id)
    client = await clients.create_client(
        storage, owner, ClientCreate(name="Acme", email="hello@acme.test", company="Acme Inc.")
    )
    project = await projects.create_project(
        storage, owner, ProjectCreate(client_id=client.id, name="Website")
    )
    task = await tasks.create_task(storage, owner, project.id, TaskCreate(name="Design mockup"))
    await tasks.update_task(storage, owner, task.id, TaskPatch(status="completed"))
    return project.uuid


async def _run() -> int:
    token = await seed_demo(build_storage(get_settings()))
    print(f"Demo login: {DEMO_USERNAME} / {DEMO_PASSWORD}")
    print(f"Share link: /api/public/projects/{token}")
    return 0


def main() -> int:
    # Surface clear failures and exit non-zero so CI/dev scripts can detect issues.
    try:
        return asyncio.run(_run())
    except Exception as exc:  # noqa: BLE001 - surface any setup or DB errors
        print(f"seed_demo failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
