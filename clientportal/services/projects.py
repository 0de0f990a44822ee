from __future__ import annotations

import logging

from clientportal.core.errors import IntegrityConflictError, NotFoundError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import ProjectRecord, TaskStatus
from clientportal.domain.schemas import ProjectCreate, ProjectPatch
from clientportal.persistence.storage import Storage
from clientportal.services.activity import record_activity
from clientportal.services.authz import can_access_client, load_client, load_project


logger = logging.getLogger(__name__)


async def list_projects(
    storage: Storage, principal: OwnerPrincipal, client_id: int | None = None
) -> list[ProjectRecord]:
    if client_id is None:
        return await storage.list_projects(principal.user_id)
    await load_client(storage, principal, client_id)
    return await storage.list_projects_by_client(client_id)


async def get_project(storage: Storage, principal: OwnerPrincipal, project_id: int) -> ProjectRecord:
    return await load_project(storage, principal, project_id)


async def create_project(storage: Storage, principal: OwnerPrincipal, data: ProjectCreate) -> ProjectRecord:
    client = await load_client(storage, principal, data.client_id)
    async with storage.transaction():
        project = await storage.create_project(principal.user_id, data)
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=project.id,
            client_id=client.id,
            type="project_created",
            description=f"Project {project.name} was created for {client.name}",
        )
    return project


async def update_project(
    storage: Storage, principal: OwnerPrincipal, project_id: int, patch: ProjectPatch
) -> ProjectRecord:
    await load_project(storage, principal, project_id)
    if patch.client_id is not None:
        client = await storage.get_client(patch.client_id)
        if client is None:
            raise NotFoundError("Client not found")
        if not can_access_client(principal, client):
            raise IntegrityConflictError("Project cannot move to another user's client")
    async with storage.transaction():
        project = await storage.update_project(project_id, patch)
        if project is None:
            raise NotFoundError("Project not found")
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=project.id,
            client_id=project.client_id,
            type="project_updated",
            description=f"Project {project.name} was updated",
        )
    return project


async def delete_project(storage: Storage, principal: OwnerPrincipal, project_id: int) -> bool:
    """Remove the project row; tasks, files and estimates are left in place."""
    project = await load_project(storage, principal, project_id)
    async with storage.transaction():
        deleted = await storage.delete_project(project_id)
        await record_activity(
            storage,
            user_id=principal.user_id,
            client_id=project.client_id,
            type="project_deleted",
            description=f"Project {project.name} was deleted",
        )
    logger.info("project_deleted user_id=%s project_id=%s", principal.user_id, project_id)
    return deleted


def progress_from_statuses(statuses: list[str]) -> int:
    if not statuses:
        return 0
    completed = sum(1 for status in statuses if status == TaskStatus.COMPLETED.value)
    return round(100 * completed / len(statuses))


async def refresh_progress(storage: Storage, project_id: int) -> ProjectRecord | None:
    # Derived progress overwrites whatever was set manually.
    tasks = await storage.list_tasks(project_id)
    progress = progress_from_statuses([task.status for task in tasks])
    return await storage.update_project(project_id, ProjectPatch(progress=progress))
