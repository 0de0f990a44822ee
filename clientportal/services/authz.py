from __future__ import annotations

from clientportal.core.errors import ForbiddenError, NotFoundError
from clientportal.domain.principal import OwnerPrincipal, Principal
from clientportal.domain.records import (
    ClientRecord,
    EstimateRecord,
    FileRecord,
    ProjectRecord,
    TaskRecord,
)
from clientportal.persistence.storage import Storage


# Pure decisions over already-fetched rows. Loaders below always check
# existence before ownership so a 404 is never masked by a 403.


def can_access_client(principal: Principal, client: ClientRecord) -> bool:
    return isinstance(principal, OwnerPrincipal) and client.user_id == principal.user_id


def can_access_project(principal: Principal, project: ProjectRecord) -> bool:
    return isinstance(principal, OwnerPrincipal) and project.user_id == principal.user_id


def can_access_file(principal: Principal, file: FileRecord) -> bool:
    # Files carry their owner directly, no project lookup needed.
    return isinstance(principal, OwnerPrincipal) and file.user_id == principal.user_id


def can_access_estimate(principal: Principal, estimate: EstimateRecord) -> bool:
    return isinstance(principal, OwnerPrincipal) and estimate.user_id == principal.user_id


async def load_client(storage: Storage, principal: OwnerPrincipal, client_id: int) -> ClientRecord:
    client = await storage.get_client(client_id)
    if client is None:
        raise NotFoundError("Client not found")
    if not can_access_client(principal, client):
        raise ForbiddenError("Client belongs to another user")
    return client


async def load_project(storage: Storage, principal: OwnerPrincipal, project_id: int) -> ProjectRecord:
    project = await storage.get_project(project_id)
    if project is None:
        raise NotFoundError("Project not found")
    if not can_access_project(principal, project):
        raise ForbiddenError("Project belongs to another user")
    return project


async def load_task(
    storage: Storage, principal: OwnerPrincipal, task_id: int
) -> tuple[TaskRecord, ProjectRecord]:
    """Tasks have no owner column; access follows the parent project."""
    task = await storage.get_task(task_id)
    if task is None:
        raise NotFoundError("Task not found")
    project = await storage.get_project(task.project_id)
    if project is None:
        raise NotFoundError("Project not found")
    if not can_access_project(principal, project):
        raise ForbiddenError("Task belongs to another user")
    return task, project


async def load_file(storage: Storage, principal: OwnerPrincipal, file_id: int) -> FileRecord:
    file = await storage.get_file(file_id)
    if file is None:
        raise NotFoundError("File not found")
    if not can_access_file(principal, file):
        raise ForbiddenError("File belongs to another user")
    return file


async def load_estimate(storage: Storage, principal: OwnerPrincipal, estimate_id: int) -> EstimateRecord:
    estimate = await storage.get_estimate(estimate_id)
    if estimate is None:
        raise NotFoundError("Estimate not found")
    if not can_access_estimate(principal, estimate):
        raise ForbiddenError("Estimate belongs to another user")
    return estimate
