from __future__ import annotations

from clientportal.core.config import get_settings
from clientportal.core.errors import NotFoundError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import TaskRecord, TaskStatus
from clientportal.domain.schemas import TaskCreate, TaskPatch
from clientportal.persistence.storage import Storage
from clientportal.services.activity import record_activity
from clientportal.services.authz import load_project, load_task
from clientportal.services.projects import refresh_progress


def is_completion(previous_status: str, patch: TaskPatch) -> bool:
    """True when the patch moves a task from any open status to completed."""
    completed = TaskStatus.COMPLETED.value
    return patch.status == completed and previous_status != completed


async def _maybe_refresh_progress(storage: Storage, project_id: int) -> None:
    if get_settings().project_progress_from_tasks:
        await refresh_progress(storage, project_id)


async def list_tasks(storage: Storage, principal: OwnerPrincipal, project_id: int) -> list[TaskRecord]:
    await load_project(storage, principal, project_id)
    return await storage.list_tasks(project_id)


async def create_task(
    storage: Storage, principal: OwnerPrincipal, project_id: int, data: TaskCreate
) -> TaskRecord:
    project = await load_project(storage, principal, project_id)
    async with storage.transaction():
        task = await storage.create_task(project_id, data)
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=project_id,
            client_id=project.client_id,
            type="task_created",
            description=f'Task "{task.name}" was added to project {project.name}',
        )
        await _maybe_refresh_progress(storage, project_id)
    return task


async def update_task(
    storage: Storage, principal: OwnerPrincipal, task_id: int, patch: TaskPatch
) -> TaskRecord:
    task, project = await load_task(storage, principal, task_id)
    # Decide against the stored status before the write replaces it.
    completing = is_completion(task.status, patch)
    async with storage.transaction():
        updated = await storage.update_task(task_id, patch)
        if updated is None:
            raise NotFoundError("Task not found")
        if completing:
            activity_type = "task_completed"
            description = f'Task "{task.name}" was completed'
        else:
            activity_type = "task_updated"
            description = f'Task "{task.name}" was updated'
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=project.id,
            client_id=project.client_id,
            type=activity_type,
            description=description,
        )
        await _maybe_refresh_progress(storage, project.id)
    return updated


async def delete_task(storage: Storage, principal: OwnerPrincipal, task_id: int) -> bool:
    task, project = await load_task(storage, principal, task_id)
    async with storage.transaction():
        deleted = await storage.delete_task(task_id)
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=project.id,
            client_id=project.client_id,
            type="task_deleted",
            description=f'Task "{task.name}" was deleted',
        )
        await _maybe_refresh_progress(storage, project.id)
    return deleted
