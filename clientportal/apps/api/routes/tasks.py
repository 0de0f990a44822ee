from __future__ import annotations

from fastapi import APIRouter, Depends, status

from clientportal.apps.api.deps import get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.response import SuccessFlag
from clientportal.apps.api.schemas import TaskResponse
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.schemas import TaskCreate, TaskPatch
from clientportal.persistence.storage import Storage
from clientportal.services import tasks as task_service


router = APIRouter(tags=["tasks"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("/projects/{project_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(
    project_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> list[TaskResponse]:
    tasks = await task_service.list_tasks(storage, owner, project_id)
    return [TaskResponse.model_validate(task) for task in tasks]


@router.post(
    "/projects/{project_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    project_id: int,
    payload: TaskCreate,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> TaskResponse:
    # The parent comes from the path; a projectId in the body is ignored.
    task = await task_service.create_task(storage, owner, project_id, payload)
    return TaskResponse.model_validate(task)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    payload: TaskPatch,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> TaskResponse:
    task = await task_service.update_task(storage, owner, task_id, payload)
    return TaskResponse.model_validate(task)


@router.delete("/tasks/{task_id}", response_model=SuccessFlag)
async def delete_task(
    task_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> SuccessFlag:
    success = await task_service.delete_task(storage, owner, task_id)
    return SuccessFlag(success=success)
