from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from clientportal.apps.api.deps import get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.response import SuccessFlag
from clientportal.apps.api.schemas import ProjectResponse
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.schemas import ProjectCreate, ProjectPatch
from clientportal.persistence.storage import Storage
from clientportal.services import projects as project_service


router = APIRouter(prefix="/projects", tags=["projects"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    client_id: int | None = Query(default=None, alias="clientId"),
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> list[ProjectResponse]:
    projects = await project_service.list_projects(storage, owner, client_id)
    return [ProjectResponse.model_validate(project) for project in projects]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ProjectResponse:
    project = await project_service.create_project(storage, owner, payload)
    return ProjectResponse.model_validate(project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ProjectResponse:
    project = await project_service.get_project(storage, owner, project_id)
    return ProjectResponse.model_validate(project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    payload: ProjectPatch,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ProjectResponse:
    project = await project_service.update_project(storage, owner, project_id, payload)
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", response_model=SuccessFlag)
async def delete_project(
    project_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> SuccessFlag:
    success = await project_service.delete_project(storage, owner, project_id)
    return SuccessFlag(success=success)
