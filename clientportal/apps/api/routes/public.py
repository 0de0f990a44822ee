from __future__ import annotations

from fastapi import APIRouter, Depends

from clientportal.apps.api.deps import get_storage
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.schemas import ProjectViewResponse, project_view_response
from clientportal.persistence.storage import Storage
from clientportal.services.public_view import resolve_project_view


router = APIRouter(tags=["public"], responses=DEFAULT_ERROR_RESPONSES)


# No session needed; the share token in the path is the only credential.
@router.get("/public/projects/{token}", response_model=ProjectViewResponse)
async def public_project_view(
    token: str,
    storage: Storage = Depends(get_storage),
) -> ProjectViewResponse:
    view = await resolve_project_view(storage, token)
    return project_view_response(view)


@router.get("/project-view/{token}", response_model=ProjectViewResponse, include_in_schema=False)
async def legacy_project_view(
    token: str,
    storage: Storage = Depends(get_storage),
) -> ProjectViewResponse:
    view = await resolve_project_view(storage, token)
    return project_view_response(view)
