from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from clientportal.apps.api.deps import get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.schemas import ActivityResponse
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.schemas import ActivityCreate
from clientportal.persistence.storage import Storage
from clientportal.services import activity as activity_service


router = APIRouter(prefix="/activities", tags=["activities"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[ActivityResponse])
async def list_activities(
    limit: int | None = Query(default=None),
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> list[ActivityResponse]:
    # Dashboard feed, newest first; the limit is capped by settings.
    activities = await activity_service.list_user_activities(storage, owner, limit)
    return [ActivityResponse.model_validate(activity) for activity in activities]


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    payload: ActivityCreate,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ActivityResponse:
    activity = await activity_service.add_note(storage, owner, payload)
    return ActivityResponse.model_validate(activity)
