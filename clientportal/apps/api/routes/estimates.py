from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from clientportal.apps.api.deps import get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.response import SuccessFlag
from clientportal.apps.api.schemas import EstimateDetailResponse, EstimateResponse, estimate_detail
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.schemas import EstimateCreate, EstimatePatch
from clientportal.persistence.storage import Storage
from clientportal.services import estimates as estimate_service


router = APIRouter(prefix="/estimates", tags=["estimates"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[EstimateResponse])
async def list_estimates(
    project_id: int | None = Query(default=None, alias="projectId"),
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> list[EstimateResponse]:
    estimates = await estimate_service.list_estimates(storage, owner, project_id)
    return [EstimateResponse.model_validate(estimate) for estimate in estimates]


@router.post("", response_model=EstimateDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_estimate(
    payload: EstimateCreate,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> EstimateDetailResponse:
    view = await estimate_service.create_estimate(storage, owner, payload)
    return estimate_detail(view)


@router.get("/{estimate_id}", response_model=EstimateDetailResponse)
async def get_estimate(
    estimate_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> EstimateDetailResponse:
    view = await estimate_service.get_estimate(storage, owner, estimate_id)
    return estimate_detail(view)


@router.put("/{estimate_id}", response_model=EstimateDetailResponse)
async def update_estimate(
    estimate_id: int,
    payload: EstimatePatch,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> EstimateDetailResponse:
    view = await estimate_service.update_estimate(storage, owner, estimate_id, payload)
    return estimate_detail(view)


@router.delete("/{estimate_id}", response_model=SuccessFlag)
async def delete_estimate(
    estimate_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> SuccessFlag:
    success = await estimate_service.delete_estimate(storage, owner, estimate_id)
    return SuccessFlag(success=success)
