from __future__ import annotations

from fastapi import APIRouter, Depends, status

from clientportal.apps.api.deps import get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.response import SuccessFlag
from clientportal.apps.api.schemas import ClientResponse
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.schemas import ClientCreate, ClientPatch
from clientportal.persistence.storage import Storage
from clientportal.services import clients as client_service


router = APIRouter(prefix="/clients", tags=["clients"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> list[ClientResponse]:
    clients = await client_service.list_clients(storage, owner)
    return [ClientResponse.model_validate(client) for client in clients]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ClientResponse:
    client = await client_service.create_client(storage, owner, payload)
    return ClientResponse.model_validate(client)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ClientResponse:
    client = await client_service.get_client(storage, owner, client_id)
    return ClientResponse.model_validate(client)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    payload: ClientPatch,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> ClientResponse:
    client = await client_service.update_client(storage, owner, client_id, payload)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", response_model=SuccessFlag)
async def delete_client(
    client_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> SuccessFlag:
    # Projects of the client go with it; their children do not.
    success = await client_service.delete_client(storage, owner, client_id)
    return SuccessFlag(success=success)
