from __future__ import annotations

from typing import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import StreamingResponse

from clientportal.apps.api.deps import get_blob_store, get_principal, get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.response import SuccessFlag
from clientportal.apps.api.schemas import FileResponse
from clientportal.core.config import get_settings
from clientportal.domain.principal import OwnerPrincipal, Principal
from clientportal.persistence.storage import Storage
from clientportal.services import files as file_service
from clientportal.services.blobs import BlobStore
from clientportal.services.public_view import authorize_file_download


router = APIRouter(tags=["files"], responses=DEFAULT_ERROR_RESPONSES)


async def _read_upload(upload: UploadFile, chunk_bytes: int) -> AsyncIterator[bytes]:
    # Stream the upload in chunks so the blob store can stop at its limit.
    while chunk := await upload.read(chunk_bytes):
        yield chunk


@router.get("/projects/{project_id}/files", response_model=list[FileResponse])
async def list_files(
    project_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> list[FileResponse]:
    files = await file_service.list_files(storage, owner, project_id)
    return [FileResponse.model_validate(file) for file in files]


@router.post(
    "/projects/{project_id}/files",
    response_model=FileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    project_id: int,
    file: UploadFile = File(...),
    name: str | None = Form(default=None),
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
    blobs: BlobStore = Depends(get_blob_store),
) -> FileResponse:
    try:
        record = await file_service.upload_file(
            storage,
            blobs,
            owner,
            project_id,
            chunks=_read_upload(file, get_settings().upload_chunk_bytes),
            filename=file.filename or "upload",
            content_type=file.content_type,
            display_name=name,
        )
    finally:
        await file.close()
    return FileResponse.model_validate(record)


@router.get("/files/{file_id}")
async def download_file(
    file_id: int,
    principal: Principal = Depends(get_principal),
    storage: Storage = Depends(get_storage),
    blobs: BlobStore = Depends(get_blob_store),
) -> StreamingResponse:
    """Download as the owner, or anonymously with the project's share token."""
    record = await authorize_file_download(storage, principal, file_id)
    body = await blobs.retrieve(record.path)
    disposition = f"attachment; filename*=UTF-8''{quote(record.name)}"
    return StreamingResponse(
        body,
        media_type=record.file_type,
        headers={"Content-Disposition": disposition},
    )


@router.delete("/files/{file_id}", response_model=SuccessFlag)
async def delete_file(
    file_id: int,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
    blobs: BlobStore = Depends(get_blob_store),
) -> SuccessFlag:
    success = await file_service.delete_file(storage, blobs, owner, file_id)
    return SuccessFlag(success=success)
