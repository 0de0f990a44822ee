from __future__ import annotations

import logging
from typing import AsyncIterator

from clientportal.core.errors import BlobNotFoundError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import FileRecord
from clientportal.persistence.storage import Storage
from clientportal.services.activity import record_activity
from clientportal.services.authz import load_file, load_project
from clientportal.services.blobs import BlobStore


logger = logging.getLogger(__name__)

DEFAULT_FILE_TYPE = "application/octet-stream"


class _CountingStream:
    def __init__(self, chunks: AsyncIterator[bytes]) -> None:
        self._chunks = chunks
        self.size = 0

    async def chunks(self) -> AsyncIterator[bytes]:
        async for chunk in self._chunks:
            self.size += len(chunk)
            yield chunk


async def list_files(storage: Storage, principal: OwnerPrincipal, project_id: int) -> list[FileRecord]:
    await load_project(storage, principal, project_id)
    return await storage.list_files(project_id)


async def upload_file(
    storage: Storage,
    blobs: BlobStore,
    principal: OwnerPrincipal,
    project_id: int,
    *,
    chunks: AsyncIterator[bytes],
    filename: str,
    content_type: str | None,
    display_name: str | None = None,
) -> FileRecord:
    """Store the blob completely, then record its metadata row."""
    project = await load_project(storage, principal, project_id)
    stream = _CountingStream(chunks)
    locator = await blobs.store(stream.chunks(), filename)
    name = display_name or filename
    try:
        async with storage.transaction():
            file = await storage.create_file(
                user_id=principal.user_id,
                project_id=project_id,
                name=name,
                file_type=content_type or DEFAULT_FILE_TYPE,
                file_size=stream.size,
                path=locator,
            )
            await record_activity(
                storage,
                user_id=principal.user_id,
                project_id=project_id,
                client_id=project.client_id,
                type="file_uploaded",
                description=f'File "{file.name}" was uploaded to project {project.name}',
            )
    except Exception:
        # The row never landed, so the blob is an orphan.
        try:
            await blobs.delete(locator)
        except Exception:
            logger.warning("blob_cleanup_failed locator=%s", locator, exc_info=True)
        raise
    logger.info(
        "file_uploaded user_id=%s project_id=%s file_id=%s bytes=%s",
        principal.user_id,
        project_id,
        file.id,
        file.file_size,
    )
    return file


async def delete_file(storage: Storage, blobs: BlobStore, principal: OwnerPrincipal, file_id: int) -> bool:
    file = await load_file(storage, principal, file_id)
    project = await storage.get_project(file.project_id)
    # Blob removal is best-effort; the metadata row goes regardless.
    try:
        await blobs.delete(file.path)
    except BlobNotFoundError:
        logger.warning("blob_missing_on_delete file_id=%s locator=%s", file_id, file.path)
    except Exception:
        logger.warning("blob_delete_failed file_id=%s locator=%s", file_id, file.path, exc_info=True)
    async with storage.transaction():
        deleted = await storage.delete_file(file_id)
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=file.project_id,
            client_id=project.client_id if project is not None else None,
            type="file_deleted",
            description=f'File "{file.name}" was deleted',
        )
    return deleted
