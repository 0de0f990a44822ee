from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import os
from pathlib import Path
from typing import AsyncIterator
from uuid import uuid4

import aiofiles
import aiofiles.os

from clientportal.core.config import Settings
from clientportal.core.errors import BlobNotFoundError, BlobTooLargeError


logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Opaque byte storage for uploaded files, addressed by locator strings."""

    @abstractmethod
    async def store(self, chunks: AsyncIterator[bytes], suggested_name: str) -> str:
        """Persist the stream completely and return its locator."""

    @abstractmethod
    async def retrieve(self, locator: str) -> AsyncIterator[bytes]:
        """Return a byte stream; raises BlobNotFoundError before streaming starts."""

    @abstractmethod
    async def delete(self, locator: str) -> None:
        """Remove the blob; raises BlobNotFoundError when it is already gone."""


def _suffix(suggested_name: str) -> str:
    # Keep a short extension for readability; the rest of the name is not trusted.
    suffix = Path(suggested_name).suffix.lower()
    if len(suffix) > 16 or not suffix[1:].isalnum():
        return ""
    return suffix


class LocalBlobStore(BlobStore):
    def __init__(self, root: str | os.PathLike[str], *, max_bytes: int, chunk_bytes: int = 64 * 1024) -> None:
        self.root = Path(root).resolve()
        self.max_bytes = max_bytes
        self.chunk_bytes = chunk_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalBlobStore":
        return cls(
            settings.upload_dir,
            max_bytes=settings.max_upload_bytes,
            chunk_bytes=settings.upload_chunk_bytes,
        )

    def _path(self, locator: str) -> Path:
        path = (self.root / locator).resolve()
        # Locators never escape the upload root.
        if path.parent != self.root:
            raise BlobNotFoundError("Blob not found")
        return path

    async def store(self, chunks: AsyncIterator[bytes], suggested_name: str) -> str:
        await aiofiles.os.makedirs(self.root, exist_ok=True)
        locator = f"{uuid4().hex}{_suffix(suggested_name)}"
        path = self._path(locator)
        written = 0
        try:
            async with aiofiles.open(path, "wb") as out_file:
                async for chunk in chunks:
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise BlobTooLargeError(self.max_bytes)
                    await out_file.write(chunk)
        except BaseException:
            # Partial blobs never outlive a failed upload.
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                pass
            raise
        logger.info("blob_stored locator=%s bytes=%s", locator, written)
        return locator

    async def retrieve(self, locator: str) -> AsyncIterator[bytes]:
        path = self._path(locator)
        if not await aiofiles.os.path.isfile(path):
            raise BlobNotFoundError("Blob not found")
        return self._stream(path)

    async def _stream(self, path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(path, "rb") as in_file:
            while chunk := await in_file.read(self.chunk_bytes):
                yield chunk

    async def delete(self, locator: str) -> None:
        path = self._path(locator)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError as exc:
            raise BlobNotFoundError("Blob not found") from exc
        logger.info("blob_deleted locator=%s", locator)
