from __future__ import annotations

from clientportal.core.config import Settings
from clientportal.persistence.storage.base import Storage
from clientportal.persistence.storage.memory import MemoryStorage
from clientportal.persistence.storage.sql import SqlStorage


def build_storage(settings: Settings) -> Storage:
    # Pick the backend once per process; the two are never mixed.
    backend = settings.storage_backend.strip().lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "sql":
        from clientportal.persistence.db import create_engine, create_sessionmaker

        return SqlStorage(create_sessionmaker(create_engine(settings)))
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


__all__ = ["MemoryStorage", "SqlStorage", "Storage", "build_storage"]
