from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from uuid import uuid4

from clientportal.domain.records import (
    ActivityRecord,
    ClientRecord,
    EstimateItemRecord,
    EstimateRecord,
    FileRecord,
    ProjectRecord,
    TaskRecord,
    UserRecord,
)
from clientportal.domain.schemas import (
    ClientCreate,
    ClientPatch,
    EstimateCreate,
    EstimateItemInput,
    EstimatePatch,
    ProjectCreate,
    ProjectPatch,
    TaskCreate,
    TaskPatch,
)


def utc_now() -> datetime:
    # Stamp rows in UTC so ordering is stable across hosts.
    return datetime.now(timezone.utc)


def new_share_token() -> str:
    # Random UUID4 text; the only credential for anonymous project access.
    return str(uuid4())


class Storage(ABC):
    """Persistence contract shared by the in-memory and relational backends.

    Every method is a suspension point. Lookups return ``None`` for missing rows;
    ownership is never checked here, callers go through the authz guard first.
    Lists are newest-first unless noted otherwise.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group the enclosed operations so they apply together or not at all.

        Nested calls join the outermost transaction.
        """

    # Users

    @abstractmethod
    async def get_user(self, user_id: int) -> UserRecord | None: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> UserRecord | None: ...

    @abstractmethod
    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        full_name: str,
        email: str,
        plan_type: str,
    ) -> UserRecord:
        """Insert a user; raises IntegrityConflictError on a duplicate username."""

    @abstractmethod
    async def update_user_plan(self, user_id: int, plan_type: str) -> UserRecord | None: ...

    # Clients

    @abstractmethod
    async def list_clients(self, user_id: int) -> list[ClientRecord]: ...

    @abstractmethod
    async def get_client(self, client_id: int) -> ClientRecord | None: ...

    @abstractmethod
    async def create_client(self, user_id: int, data: ClientCreate) -> ClientRecord: ...

    @abstractmethod
    async def update_client(self, client_id: int, patch: ClientPatch) -> ClientRecord | None: ...

    @abstractmethod
    async def delete_client(self, client_id: int) -> bool: ...

    # Projects

    @abstractmethod
    async def list_projects(self, user_id: int) -> list[ProjectRecord]: ...

    @abstractmethod
    async def list_projects_by_client(self, client_id: int) -> list[ProjectRecord]: ...

    @abstractmethod
    async def get_project(self, project_id: int) -> ProjectRecord | None: ...

    @abstractmethod
    async def get_project_by_uuid(self, token: str) -> ProjectRecord | None: ...

    @abstractmethod
    async def create_project(self, user_id: int, data: ProjectCreate) -> ProjectRecord:
        """Insert a project with a fresh share token and zero progress."""

    @abstractmethod
    async def update_project(self, project_id: int, patch: ProjectPatch) -> ProjectRecord | None:
        """Merge the patch; the share token is never part of a patch."""

    @abstractmethod
    async def delete_project(self, project_id: int) -> bool:
        """Remove the project row only; children are left untouched."""

    # Tasks

    @abstractmethod
    async def list_tasks(self, project_id: int) -> list[TaskRecord]: ...

    @abstractmethod
    async def get_task(self, task_id: int) -> TaskRecord | None: ...

    @abstractmethod
    async def create_task(self, project_id: int, data: TaskCreate) -> TaskRecord: ...

    @abstractmethod
    async def update_task(self, task_id: int, patch: TaskPatch) -> TaskRecord | None: ...

    @abstractmethod
    async def delete_task(self, task_id: int) -> bool: ...

    # Files

    @abstractmethod
    async def list_files(self, project_id: int) -> list[FileRecord]: ...

    @abstractmethod
    async def get_file(self, file_id: int) -> FileRecord | None: ...

    @abstractmethod
    async def create_file(
        self,
        *,
        user_id: int,
        project_id: int,
        name: str,
        file_type: str,
        file_size: int,
        path: str,
    ) -> FileRecord: ...

    @abstractmethod
    async def delete_file(self, file_id: int) -> bool: ...

    # Estimates

    @abstractmethod
    async def list_estimates(self, user_id: int) -> list[EstimateRecord]: ...

    @abstractmethod
    async def list_estimates_by_project(self, project_id: int) -> list[EstimateRecord]: ...

    @abstractmethod
    async def get_estimate(self, estimate_id: int) -> EstimateRecord | None: ...

    @abstractmethod
    async def create_estimate(self, user_id: int, data: EstimateCreate) -> EstimateRecord:
        """Insert the estimate row only; items are created separately."""

    @abstractmethod
    async def update_estimate(self, estimate_id: int, patch: EstimatePatch) -> EstimateRecord | None: ...

    @abstractmethod
    async def delete_estimate(self, estimate_id: int) -> bool:
        """Remove the estimate row only; callers delete its items first."""

    # Estimate items (returned oldest-first, in entry order)

    @abstractmethod
    async def list_estimate_items(self, estimate_id: int) -> list[EstimateItemRecord]: ...

    @abstractmethod
    async def create_estimate_item(
        self,
        estimate_id: int,
        *,
        description: str,
        quantity: int,
        price: int,
    ) -> EstimateItemRecord: ...

    @abstractmethod
    async def update_estimate_item(
        self, item_id: int, item: EstimateItemInput
    ) -> EstimateItemRecord | None: ...

    @abstractmethod
    async def delete_estimate_item(self, item_id: int) -> bool: ...

    # Activities (append-only)

    @abstractmethod
    async def list_activities(self, user_id: int, limit: int) -> list[ActivityRecord]: ...

    @abstractmethod
    async def list_activities_by_project(self, project_id: int) -> list[ActivityRecord]: ...

    @abstractmethod
    async def create_activity(
        self,
        *,
        user_id: int,
        type: str,
        description: str,
        project_id: int | None = None,
        client_id: int | None = None,
    ) -> ActivityRecord: ...
