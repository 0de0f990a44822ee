from __future__ import annotations

from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import replace
import itertools
from typing import Any, AsyncIterator, Callable, Iterable, TypeVar

from clientportal.core.errors import IntegrityConflictError
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
from clientportal.persistence.storage.base import Storage, new_share_token, utc_now


R = TypeVar("R")

_TABLES = (
    "users",
    "clients",
    "projects",
    "tasks",
    "files",
    "estimates",
    "estimate_items",
    "activities",
)

Undo = Callable[[], None]


def _newest_first(rows: Iterable[R]) -> list[R]:
    return sorted(rows, key=lambda row: row.id, reverse=True)  # type: ignore[attr-defined]


class MemoryStorage(Storage):
    """Dict-backed storage for development and tests.

    Ids come from per-instance counters, so two instances never share state.
    Transactions keep an undo journal and replay it on failure.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[int, Any]] = {name: {} for name in _TABLES}
        self._ids = {name: itertools.count(1) for name in _TABLES}
        self._journal: ContextVar[list[Undo] | None] = ContextVar(
            f"memory_storage_journal_{id(self)}", default=None
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._journal.get() is not None:
            yield
            return
        journal: list[Undo] = []
        token = self._journal.set(journal)
        try:
            yield
        except BaseException:
            for undo in reversed(journal):
                undo()
            raise
        finally:
            self._journal.reset(token)

    def snapshot(self) -> dict[str, dict[int, Any]]:
        """Copy every table; records are frozen so a shallow copy is enough."""
        return {name: dict(rows) for name, rows in self._tables.items()}

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    def _record_undo(self, undo: Undo) -> None:
        journal = self._journal.get()
        if journal is not None:
            journal.append(undo)

    def _insert(self, table: str, record: R) -> R:
        rows = self._tables[table]
        record_id = record.id  # type: ignore[attr-defined]
        rows[record_id] = record
        self._record_undo(lambda: rows.pop(record_id, None))
        return record

    def _replace(self, table: str, record_id: int, changes: dict[str, Any]) -> Any | None:
        rows = self._tables[table]
        current = rows.get(record_id)
        if current is None:
            return None
        updated = replace(current, **changes)
        rows[record_id] = updated
        self._record_undo(lambda: rows.__setitem__(record_id, current))
        return updated

    def _remove(self, table: str, record_id: int) -> bool:
        rows = self._tables[table]
        current = rows.pop(record_id, None)
        if current is None:
            return False
        self._record_undo(lambda: rows.__setitem__(record_id, current))
        return True

    def _rows(self, table: str) -> Iterable[Any]:
        return self._tables[table].values()

    # Users

    async def get_user(self, user_id: int) -> UserRecord | None:
        return self._tables["users"].get(user_id)

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        return next((user for user in self._rows("users") if user.username == username), None)

    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        full_name: str,
        email: str,
        plan_type: str,
    ) -> UserRecord:
        if await self.get_user_by_username(username) is not None:
            raise IntegrityConflictError("Username already exists")
        user = UserRecord(
            id=self._next_id("users"),
            username=username,
            password_hash=password_hash,
            full_name=full_name,
            email=email,
            plan_type=plan_type,
        )
        return self._insert("users", user)

    async def update_user_plan(self, user_id: int, plan_type: str) -> UserRecord | None:
        return self._replace("users", user_id, {"plan_type": plan_type})

    # Clients

    async def list_clients(self, user_id: int) -> list[ClientRecord]:
        return _newest_first(c for c in self._rows("clients") if c.user_id == user_id)

    async def get_client(self, client_id: int) -> ClientRecord | None:
        return self._tables["clients"].get(client_id)

    async def create_client(self, user_id: int, data: ClientCreate) -> ClientRecord:
        client = ClientRecord(
            id=self._next_id("clients"),
            user_id=user_id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            company=data.company,
            created_at=utc_now(),
        )
        return self._insert("clients", client)

    async def update_client(self, client_id: int, patch: ClientPatch) -> ClientRecord | None:
        return self._replace("clients", client_id, patch.changes())

    async def delete_client(self, client_id: int) -> bool:
        return self._remove("clients", client_id)

    # Projects

    async def list_projects(self, user_id: int) -> list[ProjectRecord]:
        return _newest_first(p for p in self._rows("projects") if p.user_id == user_id)

    async def list_projects_by_client(self, client_id: int) -> list[ProjectRecord]:
        return _newest_first(p for p in self._rows("projects") if p.client_id == client_id)

    async def get_project(self, project_id: int) -> ProjectRecord | None:
        return self._tables["projects"].get(project_id)

    async def get_project_by_uuid(self, token: str) -> ProjectRecord | None:
        return next((p for p in self._rows("projects") if p.uuid == token), None)

    async def create_project(self, user_id: int, data: ProjectCreate) -> ProjectRecord:
        project = ProjectRecord(
            id=self._next_id("projects"),
            user_id=user_id,
            client_id=data.client_id,
            name=data.name,
            description=data.description,
            status=data.status,
            progress=0,
            due_date=data.due_date,
            uuid=new_share_token(),
            created_at=utc_now(),
        )
        return self._insert("projects", project)

    async def update_project(self, project_id: int, patch: ProjectPatch) -> ProjectRecord | None:
        return self._replace("projects", project_id, patch.changes())

    async def delete_project(self, project_id: int) -> bool:
        return self._remove("projects", project_id)

    # Tasks

    async def list_tasks(self, project_id: int) -> list[TaskRecord]:
        return _newest_first(t for t in self._rows("tasks") if t.project_id == project_id)

    async def get_task(self, task_id: int) -> TaskRecord | None:
        return self._tables["tasks"].get(task_id)

    async def create_task(self, project_id: int, data: TaskCreate) -> TaskRecord:
        task = TaskRecord(
            id=self._next_id("tasks"),
            project_id=project_id,
            name=data.name,
            description=data.description,
            status=data.status,
            due_date=data.due_date,
            created_at=utc_now(),
        )
        return self._insert("tasks", task)

    async def update_task(self, task_id: int, patch: TaskPatch) -> TaskRecord | None:
        return self._replace("tasks", task_id, patch.changes())

    async def delete_task(self, task_id: int) -> bool:
        return self._remove("tasks", task_id)

    # Files

    async def list_files(self, project_id: int) -> list[FileRecord]:
        return _newest_first(f for f in self._rows("files") if f.project_id == project_id)

    async def get_file(self, file_id: int) -> FileRecord | None:
        return self._tables["files"].get(file_id)

    async def create_file(
        self,
        *,
        user_id: int,
        project_id: int,
        name: str,
        file_type: str,
        file_size: int,
        path: str,
    ) -> FileRecord:
        record = FileRecord(
            id=self._next_id("files"),
            user_id=user_id,
            project_id=project_id,
            name=name,
            file_type=file_type,
            file_size=file_size,
            path=path,
            created_at=utc_now(),
        )
        return self._insert("files", record)

    async def delete_file(self, file_id: int) -> bool:
        return self._remove("files", file_id)

    # Estimates

    async def list_estimates(self, user_id: int) -> list[EstimateRecord]:
        return _newest_first(e for e in self._rows("estimates") if e.user_id == user_id)

    async def list_estimates_by_project(self, project_id: int) -> list[EstimateRecord]:
        return _newest_first(e for e in self._rows("estimates") if e.project_id == project_id)

    async def get_estimate(self, estimate_id: int) -> EstimateRecord | None:
        return self._tables["estimates"].get(estimate_id)

    async def create_estimate(self, user_id: int, data: EstimateCreate) -> EstimateRecord:
        estimate = EstimateRecord(
            id=self._next_id("estimates"),
            user_id=user_id,
            project_id=data.project_id,
            client_id=data.client_id,
            title=data.title,
            status=data.status,
            total_amount=data.total_amount,
            created_at=utc_now(),
        )
        return self._insert("estimates", estimate)

    async def update_estimate(self, estimate_id: int, patch: EstimatePatch) -> EstimateRecord | None:
        return self._replace("estimates", estimate_id, patch.changes())

    async def delete_estimate(self, estimate_id: int) -> bool:
        return self._remove("estimates", estimate_id)

    # Estimate items

    async def list_estimate_items(self, estimate_id: int) -> list[EstimateItemRecord]:
        items = (i for i in self._rows("estimate_items") if i.estimate_id == estimate_id)
        # Ascending id keeps estimate lines in the order they were entered.
        return sorted(items, key=lambda item: item.id)

    async def create_estimate_item(
        self,
        estimate_id: int,
        *,
        description: str,
        quantity: int,
        price: int,
    ) -> EstimateItemRecord:
        item = EstimateItemRecord(
            id=self._next_id("estimate_items"),
            estimate_id=estimate_id,
            description=description,
            quantity=quantity,
            price=price,
        )
        return self._insert("estimate_items", item)

    async def update_estimate_item(
        self, item_id: int, item: EstimateItemInput
    ) -> EstimateItemRecord | None:
        return self._replace("estimate_items", item_id, item.changes())

    async def delete_estimate_item(self, item_id: int) -> bool:
        return self._remove("estimate_items", item_id)

    # Activities

    async def list_activities(self, user_id: int, limit: int) -> list[ActivityRecord]:
        rows = [a for a in self._rows("activities") if a.user_id == user_id]
        rows.sort(key=lambda a: (a.created_at, a.id), reverse=True)
        return rows[:limit]

    async def list_activities_by_project(self, project_id: int) -> list[ActivityRecord]:
        rows = [a for a in self._rows("activities") if a.project_id == project_id]
        rows.sort(key=lambda a: (a.created_at, a.id), reverse=True)
        return rows

    async def create_activity(
        self,
        *,
        user_id: int,
        type: str,
        description: str,
        project_id: int | None = None,
        client_id: int | None = None,
    ) -> ActivityRecord:
        activity = ActivityRecord(
            id=self._next_id("activities"),
            user_id=user_id,
            project_id=project_id,
            client_id=client_id,
            type=type,
            description=description,
            created_at=utc_now(),
        )
        return self._insert("activities", activity)
