from __future__ import annotations

from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import fields
from typing import Any, AsyncIterator, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clientportal.core.errors import IntegrityConflictError, StorageError
from clientportal.domain.models import (
    Activity,
    Client,
    Estimate,
    EstimateItem,
    File,
    Project,
    ProjectTask,
    User,
)
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


def _to_record(row: Any, record_cls: type[R]) -> R:
    return record_cls(**{field.name: getattr(row, field.name) for field in fields(record_cls)})  # type: ignore[arg-type]


class SqlStorage(Storage):
    """SQLAlchemy async backend; ids come from the database identity columns."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker
        self._active: ContextVar[AsyncSession | None] = ContextVar(
            f"sql_storage_session_{id(self)}", default=None
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._active.get() is not None:
            yield
            return
        async with self._sessionmaker() as session:
            token = self._active.set(session)
            try:
                yield
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StorageError("Database error during transaction") from exc
            except BaseException:
                await session.rollback()
                raise
            finally:
                self._active.reset(token)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        # Reuse the transaction session when one is open; otherwise commit per call.
        active = self._active.get()
        if active is not None:
            yield active
            return
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StorageError("Database error") from exc

    async def _get(self, model: type, record_cls: type[R], row_id: int) -> R | None:
        async with self._session() as session:
            row = await session.get(model, row_id)
            return _to_record(row, record_cls) if row is not None else None

    async def _list(self, stmt: Any, record_cls: type[R]) -> list[R]:
        async with self._session() as session:
            result = await session.execute(stmt)
            return [_to_record(row, record_cls) for row in result.scalars().all()]

    async def _add(self, row: Any, record_cls: type[R]) -> R:
        async with self._session() as session:
            session.add(row)
            await session.flush()
            return _to_record(row, record_cls)

    async def _patch(self, model: type, record_cls: type[R], row_id: int, changes: dict[str, Any]) -> R | None:
        async with self._session() as session:
            row = await session.get(model, row_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            await session.flush()
            return _to_record(row, record_cls)

    async def _delete(self, model: Any, row_id: int) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(model).where(model.id == row_id))
            return bool(result.rowcount)

    # Users

    async def get_user(self, user_id: int) -> UserRecord | None:
        return await self._get(User, UserRecord, user_id)

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        rows = await self._list(select(User).where(User.username == username), UserRecord)
        return rows[0] if rows else None

    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        full_name: str,
        email: str,
        plan_type: str,
    ) -> UserRecord:
        row = User(
            username=username,
            password_hash=password_hash,
            full_name=full_name,
            email=email,
            plan_type=plan_type,
        )
        try:
            return await self._add(row, UserRecord)
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise IntegrityConflictError("Username already exists") from exc
            raise
        except IntegrityError as exc:
            # Raised directly when the insert runs inside an open transaction.
            raise IntegrityConflictError("Username already exists") from exc

    async def update_user_plan(self, user_id: int, plan_type: str) -> UserRecord | None:
        return await self._patch(User, UserRecord, user_id, {"plan_type": plan_type})

    # Clients

    async def list_clients(self, user_id: int) -> list[ClientRecord]:
        stmt = select(Client).where(Client.user_id == user_id).order_by(Client.id.desc())
        return await self._list(stmt, ClientRecord)

    async def get_client(self, client_id: int) -> ClientRecord | None:
        return await self._get(Client, ClientRecord, client_id)

    async def create_client(self, user_id: int, data: ClientCreate) -> ClientRecord:
        row = Client(user_id=user_id, created_at=utc_now(), **data.changes())
        return await self._add(row, ClientRecord)

    async def update_client(self, client_id: int, patch: ClientPatch) -> ClientRecord | None:
        return await self._patch(Client, ClientRecord, client_id, patch.changes())

    async def delete_client(self, client_id: int) -> bool:
        return await self._delete(Client, client_id)

    # Projects

    async def list_projects(self, user_id: int) -> list[ProjectRecord]:
        stmt = select(Project).where(Project.user_id == user_id).order_by(Project.id.desc())
        return await self._list(stmt, ProjectRecord)

    async def list_projects_by_client(self, client_id: int) -> list[ProjectRecord]:
        stmt = select(Project).where(Project.client_id == client_id).order_by(Project.id.desc())
        return await self._list(stmt, ProjectRecord)

    async def get_project(self, project_id: int) -> ProjectRecord | None:
        return await self._get(Project, ProjectRecord, project_id)

    async def get_project_by_uuid(self, token: str) -> ProjectRecord | None:
        rows = await self._list(select(Project).where(Project.uuid == token), ProjectRecord)
        return rows[0] if rows else None

    async def create_project(self, user_id: int, data: ProjectCreate) -> ProjectRecord:
        row = Project(
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
        return await self._add(row, ProjectRecord)

    async def update_project(self, project_id: int, patch: ProjectPatch) -> ProjectRecord | None:
        return await self._patch(Project, ProjectRecord, project_id, patch.changes())

    async def delete_project(self, project_id: int) -> bool:
        return await self._delete(Project, project_id)

    # Tasks

    async def list_tasks(self, project_id: int) -> list[TaskRecord]:
        stmt = (
            select(ProjectTask)
            .where(ProjectTask.project_id == project_id)
            .order_by(ProjectTask.id.desc())
        )
        return await self._list(stmt, TaskRecord)

    async def get_task(self, task_id: int) -> TaskRecord | None:
        return await self._get(ProjectTask, TaskRecord, task_id)

    async def create_task(self, project_id: int, data: TaskCreate) -> TaskRecord:
        row = ProjectTask(
            project_id=project_id,
            name=data.name,
            description=data.description,
            status=data.status,
            due_date=data.due_date,
            created_at=utc_now(),
        )
        return await self._add(row, TaskRecord)

    async def update_task(self, task_id: int, patch: TaskPatch) -> TaskRecord | None:
        return await self._patch(ProjectTask, TaskRecord, task_id, patch.changes())

    async def delete_task(self, task_id: int) -> bool:
        return await self._delete(ProjectTask, task_id)

    # Files

    async def list_files(self, project_id: int) -> list[FileRecord]:
        stmt = select(File).where(File.project_id == project_id).order_by(File.id.desc())
        return await self._list(stmt, FileRecord)

    async def get_file(self, file_id: int) -> FileRecord | None:
        return await self._get(File, FileRecord, file_id)

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
        row = File(
            user_id=user_id,
            project_id=project_id,
            name=name,
            file_type=file_type,
            file_size=file_size,
            path=path,
            created_at=utc_now(),
        )
        return await self._add(row, FileRecord)

    async def delete_file(self, file_id: int) -> bool:
        return await self._delete(File, file_id)

    # Estimates

    async def list_estimates(self, user_id: int) -> list[EstimateRecord]:
        stmt = select(Estimate).where(Estimate.user_id == user_id).order_by(Estimate.id.desc())
        return await self._list(stmt, EstimateRecord)

    async def list_estimates_by_project(self, project_id: int) -> list[EstimateRecord]:
        stmt = select(Estimate).where(Estimate.project_id == project_id).order_by(Estimate.id.desc())
        return await self._list(stmt, EstimateRecord)

    async def get_estimate(self, estimate_id: int) -> EstimateRecord | None:
        return await self._get(Estimate, EstimateRecord, estimate_id)

    async def create_estimate(self, user_id: int, data: EstimateCreate) -> EstimateRecord:
        row = Estimate(
            user_id=user_id,
            project_id=data.project_id,
            client_id=data.client_id,
            title=data.title,
            status=data.status,
            total_amount=data.total_amount,
            created_at=utc_now(),
        )
        return await self._add(row, EstimateRecord)

    async def update_estimate(self, estimate_id: int, patch: EstimatePatch) -> EstimateRecord | None:
        return await self._patch(Estimate, EstimateRecord, estimate_id, patch.changes())

    async def delete_estimate(self, estimate_id: int) -> bool:
        return await self._delete(Estimate, estimate_id)

    # Estimate items

    async def list_estimate_items(self, estimate_id: int) -> list[EstimateItemRecord]:
        # Ascending id keeps estimate lines in the order they were entered.
        stmt = (
            select(EstimateItem)
            .where(EstimateItem.estimate_id == estimate_id)
            .order_by(EstimateItem.id)
        )
        return await self._list(stmt, EstimateItemRecord)

    async def create_estimate_item(
        self,
        estimate_id: int,
        *,
        description: str,
        quantity: int,
        price: int,
    ) -> EstimateItemRecord:
        row = EstimateItem(
            estimate_id=estimate_id,
            description=description,
            quantity=quantity,
            price=price,
        )
        return await self._add(row, EstimateItemRecord)

    async def update_estimate_item(
        self, item_id: int, item: EstimateItemInput
    ) -> EstimateItemRecord | None:
        return await self._patch(EstimateItem, EstimateItemRecord, item_id, item.changes())

    async def delete_estimate_item(self, item_id: int) -> bool:
        return await self._delete(EstimateItem, item_id)

    # Activities

    async def list_activities(self, user_id: int, limit: int) -> list[ActivityRecord]:
        stmt = (
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .limit(limit)
        )
        return await self._list(stmt, ActivityRecord)

    async def list_activities_by_project(self, project_id: int) -> list[ActivityRecord]:
        stmt = (
            select(Activity)
            .where(Activity.project_id == project_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        return await self._list(stmt, ActivityRecord)

    async def create_activity(
        self,
        *,
        user_id: int,
        type: str,
        description: str,
        project_id: int | None = None,
        client_id: int | None = None,
    ) -> ActivityRecord:
        row = Activity(
            user_id=user_id,
            project_id=project_id,
            client_id=client_id,
            type=type,
            description=description,
            created_at=utc_now(),
        )
        return await self._add(row, ActivityRecord)
