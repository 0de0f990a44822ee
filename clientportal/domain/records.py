from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ProjectStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in progress"
    PENDING_APPROVAL = "pending approval"
    ON_HOLD = "on hold"
    COMPLETED = "completed"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"


# Records are immutable snapshots; backends hand out fresh instances on update.


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    password_hash: str
    full_name: str
    email: str
    plan_type: str = "free"


@dataclass(frozen=True)
class ClientRecord:
    id: int
    user_id: int
    name: str
    email: str | None
    phone: str | None
    company: str | None
    created_at: datetime


@dataclass(frozen=True)
class ProjectRecord:
    id: int
    user_id: int
    client_id: int
    name: str
    description: str | None
    status: str
    progress: int
    due_date: datetime | None
    uuid: str
    created_at: datetime


@dataclass(frozen=True)
class TaskRecord:
    id: int
    project_id: int
    name: str
    description: str | None
    status: str
    due_date: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class FileRecord:
    id: int
    user_id: int
    project_id: int
    name: str
    file_type: str
    file_size: int
    path: str
    created_at: datetime


@dataclass(frozen=True)
class EstimateRecord:
    id: int
    user_id: int
    project_id: int
    client_id: int
    title: str
    status: str
    total_amount: int
    created_at: datetime


@dataclass(frozen=True)
class EstimateItemRecord:
    id: int
    estimate_id: int
    description: str
    quantity: int
    price: int


@dataclass(frozen=True)
class ActivityRecord:
    id: int
    user_id: int
    project_id: int | None
    client_id: int | None
    type: str
    description: str
    created_at: datetime
