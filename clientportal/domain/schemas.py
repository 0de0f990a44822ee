from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from clientportal.domain.records import EstimateStatus, ProjectStatus, TaskStatus


# Keys the server owns; silently dropped from every payload.
_SERVER_FIELDS = frozenset({"id", "uuid", "user_id", "userId", "created_at", "createdAt"})


def _reject_null(value: Any) -> Any:
    # Patches may omit required columns but never null them out.
    if value is None:
        raise ValueError("Field may not be null")
    return value


NonNullStr = Annotated[str | None, AfterValidator(_reject_null)]
NonNullInt = Annotated[int | None, AfterValidator(_reject_null)]


class Payload(BaseModel):
    """Base for request payloads: unknown keys rejected, server-owned keys ignored.

    Accepts snake_case and camelCase field names.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    server_fields: ClassVar[frozenset[str]] = _SERVER_FIELDS
    nested_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def _drop_server_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if key not in cls.server_fields}
        return data

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller supplied, keyed by column name."""
        return self.model_dump(exclude_unset=True, exclude=set(self.nested_fields))


class ClientCreate(Payload):
    name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class ClientPatch(Payload):
    name: NonNullStr = Field(default=None, min_length=1)
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class ProjectCreate(Payload):
    # Share token and progress are always assigned by the server on create.
    server_fields: ClassVar[frozenset[str]] = _SERVER_FIELDS | {"progress"}

    client_id: int
    name: str = Field(min_length=1)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.NEW.value
    due_date: datetime | None = None


class ProjectPatch(Payload):
    client_id: NonNullInt = None
    name: NonNullStr = Field(default=None, min_length=1)
    description: str | None = None
    status: Annotated[ProjectStatus | None, AfterValidator(_reject_null)] = None
    progress: NonNullInt = Field(default=None, ge=0, le=100)
    due_date: datetime | None = None


class TaskCreate(Payload):
    server_fields: ClassVar[frozenset[str]] = _SERVER_FIELDS | {"project_id", "projectId"}

    name: str = Field(min_length=1)
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING.value
    due_date: datetime | None = None


class TaskPatch(Payload):
    server_fields: ClassVar[frozenset[str]] = _SERVER_FIELDS | {"project_id", "projectId"}

    name: NonNullStr = Field(default=None, min_length=1)
    description: str | None = None
    status: Annotated[TaskStatus | None, AfterValidator(_reject_null)] = None
    due_date: datetime | None = None


class EstimateItemCreate(Payload):
    """A brand-new estimate line. Storage assigns the id, so sending one is an error."""

    server_fields: ClassVar[frozenset[str]] = frozenset({"estimate_id", "estimateId"})

    description: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    price: int


class EstimateItemInput(Payload):
    """One line of an estimate; an id marks an existing item to update in place."""

    server_fields: ClassVar[frozenset[str]] = frozenset({"estimate_id", "estimateId"})

    id: int | None = None
    description: str | None = Field(default=None, min_length=1)
    quantity: int | None = Field(default=None, ge=1)
    price: int | None = None

    @model_validator(mode="after")
    def _new_items_are_complete(self) -> "EstimateItemInput":
        if self.id is None and (self.description is None or self.price is None):
            raise ValueError("New estimate items require description and price")
        return self

    def changes(self) -> dict[str, Any]:
        fields = self.model_dump(exclude_unset=True, exclude={"id"})
        return {key: value for key, value in fields.items() if value is not None}

    def as_new(self) -> EstimateItemCreate:
        return EstimateItemCreate.model_validate(self.changes())


class EstimateCreate(Payload):
    nested_fields: ClassVar[frozenset[str]] = frozenset({"items"})

    project_id: int
    client_id: int
    title: str = Field(min_length=1)
    status: EstimateStatus = EstimateStatus.DRAFT.value
    total_amount: int = Field(default=0, ge=0)
    items: list[EstimateItemCreate] | None = None


class EstimatePatch(Payload):
    nested_fields: ClassVar[frozenset[str]] = frozenset({"items"})

    title: NonNullStr = Field(default=None, min_length=1)
    status: Annotated[EstimateStatus | None, AfterValidator(_reject_null)] = None
    total_amount: NonNullInt = Field(default=None, ge=0)
    items: list[EstimateItemInput] | None = None


class ActivityCreate(Payload):
    type: str = Field(min_length=1, max_length=64)
    description: str = Field(min_length=1)
    project_id: int | None = None
    client_id: int | None = None
