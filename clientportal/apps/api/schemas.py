from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from clientportal.domain.records import UserRecord
from clientportal.services.estimates import EstimateWithItems
from clientportal.services.public_view import ProjectView


class ApiModel(BaseModel):
    # Responses use camelCase keys; request payloads accept both spellings.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserResponse(ApiModel):
    id: int
    username: str
    full_name: str
    email: str
    plan_type: str


class SessionResponse(ApiModel):
    user: UserResponse
    token: str


class RegisterRequest(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    plan_type: str | None = None


class LoginRequest(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class PlanRequest(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    plan_type: str = Field(min_length=1, max_length=64)


class ClientResponse(ApiModel):
    id: int
    user_id: int
    name: str
    email: str | None
    phone: str | None
    company: str | None
    created_at: datetime


class ProjectResponse(ApiModel):
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


class TaskResponse(ApiModel):
    id: int
    project_id: int
    name: str
    description: str | None
    status: str
    due_date: datetime | None
    created_at: datetime


class FileResponse(ApiModel):
    id: int
    user_id: int
    project_id: int
    name: str
    file_type: str
    file_size: int
    created_at: datetime


class EstimateItemResponse(ApiModel):
    id: int
    estimate_id: int
    description: str
    quantity: int
    price: int


class EstimateResponse(ApiModel):
    id: int
    user_id: int
    project_id: int
    client_id: int
    title: str
    status: str
    total_amount: int
    created_at: datetime


class EstimateDetailResponse(EstimateResponse):
    items: list[EstimateItemResponse]


class ActivityResponse(ApiModel):
    id: int
    user_id: int
    project_id: int | None
    client_id: int | None
    type: str
    description: str
    created_at: datetime


class ProjectViewResponse(ApiModel):
    project: ProjectResponse
    client: ClientResponse | None
    tasks: list[TaskResponse]
    files: list[FileResponse]
    estimates: list[EstimateDetailResponse]
    activities: list[ActivityResponse]


def user_response(user: UserRecord) -> UserResponse:
    # Never echo the password hash.
    return UserResponse.model_validate(user)


def estimate_detail(view: EstimateWithItems) -> EstimateDetailResponse:
    return EstimateDetailResponse(
        **EstimateResponse.model_validate(view.estimate).model_dump(),
        items=[EstimateItemResponse.model_validate(item) for item in view.items],
    )


def project_view_response(view: ProjectView) -> ProjectViewResponse:
    return ProjectViewResponse(
        project=ProjectResponse.model_validate(view.project),
        client=ClientResponse.model_validate(view.client) if view.client is not None else None,
        tasks=[TaskResponse.model_validate(task) for task in view.tasks],
        files=[FileResponse.model_validate(file) for file in view.files],
        estimates=[estimate_detail(estimate) for estimate in view.estimates],
        activities=[ActivityResponse.model_validate(activity) for activity in view.activities],
    )
