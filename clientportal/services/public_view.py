from __future__ import annotations

from dataclasses import dataclass

from clientportal.core.errors import ForbiddenError, NotFoundError, UnauthenticatedError
from clientportal.domain.principal import LinkPrincipal, OwnerPrincipal, Principal
from clientportal.domain.records import (
    ActivityRecord,
    ClientRecord,
    FileRecord,
    ProjectRecord,
    TaskRecord,
)
from clientportal.persistence.storage import Storage
from clientportal.services.authz import can_access_file
from clientportal.services.estimates import EstimateWithItems


@dataclass(frozen=True)
class ProjectView:
    """Read-only aggregate shown to share-link holders."""

    project: ProjectRecord
    client: ClientRecord | None
    tasks: list[TaskRecord]
    files: list[FileRecord]
    estimates: list[EstimateWithItems]
    activities: list[ActivityRecord]


async def resolve_project_view(storage: Storage, token: str) -> ProjectView:
    project = await storage.get_project_by_uuid(token)
    if project is None:
        raise NotFoundError("Project not found")
    # Every nested fetch is keyed by the resolved project id only.
    estimates = [
        EstimateWithItems(estimate=estimate, items=await storage.list_estimate_items(estimate.id))
        for estimate in await storage.list_estimates_by_project(project.id)
    ]
    return ProjectView(
        project=project,
        client=await storage.get_client(project.client_id),
        tasks=await storage.list_tasks(project.id),
        files=await storage.list_files(project.id),
        estimates=estimates,
        activities=await storage.list_activities_by_project(project.id),
    )


async def authorize_file_download(storage: Storage, principal: Principal, file_id: int) -> FileRecord:
    """Owners download their own files; anyone else needs the project's share token."""
    file = await storage.get_file(file_id)
    if file is None:
        raise NotFoundError("File not found")
    if isinstance(principal, OwnerPrincipal):
        if not can_access_file(principal, file):
            raise ForbiddenError("File belongs to another user")
        return file
    if not isinstance(principal, LinkPrincipal):
        raise UnauthenticatedError("Authentication or share token required")
    project = await storage.get_project_by_uuid(principal.token)
    if project is None or project.id != file.project_id:
        raise ForbiddenError("Share token does not grant access to this file")
    return file
