from __future__ import annotations

from dataclasses import dataclass

from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import ClientRecord, ProjectRecord, TaskRecord
from clientportal.domain.schemas import ClientCreate, ProjectCreate, TaskCreate
from clientportal.persistence.storage import Storage
from clientportal.services import clients, projects, tasks


@dataclass(frozen=True)
class SeededProject:
    client: ClientRecord
    project: ProjectRecord
    task: TaskRecord


async def seed_project(
    storage: Storage,
    owner: OwnerPrincipal,
    *,
    client_name: str = "Acme",
    project_name: str = "Website",
    task_name: str = "Design mockup",
) -> SeededProject:
    # Build one client/project/task chain through the services so activities exist too.
    client = await clients.create_client(storage, owner, ClientCreate(name=client_name))
    project = await projects.create_project(
        storage, owner, ProjectCreate(client_id=client.id, name=project_name)
    )
    task = await tasks.create_task(storage, owner, project.id, TaskCreate(name=task_name))
    return SeededProject(client=client, project=project, task=task)
