from __future__ import annotations

import logging

from clientportal.core.errors import NotFoundError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import ClientRecord
from clientportal.domain.schemas import ClientCreate, ClientPatch
from clientportal.persistence.storage import Storage
from clientportal.services.activity import record_activity
from clientportal.services.authz import load_client


logger = logging.getLogger(__name__)


async def list_clients(storage: Storage, principal: OwnerPrincipal) -> list[ClientRecord]:
    return await storage.list_clients(principal.user_id)


async def get_client(storage: Storage, principal: OwnerPrincipal, client_id: int) -> ClientRecord:
    return await load_client(storage, principal, client_id)


async def create_client(storage: Storage, principal: OwnerPrincipal, data: ClientCreate) -> ClientRecord:
    async with storage.transaction():
        client = await storage.create_client(principal.user_id, data)
        await record_activity(
            storage,
            user_id=principal.user_id,
            client_id=client.id,
            type="client_created",
            description=f"Client {client.name} was created",
        )
    return client


async def update_client(
    storage: Storage, principal: OwnerPrincipal, client_id: int, patch: ClientPatch
) -> ClientRecord:
    await load_client(storage, principal, client_id)
    async with storage.transaction():
        client = await storage.update_client(client_id, patch)
        if client is None:
            raise NotFoundError("Client not found")
        await record_activity(
            storage,
            user_id=principal.user_id,
            client_id=client_id,
            type="client_updated",
            description=f"Client {client.name} was updated",
        )
    return client


async def delete_client(storage: Storage, principal: OwnerPrincipal, client_id: int) -> bool:
    """Delete a client and its projects.

    Projects go one at a time; their tasks, files and estimates stay behind,
    matching what a plain project delete does.
    """
    client = await load_client(storage, principal, client_id)
    projects = await storage.list_projects_by_client(client_id)
    async with storage.transaction():
        for project in projects:
            await storage.delete_project(project.id)
        deleted = await storage.delete_client(client_id)
        await record_activity(
            storage,
            user_id=principal.user_id,
            type="client_deleted",
            description=f"Client {client.name} was deleted",
        )
    logger.info(
        "client_deleted user_id=%s client_id=%s cascaded_projects=%s",
        principal.user_id,
        client_id,
        len(projects),
    )
    return deleted
