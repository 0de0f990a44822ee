from __future__ import annotations

from dataclasses import dataclass
import logging

from clientportal.core.errors import IntegrityConflictError, NotFoundError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import EstimateItemRecord, EstimateRecord
from clientportal.domain.schemas import (
    EstimateCreate,
    EstimateItemCreate,
    EstimateItemInput,
    EstimatePatch,
)
from clientportal.persistence.storage import Storage
from clientportal.services.activity import record_activity
from clientportal.services.authz import load_client, load_estimate, load_project


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimateWithItems:
    estimate: EstimateRecord
    items: list[EstimateItemRecord]


@dataclass(frozen=True)
class ItemPlan:
    """Diff between stored estimate items and an incoming item list."""

    updates: list[tuple[int, EstimateItemInput]]
    inserts: list[EstimateItemCreate]
    deletes: list[int]


def plan_item_reconcile(stored: list[EstimateItemRecord], incoming: list[EstimateItemInput]) -> ItemPlan:
    stored_ids = {item.id for item in stored}
    unknown = [item.id for item in incoming if item.id is not None and item.id not in stored_ids]
    if unknown:
        # Ids from another estimate must never be touched through this one.
        raise NotFoundError(
            "Estimate item not found",
            details={"item_ids": unknown},
        )
    kept_ids = {item.id for item in incoming if item.id is not None}
    return ItemPlan(
        updates=[(item.id, item) for item in incoming if item.id is not None],
        inserts=[item.as_new() for item in incoming if item.id is None],
        deletes=[item.id for item in stored if item.id not in kept_ids],
    )


async def _insert_items(
    storage: Storage, estimate_id: int, items: list[EstimateItemCreate]
) -> None:
    for item in items:
        await storage.create_estimate_item(
            estimate_id,
            description=item.description,
            quantity=item.quantity,
            price=item.price,
        )


async def list_estimates(
    storage: Storage, principal: OwnerPrincipal, project_id: int | None = None
) -> list[EstimateRecord]:
    if project_id is None:
        return await storage.list_estimates(principal.user_id)
    await load_project(storage, principal, project_id)
    return await storage.list_estimates_by_project(project_id)


async def get_estimate(storage: Storage, principal: OwnerPrincipal, estimate_id: int) -> EstimateWithItems:
    estimate = await load_estimate(storage, principal, estimate_id)
    items = await storage.list_estimate_items(estimate_id)
    return EstimateWithItems(estimate=estimate, items=items)


async def create_estimate(
    storage: Storage, principal: OwnerPrincipal, data: EstimateCreate
) -> EstimateWithItems:
    # Project and client arrive as separate ids, so both are checked.
    project = await load_project(storage, principal, data.project_id)
    await load_client(storage, principal, data.client_id)
    if project.client_id != data.client_id:
        raise IntegrityConflictError("Estimate client does not match the project's client")
    async with storage.transaction():
        estimate = await storage.create_estimate(principal.user_id, data)
        await _insert_items(storage, estimate.id, data.items or [])
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=project.id,
            client_id=project.client_id,
            type="estimate_created",
            description=f'Estimate "{estimate.title}" was created for project {project.name}',
        )
        items = await storage.list_estimate_items(estimate.id)
    return EstimateWithItems(estimate=estimate, items=items)


async def update_estimate(
    storage: Storage, principal: OwnerPrincipal, estimate_id: int, patch: EstimatePatch
) -> EstimateWithItems:
    """Merge estimate fields and, when items are supplied, reconcile them by id.

    total_amount is whatever the caller last supplied; items never change it.
    """
    estimate = await load_estimate(storage, principal, estimate_id)
    plan: ItemPlan | None = None
    if patch.items is not None:
        stored = await storage.list_estimate_items(estimate_id)
        plan = plan_item_reconcile(stored, patch.items)
    project = await storage.get_project(estimate.project_id)
    async with storage.transaction():
        updated = await storage.update_estimate(estimate_id, patch)
        if updated is None:
            raise NotFoundError("Estimate not found")
        if plan is not None:
            for item_id, item in plan.updates:
                await storage.update_estimate_item(item_id, item)
            await _insert_items(storage, estimate_id, plan.inserts)
            for item_id in plan.deletes:
                await storage.delete_estimate_item(item_id)
        project_name = project.name if project is not None else None
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=estimate.project_id,
            client_id=estimate.client_id,
            type="estimate_updated",
            description=f'Estimate "{updated.title}" for project {project_name} was updated',
        )
        items = await storage.list_estimate_items(estimate_id)
    if plan is not None:
        logger.info(
            "estimate_items_reconciled estimate_id=%s updated=%s inserted=%s deleted=%s",
            estimate_id,
            len(plan.updates),
            len(plan.inserts),
            len(plan.deletes),
        )
    return EstimateWithItems(estimate=updated, items=items)


async def delete_estimate(storage: Storage, principal: OwnerPrincipal, estimate_id: int) -> bool:
    estimate = await load_estimate(storage, principal, estimate_id)
    project = await storage.get_project(estimate.project_id)
    items = await storage.list_estimate_items(estimate_id)
    async with storage.transaction():
        # Items first; storage has no cascading delete.
        for item in items:
            await storage.delete_estimate_item(item.id)
        deleted = await storage.delete_estimate(estimate_id)
        project_name = project.name if project is not None else None
        await record_activity(
            storage,
            user_id=principal.user_id,
            project_id=estimate.project_id,
            client_id=estimate.client_id,
            type="estimate_deleted",
            description=f'Estimate "{estimate.title}" for project {project_name} was deleted',
        )
    return deleted
