from __future__ import annotations

import pytest

from clientportal.core.errors import IntegrityConflictError, NotFoundError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import EstimateItemRecord
from clientportal.domain.schemas import ClientCreate, EstimateCreate, EstimateItemInput, EstimatePatch
from clientportal.persistence.storage import MemoryStorage
from clientportal.services import clients, estimates
from clientportal.tests.utils.auth import create_demo_owner
from clientportal.tests.utils.seed import SeededProject, seed_project


async def _estimate_with_two_items(storage: MemoryStorage, owner: OwnerPrincipal, seeded: SeededProject):
    return await estimates.create_estimate(
        storage,
        owner,
        EstimateCreate.model_validate(
            {
                "projectId": seeded.project.id,
                "clientId": seeded.client.id,
                "title": "Website quote",
                "totalAmount": 5000,
                "items": [
                    {"description": "Design", "quantity": 1, "price": 2000},
                    {"description": "Build", "quantity": 3, "price": 1000},
                ],
            }
        ),
    )


def test_plan_splits_updates_inserts_and_deletes() -> None:
    stored = [
        EstimateItemRecord(id=1, estimate_id=9, description="a", quantity=1, price=1),
        EstimateItemRecord(id=2, estimate_id=9, description="b", quantity=1, price=1),
    ]
    plan = estimates.plan_item_reconcile(
        stored,
        [
            EstimateItemInput(id=1, price=5),
            EstimateItemInput(description="new", price=3),
        ],
    )
    assert [item_id for item_id, _ in plan.updates] == [1]
    assert [item.description for item in plan.inserts] == ["new"]
    assert plan.deletes == [2]


@pytest.mark.asyncio
async def test_create_returns_items_in_entry_order(storage: MemoryStorage) -> None:
    alice = await create_demo_owner(storage)
    seeded = await seed_project(storage, alice)
    created = await _estimate_with_two_items(storage, alice, seeded)
    assert [item.description for item in created.items] == ["Design", "Build"]
    assert created.items[1].quantity == 3
    assert created.estimate.total_amount == 5000


@pytest.mark.asyncio
async def test_update_reconciles_items_by_id(storage: MemoryStorage) -> None:
    alice = await create_demo_owner(storage)
    seeded = await seed_project(storage, alice)
    created = await _estimate_with_two_items(storage, alice, seeded)
    first, second = created.items

    updated = await estimates.update_estimate(
        storage,
        alice,
        created.estimate.id,
        EstimatePatch.model_validate(
            {"items": [{"id": first.id, "price": 2500}, {"description": "new", "price": 700}]}
        ),
    )

    assert len(updated.items) == 2
    assert updated.items[0].id == first.id
    assert updated.items[0].price == 2500
    assert updated.items[0].description == "Design"
    assert updated.items[1].description == "new"
    assert second.id not in {item.id for item in updated.items}
    # Items never feed back into the caller-supplied total.
    assert updated.estimate.total_amount == 5000


@pytest.mark.asyncio
async def test_update_without_items_leaves_them_alone(storage: MemoryStorage) -> None:
    alice = await create_demo_owner(storage)
    seeded = await seed_project(storage, alice)
    created = await _estimate_with_two_items(storage, alice, seeded)
    updated = await estimates.update_estimate(
        storage, alice, created.estimate.id, EstimatePatch(total_amount=9000, status="sent")
    )
    assert [item.id for item in updated.items] == [item.id for item in created.items]
    assert updated.estimate.total_amount == 9000
    assert updated.estimate.status == "sent"


@pytest.mark.asyncio
async def test_foreign_item_id_is_not_found_before_any_write(storage: MemoryStorage) -> None:
    alice = await create_demo_owner(storage)
    seeded = await seed_project(storage, alice)
    mine = await _estimate_with_two_items(storage, alice, seeded)
    other = await _estimate_with_two_items(storage, alice, seeded)
    before = storage.snapshot()

    with pytest.raises(NotFoundError):
        await estimates.update_estimate(
            storage,
            alice,
            mine.estimate.id,
            EstimatePatch.model_validate(
                {"title": "Changed", "items": [{"id": other.items[0].id, "price": 1}]}
            ),
        )
    assert storage.snapshot() == before


@pytest.mark.asyncio
async def test_delete_removes_items_first(storage: MemoryStorage) -> None:
    alice = await create_demo_owner(storage)
    seeded = await seed_project(storage, alice)
    created = await _estimate_with_two_items(storage, alice, seeded)
    assert await estimates.delete_estimate(storage, alice, created.estimate.id) is True
    assert await storage.list_estimate_items(created.estimate.id) == []
    assert await storage.get_estimate(created.estimate.id) is None


@pytest.mark.asyncio
async def test_client_must_match_project_client(storage: MemoryStorage) -> None:
    alice = await create_demo_owner(storage)
    seeded = await seed_project(storage, alice)
    other_client = await clients.create_client(storage, alice, ClientCreate(name="Globex"))
    with pytest.raises(IntegrityConflictError):
        await estimates.create_estimate(
            storage,
            alice,
            EstimateCreate(project_id=seeded.project.id, client_id=other_client.id, title="Mismatch"),
        )
