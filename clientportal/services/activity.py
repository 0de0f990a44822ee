from __future__ import annotations

import logging

from clientportal.core.config import get_settings
from clientportal.core.errors import InputValidationError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import ActivityRecord
from clientportal.domain.schemas import ActivityCreate
from clientportal.persistence.storage import Storage
from clientportal.services.authz import load_client, load_project


logger = logging.getLogger(__name__)


async def record_activity(
    storage: Storage,
    *,
    user_id: int,
    type: str,
    description: str,
    project_id: int | None = None,
    client_id: int | None = None,
) -> ActivityRecord:
    # Append one immutable feed row; runs inside the caller's transaction.
    activity = await storage.create_activity(
        user_id=user_id,
        type=type,
        description=description,
        project_id=project_id,
        client_id=client_id,
    )
    logger.info(
        "activity_recorded user_id=%s type=%s project_id=%s client_id=%s",
        user_id,
        type,
        project_id,
        client_id,
    )
    return activity


def resolve_feed_limit(limit: int | None) -> int:
    settings = get_settings()
    if limit is None:
        return settings.activity_default_limit
    if limit < 1:
        raise InputValidationError(
            "Invalid limit",
            errors=[
                {
                    "loc": ["query", "limit"],
                    "msg": "Input should be greater than or equal to 1",
                    "type": "greater_than_equal",
                }
            ],
        )
    return min(limit, settings.activity_max_limit)


async def list_user_activities(
    storage: Storage, principal: OwnerPrincipal, limit: int | None = None
) -> list[ActivityRecord]:
    return await storage.list_activities(principal.user_id, resolve_feed_limit(limit))


async def add_note(storage: Storage, principal: OwnerPrincipal, data: ActivityCreate) -> ActivityRecord:
    """Append a caller-authored entry; referenced rows must belong to the caller."""
    if data.project_id is not None:
        await load_project(storage, principal, data.project_id)
    if data.client_id is not None:
        await load_client(storage, principal, data.client_id)
    return await record_activity(
        storage,
        user_id=principal.user_id,
        type=data.type,
        description=data.description,
        project_id=data.project_id,
        client_id=data.client_id,
    )
