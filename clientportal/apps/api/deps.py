from __future__ import annotations

import logging

from fastapi import Depends, Query, Request

from clientportal.core.config import get_settings
from clientportal.core.errors import UnauthenticatedError
from clientportal.domain.principal import LinkPrincipal, OwnerPrincipal, Principal
from clientportal.persistence.storage import Storage
from clientportal.services.auth.sessions import SessionTokenError, read_session_token
from clientportal.services.blobs import BlobStore


logger = logging.getLogger(__name__)


def get_storage(request: Request) -> Storage:
    # The backend is chosen once in create_app and shared by every request.
    return request.app.state.storage


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def _session_token(request: Request) -> str | None:
    # Prefer an explicit bearer header over the browser cookie.
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return request.cookies.get(get_settings().session_cookie_name)


async def get_owner(
    request: Request, storage: Storage = Depends(get_storage)
) -> OwnerPrincipal | None:
    """Resolve the session owner; bad, expired or orphaned sessions count as anonymous."""
    token = _session_token(request)
    if not token:
        return None
    try:
        user_id = read_session_token(token, secret=get_settings().session_secret)
    except SessionTokenError as exc:
        logger.info("session_rejected path=%s reason=%s", request.url.path, exc)
        return None
    if await storage.get_user(user_id) is None:
        return None
    return OwnerPrincipal(user_id=user_id)


async def get_principal(
    owner: OwnerPrincipal | None = Depends(get_owner),
    share_token: str | None = Query(default=None, alias="token"),
    legacy_token: str | None = Query(default=None, alias="uuid", include_in_schema=False),
) -> Principal:
    # A share token only matters when no owner session is present.
    if owner is not None:
        return owner
    token = share_token or legacy_token
    if token:
        return LinkPrincipal(token=token)
    return None


async def require_owner(owner: OwnerPrincipal | None = Depends(get_owner)) -> OwnerPrincipal:
    if owner is None:
        raise UnauthenticatedError("Authentication required")
    return owner
