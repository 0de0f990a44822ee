from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from clientportal.apps.api.deps import get_storage, require_owner
from clientportal.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from clientportal.apps.api.response import SuccessFlag
from clientportal.apps.api.schemas import (
    LoginRequest,
    PlanRequest,
    RegisterRequest,
    SessionResponse,
    UserResponse,
    user_response,
)
from clientportal.core.config import get_settings
from clientportal.core.errors import NotFoundError, UnauthenticatedError
from clientportal.domain.principal import OwnerPrincipal
from clientportal.domain.records import UserRecord
from clientportal.persistence.storage import Storage
from clientportal.services.auth.passwords import hash_password, verify_password
from clientportal.services.auth.sessions import issue_session_token


logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"], responses=DEFAULT_ERROR_RESPONSES)


def _start_session(response: Response, user: UserRecord) -> SessionResponse:
    # Issue one token and hand it out as both cookie and body field.
    settings = get_settings()
    token = issue_session_token(
        user.id,
        secret=settings.session_secret,
        ttl_hours=settings.session_ttl_hours,
    )
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return SessionResponse(user=user_response(user), token=token)


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    response: Response,
    storage: Storage = Depends(get_storage),
) -> SessionResponse:
    user = await storage.create_user(
        username=payload.username,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name,
        email=payload.email,
        plan_type=payload.plan_type or get_settings().default_plan_type,
    )
    logger.info("user_registered user_id=%s", user.id)
    return _start_session(response, user)


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    storage: Storage = Depends(get_storage),
) -> SessionResponse:
    user = await storage.get_user_by_username(payload.username)
    if user is None or not verify_password(payload.password, user.password_hash):
        # Same message for unknown users and wrong passwords.
        raise UnauthenticatedError("Invalid username or password")
    return _start_session(response, user)


@router.post("/logout", response_model=SuccessFlag)
async def logout(response: Response) -> SuccessFlag:
    response.delete_cookie(get_settings().session_cookie_name)
    return SuccessFlag(success=True)


@router.get("/user", response_model=UserResponse)
async def current_user(
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> UserResponse:
    user = await storage.get_user(owner.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user_response(user)


@router.put("/user/plan", response_model=UserResponse)
async def update_plan(
    payload: PlanRequest,
    owner: OwnerPrincipal = Depends(require_owner),
    storage: Storage = Depends(get_storage),
) -> UserResponse:
    user = await storage.update_user_plan(owner.user_id, payload.plan_type)
    if user is None:
        raise NotFoundError("User not found")
    logger.info("user_plan_updated user_id=%s plan_type=%s", user.id, user.plan_type)
    return user_response(user)
