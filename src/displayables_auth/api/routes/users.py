"""User Routes

Purpose: Local account registration and self-service account endpoints

Key Endpoints:
- POST /api/v1/register: Register a local account
- GET /api/v1/users/self: Information about the authenticated user
- PATCH /api/v1/users/self/password: Change the local password
"""

import logging

from fastapi import APIRouter, Depends

from displayables_auth.api.dependencies import (
    get_account_service,
    get_auth_request,
    require_session,
    security,
)
from displayables_auth.core.auth import AccountService
from displayables_auth.core.messages import MessageKey, describe
from displayables_auth.core.security import SessionClaims
from displayables_auth.domain.models import (
    AuthRequest,
    ErrorResponse,
    MessageResponse,
    PasswordUpdateRequest,
    RegisterBody,
    RegisterRequest,
    UserInfoResponse,
)

router = APIRouter(
    prefix="/api/v1",
    tags=["users"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
logger = logging.getLogger(__name__)


@router.post("/register", response_model=RegisterBody, status_code=201)
async def register(
    request: RegisterRequest,
    auth_request: AuthRequest = Depends(get_auth_request),
    accounts: AccountService = Depends(get_account_service),
) -> RegisterBody:
    """Register a local account (always the local provider)"""
    user = await accounts.register(request.username, request.password, request.name)

    return RegisterBody(
        message=describe(MessageKey.USER_CREATED, auth_request.locale, username=user.username),
        username=user.username,
        id=user.id,
    )


@router.get(
    "/users/self",
    response_model=UserInfoResponse,
    dependencies=[Depends(security)],
)
async def get_self(claims: SessionClaims = Depends(require_session)) -> UserInfoResponse:
    """Basic information about the authenticated user"""
    return UserInfoResponse(
        id=claims.id,
        name=claims.name,
        username=claims.username,
        provider=claims.provider,
    )


@router.patch(
    "/users/self/password",
    response_model=MessageResponse,
    dependencies=[Depends(security)],
)
async def update_password(
    request: PasswordUpdateRequest,
    claims: SessionClaims = Depends(require_session),
    auth_request: AuthRequest = Depends(get_auth_request),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    """Change the password of the authenticated local user"""
    await accounts.update_password(claims.id, request.old_password, request.password)

    logger.info(f"Password updated for user {claims.id}")
    return MessageResponse(message=describe(MessageKey.PASSWORD_UPDATED, auth_request.locale))
