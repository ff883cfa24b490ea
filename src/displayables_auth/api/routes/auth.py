"""Authentication Routes

Purpose: Login and session refresh for every provider

Key Endpoints:
- POST /api/v1/login: Log in (local username/password, or external bearer token)
- POST /api/v1/login/refresh: Refresh the current session credential

The provider is selected with the ``provider`` query parameter or header and
defaults to local. Session credentials travel in the ``Authorization`` header.
"""

import logging
from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, Depends, Response

from displayables_auth.api.dependencies import get_auth_request, get_dispatcher, security
from displayables_auth.core.auth import AuthenticationDispatcher
from displayables_auth.domain.models import (
    AuthRequest,
    ErrorResponse,
    LoginRequest,
    RefreshBody,
    SessionBody,
)

router = APIRouter(
    prefix="/api/v1",
    tags=["authentication"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
logger = logging.getLogger(__name__)


@router.post(
    "/login",
    response_model=SessionBody,
    dependencies=[Depends(security)],
)
async def login(
    response: Response,
    credentials: Optional[LoginRequest] = None,
    auth_request: AuthRequest = Depends(get_auth_request),
    dispatcher: AuthenticationDispatcher = Depends(get_dispatcher),
) -> SessionBody:
    """Log in and receive a session credential in the Authorization header"""
    if credentials is not None:
        auth_request = replace(
            auth_request, username=credentials.username, password=credentials.password
        )

    session = await dispatcher.login(auth_request)

    response.headers["Authorization"] = session.authorization
    return SessionBody(**session.to_body())


@router.post(
    "/login/refresh",
    response_model=RefreshBody,
    dependencies=[Depends(security)],
)
async def refresh(
    response: Response,
    auth_request: AuthRequest = Depends(get_auth_request),
    dispatcher: AuthenticationDispatcher = Depends(get_dispatcher),
) -> RefreshBody:
    """Exchange the current session credential for the next one"""
    result = await dispatcher.refresh(auth_request)

    response.headers["Authorization"] = result.authorization
    return RefreshBody(**result.to_body())
