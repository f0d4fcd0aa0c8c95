"""
Authentication endpoints.

Provides:
- Email/password login (token in the body and in the session cookie)
- Logout (revokes the server-side session)
- Current principal
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_principal, get_session_token
from api.schemas.users import LoginRequest
from api.services import users as user_service
from core.config import settings
from core.exceptions import Unauthenticated
from core.identity import Principal, resolve_principal
from core.middleware.logging import get_remote_address
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/login",
    summary="Login",
    description="Login with email and password. Sets the session cookie.",
)
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Verify credentials, open a session and return the access token."""
    result = await user_service.login(
        db,
        email=login_data.email,
        password=login_data.password,
        ip_address=get_remote_address(request),
        user_agent=request.headers.get("user-agent"),
    )

    response = JSONResponse(content=result)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result["access_token"],
        max_age=result["expires_in"],
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


@router.get(
    "/logout",
    summary="Logout",
    description="Revoke the current session, clear the cookie and redirect to /login.",
)
async def logout(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
):
    """Logout user and revoke session."""
    principal: Optional[Principal] = None
    if token:
        try:
            principal = await resolve_principal(
                db,
                token,
                secret_key=settings.jwt_secret_key,
                algorithm=settings.jwt_algorithm,
            )
        except Unauthenticated:
            logger.debug("Logout with an invalid or expired session")

    if principal is not None:
        await user_service.logout(db, principal)

    response = RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get(
    "/me",
    summary="Current User",
    description="Get the authenticated principal.",
)
async def me(principal: Principal = Depends(get_principal)):
    """Return id, role and display name of the caller."""
    return principal.to_dict()
