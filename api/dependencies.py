"""FastAPI dependencies for dependency injection."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import CompanyScope, require_admin, require_staff, scope_for
from core.config import settings
from core.identity import Principal, resolve_principal
from database.engine import get_db


security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Read the session token from the Authorization header, then the cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def get_principal(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Resolve the acting principal; raises Unauthenticated (401) otherwise."""
    return await resolve_principal(
        db,
        token,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


async def get_scope(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> CompanyScope:
    """Company scope of the acting principal."""
    return await scope_for(db, principal)


async def require_staff_principal(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Require an OPS or ADMIN principal."""
    require_staff(principal)
    return principal


async def require_admin_principal(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Require an ADMIN principal."""
    require_admin(principal)
    return principal
