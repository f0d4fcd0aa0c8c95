"""
User provisioning endpoints. ADMIN only.

Provides REST API for creating users, resetting passwords, changing roles
and managing per-company access grants.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_admin_principal
from api.schemas.users import (
    CompanyAccessRequest,
    CreateUserRequest,
    ResetPasswordRequest,
    SetRoleRequest,
)
from api.services import users as user_service
from core.identity import Principal
from database.engine import get_db

router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.post(
    "/create",
    summary="Create User",
    description="Create a user with a role and optional company grants (by ref id).",
)
async def create_user(
    request: CreateUserRequest,
    principal: Principal = Depends(require_admin_principal),
    db: AsyncSession = Depends(get_db),
):
    """Provision a new identity and profile."""
    return await user_service.create_user(db, principal, request)


@router.post(
    "/reset-password",
    summary="Reset Password",
    description="Set a new password for a user and revoke their open sessions.",
)
async def reset_password(
    request: ResetPasswordRequest,
    principal: Principal = Depends(require_admin_principal),
    db: AsyncSession = Depends(get_db),
):
    """Reset a user's password."""
    return await user_service.reset_password(db, principal, request.user_id, request.new_password)


@router.post(
    "/set-role",
    summary="Set Role",
    description="Change a user's role.",
)
async def set_role(
    request: SetRoleRequest,
    principal: Principal = Depends(require_admin_principal),
    db: AsyncSession = Depends(get_db),
):
    """Change the role on a user's profile."""
    return await user_service.set_role(db, principal, request.user_id, request.role)


@router.post(
    "/grant-access",
    summary="Grant Company Access",
    description="Allow a user to read the given companies and their jobs.",
)
async def grant_access(
    request: CompanyAccessRequest,
    principal: Principal = Depends(require_admin_principal),
    db: AsyncSession = Depends(get_db),
):
    """Add company access grants."""
    return await user_service.grant_company_access(
        db, principal, request.user_id, request.company_ref_ids
    )


@router.post(
    "/revoke-access",
    summary="Revoke Company Access",
    description="Remove a user's access to the given companies.",
)
async def revoke_access(
    request: CompanyAccessRequest,
    principal: Principal = Depends(require_admin_principal),
    db: AsyncSession = Depends(get_db),
):
    """Remove company access grants."""
    return await user_service.revoke_company_access(
        db, principal, request.user_id, request.company_ref_ids
    )
