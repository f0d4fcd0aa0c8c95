"""User, session and provisioning service functions."""

from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.users import CreateUserRequest
from core.access import require_admin
from core.config import settings
from core.exceptions import NotFound, Unauthenticated, ValidationError
from core.identity import DEFAULT_ROLE, Principal
from core.security import create_access_token, hash_password, verify_password
from core.utils.datetime import now as utc_now
from core.utils.validators import validate_password
from database.models.companies import Company, CompanyAccess
from database.models.users import AppRole, AppUser, User, UserSession

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise


async def _get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound()
    return user


async def _companies_by_ref(
    db: AsyncSession, ref_ids: Iterable[str]
) -> Tuple[List[Company], List[str]]:
    """Resolve ref ids to companies; returns (found, unknown ref ids)."""
    refs = list(ref_ids)
    if not refs:
        return [], []
    result = await db.execute(select(Company).where(Company.ref_id.in_(refs)))
    companies = list(result.scalars().all())
    found = {c.ref_id for c in companies}
    return companies, [r for r in refs if r not in found]


async def _grant(db: AsyncSession, user_id: uuid.UUID, companies: List[Company]) -> None:
    """Add missing access rows for `companies`; existing grants are left as is."""
    if not companies:
        return
    result = await db.execute(
        select(CompanyAccess.company_id).where(
            CompanyAccess.user_id == user_id,
            CompanyAccess.company_id.in_([c.id for c in companies]),
        )
    )
    existing = set(result.scalars().all())
    for company in companies:
        if company.id not in existing:
            db.add(CompanyAccess(user_id=user_id, company_id=company.id))


# ==================== Sessions ===================== #

async def login(
    db: AsyncSession,
    email: str,
    password: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Verify credentials and open a session.

    Raises:
        Unauthenticated: unknown email, wrong password or inactive user
    """
    result = await db.execute(
        select(User, AppUser)
        .outerjoin(AppUser, AppUser.id == User.id)
        .where(User.email == normalize_email(email))
    )
    row = result.first()
    if row is None:
        logger.info("Login failed: unknown email")
        raise Unauthenticated("Invalid email or password")

    user, profile = row
    if not user.is_active or not verify_password(password, user.password_hash):
        logger.info(f"Login failed for user {user.id}")
        raise Unauthenticated("Invalid email or password")

    lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    session = UserSession(
        id=uuid.uuid4(),
        user_id=user.id,
        expires_at=utc_now() + lifetime,
        ip_address=(ip_address or "")[:64] or None,
        user_agent=(user_agent or "")[:255] or None,
    )
    db.add(session)
    await _commit(db)

    token = create_access_token(
        user.id,
        session.id,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=lifetime,
    )
    role = profile.role if profile is not None else DEFAULT_ROLE
    display_name = (profile.display_name if profile is not None else None) or user.email

    logger.info(f"User {user.id} logged in")
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": int(lifetime.total_seconds()),
        "user": {
            "id": str(user.id),
            "email": user.email,
            "role": role.value,
            "display_name": display_name,
        },
    }


async def logout(db: AsyncSession, principal: Principal) -> None:
    """Revoke the principal's current session."""
    if principal.session_id is None:
        return
    await db.execute(
        update(UserSession)
        .where(UserSession.id == principal.session_id, UserSession.revoked_at.is_(None))
        .values(revoked_at=utc_now())
    )
    await _commit(db)
    logger.info(f"User {principal.id} logged out")


# ==================== Provisioning ===================== #

async def create_user(
    db: AsyncSession,
    principal: Principal,
    request: CreateUserRequest,
) -> Dict[str, Any]:
    """Create an identity with its profile and optional company grants."""
    require_admin(principal)

    email = normalize_email(request.email)
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.first() is not None:
        raise ValidationError("A user with this email already exists")

    user = User(id=uuid.uuid4(), email=email, password_hash=hash_password(request.password))
    db.add(user)
    db.add(AppUser(id=user.id, role=request.role, display_name=request.display_name))

    companies, unknown = await _companies_by_ref(db, request.company_ref_ids)
    await _grant(db, user.id, companies)
    await _commit(db)

    logger.info(
        f"User {user.id} created with role {request.role.value} by admin {principal.id}"
    )
    if unknown:
        logger.warning(f"Unknown company ref ids ignored for user {user.id}: {unknown}")

    return {
        "user": {"id": str(user.id), "email": user.email},
        "role": request.role.value,
        "company_ref_ids": [c.ref_id for c in companies],
        "unknown_ref_ids": unknown,
    }


async def reset_password(
    db: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID,
    new_password: str,
) -> Dict[str, Any]:
    """Set a new password and revoke the user's open sessions."""
    require_admin(principal)
    user = await _get_user(db, user_id)

    user.password_hash = hash_password(new_password)
    await db.execute(
        update(UserSession)
        .where(UserSession.user_id == user.id, UserSession.revoked_at.is_(None))
        .values(revoked_at=utc_now())
    )
    await _commit(db)

    logger.info(f"Password reset for user {user.id} by admin {principal.id}")
    return {"ok": True, "user": {"id": str(user.id), "email": user.email}}


async def set_role(
    db: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID,
    role: AppRole,
) -> Dict[str, Any]:
    """Change a user's role, creating the profile row when missing."""
    require_admin(principal)
    user = await _get_user(db, user_id)

    profile = await db.get(AppUser, user.id)
    if profile is None:
        profile = AppUser(id=user.id, role=role)
        db.add(profile)
    else:
        profile.role = role
    await _commit(db)

    logger.info(f"Role of user {user.id} set to {role.value} by admin {principal.id}")
    return {"ok": True, "user": {"id": str(user.id), "email": user.email, "role": role.value}}


async def grant_company_access(
    db: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID,
    company_ref_ids: List[str],
) -> Dict[str, Any]:
    """Grant a user read access to companies, by ref id."""
    require_admin(principal)
    user = await _get_user(db, user_id)

    companies, unknown = await _companies_by_ref(db, company_ref_ids)
    await _grant(db, user.id, companies)
    await _commit(db)

    logger.info(
        f"Granted {len(companies)} companies to user {user.id} by admin {principal.id}"
    )
    return {
        "ok": True,
        "granted": [c.ref_id for c in companies],
        "unknown_ref_ids": unknown,
    }


async def revoke_company_access(
    db: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID,
    company_ref_ids: List[str],
) -> Dict[str, Any]:
    """Remove a user's access to companies, by ref id."""
    require_admin(principal)
    user = await _get_user(db, user_id)

    companies, unknown = await _companies_by_ref(db, company_ref_ids)
    if companies:
        await db.execute(
            delete(CompanyAccess).where(
                CompanyAccess.user_id == user.id,
                CompanyAccess.company_id.in_([c.id for c in companies]),
            )
        )
    await _commit(db)

    logger.info(
        f"Revoked {len(companies)} companies from user {user.id} by admin {principal.id}"
    )
    return {
        "ok": True,
        "revoked": [c.ref_id for c in companies],
        "unknown_ref_ids": unknown,
    }


async def bootstrap_admin(
    db: AsyncSession,
    email: Optional[str],
    password: Optional[str],
) -> Optional[uuid.UUID]:
    """
    Create the initial ADMIN from configuration when no user has that
    email yet. Returns the new user's id, or None when nothing was created.
    """
    if not email or not password:
        return None

    ok, message = validate_password(password)
    if not ok:
        raise ValidationError(f"Bootstrap admin password rejected: {message}")

    email = normalize_email(email)
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.first() is not None:
        return None

    user = User(id=uuid.uuid4(), email=email, password_hash=hash_password(password))
    db.add(user)
    db.add(AppUser(id=user.id, role=AppRole.ADMIN, display_name="Administrator"))
    await _commit(db)

    logger.info(f"Bootstrap admin {user.id} created")
    return user.id
