"""
Identity resolution: turn a session token into the acting Principal.

The Principal is an immutable value passed explicitly into every service
call; nothing here stores a "current user" anywhere.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Unauthenticated
from core.security import verify_jwt_token
from core.utils.datetime import ensure_utc, now
from database.models.users import AppRole, AppUser, User, UserSession

logger = logging.getLogger(__name__)

# Role applied when an identity has no app_users profile row.
DEFAULT_ROLE = AppRole.CLIENT


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a request."""

    id: uuid.UUID
    role: AppRole
    display_name: str
    session_id: Optional[uuid.UUID] = None

    @property
    def is_staff(self) -> bool:
        return self.role in (AppRole.OPS, AppRole.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.ADMIN

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "role": self.role.value,
            "display_name": self.display_name,
        }


def _parse_uuid(value: object) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise Unauthenticated()


async def resolve_principal(
    db: AsyncSession,
    token: Optional[str],
    secret_key: str,
    algorithm: str = "HS256",
) -> Principal:
    """
    Resolve the principal behind a session token.

    Raises:
        Unauthenticated: token missing or invalid, session expired or
            revoked, identity missing or deactivated
    """
    if not token:
        raise Unauthenticated()

    try:
        payload = verify_jwt_token(token, secret_key, algorithm)
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise Unauthenticated()
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise Unauthenticated()

    user_id = _parse_uuid(payload.get("user_id"))
    session_id = _parse_uuid(payload.get("session_id"))

    result = await db.execute(
        select(UserSession).where(
            UserSession.id == session_id,
            UserSession.user_id == user_id,
        )
    )
    session = result.scalar_one_or_none()
    if session is None or session.revoked_at is not None:
        raise Unauthenticated()
    if ensure_utc(session.expires_at) <= now():
        raise Unauthenticated()

    result = await db.execute(
        select(User, AppUser)
        .outerjoin(AppUser, AppUser.id == User.id)
        .where(User.id == user_id)
    )
    row = result.first()
    if row is None:
        raise Unauthenticated()
    user, profile = row
    if not user.is_active:
        raise Unauthenticated()

    if profile is None:
        # Least-privilege default for identities without a profile row
        logger.warning(
            f"User {user.id} has no app_users profile; applying default role {DEFAULT_ROLE.value}"
        )
        role = DEFAULT_ROLE
        display_name = user.email
    else:
        role = profile.role
        display_name = profile.display_name or user.email

    return Principal(
        id=user.id,
        role=role,
        display_name=display_name,
        session_id=session.id,
    )
