"""
Users Module

Identities (email + password hash), application profiles carrying the role,
and server-side sessions used to revoke tokens on logout.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    DateTime,
    Uuid,
    func,
    Enum as SQLEnum,
    Index,
)

from core.utils.datetime import now
from database.engine import Base


# ==================== Roles ===================== #
class AppRole(str, PyEnum):
    """Application roles, ranked CLIENT < OPS < ADMIN."""

    CLIENT = "CLIENT"  # read-only, restricted to granted companies
    OPS = "OPS"  # staff; manages companies and jobs
    ADMIN = "ADMIN"  # staff; additionally provisions users

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]


ROLE_RANK: dict[AppRole, int] = {
    AppRole.CLIENT: 1,
    AppRole.OPS: 2,
    AppRole.ADMIN: 3,
}


class User(Base):
    """
    Login identity. The role lives on the AppUser profile, which may be
    missing for identities created outside the provisioning flow.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
        onupdate=now,
    )

    profile: Mapped["AppUser | None"] = relationship(
        "AppUser", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    sessions: Mapped[list["UserSession"]] = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan"
    )


class AppUser(Base):
    """Application profile: role and display name for an identity."""

    __tablename__ = "app_users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[AppRole] = mapped_column(
        SQLEnum(AppRole, native_enum=False, length=20),
        nullable=False,
        default=AppRole.CLIENT,
    )
    display_name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
        onupdate=now,
    )

    user: Mapped["User"] = relationship("User", back_populates="profile")


class UserSession(Base):
    """Server-side session backing an issued access token."""

    __tablename__ = "user_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="sessions")

    __table_args__ = (Index("idx_user_sessions_user_revoked", "user_id", "revoked_at"),)
