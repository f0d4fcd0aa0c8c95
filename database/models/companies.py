"""
Companies Module

Company profiles, their logos (kept out of the main row so listings never
load blobs) and the per-user company access grants that scope CLIENT users.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    DateTime,
    LargeBinary,
    Uuid,
    func,
    Index,
    UniqueConstraint,
)

from core.utils.datetime import now
from database.engine import Base

if TYPE_CHECKING:
    from database.models.jobs import Job


class Company(Base):
    """Company profile identified by a human-readable ref id (AAA000)."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ref_id: Mapped[str] = mapped_column(String(6), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(180))
    website: Mapped[str | None] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text)

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

    logo: Mapped["CompanyLogo | None"] = relationship(
        "CompanyLogo",
        back_populates="company",
        uselist=False,
        cascade="all, delete-orphan",
    )
    jobs: Mapped[list["Job"]] = relationship("Job", back_populates="company")
    access_grants: Mapped[list["CompanyAccess"]] = relationship(
        "CompanyAccess", back_populates="company", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_companies_name", "name"),
        Index("idx_companies_created_at", "created_at"),
    )


class CompanyLogo(Base):
    """Logo bytes for a company (PNG or JPEG, at most 200 KB)."""

    __tablename__ = "company_logos"

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True
    )
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    mime: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
        onupdate=now,
    )

    company: Mapped["Company"] = relationship("Company", back_populates="logo")


class CompanyAccess(Base):
    """Grant allowing a (CLIENT) user to read one company and its jobs."""

    __tablename__ = "company_access"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )

    company: Mapped["Company"] = relationship("Company", back_populates="access_grants")

    __table_args__ = (
        UniqueConstraint("user_id", "company_id", name="uq_company_access_user_company"),
    )
