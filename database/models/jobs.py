"""
Jobs Module

Job postings owned by a company, with multi-valued basis/salary/category
fields and an ACTIVE <-> INACTIVE lifecycle.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    DateTime,
    JSON,
    Uuid,
    func,
    Enum as SQLEnum,
    Index,
)

from core.utils.datetime import now
from database.engine import Base

if TYPE_CHECKING:
    from database.models.companies import Company


# ==================== Job Enums ===================== #
class JobStatus(str, PyEnum):
    """Job posting status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class JobBasis(str, PyEnum):
    """Employment basis; a job may carry several."""

    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    FREELANCE = "FREELANCE"
    HYBRID = "HYBRID"
    TEMPORARY = "TEMPORARY"


class SalaryBand(str, PyEnum):
    """Fixed yearly salary bands (EUR)."""

    ANY = "ANY"
    EUR_11532_16000 = "EUR_11532_16000"
    EUR_16000_20000 = "EUR_16000_20000"
    EUR_20000_24000 = "EUR_20000_24000"
    EUR_24000_30000 = "EUR_24000_30000"
    EUR_30000_45000 = "EUR_30000_45000"
    EUR_45000_60000 = "EUR_45000_60000"
    EUR_60000_80000 = "EUR_60000_80000"
    EUR_80000_OR_MORE = "EUR_80000_OR_MORE"


class Seniority(str, PyEnum):
    """Seniority level."""

    SENIOR = "SENIOR"
    MID_LEVEL = "MID_LEVEL"
    JUNIOR_ENTRY = "JUNIOR_ENTRY"


# Reason stamped by the lifecycle sweeper
AUTO_INACTIVATION_REASON = "AUTO_60_DAYS"


class Job(Base):
    """
    Job posting. company_id is fixed at creation; inactivated_reason and
    inactivated_at are set exactly when status is INACTIVE.
    """

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    job_ref: Mapped[str | None] = mapped_column(String(80))
    position_title: Mapped[str] = mapped_column(String(180), nullable=False)
    job_description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(String(180))

    job_basis: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    salary_bands: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    seniority: Mapped[Seniority] = mapped_column(
        SQLEnum(Seniority, native_enum=False, length=20), nullable=False
    )
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=20),
        nullable=False,
        default=JobStatus.ACTIVE,
        index=True,
    )
    inactivated_reason: Mapped[str | None] = mapped_column(String(400))
    inactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

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

    company: Mapped["Company"] = relationship("Company", back_populates="jobs")

    __table_args__ = (
        Index("idx_jobs_status_updated_at", "status", "updated_at"),
        Index("idx_jobs_company_status", "company_id", "status"),
    )
