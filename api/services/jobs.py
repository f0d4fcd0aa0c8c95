"""Job service functions."""

from datetime import datetime
from typing import Any, Dict, Optional
import logging
import uuid

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PageParams, normalize_query, paginated
from api.schemas.jobs import MIN_REASON_LENGTH, JobCreate, JobUpdate
from api.services import lifecycle
from core.access import CompanyScope, require_staff
from core.exceptions import MissingInactivationReason, NotFound, ValidationError
from core.identity import Principal
from core.utils.datetime import now as utc_now, to_iso
from core.utils.validators import escape_like
from database.models.companies import Company
from database.models.jobs import Job, JobStatus

logger = logging.getLogger(__name__)


def apply_status(
    job: Job,
    status: JobStatus,
    reason: Optional[str],
    now: datetime,
) -> None:
    """
    Move `job` to `status`.

    INACTIVE needs a reason of at least three characters after trimming
    and stamps inactivated_at unless the job was already inactive. ACTIVE
    always clears the reason and the timestamp.

    Raises:
        MissingInactivationReason: INACTIVE requested without a usable reason
    """
    if status == JobStatus.INACTIVE:
        reason = (reason or "").strip()
        if len(reason) < MIN_REASON_LENGTH:
            raise MissingInactivationReason()
        was_inactive = job.status == JobStatus.INACTIVE and job.inactivated_at is not None
        job.status = JobStatus.INACTIVE
        job.inactivated_reason = reason
        if not was_inactive:
            job.inactivated_at = now
    else:
        job.status = JobStatus.ACTIVE
        job.inactivated_reason = None
        job.inactivated_at = None


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _job_summary(job: Job) -> Dict[str, Any]:
    return {
        "id": str(job.id),
        "company_id": str(job.company_id),
        "position_title": job.position_title,
        "status": _enum_value(job.status),
    }


def _job_dict(job: Job, company_name: str, company_ref_id: str) -> Dict[str, Any]:
    return {
        "id": str(job.id),
        "job_ref": job.job_ref,
        "company_id": str(job.company_id),
        "company_name": company_name,
        "company_ref_id": company_ref_id,
        "position_title": job.position_title,
        "job_description": job.job_description,
        "location": job.location,
        "job_basis": list(job.job_basis or []),
        "salary_bands": list(job.salary_bands or []),
        "seniority": _enum_value(job.seniority),
        "categories": list(job.categories or []),
        "status": _enum_value(job.status),
        "inactivated_reason": job.inactivated_reason,
        "inactivated_at": to_iso(job.inactivated_at),
        "created_at": to_iso(job.created_at),
        "updated_at": to_iso(job.updated_at),
    }


async def list_jobs(
    db: AsyncSession,
    scope: CompanyScope,
    params: PageParams,
    q: Optional[str] = None,
    status: str = "ALL",
    company_id: Optional[uuid.UUID] = None,
    sort: str = "updated_at",
    direction: str = "desc",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    List jobs of companies visible in `scope`.

    The status filter treats ACTIVE jobs past the staleness cutoff as
    INACTIVE, matching derived company status. Their stored status only
    changes at the next sweep.
    """
    if scope.is_empty:
        return paginated([], 0, params)

    conditions = []

    scope_filter = scope.filter(Job.company_id)
    if scope_filter is not None:
        conditions.append(scope_filter)

    if company_id is not None:
        conditions.append(Job.company_id == company_id)

    cutoff = lifecycle.stale_cutoff(now or utc_now())
    if status == JobStatus.ACTIVE.value:
        conditions.append(and_(Job.status == JobStatus.ACTIVE, Job.updated_at >= cutoff))
    elif status == JobStatus.INACTIVE.value:
        conditions.append(or_(Job.status == JobStatus.INACTIVE, Job.updated_at < cutoff))

    text = normalize_query(q)
    if text is not None:
        pattern = f"%{escape_like(text)}%"
        conditions.append(
            or_(
                Job.position_title.ilike(pattern, escape="\\"),
                Job.job_ref.ilike(pattern, escape="\\"),
            )
        )

    count_result = await db.execute(select(func.count()).select_from(Job).where(*conditions))
    total = count_result.scalar() or 0
    if total == 0:
        return paginated([], 0, params)

    sort_column = getattr(Job, sort)
    order = sort_column.asc() if direction == "asc" else sort_column.desc()

    result = await db.execute(
        select(Job, Company.name, Company.ref_id)
        .join(Company, Company.id == Job.company_id)
        .where(*conditions)
        .order_by(order, Job.id.asc())
        .limit(params.page_size)
        .offset(params.offset)
    )

    items = []
    for job, company_name, company_ref_id in result.all():
        items.append({
            "id": str(job.id),
            "job_ref": job.job_ref,
            "position_title": job.position_title,
            "company_id": str(job.company_id),
            "company_name": company_name,
            "company_ref_id": company_ref_id,
            "location": job.location,
            "seniority": _enum_value(job.seniority),
            "status": _enum_value(job.status),
            "created_at": to_iso(job.created_at),
            "updated_at": to_iso(job.updated_at),
        })

    return paginated(items, total, params)


async def get_job(
    db: AsyncSession,
    scope: CompanyScope,
    job_id: uuid.UUID,
) -> Dict[str, Any]:
    """Get one job; NotFound when absent or outside `scope`."""
    if scope.is_empty:
        raise NotFound()

    query = (
        select(Job, Company.name, Company.ref_id)
        .join(Company, Company.id == Job.company_id)
        .where(Job.id == job_id)
    )
    scope_filter = scope.filter(Job.company_id)
    if scope_filter is not None:
        query = query.where(scope_filter)

    result = await db.execute(query)
    row = result.first()
    if row is None:
        raise NotFound()

    job, company_name, company_ref_id = row
    return _job_dict(job, company_name, company_ref_id)


async def create_job(
    db: AsyncSession,
    principal: Principal,
    payload: JobCreate,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Create a job; status defaults to ACTIVE."""
    require_staff(principal)
    now = now or utc_now()

    company = await db.get(Company, payload.company_id)
    if company is None:
        raise ValidationError("Company not found")

    job = Job(company_id=company.id, **payload.column_values())
    apply_status(job, payload.status or JobStatus.ACTIVE, payload.inactivated_reason, now)
    db.add(job)

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(f"Job {job.id} created for company {company.ref_id} by user {principal.id}")
    return _job_summary(job)


async def update_job(
    db: AsyncSession,
    principal: Principal,
    job_id: uuid.UUID,
    payload: JobUpdate,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Update a job. company_id cannot change; an omitted status keeps the
    current one.
    """
    require_staff(principal)
    now = now or utc_now()

    job = await db.get(Job, job_id)
    if job is None:
        raise NotFound()

    if payload.company_id is not None and payload.company_id != job.company_id:
        raise ValidationError("Company cannot be changed after creation")

    status = payload.status or job.status
    reason = payload.inactivated_reason
    if reason is None and payload.status is None and job.status == JobStatus.INACTIVE:
        reason = job.inactivated_reason

    # Validate the transition before touching any column
    apply_status(job, status, reason, now)
    for key, value in payload.column_values().items():
        setattr(job, key, value)

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(f"Job {job.id} updated by user {principal.id} (status {_enum_value(job.status)})")
    return _job_summary(job)
