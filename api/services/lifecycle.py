"""
Job lifecycle: automatic inactivation of stale jobs and the derived
ACTIVE/INACTIVE status of companies.
"""

from datetime import datetime
from typing import Iterable, Optional
import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.utils.datetime import days_before, now as utc_now
from database.models.jobs import AUTO_INACTIVATION_REASON, Job, JobStatus

logger = logging.getLogger(__name__)


def stale_cutoff(now: datetime, stale_after_days: Optional[int] = None) -> datetime:
    """Jobs last updated before this instant count as stale."""
    days = settings.job_stale_after_days if stale_after_days is None else stale_after_days
    return days_before(now, days)


async def sweep_stale_jobs(
    db: AsyncSession,
    now: Optional[datetime] = None,
    stale_after_days: Optional[int] = None,
) -> int:
    """
    Inactivate every ACTIVE job whose updated_at is older than the cutoff.

    Runs as one UPDATE statement and commits. Returns the number of jobs
    transitioned.
    """
    now = now or utc_now()
    cutoff = stale_cutoff(now, stale_after_days)

    result = await db.execute(
        update(Job)
        .where(Job.status == JobStatus.ACTIVE, Job.updated_at < cutoff)
        .values(
            status=JobStatus.INACTIVE,
            inactivated_reason=AUTO_INACTIVATION_REASON,
            inactivated_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    count = result.rowcount or 0
    if count:
        logger.info(f"Auto-inactivated {count} stale jobs (cutoff {cutoff.isoformat()})")
    else:
        logger.debug("No stale jobs to inactivate")
    return count


def active_company_ids_subquery(now: Optional[datetime] = None):
    """
    SELECT of company ids with at least one ACTIVE job updated within the
    staleness window. Usable inside IN / NOT IN filters.
    """
    cutoff = stale_cutoff(now or utc_now())
    return (
        select(Job.company_id)
        .where(Job.status == JobStatus.ACTIVE, Job.updated_at >= cutoff)
        .distinct()
    )


async def active_company_ids(
    db: AsyncSession,
    company_ids: Iterable[uuid.UUID],
    now: Optional[datetime] = None,
) -> set[uuid.UUID]:
    """Subset of `company_ids` whose derived status is ACTIVE."""
    ids = list(company_ids)
    if not ids:
        return set()
    cutoff = stale_cutoff(now or utc_now())
    result = await db.execute(
        select(Job.company_id)
        .where(
            Job.company_id.in_(ids),
            Job.status == JobStatus.ACTIVE,
            Job.updated_at >= cutoff,
        )
        .distinct()
    )
    return set(result.scalars().all())
