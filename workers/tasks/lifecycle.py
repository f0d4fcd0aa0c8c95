"""Job lifecycle tasks."""

import asyncio
import logging

from celery import Task
from sqlalchemy.exc import SQLAlchemyError

from api.services.lifecycle import sweep_stale_jobs as sweep_stale_jobs_in_db
from core.config import settings
from core.utils.datetime import now
from database.engine import standalone_session
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _run_sweep() -> int:
    async with standalone_session() as session:
        return await sweep_stale_jobs_in_db(
            session, now(), stale_after_days=settings.job_stale_after_days
        )


@celery_app.task(name="workers.tasks.lifecycle.sweep_stale_jobs", bind=True, max_retries=3)
def sweep_stale_jobs(self: Task) -> dict:
    """Inactivate ACTIVE jobs untouched for longer than the staleness window.

    Scheduled by celery beat; failures are retried with backoff and never
    reach API callers.

    Returns:
        Dictionary with the number of jobs inactivated
    """
    try:
        count = asyncio.run(_run_sweep())
    except (SQLAlchemyError, OSError) as exc:
        logger.error(f"Stale job sweep failed (attempt {self.request.retries + 1}): {exc}")
        raise self.retry(exc=exc, countdown=30 * 2**self.request.retries)

    logger.info(f"Stale job sweep finished: {count} jobs inactivated")
    return {"status": "success", "inactivated": count}
