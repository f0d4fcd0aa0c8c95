"""
Job posting management endpoints.

Provides REST API for listing, viewing, creating and updating job postings.
CLIENT users only see jobs of companies granted to them.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_scope, require_staff_principal
from api.schemas.common import PageParams, parse_choice, parse_uuid
from api.schemas.companies import SORT_DIRECTIONS
from api.schemas.jobs import JOB_SORT_FIELDS, JOB_STATUS_FILTERS, JobCreate, JobUpdate
from api.services import jobs as job_service
from core.access import CompanyScope
from core.identity import Principal
from database.engine import get_db

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get(
    "",
    summary="List Jobs",
    description="List job postings visible to the caller.",
)
async def list_jobs(
    q: Optional[str] = Query(None, description="Search position title or job ref (min 2 chars)"),
    status: Optional[str] = Query(None, description="ALL, ACTIVE or INACTIVE"),
    companyId: Optional[str] = Query(None, description="Only jobs of this company"),
    sort: Optional[str] = Query(None, description="updated_at, created_at or position_title"),
    dir: Optional[str] = Query(None, description="asc or desc"),
    page: Optional[str] = Query(None),
    pageSize: Optional[str] = Query(None),
    scope: CompanyScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve a filtered, sorted, paginated list of job postings."""
    return await job_service.list_jobs(
        db,
        scope,
        PageParams.from_query(page, pageSize),
        q=q,
        status=parse_choice(status, JOB_STATUS_FILTERS, "ALL"),
        company_id=parse_uuid(companyId),
        sort=parse_choice(sort, JOB_SORT_FIELDS, "updated_at"),
        direction=parse_choice(dir, SORT_DIRECTIONS, "desc"),
    )


@router.post(
    "",
    summary="Create Job",
    description="Create a job posting. Status defaults to ACTIVE. Staff only.",
)
async def create_job(
    payload: JobCreate,
    principal: Principal = Depends(require_staff_principal),
    db: AsyncSession = Depends(get_db),
):
    """Validate and persist a new job posting."""
    job = await job_service.create_job(db, principal, payload)
    return {"ok": True, "job": job}


@router.get(
    "/{job_id}",
    summary="Get Job Details",
    description="Get a job posting. Returns 404 when it does not exist or is not visible to the caller.",
)
async def get_job(
    job_id: uuid.UUID = Path(..., description="Job ID"),
    scope: CompanyScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve complete job posting details."""
    job = await job_service.get_job(db, scope, job_id)
    return {"job": job}


@router.put(
    "/{job_id}",
    summary="Update Job",
    description=(
        "Update a job posting. Moving to INACTIVE requires inactivated_reason "
        "(at least 3 characters); moving to ACTIVE clears it. Staff only."
    ),
)
async def update_job(
    payload: JobUpdate,
    job_id: uuid.UUID = Path(..., description="Job ID"),
    principal: Principal = Depends(require_staff_principal),
    db: AsyncSession = Depends(get_db),
):
    """Validate and apply changes to a job posting."""
    job = await job_service.update_job(db, principal, job_id, payload)
    return {"ok": True, "job": job}
