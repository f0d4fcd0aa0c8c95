"""
Company management endpoints.

Provides REST API for listing, viewing, creating and updating companies and
serving their logos. CLIENT users only see companies granted to them.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_scope, require_staff_principal
from api.schemas.common import PageParams, parse_choice, validate_payload
from api.schemas.companies import (
    COMPANY_SORT_FIELDS,
    COMPANY_STATUS_FILTERS,
    SORT_DIRECTIONS,
    CompanyForm,
)
from api.services import companies as company_service
from core.access import CompanyScope
from core.identity import Principal
from database.engine import get_db

router = APIRouter(prefix="/companies", tags=["companies"])

LOGO_CACHE_CONTROL = "public, max-age=300"


def _company_form(
    ref_id: Optional[str],
    name: Optional[str],
    industry: Optional[str],
    website: Optional[str],
    description: Optional[str],
    remove_logo: Optional[str] = None,
) -> CompanyForm:
    return validate_payload(
        CompanyForm,
        {
            "ref_id": ref_id or "",
            "name": name or "",
            "industry": industry,
            "website": website,
            "description": description,
            "remove_logo": remove_logo,
        },
    )


@router.get(
    "",
    summary="List Companies",
    description="List companies visible to the caller, with derived ACTIVE/INACTIVE status.",
)
async def list_companies(
    q: Optional[str] = Query(None, description="Search name, ref id or industry (min 2 chars)"),
    sort: Optional[str] = Query(None, description="name, ref_id or created_at"),
    dir: Optional[str] = Query(None, description="asc or desc"),
    status: Optional[str] = Query(None, description="ALL, ACTIVE or INACTIVE"),
    page: Optional[str] = Query(None),
    pageSize: Optional[str] = Query(None),
    scope: CompanyScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve a filtered, sorted, paginated list of companies."""
    return await company_service.list_companies(
        db,
        scope,
        PageParams.from_query(page, pageSize),
        q=q,
        status=parse_choice(status, COMPANY_STATUS_FILTERS, "ALL"),
        sort=parse_choice(sort, COMPANY_SORT_FIELDS, "name"),
        direction=parse_choice(dir, SORT_DIRECTIONS, "asc"),
    )


@router.post(
    "",
    summary="Create Company",
    description="Create a company from multipart form data with an optional PNG/JPEG logo. Staff only.",
)
async def create_company(
    ref_id: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    industry: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    principal: Principal = Depends(require_staff_principal),
    db: AsyncSession = Depends(get_db),
):
    """Validate the form and logo, then save both in one transaction."""
    form = _company_form(ref_id, name, industry, website, description)
    logo_upload = await company_service.read_logo_upload(logo)
    company = await company_service.create_company(db, principal, form, logo_upload)
    return {"ok": True, "company": company}


@router.get(
    "/options",
    summary="Company Options",
    description="Lightweight id/ref_id/name list for pickers (at most 20).",
)
async def company_options(
    q: Optional[str] = Query(None, description="Search name or ref id (min 2 chars)"),
    scope: CompanyScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve company picker options ordered by name."""
    items = await company_service.company_options(db, scope, q=q)
    return {"items": items}


@router.get(
    "/{company_id}",
    summary="Get Company",
    description="Get a company. Returns 404 when it does not exist or is not visible to the caller.",
)
async def get_company(
    company_id: uuid.UUID = Path(..., description="Company ID"),
    scope: CompanyScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve company details."""
    company = await company_service.get_company(db, scope, company_id)
    return {"company": company}


@router.put(
    "/{company_id}",
    summary="Update Company",
    description=(
        "Update a company from multipart form data. remove_logo=1 clears the logo "
        "and ignores any uploaded file. Staff only."
    ),
)
async def update_company(
    company_id: uuid.UUID = Path(..., description="Company ID"),
    ref_id: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    industry: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    remove_logo: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    principal: Principal = Depends(require_staff_principal),
    db: AsyncSession = Depends(get_db),
):
    """Validate the form and logo, then update both in one transaction."""
    form = _company_form(ref_id, name, industry, website, description, remove_logo)
    logo_upload = None
    if not form.wants_logo_removed:
        logo_upload = await company_service.read_logo_upload(logo)
    company = await company_service.update_company(db, principal, company_id, form, logo_upload)
    return {"ok": True, "company": company}


@router.get(
    "/{company_id}/logo",
    summary="Get Company Logo",
    description="Serve the logo bytes with their original content type.",
    response_class=Response,
)
async def get_company_logo(
    company_id: uuid.UUID = Path(..., description="Company ID"),
    scope: CompanyScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    """Return raw logo bytes."""
    logo = await company_service.get_company_logo(db, scope, company_id)
    return Response(
        content=logo.data,
        media_type=logo.mime,
        headers={"Cache-Control": LOGO_CACHE_CONTROL},
    )
