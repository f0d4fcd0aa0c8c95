"""Company service functions."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.common import PageParams, normalize_query, paginated
from api.schemas.companies import CompanyForm
from api.services import lifecycle
from core.access import CompanyScope, require_staff
from core.exceptions import InvalidLogo, NotFound, ValidationError
from core.identity import Principal
from core.utils.datetime import now as utc_now, to_iso
from core.utils.validators import escape_like
from database.models.companies import Company, CompanyLogo

logger = logging.getLogger(__name__)

MAX_LOGO_BYTES = 200_000
ALLOWED_LOGO_MIME = ("image/png", "image/jpeg")
OPTIONS_LIMIT = 20

DERIVED_ACTIVE = "ACTIVE"
DERIVED_INACTIVE = "INACTIVE"


@dataclass(frozen=True)
class LogoUpload:
    """A validated logo: raw bytes plus declared mime type."""

    data: bytes
    mime: str


def validate_logo(data: bytes, mime: Optional[str]) -> Optional[LogoUpload]:
    """
    Check an uploaded logo. Empty data means "no logo".

    Raises:
        InvalidLogo: wrong type, or larger than MAX_LOGO_BYTES
    """
    if not data:
        return None
    mime = (mime or "").lower()
    if mime not in ALLOWED_LOGO_MIME:
        raise InvalidLogo("Logo must be a PNG or JPEG")
    if len(data) > MAX_LOGO_BYTES:
        raise InvalidLogo("Logo must be 200KB or smaller")
    return LogoUpload(data=data, mime=mime)


async def read_logo_upload(upload: Any) -> Optional[LogoUpload]:
    """Read and validate an UploadFile; reads at most one byte past the limit."""
    if upload is None or not getattr(upload, "filename", None):
        return None
    data = await upload.read(MAX_LOGO_BYTES + 1)
    return validate_logo(data, upload.content_type)


def _text_filter(q: Optional[str]):
    text = normalize_query(q)
    if text is None:
        return None
    pattern = f"%{escape_like(text)}%"
    return or_(
        Company.name.ilike(pattern, escape="\\"),
        Company.ref_id.ilike(pattern, escape="\\"),
        Company.industry.ilike(pattern, escape="\\"),
    )


def _company_dict(company: Company, has_logo: bool) -> Dict[str, Any]:
    return {
        "id": str(company.id),
        "ref_id": company.ref_id,
        "name": company.name,
        "industry": company.industry,
        "website": company.website,
        "description": company.description,
        "created_at": to_iso(company.created_at),
        "updated_at": to_iso(company.updated_at),
        "has_logo": has_logo,
    }


async def list_companies(
    db: AsyncSession,
    scope: CompanyScope,
    params: PageParams,
    q: Optional[str] = None,
    status: str = "ALL",
    sort: str = "name",
    direction: str = "asc",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """List companies visible in `scope` with derived status."""
    if scope.is_empty:
        return paginated([], 0, params)

    now = now or utc_now()
    conditions = []

    scope_filter = scope.filter(Company.id)
    if scope_filter is not None:
        conditions.append(scope_filter)

    text_filter = _text_filter(q)
    if text_filter is not None:
        conditions.append(text_filter)

    active_ids = lifecycle.active_company_ids_subquery(now)
    if status == DERIVED_ACTIVE:
        conditions.append(Company.id.in_(active_ids))
    elif status == DERIVED_INACTIVE:
        conditions.append(Company.id.not_in(active_ids))

    count_result = await db.execute(
        select(func.count()).select_from(Company).where(*conditions)
    )
    total = count_result.scalar() or 0
    if total == 0:
        return paginated([], 0, params)

    sort_column = getattr(Company, sort)
    order = sort_column.asc() if direction == "asc" else sort_column.desc()

    result = await db.execute(
        select(Company, CompanyLogo.company_id)
        .outerjoin(CompanyLogo, CompanyLogo.company_id == Company.id)
        .where(*conditions)
        .order_by(order, Company.id.asc())
        .limit(params.page_size)
        .offset(params.offset)
    )
    rows = result.all()

    if status in (DERIVED_ACTIVE, DERIVED_INACTIVE):
        active_on_page = {c.id for c, _ in rows} if status == DERIVED_ACTIVE else set()
    else:
        active_on_page = await lifecycle.active_company_ids(db, [c.id for c, _ in rows], now)

    items = []
    for company, logo_id in rows:
        item = _company_dict(company, has_logo=logo_id is not None)
        item["derived_status"] = DERIVED_ACTIVE if company.id in active_on_page else DERIVED_INACTIVE
        items.append(item)

    return paginated(items, total, params)


async def get_company(
    db: AsyncSession,
    scope: CompanyScope,
    company_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Get one company; NotFound when absent or outside `scope`."""
    if not scope.allows(company_id):
        raise NotFound()

    result = await db.execute(
        select(Company, CompanyLogo.company_id)
        .outerjoin(CompanyLogo, CompanyLogo.company_id == Company.id)
        .where(Company.id == company_id)
    )
    row = result.first()
    if row is None:
        raise NotFound()

    company, logo_id = row
    active = await lifecycle.active_company_ids(db, [company.id], now)
    item = _company_dict(company, has_logo=logo_id is not None)
    item["derived_status"] = DERIVED_ACTIVE if company.id in active else DERIVED_INACTIVE
    return item


async def company_options(
    db: AsyncSession,
    scope: CompanyScope,
    q: Optional[str] = None,
    limit: int = OPTIONS_LIMIT,
) -> List[Dict[str, Any]]:
    """Lightweight {id, ref_id, name} list for pickers, ordered by name."""
    if scope.is_empty:
        return []

    query = select(Company.id, Company.ref_id, Company.name)
    scope_filter = scope.filter(Company.id)
    if scope_filter is not None:
        query = query.where(scope_filter)

    text = normalize_query(q)
    if text is not None:
        pattern = f"%{escape_like(text)}%"
        query = query.where(
            or_(
                Company.name.ilike(pattern, escape="\\"),
                Company.ref_id.ilike(pattern, escape="\\"),
            )
        )

    result = await db.execute(query.order_by(Company.name.asc(), Company.id.asc()).limit(limit))
    return [
        {"id": str(row.id), "ref_id": row.ref_id, "name": row.name}
        for row in result.all()
    ]


async def get_company_logo(
    db: AsyncSession,
    scope: CompanyScope,
    company_id: uuid.UUID,
) -> LogoUpload:
    """Logo bytes and mime; NotFound when absent or outside `scope`."""
    if not scope.allows(company_id):
        raise NotFound()

    logo = await db.get(CompanyLogo, company_id)
    if logo is None or not logo.data:
        raise NotFound()
    return LogoUpload(data=logo.data, mime=logo.mime)


async def _ensure_ref_id_free(
    db: AsyncSession, ref_id: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    query = select(Company.id).where(Company.ref_id == ref_id)
    if exclude_id is not None:
        query = query.where(Company.id != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise ValidationError(f"Ref ID {ref_id} is already in use")


async def create_company(
    db: AsyncSession,
    principal: Principal,
    form: CompanyForm,
    logo: Optional[LogoUpload] = None,
) -> Dict[str, Any]:
    """Create a company and, optionally, its logo in one transaction."""
    require_staff(principal)
    await _ensure_ref_id_free(db, form.ref_id)

    company = Company(**form.column_values())
    if logo is not None:
        company.logo = CompanyLogo(data=logo.data, mime=logo.mime)
    db.add(company)

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(f"Company {company.ref_id} created by user {principal.id}")
    return {
        "id": str(company.id),
        "ref_id": company.ref_id,
        "name": company.name,
        "has_logo": logo is not None,
    }


async def update_company(
    db: AsyncSession,
    principal: Principal,
    company_id: uuid.UUID,
    form: CompanyForm,
    logo: Optional[LogoUpload] = None,
) -> Dict[str, Any]:
    """
    Update company fields and its logo in one transaction.

    `form.remove_logo == "1"` clears the logo; a replacement file sent
    alongside is ignored.
    """
    require_staff(principal)

    result = await db.execute(
        select(Company).options(selectinload(Company.logo)).where(Company.id == company_id)
    )
    company = result.scalar_one_or_none()
    if company is None:
        raise NotFound()

    await _ensure_ref_id_free(db, form.ref_id, exclude_id=company.id)

    for key, value in form.column_values().items():
        setattr(company, key, value)

    logo_changed = False
    if form.wants_logo_removed:
        logo_changed = company.logo is not None
        company.logo = None
    elif logo is not None:
        logo_changed = True
        if company.logo is None:
            company.logo = CompanyLogo(data=logo.data, mime=logo.mime)
        else:
            company.logo.data = logo.data
            company.logo.mime = logo.mime
    if logo_changed:
        # The logo lives in its own table, so the company row is not dirtied by it
        company.updated_at = utc_now()
    has_logo = company.logo is not None

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    await db.refresh(company)

    logger.info(f"Company {company.ref_id} updated by user {principal.id}")
    return _company_dict(company, has_logo=has_logo)
