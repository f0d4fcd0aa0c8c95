"""
Access scope calculation and role checks.

Staff (OPS, ADMIN) see every company. CLIENT users see only the companies
they were granted through `company_access`.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from core.exceptions import Forbidden
from core.identity import Principal
from database.models.companies import CompanyAccess
from database.models.users import AppRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanyScope:
    """
    The set of companies a principal may read.

    `unrestricted=True` means every company; otherwise `company_ids` is the
    exact allow-list, which may be empty.
    """

    unrestricted: bool = False
    company_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> "CompanyScope":
        return cls(unrestricted=True)

    @classmethod
    def restricted(cls, company_ids) -> "CompanyScope":
        return cls(unrestricted=False, company_ids=frozenset(company_ids))

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.company_ids

    def allows(self, company_id: Optional[uuid.UUID]) -> bool:
        if company_id is None:
            return False
        return self.unrestricted or company_id in self.company_ids

    def filter(self, column) -> Optional[ColumnElement]:
        """
        Row filter for `column` (a company id column), or None when no
        filter applies.

        Raises:
            ValueError: scope is empty; callers must short-circuit instead
                of issuing a query.
        """
        if self.unrestricted:
            return None
        if not self.company_ids:
            raise ValueError("Empty scope cannot be turned into a query filter")
        return column.in_(sorted(self.company_ids, key=str))


async def scope_for(db: AsyncSession, principal: Principal) -> CompanyScope:
    """Compute the company scope of a principal."""
    if principal.role in (AppRole.OPS, AppRole.ADMIN):
        return CompanyScope.all()

    result = await db.execute(
        select(CompanyAccess.company_id).where(CompanyAccess.user_id == principal.id)
    )
    company_ids = frozenset(result.scalars().all())
    if not company_ids:
        logger.debug(f"User {principal.id} has no company grants")
    return CompanyScope.restricted(company_ids)


def has_role_at_least(principal: Principal, role: AppRole) -> bool:
    return principal.role.rank >= role.rank


def require_staff(principal: Principal) -> None:
    """Raise Forbidden unless the principal is OPS or ADMIN."""
    if not has_role_at_least(principal, AppRole.OPS):
        logger.info(f"Denied staff operation to user {principal.id} ({principal.role.value})")
        raise Forbidden()


def require_admin(principal: Principal) -> None:
    """Raise Forbidden("Admin only") unless the principal is ADMIN."""
    if not has_role_at_least(principal, AppRole.ADMIN):
        logger.info(f"Denied admin operation to user {principal.id} ({principal.role.value})")
        raise Forbidden("Admin only")
