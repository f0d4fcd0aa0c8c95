"""ORM models. Importing this package registers every table on Base.metadata."""

from database.models.users import AppRole, AppUser, User, UserSession
from database.models.companies import Company, CompanyAccess, CompanyLogo
from database.models.jobs import (
    AUTO_INACTIVATION_REASON,
    Job,
    JobBasis,
    JobStatus,
    SalaryBand,
    Seniority,
)

__all__ = [
    "AppRole",
    "AppUser",
    "User",
    "UserSession",
    "Company",
    "CompanyAccess",
    "CompanyLogo",
    "AUTO_INACTIVATION_REASON",
    "Job",
    "JobBasis",
    "JobStatus",
    "SalaryBand",
    "Seniority",
]
