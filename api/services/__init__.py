"""
API Services Layer.

Database operations behind the API endpoints. Every function receives the
session and the acting principal (or its scope) explicitly.
"""

from api.services.lifecycle import (
    sweep_stale_jobs,
    active_company_ids,
    active_company_ids_subquery,
)

from api.services.companies import (
    list_companies,
    get_company,
    company_options,
    get_company_logo,
    create_company,
    update_company,
)

from api.services.jobs import (
    list_jobs,
    get_job,
    create_job,
    update_job,
)

from api.services.users import (
    login,
    logout,
    create_user,
    reset_password,
    set_role,
    grant_company_access,
    revoke_company_access,
    bootstrap_admin,
)

__all__ = [
    # Lifecycle
    "sweep_stale_jobs",
    "active_company_ids",
    "active_company_ids_subquery",
    # Companies
    "list_companies",
    "get_company",
    "company_options",
    "get_company_logo",
    "create_company",
    "update_company",
    # Jobs
    "list_jobs",
    "get_job",
    "create_job",
    "update_job",
    # Users
    "login",
    "logout",
    "create_user",
    "reset_password",
    "set_role",
    "grant_company_access",
    "revoke_company_access",
    "bootstrap_admin",
]
