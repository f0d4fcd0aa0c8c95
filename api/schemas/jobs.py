"""Job request schemas."""

import uuid
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from database.models.jobs import JobBasis, JobStatus, SalaryBand, Seniority


JOB_SORT_FIELDS = ("updated_at", "created_at", "position_title")
JOB_STATUS_FILTERS = ("ALL", "ACTIVE", "INACTIVE")

# Minimum trimmed length of a manual inactivation reason
MIN_REASON_LENGTH = 3

CategoryLabel = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=80)
]


def _dedupe(values: list) -> list:
    seen = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


class JobFields(BaseModel):
    """Fields shared by job create and update payloads."""

    model_config = ConfigDict(extra="ignore")

    job_ref: Optional[str] = Field(default=None, max_length=80)
    position_title: str = Field(min_length=2, max_length=180)
    job_description: str = Field(min_length=20, max_length=12000)
    location: Optional[str] = Field(default=None, max_length=180)
    job_basis: list[JobBasis] = Field(default_factory=list)
    salary_bands: list[SalaryBand] = Field(default_factory=list)
    seniority: Seniority
    categories: list[CategoryLabel] = Field(default_factory=list)
    status: Optional[JobStatus] = None
    inactivated_reason: Optional[str] = Field(default=None, max_length=400)

    @field_validator("job_ref", "location", "inactivated_reason", mode="before")
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("position_title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("job_basis", "salary_bands", "categories", mode="after")
    @classmethod
    def unique_values(cls, v: list) -> list:
        return _dedupe(v)

    def column_values(self) -> dict:
        """Descriptive values written to the jobs row (status handled separately)."""
        return {
            "job_ref": self.job_ref,
            "position_title": self.position_title,
            "job_description": self.job_description,
            "location": self.location,
            "job_basis": [b.value for b in self.job_basis],
            "salary_bands": [s.value for s in self.salary_bands],
            "seniority": self.seniority,
            "categories": list(self.categories),
        }


class JobCreate(JobFields):
    """Payload for creating a job."""

    company_id: uuid.UUID


class JobUpdate(JobFields):
    """
    Payload for updating a job. company_id may be echoed back but cannot
    change.
    """

    company_id: Optional[uuid.UUID] = None
