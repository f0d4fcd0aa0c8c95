"""Authentication and user provisioning schemas."""

import uuid
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from core.utils.validators import (
    REF_ID_MESSAGE,
    is_valid_ref_id,
    normalize_ref_id,
    validate_password,
)
from database.models.users import AppRole


def _check_password(v: str) -> str:
    ok, message = validate_password(v)
    if not ok:
        raise ValueError(message)
    return v


def _check_ref_ids(values: list[str]) -> list[str]:
    refs = []
    for value in values:
        ref_id = normalize_ref_id(value)
        if not is_valid_ref_id(ref_id):
            raise ValueError(REF_ID_MESSAGE)
        if ref_id not in refs:
            refs.append(ref_id)
    return refs


class LoginRequest(BaseModel):
    """Email/password login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class CreateUserRequest(BaseModel):
    """Admin request to provision a new user."""

    email: EmailStr
    password: str
    role: AppRole
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    company_ref_ids: list[str] = Field(default_factory=list)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("display_name", mode="before")
    @classmethod
    def strip_display_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("company_ref_ids")
    @classmethod
    def validate_ref_ids(cls, v: list[str]) -> list[str]:
        return _check_ref_ids(v)


class ResetPasswordRequest(BaseModel):
    """Admin request to set a new password for a user."""

    user_id: uuid.UUID
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)


class SetRoleRequest(BaseModel):
    """Admin request to change a user's role."""

    user_id: uuid.UUID
    role: AppRole


class CompanyAccessRequest(BaseModel):
    """Admin request to grant or revoke company access by ref id."""

    user_id: uuid.UUID
    company_ref_ids: list[str] = Field(min_length=1)

    @field_validator("company_ref_ids")
    @classmethod
    def validate_ref_ids(cls, v: list[str]) -> list[str]:
        return _check_ref_ids(v)
