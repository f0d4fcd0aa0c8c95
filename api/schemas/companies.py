"""Company request schemas."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils.validators import REF_ID_MESSAGE, is_valid_ref_id, normalize_ref_id


COMPANY_SORT_FIELDS = ("name", "ref_id", "created_at")
COMPANY_STATUS_FILTERS = ("ALL", "ACTIVE", "INACTIVE")
SORT_DIRECTIONS = ("asc", "desc")


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class CompanyForm(BaseModel):
    """Company fields submitted as multipart form data."""

    model_config = ConfigDict(extra="ignore")

    ref_id: str
    name: str = Field(min_length=2, max_length=160)
    industry: Optional[str] = Field(default=None, max_length=180)
    website: Optional[str] = Field(default=None, max_length=300)
    description: Optional[str] = Field(default=None, max_length=4000)
    remove_logo: Literal["0", "1"] = "0"

    @field_validator("ref_id", mode="before")
    @classmethod
    def validate_ref_id(cls, v: Any) -> str:
        ref_id = normalize_ref_id(str(v or ""))
        if not is_valid_ref_id(ref_id):
            raise ValueError(REF_ID_MESSAGE)
        return ref_id

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("industry", "website", "description", mode="before")
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("remove_logo", mode="before")
    @classmethod
    def default_remove_logo(cls, v: Any) -> Any:
        if v is None or v == "":
            return "0"
        return v

    @property
    def wants_logo_removed(self) -> bool:
        return self.remove_logo == "1"

    def column_values(self) -> dict:
        """Values written to the companies row."""
        return {
            "ref_id": self.ref_id,
            "name": self.name,
            "industry": self.industry,
            "website": self.website,
            "description": self.description,
        }
