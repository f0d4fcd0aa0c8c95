"""Common Pydantic schemas and parsing helpers shared across the API."""

import uuid
from typing import Any, Iterable, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from core.exceptions import ValidationError


M = TypeVar("M", bound=BaseModel)

DEFAULT_PAGE = 1
MAX_PAGE = 9999
DEFAULT_PAGE_SIZE = 25
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 100

# Minimum trimmed length before a text query filters anything
MIN_QUERY_LENGTH = 2


def clamp_int(value: Any, default: int, minimum: int, maximum: int) -> int:
    """
    Parse `value` as a number and clamp it to [minimum, maximum].

    Anything that does not parse falls back to `default`; fractional
    values are truncated toward zero.
    """
    if value is None:
        return default
    try:
        number = float(str(value).strip())
    except ValueError:
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return max(minimum, min(maximum, int(number)))


def parse_choice(value: Optional[str], allowed: Sequence[str], default: str) -> str:
    """Return `value` when it is one of `allowed`, else `default`."""
    if value is not None and value in allowed:
        return value
    return default


def parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    """Parse a UUID, returning None for blank or malformed input."""
    if not value or not value.strip():
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


def normalize_query(q: Optional[str]) -> Optional[str]:
    """Trimmed text query, or None when it is too short to filter on."""
    text = (q or "").strip()
    if len(text) < MIN_QUERY_LENGTH:
        return None
    return text


class PageParams(BaseModel):
    """Clamped page/pageSize pair."""

    page: int = Field(default=DEFAULT_PAGE, ge=1, le=MAX_PAGE)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=MIN_PAGE_SIZE, le=MAX_PAGE_SIZE)

    @classmethod
    def from_query(cls, page: Any = None, page_size: Any = None) -> "PageParams":
        """Build from raw query values, never failing."""
        return cls(
            page=clamp_int(page, DEFAULT_PAGE, 1, MAX_PAGE),
            page_size=clamp_int(page_size, DEFAULT_PAGE_SIZE, MIN_PAGE_SIZE, MAX_PAGE_SIZE),
        )

    @property
    def offset(self) -> int:
        """Calculate offset from page and page_size."""
        return (self.page - 1) * self.page_size


def paginated(items: list, total: int, params: PageParams) -> dict:
    """Paginated response body: {items, total, page, pageSize}."""
    return {
        "items": items,
        "total": total,
        "page": params.page,
        "pageSize": params.page_size,
    }


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(description="Human-readable error message")


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "form")]
    return ".".join(parts)


def format_validation_errors(errors: Iterable[dict]) -> list[str]:
    """
    Turn pydantic error dicts into readable messages.

    Messages raised by our own validators are used verbatim; built-in
    constraint messages are prefixed with the field name. Malformed path
    parameters collapse to "Invalid id".
    """
    messages: list[str] = []
    for error in errors:
        loc = tuple(error.get("loc", ()))
        if loc and loc[0] == "path":
            message = "Invalid id"
        elif error.get("type") == "value_error":
            message = str(error.get("msg", "")).removeprefix("Value error, ")
        elif error.get("type") == "json_invalid":
            message = "Invalid JSON body"
        else:
            field = _field_name(loc)
            msg = str(error.get("msg", "Invalid value"))
            message = f"{field}: {msg}" if field else msg
        if message not in messages:
            messages.append(message)
    return messages


def validate_payload(model: Type[M], data: Any) -> M:
    """
    Validate `data` against `model`.

    Raises:
        ValidationError: every problem found, aggregated
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e.errors()))
