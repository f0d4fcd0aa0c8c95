"""Validation utilities for common data types."""

import re
from typing import Optional
from email_validator import validate_email as _validate_email, EmailNotValidError

REF_ID_PATTERN = re.compile(r"^[A-Z]{3}[0-9]{3}$")
REF_ID_MESSAGE = "Ref ID must be AAA000 (e.g., KMP001)"

MIN_PASSWORD_LENGTH = 8
# bcrypt refuses input longer than 72 bytes
MAX_PASSWORD_BYTES = 72


def normalize_ref_id(value: str) -> str:
    """Trim and upper-case a company ref id candidate."""
    return value.strip().upper()


def is_valid_ref_id(value: str) -> bool:
    """
    True iff `value` is exactly three uppercase ASCII letters followed by
    three digits. No normalization is applied here.
    """
    return bool(REF_ID_PATTERN.fullmatch(value))


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


def validate_password(password: str) -> tuple[bool, Optional[str]]:
    """Check the password length policy."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False, f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
    return True, None


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally (escape char is backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
