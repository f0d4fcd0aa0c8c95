"""
Security utilities: password hashing and session tokens.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs bound to a
server-side session row, so logout and password resets can revoke them.
"""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from core.utils.validators import MAX_PASSWORD_BYTES

logger = logging.getLogger(__name__)

JWTPayload = Dict[str, Any]

ACCESS_TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    """
    Hash a password with a fresh bcrypt salt.

    Args:
        password: Plain-text password

    Returns:
        bcrypt hash as text ("$2b$...")
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        # Never hashed, so it cannot match
        return False
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        logger.warning("Password hash has an unexpected format")
        return False


def create_access_token(
    user_id: uuid.UUID | str,
    session_id: uuid.UUID | str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token for a session.

    Args:
        user_id: Identity the token authenticates
        session_id: Server-side session the token is bound to
        secret_key: Signing key
        algorithm: JWT algorithm
        expires_delta: Lifetime (defaults to 12 hours)

    Returns:
        Encoded JWT
    """
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + (expires_delta or timedelta(hours=12))
    payload = {
        "user_id": str(user_id),
        "session_id": str(session_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": expires_at,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def verify_jwt_token(token: str, secret_key: str, algorithm: str = "HS256") -> JWTPayload:
    """
    Decode and verify a token.

    Raises:
        jwt.ExpiredSignatureError: token has expired
        jwt.InvalidTokenError: signature, format or claims are invalid
    """
    payload = jwt.decode(
        token,
        secret_key,
        algorithms=[algorithm],
        options={"require": ["exp", "iat", "user_id", "session_id"]},
    )
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload
