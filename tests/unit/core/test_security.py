"""
Tests for core security utilities.

Tests:
- Password hashing and verification
- Access token creation and validation
- Token expiration and tampering
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from core.security import (
    create_access_token,
    hash_password,
    verify_jwt_token,
    verify_password,
)

SECRET = "unit-test-secret-key-that-is-long-enough"


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self):
        """Hashes are bcrypt strings, never the password itself."""
        hashed = hash_password("SecurePassword123!")

        assert isinstance(hashed, str)
        assert hashed != "SecurePassword123!"
        assert hashed.startswith("$2b$")

    def test_hash_password_different_each_time(self):
        """Same password, different salts."""
        assert hash_password("SecurePassword123!") != hash_password("SecurePassword123!")

    def test_verify_password_success(self):
        hashed = hash_password("SecurePassword123!")
        assert verify_password("SecurePassword123!", hashed) is True

    def test_verify_password_failure(self):
        hashed = hash_password("SecurePassword123!")
        assert verify_password("WrongPassword", hashed) is False

    def test_verify_password_with_malformed_hash(self):
        """A stored value that is not a bcrypt hash never verifies."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_verify_overlong_password(self, caplog):
        """Passwords bcrypt cannot hash never match and are not logged as bad hashes."""
        hashed = hash_password("p" * 72)

        with caplog.at_level(logging.WARNING, logger="core.security"):
            assert verify_password("p" * 80, hashed) is False
        assert caplog.records == []



class TestAccessTokens:
    """Test JWT creation and validation."""

    def test_token_round_trip(self):
        user_id, session_id = uuid.uuid4(), uuid.uuid4()
        token = create_access_token(user_id, session_id, secret_key=SECRET)

        payload = verify_jwt_token(token, SECRET)

        assert payload["user_id"] == str(user_id)
        assert payload["session_id"] == str(session_id)
        assert payload["type"] == "access"
        assert "jti" in payload

    def test_tokens_are_unique(self):
        user_id, session_id = uuid.uuid4(), uuid.uuid4()
        first = create_access_token(user_id, session_id, secret_key=SECRET)
        second = create_access_token(user_id, session_id, secret_key=SECRET)
        assert first != second

    def test_wrong_secret_rejected(self):
        token = create_access_token(uuid.uuid4(), uuid.uuid4(), secret_key=SECRET)
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token, "another-secret-key-that-is-long-enough")

    def test_expired_token_rejected(self):
        token = create_access_token(
            uuid.uuid4(),
            uuid.uuid4(),
            secret_key=SECRET,
            expires_delta=timedelta(seconds=-10),
        )
        with pytest.raises(pyjwt.ExpiredSignatureError):
            verify_jwt_token(token, SECRET)

    def test_wrong_token_type_rejected(self):
        now = datetime.now(timezone.utc)
        token = pyjwt.encode(
            {
                "user_id": str(uuid.uuid4()),
                "session_id": str(uuid.uuid4()),
                "type": "refresh",
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token, SECRET)

    def test_missing_session_claim_rejected(self):
        now = datetime.now(timezone.utc)
        token = pyjwt.encode(
            {"user_id": str(uuid.uuid4()), "type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(pyjwt.MissingRequiredClaimError):
            verify_jwt_token(token, SECRET)

    def test_garbage_rejected(self):
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token("not.a.jwt", SECRET)
