"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens, reset tokens
"""
import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace
from fastapi import HTTPException
from jose import jwt

from alumni_portal.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    create_email_verification_token,
    create_token_pair,
    decode_token,
    hash_token,
    generate_reset_token,
)
from alumni_portal.core.config import settings
from alumni_portal.models.user import UserRole


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_different_each_time(self):
        password = "testpassword123"

        # Bcrypt generates different salts
        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        """OAuth-only accounts have no password hash"""
        assert verify_password("anything", None) is False

    def test_hash_long_password_truncated(self):
        """Bcrypt has a 72 byte limit"""
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password(long_password, hashed) is True
        assert verify_password("a" * 72, hashed) is True


class TestJWTTokens:
    """Test JWT creation and decoding"""

    def test_access_token_roundtrip(self):
        token = create_access_token({"sub": "user-1", "email": "a@example.com"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_refresh_token_type(self):
        payload = decode_token(create_refresh_token({"sub": "user-1"}))

        assert payload["type"] == "refresh"

    def test_email_verification_token(self):
        payload = decode_token(create_email_verification_token("user-1", "a@example.com"))

        assert payload["type"] == "email_verification"
        assert payload["email"] == "a@example.com"

    def test_token_pair_for_user(self):
        user = SimpleNamespace(id="user-1", email="a@example.com", role=UserRole.ADMIN)
        tokens = create_token_pair(user)

        assert tokens["token_type"] == "bearer"
        assert decode_token(tokens["access_token"])["role"] == "admin"
        assert decode_token(tokens["refresh_token"])["type"] == "refresh"

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-10))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token expired"

    def test_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token("not-a-jwt")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Could not validate credentials"

    def test_token_signed_with_other_key(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.utcnow() + timedelta(minutes=5)},
            "some-other-key",
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.detail == "Could not validate credentials"


class TestResetTokens:

    def test_generate_reset_token(self):
        token, token_hash, expires_at = generate_reset_token()

        assert token_hash == hash_token(token)
        assert token_hash != token
        assert expires_at > datetime.utcnow()
        assert expires_at <= datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)

    def test_reset_tokens_are_unique(self):
        assert generate_reset_token()[0] != generate_reset_token()[0]
