"""
Tests for password hashing and JWT helpers.
"""

from jose import jwt

from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)


def test_password_round_trip():
    hashed = hash_password("password1")

    assert hashed != "password1"
    assert verify_password("password1", hashed)
    assert not verify_password("password2", hashed)


def test_malformed_hash_is_rejected():
    assert verify_password("password1", "not-a-bcrypt-hash") is False


def test_access_token_carries_claims():
    token = create_access_token(
        "00000000-0000-0000-0000-000000000001",
        {"email": "ops@example.org", "role": "super_admin"},
    )

    payload = decode_token(token)

    assert payload["sub"] == "00000000-0000-0000-0000-000000000001"
    assert payload["type"] == "access"
    assert payload["role"] == "super_admin"


def test_refresh_token_type():
    assert decode_token(create_refresh_token("abc"))["type"] == "refresh"


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "abc", "type": "access"}, "another-secret", algorithm="HS256")

    assert decode_token(token) is None


def test_long_password_uses_first_72_bytes():
    hashed = hash_password("x" * 100)

    assert verify_password("x" * 72, hashed)
