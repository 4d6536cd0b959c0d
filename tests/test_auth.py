# tests/test_auth.py
import jwt
import pytest

from dealflow.adapters.config import config
from dealflow.services.auth import (
    AuthError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_password_hash_round_trip():
    stored = hash_password("s3cret!", iterations=1000)

    assert stored.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret!", stored)
    assert not verify_password("wrong", stored)


def test_password_hashes_are_salted():
    assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)


@pytest.mark.parametrize("stored", ["", "plaintext", "md5$1$abc$def", "pbkdf2_sha256$x$y$z"])
def test_malformed_hashes_never_verify(stored):
    assert verify_password("anything", stored) is False


def test_token_round_trip():
    token = create_access_token(user_id=42, username="alice")
    claims = decode_access_token(token)

    assert claims["user_id"] == 42
    assert claims["username"] == "alice"
    assert claims["exp"] > claims["iat"]


def test_expired_token_is_rejected():
    token = jwt.encode(
        {"sub": "1", "username": "x", "iat": 1_000_000, "exp": 1_000_060},
        config.JWT_SECRET,
        algorithm=config.JWT_ALGORITHM,
    )
    with pytest.raises(AuthError, match="Token expired"):
        decode_access_token(token)


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "1", "exp": 4_102_444_800}, "not-the-secret", algorithm="HS256")
    with pytest.raises(AuthError, match="Invalid token"):
        decode_access_token(token)


def test_token_without_numeric_subject_is_rejected():
    token = jwt.encode({"sub": "abc", "exp": 4_102_444_800}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
    with pytest.raises(AuthError, match="Invalid token payload"):
        decode_access_token(token)
