"""Password hashing and bearer token validation."""

import pytest
from jose import jwt

from securevault.errors import InvalidTokenError, TokenExpiredError
from securevault.utils.security import (
    bearer_token,
    create_access_token,
    hash_password,
    validate_token,
    verify_password,
)


def test_hash_is_salted_and_verifies():
    h1 = hash_password("secret1")
    h2 = hash_password("secret1")
    assert h1 != "secret1"
    assert h1 != h2
    assert verify_password("secret1", h1)
    assert not verify_password("wrong", h1)


def test_token_round_trips_user_id():
    token = create_access_token("user-a")
    assert validate_token(token) == "user-a"


def test_token_for_a_never_validates_as_b():
    token_a = create_access_token("user-a")
    token_b = create_access_token("user-b")
    assert validate_token(token_a) != validate_token(token_b)


def test_expired_token_fails_even_with_valid_payload():
    token = create_access_token("user-a", expires_minutes=-1)
    with pytest.raises(TokenExpiredError):
        validate_token(token)


def test_token_signed_with_other_secret_is_invalid():
    forged = jwt.encode({"sub": "user-a"}, "not-the-secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        validate_token(forged)


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_malformed_token_is_invalid(token):
    with pytest.raises(InvalidTokenError):
        validate_token(token)


def test_token_without_subject_is_invalid():
    from securevault.config import settings

    token = jwt.encode({"foo": "bar"}, settings.secret_key, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        validate_token(token)


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer  abc ") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None
