import uuid

import pytest
from starlette.requests import Request

from learnix.config import Settings
from learnix.exceptions import TokenInvalidError
from learnix.security import (
    create_access_token,
    decode_access_token,
    decrypt_token,
    encrypt_token,
    extract_token,
    hash_password,
    token_from_authorization,
    token_from_cookie,
    verify_password,
)

SETTINGS = Settings(jwt_secret="unit-secret", token_encryption_secret="cookie-secret")


def _request(cookie: str | None = None, authorization: str | None = None) -> Request:
    headers = []
    if cookie is not None:
        headers.append((b"cookie", f"access_token={cookie}".encode()))
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("anything", None)


def test_access_token_carries_identity() -> None:
    user_id = uuid.uuid4()
    token = create_access_token(user_id, "a@example.com", "student", SETTINGS)
    payload = decode_access_token(token, SETTINGS)
    assert payload["sub"] == str(user_id)
    assert payload["email"] == "a@example.com"
    assert payload["role"] == "student"
    assert payload["exp"] - payload["iat"] == SETTINGS.jwt_expire_seconds


def test_token_signed_with_other_secret_is_rejected() -> None:
    other = Settings(jwt_secret="someone-else")
    token = create_access_token(uuid.uuid4(), "a@example.com", None, other)
    with pytest.raises(TokenInvalidError):
        decode_access_token(token, SETTINGS)


def test_encrypted_cookie_roundtrip() -> None:
    sealed = encrypt_token("jwt-value", "cookie-secret")
    assert sealed != "jwt-value"
    assert decrypt_token(sealed, "cookie-secret") == "jwt-value"
    # Fresh IV every time
    assert encrypt_token("jwt-value", "cookie-secret") != sealed


@pytest.mark.parametrize("value", ["not base64 at all!", "c2hvcnQ=", ""])
def test_decrypt_rejects_garbage(value: str) -> None:
    assert decrypt_token(value, "cookie-secret") is None


def test_decrypt_with_wrong_secret() -> None:
    sealed = encrypt_token("jwt-value", "cookie-secret")
    assert decrypt_token(sealed, "other-secret") is None


def test_plain_cookie_is_accepted() -> None:
    assert token_from_cookie("raw.jwt.value", SETTINGS) == "raw.jwt.value"
    assert token_from_cookie(None, SETTINGS) is None


def test_bearer_header_parsing() -> None:
    assert token_from_authorization("Bearer abc") == "abc"
    assert token_from_authorization("Basic abc") is None
    assert token_from_authorization("Bearer ") is None
    assert token_from_authorization(None) is None


def test_cookie_wins_over_bearer() -> None:
    sealed = encrypt_token("from-cookie", SETTINGS.token_encryption_secret)
    request = _request(cookie=sealed, authorization="Bearer from-header")
    assert extract_token(request, SETTINGS) == "from-cookie"
    assert extract_token(_request(authorization="Bearer from-header"), SETTINGS) == "from-header"
    assert extract_token(_request(), SETTINGS) is None
