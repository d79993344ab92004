"""Password hashing, JWT issuance and the encrypted session cookie."""
from __future__ import annotations

import base64
import binascii
import os
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from learnix.config import Settings, get_settings
from learnix.exceptions import TokenInvalidError

ACCESS_TOKEN_COOKIE = "access_token"

_IV_LENGTH = 12
_TAG_LENGTH = 16
_PBKDF2_ITERATIONS = 100_000

context = CryptContext(schemes=["argon2"], deprecated="auto")


# ── Passwords ─────────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return context.verify(plain, hashed)


# ── JWT ───────────────────────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID | str,
    email: str,
    role: str | None,
    settings: Settings | None = None,
) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.jwt_expire_seconds)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenInvalidError() from exc
    if not payload.get("sub"):
        raise TokenInvalidError("Missing sub in token")
    return payload


# ── Cookie encryption (AES-256-GCM) ───────────────────────────────────────────
# Layout: base64(iv[12] | tag[16] | ciphertext)

@lru_cache(maxsize=8)
def _derive_key(secret: str) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=b"",
        iterations=_PBKDF2_ITERATIONS,
    )
    return kdf.derive(secret.encode("utf-8"))


def encrypt_token(token: str, secret: str) -> str:
    iv = os.urandom(_IV_LENGTH)
    sealed = AESGCM(_derive_key(secret)).encrypt(iv, token.encode("utf-8"), None)
    # AESGCM appends the tag; the cookie format carries it in front of the ciphertext
    ciphertext, tag = sealed[:-_TAG_LENGTH], sealed[-_TAG_LENGTH:]
    return base64.b64encode(iv + tag + ciphertext).decode("ascii")


def decrypt_token(value: str, secret: str) -> str | None:
    """Return the plain token, or None when *value* is not a valid encrypted cookie."""
    try:
        combined = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None
    if len(combined) < _IV_LENGTH + _TAG_LENGTH + 1:
        return None

    iv = combined[:_IV_LENGTH]
    tag = combined[_IV_LENGTH:_IV_LENGTH + _TAG_LENGTH]
    ciphertext = combined[_IV_LENGTH + _TAG_LENGTH:]
    try:
        plain = AESGCM(_derive_key(secret)).decrypt(iv, ciphertext + tag, None)
    except InvalidTag:
        return None
    try:
        return plain.decode("utf-8")
    except UnicodeDecodeError:
        return None


def token_from_cookie(value: str | None, settings: Settings | None = None) -> str | None:
    """Decrypt a cookie value, falling back to the raw value for legacy plain cookies."""
    if not value:
        return None
    settings = settings or get_settings()
    return decrypt_token(value, settings.token_encryption_secret) or value


def token_from_authorization(header: str | None) -> str | None:
    if header and header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def extract_token(request: Request, settings: Settings | None = None) -> str | None:
    """Cookie first, then ``Authorization: Bearer``."""
    token = token_from_cookie(request.cookies.get(ACCESS_TOKEN_COOKIE), settings)
    if token:
        return token
    return token_from_authorization(request.headers.get("Authorization"))
