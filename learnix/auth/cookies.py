from fastapi import Response

from learnix.auth.oauth import OAUTH_STATE_COOKIE
from learnix.config import Settings
from learnix.security import ACCESS_TOKEN_COOKIE, encrypt_token

OAUTH_STATE_MAX_AGE = 600


def auth_cookie_value(jwt_token: str, settings: Settings) -> str:
    return encrypt_token(jwt_token, settings.token_encryption_secret)


def write_auth_cookie(response: Response, cookie_value: str, settings: Settings) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        cookie_value,
        max_age=settings.cookie_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def set_auth_cookie(response: Response, jwt_token: str, settings: Settings) -> str:
    """Store the encrypted JWT in the session cookie and return the cookie value."""
    value = auth_cookie_value(jwt_token, settings)
    write_auth_cookie(response, value, settings)
    return value


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        ACCESS_TOKEN_COOKIE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def set_oauth_state_cookie(response: Response, state: str, settings: Settings) -> None:
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
