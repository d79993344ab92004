"""
OAuth 2.0 provider integration (Google + GitHub).

Server-side Authorization Code flow over httpx:
  1. ``GET /auth/<provider>`` redirects to the provider's authorize URL with a
     random ``state`` that is also stored in a short-lived cookie.
  2. The provider redirects back to ``/auth/<provider>/callback?code=&state=``.
  3. This module exchanges the code for tokens, fetches the profile and returns
     a normalized ``OAuthProfile``.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from learnix.config import Settings
from learnix.exceptions import OAuthError
from learnix.models import AuthProvider

OAUTH_STATE_COOKIE = "oauth_state"


@dataclass(frozen=True, slots=True)
class OAuthProfile:
    provider: AuthProvider
    provider_id: str
    email: str
    full_name: str
    avatar_url: str | None
    access_token: str
    refresh_token: str | None = None


def new_state() -> str:
    return secrets.token_urlsafe(24)


def _client(transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=10.0, transport=transport)


# ── Google ──────────────────────────────────────────────────────────────────

_GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


def google_authorize_url(settings: Settings, state: str) -> str:
    query = urlencode({
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_callback_url,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
        "state": state,
    })
    return f"{_GOOGLE_AUTHORIZE_URL}?{query}"


async def exchange_google_code(
    code: str,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> OAuthProfile:
    async with _client(transport) as client:
        token_resp = await client.post(
            _GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "redirect_uri": settings.google_callback_url,
                "grant_type": "authorization_code",
            },
        )
        if token_resp.status_code != 200:
            raise OAuthError("Google token exchange failed")

        tokens = token_resp.json()
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthError("Google did not return an access token")

        info_resp = await client.get(
            _GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if info_resp.status_code != 200:
            raise OAuthError("Google profile request failed")

        info = info_resp.json()
        email = info.get("email")
        sub = info.get("sub")
        if not email or not sub:
            raise OAuthError("Google profile has no email")

        return OAuthProfile(
            provider=AuthProvider.GOOGLE,
            provider_id=str(sub),
            email=email,
            full_name=info.get("name") or email.split("@")[0],
            avatar_url=info.get("picture"),
            access_token=access_token,
            refresh_token=tokens.get("refresh_token"),
        )


# ── GitHub ──────────────────────────────────────────────────────────────────

_GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
_GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
_GITHUB_USER_URL = "https://api.github.com/user"
_GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


def github_authorize_url(settings: Settings, state: str) -> str:
    query = urlencode({
        "client_id": settings.github_client_id,
        "redirect_uri": settings.github_callback_url,
        "scope": "user:email",
        "state": state,
    })
    return f"{_GITHUB_AUTHORIZE_URL}?{query}"


def _primary_github_email(emails: list[dict]) -> str | None:
    verified = [e for e in emails if e.get("verified")]
    for entry in verified:
        if entry.get("primary"):
            return entry.get("email")
    return verified[0].get("email") if verified else None


async def exchange_github_code(
    code: str,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> OAuthProfile:
    async with _client(transport) as client:
        token_resp = await client.post(
            _GITHUB_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.github_client_id,
                "client_secret": settings.github_client_secret,
                "redirect_uri": settings.github_callback_url,
            },
            headers={"Accept": "application/json"},
        )
        if token_resp.status_code != 200:
            raise OAuthError("GitHub token exchange failed")

        access_token = token_resp.json().get("access_token")
        if not access_token:
            raise OAuthError("GitHub did not return an access token")

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }
        user_resp = await client.get(_GITHUB_USER_URL, headers=headers)
        if user_resp.status_code != 200:
            raise OAuthError("GitHub profile request failed")
        info = user_resp.json()

        # The profile email is null when the user keeps it private
        email = info.get("email")
        if not email:
            emails_resp = await client.get(_GITHUB_EMAILS_URL, headers=headers)
            if emails_resp.status_code == 200:
                email = _primary_github_email(emails_resp.json())
        if not email or info.get("id") is None:
            raise OAuthError("GitHub profile has no verified email")

        return OAuthProfile(
            provider=AuthProvider.GITHUB,
            provider_id=str(info["id"]),
            email=email,
            full_name=info.get("name") or info.get("login") or email.split("@")[0],
            avatar_url=info.get("avatar_url"),
            access_token=access_token,
        )
