"""
Transactional e-mails: activation, welcome, password reset, password changed.

All send_* functions log on failure and never raise.  Schedule them through
FastAPI BackgroundTasks.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from learnix.config import Settings
from learnix.mail import smtp

logger = logging.getLogger(__name__)


def _greeting(full_name: str | None) -> str:
    return f"Hi {full_name}," if full_name else "Hi,"


def _layout(settings: Settings, heading: str, body: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!DOCTYPE html><html><head><meta charset='utf-8'>"
        f"<title>{heading}</title></head>"
        "<body style='font-family:Arial,sans-serif;background:#f4f4f5;padding:32px'>"
        "<div style='max-width:560px;margin:0 auto;background:#fff;border-radius:8px;padding:32px'>"
        f"<h1 style='font-size:22px;color:#111827'>{heading}</h1>"
        f"{body}"
        f"<p style='color:#9ca3af;font-size:12px;margin-top:32px'>"
        f"&copy; {year} {settings.app_name}. All rights reserved.</p>"
        "</div></body></html>"
    )


def _button(url: str, label: str) -> str:
    return (
        f"<p style='margin:24px 0'><a href='{url}' "
        "style='background:#4f46e5;color:#fff;padding:12px 24px;border-radius:6px;"
        f"text-decoration:none;font-weight:bold'>{label}</a></p>"
    )


async def _deliver(
    to_email: str,
    to_name: str | None,
    subject: str,
    html: str,
    settings: Settings,
    link: str | None = None,
) -> None:
    """Send through SMTP.  Never raises."""
    if not smtp.is_configured(settings):
        logger.warning("SMTP not configured, skipping '%s' email to %s", subject, to_email)
        if link:
            logger.info("Dev mode link for %s: %s", to_email, link)
        return

    try:
        if await smtp.deliver(to_email, to_name, subject, html, settings):
            logger.info("Sent '%s' email to %s", subject, to_email)
    except Exception:
        logger.exception("Unexpected error while sending '%s' email to %s", subject, to_email)


# ── Public send_* functions ──────────────────────────────────────────────────


def activation_url(token: str, settings: Settings) -> str:
    return f"{settings.frontend_url}/activate?token={token}"


def password_reset_url(token: str, settings: Settings) -> str:
    return f"{settings.frontend_url}/reset-password?token={token}"


async def send_activation_email(
    to_email: str, full_name: str | None, token: str, settings: Settings
) -> None:
    url = activation_url(token, settings)
    body = (
        f"<p>{_greeting(full_name)}</p>"
        f"<p>Thanks for signing up for {settings.app_name}. "
        "Please confirm your email address to activate your account.</p>"
        f"{_button(url, 'Activate Account')}"
        "<p>If the button doesn't work, copy and paste this link into your browser:</p>"
        f"<p style='word-break:break-all'>{url}</p>"
        "<p>This link will expire in 24 hours. If you didn't create an account, "
        "you can safely ignore this email.</p>"
    )
    await _deliver(
        to_email, full_name,
        f"Activate Your {settings.app_name} Account",
        _layout(settings, "Activate your account", body),
        settings,
        link=url,
    )


async def send_welcome_email(
    to_email: str, full_name: str | None, settings: Settings
) -> None:
    body = (
        f"<p>{_greeting(full_name)}</p>"
        "<p>Your email has been verified and your account is now active. "
        f"You can now log in and start exploring courses on {settings.app_name}.</p>"
        f"{_button(f'{settings.frontend_url}/login', 'Go to Login')}"
    )
    await _deliver(
        to_email, full_name,
        f"Welcome to {settings.app_name}!",
        _layout(settings, f"Welcome to {settings.app_name}", body),
        settings,
    )


async def send_password_reset_email(
    to_email: str, full_name: str | None, token: str, settings: Settings
) -> None:
    url = password_reset_url(token, settings)
    body = (
        f"<p>{_greeting(full_name)} we received a request to reset your password. "
        "Click the button below to create a new password.</p>"
        f"{_button(url, 'Reset Password')}"
        "<p>If the button doesn't work, copy and paste this link into your browser:</p>"
        f"<p style='word-break:break-all'>{url}</p>"
        "<p>This link will expire in 1 hour. If you didn't request a password reset, "
        "you can safely ignore this email.</p>"
    )
    await _deliver(
        to_email, full_name,
        f"Reset Your {settings.app_name} Password",
        _layout(settings, "Reset your password", body),
        settings,
        link=url,
    )


async def send_password_changed_email(
    to_email: str, full_name: str | None, settings: Settings
) -> None:
    body = (
        f"<p>{_greeting(full_name)}</p>"
        f"<p>The password for your {settings.app_name} account was just changed.</p>"
        "<p>If you made this change, no further action is needed. If you did not, "
        "reset your password immediately and contact support.</p>"
        f"{_button(f'{settings.frontend_url}/forgot-password', 'Reset Password')}"
    )
    await _deliver(
        to_email, full_name,
        f"Your {settings.app_name} Password Was Changed",
        _layout(settings, "Your password was changed", body),
        settings,
    )
