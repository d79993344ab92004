"""
Async SMTP delivery via aiosmtplib.

Sends MIME-formatted HTML emails, with STARTTLS when configured.
Returns True on success, False on any failure (never raises).
"""
from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from learnix.config import Settings

logger = logging.getLogger(__name__)


def is_configured(settings: Settings) -> bool:
    return bool(settings.smtp_host)


def build_message(
    to_email: str,
    to_name: str | None,
    subject: str,
    html: str,
    settings: Settings,
) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    msg["To"] = f"{to_name} <{to_email}>" if to_name else to_email
    msg["Subject"] = subject
    msg.set_content(html, subtype="html")
    return msg


async def deliver(
    to_email: str,
    to_name: str | None,
    subject: str,
    html: str,
    settings: Settings,
) -> bool:
    if not is_configured(settings):
        return False

    msg = build_message(to_email, to_name, subject, html, settings)
    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            start_tls=settings.smtp_start_tls,
            timeout=15,
        )
        return True
    except Exception as exc:
        logger.error("SMTP delivery failed (%s -> %s): %s", settings.smtp_host, to_email, exc)
        return False
