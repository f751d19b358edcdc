#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Email service - send verification links via SMTP (aiosmtplib).

If SMTP_HOST is not configured, emails are printed to stdout (dev mode).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Protocol
from urllib.parse import urlencode

import aiosmtplib
from fastapi import Depends

from postgate.core.config import Settings, get_settings

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class VerificationMailer(Protocol):
    async def send(self, to_address: str, verification_link: str) -> None: ...


# -----------------------------------------------------------------------------

def verification_link(settings: Settings, token: str) -> str:
    base = settings.base_url.rstrip("/")
    return f"{base}/api/v1/auth/verify-email?{urlencode({'token': token})}"


# -----------------------------------------------------------------------------

async def send_email(
    settings: Settings, to: str, subject: str, body_text: str, body_html: str | None = None,
) -> None:
    """Send an email.  Falls back to stdout when SMTP is not configured."""
    if not settings.smtp_host:
        log.warning("SMTP not configured - printing email to stdout")
        print(f"\n{'='*60}")
        print(f"TO:      {to}")
        print(f"SUBJECT: {subject}")
        print(f"{'='*60}")
        print(body_text)
        print(f"{'='*60}\n")
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"]    = settings.smtp_from
    msg["To"]      = to
    msg.attach(MIMEText(body_text, "plain"))
    if body_html:
        msg.attach(MIMEText(body_html, "html"))

    await aiosmtplib.send(
        msg,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user or None,
        password=settings.smtp_password or None,
        use_tls=settings.smtp_ssl,
        start_tls=settings.smtp_tls,
    )


# -----------------------------------------------------------------------------

class SmtpVerificationMailer:
    """Verification-mail sender backed by ``send_email``."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send(self, to_address: str, verification_link: str) -> None:
        app_name = self.settings.app_name
        hours = self.settings.verification_token_expire_hours
        subject = f"[{app_name}] Verify your email address"
        body_text = (
            f"Hello,\n\n"
            f"Thanks for signing up to {app_name}! Please confirm your email address by visiting:\n\n"
            f"  {verification_link}\n\n"
            f"This link expires in {hours} hours and can be used once.\n\n"
            f"If you did not create an account, you can safely ignore this message.\n"
        )
        link = escape(verification_link, quote=True)
        body_html = (
            f"<p>Hello,</p>"
            f"<p>Thanks for signing up to <strong>{escape(app_name)}</strong>! "
            f"Please confirm your email address by clicking the link below:</p>"
            f"<p><a href=\"{link}\">{link}</a></p>"
            f"<p>This link expires in {hours} hours and can be used once.</p>"
            f"<p>If you did not create an account, you can safely ignore this message.</p>"
        )
        await send_email(self.settings, to_address, subject, body_text, body_html)


# -----------------------------------------------------------------------------

async def deliver_verification(
    mailer: VerificationMailer, settings: Settings, to_address: str, token: str,
) -> list[str]:
    """Send the link; a delivery failure becomes a warning, never an error."""
    try:
        await mailer.send(to_address, verification_link(settings, token))
    except Exception:
        log.warning("Could not send verification email to %s", to_address, exc_info=True)
        return ["Verification email could not be sent; request a new link later."]
    return []


# -----------------------------------------------------------------------------

def get_mailer(settings: Settings = Depends(get_settings)) -> VerificationMailer:
    return SmtpVerificationMailer(settings)


# -----------------------------------------------------------------------------
