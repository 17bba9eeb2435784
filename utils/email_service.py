"""
Outbound email.

Uses the active SMTP configuration stored by admins; falls back to the
SendGrid v3 REST API when no SMTP configuration exists and a SendGrid key
is set.
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import httpx
from sqlalchemy.orm import Session

import config

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailDeliveryError(Exception):
    """Sending failed or no transport is configured."""


@dataclass
class SmtpSettings:
    host: str
    port: int
    secure: bool
    username: str
    password: str
    from_email: str
    from_name: str = "TSU Wallet"


def load_smtp_settings(db: Session) -> Optional[SmtpSettings]:
    from models import SmtpConfig

    row = (
        db.query(SmtpConfig)
        .filter(SmtpConfig.is_active.is_(True))
        .order_by(SmtpConfig.updated_at.desc())
        .first()
    )
    if not row:
        return None
    return SmtpSettings(
        host=row.host,
        port=row.port,
        secure=row.secure,
        username=row.username,
        password=row.password,
        from_email=row.from_email,
        from_name=row.from_name,
    )


def _build_message(settings: SmtpSettings, to_email: str, subject: str, body: str, is_html: bool) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(body, "html" if is_html else "plain", "utf-8"))
    return msg


def send_via_smtp(settings: SmtpSettings, *, to_email: str, subject: str, body: str, is_html: bool = False) -> None:
    msg = _build_message(settings, to_email, subject, body, is_html)
    try:
        if settings.secure:
            server = smtplib.SMTP_SSL(
                settings.host, settings.port, timeout=config.SMTP_TIMEOUT_SECONDS,
                context=ssl.create_default_context(),
            )
        else:
            server = smtplib.SMTP(settings.host, settings.port, timeout=config.SMTP_TIMEOUT_SECONDS)
        with server:
            if not settings.secure:
                server.starttls(context=ssl.create_default_context())
            server.login(settings.username, settings.password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"EMAIL_SMTP_FAILED | to={to_email} | host={settings.host} | error={e}")
        raise EmailDeliveryError(str(e)) from e


def send_via_sendgrid(*, to_email: str, subject: str, body: str, is_html: bool = False) -> None:
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": config.SENDGRID_FROM_EMAIL, "name": "TSU Wallet"},
        "subject": subject,
        "content": [{"type": "text/html" if is_html else "text/plain", "value": body}],
    }
    headers = {"Authorization": f"Bearer {config.SENDGRID_API_KEY}"}
    try:
        with httpx.Client(timeout=15.0) as client:
            response = client.post(SENDGRID_SEND_URL, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"EMAIL_SENDGRID_FAILED | to={to_email} | error={e}")
        raise EmailDeliveryError(str(e)) from e


def send_email(
    db: Session,
    *,
    to_email: str,
    subject: str,
    body: str,
    is_html: bool = False,
    settings: Optional[SmtpSettings] = None,
) -> None:
    """
    Send one email. Raises EmailDeliveryError on failure.

    `settings` lets callers reuse an already loaded SMTP configuration when
    sending in bulk.
    """
    settings = settings or load_smtp_settings(db)
    if settings:
        send_via_smtp(settings, to_email=to_email, subject=subject, body=body, is_html=is_html)
    elif config.SENDGRID_API_KEY:
        send_via_sendgrid(to_email=to_email, subject=subject, body=body, is_html=is_html)
    else:
        raise EmailDeliveryError("Email service is not configured")
    logger.info(f"EMAIL_SENT | to={to_email} | subject={subject!r}")


def password_reset_email(reset_url: str) -> str:
    return (
        "<p>We received a request to reset the password for your TSU Wallet account.</p>"
        f'<p><a href="{reset_url}">Reset your password</a></p>'
        "<p>This link expires in 1 hour. If you did not request a reset you can ignore this email.</p>"
    )
