"""Outgoing email notifications over SMTP."""
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from typing import Optional

from smartcare.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, body: str) -> bool:
    """Send a plain-text email. Returns False when SMTP is not configured."""
    if not settings.EMAIL_HOST:
        logger.warning("EMAIL_HOST not set; skipping email to %s (%s)", to, subject)
        return False

    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to

    with smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30) as server:
        if settings.EMAIL_USE_TLS:
            server.starttls(context=ssl.create_default_context())
        if settings.EMAIL_USER and settings.EMAIL_PASS:
            server.login(settings.EMAIL_USER, settings.EMAIL_PASS)
        server.sendmail(settings.EMAIL_FROM, [to], msg.as_string())

    logger.info("Email sent to %s: %s", to, subject)
    return True


def notify_doctor_approved(to: str, name: Optional[str] = None) -> bool:
    app_name = settings.APP_NAME
    safe_name = name or "Doctor"
    subject = f"Your {app_name} account has been approved"
    body = (
        f"Hello Dr. {safe_name},\n\n"
        f"Your account has been approved. You can now log in and start using {app_name}.\n\n"
        f"Login: {settings.APP_URL.rstrip('/')}/login\n\n"
        "If you have any questions, just reply to this email.\n\n"
        f"- {app_name} Team"
    )
    return send_email(to, subject, body)
