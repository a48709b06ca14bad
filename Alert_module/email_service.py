"""
Alert e-mail notification over SMTP.
Sending is best effort: failures are logged and never affect the stored alert.
"""
import logging
import smtplib
from email.message import EmailMessage

from config import settings

logger = logging.getLogger(__name__)


def email_configured() -> bool:
    """SMTP credentials and a recipient are all required; otherwise sending is skipped."""
    return bool(settings.SMTP_USER and settings.SMTP_PASS and settings.ALERT_EMAIL_TO)


def build_alert_email(alert) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"Cattle Farm Alert: {alert.title}"
    sender = settings.SMTP_FROM or settings.SMTP_USER
    if sender:
        msg["From"] = sender
    if settings.ALERT_EMAIL_TO:
        msg["To"] = settings.ALERT_EMAIL_TO
    msg.set_content(
        f"Alert: {alert.title}\n"
        f"Severity: {alert.severity}\n"
        f"Message: {alert.message}\n"
        f"Location: {alert.location_latitude}, {alert.location_longitude}"
    )
    return msg


def send_alert_email(alert) -> bool:
    """
    Send the alert to ALERT_EMAIL_TO.
    Returns True if the message was handed to the SMTP server. Does not raise.
    """
    if not email_configured():
        logger.debug("Skipping alert email: SMTP not configured")
        return False

    try:
        msg = build_alert_email(alert)
        if settings.SMTP_SECURE:
            server = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS)
        else:
            server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS)
        with server:
            if not settings.SMTP_SECURE:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.send_message(msg)
        logger.info(f"Alert email sent | alert_id: {alert.id} | to: {settings.ALERT_EMAIL_TO}")
        return True
    except Exception as e:
        logger.warning(f"Failed to send alert email (alert_id={getattr(alert, 'id', None)}): {e}")
        return False
