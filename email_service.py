"""
email_service.py — Delivery of "a file was shared with you" messages.

Uses the SendGrid SMTP relay when SENDGRID_API_KEY is set, otherwise the
SMTP server configured in SMTP_HOST/SMTP_PORT with SMTP_USER credentials.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from html import escape

import config
from errors import MailDeliveryError

logger = logging.getLogger(__name__)


def format_size(size_bytes: int) -> str:
    size = float(size_bytes)
    for unit in ("Bytes", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{int(size)} {unit}" if unit == "Bytes" else f"{size:.2f} {unit}"
        size /= 1024


def _transport_settings() -> dict:
    if config.SENDGRID_API_KEY:
        return {"host": "smtp.sendgrid.net", "port": 587, "user": "apikey",
                "password": config.SENDGRID_API_KEY, "tls": True}
    return {"host": config.SMTP_HOST, "port": config.SMTP_PORT, "user": config.SMTP_USER,
            "password": config.SMTP_PASSWORD, "tls": config.SMTP_USE_TLS}


def build_share_message(to_email: str, from_user: str, file_name: str, share_url: str, file_size: int) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"File Shared: {file_name}"
    msg["From"] = config.MAIL_FROM
    msg["To"] = to_email
    msg["Message-ID"] = make_msgid()

    size = format_size(file_size)
    msg.set_content(
        f"{from_user} shared a file with you.\n\n"
        f"File: {file_name}\n"
        f"Size: {size}\n\n"
        f"Download it here: {share_url}\n\n"
        f"The link expires {config.RETENTION_DAYS} days after the file was uploaded.\n"
    )
    msg.add_alternative(
        "<html><body>"
        f"<h1>{escape(from_user)} shared a file with you</h1>"
        f"<p><strong>{escape(file_name)}</strong> ({size})</p>"
        f"<p><a href=\"{escape(share_url)}\">Download file</a></p>"
        f"<p>The link expires {config.RETENTION_DAYS} days after the file was uploaded.</p>"
        "</body></html>",
        subtype="html",
    )
    return msg


def send_file_share_email(to_email: str, from_user: str, file_name: str, share_url: str, file_size: int) -> str:
    """Send the share notification and return its Message-ID."""
    settings = _transport_settings()
    msg = build_share_message(to_email, from_user, file_name, share_url, file_size)
    message_id = msg["Message-ID"]

    try:
        with smtplib.SMTP(settings["host"], settings["port"], timeout=config.SMTP_TIMEOUT) as smtp:
            if settings["tls"]:
                smtp.starttls()
            if settings["user"] and settings["password"]:
                smtp.login(settings["user"], settings["password"])
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send share email to {to_email} via {settings['host']}: {e}")
        raise MailDeliveryError("Failed to send email. Please check email configuration.") from e

    logger.info(f"✉️ Share email sent to {to_email} for {file_name!r}")
    return message_id
