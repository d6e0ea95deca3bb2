import logging
import os
import smtplib
import ssl
from email.message import EmailMessage

_LOGGER = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html: str, text: str | None = None) -> bool:
    """Send one message over SMTP; returns False (and logs) when SMTP is not configured."""

    host = os.getenv("SMTP_HOST")
    port = int(os.getenv("SMTP_PORT", "587"))
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASSWORD")
    sender = os.getenv("SMTP_FROM", user or "Event Management <no-reply@example.com>")

    if not (host and user and password):
        _LOGGER.info("SMTP not configured; skipping send to %s (subject: %s)", to_email, subject)
        return False

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text or "Open in an HTML-capable client.")
    if html:
        msg.add_alternative(html, subtype="html")

    context = ssl.create_default_context()
    with smtplib.SMTP(host, port) as s:
        s.starttls(context=context)
        s.login(user, password)
        s.send_message(msg)

    return True
