import logging

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from app.config import settings

logger = logging.getLogger(__name__)


def email_configured() -> bool:
    return bool(settings.EMAIL_HOST)


async def send_email_async(subject: str, body: str, to_email: str):
    """
    Send one plain-text message through the configured SMTP relay.

    Errors propagate so the worker can mark the log entry as failed.
    """
    msg = MIMEMultipart()
    msg["From"] = settings.EMAIL_FROM or settings.EMAIL_USER or "noreply@localhost"
    msg["To"] = to_email
    msg["Subject"] = subject

    msg.attach(MIMEText(body, "plain"))

    # STARTTLS on the submission port
    await aiosmtplib.send(
        msg,
        hostname=settings.EMAIL_HOST,
        port=settings.EMAIL_PORT,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASS,
        start_tls=True,
        timeout=10
    )
    logger.info("Email sent to %s: %s", to_email, subject)
