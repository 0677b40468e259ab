"""Tools exposed to the email alert agent."""

import asyncio
import smtplib
from email.message import EmailMessage

from agents import function_tool

from ..config.logging import get_logger
from ..config.settings import get_settings

logger = get_logger(__name__)


def _deliver(recipient: str, subject: str, body: str) -> None:
    settings = get_settings()

    message = EmailMessage()
    message["From"] = settings.smtp_sender
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content(body)

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password or "")
        smtp.send_message(message)


async def send_alert_email_impl(recipient: str, subject: str, body: str) -> str:
    """Send one alert email - implementation."""
    settings = get_settings()
    if not settings.smtp_host:
        logger.error("SMTP host not configured", recipient=recipient)
        return "Error: outgoing mail is not configured"

    try:
        await asyncio.to_thread(_deliver, recipient, subject, body)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(
            "Alert email delivery failed",
            recipient=recipient,
            error=str(e),
            exc_info=True,
        )
        return f"Error: {e}"

    logger.info("Alert email delivered", recipient=recipient, subject=subject)
    return f"Email sent to {recipient}"


@function_tool
async def send_alert_email(recipient: str, subject: str, body: str) -> str:
    """Send an investment alert email to a recipient."""
    return await send_alert_email_impl(recipient, subject, body)
