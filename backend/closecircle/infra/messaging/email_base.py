"""Email service interface and implementations."""
import asyncio
import logging
from abc import ABC, abstractmethod

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from closecircle.domain.common.errors import UpstreamError
from closecircle.settings import settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset your Close Circle password"


def _reset_bodies(name: str, reset_url: str, expire_minutes: int) -> tuple[str, str]:
    text_content = (
        f"Hi {name},\n\n"
        f"Someone asked to reset the password for your Close Circle account.\n"
        f"Open this link to choose a new one:\n{reset_url}\n\n"
        f"The link expires in {expire_minutes} minutes. If you did not ask for this, ignore this email.\n"
    )
    html_content = f"""
    <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; color: #333;">
        <h2 style="color: #1e293b;">Reset your password</h2>
        <p>Hi {name},</p>
        <p>Someone asked to reset the password for your Close Circle account.</p>
        <p style="text-align: center; margin: 32px 0;">
            <a href="{reset_url}" style="background-color: #1e293b; color: #fff; padding: 12px 24px; text-decoration: none; border-radius: 6px;">Choose a new password</a>
        </p>
        <p style="font-size: 13px; color: #64748b;">Or paste this link into your browser:<br>{reset_url}</p>
        <p style="font-size: 12px; color: #94a3b8;">The link expires in {expire_minutes} minutes. If you did not ask for this, ignore this email.</p>
    </div>
    """
    return text_content, html_content


class EmailService(ABC):
    """Email service interface."""

    @abstractmethod
    async def send_password_reset(self, to_email: str, name: str, reset_url: str) -> None:
        """Send a password reset link."""
        pass


class ConsoleEmailService(EmailService):
    """Logs emails instead of sending them (development)."""

    async def send_password_reset(self, to_email: str, name: str, reset_url: str) -> None:
        logger.info(
            f"📧 [EMAIL] Password reset for {to_email}\n"
            f"   Name: {name}\n"
            f"   Reset URL: {reset_url}"
        )


class SendGridEmailService(EmailService):
    """SendGrid email service for production email sending."""

    def __init__(self, api_key: str, from_email: str, from_name: str):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name

    def _send(self, message: Mail) -> int:
        response = SendGridAPIClient(self.api_key).send(message)
        return response.status_code

    async def send_password_reset(self, to_email: str, name: str, reset_url: str) -> None:
        """Send the reset link via SendGrid."""
        text_content, html_content = _reset_bodies(name, reset_url, settings.reset_password_token_expire_minutes)
        message = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=To(to_email),
            subject=RESET_SUBJECT,
            plain_text_content=Content("text/plain", text_content),
            html_content=Content("text/html", html_content),
        )
        try:
            status_code = await asyncio.to_thread(self._send, message)
        except Exception as e:
            logger.error(f"❌ [EMAIL] Error sending password reset to {to_email}: {e}")
            raise UpstreamError("email", "send failed") from e
        if status_code not in (200, 201, 202):
            logger.error(f"❌ [EMAIL] SendGrid returned status {status_code} for {to_email}")
            raise UpstreamError("email", f"SendGrid returned status {status_code}")
        logger.info(f"✅ [EMAIL] Password reset sent to {to_email} (status: {status_code})")


def get_email_service() -> EmailService:
    """Pick the email service from configuration."""
    if settings.sendgrid_api_key:
        return SendGridEmailService(
            api_key=settings.sendgrid_api_key,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    logger.warning("⚠️ [EMAIL] No SendGrid API key configured. Using console email service.")
    return ConsoleEmailService()
