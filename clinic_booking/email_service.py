"""
Email Service using Resend
Provides booking emails using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from cryptography.fernet import Fernet, InvalidToken
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY, SETTINGS_ENCRYPTION_KEY
from .domain.settings.schemas import EmailSettings
from .email_templates import booking_message_template, render_template
from .errors import NotifierError
from .services.notification_service import ReminderMessage

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

fernet = Fernet(SETTINGS_ENCRYPTION_KEY) if SETTINGS_ENCRYPTION_KEY else None


def decrypt_secret(encrypted: Optional[str]) -> Optional[str]:
    """Decrypt a Fernet-encrypted secret stored in settings"""
    if not encrypted:
        return None
    if not fernet:
        logger.warning("⚠️ SETTINGS_ENCRYPTION_KEY not set - cannot decrypt stored secret")
        return None
    try:
        return fernet.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        logger.error("❌ Stored secret could not be decrypted with SETTINGS_ENCRYPTION_KEY")
        return None


def resolve_api_key(settings: EmailSettings) -> Optional[str]:
    """Resend key from the settings override when enabled, else from the environment"""
    if settings.use_resend_override:
        override = decrypt_secret(settings.resend_api_key_encrypted)
        if override:
            return override
    return RESEND_API_KEY


def get_sender(settings: EmailSettings) -> str:
    if settings.from_email:
        return f"{settings.from_name} <{settings.from_email}>"
    return EMAIL_FROM_ADDRESS


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise NotifierError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    reply_to: Optional[str] = None,
    api_key: Optional[str] = None,
) -> dict:
    """
    Send an email via Resend

    Returns:
        Send response dict

    Raises:
        NotifierError: if no key is configured or Resend rejects the message
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    key = api_key or RESEND_API_KEY
    if not key:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise NotifierError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        if reply_to:
            email_data["reply_to"] = reply_to

        resend.api_key = key
        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise NotifierError(f"Failed to send email: {str(e)}") from e


async def _send_booking_message(
    message: ReminderMessage,
    settings: EmailSettings,
    enabled: bool,
    subject_template: str,
    body_template: str,
    site_name: str,
) -> bool:
    """Shared path for client booking emails. False means the channel is off."""
    api_key = resolve_api_key(settings)
    if not enabled or not api_key:
        return False

    values = {
        "name": message.name,
        "date": message.date,
        "time": message.time,
        "service": message.service,
    }
    subject = render_template(subject_template, values)
    body = render_template(body_template, values)

    mjml_content = booking_message_template(
        subject=subject,
        body=body,
        date=message.date,
        time=message.time,
        service=message.service,
        site_name=site_name,
    )
    await send_email(
        to=message.to,
        subject=subject,
        mjml_content=mjml_content,
        from_address=get_sender(settings),
        reply_to=settings.reply_to,
        api_key=api_key,
    )
    return True


async def send_booking_confirmation(
    message: ReminderMessage, settings: EmailSettings, site_name: str = "Clinic"
) -> bool:
    """Confirmation sent right after a booking is created"""
    return await _send_booking_message(
        message,
        settings,
        settings.enable_booking_confirmation,
        settings.templates.confirmation_subject,
        settings.templates.confirmation_body,
        site_name,
    )


async def send_booking_reminder_email(
    message: ReminderMessage, settings: EmailSettings, site_name: str = "Clinic"
) -> bool:
    return await _send_booking_message(
        message,
        settings,
        settings.enable_reminders,
        settings.templates.reminder_subject,
        settings.templates.reminder_body,
        site_name,
    )


async def send_booking_thank_you_email(
    message: ReminderMessage, settings: EmailSettings, site_name: str = "Clinic"
) -> bool:
    return await _send_booking_message(
        message,
        settings,
        settings.enable_thank_you,
        settings.templates.thank_you_subject,
        settings.templates.thank_you_body,
        site_name,
    )
