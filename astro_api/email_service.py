"""
Email Service using Resend (primary) or SMTP
Emails are written in MJML and compiled to HTML before sending
"""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Union

import resend
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    OTP_TTL_MINUTES,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_SECURE,
    SMTP_USER,
)
from .email_templates import password_reset_otp_template, signup_otp_template
from .models import OtpPurpose
from .shared.clock import utcnow

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def is_email_configured() -> bool:
    """True when either Resend or SMTP credentials are present"""
    return bool(RESEND_API_KEY) or bool(SMTP_HOST and SMTP_USER and SMTP_PASS)


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if result.errors:
            logger.warning(f"MJML compilation warnings: {result.errors}")
        return result.html
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def send_via_smtp(to: list[str], subject: str, html_content: str, from_address: str) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(to)
    msg.attach(MIMEText(html_content, "html"))

    context = ssl.create_default_context()
    if SMTP_SECURE or SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        server.starttls(context=context)

    try:
        server.login(SMTP_USER, SMTP_PASS)
        server.sendmail(from_address.split("<")[-1].rstrip(">"), to, msg.as_string())
    finally:
        server.quit()

    logger.info(f"SMTP email sent successfully via {SMTP_HOST}")
    return {"id": f"smtp-{utcnow().timestamp()}", "success": True}


async def send_email(to: Union[str, list[str]], subject: str, mjml_content: str) -> dict:
    """
    Send an email using Resend, or SMTP when Resend is not configured

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    if not RESEND_API_KEY:
        if not (SMTP_HOST and SMTP_USER and SMTP_PASS):
            logger.error("No email service configured - RESEND_API_KEY and SMTP settings missing")
            raise Exception("Email service not configured")
        try:
            return send_via_smtp(recipients, subject, html_content, EMAIL_FROM_ADDRESS)
        except Exception as e:
            logger.error(f"SMTP send failed: {e}")
            raise Exception(f"Failed to send email: {str(e)}") from e

    try:
        logger.info(f"Sending email via Resend to {len(recipients)} recipient(s)")
        response = resend.Emails.send(
            {
                "from": EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"Email send error: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_otp_email(to: str, otp: str, purpose: OtpPurpose) -> dict:
    """Send a signup or password reset code"""
    if purpose == OtpPurpose.SIGNUP:
        subject = "Your AstrobyAB signup OTP"
        mjml_content = signup_otp_template(otp, OTP_TTL_MINUTES)
    else:
        subject = "Your AstrobyAB password reset OTP"
        mjml_content = password_reset_otp_template(otp, OTP_TTL_MINUTES)

    return await send_email(to=to, subject=subject, mjml_content=mjml_content)
