"""
Email Service using Resend
Templates are written in MJML and compiled to HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import ADMIN_EMAIL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import contract_request_admin_template, contract_submitted_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        attachments: Optional list of {"filename", "content"} dicts, content as bytes

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }

        if attachments:
            email_data["attachments"] = [
                {"filename": attachment["filename"], "content": list(attachment["content"])}
                for attachment in attachments
            ]

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails
# ============================================


async def send_contract_submitted_email(
    to: str,
    company_name: str,
    contract_number: str,
    package_name: str,
    monthly_fee: int,
    contract_period: int,
    total_amount: int,
    pdf_bytes: Optional[bytes] = None,
) -> dict:
    """Confirmation to the customer, with the signed request attached as PDF"""
    mjml_content = contract_submitted_template(
        company_name, contract_number, package_name, monthly_fee, contract_period, total_amount
    )
    attachments = None
    if pdf_bytes:
        attachments = [{"filename": f"contract-{contract_number}.pdf", "content": pdf_bytes}]

    return await send_email(
        to=to,
        subject=f"[Polarad] 계약 신청 접수 안내 ({contract_number})",
        mjml_content=mjml_content,
        attachments=attachments,
    )


async def send_contract_request_notification(
    company_name: str, contact_name: str, contact_phone: str, contract_number: str, package_name: str
) -> Optional[dict]:
    """Notify staff of a new contract request"""
    if not ADMIN_EMAIL:
        logger.debug("ADMIN_EMAIL not configured, skipping contract request notification")
        return None

    mjml_content = contract_request_admin_template(
        company_name, contact_name, contact_phone, contract_number, package_name
    )
    return await send_email(
        to=ADMIN_EMAIL,
        subject=f"[Polarad] 새 계약 신청 - {company_name}",
        mjml_content=mjml_content,
    )
