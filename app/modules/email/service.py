"""Transactional e-mail via the Resend REST API."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import httpx

from app.config import settings
from app.modules.email import templates

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


def send_email(
    to: Union[str, List[str]],
    subject: str,
    html: str,
    reply_to: Optional[str] = None,
) -> EmailResult:
    """Send one message. Never raises: callers treat e-mail as a side effect."""
    if not settings.resend_api_key:
        logger.info(f"Email service not configured - skipping email to {to} ({subject})")
        return EmailResult(success=False, error="Email service not configured")

    payload = {
        "from": settings.email_from,
        "to": to if isinstance(to, list) else [to],
        "subject": subject,
        "html": html,
    }
    if reply_to:
        payload["reply_to"] = reply_to

    try:
        with httpx.Client(timeout=settings.http_timeout_seconds) as client:
            r = client.post(
                settings.resend_api_url,
                headers={"Authorization": f"Bearer {settings.resend_api_key}"},
                json=payload,
            )
        if 200 <= r.status_code < 300:
            try:
                message_id = (r.json() or {}).get("id")
            except ValueError:
                message_id = None
            logger.info(f"Email sent: to={to} subject={subject} id={message_id}")
            return EmailResult(success=True, id=message_id)
        logger.error(f"Email send failed: status={r.status_code} to={to} body={r.text[:500]}")
        return EmailResult(success=False, error=f"HTTP {r.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"Email send exception: to={to} error={type(e).__name__}: {e}")
        return EmailResult(success=False, error=str(e))


def notify_new_lead(
    name: str,
    email: str,
    phone: Optional[str] = None,
    message: Optional[str] = None,
    property_title: Optional[str] = None,
    property_ref: Optional[str] = None,
) -> EmailResult:
    subject = f"Novo contacto: {name}"
    if property_ref:
        subject += f" - {property_ref}"
    html = templates.new_lead_email(
        name=name,
        email=email,
        phone=phone,
        message=message,
        property_title=property_title,
        property_ref=property_ref,
    )
    return send_email(settings.admin_email, subject, html, reply_to=email)


def send_visit_confirmation(
    client_email: str,
    client_name: str,
    property_title: str,
    property_address: str,
    visit_date: str,
    visit_time: str,
    agent_name: str,
    agent_phone: str,
) -> EmailResult:
    html = templates.visit_confirmation_email(
        client_name=client_name,
        property_title=property_title,
        property_address=property_address,
        visit_date=visit_date,
        visit_time=visit_time,
        agent_name=agent_name,
        agent_phone=agent_phone,
    )
    return send_email(client_email, f"Visita confirmada - {property_title}", html)
