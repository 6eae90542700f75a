"""Inline HTML e-mail templates. Every interpolated value is escaped."""

from html import escape
from typing import Optional

from app.config import settings

_HEADER = """
<div style="background-color: #0a0a0a; padding: 30px; text-align: center;">
  <h1 style="color: #eab308; margin: 0; font-size: 28px;">{company}</h1>
  <p style="color: #888; margin: 10px 0 0 0; font-size: 14px;">{subtitle}</p>
</div>
"""

_FOOTER = """
<div style="background-color: #f9fafb; padding: 20px 30px; text-align: center; color: #9ca3af; font-size: 12px;">
  {company} &middot; {phone}
</div>
"""


def _wrap(subtitle: str, body: str) -> str:
    company = escape(settings.company_name)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\"></head>"
        "<body style=\"margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f5f5f5;\">"
        "<div style=\"max-width: 600px; margin: 0 auto; background-color: #ffffff;\">"
        + _HEADER.format(company=company, subtitle=escape(subtitle))
        + f"<div style=\"padding: 40px 30px;\">{body}</div>"
        + _FOOTER.format(company=company, phone=escape(settings.company_phone))
        + "</div></body></html>"
    )


def _row(label: str, value: str) -> str:
    return (
        "<tr>"
        f"<td style=\"padding: 12px 0; border-bottom: 1px solid #eee; color: #666; width: 120px;\">{label}</td>"
        f"<td style=\"padding: 12px 0; border-bottom: 1px solid #eee; color: #0a0a0a;\">{value}</td>"
        "</tr>"
    )


def new_lead_email(
    name: str,
    email: str,
    phone: Optional[str] = None,
    message: Optional[str] = None,
    property_title: Optional[str] = None,
    property_ref: Optional[str] = None,
) -> str:
    parts = ["<h2 style=\"color: #0a0a0a; margin: 0 0 20px 0; font-size: 22px;\">Novo Pedido de Contacto</h2>"]
    if property_title:
        ref = f"<br><strong>Ref:</strong> {escape(property_ref)}" if property_ref else ""
        parts.append(
            "<div style=\"background-color: #fef9c3; border-left: 4px solid #eab308; padding: 15px; margin-bottom: 25px;\">"
            f"<p style=\"margin: 0; color: #854d0e; font-size: 14px;\"><strong>Imóvel:</strong> {escape(property_title)}{ref}</p>"
            "</div>"
        )
    rows = [
        _row("Nome:", escape(name)),
        _row("Email:", f"<a href=\"mailto:{escape(email)}\" style=\"color: #eab308;\">{escape(email)}</a>"),
    ]
    if phone:
        rows.append(_row("Telefone:", f"<a href=\"tel:{escape(phone)}\" style=\"color: #eab308;\">{escape(phone)}</a>"))
    parts.append("<table style=\"width: 100%; border-collapse: collapse;\">" + "".join(rows) + "</table>")
    if message:
        parts.append(
            "<div style=\"margin-top: 25px;\">"
            "<p style=\"color: #666; margin: 0 0 10px 0; font-size: 14px;\">Mensagem:</p>"
            "<div style=\"background-color: #f9fafb; padding: 20px; border-radius: 8px; color: #374151;\">"
            f"{escape(message).replace(chr(10), '<br>')}</div></div>"
        )
    return _wrap("Novo Contacto Recebido", "".join(parts))


def visit_confirmation_email(
    client_name: str,
    property_title: str,
    property_address: str,
    visit_date: str,
    visit_time: str,
    agent_name: str,
    agent_phone: str,
) -> str:
    body = (
        f"<h2 style=\"color: #0a0a0a; margin: 0 0 20px 0; font-size: 22px;\">Olá {escape(client_name)},</h2>"
        "<p style=\"color: #374151;\">A sua visita foi confirmada. Seguem os detalhes:</p>"
        "<table style=\"width: 100%; border-collapse: collapse;\">"
        + _row("Imóvel:", escape(property_title))
        + _row("Morada:", escape(property_address))
        + _row("Data:", escape(visit_date))
        + _row("Hora:", escape(visit_time))
        + _row("Consultor:", escape(agent_name))
        + _row("Contacto:", f"<a href=\"tel:{escape(agent_phone)}\" style=\"color: #eab308;\">{escape(agent_phone)}</a>")
        + "</table>"
        "<p style=\"color: #374151; margin-top: 25px;\">Caso precise de reagendar, responda a este email ou ligue-nos.</p>"
    )
    return _wrap("Confirmação de Visita", body)
