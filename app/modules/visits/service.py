from supabase import Client
from app.config import settings
from app.modules.visits.schemas import (
    VisitResponse, VisitActionResponse, ScheduleVisitRequest, ADMIN_SETTABLE_STATUSES, VISIT_STATUSES,
)
from app.modules.audit.service import AuditService
from app.modules.notifications.service import NotificationService
from app.modules.calendar.service import GoogleCalendarService, build_visit_event
from app.modules.email import service as email_service
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

VISIT_DETAIL_SELECT = "*, leads(name, email, phone), properties(title, reference, address, municipality, district)"

_WEEKDAYS = ["segunda-feira", "terça-feira", "quarta-feira", "quinta-feira", "sexta-feira", "sábado", "domingo"]
_MONTHS = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_visit_datetime(value: Any, tz_name: Optional[str] = None) -> Tuple[str, str]:
    """("terça-feira, 4 de março de 2025", "15:30") in the office time zone"""
    local = _parse_datetime(value).astimezone(ZoneInfo(tz_name or settings.calendar_time_zone))
    date_label = f"{_WEEKDAYS[local.weekday()]}, {local.day} de {_MONTHS[local.month - 1]} de {local.year}"
    return date_label, local.strftime("%H:%M")


def format_property_address(prop: Optional[Dict[str, Any]]) -> str:
    prop = prop or {}
    parts = [prop.get("address"), prop.get("municipality"), prop.get("district")]
    return ", ".join(p for p in parts if p) or "Portugal"


class VisitService:
    def __init__(self, supabase: Client, calendar: Optional[GoogleCalendarService] = None):
        self.supabase = supabase
        self.audit = AuditService(supabase)
        self.notifications = NotificationService(supabase)
        self.calendar = calendar or GoogleCalendarService(supabase)

    def schedule(self, user_id: str, body: ScheduleVisitRequest) -> VisitResponse:
        try:
            result = self.supabase.table("visits").insert({
                "property_id": body.property_id,
                "user_id": user_id,
                "scheduled_at": body.scheduled_at.isoformat(),
                "notes": body.notes or None,
                "status": "pending",
            }).execute()
        except Exception as e:
            logger.error(f"Visit insert error: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to schedule visit")

        visit = result.data[0]
        date_label, time_label = format_visit_datetime(body.scheduled_at)
        self.notifications.notify_admins(
            type="visit",
            title="Novo Pedido de Visita",
            message=f"Pedido de visita para {date_label} às {time_label}",
            link="/admin/visitas",
            metadata={"visit_id": visit["id"], "property_id": body.property_id},
        )
        return VisitResponse(**visit)

    def list_for_user(self, user_id: str) -> List[VisitResponse]:
        try:
            result = self.supabase.table("visits")\
                .select("*, properties(title, reference, address, municipality, district)")\
                .eq("user_id", user_id)\
                .order("scheduled_at", desc=True)\
                .execute()
            return [VisitResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_visits(
        self,
        status: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[VisitResponse]:
        if status and status not in VISIT_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status")
        try:
            query = self.supabase.table("visits").select(VISIT_DETAIL_SELECT)
            if status:
                query = query.eq("status", status)
            if date_from:
                query = query.gte("scheduled_at", date_from.isoformat())
            if date_to:
                query = query.lte("scheduled_at", date_to.isoformat())
            result = query.order("scheduled_at").execute()
            return [VisitResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_visit(self, visit_id: str, select: str = "*") -> Dict[str, Any]:
        try:
            result = self.supabase.table("visits")\
                .select(select)\
                .eq("id", visit_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Visit not found")
        return result.data

    def update_status(
        self,
        visit_id: str,
        status: str,
        user_id: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> VisitActionResponse:
        if status not in ADMIN_SETTABLE_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status")

        visit = self._get_visit(visit_id)
        now = datetime.now(timezone.utc).isoformat()
        update: Dict[str, Any] = {"status": status}
        if status == "confirmed":
            update["confirmed_at"] = now
        elif status == "completed":
            update["completed_at"] = now
        elif status == "cancelled":
            update["cancelled_at"] = now
            update["cancellation_reason"] = cancellation_reason

        try:
            self.supabase.table("visits").update(update).eq("id", visit_id).execute()
        except Exception as e:
            logger.error(f"Visit status update error: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if status == "cancelled" and visit.get("google_event_id"):
            consultant_id = visit.get("assigned_to") or user_id
            try:
                if consultant_id:
                    self.calendar.remove_visit_event(visit_id, consultant_id, visit["google_event_id"])
            except Exception as e:
                logger.error(f"Calendar event removal failed for visit {visit_id}: {e}")

        self.audit.record(
            "status_change", "visit", visit_id,
            user_id=user_id,
            old_values={"status": visit.get("status")},
            new_values={"status": status},
            ip_address=ip_address,
        )
        return VisitActionResponse(status=status)

    def confirm(
        self,
        visit_id: str,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> VisitActionResponse:
        """Confirm a visit, e-mail the client and put it on the consultant's calendar"""
        visit = self._get_visit(visit_id, VISIT_DETAIL_SELECT)
        now = datetime.now(timezone.utc).isoformat()
        try:
            self.supabase.table("visits")\
                .update({"status": "confirmed", "confirmed_at": now})\
                .eq("id", visit_id)\
                .execute()
        except Exception as e:
            logger.error(f"Visit update error: {e}")
            raise HTTPException(status_code=500, detail="Failed to update visit status")

        lead = visit.get("leads") or {}
        prop = visit.get("properties") or {}
        date_label, time_label = format_visit_datetime(visit["scheduled_at"])

        email_sent = False
        if lead.get("email"):
            email_result = email_service.send_visit_confirmation(
                client_email=lead["email"],
                client_name=lead.get("name") or "Cliente",
                property_title=prop.get("title") or "Imóvel",
                property_address=format_property_address(prop),
                visit_date=date_label,
                visit_time=time_label,
                agent_name=f"Equipa {settings.company_name}",
                agent_phone=settings.company_phone,
            )
            email_sent = email_result.success
            if not email_result.success:
                logger.error(f"Visit confirmation email failed: {email_result.error}")

        event_id = self._create_calendar_event(visit, lead, prop, visit.get("assigned_to") or user_id)

        self.audit.record(
            "status_change", "visit", visit_id,
            user_id=user_id,
            old_values={"status": visit.get("status")},
            new_values={"status": "confirmed"},
            ip_address=ip_address,
        )
        return VisitActionResponse(
            status="confirmed",
            message="Visita confirmada e email enviado ao cliente." if email_sent else "Visita confirmada.",
            email_sent=email_sent,
            calendar_event_id=event_id,
        )

    def _create_calendar_event(
        self,
        visit: Dict[str, Any],
        lead: Dict[str, Any],
        prop: Dict[str, Any],
        consultant_id: Optional[str],
    ) -> Optional[str]:
        if not consultant_id or visit.get("google_event_id"):
            return visit.get("google_event_id")
        try:
            if not self.calendar.is_connected(consultant_id):
                return None
            event = build_visit_event(
                _parse_datetime(visit["scheduled_at"]),
                property_title=prop.get("title"),
                property_reference=prop.get("reference"),
                property_address=format_property_address(prop),
                client_name=lead.get("name"),
                client_email=lead.get("email"),
                client_phone=lead.get("phone"),
                notes=visit.get("notes"),
            )
            event_id = self.calendar.create_event(consultant_id, event)
            if event_id:
                self.supabase.table("visits")\
                    .update({"google_event_id": event_id})\
                    .eq("id", visit["id"])\
                    .execute()
            return event_id
        except Exception as e:
            logger.error(f"Calendar sync failed for visit {visit.get('id')}: {e}")
            return None

    def delete(self, visit_id: str, user_id: Optional[str] = None, ip_address: Optional[str] = None) -> None:
        visit = self._get_visit(visit_id)
        if visit.get("google_event_id"):
            consultant_id = visit.get("assigned_to") or user_id
            try:
                if consultant_id:
                    self.calendar.remove_visit_event(visit_id, consultant_id, visit["google_event_id"])
            except Exception as e:
                logger.error(f"Calendar event removal failed for visit {visit_id}: {e}")
        try:
            self.supabase.table("visits").delete().eq("id", visit_id).execute()
        except Exception as e:
            logger.error(f"Visit delete error: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        self.audit.record(
            "delete", "visit", visit_id,
            user_id=user_id,
            old_values={"status": visit.get("status"), "scheduled_at": visit.get("scheduled_at")},
            ip_address=ip_address,
        )
