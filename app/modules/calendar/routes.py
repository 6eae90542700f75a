from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.calendar.schemas import (
    GoogleAuthUrlResponse, CalendarStatusResponse, CalendarEventUpdateRequest, CalendarSyncResponse,
    CalendarBulkSyncResponse,
)
from app.modules.calendar.service import GoogleCalendarService, GoogleOAuthError, encode_state, get_google_auth_url
from app.core.dependencies import require_admin, get_session
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar"])

SETTINGS_PAGE = "/admin/definicoes"


def get_calendar_service(supabase: Client = Depends(get_service_supabase)) -> GoogleCalendarService:
    return GoogleCalendarService(supabase)


def _settings_redirect(query: str) -> RedirectResponse:
    return RedirectResponse(url=f"{settings.site_url.rstrip('/')}{SETTINGS_PAGE}?{query}", status_code=302)


@router.get("/auth/google/login", response_model=GoogleAuthUrlResponse)
async def google_login(
    session: SessionManager = Depends(require_admin),
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    """Consent URL for connecting the admin's Google Calendar"""
    if not service.is_configured:
        raise HTTPException(status_code=503, detail="Google Calendar is not configured")
    return GoogleAuthUrlResponse(auth_url=get_google_auth_url(encode_state(session.user_id)))


@router.get("/auth/google/callback")
async def google_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    if error:
        return _settings_redirect("error=google_auth_denied")
    if not code:
        return _settings_redirect("error=no_code")
    if not state:
        return _settings_redirect("error=invalid_state")
    try:
        service.complete_authorization(code, state)
    except GoogleOAuthError as e:
        return _settings_redirect(f"error={e}")
    except Exception as e:
        logger.error(f"Google OAuth error: {e}")
        return _settings_redirect("error=unknown")
    return _settings_redirect("success=google_connected")


@router.get("/auth/google/status", response_model=CalendarStatusResponse)
async def google_status(
    session: SessionManager = Depends(get_session),
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    return service.get_status(session.user_id)


@router.post("/auth/google/disconnect")
async def google_disconnect(
    session: SessionManager = Depends(get_session),
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    service.disconnect(session.user_id)
    return {"success": True}


@router.patch("/calendar/event", response_model=CalendarSyncResponse)
async def update_calendar_event(
    body: CalendarEventUpdateRequest,
    session: SessionManager = Depends(require_admin),
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    """Update or, for cancelled visits, remove the consultant's event"""
    try:
        return service.sync_visit_update(
            body.visit_id, body.consultant_id, scheduled_at=body.scheduled_at, status=body.status
        )
    except Exception as e:
        logger.error(f"Error updating calendar event: {e}")
        raise HTTPException(status_code=500, detail="Failed to update calendar event")


@router.delete("/calendar/event", response_model=CalendarSyncResponse)
async def delete_calendar_event(
    visit_id: str = Query(..., alias="visitId"),
    consultant_id: str = Query(..., alias="consultantId"),
    session: SessionManager = Depends(require_admin),
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    try:
        return service.sync_visit_delete(visit_id, consultant_id)
    except Exception as e:
        logger.error(f"Error deleting calendar event: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete calendar event")


@router.post("/calendar/sync", response_model=CalendarBulkSyncResponse)
async def sync_calendar(
    session: SessionManager = Depends(require_admin),
    service: GoogleCalendarService = Depends(get_calendar_service),
):
    """Add upcoming visits that have no calendar event yet"""
    return service.sync_upcoming_visits(session.user_id)
