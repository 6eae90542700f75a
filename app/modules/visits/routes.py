from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_service_supabase
from app.modules.visits.schemas import (
    ScheduleVisitRequest, VisitStatusRequest, ConfirmVisitRequest, VisitResponse, VisitActionResponse,
)
from app.modules.visits.service import VisitService
from app.core.dependencies import get_session, require_admin, get_client_ip
from app.modules.auth.session import SessionManager
from supabase import Client
from datetime import datetime
from typing import List, Optional

router = APIRouter(prefix="/visits", tags=["visits"])


def get_visit_service(supabase: Client = Depends(get_service_supabase)) -> VisitService:
    return VisitService(supabase)


@router.post("/schedule", response_model=VisitResponse, status_code=201)
async def schedule_visit(
    body: ScheduleVisitRequest,
    session: SessionManager = Depends(get_session),
    service: VisitService = Depends(get_visit_service),
):
    """Book a visit for the signed-in client"""
    return service.schedule(session.user_id, body)


@router.get("/mine", response_model=List[VisitResponse])
async def my_visits(
    session: SessionManager = Depends(get_session),
    service: VisitService = Depends(get_visit_service),
):
    return service.list_for_user(session.user_id)


@router.get("", response_model=List[VisitResponse])
async def list_visits(
    status: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    session: SessionManager = Depends(require_admin),
    service: VisitService = Depends(get_visit_service),
):
    return service.list_visits(status=status, date_from=date_from, date_to=date_to)


@router.post("/status", response_model=VisitActionResponse)
async def update_visit_status(
    body: VisitStatusRequest,
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: VisitService = Depends(get_visit_service),
):
    return service.update_status(
        body.visit_id,
        body.status,
        session.user_id,
        cancellation_reason=body.cancellation_reason,
        ip_address=get_client_ip(request),
    )


@router.post("/confirm", response_model=VisitActionResponse)
async def confirm_visit(
    body: ConfirmVisitRequest,
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: VisitService = Depends(get_visit_service),
):
    return service.confirm(body.visit_id, session.user_id, ip_address=get_client_ip(request))


@router.delete("/{visit_id}")
async def delete_visit(
    visit_id: str,
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: VisitService = Depends(get_visit_service),
):
    service.delete(visit_id, session.user_id, ip_address=get_client_ip(request))
    return {"success": True}
