from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.schemas import NotificationResponse
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_session
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import List

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_service_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = 20,
    session: SessionManager = Depends(get_session),
    service: NotificationService = Depends(get_notification_service),
):
    return service.list_for_user(session.user_id, unread_only=unread_only, limit=limit)


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    session: SessionManager = Depends(get_session),
    service: NotificationService = Depends(get_notification_service),
):
    service.mark_read(session.user_id, notification_id)
    return {"success": True}


@router.post("/read-all")
async def mark_all_notifications_read(
    session: SessionManager = Depends(get_session),
    service: NotificationService = Depends(get_notification_service),
):
    return {"success": True, "updated": service.mark_all_read(session.user_id)}
