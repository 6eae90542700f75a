from supabase import Client
from app.modules.notifications.schemas import NotificationResponse
from app.core.roles import ADMIN_ROLES
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

ADMIN_ROLE_NAMES = [role.value for role in ADMIN_ROLES]


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_active_admin_ids(self) -> List[str]:
        result = self.supabase.table("profiles")\
            .select("id")\
            .in_("role", ADMIN_ROLE_NAMES)\
            .eq("is_active", True)\
            .execute()
        return [row["id"] for row in (result.data or [])]

    def notify_admins(
        self,
        type: str,
        title: str,
        message: str,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Create one notification per active admin. Non-fatal: returns the number created."""
        try:
            admin_ids = self.get_active_admin_ids()
            if not admin_ids:
                return 0
            rows = [
                {
                    "user_id": admin_id,
                    "type": type,
                    "title": title,
                    "message": message,
                    "link": link,
                    "read": False,
                    "metadata": metadata or {},
                }
                for admin_id in admin_ids
            ]
            self.supabase.table("notifications").insert(rows).execute()
            return len(rows)
        except Exception as e:
            logger.error(f"Error creating admin notifications: {e}")
            return 0

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 20) -> List[NotificationResponse]:
        try:
            query = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)
            if unread_only:
                query = query.eq("read", False)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return [NotificationResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Notification not found")
        return True

    def mark_all_read(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("user_id", user_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
