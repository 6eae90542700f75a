from supabase import Client
from app.modules.users.schemas import ProfileUpdate, UserResponse, UserListResponse
from app.modules.audit.service import AuditService
from app.modules.auth.service import clear_auth_cache
from app.core.roles import Role
from datetime import datetime, timezone
from typing import Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.audit = AuditService(supabase)

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse(**result.data)

    def list_users(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> UserListResponse:
        try:
            query = self.supabase.table("profiles").select("*", count="exact")
            if role:
                query = query.eq("role", role)
            if search:
                term = search.replace(",", " ").strip()
                query = query.or_(f"email.ilike.%{term}%,first_name.ilike.%{term}%,last_name.ilike.%{term}%")
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            rows = result.data or []
            return UserListResponse(
                items=[UserResponse(**row) for row in rows],
                total=result.count if result.count is not None else len(rows),
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, data: ProfileUpdate) -> UserResponse:
        """Update the caller's own profile"""
        update_data = data.model_dump(exclude_none=True)
        if not update_data:
            return self.get_user_by_id(user_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse(**result.data[0])

    def set_role(
        self,
        user_id: str,
        role: Role,
        actor_id: str,
        ip_address: Optional[str] = None,
    ) -> UserResponse:
        if user_id == actor_id and role != Role.SUPER_ADMIN:
            raise HTTPException(status_code=400, detail="You cannot remove your own super admin role")

        current = self.get_user_by_id(user_id)
        if current.role == role:
            return current

        try:
            result = self.supabase.table("profiles")\
                .update({"role": role.value, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")

        try:
            self.supabase.auth.admin.update_user_by_id(user_id, {"app_metadata": {"role": role.value}})
        except Exception as e:
            logger.warning(f"Could not sync role claim for {user_id}: {e}")
        clear_auth_cache()

        self.audit.record(
            "role_change", "user", user_id,
            user_id=actor_id,
            old_values={"role": current.role},
            new_values={"role": role},
            ip_address=ip_address,
        )
        return UserResponse(**result.data[0])

    def set_active(
        self,
        user_id: str,
        is_active: bool,
        actor_id: str,
        ip_address: Optional[str] = None,
    ) -> UserResponse:
        if user_id == actor_id and not is_active:
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
        try:
            result = self.supabase.table("profiles")\
                .update({"is_active": is_active, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")

        self.audit.record(
            "update", "user", user_id,
            user_id=actor_id,
            new_values={"is_active": is_active},
            ip_address=ip_address,
        )
        return UserResponse(**result.data[0])
