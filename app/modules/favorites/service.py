from supabase import Client
from app.modules.favorites.schemas import FavoriteResponse
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def is_favorited(self, user_id: str, property_id: str) -> bool:
        try:
            result = self.supabase.table("favorites")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("property_id", property_id)\
                .maybe_single()\
                .execute()
            return bool(result and result.data)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle(self, user_id: str, property_id: str) -> bool:
        """Add or remove a favorite. Returns the new state."""
        favorited = self.is_favorited(user_id, property_id)
        try:
            if favorited:
                self.supabase.table("favorites")\
                    .delete()\
                    .eq("user_id", user_id)\
                    .eq("property_id", property_id)\
                    .execute()
                return False
            self.supabase.table("favorites")\
                .insert({"user_id": user_id, "property_id": property_id})\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Favorite toggle failed for {user_id}/{property_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_for_user(self, user_id: str) -> List[FavoriteResponse]:
        try:
            result = self.supabase.table("favorites")\
                .select("*, properties(*, property_images(*))")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [FavoriteResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
