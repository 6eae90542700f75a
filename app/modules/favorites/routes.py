from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_service_supabase
from app.modules.favorites.schemas import ToggleFavoriteRequest, FavoriteStatusResponse, FavoriteResponse
from app.modules.favorites.service import FavoriteService
from app.core.dependencies import get_session
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import List

router = APIRouter(prefix="/favorites", tags=["favorites"])


def get_favorite_service(supabase: Client = Depends(get_service_supabase)) -> FavoriteService:
    return FavoriteService(supabase)


@router.post("", response_model=FavoriteStatusResponse)
async def toggle_favorite(
    body: ToggleFavoriteRequest,
    session: SessionManager = Depends(get_session),
    service: FavoriteService = Depends(get_favorite_service),
):
    return FavoriteStatusResponse(favorited=service.toggle(session.user_id, body.property_id))


@router.get("", response_model=FavoriteStatusResponse)
async def check_favorite(
    property_id: str = Query(...),
    session: SessionManager = Depends(get_session),
    service: FavoriteService = Depends(get_favorite_service),
):
    return FavoriteStatusResponse(favorited=service.is_favorited(session.user_id, property_id))


@router.get("/mine", response_model=List[FavoriteResponse])
async def my_favorites(
    session: SessionManager = Depends(get_session),
    service: FavoriteService = Depends(get_favorite_service),
):
    return service.list_for_user(session.user_id)
