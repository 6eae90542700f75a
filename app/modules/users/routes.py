from fastapi import APIRouter, Depends, Query, Request
from app.database.supabase_client import get_service_supabase
from app.modules.users.schemas import ProfileUpdate, RoleUpdate, ActiveUpdate, UserResponse, UserListResponse
from app.modules.users.service import UserService
from app.core.dependencies import get_session, require_admin, require_super_admin, get_client_ip
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_service_supabase)) -> UserService:
    return UserService(supabase)


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: SessionManager = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.list_users(role=role, search=search, limit=limit, offset=offset)


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdate,
    session: SessionManager = Depends(get_session),
    service: UserService = Depends(get_user_service),
):
    return service.update_profile(session.user_id, body)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    session: SessionManager = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.get_user_by_id(user_id)


@router.put("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    body: RoleUpdate,
    request: Request,
    session: SessionManager = Depends(require_super_admin),
    service: UserService = Depends(get_user_service),
):
    """Grant or revoke admin roles (super admin only)"""
    return service.set_role(user_id, body.role, session.user_id, ip_address=get_client_ip(request))


@router.put("/{user_id}/active", response_model=UserResponse)
async def update_user_active(
    user_id: str,
    body: ActiveUpdate,
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.set_active(user_id, body.is_active, session.user_id, ip_address=get_client_ip(request))
