from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, SessionResponse
)
from app.modules.auth.service import AuthService
from app.modules.auth.session import SessionManager
from app.core.dependencies import get_auth_service, get_access_token, get_session
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: Optional[str] = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    if token:
        service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=SessionResponse)
async def get_current_user(session: SessionManager = Depends(get_session)):
    """Current user with resolved role and profile (for frontend UI)."""
    return SessionResponse(
        id=session.user_id,
        email=session.user.get("email"),
        role=session.role.value,
        is_admin=session.is_admin,
        profile=session.profile,
    )
