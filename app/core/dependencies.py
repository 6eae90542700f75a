"""
Core dependencies for route protection and request metadata
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import Iterator, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "sb-access-token"


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Bearer header first, then the Supabase session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def get_session(
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
    supabase: Client = Depends(get_service_supabase),
) -> Iterator[SessionManager]:
    """Authenticated session for the duration of one request."""
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    session = SessionManager(auth_service, supabase)
    session.init(token)
    try:
        yield session
    finally:
        session.dispose()


def require_admin(session: SessionManager = Depends(get_session)) -> SessionManager:
    if not session.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return session


def require_super_admin(session: SessionManager = Depends(get_session)) -> SessionManager:
    if not session.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")
    return session


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.headers.get("x-real-ip") or None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent") or None
