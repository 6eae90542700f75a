"""Per-request authentication session with an explicit init/dispose lifecycle."""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from supabase import Client

from app.core.roles import Role, is_admin_role, resolve_role, role_from_claims
from app.modules.auth.service import AuthService

logger = logging.getLogger(__name__)


class SessionManager:
    """Holds the authenticated user, lazily loaded profile and resolved role.

    Consumers receive the manager by reference (FastAPI dependency) instead of
    reaching for module state.
    """

    def __init__(self, auth_service: AuthService, supabase: Client):
        self._auth_service = auth_service
        self._supabase = supabase
        self._user: Optional[Dict[str, Any]] = None
        self._profile: Optional[Dict[str, Any]] = None
        self._profile_loaded = False
        self._role: Optional[Role] = None

    def init(self, token: str) -> "SessionManager":
        self._user = self._auth_service.get_current_user(token)
        self._role = None
        self._profile = None
        self._profile_loaded = False
        return self

    def dispose(self) -> None:
        self._user = None
        self._profile = None
        self._profile_loaded = False
        self._role = None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def user(self) -> Dict[str, Any]:
        if self._user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        return self._user

    @property
    def user_id(self) -> str:
        return self.user["id"]

    @property
    def profile(self) -> Optional[Dict[str, Any]]:
        if not self._profile_loaded:
            self._profile = self._load_profile()
            self._profile_loaded = True
        return self._profile

    @property
    def role(self) -> Role:
        if self._role is None:
            # Only hit the profiles table when the JWT has no role claim
            if role_from_claims(self.user) is not None:
                self._role = resolve_role(self.user)
            else:
                self._role = resolve_role(self.user, self.profile)
        return self._role

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    def _load_profile(self) -> Optional[Dict[str, Any]]:
        try:
            result = self._supabase.table("profiles")\
                .select("*")\
                .eq("id", self.user_id)\
                .maybe_single()\
                .execute()
            return result.data if result and result.data else None
        except Exception as e:
            logger.error(f"Error loading profile for {self.user_id}: {e}")
            return None
