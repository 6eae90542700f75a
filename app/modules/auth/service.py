import hashlib
import logging
import threading
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TokenCache:
    """Bounded TTL cache of auth lookups, keyed by a hash of the access token."""

    def __init__(self, ttl_seconds: float = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            user_data, expires = entry
            if time.monotonic() >= expires:
                del self._entries[key]
                return None
            return user_data

    def put(self, token: str, user_data: Dict[str, Any]) -> None:
        now = time.monotonic()
        with self._lock:
            if len(self._entries) >= self.max_size:
                self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
            if len(self._entries) < self.max_size:
                self._entries[self._key(token)] = (user_data, now + self.ttl_seconds)

    def discard(self, token: str) -> None:
        with self._lock:
            self._entries.pop(self._key(token), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_token_cache = TokenCache()


def clear_auth_cache() -> None:
    """Forget cached lookups, e.g. after a role change."""
    _token_cache.clear()


def _is_auth_error(message: str) -> bool:
    lowered = message.lower()
    return "jwt" in lowered or "expired" in lowered or "invalid" in lowered


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign up with Supabase Auth; the profile row starts with role ``user``."""
        metadata = {
            key: value
            for key, value in (
                ("first_name", register_data.first_name),
                ("last_name", register_data.last_name),
                ("phone", register_data.phone),
            )
            if value
        }
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata},
            })
        except Exception as e:
            message = str(e).lower()
            if "already registered" in message or "already exists" in message:
                raise HTTPException(status_code=400, detail="Este email já está registado")
            logger.error(f"Sign up failed for {register_data.email}: {e}")
            raise HTTPException(status_code=500, detail="Registration failed")

        if not auth_response or not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")

        user = auth_response.user
        email = user.email or register_data.email
        try:
            self.supabase.table("profiles").upsert({
                "id": user.id,
                "email": email,
                **metadata,
                "role": "user",
                "is_active": True,
            }, on_conflict="id").execute()
        except Exception as e:
            # The on-signup database trigger may already have created the row
            logger.warning(f"Profile upsert after sign up failed for {user.id}: {e}")

        return RegisterResponse(user_id=user.id, email=email, message="User registered successfully")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            if _is_auth_error(str(e)) or "credentials" in str(e).lower():
                raise HTTPException(status_code=401, detail="Email ou palavra-passe inválidos")
            logger.error(f"Login failed for {login_data.email}: {e}")
            raise HTTPException(status_code=500, detail="Login failed")

        if not auth_response or not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=getattr(auth_response.session, "refresh_token", None),
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email,
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Auth user for an access token as a plain dict (id, email, metadata)."""
        cached = _token_cache.get(token)
        if cached is not None:
            return cached

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            if not _is_auth_error(str(e)):
                logger.warning(f"Auth lookup failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        _token_cache.put(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        _token_cache.discard(token)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
