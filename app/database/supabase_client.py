import logging
from supabase import create_client, Client
from app.config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Process-wide Supabase clients, created on first use."""

    _anon: Client = None
    _service: Client = None
    _warned_fallback = False

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.supabase_url and settings.supabase_key)

    @classmethod
    def anon(cls) -> Client:
        if cls._anon is None:
            if not cls.is_configured():
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
            cls._anon = create_client(settings.supabase_url, settings.supabase_key)
        return cls._anon

    @classmethod
    def service(cls) -> Client:
        """Service-role client (bypasses RLS) for public intake and admin writes.

        Falls back to the anon client when no service key is configured.
        """
        if cls._service is not None:
            return cls._service
        if settings.supabase_service_role_key:
            cls._service = create_client(settings.supabase_url, settings.supabase_service_role_key)
            return cls._service
        if not cls._warned_fallback:
            logger.warning("No service role key; writes run with the anon key and are subject to RLS")
            cls._warned_fallback = True
        return cls.anon()

    @classmethod
    def reset(cls):
        cls._anon = None
        cls._service = None
        cls._warned_fallback = False


def get_supabase() -> Client:
    return SupabaseClient.anon()


def get_service_supabase() -> Client:
    return SupabaseClient.service()
