"""Append-only audit log writer. Failures are logged, never raised."""

import enum
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from app.modules.audit.schemas import AuditLogResponse

logger = logging.getLogger(__name__)

_ACTION_LEN = 32
_ENTITY_TYPE_LEN = 32
_IP_LEN = 64
_USER_AGENT_LEN = 500
_DETAILS_LEN = 10_000


def _sanitize_value(v: Any) -> Any:
    """Convert to a JSON-serializable value so the insert never fails on encoding."""
    if v is None or isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, enum.Enum):
        return getattr(v, "value", str(v))
    if isinstance(v, dict):
        return {str(k): _sanitize_value(x) for k, x in v.items()}
    if isinstance(v, (list, tuple, set)):
        return [_sanitize_value(x) for x in v]
    return str(v)


def sanitize_values(values: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if values is None:
        return None
    return {str(k): _sanitize_value(v) for k, v in values.items()}


class AuditService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        *,
        user_id: Optional[str] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        details: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """Insert one audit row. Returns False instead of raising on failure."""
        entry = {
            "user_id": user_id,
            "action": (action or "")[:_ACTION_LEN],
            "entity_type": (entity_type or "")[:_ENTITY_TYPE_LEN],
            "entity_id": entity_id,
            "old_values": sanitize_values(old_values),
            "new_values": sanitize_values(new_values),
            "details": details[:_DETAILS_LEN] if details else None,
            "ip_address": ip_address[:_IP_LEN] if ip_address else None,
            "user_agent": str(user_agent)[:_USER_AGENT_LEN] if user_agent else None,
        }
        try:
            self.supabase.table("audit_logs").insert(entry).execute()
            return True
        except Exception as e:
            logger.error(f"Audit log insert failed ({action} {entity_type} {entity_id}): {e}")
            return False

    def list_logs(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditLogResponse]:
        try:
            query = self.supabase.table("audit_logs").select("*")
            if entity_type:
                query = query.eq("entity_type", entity_type)
            if entity_id:
                query = query.eq("entity_id", entity_id)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [AuditLogResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
