from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_service_supabase
from app.modules.audit.schemas import AuditLogResponse
from app.modules.audit.service import AuditService
from app.core.dependencies import require_admin
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/audit", tags=["audit"])


def get_audit_service(supabase: Client = Depends(get_service_supabase)) -> AuditService:
    return AuditService(supabase)


@router.get("", response_model=List[AuditLogResponse])
async def list_audit_logs(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: SessionManager = Depends(require_admin),
    service: AuditService = Depends(get_audit_service),
):
    """Audit trail, newest first (admin only)"""
    return service.list_logs(entity_type=entity_type, entity_id=entity_id, user_id=user_id, limit=limit, offset=offset)
