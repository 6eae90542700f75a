from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_service_supabase
from app.modules.crm.schemas import BoardResponse, MoveLeadRequest, MoveResult
from app.modules.crm.service import CRMService
from app.modules.leads.schemas import LeadResponse
from app.modules.leads.service import LeadService
from app.core.dependencies import require_admin, get_client_ip
from app.modules.auth.session import SessionManager
from supabase import Client

router = APIRouter(prefix="/crm", tags=["crm"])


def get_crm_service(supabase: Client = Depends(get_service_supabase)) -> CRMService:
    return CRMService(supabase)


@router.get("/board", response_model=BoardResponse)
async def get_board(
    session: SessionManager = Depends(require_admin),
    service: CRMService = Depends(get_crm_service),
):
    return service.get_board()


@router.get("/leads/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: str,
    session: SessionManager = Depends(require_admin),
    supabase: Client = Depends(get_service_supabase),
):
    return LeadService(supabase).get_lead(lead_id)


@router.post("/leads/{lead_id}/move", response_model=MoveResult)
async def move_lead(
    lead_id: str,
    body: MoveLeadRequest,
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: CRMService = Depends(get_crm_service),
):
    """Move a lead to another pipeline column"""
    return service.move_lead(lead_id, body.status, session.user_id, ip_address=get_client_ip(request))
