from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from app.database.supabase_client import get_service_supabase
from app.modules.leads.schemas import (
    ContactRequest, SellPropertyLeadRequest, CompleteEvaluationRequest, LeadCreatedResponse,
)
from app.modules.leads.service import LeadService, LeadValidationError, DuplicateLeadError, DUPLICATE_LEAD_MESSAGE
from app.core.dependencies import get_client_ip, get_user_agent
from supabase import Client

router = APIRouter(tags=["leads"])


def get_lead_service(supabase: Client = Depends(get_service_supabase)) -> LeadService:
    return LeadService(supabase)


def _intake_error_response(error: Exception) -> JSONResponse:
    if isinstance(error, DuplicateLeadError):
        return JSONResponse(status_code=409, content={"success": False, "error": DUPLICATE_LEAD_MESSAGE})
    return JSONResponse(status_code=400, content={"success": False, "errors": error.errors})


@router.post("/contact", response_model=LeadCreatedResponse)
async def submit_contact(
    body: ContactRequest,
    request: Request,
    service: LeadService = Depends(get_lead_service),
):
    """Public contact form"""
    lead_id = service.create_contact_lead(
        body, ip_address=get_client_ip(request), user_agent=get_user_agent(request)
    )
    return LeadCreatedResponse(message="Mensagem enviada com sucesso", lead_id=lead_id)


@router.post("/leads/sell-property", response_model=LeadCreatedResponse, status_code=201)
async def submit_sell_property(
    body: SellPropertyLeadRequest,
    request: Request,
    service: LeadService = Depends(get_lead_service),
):
    """Homepage seller wizard"""
    try:
        intake = service.build_sell_property_intake(
            body, ip_address=get_client_ip(request), user_agent=get_user_agent(request)
        )
        lead_id = service.create_seller_lead(intake)
    except (LeadValidationError, DuplicateLeadError) as e:
        return _intake_error_response(e)
    return LeadCreatedResponse(message="Pedido recebido com sucesso", lead_id=lead_id)


@router.post("/leads/complete-evaluation", response_model=LeadCreatedResponse, status_code=201)
async def submit_complete_evaluation(
    body: CompleteEvaluationRequest,
    request: Request,
    service: LeadService = Depends(get_lead_service),
):
    """Full property evaluation wizard"""
    try:
        intake = service.build_complete_evaluation_intake(
            body, ip_address=get_client_ip(request), user_agent=get_user_agent(request)
        )
        lead_id = service.create_seller_lead(intake)
    except (LeadValidationError, DuplicateLeadError) as e:
        return _intake_error_response(e)
    return LeadCreatedResponse(message="Pedido de avaliação recebido com sucesso", lead_id=lead_id)
