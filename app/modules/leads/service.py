from supabase import Client
from app.config import settings
from app.modules.leads.schemas import ContactRequest, SellPropertyLeadRequest, CompleteEvaluationRequest
from app.modules.leads.validation import validate_email, validate_phone, sanitize_phone, location_label
from app.modules.audit.service import AuditService
from app.modules.notifications.service import NotificationService
from app.modules.email import service as email_service
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging
import time

logger = logging.getLogger(__name__)

LEAD_UPDATABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "message",
    "status",
    "notes",
    "tags",
    "assigned_to",
    "custom_fields",
)

DUPLICATE_LEAD_MESSAGE = "Já recebemos o seu pedido recentemente. Entraremos em contacto em breve."
SELL_WIZARD_SOURCE = "homepage_sell_wizard"
COMPLETE_EVALUATION_SOURCE = "complete_evaluation"


class LeadValidationError(Exception):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("Invalid lead submission")
        self.errors = errors


class DuplicateLeadError(Exception):
    def __init__(self, lead_id: str):
        super().__init__(DUPLICATE_LEAD_MESSAGE)
        self.lead_id = lead_id


@dataclass
class SellerLeadIntake:
    """Normalized seller-wizard submission ready to be stored."""
    source: str
    phone: str
    email: str
    name: Optional[str]
    message: str
    tags: List[str]
    custom_fields: Dict[str, Any]
    notification_title: str
    notification_message: str
    audit_values: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_contact_fields(errors: Dict[str, str], phone: Optional[str], email: Optional[str]) -> None:
    if phone and not validate_phone(phone):
        errors["phone"] = "Número de telefone inválido"
    if email and not validate_email(email):
        errors["email"] = "Endereço de email inválido"


def validate_sell_property(body: SellPropertyLeadRequest) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not body.property_type:
        errors["propertyType"] = "Tipo de imóvel é obrigatório"
    if not body.district:
        errors["district"] = "Distrito é obrigatório"
    if not body.municipality:
        errors["municipality"] = "Concelho é obrigatório"
    if not body.selling_stage:
        errors["sellingStage"] = "Fase de venda é obrigatória"
    if not body.estimated_value:
        errors["estimatedValue"] = "Valor estimado é obrigatório"
    if not body.contact_timing:
        errors["contactTiming"] = "Preferência de contacto é obrigatória"
    if not body.phone:
        errors["phone"] = "Número de telefone é obrigatório"
    _check_contact_fields(errors, body.phone, body.email)
    return errors


def validate_complete_evaluation(body: CompleteEvaluationRequest) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not body.property_type:
        errors["propertyType"] = "Tipo de imóvel é obrigatório"
    if not body.district:
        errors["district"] = "Distrito é obrigatório"
    if not body.municipality:
        errors["municipality"] = "Concelho é obrigatório"
    if not body.condition:
        errors["condition"] = "Estado do imóvel é obrigatório"
    if not body.selling_stage:
        errors["sellingStage"] = "Fase de venda é obrigatória"
    if not body.name:
        errors["name"] = "Nome é obrigatório"
    if not body.email:
        errors["email"] = "Email é obrigatório"
    if not body.phone:
        errors["phone"] = "Telefone é obrigatório"
    _check_contact_fields(errors, body.phone, body.email)
    return errors


class LeadService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.audit = AuditService(supabase)
        self.notifications = NotificationService(supabase)

    # -- contact form --------------------------------------------------------

    def create_contact_lead(
        self,
        body: ContactRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[str]:
        """Store a contact-form lead and e-mail the office. The e-mail goes out even if the insert fails."""
        if not body.name or not body.email:
            raise HTTPException(status_code=400, detail="Nome e email são obrigatórios")
        if not validate_email(body.email):
            raise HTTPException(status_code=400, detail="Email inválido")

        source = "property_page" if body.property_id else "contact_page"
        lead_id = None
        try:
            result = self.supabase.table("leads").insert({
                "name": body.name,
                "email": body.email,
                "phone": body.phone or None,
                "message": body.message or None,
                "property_id": body.property_id or None,
                "source": source,
                "status": "new",
                "ip_address": ip_address,
                "user_agent": user_agent,
            }).execute()
            if result.data:
                lead_id = result.data[0]["id"]
        except Exception as e:
            logger.error(f"Lead save error: {e}")

        email_result = email_service.notify_new_lead(
            name=body.name,
            email=body.email,
            phone=body.phone,
            message=body.message,
            property_title=body.property_title,
            property_ref=body.property_ref,
        )
        if not email_result.success:
            logger.error(f"Email notification failed: {email_result.error}")

        if lead_id:
            self.audit.record(
                "create", "lead", lead_id,
                new_values={"name": body.name, "email": body.email, "source": source},
                ip_address=ip_address,
                user_agent=user_agent,
            )
        return lead_id

    # -- seller wizards ----------------------------------------------------

    def build_sell_property_intake(
        self,
        body: SellPropertyLeadRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SellerLeadIntake:
        errors = validate_sell_property(body)
        if errors:
            raise LeadValidationError(errors)

        municipality = location_label(body.municipality)
        return SellerLeadIntake(
            source=SELL_WIZARD_SOURCE,
            phone=sanitize_phone(body.phone),
            # email is NOT NULL in the leads table
            email=body.email or f"seller_{int(time.time() * 1000)}@temp.covialvi.com",
            name=body.name or None,
            message=f"Proprietário interessado em vender {body.property_type} em {municipality}",
            tags=["seller", "homepage_wizard", body.selling_stage],
            custom_fields={
                "lead_type": "seller",
                "wizard_source": SELL_WIZARD_SOURCE,
                "quiz_answers": {
                    "property_type": body.property_type,
                    "district": body.district,
                    "district_label": location_label(body.district),
                    "municipality": body.municipality,
                    "municipality_label": municipality,
                    "selling_stage": body.selling_stage,
                    "estimated_value": body.estimated_value,
                    "contact_timing": body.contact_timing,
                },
                "submitted_at": _now_iso(),
            },
            notification_title="Novo Lead - Venda de Imóvel",
            notification_message=(
                f"{body.name or 'Proprietário'} quer vender {body.property_type} em {municipality}. "
                f"Fase: {body.selling_stage}"
            ),
            audit_values={
                "property_type": body.property_type,
                "location": f"{body.district}/{body.municipality}",
            },
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def build_complete_evaluation_intake(
        self,
        body: CompleteEvaluationRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SellerLeadIntake:
        errors = validate_complete_evaluation(body)
        if errors:
            raise LeadValidationError(errors)

        municipality = location_label(body.municipality)
        return SellerLeadIntake(
            source=COMPLETE_EVALUATION_SOURCE,
            phone=sanitize_phone(body.phone),
            email=body.email,
            name=body.name,
            message=(
                f"Avaliação completa: {body.property_type} em {municipality}. "
                f"Estado: {body.condition}. Fase: {body.selling_stage}"
            ),
            tags=["seller", "complete_evaluation", body.condition, body.selling_stage],
            custom_fields={
                "lead_type": "seller",
                "wizard_source": COMPLETE_EVALUATION_SOURCE,
                "property_details": {
                    "property_type": body.property_type,
                    "district": body.district,
                    "district_label": location_label(body.district),
                    "municipality": body.municipality,
                    "municipality_label": municipality,
                    "parish": body.parish or None,
                    "address": body.address or None,
                    "postal_code": body.postal_code or None,
                    "bedrooms": body.bedrooms or None,
                    "bathrooms": body.bathrooms or None,
                    "gross_area": body.gross_area or None,
                    "useful_area": body.useful_area or None,
                    "plot_area": body.plot_area or None,
                    "floor": body.floor or None,
                    "year_built": body.year_built or None,
                    "features": body.features or [],
                    "condition": body.condition,
                    "last_renovation": body.last_renovation or None,
                    "renovation_details": body.renovation_details or None,
                },
                "selling_info": {
                    "selling_stage": body.selling_stage,
                    "estimated_value": body.estimated_value or None,
                    "currently_rented": body.currently_rented or None,
                    "monthly_rent": body.monthly_rent or None,
                },
                "contact_preferences": {
                    "preferred_contact": body.preferred_contact or None,
                    "additional_notes": body.additional_notes or None,
                },
                "submitted_at": _now_iso(),
            },
            notification_title="Nova Avaliação Completa",
            notification_message=f"{body.name} pediu avaliação de {body.property_type} em {municipality}",
            audit_values={
                "property_type": body.property_type,
                "condition": body.condition,
                "location": f"{body.district}/{body.municipality}",
            },
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def find_recent_duplicate(self, phone: str) -> Optional[Dict[str, Any]]:
        """Lead with the same phone inside the dedup window, if any."""
        since = datetime.now(timezone.utc) - timedelta(hours=settings.lead_dedup_window_hours)
        result = self.supabase.table("leads")\
            .select("id, created_at")\
            .eq("phone", phone)\
            .gte("created_at", since.isoformat())\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def create_seller_lead(self, intake: SellerLeadIntake) -> str:
        """Dedup, insert, then the non-fatal side effects (audit, admin notifications, e-mail)."""
        try:
            duplicate = self.find_recent_duplicate(intake.phone)
        except Exception as e:
            logger.error(f"Duplicate lead check failed: {e}")
            raise HTTPException(status_code=500, detail="Erro ao processar o pedido. Por favor, tente novamente.")
        if duplicate:
            raise DuplicateLeadError(duplicate["id"])

        try:
            result = self.supabase.table("leads").insert({
                "email": intake.email,
                "name": intake.name,
                "phone": intake.phone,
                "source": intake.source,
                "status": "new",
                "message": intake.message,
                "tags": intake.tags,
                "custom_fields": intake.custom_fields,
                "ip_address": intake.ip_address,
                "user_agent": intake.user_agent,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating lead: {e}")
            raise HTTPException(status_code=500, detail="Erro ao processar o pedido. Por favor, tente novamente.")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erro ao processar o pedido. Por favor, tente novamente.")

        lead_id = result.data[0]["id"]
        logger.info(f"Seller lead {lead_id} created from {intake.source}")

        self.audit.record(
            "create", "lead", lead_id,
            new_values={"source": intake.source, "lead_type": "seller", **intake.audit_values},
            ip_address=intake.ip_address,
            user_agent=intake.user_agent,
        )
        self.notifications.notify_admins(
            type="lead",
            title=intake.notification_title,
            message=intake.notification_message,
            link="/admin/crm",
            metadata={"lead_id": lead_id, "lead_type": "seller", "source": intake.source, **intake.audit_values},
        )
        email_result = email_service.notify_new_lead(
            name=intake.name or "Proprietário",
            email=intake.email,
            phone=intake.phone,
            message=intake.message,
        )
        if not email_result.success:
            logger.info(f"Seller lead e-mail not sent: {email_result.error}")
        return lead_id

    # -- admin -------------------------------------------------------------

    def get_lead(self, lead_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("leads")\
                .select("*")\
                .eq("id", lead_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Lead not found")
        return result.data
