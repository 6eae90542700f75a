from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from app.database.supabase_client import get_service_supabase
from app.modules.properties.schemas import (
    PropertyResponse, PropertySearchResponse, PropertyImageCreate, PropertyImageResponse,
    SetCoverRequest, TrackViewRequest, PropertyDocumentResponse,
)
from app.modules.properties.service import PropertyService
from app.core.dependencies import require_admin, get_client_ip
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import Any, Dict, List, Optional

router = APIRouter(prefix="/properties", tags=["properties"])
analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_property_service(supabase: Client = Depends(get_service_supabase)) -> PropertyService:
    return PropertyService(supabase)


@router.get("/search", response_model=PropertySearchResponse)
async def search_properties(
    q: Optional[str] = None,
    location: Optional[str] = None,
    district: Optional[str] = None,
    municipality: Optional[str] = None,
    business_type: Optional[str] = None,
    nature: Optional[str] = None,
    bedrooms: Optional[int] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    show_price_on_request: bool = True,
    sort: str = "recent",
    page: int = Query(1, ge=1),
    service: PropertyService = Depends(get_property_service),
):
    """Public listing search (published properties only)"""
    return service.search_published(
        q=q, location=location, district=district, municipality=municipality,
        business_type=business_type, nature=nature, bedrooms=bedrooms,
        min_price=min_price, max_price=max_price,
        show_price_on_request=show_price_on_request, sort=sort, page=page,
    )


@router.get("/by-slug/{slug}", response_model=PropertyResponse)
async def get_property_by_slug(
    slug: str,
    service: PropertyService = Depends(get_property_service),
):
    """Public property detail"""
    return service.get_published_by_slug(slug)


@analytics_router.post("/track-view")
async def track_property_view(
    body: TrackViewRequest,
    service: PropertyService = Depends(get_property_service),
):
    return {"success": True, "views_count": service.track_view(body.property_id)}


@router.get("", response_model=List[PropertyResponse])
async def list_properties(
    status: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    """All properties, newest first (admin)"""
    return service.list_properties(status=status, limit=limit, offset=offset)


@router.post("", response_model=PropertyResponse, status_code=201)
async def create_property(
    payload: Dict[str, Any],
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    return service.create_property(payload, session.user_id, ip_address=get_client_ip(request))


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    return service.get_property(property_id)


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    payload: Dict[str, Any],
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    """Update a property; unknown and system-managed fields are ignored"""
    return service.update_property(property_id, payload, session.user_id, ip_address=get_client_ip(request))


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    request: Request,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    service.delete_property(property_id, session.user_id, ip_address=get_client_ip(request))
    return {"success": True}


@router.post("/{property_id}/images", response_model=PropertyImageResponse, status_code=201)
async def add_property_image(
    property_id: str,
    image: PropertyImageCreate,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    """Register an already hosted image by URL"""
    return service.add_image(property_id, image)


@router.post("/{property_id}/upload", response_model=PropertyImageResponse, status_code=201)
async def upload_property_image(
    property_id: str,
    file: UploadFile = File(...),
    alt: Optional[str] = Form(None),
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    """Upload an image to the property-images bucket and attach it"""
    content = await file.read()
    return service.upload_image(property_id, file.filename or "image", content, file.content_type, alt=alt)


@router.post("/{property_id}/documents", response_model=PropertyDocumentResponse, status_code=201)
async def upload_property_document(
    property_id: str,
    file: UploadFile = File(...),
    doc_type: str = Form(..., alias="type"),
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    """Upload a floor plan (type=floor_plan), brochure or document"""
    content = await file.read()
    return service.upload_document(
        property_id, doc_type, file.filename or doc_type, content, file.content_type, user_id=session.user_id
    )


@router.put("/{property_id}/images/cover", response_model=PropertyImageResponse)
async def set_property_cover(
    property_id: str,
    body: SetCoverRequest,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    return service.set_cover(property_id, body.image_id)


@router.delete("/{property_id}/images/{image_id}")
async def delete_property_image(
    property_id: str,
    image_id: str,
    session: SessionManager = Depends(require_admin),
    service: PropertyService = Depends(get_property_service),
):
    service.delete_image(property_id, image_id)
    return {"success": True}
