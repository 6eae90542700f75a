from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class PropertyImageResponse(BaseModel):
    id: str
    property_id: str
    url: str
    storage_path: Optional[str] = None
    alt: Optional[str] = None
    order: int = 0
    is_cover: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PropertyResponse(BaseModel):
    id: str
    reference: str
    slug: str
    title: str
    description: Optional[str] = None
    business_type: str
    nature: str
    status: str = "draft"
    price: Optional[float] = None
    price_on_request: bool = False
    district: Optional[str] = None
    municipality: Optional[str] = None
    parish: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    gross_area: Optional[float] = None
    useful_area: Optional[float] = None
    land_area: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    floors: Optional[int] = None
    typology: Optional[str] = None
    construction_status: Optional[str] = None
    construction_year: Optional[int] = None
    energy_certificate: Optional[str] = None
    divisions: Optional[Dict[str, Any]] = None
    equipment: Optional[List[str]] = None
    extras: Optional[List[str]] = None
    surrounding_area: Optional[List[str]] = None
    video_url: Optional[str] = None
    virtual_tour_url: Optional[str] = None
    brochure_url: Optional[str] = None
    featured: bool = False
    views_count: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    property_images: List[PropertyImageResponse] = []

    class Config:
        from_attributes = True


class PropertySearchResponse(BaseModel):
    items: List[PropertyResponse]
    total: int
    page: int
    per_page: int
    pages: int


class PropertyImageCreate(BaseModel):
    url: str
    alt: Optional[str] = None
    is_cover: bool = False
    order: Optional[int] = None


class SetCoverRequest(BaseModel):
    image_id: str


class TrackViewRequest(BaseModel):
    property_id: str = Field(alias="propertyId")

    class Config:
        populate_by_name = True


class PropertyDocumentResponse(BaseModel):
    url: str
    type: str
