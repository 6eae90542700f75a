from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class _CamelModel(BaseModel):
    class Config:
        populate_by_name = True


class ContactRequest(_CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[str] = Field(None, alias="propertyId")
    property_title: Optional[str] = Field(None, alias="propertyTitle")
    property_ref: Optional[str] = Field(None, alias="propertyRef")


class SellPropertyLeadRequest(_CamelModel):
    property_type: Optional[str] = Field(None, alias="propertyType")
    district: Optional[str] = None
    municipality: Optional[str] = None
    selling_stage: Optional[str] = Field(None, alias="sellingStage")
    estimated_value: Optional[str] = Field(None, alias="estimatedValue")
    contact_timing: Optional[str] = Field(None, alias="contactTiming")
    phone: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class CompleteEvaluationRequest(_CamelModel):
    property_type: Optional[str] = Field(None, alias="propertyType")
    district: Optional[str] = None
    municipality: Optional[str] = None
    parish: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = Field(None, alias="postalCode")
    bedrooms: Optional[str] = None
    bathrooms: Optional[str] = None
    gross_area: Optional[str] = Field(None, alias="grossArea")
    useful_area: Optional[str] = Field(None, alias="usefulArea")
    plot_area: Optional[str] = Field(None, alias="plotArea")
    floor: Optional[str] = None
    year_built: Optional[str] = Field(None, alias="yearBuilt")
    features: Optional[List[str]] = None
    condition: Optional[str] = None
    last_renovation: Optional[str] = Field(None, alias="lastRenovation")
    renovation_details: Optional[str] = Field(None, alias="renovationDetails")
    selling_stage: Optional[str] = Field(None, alias="sellingStage")
    estimated_value: Optional[str] = Field(None, alias="estimatedValue")
    currently_rented: Optional[str] = Field(None, alias="currentlyRented")
    monthly_rent: Optional[str] = Field(None, alias="monthlyRent")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    preferred_contact: Optional[str] = Field(None, alias="preferredContact")
    additional_notes: Optional[str] = Field(None, alias="additionalNotes")


class LeadCreatedResponse(BaseModel):
    success: bool = True
    message: str
    lead_id: Optional[str] = Field(None, serialization_alias="leadId")


class LeadResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[str] = None
    source: Optional[str] = None
    status: str = "new"
    tags: Optional[List[str]] = None
    custom_fields: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
