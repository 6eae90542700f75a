from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

VISIT_STATUSES = ["pending", "confirmed", "cancelled", "completed", "rescheduled"]
ADMIN_SETTABLE_STATUSES = ["confirmed", "cancelled", "completed", "rescheduled"]


class _CamelModel(BaseModel):
    class Config:
        populate_by_name = True


class ScheduleVisitRequest(_CamelModel):
    property_id: str = Field(..., alias="propertyId")
    scheduled_at: datetime = Field(..., alias="scheduledAt")
    notes: Optional[str] = None


class VisitStatusRequest(_CamelModel):
    visit_id: str = Field(..., alias="visitId")
    status: str
    cancellation_reason: Optional[str] = Field(None, alias="cancellationReason")


class ConfirmVisitRequest(_CamelModel):
    visit_id: str = Field(..., alias="visitId")


class VisitResponse(BaseModel):
    id: str
    property_id: str
    user_id: Optional[str] = None
    lead_id: Optional[str] = None
    scheduled_at: datetime
    status: str = "pending"
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    google_event_id: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    properties: Optional[Dict[str, Any]] = None
    leads: Optional[Dict[str, Any]] = None


class VisitActionResponse(BaseModel):
    success: bool = True
    status: Optional[str] = None
    message: Optional[str] = None
    email_sent: bool = False
    calendar_event_id: Optional[str] = None
