from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class GoogleTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 3600
    token_type: Optional[str] = None
    scope: Optional[str] = None


class EventTime(BaseModel):
    date_time: str = Field(..., serialization_alias="dateTime")
    time_zone: str = Field(..., serialization_alias="timeZone")


class CalendarEvent(BaseModel):
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    attendees: Optional[List[Dict[str, str]]] = None
    reminders: Optional[Dict[str, Any]] = None

    def to_google(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GoogleAuthUrlResponse(BaseModel):
    auth_url: str


class CalendarStatusResponse(BaseModel):
    connected: bool
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    expires_at: Optional[datetime] = None


class CalendarEventUpdateRequest(BaseModel):
    visit_id: str = Field(..., alias="visitId")
    consultant_id: str = Field(..., alias="consultantId")
    scheduled_at: Optional[datetime] = Field(None, alias="scheduledAt")
    status: Optional[str] = None

    class Config:
        populate_by_name = True


class CalendarSyncResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class CalendarBulkSyncResponse(BaseModel):
    message: str
    synced: int = 0
