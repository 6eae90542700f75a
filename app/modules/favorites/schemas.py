from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime


class ToggleFavoriteRequest(BaseModel):
    property_id: str = Field(..., alias="propertyId")

    class Config:
        populate_by_name = True


class FavoriteStatusResponse(BaseModel):
    favorited: bool


class FavoriteResponse(BaseModel):
    id: str
    property_id: str
    created_at: Optional[datetime] = None
    properties: Optional[Dict[str, Any]] = None
