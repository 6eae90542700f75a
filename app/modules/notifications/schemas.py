from pydantic import BaseModel
from typing import Optional, Any, Dict
from datetime import datetime


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    link: Optional[str] = None
    read: bool = False
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
