from pydantic import BaseModel
from typing import Optional, Any, Dict
from datetime import datetime
from enum import Enum


class AutoSaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AutoSaveSnapshot(BaseModel):
    status: AutoSaveStatus
    last_saved: Optional[datetime] = None
    error: Optional[str] = None
    pending_changes: Dict[str, Any] = {}
    has_pending_changes: bool = False
    is_saving: bool = False


class UnloadResponse(BaseModel):
    confirm_required: bool
    pending_changes: Dict[str, Any] = {}
