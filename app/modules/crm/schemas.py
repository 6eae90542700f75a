from pydantic import BaseModel
from typing import Optional, List
from enum import Enum
from app.modules.leads.schemas import LeadResponse


class MoveOutcome(str, Enum):
    MOVED = "moved"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class MoveLeadRequest(BaseModel):
    status: str


class MoveResult(BaseModel):
    outcome: MoveOutcome
    lead_id: str
    from_status: Optional[str] = None
    to_status: str
    error: Optional[str] = None


class PipelineColumn(BaseModel):
    status: str
    label: str
    leads: List[LeadResponse] = []
    count: int = 0


class BoardResponse(BaseModel):
    columns: List[PipelineColumn]
    total: int
