from supabase import Client
from app.modules.crm.pipeline import PIPELINE_STATUSES, STATUS_LABELS, is_valid_status
from app.modules.crm.schemas import BoardResponse, PipelineColumn, MoveResult, MoveOutcome
from app.modules.leads.schemas import LeadResponse
from app.modules.audit.service import AuditService
from fastapi import HTTPException
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class CRMService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.audit = AuditService(supabase)

    def get_board(self) -> BoardResponse:
        """Leads grouped into pipeline columns, newest first within each column"""
        try:
            result = self.supabase.table("leads")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        grouped = {status: [] for status in PIPELINE_STATUSES}
        for row in result.data or []:
            status = row.get("status") or "new"
            if status not in grouped:
                logger.warning(f"Lead {row.get('id')} has unknown status {status}")
                continue
            grouped[status].append(LeadResponse(**row))

        columns = [
            PipelineColumn(status=status, label=STATUS_LABELS[status], leads=leads, count=len(leads))
            for status, leads in grouped.items()
        ]
        return BoardResponse(columns=columns, total=sum(c.count for c in columns))

    def move_lead(
        self,
        lead_id: str,
        new_status: str,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> MoveResult:
        if not is_valid_status(new_status):
            raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")

        try:
            current = self.supabase.table("leads")\
                .select("id, status")\
                .eq("id", lead_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error loading lead {lead_id}: {e}")
            return MoveResult(outcome=MoveOutcome.FAILED, lead_id=lead_id, to_status=new_status, error=str(e))

        if not current or not current.data:
            raise HTTPException(status_code=404, detail="Lead not found")

        old_status = current.data.get("status")
        if old_status == new_status:
            return MoveResult(
                outcome=MoveOutcome.UNCHANGED, lead_id=lead_id, from_status=old_status, to_status=new_status
            )

        try:
            result = self.supabase.table("leads")\
                .update({"status": new_status})\
                .eq("id", lead_id)\
                .execute()
            if not result.data:
                raise RuntimeError("Lead update returned no rows")
        except Exception as e:
            logger.error(f"Error moving lead {lead_id} to {new_status}: {e}")
            return MoveResult(
                outcome=MoveOutcome.FAILED,
                lead_id=lead_id,
                from_status=old_status,
                to_status=new_status,
                error=str(e),
            )

        self.audit.record(
            "status_change", "lead", lead_id,
            user_id=user_id,
            old_values={"status": old_status},
            new_values={"status": new_status},
            ip_address=ip_address,
        )
        return MoveResult(outcome=MoveOutcome.MOVED, lead_id=lead_id, from_status=old_status, to_status=new_status)
