import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from supabase import Client


class RecordNotFoundError(LookupError):
    pass


class SupabaseRecordWriter:
    """Update-by-id persist target for an AutoSaveCoordinator."""

    def __init__(self, supabase: Client, table: str, record_id: str):
        self.supabase = supabase
        self.table = table
        self.record_id = record_id

    async def __call__(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        # supabase-py is synchronous; keep the event loop free while the request runs
        return await asyncio.to_thread(self._update, payload)

    def _update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        result = self.supabase.table(self.table)\
            .update(payload)\
            .eq("id", self.record_id)\
            .execute()
        if not result.data:
            raise RecordNotFoundError(f"{self.table} record {self.record_id} not found")
        return result.data[0]
