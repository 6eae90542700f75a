from supabase import Client
from app.modules.autosave import registry
from app.modules.autosave.coordinator import AutoSaveCoordinator, clean_changes
from app.modules.autosave.schemas import AutoSaveSnapshot, UnloadResponse
from app.modules.autosave.writer import SupabaseRecordWriter
from app.modules.properties.utils import PROPERTY_STATUSES, sanitize_property_update, validate_publish_property
from app.modules.leads.service import LEAD_UPDATABLE_FIELDS
from app.modules.crm.pipeline import is_valid_status
from typing import Any, Callable, Dict, Mapping, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def _sanitize_lead_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if key in LEAD_UPDATABLE_FIELDS}


def _validate_property(merged: Mapping[str, Any], changes: Mapping[str, Any]) -> Optional[str]:
    if "status" in changes and changes["status"] not in PROPERTY_STATUSES:
        return "Estado do imóvel inválido"
    if merged.get("status") == "published":
        return validate_publish_property(merged)
    return None


def _validate_lead(merged: Mapping[str, Any], changes: Mapping[str, Any]) -> Optional[str]:
    if "status" in changes and not is_valid_status(changes["status"]):
        return f"Invalid status: {changes['status']}"
    return None


FIELD_FILTERS: Dict[str, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    "properties": sanitize_property_update,
    "leads": _sanitize_lead_update,
}

# Checked against the stored row merged with every unsaved edit
FIELD_VALIDATORS: Dict[str, Callable[[Mapping[str, Any], Mapping[str, Any]], Optional[str]]] = {
    "properties": _validate_property,
    "leads": _validate_lead,
}


class EditorSessionService:
    """Editor sessions for admin forms, one coordinator per user and record."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    @staticmethod
    def check_table(table: str) -> None:
        if table not in FIELD_FILTERS:
            raise HTTPException(status_code=404, detail=f"Auto-save is not available for {table}")

    def _load_record(self, table: str, record_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table(table)\
                .select("*")\
                .eq("id", record_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Record not found")
        return result.data

    def _open(self, user_id: str, table: str, record_id: str) -> AutoSaveCoordinator:
        key = (user_id, table, record_id)

        def on_success() -> None:
            logger.info(f"Auto-saved {table}/{record_id} for user {user_id}")

        def on_error(error: Exception) -> None:
            logger.error(f"Auto-save of {table}/{record_id} failed: {error}")

        return registry.get_or_create(key, lambda: AutoSaveCoordinator(
            SupabaseRecordWriter(self.supabase, table, record_id),
            on_save_success=on_success,
            on_save_error=on_error,
        ))

    def _existing(self, user_id: str, table: str, record_id: str) -> AutoSaveCoordinator:
        coordinator = registry.get((user_id, table, record_id))
        if coordinator is None:
            raise HTTPException(status_code=404, detail="No open editor session")
        return coordinator

    def save_fields(self, user_id: str, table: str, record_id: str, fields: Mapping[str, Any]) -> AutoSaveSnapshot:
        """Queue edits; they are persisted once the form has been quiet for the debounce delay"""
        self.check_table(table)
        allowed = FIELD_FILTERS[table](fields)
        if not allowed:
            raise HTTPException(status_code=400, detail="No editable fields in payload")

        current = self._load_record(table, record_id)
        existing = registry.get((user_id, table, record_id))
        unsaved = existing.pending_changes if existing is not None else {}
        merged = {**current, **clean_changes(unsaved), **clean_changes(allowed)}
        error = FIELD_VALIDATORS[table](merged, allowed)
        if error:
            raise HTTPException(status_code=400, detail=error)

        coordinator = self._open(user_id, table, record_id)
        coordinator.save_fields(allowed)
        return coordinator.snapshot()

    async def flush(self, user_id: str, table: str, record_id: str) -> AutoSaveSnapshot:
        self.check_table(table)
        coordinator = self._existing(user_id, table, record_id)
        await coordinator.force_save()
        return coordinator.snapshot()

    def snapshot(self, user_id: str, table: str, record_id: str) -> AutoSaveSnapshot:
        self.check_table(table)
        return self._existing(user_id, table, record_id).snapshot()

    def close(self, user_id: str, table: str, record_id: str, confirm: bool = False) -> UnloadResponse:
        """Close the editor. Unsaved edits need ``confirm`` to be dropped."""
        self.check_table(table)
        key = (user_id, table, record_id)
        coordinator = registry.get(key)
        if coordinator is None:
            return UnloadResponse(confirm_required=False)
        dropped = coordinator.snapshot().pending_changes
        if coordinator.before_unload() and not confirm:
            return UnloadResponse(confirm_required=True, pending_changes=dropped)
        registry.close(key)
        if dropped:
            logger.info(f"Editor session {table}/{record_id} closed with unsaved fields {sorted(dropped)}")
        return UnloadResponse(confirm_required=False, pending_changes=dropped)
