from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from app.database.supabase_client import get_service_supabase
from app.modules.autosave.schemas import AutoSaveSnapshot, UnloadResponse
from app.modules.autosave.service import EditorSessionService
from app.core.dependencies import require_admin
from app.modules.auth.session import SessionManager
from supabase import Client
from typing import Any, Dict

router = APIRouter(prefix="/autosave", tags=["autosave"])


def get_editor_service(supabase: Client = Depends(get_service_supabase)) -> EditorSessionService:
    return EditorSessionService(supabase)


@router.patch("/{table}/{record_id}", response_model=AutoSaveSnapshot)
async def save_fields(
    table: str,
    record_id: str,
    fields: Dict[str, Any] = Body(...),
    session: SessionManager = Depends(require_admin),
    service: EditorSessionService = Depends(get_editor_service),
):
    """Record field edits for debounced saving"""
    return service.save_fields(session.user_id, table, record_id, fields)


@router.post("/{table}/{record_id}/flush", response_model=AutoSaveSnapshot)
async def flush(
    table: str,
    record_id: str,
    session: SessionManager = Depends(require_admin),
    service: EditorSessionService = Depends(get_editor_service),
):
    """Save pending edits now"""
    return await service.flush(session.user_id, table, record_id)


@router.get("/{table}/{record_id}", response_model=AutoSaveSnapshot)
async def get_status(
    table: str,
    record_id: str,
    session: SessionManager = Depends(require_admin),
    service: EditorSessionService = Depends(get_editor_service),
):
    return service.snapshot(session.user_id, table, record_id)


@router.delete("/{table}/{record_id}", response_model=UnloadResponse)
async def close_session(
    table: str,
    record_id: str,
    confirm: bool = Query(False),
    session: SessionManager = Depends(require_admin),
    service: EditorSessionService = Depends(get_editor_service),
):
    """Leave the editor. Responds 409 while unsaved edits exist unless confirm=true."""
    result = service.close(session.user_id, table, record_id, confirm=confirm)
    if result.confirm_required:
        return JSONResponse(status_code=409, content=result.model_dump())
    return result
