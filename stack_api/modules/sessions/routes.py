from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.sessions.schemas import (
    SessionCreate, SessionUpdate, SessionResponse, MaintenanceResult
)
from stack_api.modules.sessions.service import SessionService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional
from datetime import datetime

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_service(supabase: Client = Depends(get_supabase)) -> SessionService:
    return SessionService(supabase)


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    since: Optional[datetime] = None,
    limit: Optional[int] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return service.list_sessions(user_data["id"], since=since, limit=limit)


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    session_data: SessionCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return service.create_session(user_data["id"], session_data)


@router.post("/maintenance/adjusted-profits", response_model=MaintenanceResult)
async def backfill_adjusted_profits(
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return MaintenanceResult(updated=service.ensure_adjusted_profits(user_data["id"]))


@router.post("/maintenance/remove-duplicates", response_model=MaintenanceResult)
async def remove_duplicates(
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return MaintenanceResult(updated=service.remove_duplicate_sessions(user_data["id"]))


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return service.get_session(session_id, user_data["id"])


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    session_data: SessionUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return service.update_session(session_id, user_data["id"], session_data)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    """Delete a session and cancel its open stakes"""
    service.delete_session(session_id, user_data["id"])


@router.post("/{session_id}/adjusted-profit", response_model=SessionResponse)
async def recalculate_adjusted_profit(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service)
):
    return service.recalculate_adjusted_profit(session_id, user_data["id"])
