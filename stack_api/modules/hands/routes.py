from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.hands.schemas import HandCreate, SavedHandResponse
from stack_api.modules.hands.service import HandService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/hands", tags=["hands"])


def get_hand_service(supabase: Client = Depends(get_supabase)) -> HandService:
    return HandService(supabase)


@router.post("", response_model=SavedHandResponse, status_code=201)
async def save_hand(
    hand_data: HandCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: HandService = Depends(get_hand_service)
):
    return service.save_hand(user_data["id"], hand_data)


@router.get("", response_model=List[SavedHandResponse])
async def list_my_hands(
    limit: Optional[int] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: HandService = Depends(get_hand_service)
):
    return service.list_hands(user_data["id"], limit=limit)


@router.get("/session/{session_id}", response_model=List[SavedHandResponse])
async def hands_for_session(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HandService = Depends(get_hand_service)
):
    return service.hands_for_session(session_id, user_data["id"])


@router.get("/{hand_id}", response_model=SavedHandResponse)
async def get_hand(
    hand_id: str,
    owner_user_id: Optional[str] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: HandService = Depends(get_hand_service)
):
    """Open a hand shared in a post or group chat"""
    return service.get_hand(hand_id, owner_user_id)


@router.delete("/{hand_id}", status_code=204)
async def delete_hand(
    hand_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HandService = Depends(get_hand_service)
):
    service.delete_hand(hand_id, user_data["id"])
