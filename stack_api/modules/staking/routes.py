from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.staking.schemas import StakeCreate, StakeUpdate, StakeResponse
from stack_api.modules.staking.service import StakeService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/stakes", tags=["staking"])


def get_stake_service(supabase: Client = Depends(get_supabase)) -> StakeService:
    return StakeService(supabase)


@router.post("", response_model=StakeResponse, status_code=201)
async def add_stake(
    stake_data: StakeCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    return service.add_stake(stake_data, user_data["id"])


@router.get("", response_model=List[StakeResponse])
async def list_my_stakes(
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    """Stakes where you are the staker or the staked player"""
    return service.list_stakes_for_user(user_data["id"])


@router.get("/session/{session_id}", response_model=List[StakeResponse])
async def list_session_stakes(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    return [
        s for s in service.stakes_for_session(session_id)
        if user_data["id"] in (s.staker_user_id, s.staked_player_user_id)
    ]


@router.get("/{stake_id}", response_model=StakeResponse)
async def get_stake(
    stake_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    stake = service.get_stake(stake_id)
    service.check_party(stake, user_data["id"])
    return stake


@router.patch("/{stake_id}", response_model=StakeResponse)
async def update_stake(
    stake_id: str,
    stake_data: StakeUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    return service.update_stake(stake_id, user_data["id"], stake_data)


@router.post("/{stake_id}/settle", response_model=StakeResponse)
async def initiate_settlement(
    stake_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    return service.initiate_settlement(stake_id, user_data["id"])


@router.post("/{stake_id}/confirm", response_model=StakeResponse)
async def confirm_settlement(
    stake_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    return service.confirm_settlement(stake_id, user_data["id"])


@router.delete("/{stake_id}", status_code=204)
async def delete_stake(
    stake_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: StakeService = Depends(get_stake_service)
):
    service.delete_stake(stake_id, user_data["id"])
