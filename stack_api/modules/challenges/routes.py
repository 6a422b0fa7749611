from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.challenges.schemas import (
    ChallengeCreate, ChallengeResponse, ChallengeProgressUpdate, ChallengeProgressResponse,
    ChallengeStatus
)
from stack_api.modules.challenges.service import ChallengeService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/challenges", tags=["challenges"])


def get_challenge_service(supabase: Client = Depends(get_supabase)) -> ChallengeService:
    return ChallengeService(supabase)


@router.post("", response_model=ChallengeResponse, status_code=201)
async def create_challenge(
    challenge_data: ChallengeCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.create_challenge(user_data["id"], challenge_data)


@router.get("", response_model=List[ChallengeResponse])
async def list_my_challenges(
    status: Optional[ChallengeStatus] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    """Your challenges; overdue active ones are failed first"""
    service.expire_overdue(user_data["id"])
    return service.list_challenges(user_data["id"], status)


@router.get("/user/{user_id}", response_model=List[ChallengeResponse])
async def list_public_challenges(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.list_public_challenges(user_id)


@router.post("/{challenge_id}/progress", response_model=ChallengeResponse)
async def update_progress(
    challenge_id: str,
    progress: ChallengeProgressUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.update_progress(challenge_id, user_data["id"], progress)


@router.get("/{challenge_id}/progress", response_model=List[ChallengeProgressResponse])
async def get_progress_log(
    challenge_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.get_progress_log(challenge_id, user_data["id"])


@router.post("/{challenge_id}/abandon", response_model=ChallengeResponse)
async def abandon_challenge(
    challenge_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.abandon(challenge_id, user_data["id"])


@router.delete("/{challenge_id}", status_code=204)
async def delete_challenge(
    challenge_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ChallengeService = Depends(get_challenge_service)
):
    service.delete_challenge(challenge_id, user_data["id"])
