from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.home_games.schemas import (
    HomeGameCreate, HomeGameResponse, HomeGameDetail, HomeGamePlayerResponse, HomeGameRequestResponse,
    AmountRequest, CashOutAmount, PlayerValuesUpdate, GameInviteCreate, GroupGameInviteCreate, GameInviteResponse
)
from stack_api.modules.home_games.service import HomeGameService
from stack_api.core.dependencies import get_current_user_id, require_verified_user, check_group_member
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/home-games", tags=["home-games"])


def get_home_game_service(supabase: Client = Depends(get_supabase)) -> HomeGameService:
    return HomeGameService(supabase)


@router.post("", response_model=HomeGameResponse, status_code=201)
async def create_game(
    game_data: HomeGameCreate,
    user_data: Dict = Depends(require_verified_user),
    service: HomeGameService = Depends(get_home_game_service)
):
    """Start a home game hosted by the current user"""
    return service.create_game(user_data["id"], game_data)


@router.get("/active", response_model=List[HomeGameResponse])
async def list_my_active_games(
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.list_active_games_for_user(user_data["id"])


@router.get("/groups/{group_id}", response_model=List[HomeGameResponse])
async def list_group_games(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service),
    supabase: Client = Depends(get_supabase)
):
    """Active games in a group (members only)"""
    check_group_member(group_id, user_data, supabase)
    return service.list_active_games_for_group(group_id)


@router.get("/invites", response_model=List[GameInviteResponse])
async def list_pending_invites(
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.list_pending_invites(user_data["id"])


@router.post("/invites/{invite_id}/accept", response_model=GameInviteResponse)
async def accept_invite(
    invite_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.accept_invite(invite_id, user_data["id"])


@router.post("/invites/{invite_id}/decline", response_model=GameInviteResponse)
async def decline_invite(
    invite_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.decline_invite(invite_id, user_data["id"])


@router.get("/{game_id}", response_model=HomeGameDetail)
async def get_game(
    game_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    """Game with players, pending requests and history"""
    return service.get_game_detail(game_id)


@router.post("/{game_id}/players", response_model=HomeGamePlayerResponse, status_code=201)
async def join_game(
    game_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.add_player(game_id, user_data["id"])


@router.put("/{game_id}/players/{player_id}", response_model=HomeGamePlayerResponse)
async def update_player_values(
    game_id: str,
    player_id: str,
    values: PlayerValuesUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.update_player_values(game_id, player_id, user_data["id"], values)


@router.post("/{game_id}/players/{player_id}/cash-out", response_model=HomeGamePlayerResponse)
async def cash_out_for_game_end(
    game_id: str,
    player_id: str,
    body: CashOutAmount,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.cash_out_for_game_end(game_id, player_id, user_data["id"], body.amount)


@router.post("/{game_id}/buy-ins", response_model=HomeGameRequestResponse, status_code=201)
async def request_buy_in(
    game_id: str,
    body: AmountRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.request_buy_in(game_id, user_data["id"], body.amount)


@router.post("/{game_id}/buy-ins/direct", response_model=HomeGamePlayerResponse)
async def host_buy_in(
    game_id: str,
    body: AmountRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.host_buy_in(game_id, user_data["id"], body.amount)


@router.post("/{game_id}/buy-ins/{request_id}/approve", response_model=HomeGamePlayerResponse)
async def approve_buy_in(
    game_id: str,
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.approve_buy_in(game_id, request_id, user_data["id"])


@router.post("/{game_id}/buy-ins/{request_id}/decline", response_model=HomeGameRequestResponse)
async def decline_buy_in(
    game_id: str,
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.decline_buy_in(game_id, request_id, user_data["id"])


@router.post("/{game_id}/cash-outs", response_model=HomeGameRequestResponse, status_code=201)
async def request_cash_out(
    game_id: str,
    body: AmountRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.request_cash_out(game_id, user_data["id"], body.amount)


@router.post("/{game_id}/cash-outs/{request_id}/process", response_model=HomeGamePlayerResponse)
async def process_cash_out(
    game_id: str,
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.process_cash_out(game_id, request_id, user_data["id"])


@router.post("/{game_id}/end", response_model=HomeGameResponse)
async def end_game(
    game_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    """End the game, cash out remaining players and compute settlement"""
    return service.end_game(game_id, user_data["id"])


@router.get("/{game_id}/invites", response_model=List[GameInviteResponse])
async def list_game_invites(
    game_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.list_game_invites(game_id)


@router.post("/{game_id}/invites", response_model=GameInviteResponse, status_code=201)
async def send_invite(
    game_id: str,
    invite_data: GameInviteCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.send_invite(game_id, user_data["id"], invite_data)


@router.post("/{game_id}/invites/group", response_model=List[GameInviteResponse], status_code=201)
async def send_group_invite(
    game_id: str,
    invite_data: GroupGameInviteCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: HomeGameService = Depends(get_home_game_service)
):
    return service.send_group_invite(game_id, user_data["id"], invite_data)
