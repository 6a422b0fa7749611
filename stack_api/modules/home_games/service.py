from supabase import Client
from stack_api.modules.home_games.schemas import (
    HomeGameCreate, HomeGameResponse, HomeGamePlayerResponse, HomeGameRequestResponse,
    HomeGameEventResponse, HomeGameDetail, GameInviteCreate, GroupGameInviteCreate, GameInviteResponse,
    PlayerValuesUpdate, SettlementTransaction, GameStatus, PlayerStatus, RequestKind, RequestStatus,
    EventType, InviteStatus
)
from stack_api.modules.users.service import UserService
from stack_api.core.dependencies import is_group_member
from stack_api.core.exceptions import (
    NotFoundError, PermissionDeniedError, ConflictError, InvalidDataError, classify_backend_error
)
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

# Balances within a dollar are treated as settled
SETTLEMENT_THRESHOLD = 1.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _money(amount: float) -> str:
    return f"${int(amount)}"


def calculate_settlement(players: List[HomeGamePlayerResponse]) -> List[SettlementTransaction]:
    """
    Who pays whom when a game ends.

    Each player's balance is their final stack minus everything they bought
    in for. The first remaining winner is paid by the first remaining loser,
    the smaller of the two balances at a time, until no winner or no loser
    is left outside the threshold.
    """
    balances = [
        [player, player.net] for player in players
        if abs(player.net) > SETTLEMENT_THRESHOLD
    ]
    transactions: List[SettlementTransaction] = []
    while True:
        creditor = next((b for b in balances if b[1] > SETTLEMENT_THRESHOLD), None)
        debtor = next((b for b in balances if b[1] < -SETTLEMENT_THRESHOLD), None)
        if creditor is None or debtor is None:
            return transactions

        amount = min(creditor[1], -debtor[1])
        transactions.append(SettlementTransaction(
            from_user_id=debtor[0].user_id,
            from_player=debtor[0].display_name,
            to_user_id=creditor[0].user_id,
            to_player=creditor[0].display_name,
            amount=amount,
            index=len(transactions) + 1
        ))
        creditor[1] -= amount
        debtor[1] += amount
        balances = [b for b in balances if abs(b[1]) > SETTLEMENT_THRESHOLD]


class HomeGameService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)

    def _display_name(self, user_id: str) -> str:
        profile = self.users.get_profile(user_id)
        return profile.display_name or profile.username

    def _record_event(self, game_id: str, event_type: EventType, user_id: str, user_name: str,
                      description: str, amount: Optional[float] = None) -> None:
        self.supabase.table("home_game_events").insert({
            "game_id": game_id,
            "event_type": event_type.value,
            "user_id": user_id,
            "user_name": user_name,
            "amount": amount,
            "description": description,
            "timestamp": _now()
        }).execute()

    # Games

    def create_game(self, user_id: str, game_data: HomeGameCreate) -> HomeGameResponse:
        """Start a game hosted by the current user, optionally inside a group"""
        if game_data.group_id and not is_group_member(game_data.group_id, user_id, self.supabase):
            raise PermissionDeniedError("You must be a member of this group")
        creator_name = self._display_name(user_id)
        initial_players = self.users.get_profiles_by_ids(game_data.initial_player_ids) \
            if game_data.initial_player_ids else []

        now = _now()
        try:
            result = self.supabase.table("home_games").insert({
                "title": game_data.title,
                "creator_id": user_id,
                "creator_name": creator_name,
                "group_id": game_data.group_id,
                "status": GameStatus.ACTIVE.value,
                "small_blind": game_data.small_blind,
                "big_blind": game_data.big_blind,
                "settlement_transactions": [],
                "created_at": now
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create game")
            game = HomeGameResponse(**result.data[0])

            if initial_players:
                self.supabase.table("home_game_players").insert([
                    {
                        "game_id": game.id,
                        "user_id": profile.id,
                        "display_name": profile.display_name or profile.username,
                        "current_stack": 0,
                        "total_buy_in": 0,
                        "status": PlayerStatus.ACTIVE.value,
                        "joined_at": now
                    }
                    for profile in initial_players
                ]).execute()
            self._record_event(game.id, EventType.GAME_CREATED, user_id, creator_name, f"Game created: {game.title}")
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

        logger.info(f"Home game {game.id} created by {user_id}")
        return game

    def get_game(self, game_id: str) -> HomeGameResponse:
        try:
            result = self.supabase.table("home_games")\
                .select("*")\
                .eq("id", game_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Game not found")
        return HomeGameResponse(**result.data[0])

    def _require_host(self, game_id: str, user_id: str, detail: str) -> HomeGameResponse:
        game = self.get_game(game_id)
        if game.creator_id != user_id:
            raise PermissionDeniedError(detail)
        return game

    def _require_active(self, game: HomeGameResponse) -> None:
        if game.status != GameStatus.ACTIVE:
            raise ConflictError("Game is no longer active")

    def list_players(self, game_id: str) -> List[HomeGamePlayerResponse]:
        try:
            result = self.supabase.table("home_game_players")\
                .select("*")\
                .eq("game_id", game_id)\
                .order("joined_at")\
                .execute()
            return [HomeGamePlayerResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def list_history(self, game_id: str) -> List[HomeGameEventResponse]:
        """Game events, oldest first"""
        try:
            result = self.supabase.table("home_game_events")\
                .select("*")\
                .eq("game_id", game_id)\
                .order("timestamp")\
                .execute()
            return [HomeGameEventResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def list_pending_requests(self, game_id: str) -> List[HomeGameRequestResponse]:
        try:
            result = self.supabase.table("home_game_requests")\
                .select("*")\
                .eq("game_id", game_id)\
                .eq("status", RequestStatus.PENDING.value)\
                .order("requested_at")\
                .execute()
            return [HomeGameRequestResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def get_game_detail(self, game_id: str) -> HomeGameDetail:
        return HomeGameDetail(
            game=self.get_game(game_id),
            players=self.list_players(game_id),
            pending_requests=self.list_pending_requests(game_id),
            history=self.list_history(game_id)
        )

    def list_active_games_for_group(self, group_id: str) -> List[HomeGameResponse]:
        try:
            result = self.supabase.table("home_games")\
                .select("*")\
                .eq("group_id", group_id)\
                .eq("status", GameStatus.ACTIVE.value)\
                .order("created_at", desc=True)\
                .execute()
            return [HomeGameResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def list_active_games_for_user(self, user_id: str) -> List[HomeGameResponse]:
        """Active games the user hosts or plays in, newest first"""
        try:
            hosted = self.supabase.table("home_games")\
                .select("*")\
                .eq("creator_id", user_id)\
                .eq("status", GameStatus.ACTIVE.value)\
                .execute()
            seats = self.supabase.table("home_game_players")\
                .select("game_id")\
                .eq("user_id", user_id)\
                .execute()
            games = {row["id"]: row for row in hosted.data or []}
            seat_game_ids = [row["game_id"] for row in seats.data or [] if row["game_id"] not in games]
            if seat_game_ids:
                playing = self.supabase.table("home_games")\
                    .select("*")\
                    .in_("id", seat_game_ids)\
                    .eq("status", GameStatus.ACTIVE.value)\
                    .execute()
                games.update({row["id"]: row for row in playing.data or []})
        except Exception as e:
            raise classify_backend_error(e)
        result = [HomeGameResponse(**row) for row in games.values()]
        return sorted(result, key=lambda g: g.created_at, reverse=True)

    # Players

    def _find_player(self, game_id: str, user_id: str) -> Optional[HomeGamePlayerResponse]:
        result = self.supabase.table("home_game_players")\
            .select("*")\
            .eq("game_id", game_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return HomeGamePlayerResponse(**result.data[0]) if result.data else None

    def _get_player(self, game_id: str, player_id: str) -> HomeGamePlayerResponse:
        try:
            result = self.supabase.table("home_game_players")\
                .select("*")\
                .eq("id", player_id)\
                .eq("game_id", game_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Player not found")
        return HomeGamePlayerResponse(**result.data[0])

    def _update_player(self, player_id: str, update_data: dict) -> HomeGamePlayerResponse:
        result = self.supabase.table("home_game_players")\
            .update(update_data)\
            .eq("id", player_id)\
            .execute()
        if not result.data:
            raise NotFoundError("Player not found")
        return HomeGamePlayerResponse(**result.data[0])

    def add_player(self, game_id: str, user_id: str) -> HomeGamePlayerResponse:
        """Seat a user with an empty stack; seating someone twice returns the existing seat"""
        game = self.get_game(game_id)
        self._require_active(game)
        display_name = self._display_name(user_id)
        try:
            existing = self._find_player(game_id, user_id)
            if existing:
                return existing
            result = self.supabase.table("home_game_players").insert({
                "game_id": game_id,
                "user_id": user_id,
                "display_name": display_name,
                "current_stack": 0,
                "total_buy_in": 0,
                "status": PlayerStatus.ACTIVE.value,
                "joined_at": _now()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add player")
            self._record_event(game_id, EventType.PLAYER_JOINED, user_id, display_name, f"{display_name} joined the game.")
            return HomeGamePlayerResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def _credit_buy_in(self, game_id: str, user_id: str, display_name: str, amount: float) -> HomeGamePlayerResponse:
        """Add chips to a seat, re-activating a cashed-out player or seating a new one"""
        player = self._find_player(game_id, user_id)
        if player:
            updated = self._update_player(player.id, {
                "current_stack": player.current_stack + amount,
                "total_buy_in": player.total_buy_in + amount,
                "status": PlayerStatus.ACTIVE.value,
                "cashed_out_at": None
            })
        else:
            result = self.supabase.table("home_game_players").insert({
                "game_id": game_id,
                "user_id": user_id,
                "display_name": display_name,
                "current_stack": amount,
                "total_buy_in": amount,
                "status": PlayerStatus.ACTIVE.value,
                "joined_at": _now()
            }).execute()
            updated = HomeGamePlayerResponse(**result.data[0])
        self._record_event(game_id, EventType.BUY_IN, user_id, display_name,
                           f"{display_name} bought in for {_money(amount)}", amount)
        return updated

    def update_player_values(self, game_id: str, player_id: str, host_id: str, values: PlayerValuesUpdate) -> HomeGamePlayerResponse:
        self._require_host(game_id, host_id, "Only the game creator can edit player values")
        player = self._get_player(game_id, player_id)
        try:
            updated = self._update_player(player_id, {
                "current_stack": values.current_stack,
                "total_buy_in": values.total_buy_in
            })
            self._record_event(
                game_id, EventType.PLAYER_UPDATED, player.user_id, player.display_name,
                f"{player.display_name}'s values updated: "
                f"Stack {_money(player.current_stack)} → {_money(values.current_stack)}, "
                f"Buy-in {_money(player.total_buy_in)} → {_money(values.total_buy_in)}"
            )
            return updated
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    # Buy-ins and cash-outs

    def _create_request(self, game_id: str, kind: RequestKind, user_id: str, display_name: str, amount: float) -> HomeGameRequestResponse:
        result = self.supabase.table("home_game_requests").insert({
            "game_id": game_id,
            "kind": kind.value,
            "user_id": user_id,
            "display_name": display_name,
            "amount": amount,
            "status": RequestStatus.PENDING.value,
            "requested_at": _now()
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create request")
        return HomeGameRequestResponse(**result.data[0])

    def _get_pending_request(self, game_id: str, request_id: str, kind: RequestKind) -> HomeGameRequestResponse:
        try:
            result = self.supabase.table("home_game_requests")\
                .select("*")\
                .eq("id", request_id)\
                .eq("game_id", game_id)\
                .eq("kind", kind.value)\
                .eq("status", RequestStatus.PENDING.value)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            label = "Buy-in" if kind == RequestKind.BUY_IN else "Cash-out"
            raise NotFoundError(f"{label} request not found")
        return HomeGameRequestResponse(**result.data[0])

    def _close_request(self, request_id: str, status: RequestStatus) -> HomeGameRequestResponse:
        result = self.supabase.table("home_game_requests")\
            .update({"status": status.value, "processed_at": _now()})\
            .eq("id", request_id)\
            .execute()
        return HomeGameRequestResponse(**result.data[0])

    def request_buy_in(self, game_id: str, user_id: str, amount: float) -> HomeGameRequestResponse:
        game = self.get_game(game_id)
        self._require_active(game)
        display_name = self._display_name(user_id)
        try:
            request = self._create_request(game_id, RequestKind.BUY_IN, user_id, display_name, amount)
            self._record_event(game_id, EventType.BUY_IN, user_id, display_name,
                               f"{display_name} requested buy-in of {_money(amount)}", amount)
            return request
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def approve_buy_in(self, game_id: str, request_id: str, host_id: str) -> HomeGamePlayerResponse:
        game = self._require_host(game_id, host_id, "Only the game creator can approve buy-ins")
        self._require_active(game)
        request = self._get_pending_request(game_id, request_id, RequestKind.BUY_IN)
        try:
            self._close_request(request.id, RequestStatus.APPROVED)
            return self._credit_buy_in(game_id, request.user_id, request.display_name, request.amount)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def decline_buy_in(self, game_id: str, request_id: str, host_id: str) -> HomeGameRequestResponse:
        self._require_host(game_id, host_id, "Only the game creator can decline buy-ins")
        request = self._get_pending_request(game_id, request_id, RequestKind.BUY_IN)
        try:
            return self._close_request(request.id, RequestStatus.DECLINED)
        except Exception as e:
            raise classify_backend_error(e)

    def host_buy_in(self, game_id: str, host_id: str, amount: float) -> HomeGamePlayerResponse:
        """The host buys in directly, no approval step"""
        game = self._require_host(game_id, host_id, "Only the game creator can use direct buy-in")
        self._require_active(game)
        display_name = self._display_name(host_id)
        try:
            return self._credit_buy_in(game_id, host_id, display_name, amount)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def request_cash_out(self, game_id: str, user_id: str, amount: float) -> HomeGameRequestResponse:
        game = self.get_game(game_id)
        self._require_active(game)
        try:
            player = self._find_player(game_id, user_id)
            if player is None or player.status != PlayerStatus.ACTIVE:
                raise NotFoundError("Player not found in game")
            request = self._create_request(game_id, RequestKind.CASH_OUT, user_id, player.display_name, amount)
            self._record_event(game_id, EventType.CASH_OUT, user_id, player.display_name,
                               f"{player.display_name} requested cash-out of {_money(amount)}", amount)
            return request
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def _cash_out_player(self, game_id: str, player: HomeGamePlayerResponse, amount: float, suffix: str = "") -> HomeGamePlayerResponse:
        updated = self._update_player(player.id, {
            "status": PlayerStatus.CASHED_OUT.value,
            "cashed_out_at": _now(),
            "current_stack": amount
        })
        self._record_event(game_id, EventType.CASH_OUT, player.user_id, player.display_name,
                           f"{player.display_name} cashed out {_money(amount)}{suffix}", amount)
        return updated

    def process_cash_out(self, game_id: str, request_id: str, host_id: str) -> HomeGamePlayerResponse:
        """
        Pay out a pending cash-out request.

        The player leaves the game with the requested amount as their final
        stack. When that leaves nobody seated, the game ends and is settled.
        """
        game = self._require_host(game_id, host_id, "Only the game creator can process cash-outs")
        request = self._get_pending_request(game_id, request_id, RequestKind.CASH_OUT)
        if request.amount <= 0:
            raise InvalidDataError("Cash-out amount must be greater than zero")
        try:
            player = self._find_player(game_id, request.user_id)
            if player is None:
                raise NotFoundError("Player not found in game")
            self._close_request(request.id, RequestStatus.PROCESSED)
            updated = self._cash_out_player(game_id, player, request.amount)

            players = self.list_players(game_id)
            if game.status == GameStatus.ACTIVE and not any(p.status == PlayerStatus.ACTIVE for p in players):
                self._complete(game, host_id, players)
            return updated
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def cash_out_for_game_end(self, game_id: str, player_id: str, host_id: str, amount: float) -> HomeGamePlayerResponse:
        """Host records a player's final stack while wrapping up; zero is allowed"""
        self._require_host(game_id, host_id, "Only the game creator can process cash-outs during game end")
        player = self._get_player(game_id, player_id)
        if player.status != PlayerStatus.ACTIVE:
            raise ConflictError("Player is not active")
        try:
            return self._cash_out_player(game_id, player, amount)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    # Ending

    def _complete(self, game: HomeGameResponse, host_id: str, players: List[HomeGamePlayerResponse]) -> HomeGameResponse:
        settlement = calculate_settlement(players)
        self._record_event(game.id, EventType.GAME_ENDED, host_id, game.creator_name, f"Game ended: {game.title}")
        result = self.supabase.table("home_games")\
            .update({
                "status": GameStatus.COMPLETED.value,
                "settlement_transactions": [t.model_dump() for t in settlement],
                "ended_at": _now()
            })\
            .eq("id", game.id)\
            .execute()
        if not result.data:
            raise NotFoundError("Game not found")
        logger.info(f"Home game {game.id} ended with {len(settlement)} settlement transaction(s)")
        return HomeGameResponse(**result.data[0])

    def end_game(self, game_id: str, host_id: str) -> HomeGameResponse:
        """Cash out everyone still seated at their current stack, then settle"""
        game = self._require_host(game_id, host_id, "Only the game creator can end the game")
        self._require_active(game)
        try:
            for player in self.list_players(game_id):
                if player.status == PlayerStatus.ACTIVE:
                    self._cash_out_player(game_id, player, player.current_stack, " (game ended)")
            return self._complete(game, host_id, self.list_players(game_id))
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    # Invites

    def _pending_invitee_ids(self, game_id: str) -> set:
        result = self.supabase.table("home_game_invites")\
            .select("invited_user_id")\
            .eq("game_id", game_id)\
            .eq("status", InviteStatus.PENDING.value)\
            .execute()
        return {row["invited_user_id"] for row in result.data or []}

    def _invite_row(self, game: HomeGameResponse, user_id: str, display_name: str, message: Optional[str],
                    group_id: Optional[str] = None, group_name: Optional[str] = None) -> dict:
        return {
            "game_id": game.id,
            "game_title": game.title,
            "host_id": game.creator_id,
            "host_name": game.creator_name,
            "invited_user_id": user_id,
            "invited_user_display_name": display_name,
            "invited_group_id": group_id,
            "invited_group_name": group_name,
            "message": message,
            "status": InviteStatus.PENDING.value,
            "created_at": _now()
        }

    def send_invite(self, game_id: str, host_id: str, invite_data: GameInviteCreate) -> GameInviteResponse:
        game = self._require_host(game_id, host_id, "Only the game creator can send invites")
        if game.status != GameStatus.ACTIVE:
            raise ConflictError("Cannot invite to completed games")
        invitee_name = self._display_name(invite_data.invited_user_id)
        try:
            if invite_data.invited_user_id in self._pending_invitee_ids(game_id):
                raise ConflictError("User already has a pending invite")
            if self._find_player(game_id, invite_data.invited_user_id):
                raise ConflictError("User is already playing in this game")
            result = self.supabase.table("home_game_invites").insert(
                self._invite_row(game, invite_data.invited_user_id, invitee_name, invite_data.message)
            ).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send invite")
            return GameInviteResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def send_group_invite(self, game_id: str, host_id: str, invite_data: GroupGameInviteCreate) -> List[GameInviteResponse]:
        """Invite every member of a group who is not already playing or invited"""
        game = self._require_host(game_id, host_id, "Only the game creator can send invites")
        if game.status != GameStatus.ACTIVE:
            raise ConflictError("Cannot invite to completed games")
        try:
            group = self.supabase.table("groups")\
                .select("id, name")\
                .eq("id", invite_data.group_id)\
                .limit(1)\
                .execute()
            if not group.data:
                raise NotFoundError("Group not found")
            if not is_group_member(invite_data.group_id, host_id, self.supabase):
                raise PermissionDeniedError("You must be a member of this group")
            members = self.supabase.table("group_members")\
                .select("user_id")\
                .eq("group_id", invite_data.group_id)\
                .execute()
            skip = {host_id} | self._pending_invitee_ids(game_id) | {p.user_id for p in self.list_players(game_id)}
            invitee_ids = [m["user_id"] for m in members.data or [] if m["user_id"] not in skip]
            if not invitee_ids:
                return []
            group_name = group.data[0]["name"]
            rows = [
                self._invite_row(game, profile.id, profile.display_name or profile.username,
                                 invite_data.message, invite_data.group_id, group_name)
                for profile in self.users.get_profiles_by_ids(invitee_ids)
            ]
            result = self.supabase.table("home_game_invites").insert(rows).execute()
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
        logger.info(f"Sent {len(rows)} invite(s) for home game {game_id} to group {invite_data.group_id}")
        return [GameInviteResponse(**row) for row in result.data or []]

    def list_game_invites(self, game_id: str) -> List[GameInviteResponse]:
        try:
            result = self.supabase.table("home_game_invites")\
                .select("*")\
                .eq("game_id", game_id)\
                .order("created_at", desc=True)\
                .execute()
            return [GameInviteResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def list_pending_invites(self, user_id: str) -> List[GameInviteResponse]:
        """Pending invites for the user, limited to games still running"""
        try:
            result = self.supabase.table("home_game_invites")\
                .select("*")\
                .eq("invited_user_id", user_id)\
                .eq("status", InviteStatus.PENDING.value)\
                .order("created_at", desc=True)\
                .execute()
            invites = [GameInviteResponse(**row) for row in result.data or []]
            if not invites:
                return []
            active = self.supabase.table("home_games")\
                .select("id")\
                .in_("id", list({i.game_id for i in invites}))\
                .eq("status", GameStatus.ACTIVE.value)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        active_ids = {row["id"] for row in active.data or []}
        return [i for i in invites if i.game_id in active_ids]

    def _respond_to_invite(self, invite_id: str, user_id: str, status: InviteStatus) -> GameInviteResponse:
        try:
            result = self.supabase.table("home_game_invites")\
                .select("*")\
                .eq("id", invite_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Invite not found")
        invite = GameInviteResponse(**result.data[0])
        if invite.invited_user_id != user_id:
            raise PermissionDeniedError("This invite is for someone else")
        if invite.status != InviteStatus.PENDING:
            raise ConflictError("Invite is no longer pending")
        if status == InviteStatus.ACCEPTED:
            self._require_active(self.get_game(invite.game_id))
        try:
            updated = self.supabase.table("home_game_invites")\
                .update({"status": status.value, "responded_at": _now()})\
                .eq("id", invite_id)\
                .execute()
            return GameInviteResponse(**updated.data[0])
        except Exception as e:
            raise classify_backend_error(e)

    def accept_invite(self, invite_id: str, user_id: str) -> GameInviteResponse:
        """Accepting does not seat the player; they follow up with a buy-in request"""
        return self._respond_to_invite(invite_id, user_id, InviteStatus.ACCEPTED)

    def decline_invite(self, invite_id: str, user_id: str) -> GameInviteResponse:
        return self._respond_to_invite(invite_id, user_id, InviteStatus.DECLINED)
