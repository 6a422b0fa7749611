from pydantic import BaseModel, Field, computed_field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class GameStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class PlayerStatus(str, Enum):
    ACTIVE = "active"
    CASHED_OUT = "cashed_out"


class RequestKind(str, Enum):
    BUY_IN = "buy_in"
    CASH_OUT = "cash_out"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    PROCESSED = "processed"


class EventType(str, Enum):
    GAME_CREATED = "game_created"
    PLAYER_JOINED = "player_joined"
    BUY_IN = "buy_in"
    CASH_OUT = "cash_out"
    PLAYER_UPDATED = "player_updated"
    GAME_ENDED = "game_ended"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class HomeGameCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    group_id: Optional[str] = None
    small_blind: Optional[float] = Field(None, ge=0)
    big_blind: Optional[float] = Field(None, ge=0)
    initial_player_ids: List[str] = []


class AmountRequest(BaseModel):
    amount: float = Field(..., gt=0)


class CashOutAmount(BaseModel):
    """Cash-outs may be zero when a player busts"""
    amount: float = Field(..., ge=0)


class PlayerValuesUpdate(BaseModel):
    current_stack: float = Field(..., ge=0)
    total_buy_in: float = Field(..., ge=0)


class GameInviteCreate(BaseModel):
    invited_user_id: str
    message: Optional[str] = Field(None, max_length=500)


class GroupGameInviteCreate(BaseModel):
    group_id: str
    message: Optional[str] = Field(None, max_length=500)


class SettlementTransaction(BaseModel):
    from_user_id: str
    from_player: str
    to_user_id: str
    to_player: str
    amount: float
    index: int


class HomeGameResponse(BaseModel):
    id: str
    title: str
    creator_id: str
    creator_name: str
    group_id: Optional[str] = None
    status: GameStatus = GameStatus.ACTIVE
    small_blind: Optional[float] = None
    big_blind: Optional[float] = None
    settlement_transactions: List[SettlementTransaction] = []
    created_at: datetime
    ended_at: Optional[datetime] = None

    @computed_field
    @property
    def stakes(self) -> Optional[str]:
        if self.small_blind is None or self.big_blind is None:
            return None
        return f"${self.small_blind:g}/${self.big_blind:g}"

    class Config:
        from_attributes = True


class HomeGamePlayerResponse(BaseModel):
    id: str
    game_id: str
    user_id: str
    display_name: str
    current_stack: float = 0
    total_buy_in: float = 0
    status: PlayerStatus = PlayerStatus.ACTIVE
    joined_at: datetime
    cashed_out_at: Optional[datetime] = None

    @computed_field
    @property
    def net(self) -> float:
        return self.current_stack - self.total_buy_in

    class Config:
        from_attributes = True


class HomeGameRequestResponse(BaseModel):
    id: str
    game_id: str
    kind: RequestKind
    user_id: str
    display_name: str
    amount: float
    status: RequestStatus = RequestStatus.PENDING
    requested_at: datetime
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HomeGameEventResponse(BaseModel):
    id: str
    game_id: str
    event_type: EventType
    user_id: str
    user_name: str
    amount: Optional[float] = None
    description: str
    timestamp: datetime

    class Config:
        from_attributes = True


class HomeGameDetail(BaseModel):
    game: HomeGameResponse
    players: List[HomeGamePlayerResponse] = []
    pending_requests: List[HomeGameRequestResponse] = []
    history: List[HomeGameEventResponse] = []


class GameInviteResponse(BaseModel):
    id: str
    game_id: str
    game_title: str
    host_id: str
    host_name: str
    invited_user_id: str
    invited_user_display_name: str
    invited_group_id: Optional[str] = None
    invited_group_name: Optional[str] = None
    message: Optional[str] = None
    status: InviteStatus = InviteStatus.PENDING
    created_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True
