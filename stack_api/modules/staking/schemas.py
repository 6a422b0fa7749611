from pydantic import BaseModel, Field, computed_field
from typing import Optional
from datetime import datetime
from enum import Enum


class StakeStatus(str, Enum):
    PENDING_ACCEPTANCE = "pending_acceptance"
    ACTIVE = "active"
    AWAITING_SETTLEMENT = "awaiting_settlement"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SETTLED = "settled"
    DECLINED = "declined"
    CANCELLED = "cancelled"


# Stakes in these states no longer move money
INACTIVE_STATUSES = (StakeStatus.DECLINED, StakeStatus.CANCELLED)


def staker_cost(buy_in: float, percentage: float, markup: float) -> float:
    return buy_in * percentage * markup


def staker_share_of_cashout(cashout: float, percentage: float) -> float:
    return cashout * percentage


def amount_transferred_at_settlement(buy_in: float, cashout: float, percentage: float, markup: float) -> float:
    """Positive: player pays staker. Negative: staker pays player."""
    return staker_share_of_cashout(cashout, percentage) - staker_cost(buy_in, percentage, markup)


class StakeCreate(BaseModel):
    session_id: str
    session_game_name: str
    session_stakes: str
    session_date: datetime
    staker_user_id: str
    staked_player_user_id: str
    stake_percentage: float = Field(..., gt=0, le=1)
    markup: float = Field(1.0, gt=0)
    total_player_buy_in_for_session: float = Field(..., ge=0)
    player_cashout_for_session: float = Field(..., ge=0)
    is_tournament_session: bool = False


class StakeUpdate(BaseModel):
    stake_percentage: Optional[float] = Field(None, gt=0, le=1)
    markup: Optional[float] = Field(None, gt=0)


class StakeResponse(BaseModel):
    id: str
    session_id: str
    session_game_name: str
    session_stakes: str
    session_date: datetime
    staker_user_id: str
    staked_player_user_id: str
    stake_percentage: float
    markup: float
    total_player_buy_in_for_session: float
    player_cashout_for_session: float
    status: StakeStatus = StakeStatus.AWAITING_SETTLEMENT
    is_tournament_session: bool = False
    settlement_initiator_user_id: Optional[str] = None
    settlement_confirmer_user_id: Optional[str] = None
    proposed_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None

    @computed_field
    @property
    def player_session_net_result(self) -> float:
        return self.player_cashout_for_session - self.total_player_buy_in_for_session

    @computed_field
    @property
    def staker_cost(self) -> float:
        return staker_cost(self.total_player_buy_in_for_session, self.stake_percentage, self.markup)

    @computed_field
    @property
    def staker_share_of_cashout(self) -> float:
        return staker_share_of_cashout(self.player_cashout_for_session, self.stake_percentage)

    @computed_field
    @property
    def amount_transferred_at_settlement(self) -> float:
        return amount_transferred_at_settlement(
            self.total_player_buy_in_for_session,
            self.player_cashout_for_session,
            self.stake_percentage,
            self.markup,
        )

    class Config:
        from_attributes = True
