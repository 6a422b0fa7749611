from pydantic import BaseModel, Field, computed_field
from typing import Optional, List
from datetime import datetime


class SessionCreate(BaseModel):
    game_type: str
    game_name: str
    stakes: str
    start_date: datetime
    start_time: datetime
    end_time: datetime
    hours_played: Optional[float] = Field(None, ge=0)
    buy_in: float = Field(..., ge=0)
    cashout: float = Field(..., ge=0)
    profit: Optional[float] = None
    notes: Optional[List[str]] = None
    live_session_uuid: Optional[str] = None
    location: Optional[str] = None
    tournament_type: Optional[str] = None
    series: Optional[str] = None
    poker_variant: Optional[str] = None
    tournament_game_type: Optional[str] = None
    tournament_format: Optional[str] = None


class SessionUpdate(BaseModel):
    game_type: Optional[str] = None
    game_name: Optional[str] = None
    stakes: Optional[str] = None
    start_date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    hours_played: Optional[float] = Field(None, ge=0)
    buy_in: Optional[float] = Field(None, ge=0)
    cashout: Optional[float] = Field(None, ge=0)
    notes: Optional[List[str]] = None
    location: Optional[str] = None
    tournament_type: Optional[str] = None
    series: Optional[str] = None
    poker_variant: Optional[str] = None
    tournament_game_type: Optional[str] = None
    tournament_format: Optional[str] = None


class SessionResponse(BaseModel):
    id: str
    user_id: str
    game_type: str = ""
    game_name: str = ""
    stakes: str = ""
    start_date: datetime
    start_time: datetime
    end_time: datetime
    hours_played: float = 0
    buy_in: float = 0
    cashout: float = 0
    profit: float = 0
    adjusted_profit: Optional[float] = None
    created_at: Optional[datetime] = None
    notes: Optional[List[str]] = None
    live_session_uuid: Optional[str] = None
    location: Optional[str] = None
    tournament_type: Optional[str] = None
    series: Optional[str] = None
    poker_variant: Optional[str] = None
    tournament_game_type: Optional[str] = None
    tournament_format: Optional[str] = None

    @computed_field
    @property
    def effective_profit(self) -> float:
        return self.adjusted_profit if self.adjusted_profit is not None else self.profit

    class Config:
        from_attributes = True


class MaintenanceResult(BaseModel):
    updated: int
