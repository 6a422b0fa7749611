from pydantic import BaseModel, Field, computed_field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


class ChallengeType(str, Enum):
    BANKROLL = "bankroll"
    HANDS = "hands"
    SESSION = "session"


class ChallengeStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


class ChallengeCreate(BaseModel):
    type: ChallengeType
    title: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    target_value: float = Field(..., gt=0)
    end_date: Optional[datetime] = None
    is_public: bool = True
    starting_bankroll: Optional[float] = None
    target_hand_count: Optional[int] = Field(None, gt=0)
    target_session_count: Optional[int] = Field(None, gt=0)
    target_hours: Optional[float] = Field(None, gt=0)
    min_hours_per_session: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def check_type_fields(self):
        if self.type == ChallengeType.SESSION and not (self.target_session_count or self.target_hours):
            raise ValueError("Session challenges need target_session_count or target_hours")
        if self.type == ChallengeType.BANKROLL and self.starting_bankroll is None:
            raise ValueError("Bankroll challenges need starting_bankroll")
        return self


class ChallengeProgressUpdate(BaseModel):
    current_value: float
    trigger_event: str = "manual"
    related_entity_id: Optional[str] = None


class ChallengeResponse(BaseModel):
    id: str
    user_id: str
    type: ChallengeType
    title: str
    description: str = ""
    target_value: float
    current_value: float = 0
    start_date: datetime
    end_date: Optional[datetime] = None
    status: ChallengeStatus = ChallengeStatus.ACTIVE
    is_public: bool = True
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    starting_bankroll: Optional[float] = None
    target_hand_count: Optional[int] = None
    target_session_count: Optional[int] = None
    target_hours: Optional[float] = None
    min_hours_per_session: Optional[float] = None
    current_session_count: int = 0
    valid_sessions_count: int = 0
    total_hours_played: float = 0
    counted_session_ids: List[str] = []

    @computed_field
    @property
    def progress_percentage(self) -> float:
        if self.target_value <= 0:
            return 0.0
        return min(max(self.current_value / self.target_value * 100, 0.0), 100.0)

    @computed_field
    @property
    def remaining_value(self) -> float:
        return max(self.target_value - self.current_value, 0.0)

    class Config:
        from_attributes = True


class ChallengeProgressResponse(BaseModel):
    id: Optional[str] = None
    challenge_id: str
    user_id: str
    progress_value: float
    trigger_event: str
    related_entity_id: Optional[str] = None
    timestamp: Optional[datetime] = None
