from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from stack_api.modules.analytics.filters import TimeRange


class BestSession(BaseModel):
    profit: float
    session_id: str


class NamedProfit(BaseModel):
    name: str
    profit: float


class AnalyticsSummaryResponse(BaseModel):
    time_range: TimeRange
    time_range_label: str
    filter_active: bool
    total_sessions: int
    win_rate: float
    average_profit: float
    best_session: Optional[BestSession] = None
    total_hours: float
    average_session_length: float
    dollar_per_hour: float
    bb_per_hour: float
    longest_winning_streak: int
    longest_losing_streak: int
    best_location: Optional[NamedProfit] = None
    best_stake: Optional[NamedProfit] = None
    standard_deviation: float
    tournament_roi: float
    selected_range_profit: float
    total_bankroll: float
    current_month_profit: float
    top_games: List[str]


class ProfitPoint(BaseModel):
    bucket_start: datetime
    profit: float
    cumulative: float


class MonthlyProfit(BaseModel):
    month: str
    profit: float


class DayOfWeekStats(BaseModel):
    day_of_week: int
    day_name: str
    profit: float
    hours: float
    session_count: int


class Multiplier(BaseModel):
    ratio: float
    session_id: str
    buy_in: float
    cashout: float


class LocationCount(BaseModel):
    location: str
    count: int


class HighlightsResponse(BaseModel):
    persona: str
    dominant_hours: str
    top_location: Optional[LocationCount] = None
    best_multiplier: Optional[Multiplier] = None
