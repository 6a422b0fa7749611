"""
Session filters for the analytics views.

A filter is applied client-side over the already loaded sessions, so every
predicate here is a plain function of one session.
"""

from enum import Enum
from datetime import datetime, timedelta, timezone, date
from typing import Optional, List, Set, Iterable
from pydantic import BaseModel, Field
from stack_api.modules.sessions.schemas import SessionResponse


class TimeRange(str, Enum):
    DAY = "24H"
    WEEK = "1W"
    MONTH = "1M"
    SIX_MONTHS = "6M"
    YEAR = "1Y"
    ALL = "ALL"

    @property
    def label(self) -> str:
        return _RANGE_LABELS[self]

    def start(self, now: datetime) -> Optional[datetime]:
        """Earliest start_date kept by the range, None for ALL"""
        if self == TimeRange.DAY:
            return now - timedelta(days=1)
        if self == TimeRange.WEEK:
            return now - timedelta(weeks=1)
        if self == TimeRange.MONTH:
            return shift_months(now, -1)
        if self == TimeRange.SIX_MONTHS:
            return shift_months(now, -6)
        if self == TimeRange.YEAR:
            return shift_months(now, -12)
        return None


_RANGE_LABELS = {
    TimeRange.DAY: "day",
    TimeRange.WEEK: "week",
    TimeRange.MONTH: "month",
    TimeRange.SIX_MONTHS: "6 months",
    TimeRange.YEAR: "year",
    TimeRange.ALL: "ever",
}


def shift_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def in_range(sessions: Iterable[SessionResponse], time_range: TimeRange, now: datetime) -> List[SessionResponse]:
    start = time_range.start(as_utc(now))
    if start is None:
        return list(sessions)
    return [s for s in sessions if as_utc(s.start_date) >= start]


class GameTypeFilter(str, Enum):
    ALL = "all"
    CASH = "cash"
    TOURNAMENT = "tournament"


class StakeLevel(str, Enum):
    ALL = "all"
    MICRO = "micro"
    LOW = "low"
    MID = "mid"
    HIGH = "high"


class SessionLength(str, Enum):
    ALL = "all"
    UNDER_TWO = "under2"
    TWO_TO_FOUR = "two_to_four"
    OVER_FOUR = "over4"


class Profitability(str, Enum):
    ALL = "all"
    WINNING = "winning"
    LOSING = "losing"
    BREAK_EVEN = "break_even"


class TimeOfDay(str, Enum):
    ALL = "all"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


def stake_level(stakes: str) -> StakeLevel:
    """Bucket "$sb/$bb" stakes by big blind; anything else only matches ALL"""
    parts = (stakes or "").replace(" $", "").replace("$", "").split("/")
    if len(parts) != 2:
        return StakeLevel.ALL
    try:
        big_blind = float(parts[1])
    except ValueError:
        return StakeLevel.ALL
    if big_blind <= 0:
        return StakeLevel.ALL
    if big_blind < 1:
        return StakeLevel.MICRO
    if big_blind < 3:
        return StakeLevel.LOW
    if big_blind < 10:
        return StakeLevel.MID
    return StakeLevel.HIGH


def time_of_day(hour: int) -> TimeOfDay:
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


class AnalyticsFilter(BaseModel):
    game_type: GameTypeFilter = GameTypeFilter.ALL
    stake_level: StakeLevel = StakeLevel.ALL
    location: Optional[str] = None
    session_length: SessionLength = SessionLength.ALL
    profitability: Profitability = Profitability.ALL
    time_of_day: TimeOfDay = TimeOfDay.ALL
    weekdays: Set[int] = Field(default_factory=set)
    custom_start: Optional[datetime] = None
    custom_end: Optional[datetime] = None
    show_raw_profits: bool = False

    @property
    def is_active(self) -> bool:
        return self != AnalyticsFilter()

    def profit_of(self, session: SessionResponse) -> float:
        return session.profit if self.show_raw_profits else session.effective_profit

    def matches(self, session: SessionResponse) -> bool:
        if self.game_type != GameTypeFilter.ALL:
            if self.game_type.value not in (session.game_type or "").lower():
                return False

        if self.stake_level != StakeLevel.ALL and stake_level(session.stakes) != self.stake_level:
            return False

        if self.location and (session.game_name or "").strip() != self.location.strip():
            return False

        hours = session.hours_played or 0.0
        if self.session_length == SessionLength.UNDER_TWO and not hours < 2:
            return False
        if self.session_length == SessionLength.TWO_TO_FOUR and not 2 <= hours <= 4:
            return False
        if self.session_length == SessionLength.OVER_FOUR and not hours > 4:
            return False

        profit = self.profit_of(session)
        if self.profitability == Profitability.WINNING and not profit > 0:
            return False
        if self.profitability == Profitability.LOSING and not profit < 0:
            return False
        if self.profitability == Profitability.BREAK_EVEN and profit != 0:
            return False

        if self.time_of_day != TimeOfDay.ALL and time_of_day(session.start_time.hour) != self.time_of_day:
            return False

        if self.weekdays and session.start_date.weekday() not in self.weekdays:
            return False

        start = as_utc(session.start_date)
        if self.custom_start and start < as_utc(self.custom_start):
            return False
        if self.custom_end and start > as_utc(self.custom_end):
            return False
        return True

    def apply(self, sessions: Iterable[SessionResponse]) -> List[SessionResponse]:
        return [s for s in sessions if self.matches(s)]
