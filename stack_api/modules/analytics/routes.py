from fastapi import APIRouter, Depends, Query
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.analytics.filters import (
    AnalyticsFilter, TimeRange, GameTypeFilter, StakeLevel, SessionLength, Profitability, TimeOfDay
)
from stack_api.modules.analytics.schemas import (
    AnalyticsSummaryResponse, ProfitPoint, MonthlyProfit, DayOfWeekStats, HighlightsResponse
)
from stack_api.modules.analytics.service import AnalyticsService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional
from datetime import datetime

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_analytics_service(supabase: Client = Depends(get_supabase)) -> AnalyticsService:
    return AnalyticsService(supabase)


def get_analytics_filter(
    game_type: GameTypeFilter = GameTypeFilter.ALL,
    stake_level: StakeLevel = StakeLevel.ALL,
    location: Optional[str] = None,
    session_length: SessionLength = SessionLength.ALL,
    profitability: Profitability = Profitability.ALL,
    time_of_day: TimeOfDay = TimeOfDay.ALL,
    weekdays: List[int] = Query(default=[], description="0 = Monday ... 6 = Sunday"),
    custom_start: Optional[datetime] = None,
    custom_end: Optional[datetime] = None,
    show_raw_profits: bool = False
) -> AnalyticsFilter:
    return AnalyticsFilter(
        game_type=game_type,
        stake_level=stake_level,
        location=location,
        session_length=session_length,
        profitability=profitability,
        time_of_day=time_of_day,
        weekdays=set(weekdays),
        custom_start=custom_start,
        custom_end=custom_end,
        show_raw_profits=show_raw_profits
    )


@router.get("/summary", response_model=AnalyticsSummaryResponse)
async def get_summary(
    time_range: TimeRange = TimeRange.WEEK,
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter),
    user_data: Dict = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.summary(user_data["id"], time_range, analytics_filter)


@router.get("/profit-series", response_model=List[ProfitPoint])
async def get_profit_series(
    time_range: TimeRange = TimeRange.WEEK,
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter),
    user_data: Dict = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.profit_series(user_data["id"], time_range, analytics_filter)


@router.get("/monthly", response_model=List[MonthlyProfit])
async def get_monthly_profits(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter),
    user_data: Dict = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Profit for each of the last twelve months, bankroll adjustments included"""
    return service.monthly_profits(user_data["id"], analytics_filter)


@router.get("/day-of-week", response_model=List[DayOfWeekStats])
async def get_day_of_week(
    time_range: TimeRange = TimeRange.YEAR,
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter),
    user_data: Dict = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.day_of_week(user_data["id"], time_range, analytics_filter)


@router.get("/highlights", response_model=HighlightsResponse)
async def get_highlights(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter),
    user_data: Dict = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.highlights(user_data["id"], analytics_filter)
