from supabase import Client
from stack_api.modules.analytics.filters import AnalyticsFilter, TimeRange, in_range
from stack_api.modules.analytics.schemas import (
    AnalyticsSummaryResponse, BestSession, NamedProfit, ProfitPoint, MonthlyProfit,
    DayOfWeekStats, HighlightsResponse, LocationCount, Multiplier
)
from stack_api.modules.analytics import stats
from stack_api.modules.sessions.schemas import SessionResponse
from stack_api.modules.sessions.service import SessionService
from stack_api.modules.bankroll.service import BankrollService
from typing import List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Builds the analytics views for one user.

    Sessions are loaded once per call; the filter applies to every metric
    and the time range only narrows the range profit and the profit series.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.sessions = SessionService(supabase)
        self.bankroll = BankrollService(supabase)

    def _filtered(self, user_id: str, analytics_filter: AnalyticsFilter) -> List[SessionResponse]:
        sessions = self.sessions.list_sessions(user_id)
        return analytics_filter.apply(sessions)

    def summary(
        self,
        user_id: str,
        time_range: TimeRange = TimeRange.WEEK,
        analytics_filter: Optional[AnalyticsFilter] = None,
        now: Optional[datetime] = None
    ) -> AnalyticsSummaryResponse:
        analytics_filter = analytics_filter or AnalyticsFilter()
        now = now or datetime.now(timezone.utc)
        profit = analytics_filter.profit_of

        sessions = self._filtered(user_id, analytics_filter)
        ranged = in_range(sessions, time_range, now)
        bankroll_summary = self.bankroll.get_summary(user_id)
        transactions = self.bankroll.list_transactions(user_id)
        logger.debug(f"Analytics for {user_id}: {len(sessions)} sessions, {len(ranged)} in {time_range.value}")

        best = stats.best_session(sessions, profit)
        location = stats.best_location(sessions, profit)
        stake = stats.best_stake(sessions, profit)
        return AnalyticsSummaryResponse(
            time_range=time_range,
            time_range_label=time_range.label,
            filter_active=analytics_filter.is_active,
            total_sessions=len(sessions),
            win_rate=stats.win_rate(sessions, profit),
            average_profit=stats.average_profit(sessions, profit),
            best_session=BestSession(profit=best[0], session_id=best[1]) if best else None,
            total_hours=stats.total_hours(sessions),
            average_session_length=stats.average_session_length(sessions),
            dollar_per_hour=stats.dollar_per_hour(sessions, profit),
            bb_per_hour=stats.bb_per_hour(sessions, profit),
            longest_winning_streak=stats.longest_winning_streak(sessions, profit),
            longest_losing_streak=stats.longest_losing_streak(sessions, profit),
            best_location=NamedProfit(name=location[0], profit=location[1]) if location else None,
            best_stake=NamedProfit(name=stake[0], profit=stake[1]) if stake else None,
            standard_deviation=stats.profit_standard_deviation(sessions, profit),
            tournament_roi=stats.tournament_roi(sessions, profit),
            selected_range_profit=stats.total_profit(ranged, profit),
            total_bankroll=stats.total_profit(sessions, profit) + bankroll_summary.current_total,
            current_month_profit=stats.current_month_profit(sessions, transactions, now, profit),
            top_games=stats.top_games(sessions)
        )

    def profit_series(
        self,
        user_id: str,
        time_range: TimeRange = TimeRange.WEEK,
        analytics_filter: Optional[AnalyticsFilter] = None,
        now: Optional[datetime] = None
    ) -> List[ProfitPoint]:
        analytics_filter = analytics_filter or AnalyticsFilter()
        now = now or datetime.now(timezone.utc)
        ranged = in_range(self._filtered(user_id, analytics_filter), time_range, now)
        return [
            ProfitPoint(bucket_start=start, profit=value, cumulative=running)
            for start, value, running in stats.profit_series(ranged, time_range, analytics_filter.profit_of)
        ]

    def monthly_profits(
        self,
        user_id: str,
        analytics_filter: Optional[AnalyticsFilter] = None,
        now: Optional[datetime] = None
    ) -> List[MonthlyProfit]:
        analytics_filter = analytics_filter or AnalyticsFilter()
        now = now or datetime.now(timezone.utc)
        sessions = self._filtered(user_id, analytics_filter)
        transactions = self.bankroll.list_transactions(user_id)
        return [
            MonthlyProfit(month=month, profit=value)
            for month, value in stats.monthly_profits(sessions, transactions, now, profit=analytics_filter.profit_of)
        ]

    def day_of_week(
        self,
        user_id: str,
        time_range: TimeRange = TimeRange.YEAR,
        analytics_filter: Optional[AnalyticsFilter] = None,
        now: Optional[datetime] = None
    ) -> List[DayOfWeekStats]:
        analytics_filter = analytics_filter or AnalyticsFilter()
        now = now or datetime.now(timezone.utc)
        ranged = in_range(self._filtered(user_id, analytics_filter), time_range, now)
        return [
            DayOfWeekStats(day_of_week=day, day_name=name, profit=value, hours=hours, session_count=count)
            for day, name, value, hours, count in stats.day_of_week_breakdown(ranged, analytics_filter.profit_of)
        ]

    def highlights(self, user_id: str, analytics_filter: Optional[AnalyticsFilter] = None) -> HighlightsResponse:
        sessions = self._filtered(user_id, analytics_filter or AnalyticsFilter())
        label, dominant = stats.persona(sessions)
        location = stats.top_location(sessions)
        multiplier = stats.best_multiplier(sessions)
        return HighlightsResponse(
            persona=label,
            dominant_hours=dominant,
            top_location=LocationCount(location=location[0], count=location[1]) if location else None,
            best_multiplier=Multiplier(
                ratio=multiplier[0],
                session_id=multiplier[1].id,
                buy_in=multiplier[1].buy_in,
                cashout=multiplier[1].cashout
            ) if multiplier else None
        )
