"""
Unit tests for stack_api.modules.analytics.stats.

Tests cover:
  • Headline metrics (profit, win rate, $/hr, BB/hr, streaks, std dev, ROI)
  • Raw vs staking-adjusted profit
  • Best location, best stake and top games
  • Profit series bucketing, monthly profits and day-of-week breakdown
  • Highlights: persona, top location and best multiplier
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stack_api.modules.analytics import stats
from stack_api.modules.analytics.filters import TimeRange
from stack_api.modules.bankroll.schemas import BankrollTransactionResponse


def at(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def transaction(amount, when):
    return BankrollTransactionResponse(id="t", user_id="u1", amount=amount, timestamp=when)


def raw(session):
    return session.profit


# ---------------------------------------------------------------------------
# Headline metrics
# ---------------------------------------------------------------------------

class TestHeadlineMetrics:
    def test_empty_inputs(self):
        assert stats.total_profit([]) == 0
        assert stats.win_rate([]) == 0
        assert stats.average_profit([]) == 0
        assert stats.best_session([]) is None
        assert stats.dollar_per_hour([]) == 0
        assert stats.bb_per_hour([]) == 0
        assert stats.profit_standard_deviation([]) == 0

    def test_adjusted_profit_wins_over_raw(self, make_session):
        sessions = [make_session(buy_in=100, cashout=300, adjusted_profit=120), make_session(buy_in=100, cashout=50)]
        assert stats.total_profit(sessions) == pytest.approx(70)
        assert stats.total_profit(sessions, raw) == pytest.approx(150)

    def test_win_rate_and_average(self, make_session):
        sessions = [
            make_session(buy_in=100, cashout=200),
            make_session(buy_in=100, cashout=100),
            make_session(buy_in=100, cashout=0),
            make_session(buy_in=100, cashout=400),
        ]
        assert stats.win_rate(sessions) == pytest.approx(50)
        assert stats.average_profit(sessions) == pytest.approx(75)

    def test_best_session_returns_profit_and_id(self, make_session):
        sessions = [make_session(id="a", cashout=600), make_session(id="b", cashout=900)]
        assert stats.best_session(sessions) == (400, "b")

    def test_dollar_per_hour(self, make_session):
        sessions = [make_session(hours=3, buy_in=0, cashout=300), make_session(hours=2, buy_in=100, cashout=0)]
        assert stats.total_hours(sessions) == 5
        assert stats.average_session_length(sessions) == pytest.approx(2.5)
        assert stats.dollar_per_hour(sessions) == pytest.approx(40)

    def test_bb_per_hour_weights_by_hours(self, make_session):
        sessions = [
            make_session(stakes="$1/$2", hours=4, buy_in=0, cashout=200),
            make_session(stakes="$1/$2", hours=2, buy_in=0, cashout=100),
            make_session(stakes="$2/$5", hours=5, buy_in=0, cashout=500),
        ]
        # 150 BB over 6h and 100 BB over 5h
        assert stats.bb_per_hour(sessions) == pytest.approx(250 / 11)

    def test_bb_per_hour_skips_tournaments_and_zero_hours(self, make_session):
        sessions = [
            make_session(stakes="$1/$2", hours=2, buy_in=0, cashout=40),
            make_session(game_type="Tournament", stakes="$1/$2", hours=5, buy_in=0, cashout=9000),
            make_session(stakes="$1/$2", hours=0, buy_in=0, cashout=9000),
            make_session(stakes="Home", hours=3, buy_in=0, cashout=9000),
        ]
        assert stats.bb_per_hour(sessions) == pytest.approx(10)

    def test_streaks_follow_start_date(self, make_session):
        results = [50, 20, -10, 30, 40, 60]
        sessions = [
            make_session(start=at(2024, 3, day + 1), buy_in=0, cashout=0, profit=p)
            for day, p in enumerate(results)
        ]
        shuffled = list(reversed(sessions))
        assert stats.longest_winning_streak(shuffled) == 3
        assert stats.longest_losing_streak(shuffled) == 1

    def test_standard_deviation_is_sample(self, make_session):
        sessions = [make_session(buy_in=100, cashout=200), make_session(buy_in=200, cashout=100)]
        assert stats.profit_standard_deviation(sessions) == pytest.approx(141.421356, rel=1e-6)

    def test_standard_deviation_single_session(self, make_session):
        assert stats.profit_standard_deviation([make_session()]) == 0

    def test_tournament_roi(self, make_session):
        sessions = [
            make_session(game_type="Tournament", buy_in=100, cashout=300),
            make_session(game_type="MTT", buy_in=100, cashout=0),
            make_session(game_type="Cash Game", buy_in=1000, cashout=5000),
        ]
        assert stats.tournament_roi(sessions) == pytest.approx(50)

    def test_tournament_roi_without_tournaments(self, make_session):
        assert stats.tournament_roi([make_session()]) == 0

    def test_current_month_profit_includes_transactions(self, make_session):
        now = at(2024, 3, 20)
        sessions = [make_session(start=at(2024, 3, 2)), make_session(start=at(2024, 2, 28))]
        transactions = [transaction(-50, at(2024, 3, 5)), transaction(1000, at(2023, 3, 5))]
        assert stats.current_month_profit(sessions, transactions, now) == pytest.approx(150)


# ---------------------------------------------------------------------------
# Groupings
# ---------------------------------------------------------------------------

class TestGroupings:
    def test_best_location_merges_stakes(self, make_session):
        sessions = [
            make_session(game_name="Bellagio $2/$5", buy_in=0, cashout=200),
            make_session(game_name="Bellagio $1/$2", buy_in=100, cashout=0),
            make_session(game_name="Aria $2/$5", buy_in=0, cashout=50),
        ]
        assert stats.best_location(sessions) == ("Bellagio", 100)

    def test_best_stake(self, make_session):
        sessions = [
            make_session(stakes="$1/$2", buy_in=0, cashout=300),
            make_session(stakes="$2/$5", buy_in=0, cashout=200),
            make_session(stakes="$2/$5", buy_in=0, cashout=200),
        ]
        assert stats.best_stake(sessions) == ("$2/$5", 400)

    def test_best_location_empty(self):
        assert stats.best_location([]) is None

    def test_top_games(self, make_session):
        names = ["Aria", "Bellagio ", "Bellagio", "Wynn", "Aria", "Bellagio", "", "Venetian", "Borgata", "Hustler"]
        sessions = [make_session(game_name=n) for n in names]
        top = stats.top_games(sessions)
        assert top[:2] == ["Bellagio", "Aria"]
        assert len(top) == 5
        assert "" not in top


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------

class TestSeries:
    def test_week_buckets_by_day(self, make_session):
        sessions = [
            make_session(start=at(2024, 3, 5, 10), buy_in=0, cashout=100),
            make_session(start=at(2024, 3, 5, 22), buy_in=50, cashout=0),
            make_session(start=at(2024, 3, 4, 20), buy_in=0, cashout=30),
        ]
        series = stats.profit_series(sessions, TimeRange.WEEK)
        assert series == [
            (at(2024, 3, 4), 30, 30),
            (at(2024, 3, 5), 50, 80),
        ]

    def test_day_buckets_by_hour(self, make_session):
        sessions = [make_session(start=at(2024, 3, 5, 10, 15)), make_session(start=at(2024, 3, 5, 10, 45))]
        series = stats.profit_series(sessions, TimeRange.DAY)
        assert [point[0] for point in series] == [at(2024, 3, 5, 10)]

    def test_six_months_buckets_by_monday_week(self, make_session):
        sessions = [
            make_session(start=at(2024, 3, 4), buy_in=0, cashout=10),
            make_session(start=at(2024, 3, 10), buy_in=0, cashout=20),
            make_session(start=at(2024, 3, 11), buy_in=0, cashout=5),
        ]
        series = stats.profit_series(sessions, TimeRange.SIX_MONTHS)
        assert series == [(at(2024, 3, 4), 30, 30), (at(2024, 3, 11), 5, 35)]

    def test_year_buckets_by_month(self, make_session):
        sessions = [make_session(start=at(2024, 1, 31)), make_session(start=at(2024, 1, 2))]
        series = stats.profit_series(sessions, TimeRange.YEAR)
        assert series == [(at(2024, 1, 1), 400, 400)]

    def test_monthly_profits_last_twelve_months(self, make_session):
        now = at(2024, 3, 15)
        sessions = [make_session(start=at(2024, 3, 1)), make_session(start=at(2023, 3, 1))]
        transactions = [transaction(50, at(2024, 2, 10))]
        months = stats.monthly_profits(sessions, transactions, now)
        assert len(months) == 12
        assert months[0] == ("Apr", 0)
        assert months[-2] == ("Feb", 50)
        assert months[-1] == ("Mar", 200)

    def test_day_of_week_breakdown(self, make_session):
        sessions = [make_session(start=at(2024, 3, 4)), make_session(start=at(2024, 3, 11))]
        breakdown = stats.day_of_week_breakdown(sessions)
        assert breakdown[0] == (0, "Monday", 400, 8, 2)
        assert breakdown[6] == (6, "Sunday", 0, 0, 0)


# ---------------------------------------------------------------------------
# Highlights
# ---------------------------------------------------------------------------

class TestHighlights:
    def test_persona_majority(self, make_session):
        sessions = [make_session(start=at(2024, 3, 4, 18)) for _ in range(3)]
        sessions.append(make_session(start=at(2024, 3, 4, 8)))
        assert stats.persona(sessions) == ("Evening Shark", "Evening: 75%")

    def test_persona_tie_keeps_earlier_period(self, make_session):
        sessions = [make_session(start=at(2024, 3, 4, 23)), make_session(start=at(2024, 3, 4, 9))]
        assert stats.persona(sessions) == ("Morning Pro", "Morning: 50%")

    def test_persona_without_sessions(self):
        assert stats.persona([]) == stats.VERSATILE

    def test_top_location(self, make_session):
        sessions = [
            make_session(game_type="Tournament", location="WSOP", game_name="Main Event"),
            make_session(game_type="Tournament", location="WSOP", game_name="Colossus"),
            make_session(game_name="Bellagio", stakes="$2/$5"),
        ]
        assert stats.top_location(sessions) == ("WSOP", 2)

    def test_cash_location_includes_stakes(self, make_session):
        assert stats.display_location(make_session(game_name="Bellagio", stakes="$2/$5")) == "Bellagio $2/$5"

    def test_top_location_empty(self):
        assert stats.top_location([]) is None

    def test_best_multiplier(self, make_session):
        sessions = [
            make_session(id="a", buy_in=200, cashout=300),
            make_session(id="b", buy_in=100, cashout=500),
            make_session(id="c", buy_in=0, cashout=1000),
        ]
        ratio, session = stats.best_multiplier(sessions)
        assert ratio == pytest.approx(5)
        assert session.id == "b"

    def test_best_multiplier_all_busts(self, make_session):
        assert stats.best_multiplier([make_session(buy_in=100, cashout=0)]) is None
