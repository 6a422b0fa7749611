"""
Aggregations over a list of sessions.

Every function takes the already filtered sessions plus a ``profit``
callable, so the same code serves raw and staking-adjusted figures.
"""

import math
from collections import Counter, OrderedDict
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from stack_api.modules.sessions.schemas import SessionResponse
from stack_api.modules.bankroll.schemas import BankrollTransactionResponse
from stack_api.modules.analytics.filters import TimeRange, TimeOfDay, time_of_day, shift_months
from stack_api.modules.analytics.parsing import parse_big_blind, parse_location_from_game_name

ProfitFn = Callable[[SessionResponse], float]

TOURNAMENT_MARKERS = ("tournament", "mtt", "sng")
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
PERSONAS = OrderedDict([
    (TimeOfDay.MORNING, ("Morning Pro", "Morning")),
    (TimeOfDay.AFTERNOON, ("Afternoon Grinder", "Afternoon")),
    (TimeOfDay.EVENING, ("Evening Shark", "Evening")),
    (TimeOfDay.NIGHT, ("Night Owl", "Night")),
])
VERSATILE = ("Versatile Player", "N/A")


def effective_profit(session: SessionResponse) -> float:
    return session.effective_profit


def total_profit(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    return sum(profit(s) for s in sessions)


def win_rate(sessions: Sequence[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    """Percentage of sessions with a positive result"""
    if not sessions:
        return 0.0
    return sum(1 for s in sessions if profit(s) > 0) / len(sessions) * 100


def average_profit(sessions: Sequence[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    if not sessions:
        return 0.0
    return total_profit(sessions, profit) / len(sessions)


def best_session(sessions: Sequence[SessionResponse], profit: ProfitFn = effective_profit) -> Optional[Tuple[float, str]]:
    if not sessions:
        return None
    best = max(sessions, key=profit)
    return profit(best), best.id


def total_hours(sessions: Iterable[SessionResponse]) -> float:
    return sum(s.hours_played or 0.0 for s in sessions)


def average_session_length(sessions: Sequence[SessionResponse]) -> float:
    if not sessions:
        return 0.0
    return total_hours(sessions) / len(sessions)


def dollar_per_hour(sessions: Sequence[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    hours = total_hours(sessions)
    if hours == 0:
        return 0.0
    return total_profit(sessions, profit) / hours


def bb_per_hour(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    """
    Big blinds won per hour across cash sessions.

    Sessions are grouped by their stakes string and each group's rate is
    weighted by its hours. Sessions without hours or without a parseable
    big blind are skipped.
    """
    groups: Dict[str, List[float]] = {}
    for session in sessions:
        if "cash" not in (session.game_type or "").lower():
            continue
        hours = session.hours_played or 0.0
        if hours <= 0:
            continue
        big_blind = parse_big_blind(session.stakes)
        if not big_blind or big_blind <= 0:
            continue
        group = groups.setdefault(session.stakes, [0.0, 0.0])
        group[0] += profit(session) / big_blind
        group[1] += hours

    weighted = 0.0
    weight = 0.0
    for bb_won, hours in groups.values():
        if hours <= 0:
            continue
        weighted += (bb_won / hours) * hours
        weight += hours
    return weighted / weight if weight > 0 else 0.0


def _longest_run(sessions: Iterable[SessionResponse], predicate: Callable[[SessionResponse], bool]) -> int:
    longest = current = 0
    for session in sorted(sessions, key=lambda s: s.start_date):
        if predicate(session):
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def longest_winning_streak(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> int:
    return _longest_run(sessions, lambda s: profit(s) > 0)


def longest_losing_streak(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> int:
    return _longest_run(sessions, lambda s: profit(s) < 0)


def _best_group(sessions: Iterable[SessionResponse], key: Callable[[SessionResponse], str], profit: ProfitFn) -> Optional[Tuple[str, float]]:
    totals: Dict[str, float] = {}
    for session in sessions:
        name = key(session)
        totals[name] = totals.get(name, 0.0) + profit(session)
    if not totals:
        return None
    return max(totals.items(), key=lambda item: item[1])


def best_location(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> Optional[Tuple[str, float]]:
    return _best_group(sessions, lambda s: parse_location_from_game_name(s.game_name), profit)


def best_stake(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> Optional[Tuple[str, float]]:
    return _best_group(sessions, lambda s: s.stakes, profit)


def profit_standard_deviation(sessions: Sequence[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    """Sample standard deviation of session results"""
    if len(sessions) < 2:
        return 0.0
    profits = [profit(s) for s in sessions]
    mean = sum(profits) / len(profits)
    variance = sum((p - mean) ** 2 for p in profits) / (len(profits) - 1)
    return math.sqrt(variance)


def is_tournament(session: SessionResponse) -> bool:
    game_type = (session.game_type or "").lower()
    return any(marker in game_type for marker in TOURNAMENT_MARKERS)


def tournament_roi(sessions: Iterable[SessionResponse], profit: ProfitFn = effective_profit) -> float:
    tournaments = [s for s in sessions if is_tournament(s)]
    buy_ins = sum(s.buy_in for s in tournaments)
    if not tournaments or buy_ins <= 0:
        return 0.0
    return total_profit(tournaments, profit) / buy_ins * 100


def _same_month(value: datetime, now: datetime) -> bool:
    return value.year == now.year and value.month == now.month


def current_month_profit(
    sessions: Iterable[SessionResponse],
    transactions: Iterable[BankrollTransactionResponse],
    now: datetime,
    profit: ProfitFn = effective_profit
) -> float:
    session_profit = sum(profit(s) for s in sessions if _same_month(s.start_date, now))
    bankroll_profit = sum(t.amount for t in transactions if _same_month(t.timestamp, now))
    return session_profit + bankroll_profit


def top_games(sessions: Iterable[SessionResponse], limit: int = 5) -> List[str]:
    """Most frequently played game names"""
    counts = Counter(name for name in ((s.game_name or "").strip() for s in sessions) if name)
    return [name for name, _ in counts.most_common(limit)]


# Time series

def _bucket_start(value: datetime, time_range: TimeRange) -> datetime:
    if time_range == TimeRange.DAY:
        return value.replace(minute=0, second=0, microsecond=0)
    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_range in (TimeRange.WEEK, TimeRange.MONTH):
        return day
    if time_range == TimeRange.SIX_MONTHS:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def profit_series(
    sessions: Iterable[SessionResponse],
    time_range: TimeRange,
    profit: ProfitFn = effective_profit
) -> List[Tuple[datetime, float, float]]:
    """
    Profit per bucket with a running total, oldest first.

    Buckets are hours for 24H, days for 1W and 1M, weeks for 6M and
    months for 1Y and ALL. Returns ``(bucket_start, profit, cumulative)``.
    """
    buckets: Dict[datetime, float] = {}
    for session in sessions:
        key = _bucket_start(session.start_date, time_range)
        buckets[key] = buckets.get(key, 0.0) + profit(session)

    series = []
    running = 0.0
    for key in sorted(buckets):
        running += buckets[key]
        series.append((key, buckets[key], running))
    return series


def monthly_profits(
    sessions: Iterable[SessionResponse],
    transactions: Iterable[BankrollTransactionResponse],
    now: datetime,
    months: int = 12,
    profit: ProfitFn = effective_profit
) -> List[Tuple[str, float]]:
    """Last ``months`` calendar months including the current one, oldest first"""
    sessions = list(sessions)
    transactions = list(transactions)
    result = []
    for offset in range(months - 1, -1, -1):
        month = shift_months(now, -offset)
        total = sum(profit(s) for s in sessions if _same_month(s.start_date, month))
        total += sum(t.amount for t in transactions if _same_month(t.timestamp, month))
        result.append((month.strftime("%b"), total))
    return result


def day_of_week_breakdown(
    sessions: Iterable[SessionResponse],
    profit: ProfitFn = effective_profit
) -> List[Tuple[int, str, float, float, int]]:
    """``(weekday, name, profit, hours, session_count)`` for Monday through Sunday"""
    stats = {day: [0.0, 0.0, 0] for day in range(7)}
    for session in sessions:
        entry = stats[session.start_date.weekday()]
        entry[0] += profit(session)
        entry[1] += session.hours_played or 0.0
        entry[2] += 1
    return [(day, DAY_NAMES[day], *stats[day]) for day in range(7)]


# Highlights

def persona(sessions: Sequence[SessionResponse]) -> Tuple[str, str]:
    """
    Classify the player by the time of day they usually start.

    Returns ``(persona, "<Period>: NN%")``. Ties keep the earlier period in
    morning, afternoon, evening, night order.
    """
    if not sessions:
        return VERSATILE
    counts = Counter(time_of_day(s.start_time.hour) for s in sessions)
    label, period, best = VERSATILE[0], VERSATILE[1], 0
    for slot, (slot_label, slot_period) in PERSONAS.items():
        if counts[slot] > best:
            label, period, best = slot_label, slot_period, counts[slot]
    return label, f"{period}: {best / len(sessions) * 100:.0f}%"


def display_location(session: SessionResponse) -> str:
    if "cash" in (session.game_type or "").lower():
        return f"{session.game_name} {session.stakes}".strip()
    return (session.location or session.game_name or "").strip()


def top_location(sessions: Iterable[SessionResponse]) -> Optional[Tuple[str, int]]:
    counts = Counter(display_location(s) for s in sessions)
    if not counts:
        return None
    return counts.most_common(1)[0]


def best_multiplier(sessions: Iterable[SessionResponse]) -> Optional[Tuple[float, SessionResponse]]:
    """Highest cashout / buy-in ratio over sessions with a buy-in"""
    best: Optional[Tuple[float, SessionResponse]] = None
    for session in sessions:
        if session.buy_in <= 0:
            continue
        ratio = session.cashout / session.buy_in
        if ratio > 0 and (best is None or ratio > best[0]):
            best = (ratio, session)
    return best
