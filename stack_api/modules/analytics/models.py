# Analytics has no tables of its own
# It reads sessions, bankroll_summaries and bankroll_transactions

"""
Inputs used by the aggregations:

sessions:
- game_type: substring "cash" / "tournament" / "mtt" / "sng" selects the game family
- game_name: venue label, stakes notation stripped for best location
- stakes: "$sb/$bb" drives stake level and BB/hour
- start_date: time range, weekday and bucketing
- start_time: hour of day for the time-of-day filter and persona
- hours_played, buy_in, cashout
- profit / adjusted_profit: raw vs staking-adjusted result

bankroll_summaries.current_total is added to session profit for the total
bankroll; bankroll_transactions feed current-month and monthly profit.
"""
