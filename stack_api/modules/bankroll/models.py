# Supabase tables: bankroll_summaries, bankroll_transactions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

bankroll_summaries:
- user_id: uuid (primary key)
- current_total: numeric (not null, default: 0) - running sum of transactions
- last_updated: timestamp (default: now())

bankroll_transactions:
- id: uuid (primary key)
- user_id: uuid (not null)
- amount: numeric (not null) - positive adds, negative withdraws
- note: text (nullable)
- timestamp: timestamp (default: now())

Session profit is not part of current_total; analytics adds the two.
"""
