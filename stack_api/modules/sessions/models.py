# Supabase table: sessions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

sessions:
- id: uuid (primary key)
- user_id: uuid (foreign key to user_profiles.id, not null)
- game_type: text (not null) - "Cash Game" or "Tournament" (matched by substring)
- game_name: text (not null) - venue / game label, e.g. "Bellagio $2/$5"
- stakes: text (not null) - "$1/$2", "$1/$2/$5", "NL200"; buy-in label for tournaments
- start_date: timestamp (not null)
- start_time: timestamp (not null)
- end_time: timestamp (not null)
- hours_played: numeric (not null)
- buy_in: numeric (not null)
- cashout: numeric (not null)
- profit: numeric (not null) - cashout - buy_in
- adjusted_profit: numeric (nullable) - profit after staking settlements
- notes: text[] (nullable)
- live_session_uuid: text (nullable)
- location: text (nullable)
- tournament_type: text (nullable)
- series: text (nullable)
- poker_variant: text (nullable)
- tournament_game_type: text (nullable)
- tournament_format: text (nullable)
- created_at: timestamp (default: now())

effective profit = adjusted_profit when set, else profit.
"""
