# Supabase table: saved_hands
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

saved_hands:
- id: uuid (primary key)
- user_id: uuid (foreign key to user_profiles.id, not null)
- hand: jsonb (not null) - parsed hand history: game_info, players, streets, pot, showdown
- session_id: uuid (foreign key to sessions.id, nullable)
- hero_pnl: numeric (not null, default: 0) - copied from hand.pot.hero_pnl when not given
- timestamp: timestamp (default: now())

Hands are readable by anyone holding the id so they can be shared in
posts and group chats; only the owner can delete them.
"""
