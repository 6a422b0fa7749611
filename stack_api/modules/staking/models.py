# Supabase table: stakes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

stakes:
- id: uuid (primary key)
- session_id: uuid (foreign key to sessions.id, not null)
- session_game_name: text (not null)
- session_stakes: text (not null) - e.g. "$1/$2"
- session_date: timestamp (not null)
- staker_user_id: uuid (not null) - backer
- staked_player_user_id: uuid (not null) - player who was backed
- stake_percentage: numeric (not null) - 0.10 means 10% of the action
- markup: numeric (not null, default: 1.0) - 1.2 means 20% markup
- total_player_buy_in_for_session: numeric (not null)
- player_cashout_for_session: numeric (not null)
- status: text (not null, default: 'awaiting_settlement') - values:
  pending_acceptance, active, awaiting_settlement, awaiting_confirmation,
  settled, declined, cancelled
- is_tournament_session: boolean (default: false)
- settlement_initiator_user_id: uuid (nullable)
- settlement_confirmer_user_id: uuid (nullable)
- proposed_at: timestamp (default: now())
- accepted_at: timestamp (nullable)
- declined_at: timestamp (nullable)
- settled_at: timestamp (nullable)
- last_updated_at: timestamp (default: now())

Settlement math (derived, not stored):
- staker_cost = buy_in * stake_percentage * markup
- staker_share_of_cashout = cashout * stake_percentage
- amount_transferred_at_settlement = share - cost
  (> 0: player pays staker, < 0: staker pays player)
"""
