# Supabase tables: home_games, home_game_players, home_game_requests, home_game_events, home_game_invites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

home_games:
- id: uuid (primary key)
- title: text (not null)
- creator_id: uuid (foreign key to user_profiles.id, not null)
- creator_name: text (not null)
- group_id: uuid (foreign key to groups.id, nullable) - null for standalone games
- status: text (not null, default: 'active') - values: active, completed
- small_blind: numeric (nullable)
- big_blind: numeric (nullable)
- settlement_transactions: jsonb (default: '[]') - written when the game ends
- created_at: timestamp (default: now())
- ended_at: timestamp (nullable)

home_game_players:
- id: uuid (primary key)
- game_id: uuid (foreign key to home_games.id, not null)
- user_id: uuid (not null)
- display_name: text (not null)
- current_stack: numeric (not null, default: 0)
- total_buy_in: numeric (not null, default: 0)
- status: text (not null, default: 'active') - values: active, cashed_out
- joined_at: timestamp (default: now())
- cashed_out_at: timestamp (nullable)
- unique constraint on (game_id, user_id)

home_game_requests:
- id: uuid (primary key)
- game_id: uuid (foreign key to home_games.id, not null)
- kind: text (not null) - values: buy_in, cash_out
- user_id: uuid (not null)
- display_name: text (not null)
- amount: numeric (not null)
- status: text (not null, default: 'pending') - values: pending, approved, declined, processed
- requested_at: timestamp (default: now())
- processed_at: timestamp (nullable)

home_game_events:
- id: uuid (primary key)
- game_id: uuid (foreign key to home_games.id, not null)
- event_type: text (not null) - values: game_created, player_joined, buy_in, cash_out, player_updated, game_ended
- user_id: uuid (not null)
- user_name: text (not null)
- amount: numeric (nullable)
- description: text (not null)
- timestamp: timestamp (default: now())

home_game_invites:
- id: uuid (primary key)
- game_id: uuid (foreign key to home_games.id, not null)
- game_title: text (not null)
- host_id: uuid (not null)
- host_name: text (not null)
- invited_user_id: uuid (not null)
- invited_user_display_name: text (not null)
- invited_group_id: uuid (nullable) - set when sent to a whole group
- invited_group_name: text (nullable)
- message: text (nullable)
- status: text (not null, default: 'pending') - values: pending, accepted, declined
- created_at: timestamp (default: now())
- responded_at: timestamp (nullable)
"""
