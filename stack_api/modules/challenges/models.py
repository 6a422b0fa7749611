# Supabase tables: challenges, challenge_progress
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

challenges:
- id: uuid (primary key)
- user_id: uuid (not null)
- type: text (not null) - values: bankroll, hands, session
- title: text (not null)
- description: text (default: '')
- target_value: numeric (not null)
- current_value: numeric (default: 0)
- start_date: timestamp (default: now())
- end_date: timestamp (nullable) - active challenges past this date fail
- status: text (default: 'active') - values: active, completed, failed, abandoned
- is_public: boolean (default: true)
- created_at: timestamp (default: now())
- completed_at: timestamp (nullable)
- last_updated: timestamp (default: now())
- starting_bankroll: numeric (nullable) - bankroll challenges
- target_hand_count: integer (nullable) - hands challenges
- target_session_count: integer (nullable) - session challenges (count based)
- target_hours: numeric (nullable) - session challenges (hours based)
- min_hours_per_session: numeric (nullable) - sessions shorter than this do not count
- current_session_count: integer (default: 0)
- valid_sessions_count: integer (default: 0)
- total_hours_played: numeric (default: 0)
- counted_session_ids: text[] (default: '{}')

challenge_progress:
- id: uuid (primary key)
- challenge_id: uuid (foreign key to challenges.id, not null)
- user_id: uuid (not null)
- progress_value: numeric (not null)
- trigger_event: text (not null) - session_completed, hand_logged, bankroll_updated, manual
- related_entity_id: text (nullable)
- timestamp: timestamp (default: now())
"""
