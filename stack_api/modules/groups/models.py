# Supabase tables: groups, group_members, group_invites, group_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key)
- name: text (not null)
- description: text (default: '')
- owner_id: uuid (foreign key to user_profiles.id, not null)
- avatar_url: text (nullable)
- member_count: integer (not null, default: 1)
- leaderboard_type: text (not null, default: 'most_hours') - values: most_hours, most_profit
- last_message: text (nullable) - preview of the latest chat message
- last_message_time: timestamp (nullable)
- created_at: timestamp (default: now())

group_members:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (foreign key to user_profiles.id, not null)
- role: text (not null, default: 'member') - values: owner, member
- joined_at: timestamp (default: now())
- unique constraint on (group_id, user_id)

group_invites:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, not null)
- group_name: text (not null)
- inviter_id: uuid (not null)
- inviter_name: text (not null)
- invitee_id: uuid (not null)
- status: text (not null, default: 'pending') - values: pending, accepted, declined
- created_at: timestamp (default: now())

group_messages:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, not null)
- sender_id: uuid (not null)
- sender_name: text (not null)
- sender_avatar_url: text (nullable)
- message_type: text (not null) - values: text, hand
- text: text (nullable) - set for text messages
- hand_history_id: uuid (nullable) - set for hand messages
- hand_owner_user_id: uuid (nullable)
- timestamp: timestamp (default: now())
"""
