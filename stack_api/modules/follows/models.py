# Supabase table: user_follows
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_follows:
- id: uuid (primary key)
- follower_id: uuid (foreign key to user_profiles.id, not null)
- followee_id: uuid (foreign key to user_profiles.id, not null)
- post_notifications: boolean (not null, default: false) - follower wants alerts for new posts
- created_at: timestamp (default: now())
- unique constraint on (follower_id, followee_id)

Follower / following counts on profiles are derived from this table.
"""
