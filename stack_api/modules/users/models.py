# Supabase table: user_profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, equals auth.users.id)
- username: text (unique, not null) - stored lowercase, 3-30 chars of [a-z0-9_.]
- display_name: text (nullable)
- bio: text (nullable)
- location: text (nullable)
- avatar_url: text (nullable) - https URL of profile_images/{id}.jpg in S3
- favorite_game: text (nullable)
- favorite_games: text[] (default: '{}')
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

followers_count / following_count are not stored; they are counted from
user_follows on read.

Row level security: a user may only insert/update their own row. A read
the policy rejects surfaces as PostgREST error 42501 (permission denied).
"""
