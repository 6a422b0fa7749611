# Supabase tables: posts, post_likes, post_comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key)
- user_id: uuid (foreign key to user_profiles.id, not null)
- content: text (not null)
- username: text (not null) - author snapshot at posting time
- display_name: text (nullable)
- profile_image: text (nullable)
- image_urls: text[] (nullable)
- likes: integer (not null, default: 0)
- comments: integer (not null, default: 0) - top-level comments only
- post_type: text (not null, default: 'text') - values: text, hand, location
- hand_history: jsonb (nullable) - set for hand posts
- session_id: uuid (nullable) - live session the post was made from
- location: text (nullable)
- is_note: boolean (not null, default: false) - session note shared as a post
- created_at: timestamp (default: now())

post_likes:
- post_id: uuid (foreign key to posts.id, not null)
- user_id: uuid (not null)
- timestamp: timestamp (default: now())
- unique constraint on (post_id, user_id)

post_comments:
- id: uuid (primary key)
- post_id: uuid (foreign key to posts.id, not null)
- user_id: uuid (not null)
- username: text (not null)
- profile_image: text (nullable)
- content: text (not null)
- parent_comment_id: uuid (nullable) - set for replies
- replies: integer (not null, default: 0)
- is_replyable: boolean (not null) - only top-level comments take replies
- created_at: timestamp (default: now())
"""
